"""Error taxonomy for fxstudio.

Every error carries a machine-readable ``code`` and the HTTP status it maps
to. Render failures are captured into the job record (``error`` and
``error_code``) instead of being raised to the submitting caller.
"""

from typing import Optional


class FxStudioError(Exception):
    """Base exception for all fxstudio application errors."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.__class__.message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


# =============================================================================
# Validation Errors (400)
# =============================================================================


class ValidationError(FxStudioError):
    """Base class for request validation errors. Never retried."""

    code = "VALIDATION_ERROR"
    status_code = 400
    message = "Invalid request parameters"


class ParameterValidationError(ValidationError):
    """An effect's parameters failed validation."""

    def __init__(
        self,
        message: str,
        *,
        effect_id: Optional[str] = None,
        index: Optional[int] = None,
    ):
        self.effect_id = effect_id
        self.index = index
        prefix = ""
        if index is not None:
            prefix = f"Effect {index + 1}"
            if effect_id:
                prefix += f" ({effect_id})"
            prefix += ": "
        elif effect_id:
            prefix = f"{effect_id}: "
        super().__init__(prefix + message)


class EffectNotFoundError(ValidationError):
    """Requested effect is not registered."""

    code = "EFFECT_NOT_FOUND"
    message = "Effect not found"

    def __init__(self, effect_id: Optional[str] = None, available: Optional[list] = None):
        self.effect_id = effect_id
        message = f"Effect not found: {effect_id}" if effect_id else self.message
        if available:
            message += f". Available effects: {', '.join(available)}"
        super().__init__(message)


# =============================================================================
# Resource Errors (404)
# =============================================================================


class ResourceNotFoundError(FxStudioError):
    status_code = 404


class JobNotFoundError(ResourceNotFoundError):
    code = "JOB_NOT_FOUND"
    message = "Job not found"

    def __init__(self, job_id: Optional[str] = None):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}" if job_id else self.message)


class ArtifactMissingError(ResourceNotFoundError):
    """The job is completed but its output file is gone from disk."""

    code = "ARTIFACT_MISSING"
    message = "Output artifact missing"

    def __init__(self, job_id: Optional[str] = None, artifact: Optional[str] = None):
        self.job_id = job_id
        self.artifact = artifact
        message = self.message
        if job_id:
            message = f"Output artifact missing for completed job {job_id}"
            if artifact:
                message += f" ({artifact})"
        super().__init__(message)


# =============================================================================
# Conflict Errors (409)
# =============================================================================


class ConflictError(FxStudioError):
    code = "CONFLICT"
    status_code = 409


class JobNotCompletedError(ConflictError):
    code = "JOB_NOT_COMPLETED"
    message = "Job is not completed yet"

    def __init__(self, job_id: Optional[str] = None, state: Optional[str] = None):
        message = self.message
        if job_id:
            message = f"Job {job_id} is not completed yet"
            if state:
                message += f" (state: {state})"
        super().__init__(message)


class JobAlreadyFinishedError(ConflictError):
    code = "JOB_ALREADY_FINISHED"
    message = "Job has already finished"

    def __init__(self, job_id: Optional[str] = None, state: Optional[str] = None):
        message = self.message
        if job_id:
            message = f"Job {job_id} has already finished"
            if state:
                message += f" (state: {state})"
        super().__init__(message)


class JobAlreadyRunningError(ConflictError):
    code = "JOB_ALREADY_RUNNING"
    message = "Job already has an active render task"

    def __init__(self, job_id: Optional[str] = None):
        super().__init__(f"Job already has an active render task: {job_id}" if job_id else self.message)


# =============================================================================
# Programming Errors (500)
# =============================================================================


class InvalidTransitionError(FxStudioError):
    """State machine misuse. Indicates a bug, never a user error."""

    code = "INVALID_TRANSITION"
    message = "Invalid job state transition"

    def __init__(
        self,
        job_id: Optional[str] = None,
        from_state: Optional[str] = None,
        to_state: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        self.job_id = job_id
        self.from_state = from_state
        self.to_state = to_state
        message = self.message
        if job_id:
            message = f"Invalid transition for job {job_id}: {from_state} -> {to_state}"
            if reason:
                message += f" ({reason})"
        super().__init__(message)


class DuplicateJobIdError(FxStudioError):
    code = "DUPLICATE_JOB_ID"
    message = "Job id already exists"

    def __init__(self, job_id: Optional[str] = None):
        super().__init__(f"Job id already exists: {job_id}" if job_id else self.message)


# =============================================================================
# Render Errors (captured into the job record)
# =============================================================================


class RenderError(FxStudioError):
    code = "RENDER_ERROR"
    message = "Render failed"


class SpawnFailureError(RenderError):
    """The renderer process could not be started."""

    code = "SPAWN_FAILURE"
    message = "Renderer process could not be started"

    def __init__(self, command: Optional[str] = None, reason: Optional[str] = None):
        self.command = command
        message = self.message
        if command:
            message = f"Could not start '{command}'"
            if reason:
                message += f": {reason}"
        super().__init__(message)


class NonZeroExitError(RenderError):
    """The renderer ran but exited with a failure code."""

    code = "NON_ZERO_EXIT"

    def __init__(self, exit_code: int, command: Optional[str] = None, stderr_tail: str = ""):
        self.exit_code = exit_code
        self.command = command
        self.stderr_tail = stderr_tail
        message = f"Render failed with exit code {exit_code}"
        if command:
            message = f"{command} failed with exit code {exit_code}"
        if stderr_tail:
            message += f": {stderr_tail}"
        super().__init__(message)


class StepFailureError(RenderError):
    """A composite step failed. Remaining steps were not run."""

    code = "STEP_FAILURE"

    def __init__(self, step_index: int, effect_id: str, cause: Exception):
        self.step_index = step_index
        self.effect_id = effect_id
        self.cause = cause
        super().__init__(f"Step {step_index + 1} ({effect_id}) failed: {cause}")


class MergeError(RenderError):
    code = "MERGE_FAILURE"
    message = "Merging rendered clips failed"

    def __init__(self, mode: Optional[str] = None, reason: Optional[str] = None):
        self.mode = mode
        message = self.message
        if mode:
            message = f"Merging clips ({mode}) failed"
            if reason:
                message += f": {reason}"
        super().__init__(message)


class JobCancelledError(RenderError):
    code = "CANCELLED"
    message = "Job was cancelled"


class RenderTimeoutError(RenderError):
    code = "RENDER_TIMEOUT"
    message = "Render exceeded its time limit"

    def __init__(self, timeout_seconds: Optional[float] = None):
        self.timeout_seconds = timeout_seconds
        message = self.message
        if timeout_seconds:
            message = f"Render exceeded its time limit of {timeout_seconds:g}s"
        super().__init__(message)
