"""Job API: submit render jobs, poll status, cancel, download the video."""

import asyncio
from typing import Any, Dict, List, Optional

import pydantic
from fastapi import APIRouter, Body, HTTPException
from fastapi.responses import FileResponse
from pydantic import BaseModel, ConfigDict, Field

from fxstudio.config import settings
from fxstudio.effects.parsers import parse_float, parse_int
from fxstudio.effects.registry import registry
from fxstudio.exceptions import (
    ArtifactMissingError,
    JobNotCompletedError,
    ParameterValidationError,
    ValidationError,
)
from fxstudio.jobs.models import JobKind, JobRecord, JobState, MergeConfig

router = APIRouter()

# These will be set by main.py during lifespan
_store = None
_dispatcher = None
_outputs = None


def set_store(store):
    global _store
    _store = store


def set_dispatcher(dispatcher):
    global _dispatcher
    _dispatcher = dispatcher


def set_outputs(outputs):
    global _outputs
    _outputs = outputs


def _require_ready():
    if _store is None or _dispatcher is None or _outputs is None:
        raise HTTPException(status_code=503, detail="Job runner not initialized")


def status_url(job_id: str) -> str:
    return f"/api/v1/jobs/{job_id}"


def job_summary(job: JobRecord) -> Dict[str, Any]:
    return {
        "job_id": job.id,
        "kind": job.kind.value,
        "effect_id": job.effect_id,
        "effect_name": job.effect_name,
        "status": job.state.value,
        "progress": job.progress,
        "created_at": job.created_at.isoformat(),
    }


def job_view(job: JobRecord) -> Dict[str, Any]:
    view = job_summary(job)
    view.update({
        "error": job.error,
        "error_code": job.error_code,
        "started_at": job.started_at.isoformat() if job.started_at else None,
        "completed_at": job.completed_at.isoformat() if job.completed_at else None,
        "download_url": None,
    })
    if job.state == JobState.COMPLETED:
        view["download_url"] = f"{status_url(job.id)}/download"
    return view


class CompositeJobRequest(BaseModel):
    """Envelope of a composite submission.

    Step entries stay raw dicts: each one is validated by its effect's
    definition, with the step index attached to any error.
    """
    model_config = ConfigDict(populate_by_name=True)

    effects: List[Any] = Field(default_factory=list)
    merge_mode: Optional[str] = Field(default=None, alias="mergeMode")
    transition: Optional[str] = None
    transition_duration: Any = Field(default=None, alias="transitionDuration")
    width: Any = None
    height: Any = None
    fps: Any = None
    overlay_opacity: Any = Field(default=None, alias="overlayOpacity")


class JobSubmitResponse(BaseModel):
    job_id: str
    status: str
    effect_id: str
    effect_name: str
    status_url: str


class CompositeJobResponse(BaseModel):
    job_id: str
    status: str
    kind: str
    effects_count: int
    merge_mode: str
    status_url: str


def merge_config_from(request: CompositeJobRequest) -> MergeConfig:
    """Read the global merge fields of a composite request."""
    try:
        return MergeConfig(
            mode=request.merge_mode or "sequence",
            transition=request.transition or "fade",
            transition_duration=parse_float(0.5)(request.transition_duration),
            width=parse_int(720)(request.width),
            height=parse_int(1280)(request.height),
            fps=parse_int(24)(request.fps),
            overlay_opacity=parse_float(0.5)(request.overlay_opacity),
        )
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
        raise ValidationError(f"Invalid merge options ({message})") from exc


@router.post("/jobs/composite", status_code=202, response_model=CompositeJobResponse)
async def submit_composite_job(request: CompositeJobRequest):
    """Submit several effects rendered in order and merged into one video."""
    _require_ready()

    if not request.effects:
        raise ParameterValidationError("effects must be a non-empty list")
    merge = merge_config_from(request)

    bundles = []
    for index, raw in enumerate(request.effects):
        if not isinstance(raw, dict):
            raise ParameterValidationError("must be an object", index=index)
        effect_id = raw.get("effectId") or raw.get("projectId")
        if not effect_id:
            raise ParameterValidationError("missing effectId", index=index)
        if not registry.has(effect_id):
            raise ParameterValidationError(
                f"unknown effect. Available effects: {', '.join(registry.effect_ids())}",
                effect_id=effect_id,
                index=index,
            )
        step_raw = dict(raw)
        if not step_raw.get("duration"):
            step_raw["duration"] = settings.composite_default_duration
        # building may extract contours and stage files
        bundle = await asyncio.to_thread(
            registry.build,
            effect_id,
            step_raw,
            overrides={"width": merge.width, "height": merge.height, "fps": merge.fps},
            index=index,
        )
        bundles.append(bundle)

    input_params = {
        "effects": [b.model_dump() for b in bundles],
        "merge": merge.model_dump(mode="json"),
    }
    job_id = _store.create(JobKind.COMPOSITE, input_params, "composite", "Composite")
    await _dispatcher.submit(job_id)

    return CompositeJobResponse(
        job_id=job_id,
        status=JobState.PENDING.value,
        kind=JobKind.COMPOSITE.value,
        effects_count=len(bundles),
        merge_mode=merge.mode.value,
        status_url=status_url(job_id),
    )


@router.post("/jobs/{effect_id}", status_code=202, response_model=JobSubmitResponse)
async def submit_job(effect_id: str, body: Optional[Dict[str, Any]] = Body(default=None)):
    """Submit a single-effect render job. Poll ``status_url`` for progress."""
    _require_ready()

    bundle = await asyncio.to_thread(registry.build, effect_id, body or {})
    job_id = _store.create(JobKind.SINGLE, bundle.model_dump(), effect_id, bundle.effect_name)
    await _dispatcher.submit(job_id)

    return JobSubmitResponse(
        job_id=job_id,
        status=JobState.PENDING.value,
        effect_id=effect_id,
        effect_name=bundle.effect_name,
        status_url=status_url(job_id),
    )


@router.get("/jobs")
async def list_jobs() -> List[Dict[str, Any]]:
    _require_ready()
    return [job_summary(job) for job in _store.list()]


@router.get("/jobs/{job_id}")
async def get_job_status(job_id: str):
    """Get the current status of a job."""
    _require_ready()
    return job_view(_store.get(job_id))


@router.get("/jobs/{job_id}/download")
async def download_job_output(job_id: str):
    """Download the rendered video of a completed job."""
    _require_ready()

    job = _store.get(job_id)
    if job.state != JobState.COMPLETED:
        raise JobNotCompletedError(job_id, job.state.value)
    if not _outputs.exists(job.output_artifact):
        raise ArtifactMissingError(job_id, job.output_artifact)

    return FileResponse(
        _outputs.path_for(job.output_artifact),
        media_type="video/mp4",
        filename=f"{job.effect_id}-{job.id}.mp4",
    )


@router.post("/jobs/{job_id}/cancel", status_code=202)
async def cancel_job(job_id: str):
    """Cancel a pending or rendering job. The record ends ``failed``."""
    _require_ready()
    job = await _dispatcher.cancel(job_id)
    return job_view(job)
