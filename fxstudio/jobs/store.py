"""In-memory job record store.

All job state lives here; a restart clears it. Records are mutated only
through :meth:`JobStore.transition` and :meth:`JobStore.report_progress`,
and every read returns a deep copy so callers only ever see snapshots.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

from fxstudio.exceptions import (
    DuplicateJobIdError,
    InvalidTransitionError,
    JobNotFoundError,
)
from fxstudio.jobs.ids import JobIdGenerator, job_ids
from fxstudio.jobs.models import (
    ALLOWED_TRANSITIONS,
    JobKind,
    JobRecord,
    JobState,
    utcnow,
)

logger = logging.getLogger(__name__)

# Progress stays below 100 until the record is completed.
MAX_RENDERING_PROGRESS = 99


class JobStore:
    """Thread-safe table of job records keyed by job id.

    A table lock guards membership; each record has its own lock so that
    progress callbacks, the sweeper and pollers never lose updates on the
    same record.
    """

    def __init__(self, id_generator: Optional[JobIdGenerator] = None):
        self._ids = id_generator or job_ids
        self._table_lock = threading.Lock()
        self._records: Dict[str, JobRecord] = {}
        self._locks: Dict[str, threading.Lock] = {}

    def create(
        self,
        kind: JobKind,
        input_params: Dict[str, Any],
        effect_id: str,
        effect_name: str = "",
    ) -> str:
        """Create a ``pending`` record and return its id."""
        job_id = self._ids.next_id()
        record = JobRecord(
            id=job_id,
            kind=kind,
            effect_id=effect_id,
            effect_name=effect_name,
            input_params=input_params,
        )
        with self._table_lock:
            if job_id in self._records:
                raise DuplicateJobIdError(job_id)
            self._records[job_id] = record.model_copy(deep=True)
            self._locks[job_id] = threading.Lock()
        logger.info("Created %s job %s (%s)", kind.value, job_id, effect_id)
        return job_id

    def get(self, job_id: str) -> JobRecord:
        record, lock = self._lookup(job_id)
        with lock:
            return record.model_copy(deep=True)

    def list(self) -> List[JobRecord]:
        with self._table_lock:
            items = [(self._records[k], self._locks[k]) for k in sorted(self._records)]
        snapshots = []
        for record, lock in items:
            with lock:
                snapshots.append(record.model_copy(deep=True))
        return snapshots

    def delete(self, job_id: str) -> bool:
        with self._table_lock:
            removed = self._records.pop(job_id, None)
            self._locks.pop(job_id, None)
        return removed is not None

    def counts(self) -> Dict[str, int]:
        counts = {state.value: 0 for state in JobState}
        for record in self.list():
            counts[record.state.value] += 1
        return counts

    def transition(
        self,
        job_id: str,
        new_state: JobState,
        *,
        output_artifact: Optional[str] = None,
        error: Optional[str] = None,
        error_code: Optional[str] = None,
    ) -> JobRecord:
        """Move a record along the state machine and return the new snapshot.

        Raises:
            JobNotFoundError: unknown id.
            InvalidTransitionError: illegal edge, a terminal source state,
                ``completed`` without an artifact or ``failed`` without an
                error.
        """
        record, lock = self._lookup(job_id)
        with lock:
            current = record.state
            if new_state not in ALLOWED_TRANSITIONS[current]:
                self._reject(job_id, current, new_state, "edge not allowed")
            if new_state == JobState.COMPLETED and not output_artifact:
                self._reject(job_id, current, new_state, "missing output artifact")
            if new_state == JobState.FAILED and not error:
                self._reject(job_id, current, new_state, "missing error")

            now = utcnow()
            record.state = new_state
            if new_state == JobState.RENDERING:
                record.started_at = now
                record.progress = 0
            elif new_state == JobState.COMPLETED:
                record.output_artifact = output_artifact
                record.progress = 100
                record.completed_at = now
            elif new_state == JobState.FAILED:
                record.error = error
                record.error_code = error_code
                record.completed_at = now
            snapshot = record.model_copy(deep=True)

        logger.info("Job %s: %s -> %s", job_id, current.value, new_state.value)
        return snapshot

    def report_progress(self, job_id: str, fraction: float) -> int:
        """Apply a progress fraction in [0, 1] to a rendering record.

        Values that would not increase progress are ignored. Returns the
        record's progress after the update.
        """
        record, lock = self._lookup(job_id)
        with lock:
            if record.state != JobState.RENDERING:
                self._reject(job_id, record.state, record.state, "progress outside rendering")
            fraction = min(max(fraction, 0.0), 1.0)
            value = min(int(round(fraction * 100)), MAX_RENDERING_PROGRESS)
            if value > record.progress:
                record.progress = value
            return record.progress

    def _lookup(self, job_id: str):
        with self._table_lock:
            record = self._records.get(job_id)
            if record is None:
                raise JobNotFoundError(job_id)
            return record, self._locks[job_id]

    @staticmethod
    def _reject(job_id: str, current: JobState, new_state: JobState, reason: str):
        error = InvalidTransitionError(job_id, current.value, new_state.value, reason)
        logger.error("%s", error.message)
        raise error
