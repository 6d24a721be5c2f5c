"""In-process job runner using asyncio.

Every submitted job gets its own supervised task. The supervisor owns the
job's state transitions: any error raised by the worker (or a timeout or
cancellation) ends in a ``failed`` record and never escapes the task.
"""

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Dict

from fxstudio.exceptions import (
    FxStudioError,
    InvalidTransitionError,
    JobAlreadyFinishedError,
    JobAlreadyRunningError,
    JobCancelledError,
    JobNotFoundError,
    RenderTimeoutError,
)
from fxstudio.jobs.dispatcher import JobDispatcher
from fxstudio.jobs.models import JobRecord, JobState
from fxstudio.jobs.store import JobStore

logger = logging.getLogger(__name__)

# worker_fn(job, on_progress) -> output artifact name
WorkerFn = Callable[[JobRecord, Callable[[float], None]], Awaitable[str]]


class InProcessRunner(JobDispatcher):
    """Runs render jobs as background asyncio tasks.

    ``max_concurrent`` > 0 bounds how many jobs render at the same time;
    the rest wait in ``pending``. ``job_timeout`` > 0 bounds the render
    time of each job in seconds.
    """

    def __init__(
        self,
        store: JobStore,
        worker_fn: WorkerFn,
        max_concurrent: int = 0,
        job_timeout: float = 0,
    ):
        self._store = store
        self._worker_fn = worker_fn
        self._job_timeout = job_timeout
        self._semaphore = asyncio.Semaphore(max_concurrent) if max_concurrent > 0 else None
        self._tasks: Dict[str, asyncio.Task] = {}
        self._running = False

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    async def start(self) -> None:
        self._running = True

    async def stop(self) -> None:
        self._running = False
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            logger.info("Cancelling %d running job(s)", len(tasks))
            await asyncio.gather(*tasks, return_exceptions=True)

    async def submit(self, job_id: str) -> str:
        if job_id in self._tasks:
            raise JobAlreadyRunningError(job_id)
        job = self._store.get(job_id)
        if job.state != JobState.PENDING:
            raise JobAlreadyFinishedError(job_id, job.state.value)

        task = asyncio.create_task(self._supervise(job_id), name=f"render-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda t: self._finished(job_id, t))
        return job_id

    async def cancel(self, job_id: str) -> JobRecord:
        job = self._store.get(job_id)
        if job.state.is_terminal:
            raise JobAlreadyFinishedError(job_id, job.state.value)

        task = self._tasks.get(job_id)
        if task is not None:
            logger.info("Cancelling job %s", job_id)
            task.cancel()
        else:
            self._fail(job_id, JobCancelledError())
        return self._store.get(job_id)

    async def join(self, job_id: str) -> JobRecord:
        """Wait for a job's task to finish and return its final snapshot."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        return self._store.get(job_id)

    def _slot(self):
        if self._semaphore is None:
            return contextlib.nullcontext()
        return self._semaphore

    async def _supervise(self, job_id: str) -> None:
        try:
            async with self._slot():
                job = self._store.transition(job_id, JobState.RENDERING)

                def on_progress(fraction: float) -> None:
                    self._store.report_progress(job_id, fraction)

                work = self._worker_fn(job, on_progress)
                if self._job_timeout > 0:
                    artifact = await asyncio.wait_for(work, timeout=self._job_timeout)
                else:
                    artifact = await work
        except asyncio.CancelledError:
            logger.warning("Job %s cancelled", job_id)
            self._fail(job_id, JobCancelledError())
        except asyncio.TimeoutError:
            logger.error("Job %s exceeded %ss", job_id, self._job_timeout)
            self._fail(job_id, RenderTimeoutError(self._job_timeout))
        except FxStudioError as exc:
            logger.error("Job %s failed [%s]: %s", job_id, exc.code, exc.message)
            self._fail(job_id, exc)
        except Exception as exc:
            logger.exception("Job %s failed with an unexpected error", job_id)
            self._fail(job_id, exc)
        else:
            self._store.transition(job_id, JobState.COMPLETED, output_artifact=artifact)

    def _finished(self, job_id: str, task: asyncio.Task) -> None:
        self._tasks.pop(job_id, None)
        # a task cancelled before its first step never ran the supervisor
        if task.cancelled():
            try:
                job = self._store.get(job_id)
            except JobNotFoundError:
                return
            if not job.state.is_terminal:
                self._fail(job_id, JobCancelledError())

    def _fail(self, job_id: str, exc: Exception) -> None:
        if isinstance(exc, FxStudioError):
            message, code = exc.message, exc.code
        else:
            message, code = f"{type(exc).__name__}: {exc}", "INTERNAL_ERROR"
        try:
            self._store.transition(job_id, JobState.FAILED, error=message, error_code=code)
        except (InvalidTransitionError, JobNotFoundError) as err:
            logger.error("Could not record failure of job %s: %s", job_id, err)

