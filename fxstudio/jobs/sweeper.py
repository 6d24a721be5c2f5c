"""Periodic removal of expired completed jobs and their artifacts."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from fxstudio.jobs.models import JobState, utcnow
from fxstudio.jobs.store import JobStore
from fxstudio.storage.outputs import OutputStore

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Deletes ``completed`` jobs older than ``retention``, every ``interval``.

    Failed, pending and rendering jobs are never touched.
    """

    def __init__(
        self,
        store: JobStore,
        outputs: OutputStore,
        retention: timedelta = timedelta(minutes=30),
        interval: timedelta = timedelta(minutes=30),
    ):
        self._store = store
        self._outputs = outputs
        self._retention = retention
        self._interval = interval
        self._task: Optional[asyncio.Task] = None

    def sweep(self, now: Optional[datetime] = None) -> List[str]:
        """Remove expired jobs once. Returns the removed job ids."""
        cutoff = (now or utcnow()) - self._retention
        removed = []
        for job in self._store.list():
            if job.state != JobState.COMPLETED or job.completed_at is None:
                continue
            if job.completed_at >= cutoff:
                continue
            try:
                self._outputs.delete(job.output_artifact)
            except OSError as exc:
                logger.error("Could not delete artifact of job %s: %s", job.id, exc)
                continue
            self._store.delete(job.id)
            removed.append(job.id)
            logger.info("Expired job %s removed (%s)", job.id, job.output_artifact)
        return removed

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._loop(), name="expiry-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval.total_seconds())
            try:
                removed = self.sweep()
            except Exception:
                logger.exception("Expiry sweep failed")
                continue
            if removed:
                logger.info("Expiry sweep removed %d job(s)", len(removed))
