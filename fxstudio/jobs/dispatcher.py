"""Job dispatcher interface."""

from abc import ABC, abstractmethod

from fxstudio.jobs.models import JobRecord


class JobDispatcher(ABC):
    """Abstract interface for running render jobs in the background."""

    @abstractmethod
    async def submit(self, job_id: str) -> str:
        """Start rendering an already created job. Returns job_id."""
        ...

    @abstractmethod
    async def cancel(self, job_id: str) -> JobRecord:
        """Request cancellation of a job. Returns the current snapshot."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start the dispatcher."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the dispatcher, cancelling work still in flight."""
        ...
