"""Output artifact storage for rendered videos."""

import logging
import os
from typing import Optional

from fxstudio.config import settings

logger = logging.getLogger(__name__)


class OutputStore:
    """Manages rendered video files in a shared output directory.

    Every job writes only job-id-qualified names, so concurrent jobs share
    the directory without locking.
    """

    def __init__(self, base_dir: Optional[str] = None):
        self._base_dir = os.path.abspath(base_dir or settings.output_dir)

    @property
    def base_dir(self) -> str:
        return self._base_dir

    def ensure(self) -> str:
        """Create the output directory if missing. Safe under concurrent first use."""
        os.makedirs(self._base_dir, exist_ok=True)
        return self._base_dir

    @staticmethod
    def artifact_name(job_id: str) -> str:
        return f"video-{job_id}.mp4"

    def path_for(self, name: str) -> str:
        """Full path for an artifact name. Names never leave the base dir."""
        return os.path.join(self._base_dir, os.path.basename(name))

    def exists(self, name: Optional[str]) -> bool:
        return bool(name) and os.path.isfile(self.path_for(name))

    def delete(self, name: Optional[str]) -> bool:
        """Remove an artifact. Returns False when there was nothing to remove."""
        if not name:
            return False
        try:
            os.remove(self.path_for(name))
        except FileNotFoundError:
            return False
        return True

    def discard(self, path: str) -> None:
        """Best-effort removal of an intermediate file; failures are logged."""
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove intermediate file %s: %s", path, exc)
