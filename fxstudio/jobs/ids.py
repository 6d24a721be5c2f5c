"""Human-traceable, time-ordered job identifiers."""

import threading
import time
from datetime import datetime, timezone


class JobIdGenerator:
    """Produces ids like ``20261018-1760781234567890``.

    The prefix is the UTC creation date, the suffix the UTC epoch in
    microseconds zero-padded to 16 digits. The suffix is forced strictly
    increasing, so ids sort lexicographically by creation time and never
    repeat within the process.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._last_us = 0

    def next_id(self) -> str:
        with self._lock:
            now_us = time.time_ns() // 1000
            if now_us <= self._last_us:
                now_us = self._last_us + 1
            self._last_us = now_us
        day = datetime.fromtimestamp(now_us / 1_000_000, tz=timezone.utc)
        return f"{day:%Y%m%d}-{now_us:016d}"


# Global generator
job_ids = JobIdGenerator()
