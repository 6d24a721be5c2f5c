"""Progress parsing for renderer output.

The renderer's log format is not a contract: a line without a percentage,
or with a value that does not advance, simply reports nothing.
"""

import re
from typing import Optional

PERCENT_RE = re.compile(r"(?<![\d.])(\d{1,3})\s?%")


def parse_percent(line: str) -> Optional[int]:
    """Return the last ``NN%`` value (0-100) found in ``line``."""
    values = [int(m) for m in PERCENT_RE.findall(line)]
    values = [v for v in values if v <= 100]
    if not values:
        return None
    return values[-1]


class ProgressParser:
    """Turns renderer output lines into strictly increasing fractions."""

    def __init__(self):
        self._last = 0

    @property
    def last_percent(self) -> int:
        return self._last

    def feed(self, line: str) -> Optional[float]:
        """Return a new fraction in [0, 1] or None when nothing advanced."""
        percent = parse_percent(line)
        if percent is None or percent <= self._last:
            return None
        self._last = percent
        return percent / 100
