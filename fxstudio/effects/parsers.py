"""Lenient parsers for raw request values.

Raw parameters arrive from JSON bodies or form-style strings, so every
parser accepts either and falls back to its default on garbage.
"""

import json
from typing import Any, Callable, List, Optional

Parser = Callable[[Any], Any]


def parse_int(default: int, lo: Optional[int] = None, hi: Optional[int] = None) -> Parser:
    def _parse(value: Any) -> int:
        try:
            result = int(float(value))
        except (TypeError, ValueError):
            return default
        if result == 0:
            result = default
        return _clamp(result, lo, hi)
    return _parse


def parse_float(default: float, lo: Optional[float] = None, hi: Optional[float] = None) -> Parser:
    def _parse(value: Any) -> float:
        try:
            result = float(value)
        except (TypeError, ValueError):
            return default
        if result == 0:
            result = default
        return _clamp(result, lo, hi)
    return _parse


def parse_number_allow_zero(default: float) -> Parser:
    """Like :func:`parse_float` but keeps an explicit zero (e.g. wind)."""
    def _parse(value: Any) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return default
    return _parse


def parse_bool(default: bool) -> Parser:
    def _parse(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "1", "yes", "on"):
                return True
            if lowered in ("false", "0", "no", "off"):
                return False
            return default
        if isinstance(value, (int, float)):
            return bool(value)
        return default
    return _parse


def parse_list(default: Optional[List[Any]] = None) -> Parser:
    """Accept a list, a JSON array string, or a comma separated string."""
    fallback = list(default or [])

    def _parse(value: Any) -> List[Any]:
        if isinstance(value, list):
            return value
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except json.JSONDecodeError:
                return [item.strip() for item in value.split(",") if item.strip()]
            if isinstance(parsed, list):
                return parsed
            return [parsed]
        return list(fallback)
    return _parse


def parse_object(default: Optional[dict] = None) -> Parser:
    fallback = dict(default or {})

    def _parse(value: Any) -> dict:
        if isinstance(value, dict):
            return value
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except json.JSONDecodeError:
                return dict(fallback)
            return parsed if isinstance(parsed, dict) else dict(fallback)
        return dict(fallback)
    return _parse


def _clamp(value, lo, hi):
    if lo is not None:
        value = max(lo, value)
    if hi is not None:
        value = min(hi, value)
    return value
