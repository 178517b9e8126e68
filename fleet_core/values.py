from __future__ import annotations

import re
from typing import Optional

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_ZONE_PATTERN = re.compile(r"Zone\s*(-?\d+)")


def parse_int(value: object, default: Optional[int] = 0) -> Optional[int]:
    """Parse the leading integer of ``value`` ("12 vehicles" -> 12, "7.9" -> 7)."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value else default
    match = _INT_PREFIX.match(str(value))
    if not match:
        return default
    return int(match.group(1))


def parse_float(value: object, default: Optional[float] = None) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value) if value == value else default
    match = _FLOAT_PREFIX.match(str(value))
    if not match:
        return default
    return float(match.group(1))


def parse_percentage(value: object) -> Optional[float]:
    """``"87%"`` -> 87.0; blank or unparseable -> None."""
    if value is None:
        return None
    text = str(value).replace("%", "").strip()
    if not text:
        return None
    return parse_float(text)


def is_count_like(value: object) -> bool:
    """Blank cells count as numeric, matching how count columns are detected."""
    text = "" if value is None else str(value)
    if not text:
        return True
    return parse_int(text, default=None) is not None


def extract_zone(value: object) -> str:
    """``"Zone 1 - Kila Maidan"`` -> ``"1"``, ``"Zone -1"`` -> ``"-1"``; anything else is returned stripped."""
    if value is None:
        return ""
    text = str(value).strip()
    match = _ZONE_PATTERN.search(text)
    if match:
        return match.group(1)
    return text


def zone_number(value: object) -> Optional[float]:
    """Numeric interpretation of a zone label, or None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def is_excluded_zone(value: object) -> bool:
    """True for zone labels that are numeric and not positive (sentinel zones)."""
    number = zone_number(value)
    return number is not None and number <= 0


def is_positive_zone(value: object) -> bool:
    number = zone_number(value)
    return number is not None and number > 0
