import math
import re

from backend.schemas.report import Flag

# Only "<min> - <max>" ranges flag; "<X", ">X" and sentinels like "Negative" never do.
_RANGE_RE = re.compile(r"(?<![\d.])(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)")
_LEADING_NUMBER_RE = re.compile(r"\s*([-+]?\d+(?:\.\d+)?)")
_THOUSANDS_RE = re.compile(r"(?<=\d),(?=\d)")


def _strip_thousands(text: str) -> str:
    return _THOUSANDS_RE.sub("", text)


def parse_value(value: str | None) -> float | None:
    """Leading decimal of an observed value, so "45 U/L" reads as 45."""
    if value is None:
        return None
    match = _LEADING_NUMBER_RE.match(_strip_thousands(value))
    if not match:
        return None
    number = float(match.group(1))
    if not math.isfinite(number):
        return None
    return number


def parse_range(reference_range: str | None) -> tuple[float, float] | None:
    if not reference_range:
        return None
    match = _RANGE_RE.search(_strip_thousands(reference_range))
    if not match:
        return None
    return float(match.group(1)), float(match.group(2))


def classify(value: str | None, reference_range: str | None) -> Flag:
    number = parse_value(value)
    if number is None:
        return Flag.NORMAL
    bounds = parse_range(reference_range)
    if bounds is None:
        return Flag.NORMAL
    low, high = bounds
    if number < low:
        return Flag.LOW
    if number > high:
        return Flag.HIGH
    return Flag.NORMAL
