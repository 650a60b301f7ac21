"""Scalar cleanup shared by the row parsers."""

from __future__ import annotations

import math
import re
from typing import Any, Mapping, Optional, Sequence


def to_finite_float(value: Any) -> Optional[float]:
    """Parse a number or numeric string; None when missing, malformed, or non-finite."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


def upper_or_none(value: Any) -> Optional[str]:
    """Uppercase + strip a category value; empty values collapse to None."""
    if value is None:
        return None
    text = str(value).strip().upper()
    return text or None


def first_present(props: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """Return the first non-empty value among `keys`, in order."""
    for key in keys:
        value = props.get(key)
        if value not in (None, ""):
            return value
    return None


_ISO_TIME = re.compile(r"T.*$")


def format_date(value: Any) -> str:
    """Strip the time portion of an ISO timestamp ('2024-01-23T00:00:00.000' -> '2024-01-23')."""
    if not value:
        return ""
    return _ISO_TIME.sub("", str(value))
