"""
Text and feature cleanup for GeoJSON exports that are not strict JSON.

Open data exports occasionally contain bare NaN / Infinity tokens and
trailing commas. The token replacement is purely textual, so the same words
inside string values are rewritten too.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

_NON_FINITE_TOKENS = re.compile(r"-?\bInfinity\b|\bNaN\b|\bNAN\b")
_TRAILING_COMMA = re.compile(r",\s*([\]}])")


def clean_text(text: str) -> str:
    """Replace non-finite numeric tokens with null and drop trailing commas."""
    out = _NON_FINITE_TOKENS.sub("null", text)
    return _TRAILING_COMMA.sub(r"\1", out)


def _finite_only(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _finite_only(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_finite_only(v) for v in value]
    return value


def sanitize_feature(feature: Any) -> str:
    """Serialize one feature to a single JSON line with NaN/Infinity as null."""
    return json.dumps(_finite_only(feature), allow_nan=False, separators=(",", ":"))
