"""Borough code normalization and filtering."""

from __future__ import annotations

from typing import Iterable, List, Optional

SHORT_TO_FULL = {
    "MN": "MANHATTAN",
    "BK": "BROOKLYN",
    "BX": "BRONX",
    "QN": "QUEENS",
    "SI": "STATEN ISLAND",
}

# Leading digit of a community district code (BoroCD) -> borough
BOROCD_DIGIT_TO_FULL = {
    "1": "MANHATTAN",
    "2": "BRONX",
    "3": "BROOKLYN",
    "4": "QUEENS",
    "5": "STATEN ISLAND",
}


def canonical_borough(value: Optional[str]) -> str:
    """Map a short code or full name to the uppercase full borough name."""
    if not value:
        return ""
    text = str(value).strip().upper()
    return SHORT_TO_FULL.get(text, text)


def filter_by_borough(records: Iterable, borough: Optional[str]) -> List:
    """Return records in `borough` (short code or full name); all records when empty."""
    if not borough:
        return list(records)
    wanted = canonical_borough(borough)
    return [r for r in records if canonical_borough(r.borough) == wanted]
