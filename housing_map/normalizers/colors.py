"""Category -> marker color lookups for permits and vacate orders."""

from __future__ import annotations

from typing import Optional

DEFAULT_PERMIT_COLOR = "#7f8c8d"

# Order matters for prefix fallback: the first key a code starts with wins.
PERMIT_COLORS = {
    "PL": "#e67e22",  # plumbing
    "EW": "#2e86c1",  # equipment work
    "NB": "#27ae60",  # new building
    "AL": "#8e44ad",  # alteration
    "FO": "#c0392b",  # foundation
    "EQ": "#34495e",  # construction equipment
    "DM": "#ffffff",  # demolition
    "SG": "#7f5315",  # sign
}

# (substring, class) pairs checked in order against the lowercased reason
VACATE_REASON_CLASSES = (
    ("fire", "FIRE"),
    ("illegal", "ILLEGAL"),
    ("habit", "HABIT"),
    ("entire", "ENTIRE"),
)

VACATE_CLASS_COLORS = {
    "FIRE": "red",
    "ILLEGAL": "purple",
    "HABIT": "orange",
    "ENTIRE": "black",
    "OTHER": "blue",
}
MISSING_REASON_COLOR = "gray"


def permit_color(permit_type: Optional[str], table=PERMIT_COLORS, default: str = DEFAULT_PERMIT_COLOR) -> str:
    if not permit_type:
        return default
    code = str(permit_type).strip().upper()
    if code in table:
        return table[code]
    for key, color in table.items():
        if code.startswith(key):
            return color
    return default


def classify_vacate_reason(reason: Optional[str]) -> str:
    """Bucket a free-text vacate reason into FIRE/ILLEGAL/HABIT/ENTIRE/OTHER."""
    text = (reason or "").lower()
    for needle, label in VACATE_REASON_CLASSES:
        if needle in text:
            return label
    return "OTHER"


def vacate_color(reason: Optional[str]) -> str:
    if not reason:
        return MISSING_REASON_COLOR
    return VACATE_CLASS_COLORS[classify_vacate_reason(reason)]
