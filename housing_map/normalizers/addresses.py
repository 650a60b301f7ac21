"""Street address assembly from house number / street name columns."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from .values import first_present


def join_address(
    props: Mapping[str, Any],
    number_keys: Sequence[str],
    street_keys: Sequence[str],
) -> str:
    """Return "<number> <street>" from the first present keys, skipping blanks."""
    parts = [first_present(props, number_keys), first_present(props, street_keys)]
    return " ".join(str(p).strip() for p in parts if p not in (None, "") and str(p).strip())
