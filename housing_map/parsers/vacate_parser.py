"""Parser for NYC Open Data HPD vacate-order rows (dataset tb8q-a3ar)."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..normalizers.addresses import join_address
from ..normalizers.values import format_date, to_finite_float, upper_or_none
from ..records import VACATE, PointRecord


def parse_vacate_row(row: Any) -> Optional[PointRecord]:
    """Return a PointRecord for a vacate order, or None without usable lat/lon."""
    if not isinstance(row, Mapping):
        return None
    lat = to_finite_float(row.get("latitude"))
    lon = to_finite_float(row.get("longitude"))
    if lat is None or lon is None:
        return None

    return PointRecord(
        lat=lat,
        lon=lon,
        dataset=VACATE,
        borough=upper_or_none(row.get("boro_short_name")),
        reason=upper_or_none(row.get("primary_vacate_reason")),
        status=upper_or_none(row.get("vacate_type")),
        address=join_address(row, ("house_number",), ("street_name",)),
        date=format_date(row.get("vacate_effective_date")),
        properties=row,
    )
