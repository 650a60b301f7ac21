"""Turn one DOB permit GeoJSON feature into a PointRecord."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..normalizers.addresses import join_address
from ..normalizers.values import first_present, format_date, to_finite_float, upper_or_none
from ..records import PERMITS, PointRecord


BOROUGH_KEYS = ("BOROUGH", "Borough", "borough")
PERMIT_TYPE_KEYS = ("Permit Type", "PermitType", "permit_type")
JOB_TYPE_KEYS = ("Job Type", "JobType", "job_type")
STATUS_KEYS = ("Permit Status", "PermitStatus", "permit_status")
HOUSE_NUMBER_KEYS = ("House #", "HOUSE #", "house__", "house_number")
STREET_KEYS = ("Street Name", "STREET NAME", "street_name")
DATE_KEYS = ("Issuance Date", "ISSUANCE DATE", "issuance_date", "Filing Date")


def extract_lonlat(feature: Mapping[str, Any]) -> Optional[tuple]:
    """Return finite (lon, lat) from a Point geometry, or None."""
    geometry = feature.get("geometry")
    if not isinstance(geometry, Mapping):
        return None
    coords = geometry.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    lon = to_finite_float(coords[0])
    lat = to_finite_float(coords[1])
    if lon is None or lat is None:
        return None
    return lon, lat


def parse_permit_feature(feature: Any) -> Optional[PointRecord]:
    """
    Normalize a permit feature; returns None when it cannot be placed on the map.

    Category strings are uppercased and blank values become None so the
    stats layer can bucket them under its fallback keys.
    """
    if not isinstance(feature, Mapping):
        return None
    lonlat = extract_lonlat(feature)
    if lonlat is None:
        return None

    props = feature.get("properties")
    if not isinstance(props, Mapping):
        props = {}

    lon, lat = lonlat
    return PointRecord(
        lat=lat,
        lon=lon,
        dataset=PERMITS,
        borough=upper_or_none(first_present(props, BOROUGH_KEYS)),
        permit_type=upper_or_none(first_present(props, PERMIT_TYPE_KEYS)),
        job_type=upper_or_none(first_present(props, JOB_TYPE_KEYS)),
        status=upper_or_none(first_present(props, STATUS_KEYS)),
        address=join_address(props, HOUSE_NUMBER_KEYS, STREET_KEYS),
        date=format_date(first_present(props, DATE_KEYS)),
        properties=props,
    )
