"""
District boundary loader (community districts, NTAs, or any named polygons).

Boundary files come from different exports with different property names,
so id / name / borough are looked up through ordered fallback key lists.
A load failure is never fatal: callers get an empty list and the map keeps
working without district features.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import requests

from ..normalizers.boroughs import BOROCD_DIGIT_TO_FULL, canonical_borough
from ..normalizers.values import first_present
from ..settings import MapSettings
from .base import BaseHttpSource

logger = logging.getLogger("districts")

ID_KEYS = ("BoroCD", "boro_cd", "NTACode", "ntacode", "nta2020", "id", "OBJECTID")
NAME_KEYS = ("NTAName", "ntaname", "name", "NAME", "CDName")
BOROUGH_KEYS = ("BoroName", "boroname", "boro_name", "borough", "BOROUGH")
CD_KEYS = ("BoroCD", "boro_cd")

POLYGON_TYPES = ("Polygon", "MultiPolygon")


@dataclass(frozen=True)
class DistrictGeometry:
    id: str
    display_name: str
    borough_name: str
    geometry: Mapping[str, Any] = field(compare=False, repr=False)
    properties: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


def _community_district(props: Mapping[str, Any]) -> Optional[tuple]:
    """Return (borough, district number) for a 3-digit BoroCD code like 303."""
    raw = first_present(props, CD_KEYS)
    if raw is None:
        return None
    try:
        code = int(float(raw))
    except (TypeError, ValueError):
        return None
    borough = BOROCD_DIGIT_TO_FULL.get(str(code)[0])
    if borough is None or not 100 <= code < 600:
        return None
    return borough, code % 100


def district_from_feature(feature: Any, index: int = 0) -> Optional[DistrictGeometry]:
    """Build a DistrictGeometry from one GeoJSON feature; None for non-polygon features."""
    if not isinstance(feature, Mapping):
        return None
    geometry = feature.get("geometry")
    if not isinstance(geometry, Mapping) or geometry.get("type") not in POLYGON_TYPES:
        return None
    props = feature.get("properties")
    if not isinstance(props, Mapping):
        props = {}

    district_id = first_present(props, ID_KEYS)
    district_id = str(district_id) if district_id is not None else str(feature.get("id", index))
    name = first_present(props, NAME_KEYS)
    borough = canonical_borough(first_present(props, BOROUGH_KEYS))

    cd = _community_district(props)
    if cd is not None:
        cd_borough, number = cd
        borough = borough or cd_borough
        if name is None:
            name = f"{cd_borough.title()} CD {number}"

    return DistrictGeometry(
        id=district_id,
        display_name=str(name) if name is not None else f"District {district_id}",
        borough_name=borough,
        geometry=geometry,
        properties=props,
    )


def parse_districts(document: Any) -> List[DistrictGeometry]:
    features = document.get("features") if isinstance(document, Mapping) else None
    if not isinstance(features, list):
        raise ValueError("District document is not a GeoJSON FeatureCollection")

    districts = []
    for index, feature in enumerate(features):
        district = district_from_feature(feature, index)
        if district is None:
            logger.debug(f"Skipping non-polygon boundary feature at index {index}")
            continue
        districts.append(district)
    return districts


class DistrictBoundarySource(BaseHttpSource):
    """Fetch a boundary document from a URL."""

    def __init__(self, url: str, settings: MapSettings, session: Optional[requests.Session] = None):
        super().__init__(settings, name="districts", session=session)
        self.url = url

    def fetch_document(self) -> Dict[str, Any]:
        response = self._get(self.url)
        if response is None:
            raise ValueError(f"District boundaries unavailable at {self.url}")
        response.raise_for_status()
        return response.json()


def load_districts(
    location: Optional[str],
    settings: MapSettings,
    session: Optional[requests.Session] = None,
) -> List[DistrictGeometry]:
    """
    Load district polygons from a local path or http(s) URL.

    Returns:
        List of DistrictGeometry in document order; empty (with a warning)
        when the location is unset, unreadable, or not a FeatureCollection.
    """
    if not location:
        return []
    try:
        if str(location).startswith(("http://", "https://")):
            document = DistrictBoundarySource(location, settings, session=session).fetch_document()
        else:
            with Path(location).open("r", encoding="utf-8") as handle:
                document = json.load(handle)
        districts = parse_districts(document)
    except (OSError, ValueError, requests.exceptions.RequestException) as e:
        logger.warning(f"District boundaries not loaded from {location}: {e}. District features disabled.")
        return []

    logger.info(f"Loaded {len(districts)} district(s) from {location}")
    return districts
