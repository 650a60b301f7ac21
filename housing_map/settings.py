"""
Central configuration for the housing map builder.

Values default to sane local settings but can be overridden via environment
vars. Keeping config in one place makes it easy to point the builder at a
different data drop or tile server without editing loader code.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Tuple


@dataclass
class MapSettings:
    data_dir: Path
    ndjson_location: str
    ndjson_prefix: str
    ndjson_suffix: str
    districts_location: str
    vacate_api_url: str
    max_points: int
    permit_cap: int
    request_timeout: float
    chunk_bytes: int
    user_agent: str
    output_path: Path
    tile_url: str
    tile_attribution: str
    map_center: Tuple[float, float] = (40.7128, -74.0060)
    zoom_start: int = 12

    def as_dict(self) -> Dict[str, Any]:
        """JSON-friendly view used by `show-config`."""
        values = asdict(self)
        for key, value in values.items():
            if isinstance(value, Path):
                values[key] = str(value)
        return values


def _env(key: str, default: str) -> str:
    return os.environ.get(key, default)


def _float_env(key: str, default: float) -> float:
    try:
        return float(os.environ.get(key, default))
    except ValueError:
        return default


def _int_env(key: str, default: int) -> int:
    try:
        return int(os.environ.get(key, default))
    except ValueError:
        return default


BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_DATA_DIR = BASE_DIR / "data"
DEFAULT_VACATE_API = "https://data.cityofnewyork.us/resource/tb8q-a3ar.json?$limit=50000"
DEFAULT_TILE_URL = "https://tile.openstreetmap.de/{z}/{x}/{y}.png"


def build_settings() -> MapSettings:
    data_dir = Path(_env("HOUSING_MAP_DATA_DIR", str(DEFAULT_DATA_DIR)))
    return MapSettings(
        data_dir=data_dir,
        ndjson_location=_env("HOUSING_MAP_NDJSON_LOCATION", str(data_dir / "ndjson")),
        ndjson_prefix=_env("HOUSING_MAP_NDJSON_PREFIX", "construction_"),
        ndjson_suffix=_env("HOUSING_MAP_NDJSON_SUFFIX", ".ndjson"),
        districts_location=_env("HOUSING_MAP_DISTRICTS_LOCATION", str(data_dir / "districts.geojson")),
        vacate_api_url=_env("HOUSING_MAP_VACATE_API_URL", DEFAULT_VACATE_API),
        max_points=_int_env("HOUSING_MAP_MAX_POINTS", 5000),
        permit_cap=_int_env("HOUSING_MAP_PERMIT_CAP", 50000),
        request_timeout=_float_env("HOUSING_MAP_REQUEST_TIMEOUT", 60.0),
        chunk_bytes=_int_env("HOUSING_MAP_CHUNK_BYTES", 65536),
        user_agent=_env("HOUSING_MAP_USER_AGENT", "HousingMap/0.1"),
        output_path=Path(_env("HOUSING_MAP_OUTPUT", "housing_map.html")),
        tile_url=_env("HOUSING_MAP_TILE_URL", DEFAULT_TILE_URL),
        tile_attribution=_env("HOUSING_MAP_TILE_ATTRIBUTION", "&copy; OpenStreetMap contributors"),
    )


map_settings = build_settings()
