"""
Map build orchestrator.

`MapSession` is the controller behind the map: it owns the record
collection, the district list, the surface and the layer rebuilder, and
exposes one method per map control (borough buttons, show-all, district
select, cluster and heat toggles). Calls run to completion in the order
they are made, so the last call decides what is on the surface.

`MapJob` loads a dataset end to end and writes the HTML map.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..parsers.permit_parser import parse_permit_feature
from ..parsers.vacate_parser import parse_vacate_row
from ..records import PERMITS, VACATE, PointRecord
from ..render.folium_map import FoliumSurface
from ..render.layers import LayerRebuilder, LayerSurface
from ..settings import MapSettings, map_settings
from ..sources.districts import DistrictGeometry, load_districts
from ..sources.ndjson_chunks import open_chunk_sequence
from ..sources.vacate_api import VacateOrdersSource
from ..stats import Stats
from .ingest_job import LoadReport, StreamingLoader

logger = logging.getLogger(__name__)


class MapSession:
    def __init__(
        self,
        surface: LayerSurface,
        records: Sequence[PointRecord] = (),
        districts: Sequence[DistrictGeometry] = (),
        rebuilder: Optional[LayerRebuilder] = None,
    ):
        self.surface = surface
        self.records: List[PointRecord] = list(records)
        self.districts: List[DistrictGeometry] = list(districts)
        self.rebuilder = rebuilder or LayerRebuilder()

    @property
    def state(self):
        return self.rebuilder.state

    @property
    def districts_available(self) -> bool:
        return bool(self.districts)

    def extend(self, records: Sequence[PointRecord]) -> None:
        """Append newly ingested records; the collection only grows."""
        self.records.extend(records)

    def refresh(self) -> Stats:
        """Rebuild every layer for the current filters (records are read as a snapshot)."""
        stats = self.rebuilder.apply(self.surface, tuple(self.records), tuple(self.districts))
        self.surface.set_stats(stats)
        return stats

    def select_borough(self, borough: Optional[str]) -> Stats:
        self.state.borough_filter = borough or None
        return self.refresh()

    def select_district(self, district_id: Optional[str]) -> Stats:
        if district_id and not self.districts_available:
            logger.warning("District selection unavailable: no district boundaries loaded")
        self.state.district_filter = district_id or None
        return self.refresh()

    def show_all(self) -> Stats:
        self.state.borough_filter = None
        self.state.district_filter = None
        return self.refresh()

    def toggle_cluster(self) -> Stats:
        self.state.cluster_enabled = not self.state.cluster_enabled
        return self.refresh()

    def toggle_heat(self) -> bool:
        return self.rebuilder.toggle_heat(self.surface)


@dataclass
class DatasetConfig:
    name: str
    parse: Callable[[Any], Optional[PointRecord]]
    default_cap: Callable[[MapSettings], int]


DATASETS: Dict[str, DatasetConfig] = {
    PERMITS: DatasetConfig(PERMITS, parse_permit_feature, lambda s: s.permit_cap),
    VACATE: DatasetConfig(VACATE, parse_vacate_row, lambda s: s.max_points),
}


@dataclass
class MapJob:
    dataset: str
    settings: MapSettings = field(default_factory=lambda: map_settings)
    report: LoadReport = field(default_factory=LoadReport)

    def _config(self) -> DatasetConfig:
        config = DATASETS.get(self.dataset)
        if not config:
            raise ValueError(f"No dataset registered for '{self.dataset}'")
        return config

    def load_records(self, cap: Optional[int] = None, location: Optional[str] = None) -> List[PointRecord]:
        config = self._config()
        cap = config.default_cap(self.settings) if cap is None else cap
        loader = StreamingLoader(parse=config.parse)

        if self.dataset == VACATE:
            rows = VacateOrdersSource(self.settings, url=location).fetch_rows()
            records = loader.load_rows(rows, cap=cap)
        else:
            sequence = open_chunk_sequence(location or self.settings.ndjson_location, self.settings)
            records = loader.load(sequence, cap=cap)

        self.report = loader.report
        return records

    def load_districts(self, location: Optional[str] = None) -> List[DistrictGeometry]:
        return load_districts(location if location is not None else self.settings.districts_location, self.settings)

    def build_session(
        self,
        cap: Optional[int] = None,
        source: Optional[str] = None,
        districts_location: Optional[str] = None,
        use_districts: bool = True,
    ) -> MapSession:
        self._config()
        records = self.load_records(cap=cap, location=source)
        districts = self.load_districts(districts_location) if use_districts else []
        surface = FoliumSurface(self.settings, dataset=self.dataset)
        surface.set_districts(districts)
        return MapSession(surface, records=records, districts=districts)

    def run(
        self,
        borough: Optional[str] = None,
        district: Optional[str] = None,
        cluster: bool = True,
        heat: bool = True,
        cap: Optional[int] = None,
        source: Optional[str] = None,
        districts_location: Optional[str] = None,
        use_districts: bool = True,
        output: Optional[str] = None,
        dry_run: bool = False,
    ) -> MapSession:
        """
        Load, filter and render one dataset.

        Returns:
            The MapSession, so callers can inspect stats or keep toggling.
        """
        session = self.build_session(
            cap=cap, source=source, districts_location=districts_location, use_districts=use_districts,
        )
        session.state.cluster_enabled = cluster
        session.state.heat_enabled = heat
        session.state.borough_filter = borough or None
        session.state.district_filter = district or None
        stats = session.refresh()
        logger.info(f"{stats.total} {self.dataset} record(s) visible of {len(session.records)} loaded")

        if dry_run:
            logger.info("Dry run complete. Skipping HTML output.")
            return session

        session.surface.save(output or self.settings.output_path)
        return session
