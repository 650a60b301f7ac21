"""
Cluster / flat-marker / heat layer construction and the view state around it.

Layers are rebuilt from scratch on every filter change. Each record is
checked against every district in order and the first containing district
wins (O(records x districts), fine for thousands of points and tens of
districts). Records that fall in no district are left out of the
per-district layers. They are collected in an "Outside districts" layer
that is shown next to the district layers when no single district is
selected, so every borough-filtered record stays visible and counted.

The surface is whatever actually draws the map; it only sees add/remove
calls for layer objects, and `LayerRebuilder` tracks which of its layers
are currently on it.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..normalizers.boroughs import filter_by_borough
from ..normalizers.colors import permit_color, vacate_color
from ..normalizers.geometry import point_in_polygon
from ..records import VACATE, PointRecord
from ..sources.districts import DistrictGeometry
from ..stats import Stats, aggregate
from .popups import popup_for

logger = logging.getLogger(__name__)

HEAT_WEIGHT = 0.6
HEAT_OPTIONS = {
    "radius": 25,
    "blur": 15,
    "max_zoom": 17,
    "gradient": {0.2: "blue", 0.4: "purple", 0.6: "red", 0.8: "orange", 1.0: "yellow"},
}
ALL_RECORDS = "All records"
UNASSIGNED = "Outside districts"

HeatPoint = Tuple[float, float, float]


@dataclass(frozen=True)
class MarkerSpec:
    lat: float
    lon: float
    color: str
    popup_html: str = field(default="", compare=False, repr=False)
    radius: int = 7


@dataclass(eq=False)
class MarkerLayer:
    name: str
    markers: List[MarkerSpec] = field(default_factory=list)
    district_id: Optional[str] = None

    def points(self) -> Counter:
        """Multiset of (lat, lon) positions; compares equal across rebuilds."""
        return Counter((m.lat, m.lon) for m in self.markers)

    def __len__(self) -> int:
        return len(self.markers)


class ClusterLayer(MarkerLayer):
    """Markers grouped into cluster bubbles at low zoom."""


class FlatLayer(MarkerLayer):
    """Markers drawn individually."""


@dataclass(eq=False)
class HeatLayer:
    name: str
    points: List[HeatPoint] = field(default_factory=list)
    options: Dict[str, Any] = field(default_factory=lambda: dict(HEAT_OPTIONS))


@dataclass
class RebuildResult:
    """
    Layers for one set of records.

    `heat_points` covers every record passed to `rebuild`; `apply` builds the
    heat layer from the same helper over the records it actually shows.
    """

    per_district_clusters: Dict[str, ClusterLayer]
    per_district_flat_layers: Dict[str, FlatLayer]
    heat_points: List[HeatPoint]
    all_cluster: ClusterLayer
    all_flat: FlatLayer
    assignments: Dict[str, List[PointRecord]]
    assigned: List[PointRecord]
    unassigned: List[PointRecord]
    unassigned_cluster: Optional[ClusterLayer] = None
    unassigned_flat: Optional[FlatLayer] = None


class LayerSurface:
    """
    In-memory map surface: an ordered collection of layer objects.

    Membership is by identity, matching how a mapping library tracks the
    layer objects added to it.
    """

    def __init__(self):
        self.layers: List[Any] = []

    def add_layer(self, layer: Any) -> None:
        if not self.has_layer(layer):
            self.layers.append(layer)

    def remove_layer(self, layer: Any) -> None:
        self.layers = [existing for existing in self.layers if existing is not layer]

    def has_layer(self, layer: Any) -> bool:
        return any(existing is layer for existing in self.layers)

    def set_stats(self, stats: Stats) -> None:
        """Hook for surfaces that draw a stats panel."""


@dataclass
class MapViewState:
    cluster_enabled: bool = True
    heat_enabled: bool = True
    borough_filter: Optional[str] = None
    district_filter: Optional[str] = None
    marker_layers: List[MarkerLayer] = field(default_factory=list)
    heat_layer: Optional[HeatLayer] = None
    result: Optional[RebuildResult] = None
    visible_records: List[PointRecord] = field(default_factory=list)
    stats: Stats = field(default_factory=Stats)
    rebuilds: int = 0


def marker_color(record: PointRecord) -> str:
    if record.dataset == VACATE:
        return vacate_color(record.reason)
    return permit_color(record.permit_type)


def assign_district(record: PointRecord, districts: Sequence[DistrictGeometry]) -> Optional[DistrictGeometry]:
    """First district whose geometry contains the record, in list order."""
    for district in districts:
        if point_in_polygon(record.lon, record.lat, district.geometry):
            return district
    return None


class LayerRebuilder:
    def __init__(
        self,
        color_for: Callable[[PointRecord], str] = marker_color,
        popup: Callable[[PointRecord], str] = popup_for,
        heat_options: Optional[Dict[str, Any]] = None,
        heat_weight: float = HEAT_WEIGHT,
    ):
        self.color_for = color_for
        self.popup = popup
        self.heat_options = dict(heat_options or HEAT_OPTIONS)
        self.heat_weight = heat_weight
        self.state = MapViewState()

    def _marker(self, record: PointRecord) -> MarkerSpec:
        return MarkerSpec(lat=record.lat, lon=record.lon, color=self.color_for(record), popup_html=self.popup(record))

    def heat_points(self, records: Sequence[PointRecord]) -> List[HeatPoint]:
        return [(r.lat, r.lon, self.heat_weight) for r in records]

    def rebuild(self, records: Sequence[PointRecord], districts: Sequence[DistrictGeometry] = ()) -> RebuildResult:
        """
        Classify records into districts and build fresh layers.

        Pure with respect to view state: calling it twice with the same
        inputs gives layers with the same point membership.
        """
        all_cluster = ClusterLayer(name=ALL_RECORDS)
        all_flat = FlatLayer(name=ALL_RECORDS)
        clusters: Dict[str, ClusterLayer] = {}
        flats: Dict[str, FlatLayer] = {}
        assignments: Dict[str, List[PointRecord]] = {}
        assigned: List[PointRecord] = []
        unassigned: List[PointRecord] = []
        outside_cluster = ClusterLayer(name=UNASSIGNED)
        outside_flat = FlatLayer(name=UNASSIGNED)

        for record in records:
            marker = self._marker(record)
            # The same marker object backs both rendering modes.
            all_cluster.markers.append(marker)
            all_flat.markers.append(marker)

            if not districts:
                continue
            district = assign_district(record, districts)
            if district is None:
                unassigned.append(record)
                outside_cluster.markers.append(marker)
                outside_flat.markers.append(marker)
                continue
            if district.id not in clusters:
                clusters[district.id] = ClusterLayer(name=district.display_name, district_id=district.id)
                flats[district.id] = FlatLayer(name=district.display_name, district_id=district.id)
                assignments[district.id] = []
            clusters[district.id].markers.append(marker)
            flats[district.id].markers.append(marker)
            assignments[district.id].append(record)
            assigned.append(record)

        if districts:
            logger.debug(f"Assigned {len(assigned)} record(s) to {len(clusters)} district(s); {len(unassigned)} unassigned")

        return RebuildResult(
            per_district_clusters=clusters,
            per_district_flat_layers=flats,
            heat_points=self.heat_points(records),
            all_cluster=all_cluster,
            all_flat=all_flat,
            assignments=assignments,
            assigned=assigned,
            unassigned=unassigned,
            unassigned_cluster=outside_cluster if unassigned else None,
            unassigned_flat=outside_flat if unassigned else None,
        )

    def _select(
        self,
        result: RebuildResult,
        records: Sequence[PointRecord],
        districts: Sequence[DistrictGeometry],
    ) -> Tuple[List[MarkerLayer], List[PointRecord]]:
        """Pick the marker layers (in the active mode) and records that should be visible."""
        state = self.state
        clustered = state.cluster_enabled

        if districts and state.district_filter:
            district_id = state.district_filter
            if district_id not in {d.id for d in districts}:
                logger.warning(f"Unknown district '{district_id}'; nothing to show")
            layers_by_id = result.per_district_clusters if clustered else result.per_district_flat_layers
            layer = layers_by_id.get(district_id)
            return ([layer] if layer is not None else []), list(result.assignments.get(district_id, []))

        if districts:
            layers_by_id = result.per_district_clusters if clustered else result.per_district_flat_layers
            layers: List[MarkerLayer] = list(layers_by_id.values())
            outside = result.unassigned_cluster if clustered else result.unassigned_flat
            if outside is not None:
                layers.append(outside)
            return layers, list(records)

        if state.district_filter:
            logger.warning("District filter ignored: no district boundaries loaded")
        layer = result.all_cluster if clustered else result.all_flat
        return [layer], list(records)

    def clear(self, surface: LayerSurface) -> None:
        """Take every layer this rebuilder put on the surface back off."""
        state = self.state
        for layer in state.marker_layers:
            if surface.has_layer(layer):
                surface.remove_layer(layer)
        if state.heat_layer is not None and surface.has_layer(state.heat_layer):
            surface.remove_layer(state.heat_layer)
        state.marker_layers = []
        state.heat_layer = None

    def apply(
        self,
        surface: LayerSurface,
        records: Sequence[PointRecord],
        districts: Sequence[DistrictGeometry] = (),
    ) -> Stats:
        """
        Rebuild layers for the current filters and swap them onto the surface.

        Returns:
            Stats for the visible records. The heat layer is built from
            exactly those records.
        """
        state = self.state
        self.clear(surface)

        filtered = filter_by_borough(records, state.borough_filter)
        result = self.rebuild(filtered, districts)
        marker_layers, visible = self._select(result, filtered, districts)

        for layer in marker_layers:
            surface.add_layer(layer)
        state.marker_layers = marker_layers

        if visible:
            state.heat_layer = HeatLayer(
                name="Heatmap",
                points=self.heat_points(visible),
                options=dict(self.heat_options),
            )
            if state.heat_enabled:
                surface.add_layer(state.heat_layer)

        state.result = result
        state.visible_records = visible
        state.stats = aggregate(visible)
        state.rebuilds += 1
        return state.stats

    def toggle_heat(self, surface: LayerSurface) -> bool:
        """Show or hide the current heat layer without rebuilding."""
        state = self.state
        state.heat_enabled = not state.heat_enabled
        if state.heat_layer is not None:
            if state.heat_enabled:
                surface.add_layer(state.heat_layer)
            elif surface.has_layer(state.heat_layer):
                surface.remove_layer(state.heat_layer)
        return state.heat_enabled
