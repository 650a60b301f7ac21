"""
Folium-backed map surface.

Layers are collected the same way as on the in-memory surface and only
turned into folium objects when the map is rendered, so removing a layer
never has to reach into folium internals.
"""

from __future__ import annotations

import logging
from html import escape
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import folium
from folium.plugins import HeatMap, MarkerCluster

from ..records import VACATE
from ..settings import MapSettings
from ..sources.districts import DistrictGeometry
from ..stats import Stats, top_categories
from .layers import ClusterLayer, FlatLayer, HeatLayer, LayerSurface, MarkerLayer

logger = logging.getLogger(__name__)

DISTRICT_STYLE = {"color": "#ff7800", "weight": 2, "fillOpacity": 0.1}
VACATE_PANEL_ROWS = (
    ("Fire", "FIRE"),
    ("Illegal Occupancy", "ILLEGAL"),
    ("Not Habitable", "HABIT"),
    ("Entire Building", "ENTIRE"),
    ("Other", "OTHER"),
)


def _district_style(_feature):
    return dict(DISTRICT_STYLE)


def stats_panel_html(stats: Stats, dataset: str, top_n: int = 5) -> str:
    """Fixed-position summary panel shown in the top-right corner."""
    rows: List[str] = []
    if dataset == VACATE:
        title = "NYC Housing Crisis Summary"
        rows.append(f"<div><b>Total Cases:</b> {stats.total}</div>")
        for label, key in VACATE_PANEL_ROWS:
            rows.append(f"<div>{escape(label)}: {stats.count('reason_class', key)}</div>")
    else:
        title = "Construction Permits"
        rows.append(f"<div><b>Total Permits:</b> {stats.total}</div>")
        rows.append(f"<div><b>Issued:</b> {stats.active}</div>")
        for heading, counts in (
            ("Boroughs", stats.by_borough),
            ("Permit Types", stats.by_permit_type),
            ("Job Types", stats.by_job_type),
        ):
            items = "".join(
                f"<li>{escape(key)}: {count}</li>" for key, count in top_categories(counts, top_n)
            )
            rows.append(f"<div><b>{heading}</b><ul style='margin:2px 0 6px 16px;padding:0'>{items}</ul></div>")

    return (
        "<div id='statsPanel' style='position:fixed;top:10px;right:60px;z-index:1000;"
        "background:white;padding:8px 12px;border-radius:6px;box-shadow:0 1px 4px rgba(0,0,0,.3);"
        "font:12px/1.4 sans-serif;max-width:260px'>"
        f"<h4 style='margin:0 0 6px'>{title}</h4>{''.join(rows)}</div>"
    )


def districts_geojson(districts: Sequence[DistrictGeometry]) -> Dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": dict(d.geometry),
                "properties": {"id": d.id, "name": d.display_name, "borough": d.borough_name},
            }
            for d in districts
        ],
    }


class FoliumSurface(LayerSurface):
    def __init__(self, settings: MapSettings, dataset: str = ""):
        super().__init__()
        self.settings = settings
        self.dataset = dataset
        self.districts: Sequence[DistrictGeometry] = ()
        self.stats: Optional[Stats] = None

    def set_districts(self, districts: Sequence[DistrictGeometry]) -> None:
        self.districts = districts

    def set_stats(self, stats: Stats) -> None:
        self.stats = stats

    def _marker_group(self, layer: MarkerLayer):
        if isinstance(layer, ClusterLayer):
            group = MarkerCluster(name=f"{layer.name} (clustered)")
        else:
            group = folium.FeatureGroup(name=layer.name)
        for marker in layer.markers:
            folium.CircleMarker(
                location=[marker.lat, marker.lon],
                radius=marker.radius,
                color=marker.color,
                fill=True,
                fill_color=marker.color,
                fill_opacity=0.9,
                popup=folium.Popup(marker.popup_html, max_width=300) if marker.popup_html else None,
            ).add_to(group)
        return group

    def _heat(self, layer: HeatLayer) -> HeatMap:
        opts = layer.options
        return HeatMap(
            [list(point) for point in layer.points],
            name=layer.name,
            radius=opts.get("radius", 25),
            blur=opts.get("blur", 15),
            max_zoom=opts.get("max_zoom", 17),
            gradient=opts.get("gradient"),
        )

    def to_map(self) -> folium.Map:
        """Build a fresh folium.Map holding the layers currently on the surface."""
        m = folium.Map(
            location=list(self.settings.map_center),
            zoom_start=self.settings.zoom_start,
            tiles=None,
            control_scale=True,
        )
        folium.TileLayer(
            tiles=self.settings.tile_url,
            attr=self.settings.tile_attribution,
            name="Base map",
            max_zoom=19,
        ).add_to(m)

        if self.districts:
            folium.GeoJson(
                districts_geojson(self.districts),
                name="Districts",
                style_function=_district_style,
                tooltip=folium.GeoJsonTooltip(fields=["name", "borough"], aliases=["District", "Borough"]),
            ).add_to(m)

        for layer in self.layers:
            if isinstance(layer, (ClusterLayer, FlatLayer)):
                self._marker_group(layer).add_to(m)
            elif isinstance(layer, HeatLayer):
                if layer.points:
                    self._heat(layer).add_to(m)
            else:
                logger.warning(f"Ignoring unsupported layer type {type(layer).__name__}")

        if self.stats is not None:
            m.get_root().html.add_child(folium.Element(stats_panel_html(self.stats, self.dataset)))

        folium.LayerControl(collapsed=True).add_to(m)
        return m

    def render(self) -> str:
        return self.to_map().get_root().render()

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.to_map().save(str(path))
        logger.info(f"Wrote map with {len(self.layers)} overlay(s) to {path}")
        return path
