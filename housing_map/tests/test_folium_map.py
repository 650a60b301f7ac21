from unittest import TestCase

from housing_map.records import PERMITS, VACATE, PointRecord
from housing_map.render.folium_map import FoliumSurface, districts_geojson, stats_panel_html
from housing_map.render.layers import LayerRebuilder
from housing_map.settings import build_settings
from housing_map.sources.districts import DistrictGeometry
from housing_map.stats import aggregate

DISTRICT = DistrictGeometry(
    id="303",
    display_name="Brooklyn CD 3",
    borough_name="BROOKLYN",
    geometry={"type": "Polygon", "coordinates": [[[-74.0, 40.6], [-74.0, 40.7], [-73.9, 40.7], [-73.9, 40.6]]]},
)


class StatsPanelTests(TestCase):
    def test_vacate_panel_lists_reason_classes(self) -> None:
        stats = aggregate([PointRecord(lat=40.7, lon=-73.9, dataset=VACATE, reason="FIRE")])
        html = stats_panel_html(stats, VACATE)
        self.assertIn("Total Cases:</b> 1", html)
        self.assertIn("Fire: 1", html)
        self.assertIn("Other: 0", html)

    def test_permit_panel_escapes_categories(self) -> None:
        stats = aggregate([PointRecord(lat=40.7, lon=-73.9, dataset=PERMITS, permit_type="<NB>", status="ISSUED")])
        html = stats_panel_html(stats, PERMITS)
        self.assertIn("Issued:</b> 1", html)
        self.assertIn("&lt;NB&gt;: 1", html)
        self.assertNotIn("<NB>", html)


class FoliumSurfaceTests(TestCase):
    def test_render_includes_layers_panel_and_districts(self) -> None:
        surface = FoliumSurface(build_settings(), dataset=PERMITS)
        surface.set_districts([DISTRICT])
        rebuilder = LayerRebuilder()
        records = [
            PointRecord(lat=40.65, lon=-73.95, dataset=PERMITS, borough="BROOKLYN", permit_type="NB", address="1 Main St"),
            PointRecord(lat=40.66, lon=-73.96, dataset=PERMITS, borough="BROOKLYN", permit_type="PL"),
        ]
        surface.set_stats(rebuilder.apply(surface, records, [DISTRICT]))

        html = surface.render()
        self.assertIn("statsPanel", html)
        self.assertIn("Brooklyn CD 3", html)
        self.assertIn("markerClusterGroup", html)
        self.assertIn("heatLayer", html)
        self.assertIn("1 Main St", html)

    def test_removed_layers_are_not_rendered(self) -> None:
        surface = FoliumSurface(build_settings(), dataset=PERMITS)
        rebuilder = LayerRebuilder()
        rebuilder.state.heat_enabled = False
        rebuilder.state.cluster_enabled = False
        rebuilder.apply(surface, [PointRecord(lat=40.65, lon=-73.95, dataset=PERMITS)])

        html = surface.render()
        self.assertNotIn("heatLayer", html)
        self.assertNotIn("markerClusterGroup", html)
        self.assertIn("circleMarker", html)

    def test_districts_geojson(self) -> None:
        document = districts_geojson([DISTRICT])
        self.assertEqual(document["type"], "FeatureCollection")
        self.assertEqual(document["features"][0]["properties"], {"id": "303", "name": "Brooklyn CD 3", "borough": "BROOKLYN"})
