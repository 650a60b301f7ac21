"""
Point-in-polygon tests for GeoJSON Polygon and MultiPolygon geometries.

Uses even-odd ray casting against each polygon's exterior ring. Interior rings
(holes) are ignored: a point inside a hole still counts as inside. Points lying
exactly on a ring edge or vertex have no guaranteed result.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

Ring = Sequence[Sequence[float]]


def point_in_ring(lon: float, lat: float, ring: Ring) -> bool:
    """Even-odd ray cast of (lon, lat) against one ring of [lon, lat] pairs."""
    n = len(ring)
    if n < 3:
        return False

    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if (yi > lat) != (yj > lat):
            x_cross = (xj - xi) * (lat - yi) / (yj - yi) + xi
            if lon < x_cross:
                inside = not inside
        j = i
    return inside


def _polygon_contains(lon: float, lat: float, rings: Sequence[Ring]) -> bool:
    if not rings:
        return False
    return point_in_ring(lon, lat, rings[0])


def point_in_polygon(lon: float, lat: float, geometry: Mapping[str, Any]) -> bool:
    """
    Return True if the point falls inside a Polygon or MultiPolygon geometry.

    Args:
        lon: Longitude of the point
        lat: Latitude of the point
        geometry: GeoJSON geometry mapping ({"type": ..., "coordinates": ...})

    Returns:
        True when inside the exterior ring of the polygon (or of any member
        polygon for a MultiPolygon). Unknown geometry types never match.
    """
    if not geometry:
        return False
    geom_type = geometry.get("type")
    coordinates = geometry.get("coordinates") or []

    if geom_type == "Polygon":
        return _polygon_contains(lon, lat, coordinates)
    if geom_type == "MultiPolygon":
        return any(_polygon_contains(lon, lat, polygon) for polygon in coordinates)
    return False
