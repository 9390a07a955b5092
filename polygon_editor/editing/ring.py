"""Ring validation and geodesic measurements.

Responsibilities:
- Closed-ring structure (closure, vertex count, distinct vertices)
- Shapely validity check (no self-intersection, non-zero area)
- Auto-closing an open working ring before commit
- Geodesic area/perimeter (pyproj) and centroid (shapely) for summaries
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from polygon_editor.core.constants import MIN_DISTINCT_VERTICES, MIN_RING_POINTS
from polygon_editor.core.exceptions import InvalidRingError
from polygon_editor.models.geo import Point
from polygon_editor.models.metadata import PolygonSummary
from polygon_editor.models.polygon import Polygon

logger = logging.getLogger("polygon_editor.editing.ring")

# Square metres per hectare
SQ_METRES_PER_HECTARE = 10_000.0


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_closed_ring(ring: Sequence[Point], context: str = "ring") -> None:
    """Validate that *ring* can be stored as a polygon.

    Raises:
        InvalidRingError: If the ring is too short, not closed, has fewer
            than 3 distinct vertices, self-intersects or has zero area.
    """
    if len(ring) < MIN_RING_POINTS:
        msg = (
            f"Ring has only {len(ring)} point(s), need at least {MIN_RING_POINTS} "
            f"(including closure) for {context}"
        )
        raise InvalidRingError(msg)

    if ring[0] != ring[-1]:
        msg = f"Ring is not closed (first vertex != last vertex) for {context}"
        raise InvalidRingError(msg)

    distinct = set(ring)
    if len(distinct) < MIN_DISTINCT_VERTICES:
        msg = (
            f"Ring has {len(distinct)} distinct vertices, need at least "
            f"{MIN_DISTINCT_VERTICES} for {context}"
        )
        raise InvalidRingError(msg)

    _validate_shapely_geometry(ring, context)


def close_ring(ring: Sequence[Point], context: str = "ring") -> list[Point]:
    """Return *ring* closed, appending the first vertex when missing.

    Raises:
        InvalidRingError: If the ring has fewer than 3 distinct vertices.
    """
    points = list(ring)
    if len(set(points)) < MIN_DISTINCT_VERTICES:
        msg = (
            f"Ring has {len(set(points))} distinct vertices, need at least "
            f"{MIN_DISTINCT_VERTICES} for {context}"
        )
        raise InvalidRingError(msg)

    if points[0] != points[-1]:
        logger.warning("Auto-closing open ring | context=%s | points=%d", context, len(points))
        points.append(points[0])
    return points


def _validate_shapely_geometry(ring: Sequence[Point], context: str) -> None:
    """Reject self-intersecting and zero-area rings."""
    from shapely.geometry import Polygon as ShapelyPolygon
    from shapely.validation import explain_validity

    try:
        poly = ShapelyPolygon([p.as_tuple() for p in ring])
    except Exception as exc:
        msg = f"Cannot build polygon for {context}: {exc}"
        raise InvalidRingError(msg) from exc

    if not poly.is_valid:
        msg = f"Ring is not a simple polygon for {context}: {explain_validity(poly)}"
        raise InvalidRingError(msg)

    if poly.area == 0:
        msg = f"Zero-area ring for {context}"
        raise InvalidRingError(msg)


# ---------------------------------------------------------------------------
# Measurements
# ---------------------------------------------------------------------------


def compute_bbox(ring: Sequence[Point]) -> tuple[float, float, float, float]:
    """Return ``(min_lon, min_lat, max_lon, max_lat)`` of *ring*.

    Raises:
        InvalidRingError: If *ring* is empty.
    """
    if not ring:
        msg = "Cannot compute bounding box of an empty ring"
        raise InvalidRingError(msg)
    lons = [p.longitude for p in ring]
    lats = [p.latitude for p in ring]
    return (min(lons), min(lats), max(lons), max(lats))


def compute_geodesic_area_perimeter(ring: Sequence[Point]) -> tuple[float, float]:
    """Return ``(area_ha, perimeter_m)`` on the WGS 84 ellipsoid.

    Area is absolute, so winding order does not matter.
    """
    from pyproj import Geod

    geod = Geod(ellps="WGS84")
    area_m2, perimeter_m = geod.polygon_area_perimeter(
        [p.longitude for p in ring],
        [p.latitude for p in ring],
    )
    return abs(area_m2) / SQ_METRES_PER_HECTARE, perimeter_m


def compute_centroid(ring: Sequence[Point]) -> Point:
    """Return the planar centroid of *ring* using Shapely.

    Raises:
        InvalidRingError: If the polygon is empty.
    """
    from shapely.geometry import Polygon as ShapelyPolygon

    poly = ShapelyPolygon([p.as_tuple() for p in ring])
    if poly.is_empty:
        msg = "Cannot compute centroid of an empty polygon"
        raise InvalidRingError(msg)
    centroid = poly.centroid
    return Point(longitude=centroid.x, latitude=centroid.y)


def summarize(polygon: Polygon) -> PolygonSummary:
    """Build the ``PolygonSummary`` shown next to a stored polygon."""
    area_ha, perimeter_m = compute_geodesic_area_perimeter(polygon.ring)
    centroid = compute_centroid(polygon.ring)
    return PolygonSummary(
        polygon_id=polygon.id,
        coordinates=[polygon.coordinates()],
        vertex_count=polygon.vertex_count,
        area_hectares=area_ha,
        perimeter_m=perimeter_m,
        centroid=list(centroid.as_tuple()),
        bounding_box=list(compute_bbox(polygon.ring)),
        fill_color=polygon.fill_color,
    )
