"""Geographic and screen value objects.

All geographic coordinates are WGS 84 ``(longitude, latitude)`` in that
order, matching GeoJSON and the map surface.  Screen points are pixel
coordinates produced by the map surface's projection and are only used
for proximity tests.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Point:
    """A geographic coordinate.

    Attributes:
        longitude: Degrees east.
        latitude: Degrees north.
    """

    longitude: float
    latitude: float

    def as_tuple(self) -> tuple[float, float]:
        """Return ``(lon, lat)`` for GeoJSON / shapely / pyproj."""
        return (self.longitude, self.latitude)


@dataclass(frozen=True, slots=True)
class ScreenPoint:
    """A pixel position on the map surface."""

    x: float
    y: float


@dataclass(frozen=True, slots=True)
class GeoBounds:
    """Inclusive latitude/longitude bounding box.

    Fixed at configuration time and immutable for the session.  A point
    lying exactly on any edge is inside.

    Attributes:
        north: Maximum latitude.
        south: Minimum latitude.
        east: Maximum longitude.
        west: Minimum longitude.
    """

    north: float
    south: float
    east: float
    west: float

    def contains(self, point: Point) -> bool:
        """Return ``True`` iff *point* lies inside or on the box."""
        return (
            self.south <= point.latitude <= self.north
            and self.west <= point.longitude <= self.east
        )

    def as_bbox(self) -> tuple[float, float, float, float]:
        """Return ``(west, south, east, north)`` (GeoJSON bbox order)."""
        return (self.west, self.south, self.east, self.north)

    @classmethod
    def from_corners(cls, south_west: Point, north_east: Point) -> GeoBounds:
        """Build bounds from the south-west and north-east corners."""
        return cls(
            north=north_east.latitude,
            south=south_west.latitude,
            east=north_east.longitude,
            west=south_west.longitude,
        )
