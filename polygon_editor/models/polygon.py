"""Data model for a finalized polygon.

A Polygon is created when the user confirms a closed ring, mutated only
by committing an edit and destroyed only by an explicit delete.  The
fill and outline colours are assigned once at save time and survive
every later geometry update.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from polygon_editor.models.geo import Point


@dataclass(frozen=True, slots=True)
class Polygon:
    """A saved polygon.

    Attributes:
        id: Store-scoped identifier (``"polygon-<n>"``).
        ring: Exterior ring, first vertex repeated at the end.
        fill_color: ``#RRGGBB`` fill colour.
        outline_color: ``#RRGGBB`` outline colour contrasting the fill.
        fill_opacity: Fill opacity in ``[0, 1]``.
    """

    id: str
    ring: tuple[Point, ...] = field(default_factory=tuple)
    fill_color: str = "#888888"
    outline_color: str = "#000000"
    fill_opacity: float = 0.5

    @property
    def closed(self) -> bool:
        """Whether the ring's last vertex equals its first."""
        return len(self.ring) > 1 and self.ring[0] == self.ring[-1]

    @property
    def vertex_count(self) -> int:
        """Number of distinct vertices (closing vertex not counted)."""
        return len(set(self.ring))

    def coordinates(self) -> list[list[float]]:
        """Return the ring as ``[[lon, lat], ...]``."""
        return [list(p.as_tuple()) for p in self.ring]

    def to_geojson_feature(self) -> dict[str, object]:
        """Serialise as a GeoJSON ``Feature`` with a ``Polygon`` geometry."""
        return {
            "type": "Feature",
            "id": self.id,
            "properties": {
                "id": self.id,
                "fill_color": self.fill_color,
                "outline_color": self.outline_color,
                "fill_opacity": self.fill_opacity,
            },
            "geometry": {
                "type": "Polygon",
                "coordinates": [self.coordinates()],
            },
        }

    def to_dict(self) -> dict[str, object]:
        """Serialise to a plain dict for the host UI."""
        return {
            "id": self.id,
            "ring": self.coordinates(),
            "closed": self.closed,
            "fill_color": self.fill_color,
            "outline_color": self.outline_color,
            "fill_opacity": self.fill_opacity,
        }

