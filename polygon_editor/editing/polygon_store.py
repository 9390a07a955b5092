"""In-memory store of finalized polygons.

Ids are ``polygon-<n>`` from a counter scoped to the store; a deleted id
is never handed out again.  Each save or update pushes the render effect
that draws the polygon under its own id, so the map always shows exactly
the stored set.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from polygon_editor.core.constants import DEFAULT_FILL_OPACITY, DEFAULT_OUTLINE_WIDTH, POLYGON_ID_PREFIX
from polygon_editor.core.exceptions import PolygonNotFoundError
from polygon_editor.editing.colors import ColorAssigner, RandomColorAssigner, contrasting_outline
from polygon_editor.editing.ring import summarize, validate_closed_ring
from polygon_editor.models.effects import EffectQueue, LayerStyle, RemoveLayer, RenderLayer
from polygon_editor.models.geo import Point
from polygon_editor.models.metadata import PolygonSummary
from polygon_editor.models.polygon import Polygon

logger = logging.getLogger("polygon_editor.editing.polygon_store")


class PolygonStore:
    """Mapping of polygon id to ``Polygon``, in insertion order.

    Args:
        effects: Queue receiving render effects.
        color_assigner: Strategy choosing each new polygon's fill colour.
        fill_opacity: Fill opacity of rendered polygons.
    """

    def __init__(
        self,
        effects: EffectQueue,
        *,
        color_assigner: ColorAssigner | None = None,
        fill_opacity: float = DEFAULT_FILL_OPACITY,
    ) -> None:
        self._effects = effects
        self._colors = color_assigner or RandomColorAssigner()
        self._fill_opacity = fill_opacity
        self._polygons: dict[str, Polygon] = {}
        self._seq = 0

    def __len__(self) -> int:
        return len(self._polygons)

    def __contains__(self, polygon_id: object) -> bool:
        return polygon_id in self._polygons

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def save(self, ring: Sequence[Point]) -> Polygon:
        """Store a closed ring under a fresh id and render it.

        Raises:
            InvalidRingError: If the ring is not a closed simple polygon
                with at least 3 distinct vertices.
        """
        validate_closed_ring(ring, "new polygon")

        self._seq += 1
        fill = self._colors.next_color()
        polygon = Polygon(
            id=f"{POLYGON_ID_PREFIX}{self._seq}",
            ring=tuple(ring),
            fill_color=fill,
            outline_color=contrasting_outline(fill),
            fill_opacity=self._fill_opacity,
        )
        self._polygons[polygon.id] = polygon
        self._render(polygon)

        logger.info(
            "Polygon saved | id=%s | vertices=%d | fill=%s",
            polygon.id,
            polygon.vertex_count,
            polygon.fill_color,
        )
        return polygon

    def update(self, polygon_id: str, ring: Sequence[Point]) -> Polygon:
        """Replace the ring of *polygon_id*, keeping its id and colours.

        Raises:
            PolygonNotFoundError: If *polygon_id* is not stored.
            InvalidRingError: If the new ring fails validation.
        """
        current = self.get(polygon_id)
        validate_closed_ring(ring, f"polygon '{polygon_id}'")

        polygon = replace(current, ring=tuple(ring))
        self._polygons[polygon_id] = polygon
        self._render(polygon)

        logger.info("Polygon updated | id=%s | vertices=%d", polygon_id, polygon.vertex_count)
        return polygon

    def delete(self, polygon_id: str) -> Polygon:
        """Remove *polygon_id* and its map layer.

        Raises:
            PolygonNotFoundError: If *polygon_id* is not stored.
        """
        if polygon_id not in self._polygons:
            raise PolygonNotFoundError(polygon_id)

        polygon = self._polygons.pop(polygon_id)
        self._effects.push(RemoveLayer(layer_id=polygon_id))
        logger.info("Polygon deleted | id=%s | remaining=%d", polygon_id, len(self._polygons))
        return polygon

    def render(self, polygon_id: str) -> None:
        """Re-issue the render effect of a stored polygon.

        Raises:
            PolygonNotFoundError: If *polygon_id* is not stored.
        """
        self._render(self.get(polygon_id))

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    def get(self, polygon_id: str) -> Polygon:
        """Return the stored polygon.

        Raises:
            PolygonNotFoundError: If *polygon_id* is not stored.
        """
        try:
            return self._polygons[polygon_id]
        except KeyError:
            raise PolygonNotFoundError(polygon_id) from None

    def list(self) -> list[Polygon]:
        """Return every stored polygon in insertion order."""
        return list(self._polygons.values())

    def summary(self, polygon_id: str) -> PolygonSummary:
        """Return area, centroid and bounding box of *polygon_id*.

        Raises:
            PolygonNotFoundError: If *polygon_id* is not stored.
        """
        return summarize(self.get(polygon_id))

    def to_feature_collection(self) -> dict[str, object]:
        """Return every stored polygon as a GeoJSON FeatureCollection."""
        return {
            "type": "FeatureCollection",
            "features": [p.to_geojson_feature() for p in self._polygons.values()],
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _render(self, polygon: Polygon) -> None:
        self._effects.push(
            RenderLayer(
                layer_id=polygon.id,
                geometry_type="Polygon",
                coordinates=polygon.ring,
                style=LayerStyle(
                    fill_color=polygon.fill_color,
                    fill_opacity=polygon.fill_opacity,
                    outline_color=polygon.outline_color,
                    line_width=DEFAULT_OUTLINE_WIDTH,
                ),
            )
        )
