"""Working ring of the edit session.

The point buffer holds the in-progress vertices and the marker bound to
each of them.  Every mutation validates against the drawing region and
pushes the render effects that keep the temporary line (and, while
editing, the temporary polygon) in sync with the buffer.

Markers are bound to vertices by position: marker ``i`` always belongs
to point ``i``, so dragging a marker updates exactly one entry even when
two vertices share the same coordinates.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from polygon_editor.core.constants import MARKER_ID_PREFIX, TEMP_LINE_ID, TEMP_POLYGON_ID
from polygon_editor.core.exceptions import OutOfBoundsError
from polygon_editor.models.effects import (
    CreateMarker,
    EffectQueue,
    LayerStyle,
    MoveMarker,
    Notice,
    RemoveLayer,
    RemoveMarker,
    RenderLayer,
)
from polygon_editor.models.geo import GeoBounds, Point

logger = logging.getLogger("polygon_editor.editing.point_buffer")

DEFAULT_LINE_STYLE = LayerStyle(line_color="#FF0000", line_width=2.0)
DEFAULT_POLYGON_STYLE = LayerStyle(fill_color="#FF0000", fill_opacity=0.5)


class PointBuffer:
    """Ordered, mutable sequence of working-ring vertices and their markers.

    Args:
        bounds: Region every vertex must stay inside.
        effects: Queue receiving render and marker effects.
        line_style: Style of the temporary line.
        polygon_style: Style of the temporary polygon.
    """

    def __init__(
        self,
        bounds: GeoBounds,
        effects: EffectQueue,
        *,
        line_style: LayerStyle = DEFAULT_LINE_STYLE,
        polygon_style: LayerStyle = DEFAULT_POLYGON_STYLE,
    ) -> None:
        self._bounds = bounds
        self._effects = effects
        self._line_style = line_style
        self._polygon_style = polygon_style
        self._points: list[Point] = []
        self._markers: list[str] = []
        self._marker_seq = 0
        self.live_polygon = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._points)

    @property
    def first(self) -> Point | None:
        return self._points[0] if self._points else None

    @property
    def is_closed(self) -> bool:
        """Whether the buffer holds a closed ring (at least a triangle)."""
        return len(self._points) >= 4 and self._points[0] == self._points[-1]

    def snapshot(self) -> list[Point]:
        """Return a copy of the working ring."""
        return list(self._points)

    def marker_ids(self) -> list[str]:
        """Return a copy of the marker ids, in vertex order."""
        return list(self._markers)

    def position_of(self, marker_id: str) -> Point | None:
        """Return the vertex bound to *marker_id*, or ``None`` if unknown."""
        try:
            return self._points[self._markers.index(marker_id)]
        except ValueError:
            return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_point(self, point: Point) -> bool:
        """Append *point* with a draggable marker.

        Returns:
            ``False`` (and a rejection notice) when *point* is outside the
            drawing region; ``True`` otherwise.
        """
        if not self._bounds.contains(point):
            self._reject(
                f"Point ({point.longitude}, {point.latitude}) is outside the drawing region"
            )
            return False

        self._append(point)
        logger.debug("Point added | index=%d | point=%s", len(self._points) - 1, point)
        if len(self._points) > 1:
            self._render_line()
        self._render_live_polygon()
        return True

    def move_point(self, marker_id: str, new_position: Point) -> bool:
        """Move the vertex bound to *marker_id*.

        Out-of-region positions are rejected and the marker is sent back to
        its previous position.  On a closed ring, the first and last
        vertices move together.

        Returns:
            ``True`` if the vertex was moved.
        """
        try:
            index = self._markers.index(marker_id)
        except ValueError:
            logger.warning("Drag ignored | unknown marker=%s", marker_id)
            return False

        previous = self._points[index]
        if not self._bounds.contains(new_position):
            self._effects.push(MoveMarker(marker_id=marker_id, point=previous))
            self._reject(
                f"Marker cannot be moved to ({new_position.longitude}, "
                f"{new_position.latitude}), outside the drawing region"
            )
            return False

        last = len(self._points) - 1
        if self.is_closed and index in (0, last):
            twin = last if index == 0 else 0
            self._points[twin] = new_position
            self._effects.push(MoveMarker(marker_id=self._markers[twin], point=new_position))
        self._points[index] = new_position

        logger.debug("Point moved | index=%d | marker=%s | point=%s", index, marker_id, new_position)
        if len(self._points) > 1:
            self._render_line()
        self._render_live_polygon()
        return True

    def remove_last(self) -> Point | None:
        """Pop the last vertex and destroy its marker.

        Returns:
            The removed point, or ``None`` when the buffer was empty.
        """
        if not self._points:
            return None

        point = self._points.pop()
        self._effects.push(RemoveMarker(marker_id=self._markers.pop()))
        logger.debug("Point removed | remaining=%d", len(self._points))

        if len(self._points) > 1:
            self._render_line()
        else:
            self._effects.push(RemoveLayer(layer_id=TEMP_LINE_ID))
        self._render_live_polygon()
        return point

    def close_ring(self) -> None:
        """Append a copy of the first vertex to close the ring.

        Raises:
            ValueError: If the buffer is empty.
        """
        if not self._points:
            msg = "Cannot close an empty ring"
            raise ValueError(msg)
        self._append(self._points[0])
        self._render_line()

    def load(self, ring: Sequence[Point]) -> None:
        """Replace the buffer with *ring*, recreating draggable markers."""
        self._discard_markers()
        self._points = []
        for point in ring:
            self._append(point)
        if len(self._points) > 1:
            self._render_line()
        self._render_live_polygon()

    def clear(self) -> None:
        """Destroy all markers, empty the buffer and drop temporary renders."""
        self._discard_markers()
        self._points = []
        self.live_polygon = False
        self._effects.push(RemoveLayer(layer_id=TEMP_LINE_ID))
        self._effects.push(RemoveLayer(layer_id=TEMP_POLYGON_ID))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _append(self, point: Point) -> None:
        self._marker_seq += 1
        marker_id = f"{MARKER_ID_PREFIX}{self._marker_seq}"
        self._points.append(point)
        self._markers.append(marker_id)
        self._effects.push(CreateMarker(marker_id=marker_id, point=point, draggable=True))

    def _discard_markers(self) -> None:
        for marker_id in self._markers:
            self._effects.push(RemoveMarker(marker_id=marker_id))
        self._markers = []

    def _render_line(self) -> None:
        self._effects.push(
            RenderLayer(
                layer_id=TEMP_LINE_ID,
                geometry_type="LineString",
                coordinates=tuple(self._points),
                style=self._line_style,
            )
        )

    def _render_live_polygon(self) -> None:
        if not self.live_polygon:
            return
        if len(set(self._points)) < 3:
            self._effects.push(RemoveLayer(layer_id=TEMP_POLYGON_ID))
            return
        ring = list(self._points)
        if ring[0] != ring[-1]:
            ring.append(ring[0])
        self._effects.push(
            RenderLayer(
                layer_id=TEMP_POLYGON_ID,
                geometry_type="Polygon",
                coordinates=tuple(ring),
                style=self._polygon_style,
            )
        )

    def _reject(self, message: str) -> None:
        error = OutOfBoundsError(message)
        logger.warning("Rejected | code=%s | %s", error.code, message)
        self._effects.push(Notice(code=error.code, message=message, error=error.to_error_dict()))
