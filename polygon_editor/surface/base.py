"""MapSurface abstract base class.

Defines the contract the edit session needs from an interactive map: a
geographic-to-pixel projection, input event subscriptions, vector layer
rendering and draggable markers.  The session never knows which concrete
map is behind it.

Lifecycle:
    1. ``EditSession.open(surface)`` subscribes to click, key and drag events.
    2. Each event is dispatched into the session, which answers with
       render effects applied back onto the surface.
    3. ``EditSession.close()`` removes temporary renders and handlers.

Concrete adapters implement the rendering and projection methods; event
subscription bookkeeping is shared here and adapters call the ``emit_*``
helpers from their native callbacks.
"""

from __future__ import annotations

import abc
import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from polygon_editor.models.effects import GeometryType, LayerStyle
    from polygon_editor.models.geo import Point, ScreenPoint

logger = logging.getLogger("polygon_editor.surface.base")

ClickHandler = Callable[["Point", "ScreenPoint"], object]
KeyHandler = Callable[[str], object]
DragHandler = Callable[[str, "Point"], object]


class MapSurface(abc.ABC):
    """Abstract base class for map surface adapters."""

    def __init__(self) -> None:
        self._click_handlers: list[ClickHandler] = []
        self._key_handlers: list[KeyHandler] = []
        self._drag_handlers: list[DragHandler] = []

    # ------------------------------------------------------------------
    # Event subscriptions
    # ------------------------------------------------------------------

    def on_click(self, handler: ClickHandler) -> None:
        self._click_handlers.append(handler)

    def on_key_down(self, handler: KeyHandler) -> None:
        self._key_handlers.append(handler)

    def on_marker_drag_end(self, handler: DragHandler) -> None:
        self._drag_handlers.append(handler)

    def unsubscribe(self, handler: Callable[..., object]) -> None:
        """Remove *handler* from every event it is subscribed to."""
        for handlers in (self._click_handlers, self._key_handlers, self._drag_handlers):
            while handler in handlers:
                handlers.remove(handler)  # type: ignore[arg-type]

    def clear_handlers(self) -> None:
        """Drop every event subscription."""
        self._click_handlers.clear()
        self._key_handlers.clear()
        self._drag_handlers.clear()

    def emit_click(self, point: Point, screen: ScreenPoint) -> None:
        for handler in list(self._click_handlers):
            handler(point, screen)

    def emit_key_down(self, key: str) -> None:
        for handler in list(self._key_handlers):
            handler(key)

    def emit_marker_drag_end(self, marker_id: str, point: Point) -> None:
        for handler in list(self._drag_handlers):
            handler(marker_id, point)

    # ------------------------------------------------------------------
    # Abstract methods: every adapter must implement these
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def project(self, point: Point) -> ScreenPoint:
        """Convert a geographic point to a pixel position on the surface."""

    @abc.abstractmethod
    def add_or_replace_layer(
        self,
        layer_id: str,
        geometry_type: GeometryType,
        coordinates: Sequence[Point],
        style: LayerStyle,
    ) -> None:
        """Render *coordinates* as a source and layer named *layer_id*.

        An existing source/layer with the same id is replaced.
        """

    @abc.abstractmethod
    def remove_layer(self, layer_id: str) -> None:
        """Remove the layer *layer_id* (its source stays)."""

    @abc.abstractmethod
    def remove_source(self, source_id: str) -> None:
        """Remove the source *source_id*."""

    @abc.abstractmethod
    def has_source(self, source_id: str) -> bool:
        """Whether a source named *source_id* exists."""

    @abc.abstractmethod
    def create_marker(self, marker_id: str, point: Point, draggable: bool) -> None:
        """Create a marker at *point*."""

    @abc.abstractmethod
    def set_marker_position(self, marker_id: str, point: Point) -> None:
        """Move marker *marker_id* to *point*."""

    @abc.abstractmethod
    def remove_marker(self, marker_id: str) -> None:
        """Destroy marker *marker_id*."""
