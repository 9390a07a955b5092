"""In-memory map surface.

Records layers, sources and markers instead of drawing them, and projects
with Web Mercator (EPSG:3857) at the view zoom using the same tile pixel
grid as web maps (256 px tiles).  Used by the test suite and by headless
hosts that want to drive the editor programmatically.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from polygon_editor.models.effects import GeometryType, LayerStyle
from polygon_editor.models.geo import Point, ScreenPoint
from polygon_editor.surface.base import MapSurface

if TYPE_CHECKING:
    from polygon_editor.core.config import EditorConfig

logger = logging.getLogger("polygon_editor.surface.memory")

TILE_SIZE_PX = 256
# Half the Web Mercator world width in metres
MERCATOR_HALF_WORLD_M = 20_037_508.342789244


@dataclass(frozen=True, slots=True)
class RenderedLayer:
    """A layer as the surface currently shows it."""

    geometry_type: GeometryType
    coordinates: tuple[Point, ...]
    paint: dict[str, object] = field(default_factory=dict)


@dataclass(slots=True)
class RenderedMarker:
    point: Point
    draggable: bool = True


class InMemoryMapSurface(MapSurface):
    """Recording ``MapSurface`` with a Web Mercator projection.

    Args:
        zoom: Zoom level used by ``project``.
        center: View centre.
        min_zoom: Lowest zoom ``set_zoom`` accepts.
        max_zoom: Highest zoom ``set_zoom`` accepts.

    Attributes:
        layers: Rendered layers by id.
        sources: Ids of existing sources.
        markers: Live markers by id.
    """

    def __init__(
        self,
        zoom: float = 5.0,
        center: Point | None = None,
        min_zoom: float = 0.0,
        max_zoom: float = 24.0,
    ) -> None:
        super().__init__()
        from pyproj import Transformer

        if min_zoom > max_zoom:
            msg = f"min_zoom {min_zoom} exceeds max_zoom {max_zoom}"
            raise ValueError(msg)
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom
        self.zoom = min(max(zoom, min_zoom), max_zoom)
        self.center = center if center is not None else Point(0.0, 0.0)
        self.layers: dict[str, RenderedLayer] = {}
        self.sources: set[str] = set()
        self.markers: dict[str, RenderedMarker] = {}
        self._to_mercator = Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)

    @classmethod
    def from_config(cls, config: EditorConfig) -> InMemoryMapSurface:
        """Create a surface showing the initial view described by *config*."""
        surface = cls(
            zoom=config.map_zoom,
            center=Point(config.map_center_lon, config.map_center_lat),
            min_zoom=config.map_min_zoom,
            max_zoom=config.map_max_zoom,
        )
        logger.debug(
            "Surface view | center=(%s, %s) | zoom=%s | range=[%s, %s]",
            config.map_center_lon,
            config.map_center_lat,
            surface.zoom,
            surface.min_zoom,
            surface.max_zoom,
        )
        return surface

    def set_zoom(self, zoom: float) -> float:
        """Zoom the view, clamped to ``[min_zoom, max_zoom]``.

        Returns:
            The zoom level actually applied.
        """
        self.zoom = min(max(zoom, self.min_zoom), self.max_zoom)
        return self.zoom

    # ------------------------------------------------------------------
    # MapSurface
    # ------------------------------------------------------------------

    def project(self, point: Point) -> ScreenPoint:
        x_m, y_m = self._to_mercator.transform(point.longitude, point.latitude)
        world_px = TILE_SIZE_PX * 2**self.zoom
        x = (x_m + MERCATOR_HALF_WORLD_M) / (2 * MERCATOR_HALF_WORLD_M) * world_px
        y = (MERCATOR_HALF_WORLD_M - y_m) / (2 * MERCATOR_HALF_WORLD_M) * world_px
        return ScreenPoint(x=x, y=y)

    def add_or_replace_layer(
        self,
        layer_id: str,
        geometry_type: GeometryType,
        coordinates: Sequence[Point],
        style: LayerStyle,
    ) -> None:
        self.sources.add(layer_id)
        self.layers[layer_id] = RenderedLayer(
            geometry_type=geometry_type,
            coordinates=tuple(coordinates),
            paint=style.to_paint(),
        )

    def remove_layer(self, layer_id: str) -> None:
        self.layers.pop(layer_id, None)

    def remove_source(self, source_id: str) -> None:
        self.sources.discard(source_id)

    def has_source(self, source_id: str) -> bool:
        return source_id in self.sources

    def create_marker(self, marker_id: str, point: Point, draggable: bool) -> None:
        self.markers[marker_id] = RenderedMarker(point=point, draggable=draggable)

    def set_marker_position(self, marker_id: str, point: Point) -> None:
        marker = self.markers.get(marker_id)
        if marker is None:
            logger.warning("Position ignored | unknown marker=%s", marker_id)
            return
        marker.point = point

    def remove_marker(self, marker_id: str) -> None:
        self.markers.pop(marker_id, None)

    # ------------------------------------------------------------------
    # Simulated user input
    # ------------------------------------------------------------------

    def click(self, point: Point, offset_px: tuple[float, float] = (0.0, 0.0)) -> ScreenPoint:
        """Click at *point*, optionally shifting the screen position by *offset_px*.

        Returns:
            The screen position reported with the click.
        """
        base = self.project(point)
        screen = ScreenPoint(x=base.x + offset_px[0], y=base.y + offset_px[1])
        self.emit_click(point, screen)
        return screen

    def press(self, key: str) -> None:
        self.emit_key_down(key)

    def drag_marker(self, marker_id: str, point: Point) -> None:
        """Drop marker *marker_id* at *point*, as a user drag would."""
        self.set_marker_position(marker_id, point)
        self.emit_marker_drag_end(marker_id, point)
