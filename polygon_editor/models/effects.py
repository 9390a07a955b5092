"""Declarative render and marker instructions.

The editing components never call the map surface directly.  They push
effects onto an ``EffectQueue``; the edit session drains the queue after
each event, hands the effects back to the caller and, when bound to a
surface, applies them with ``polygon_editor.surface.render.apply_effects``.
This keeps every transition unit-testable without a live map.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

from polygon_editor.models.geo import Point

GeometryType = Literal["LineString", "Polygon"]


@dataclass(frozen=True, slots=True)
class LayerStyle:
    """Paint properties for a rendered layer.

    Fill properties apply to ``Polygon`` layers, line properties to
    ``LineString`` layers and to polygon outlines.
    """

    fill_color: str | None = None
    fill_opacity: float | None = None
    outline_color: str | None = None
    line_color: str | None = None
    line_width: float | None = None

    def to_paint(self) -> dict[str, object]:
        """Return the non-empty properties as a map paint dict."""
        paint: dict[str, object] = {}
        if self.fill_color is not None:
            paint["fill-color"] = self.fill_color
        if self.fill_opacity is not None:
            paint["fill-opacity"] = self.fill_opacity
        if self.outline_color is not None:
            paint["fill-outline-color"] = self.outline_color
        if self.line_color is not None:
            paint["line-color"] = self.line_color
        if self.line_width is not None:
            paint["line-width"] = self.line_width
        return paint


@dataclass(frozen=True, slots=True)
class RenderLayer:
    """Add or replace the source and layer *layer_id*."""

    layer_id: str
    geometry_type: GeometryType
    coordinates: tuple[Point, ...]
    style: LayerStyle = field(default_factory=LayerStyle)


@dataclass(frozen=True, slots=True)
class RemoveLayer:
    """Remove the layer and source *layer_id* if present."""

    layer_id: str


@dataclass(frozen=True, slots=True)
class CreateMarker:
    """Create a marker bound to a working-ring vertex."""

    marker_id: str
    point: Point
    draggable: bool = True


@dataclass(frozen=True, slots=True)
class MoveMarker:
    """Move an existing marker (used to revert rejected drags)."""

    marker_id: str
    point: Point


@dataclass(frozen=True, slots=True)
class RemoveMarker:
    """Destroy a marker."""

    marker_id: str


@dataclass(frozen=True, slots=True)
class Notice:
    """A user-visible rejection.

    Attributes:
        code: Machine-readable code from the originating error.
        message: Text to show the user.
        error: ``EditorError.to_error_dict()`` payload.
    """

    code: str
    message: str
    error: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ConfirmClosure:
    """The working ring was closed and awaits a save/discard answer."""

    ring: tuple[Point, ...]


Effect = Union[RenderLayer, RemoveLayer, CreateMarker, MoveMarker, RemoveMarker, Notice, ConfirmClosure]


class EffectQueue:
    """Ordered outbox of effects shared by the components of one session."""

    def __init__(self) -> None:
        self._items: list[Effect] = []

    def push(self, effect: Effect) -> None:
        self._items.append(effect)

    def drain(self) -> list[Effect]:
        """Return and forget every queued effect, oldest first."""
        items, self._items = self._items, []
        return items

    def __len__(self) -> int:
        return len(self._items)
