"""Input events emitted by the map surface."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from polygon_editor.models.geo import Point, ScreenPoint


@dataclass(frozen=True, slots=True)
class MapClick:
    """Pointer click at *point* (geographic) / *screen* (pixels)."""

    point: Point
    screen: ScreenPoint


@dataclass(frozen=True, slots=True)
class KeyDown:
    key: str


@dataclass(frozen=True, slots=True)
class MarkerDragEnd:
    """A marker was dropped at *point*."""

    marker_id: str
    point: Point


MapEvent = Union[MapClick, KeyDown, MarkerDragEnd]
