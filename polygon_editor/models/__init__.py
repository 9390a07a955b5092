"""Data models and schemas.

Defines the data structures shared by the editing components:
- Point / ScreenPoint / GeoBounds: coordinates and the drawing region
- Polygon: a saved, closed ring with its colours
- Effects: declarative render and marker instructions
- Events: click, key and marker-drag input from the map surface
- PolygonSummary: measurements shown next to a saved polygon
"""

from polygon_editor.models.geo import GeoBounds, Point, ScreenPoint
from polygon_editor.models.polygon import Polygon

__all__ = [
    "GeoBounds",
    "Point",
    "Polygon",
    "ScreenPoint",
]
