"""Map surface adapters.

Re-exports the ``MapSurface`` contract and the in-memory implementation.
"""

from polygon_editor.surface.base import MapSurface
from polygon_editor.surface.memory import InMemoryMapSurface
from polygon_editor.surface.render import apply_effects

__all__ = [
    "InMemoryMapSurface",
    "MapSurface",
    "apply_effects",
]
