"""Shared editor constants — single source of truth.

Centralises the render ids, id prefixes, key names and ring size limits
used by the point buffer, the polygon store and the edit session.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Temporary render ids
# ---------------------------------------------------------------------------

TEMP_POLYGON_ID: str = "polygon-temp"
"""Layer/source id of the work-in-progress filled polygon."""

TEMP_LINE_ID: str = "linea-temporal"
"""Layer/source id of the work-in-progress polyline."""

# ---------------------------------------------------------------------------
# Id prefixes
# ---------------------------------------------------------------------------

POLYGON_ID_PREFIX: str = "polygon-"
MARKER_ID_PREFIX: str = "marker-"

# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

ESCAPE_KEY: str = "Escape"

# ---------------------------------------------------------------------------
# Ring size limits
# ---------------------------------------------------------------------------

MIN_DISTINCT_VERTICES: int = 3
"""A polygon needs at least a triangle."""

MIN_RING_POINTS: int = 4
"""Three distinct vertices plus the repeated closing vertex."""

# ---------------------------------------------------------------------------
# Styling defaults
# ---------------------------------------------------------------------------

DEFAULT_FILL_OPACITY: float = 0.5
DEFAULT_TEMP_COLOR: str = "#FF0000"
DEFAULT_TEMP_LINE_WIDTH: float = 2.0
DEFAULT_OUTLINE_WIDTH: float = 1.5

# ---------------------------------------------------------------------------
# Colour strategies
# ---------------------------------------------------------------------------

COLOR_STRATEGY_RANDOM: str = "random"
COLOR_STRATEGY_PALETTE: str = "palette"
