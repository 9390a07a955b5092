"""Screen-space proximity test used to detect ring closure.

Distances are measured in pixels between projected positions, not in
degrees, so closing a ring needs the same hand precision at every zoom.
"""

from __future__ import annotations

import math

from polygon_editor.models.geo import ScreenPoint

DEFAULT_TOLERANCE_PX = 10.0


class ProximityDetector:
    """Euclidean tolerance test between two screen points.

    Args:
        tolerance_px: Default radius in pixels; must be positive.

    Raises:
        ValueError: If *tolerance_px* is not positive.
    """

    def __init__(self, tolerance_px: float = DEFAULT_TOLERANCE_PX) -> None:
        if tolerance_px <= 0:
            msg = f"tolerance_px must be > 0, got {tolerance_px}"
            raise ValueError(msg)
        self._tolerance_px = tolerance_px

    @property
    def tolerance_px(self) -> float:
        return self._tolerance_px

    def is_near(self, a: ScreenPoint, b: ScreenPoint, tolerance_px: float | None = None) -> bool:
        """Return ``True`` when *a* and *b* are at most the tolerance apart."""
        tolerance = self._tolerance_px if tolerance_px is None else tolerance_px
        return screen_distance(a, b) <= tolerance


def screen_distance(a: ScreenPoint, b: ScreenPoint) -> float:
    """Euclidean pixel distance between *a* and *b*."""
    return math.hypot(a.x - b.x, a.y - b.y)
