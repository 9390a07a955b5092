"""Fill colour assignment for saved polygons.

Every saved polygon gets its own fill colour and an outline that
contrasts with it.  Colour choice is a pluggable strategy so hosts can
pick a fixed palette and tests can be deterministic.

Usage::

    from polygon_editor.editing.colors import get_color_assigner

    assigner = get_color_assigner("random", seed=42)
    fill = assigner.next_color()
    outline = contrasting_outline(fill)
"""

from __future__ import annotations

import abc
import logging
import random
import re
from collections.abc import Callable, Sequence

from polygon_editor.core.constants import COLOR_STRATEGY_PALETTE, COLOR_STRATEGY_RANDOM
from polygon_editor.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

HEX_DIGITS = "0123456789ABCDEF"
_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")

DEFAULT_PALETTE: tuple[str, ...] = (
    "#FF5733",
    "#33FF57",
    "#3357FF",
    "#FFFF33",
    "#888888",
)

# Relative luminance above which black text/lines read better than white
_LUMINANCE_THRESHOLD = 0.5


class ColorStrategyError(ValidationError):
    """Raised for an unknown strategy or a malformed palette."""

    default_component = "colors"
    default_code = "COLOR_STRATEGY_INVALID"


class ColorAssigner(abc.ABC):
    """Produces the fill colour of each newly saved polygon."""

    @abc.abstractmethod
    def next_color(self) -> str:
        """Return the next ``#RRGGBB`` colour."""


class RandomColorAssigner(ColorAssigner):
    """Uniformly random hex colours, one random digit at a time.

    Args:
        seed: Optional seed for reproducible sequences.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def next_color(self) -> str:
        return "#" + "".join(self._rng.choice(HEX_DIGITS) for _ in range(6))


class PaletteColorAssigner(ColorAssigner):
    """Cycles through a fixed palette.

    Raises:
        ColorStrategyError: If the palette is empty or has a malformed colour.
    """

    def __init__(self, palette: Sequence[str] = DEFAULT_PALETTE) -> None:
        if not palette:
            msg = "Palette must contain at least one colour"
            raise ColorStrategyError(msg)
        for color in palette:
            if not _HEX_COLOR.match(color):
                msg = f"Palette colour {color!r} is not #RRGGBB"
                raise ColorStrategyError(msg)
        self._palette = tuple(c.upper() for c in palette)
        self._index = 0

    def next_color(self) -> str:
        color = self._palette[self._index % len(self._palette)]
        self._index += 1
        return color


def contrasting_outline(fill_color: str) -> str:
    """Return ``#000000`` or ``#FFFFFF``, whichever contrasts *fill_color*.

    Raises:
        ColorStrategyError: If *fill_color* is not ``#RRGGBB``.
    """
    if not _HEX_COLOR.match(fill_color):
        msg = f"Colour {fill_color!r} is not #RRGGBB"
        raise ColorStrategyError(msg)
    red, green, blue = (int(fill_color[i : i + 2], 16) / 255 for i in (1, 3, 5))
    luminance = 0.2126 * red + 0.7152 * green + 0.0722 * blue
    return "#000000" if luminance > _LUMINANCE_THRESHOLD else "#FFFFFF"


# ---------------------------------------------------------------------------
# Strategy registry
# ---------------------------------------------------------------------------

_STRATEGY_REGISTRY: dict[str, Callable[[int | None], ColorAssigner]] = {
    COLOR_STRATEGY_RANDOM: lambda seed: RandomColorAssigner(seed),
    COLOR_STRATEGY_PALETTE: lambda _seed: PaletteColorAssigner(),
}


def register_color_assigner(name: str, factory: Callable[[int | None], ColorAssigner]) -> None:
    """Register a custom colour strategy.

    Args:
        name: Strategy name.
        factory: Callable receiving the optional seed and returning an assigner.

    Raises:
        ValueError: If the name is empty.
    """
    if not name:
        msg = "Colour strategy name must be non-empty"
        raise ValueError(msg)
    _STRATEGY_REGISTRY[name] = factory
    logger.debug("Registered colour strategy: %s", name)


def get_color_assigner(name: str, seed: int | None = None) -> ColorAssigner:
    """Create the colour assigner registered under *name*.

    Raises:
        ColorStrategyError: If the strategy is not registered.
    """
    factory = _STRATEGY_REGISTRY.get(name)
    if factory is None:
        available = ", ".join(sorted(_STRATEGY_REGISTRY))
        msg = f"Unknown colour strategy: {name!r}. Available: {available}"
        raise ColorStrategyError(msg)
    return factory(seed)


def list_color_strategies() -> list[str]:
    """Return the names of all registered colour strategies."""
    return sorted(_STRATEGY_REGISTRY)
