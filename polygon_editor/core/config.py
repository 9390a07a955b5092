"""Editor configuration loaded from environment variables.

Defaults describe the national map: drawing is restricted to Bolivia,
the view is centred on the country and closure snaps within 10 px.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is out of
    its valid range, so a misconfigured region or tolerance is caught when
    the map is initialised rather than on the first click.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

from polygon_editor.core.constants import (
    COLOR_STRATEGY_RANDOM,
    DEFAULT_FILL_OPACITY,
    DEFAULT_TEMP_COLOR,
    DEFAULT_TEMP_LINE_WIDTH,
)
from polygon_editor.core.exceptions import ValidationError
from polygon_editor.models.geo import GeoBounds

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


class ConfigValidationError(ValidationError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_component = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class EditorConfig:
    """Immutable editor configuration.

    Loaded once when the map is initialised and handed to the edit session.

    Attributes:
        bounds_north: Maximum latitude accepted for a vertex.
        bounds_south: Minimum latitude accepted for a vertex.
        bounds_east: Maximum longitude accepted for a vertex.
        bounds_west: Minimum longitude accepted for a vertex.
        closure_tolerance_px: Screen distance (pixels) within which a click
            closes the ring on its first vertex.
        fill_opacity: Fill opacity of saved polygons.
        color_strategy: ``"random"`` or ``"palette"``.
        color_seed: Optional seed for the random colour strategy.
        temp_fill_color: Fill colour of the temporary polygon.
        temp_line_color: Colour of the temporary polyline.
        temp_line_width: Width (pixels) of the temporary polyline.
        map_center_lon: Initial view centre longitude.
        map_center_lat: Initial view centre latitude.
        map_zoom: Initial zoom level.
        map_min_zoom: Minimum zoom level.
        map_max_zoom: Maximum zoom level.
    """

    bounds_north: float = -9.68
    bounds_south: float = -22.9
    bounds_east: float = -57.45
    bounds_west: float = -69.64
    closure_tolerance_px: float = 10.0
    fill_opacity: float = DEFAULT_FILL_OPACITY
    color_strategy: str = COLOR_STRATEGY_RANDOM
    color_seed: int | None = None
    temp_fill_color: str = DEFAULT_TEMP_COLOR
    temp_line_color: str = DEFAULT_TEMP_COLOR
    temp_line_width: float = DEFAULT_TEMP_LINE_WIDTH
    map_center_lon: float = -64.968
    map_center_lat: float = -16.29
    map_zoom: float = 5.0
    map_min_zoom: float = 5.0
    map_max_zoom: float = 16.0

    @property
    def geo_bounds(self) -> GeoBounds:
        """The drawing region as a ``GeoBounds`` predicate."""
        return GeoBounds(
            north=self.bounds_north,
            south=self.bounds_south,
            east=self.bounds_east,
            west=self.bounds_west,
        )

    @classmethod
    def from_env(cls) -> EditorConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``POLYGON_EDITOR_CLOSURE_TOLERANCE_PX=abc``).
        """
        seed_raw = os.getenv("POLYGON_EDITOR_COLOR_SEED", "")
        config = cls(
            bounds_north=float(os.getenv("POLYGON_EDITOR_BOUNDS_NORTH", "-9.68")),
            bounds_south=float(os.getenv("POLYGON_EDITOR_BOUNDS_SOUTH", "-22.9")),
            bounds_east=float(os.getenv("POLYGON_EDITOR_BOUNDS_EAST", "-57.45")),
            bounds_west=float(os.getenv("POLYGON_EDITOR_BOUNDS_WEST", "-69.64")),
            closure_tolerance_px=float(os.getenv("POLYGON_EDITOR_CLOSURE_TOLERANCE_PX", "10")),
            fill_opacity=float(os.getenv("POLYGON_EDITOR_FILL_OPACITY", "0.5")),
            color_strategy=os.getenv("POLYGON_EDITOR_COLOR_STRATEGY", COLOR_STRATEGY_RANDOM),
            color_seed=int(seed_raw) if seed_raw else None,
            temp_fill_color=os.getenv("POLYGON_EDITOR_TEMP_FILL_COLOR", DEFAULT_TEMP_COLOR),
            temp_line_color=os.getenv("POLYGON_EDITOR_TEMP_LINE_COLOR", DEFAULT_TEMP_COLOR),
            temp_line_width=float(os.getenv("POLYGON_EDITOR_TEMP_LINE_WIDTH", "2")),
            map_center_lon=float(os.getenv("POLYGON_EDITOR_MAP_CENTER_LON", "-64.968")),
            map_center_lat=float(os.getenv("POLYGON_EDITOR_MAP_CENTER_LAT", "-16.29")),
            map_zoom=float(os.getenv("POLYGON_EDITOR_MAP_ZOOM", "5")),
            map_min_zoom=float(os.getenv("POLYGON_EDITOR_MAP_MIN_ZOOM", "5")),
            map_max_zoom=float(os.getenv("POLYGON_EDITOR_MAP_MAX_ZOOM", "16")),
        )
        validate_config(config)
        return config


def validate_config(config: EditorConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    for key, lat in (
        ("POLYGON_EDITOR_BOUNDS_NORTH", config.bounds_north),
        ("POLYGON_EDITOR_BOUNDS_SOUTH", config.bounds_south),
        ("POLYGON_EDITOR_MAP_CENTER_LAT", config.map_center_lat),
    ):
        if not -90.0 <= lat <= 90.0:
            raise ConfigValidationError(key, lat, "must be between -90 and 90 (degrees)")

    for key, lon in (
        ("POLYGON_EDITOR_BOUNDS_EAST", config.bounds_east),
        ("POLYGON_EDITOR_BOUNDS_WEST", config.bounds_west),
        ("POLYGON_EDITOR_MAP_CENTER_LON", config.map_center_lon),
    ):
        if not -180.0 <= lon <= 180.0:
            raise ConfigValidationError(key, lon, "must be between -180 and 180 (degrees)")

    if config.bounds_north < config.bounds_south:
        raise ConfigValidationError(
            "POLYGON_EDITOR_BOUNDS_NORTH",
            config.bounds_north,
            f"must be >= POLYGON_EDITOR_BOUNDS_SOUTH ({config.bounds_south})",
        )

    if config.bounds_east < config.bounds_west:
        raise ConfigValidationError(
            "POLYGON_EDITOR_BOUNDS_EAST",
            config.bounds_east,
            f"must be >= POLYGON_EDITOR_BOUNDS_WEST ({config.bounds_west})",
        )

    if config.closure_tolerance_px <= 0:
        raise ConfigValidationError(
            "POLYGON_EDITOR_CLOSURE_TOLERANCE_PX",
            config.closure_tolerance_px,
            "must be > 0 (pixels)",
        )

    if not 0.0 <= config.fill_opacity <= 1.0:
        raise ConfigValidationError(
            "POLYGON_EDITOR_FILL_OPACITY",
            config.fill_opacity,
            "must be between 0 and 1",
        )

    from polygon_editor.editing.colors import list_color_strategies

    strategies = list_color_strategies()
    if config.color_strategy not in strategies:
        raise ConfigValidationError(
            "POLYGON_EDITOR_COLOR_STRATEGY",
            config.color_strategy,
            f"must be one of {', '.join(strategies)}",
        )

    for key, color in (
        ("POLYGON_EDITOR_TEMP_FILL_COLOR", config.temp_fill_color),
        ("POLYGON_EDITOR_TEMP_LINE_COLOR", config.temp_line_color),
    ):
        if not _HEX_COLOR.match(color):
            raise ConfigValidationError(key, color, "must be a #RRGGBB colour")

    if config.temp_line_width <= 0:
        raise ConfigValidationError(
            "POLYGON_EDITOR_TEMP_LINE_WIDTH",
            config.temp_line_width,
            "must be > 0 (pixels)",
        )

    if config.map_min_zoom > config.map_max_zoom:
        raise ConfigValidationError(
            "POLYGON_EDITOR_MAP_MIN_ZOOM",
            config.map_min_zoom,
            f"must be <= POLYGON_EDITOR_MAP_MAX_ZOOM ({config.map_max_zoom})",
        )

    if not config.map_min_zoom <= config.map_zoom <= config.map_max_zoom:
        raise ConfigValidationError(
            "POLYGON_EDITOR_MAP_ZOOM",
            config.map_zoom,
            f"must be between {config.map_min_zoom} and {config.map_max_zoom}",
        )
