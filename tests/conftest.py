"""Shared pytest fixtures for the polygon editor test suite."""

from __future__ import annotations

import pytest

from polygon_editor.core.config import EditorConfig
from polygon_editor.editing.colors import PaletteColorAssigner
from polygon_editor.editing.session import EditSession
from polygon_editor.models.effects import EffectQueue
from polygon_editor.models.geo import GeoBounds
from polygon_editor.surface.memory import InMemoryMapSurface
from tests.shapes import TEST_BOUNDS

# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


@pytest.fixture()
def bounds() -> GeoBounds:
    return TEST_BOUNDS


@pytest.fixture()
def effects() -> EffectQueue:
    return EffectQueue()


@pytest.fixture()
def config() -> EditorConfig:
    """Editor configuration restricted to the test region."""
    return EditorConfig(
        bounds_north=TEST_BOUNDS.north,
        bounds_south=TEST_BOUNDS.south,
        bounds_east=TEST_BOUNDS.east,
        bounds_west=TEST_BOUNDS.west,
        color_strategy="palette",
        map_center_lon=0.5,
        map_center_lat=0.5,
    )


# ---------------------------------------------------------------------------
# Session fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def surface(config: EditorConfig) -> InMemoryMapSurface:
    """Recording map surface opened on the configured view (zoom 5)."""
    return InMemoryMapSurface.from_config(config)


@pytest.fixture()
def session(config: EditorConfig, surface: InMemoryMapSurface) -> EditSession:
    """Edit session opened on the in-memory surface, deterministic colours."""
    edit_session = EditSession(
        config,
        color_assigner=PaletteColorAssigner(),
        session_id="session-test",
    )
    edit_session.open(surface)
    return edit_session
