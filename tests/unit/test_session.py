"""Tests for the edit session state machine.

Covers:
- Drawing a polygon end to end on the in-memory surface
- Out-of-region clicks, Escape undo, closure proximity
- Save / discard / deferred confirmation and failing handlers
- Editing, committing, cancelling and deleting saved polygons
- Input rejection while a closure is pending
- Session lifecycle (open / close) and direct event dispatch
"""

from __future__ import annotations

import logging

import pytest

from polygon_editor.core.config import EditorConfig
from polygon_editor.core.constants import TEMP_LINE_ID, TEMP_POLYGON_ID
from polygon_editor.core.exceptions import (
    InvalidRingError,
    PolygonNotFoundError,
    SessionStateError,
)
from polygon_editor.editing.colors import PaletteColorAssigner
from polygon_editor.editing.session import EditSession, SessionMode
from polygon_editor.models.effects import ConfirmClosure, CreateMarker, Notice, RenderLayer
from polygon_editor.models.events import KeyDown, MapClick, MarkerDragEnd
from polygon_editor.models.geo import Point, ScreenPoint
from polygon_editor.surface.memory import InMemoryMapSurface
from tests.shapes import (
    EAST,
    NEAR_OFFSET_PX,
    NORTH,
    NORTH_EAST,
    ORIGIN,
    SQUARE_RING,
    TRIANGLE_RING,
    draw_triangle,
)


def _save_triangle(session: EditSession, surface: InMemoryMapSurface) -> str:
    session.on_closure_confirmation_needed(lambda ring: True)
    draw_triangle(surface)
    session.on_closure_confirmation_needed(None)
    return session.list_polygons()[-1].id


# ---------------------------------------------------------------------------
# Drawing
# ---------------------------------------------------------------------------


class TestDrawing:
    """Clicking vertices into the working ring."""

    def test_first_click_starts_drawing(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        assert session.mode is SessionMode.IDLE
        surface.click(ORIGIN)
        assert session.mode is SessionMode.DRAWING
        assert session.buffer_size == 1
        assert set(surface.markers) == set(session.marker_ids())

    def test_markers_are_draggable(self, session: EditSession, surface: InMemoryMapSurface) -> None:
        surface.click(ORIGIN)
        marker = surface.markers[session.marker_ids()[0]]
        assert marker.point == ORIGIN
        assert marker.draggable is True

    def test_temporary_line_follows_clicks(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        surface.click(ORIGIN)
        assert TEMP_LINE_ID not in surface.layers
        surface.click(NORTH)
        line = surface.layers[TEMP_LINE_ID]
        assert line.geometry_type == "LineString"
        assert line.coordinates == (ORIGIN, NORTH)
        assert line.paint == {"line-color": "#FF0000", "line-width": 2.0}

    def test_click_outside_region_rejected(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        """A click just north of the region leaves the buffer empty."""
        notices: list[Notice] = []
        session.on_notice(notices.append)

        surface.click(Point(0.5, 2.0 + 0.01))

        assert session.buffer_size == 0
        assert session.mode is SessionMode.IDLE
        assert surface.markers == {}
        assert [n.code for n in notices] == ["OUT_OF_BOUNDS"]

    def test_failing_notice_handler_keeps_session_usable(
        self,
        session: EditSession,
        surface: InMemoryMapSurface,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A raising notice receiver is logged; later events still report effects."""
        received: list[Notice] = []

        def broken(notice: Notice) -> None:
            msg = "toast widget gone"
            raise RuntimeError(msg)

        session.on_notice(broken)
        session.on_notice(received.append)
        with caplog.at_level(logging.ERROR, logger="polygon_editor.editing.session"):
            rejected = session.handle_click(Point(0.5, 5.0), surface.project(Point(0.5, 5.0)))

        assert [type(e) for e in rejected] == [Notice]
        assert [n.code for n in received] == ["OUT_OF_BOUNDS"]
        assert "Notice handler failed" in caplog.text

        effects = session.handle_click(ORIGIN, surface.project(ORIGIN))
        assert effects == [CreateMarker(marker_id="marker-1", point=ORIGIN)]
        assert session.last_effects == effects
        assert session.buffer_size == 1

    def test_click_on_region_edge_accepted(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        surface.click(Point(2.0, 2.0))
        assert session.buffer_size == 1

    def test_handle_click_returns_effects(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        effects = session.handle_click(ORIGIN, surface.project(ORIGIN))
        assert effects == session.last_effects
        assert isinstance(effects[0], CreateMarker)

    def test_start_drawing_is_idempotent(self, session: EditSession) -> None:
        session.start_drawing()
        session.start_drawing()
        assert session.mode is SessionMode.DRAWING
        assert session.buffer_size == 0

    def test_clicks_far_from_first_point_keep_adding(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        for point in SQUARE_RING[:-1]:
            surface.click(point)
        assert session.buffer_size == 4
        assert session.mode is SessionMode.DRAWING


class TestEscapeUndo:
    def test_escape_removes_last_points(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        for point in (ORIGIN, NORTH, NORTH_EAST):
            surface.click(point)

        surface.press("Escape")
        assert session.buffer_size == 2
        assert surface.layers[TEMP_LINE_ID].coordinates == (ORIGIN, NORTH)
        assert len(surface.markers) == 2

        surface.press("Escape")
        surface.press("Escape")
        assert session.buffer_size == 0
        assert TEMP_LINE_ID not in surface.layers
        assert surface.markers == {}

    def test_escape_on_empty_buffer_is_noop(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        surface.press("Escape")
        assert session.mode is SessionMode.IDLE
        assert session.last_effects == []

    def test_other_keys_ignored(self, session: EditSession, surface: InMemoryMapSurface) -> None:
        surface.click(ORIGIN)
        surface.press("Enter")
        assert session.buffer_size == 1


# ---------------------------------------------------------------------------
# Closure
# ---------------------------------------------------------------------------


class TestClosure:
    """Closing the ring and answering the confirmation."""

    def test_save_via_resolve_closure(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        draw_triangle(surface)

        assert session.mode is SessionMode.CLOSURE_PENDING
        assert session.state.pending_ring == tuple(TRIANGLE_RING)
        assert surface.layers[TEMP_POLYGON_ID].coordinates == tuple(TRIANGLE_RING)
        assert ConfirmClosure(ring=tuple(TRIANGLE_RING)) in session.last_effects

        polygon = session.resolve_closure(True)

        assert polygon is not None
        assert session.mode is SessionMode.IDLE
        assert [p.ring for p in session.list_polygons()] == [tuple(TRIANGLE_RING)]
        assert polygon.id == "polygon-1"
        assert set(surface.layers) == {"polygon-1"}
        assert surface.markers == {}
        assert surface.layers["polygon-1"].paint["fill-color"] == "#FF5733"

    def test_save_via_handler(self, session: EditSession, surface: InMemoryMapSurface) -> None:
        received: list[list[Point]] = []

        def confirm(ring: list[Point]) -> bool:
            received.append(ring)
            return True

        session.on_closure_confirmation_needed(confirm)
        draw_triangle(surface)

        assert received == [TRIANGLE_RING]
        assert session.mode is SessionMode.IDLE
        assert len(session.list_polygons()) == 1

    def test_closed_ring_is_rendered_before_handler_runs(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        seen: list[bool] = []
        session.on_closure_confirmation_needed(
            lambda ring: seen.append(TEMP_POLYGON_ID in surface.layers) or True
        )
        draw_triangle(surface)
        assert seen == [True]

    def test_discard_via_handler(self, session: EditSession, surface: InMemoryMapSurface) -> None:
        session.on_closure_confirmation_needed(lambda ring: False)
        draw_triangle(surface)

        assert session.mode is SessionMode.IDLE
        assert session.list_polygons() == []
        assert TEMP_POLYGON_ID not in surface.layers
        assert TEMP_LINE_ID not in surface.layers
        assert surface.markers == {}

    def test_discard_leaves_store_unchanged(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        _save_triangle(session, surface)
        draw_triangle(surface)
        session.cancel_closure()

        assert len(session.list_polygons()) == 1
        assert TEMP_POLYGON_ID not in surface.layers
        assert session.buffer_size == 0

    def test_deferred_handler(self, session: EditSession, surface: InMemoryMapSurface) -> None:
        session.on_closure_confirmation_needed(lambda ring: None)
        draw_triangle(surface)
        assert session.mode is SessionMode.CLOSURE_PENDING
        session.resolve_closure(True)
        assert len(session.list_polygons()) == 1

    def test_handler_resolving_itself(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        def confirm(ring: list[Point]) -> bool:
            session.resolve_closure(True)
            return False

        session.on_closure_confirmation_needed(confirm)
        draw_triangle(surface)

        assert session.mode is SessionMode.IDLE
        assert len(session.list_polygons()) == 1

    def test_failing_handler_discards(
        self,
        session: EditSession,
        surface: InMemoryMapSurface,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        def confirm(ring: list[Point]) -> bool:
            msg = "dialog crashed"
            raise RuntimeError(msg)

        session.on_closure_confirmation_needed(confirm)
        with caplog.at_level(logging.ERROR, logger="polygon_editor.editing.session"):
            draw_triangle(surface)

        assert session.mode is SessionMode.IDLE
        assert session.list_polygons() == []
        assert TEMP_POLYGON_ID not in surface.layers
        assert "Confirmation handler failed" in caplog.text

    def test_no_closure_below_three_points(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        """With two points, a click on the first point just adds a vertex."""
        surface.click(ORIGIN)
        surface.click(NORTH)
        surface.click(ORIGIN)
        assert session.mode is SessionMode.DRAWING
        assert session.buffer_size == 3

    def test_click_beyond_tolerance_adds_point(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        for point in (ORIGIN, NORTH, NORTH_EAST):
            surface.click(point)
        surface.click(ORIGIN, offset_px=(11.0, 0.0))
        assert session.mode is SessionMode.DRAWING
        assert session.buffer_size == 4

    def test_self_intersecting_ring_reopened(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        notices: list[Notice] = []
        session.on_notice(notices.append)
        for point in (ORIGIN, NORTH_EAST, EAST, NORTH):
            surface.click(point)
        surface.click(ORIGIN, offset_px=NEAR_OFFSET_PX)

        assert session.resolve_closure(True) is None
        assert session.mode is SessionMode.DRAWING
        assert session.working_ring() == [ORIGIN, NORTH_EAST, EAST, NORTH]
        assert session.list_polygons() == []
        assert TEMP_POLYGON_ID not in surface.layers
        assert [n.code for n in notices] == ["INVALID_RING"]
        assert notices[0].error["session_id"] == "session-test"


class TestClosurePending:
    """Map input is rejected while a closure awaits an answer."""

    @pytest.fixture()
    def pending(self, session: EditSession, surface: InMemoryMapSurface) -> EditSession:
        draw_triangle(surface)
        assert session.mode is SessionMode.CLOSURE_PENDING
        return session

    def test_click_ignored(self, pending: EditSession, surface: InMemoryMapSurface) -> None:
        surface.click(Point(1.5, 1.5))
        assert pending.buffer_size == 4
        assert pending.mode is SessionMode.CLOSURE_PENDING

    def test_escape_ignored(self, pending: EditSession, surface: InMemoryMapSurface) -> None:
        surface.press("Escape")
        assert pending.buffer_size == 4

    def test_drag_reverted(self, pending: EditSession, surface: InMemoryMapSurface) -> None:
        marker_id = pending.marker_ids()[1]
        surface.drag_marker(marker_id, Point(0.0, 1.5))
        assert surface.markers[marker_id].point == NORTH
        assert pending.working_ring() == TRIANGLE_RING

    def test_commands_rejected(self, pending: EditSession) -> None:
        with pytest.raises(SessionStateError):
            pending.start_drawing()
        with pytest.raises(SessionStateError):
            pending.commit_edit()

    def test_cancel_edit_discards(self, pending: EditSession, surface: InMemoryMapSurface) -> None:
        pending.cancel_edit()
        assert pending.mode is SessionMode.IDLE
        assert TEMP_POLYGON_ID not in surface.layers

    def test_resolve_outside_pending_rejected(self, session: EditSession) -> None:
        with pytest.raises(SessionStateError, match="resolve closure"):
            session.resolve_closure(True)
        with pytest.raises(SessionStateError):
            session.cancel_closure()


# ---------------------------------------------------------------------------
# Editing saved polygons
# ---------------------------------------------------------------------------


class TestEditing:
    def test_edit_drag_commit(self, session: EditSession, surface: InMemoryMapSurface) -> None:
        polygon_id = _save_triangle(session, surface)
        original = session.get_polygon(polygon_id)

        session.edit_polygon(polygon_id)
        assert session.mode is SessionMode.EDITING
        assert session.state.target_id == polygon_id
        assert session.working_ring() == TRIANGLE_RING
        assert len(surface.markers) == 4

        moved = Point(0.0, 1.5)
        surface.drag_marker(session.marker_ids()[1], moved)
        assert surface.layers[TEMP_POLYGON_ID].coordinates[1] == moved

        updated = session.commit_edit()

        assert updated.id == polygon_id
        assert updated.ring == (ORIGIN, moved, NORTH_EAST, ORIGIN)
        assert updated.fill_color == original.fill_color
        assert session.get_polygon(polygon_id).ring[1] == moved
        assert session.mode is SessionMode.IDLE
        assert surface.markers == {}
        assert TEMP_POLYGON_ID not in surface.layers
        assert surface.layers[polygon_id].coordinates[1] == moved

    def test_drag_first_vertex_keeps_ring_closed(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        polygon_id = _save_triangle(session, surface)
        session.edit_polygon(polygon_id)
        moved = Point(-0.5, -0.5)
        surface.drag_marker(session.marker_ids()[0], moved)

        updated = session.commit_edit()
        assert updated.ring[0] == moved
        assert updated.ring[-1] == moved

    def test_drag_out_of_region_reverted(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        polygon_id = _save_triangle(session, surface)
        session.edit_polygon(polygon_id)
        marker_id = session.marker_ids()[2]
        surface.drag_marker(marker_id, Point(5.0, 5.0))
        assert surface.markers[marker_id].point == NORTH_EAST
        assert session.working_ring() == TRIANGLE_RING

    def test_clicks_ignored_while_editing(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        polygon_id = _save_triangle(session, surface)
        session.edit_polygon(polygon_id)
        surface.click(Point(1.5, 0.5))
        assert session.buffer_size == 4

    def test_commit_closes_open_ring(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        polygon_id = _save_triangle(session, surface)
        session.edit_polygon(polygon_id)
        surface.press("Escape")
        assert session.working_ring() == TRIANGLE_RING[:3]

        assert session.commit_edit().ring == tuple(TRIANGLE_RING)

    def test_commit_too_few_vertices_keeps_editing(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        polygon_id = _save_triangle(session, surface)
        session.edit_polygon(polygon_id)
        surface.press("Escape")
        surface.press("Escape")

        with pytest.raises(InvalidRingError) as exc_info:
            session.commit_edit()

        assert exc_info.value.session_id == "session-test"
        assert session.mode is SessionMode.EDITING
        assert session.working_ring() == [ORIGIN, NORTH]
        assert session.get_polygon(polygon_id).ring == tuple(TRIANGLE_RING)

    def test_cancel_edit_restores_polygon(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        polygon_id = _save_triangle(session, surface)
        session.edit_polygon(polygon_id)
        surface.drag_marker(session.marker_ids()[1], Point(0.0, 1.5))

        session.cancel_edit()

        assert session.mode is SessionMode.IDLE
        assert session.get_polygon(polygon_id).ring == tuple(TRIANGLE_RING)
        assert surface.layers[polygon_id].coordinates == tuple(TRIANGLE_RING)
        assert TEMP_POLYGON_ID not in surface.layers
        assert surface.markers == {}

    def test_cancel_edit_in_idle_is_noop(self, session: EditSession) -> None:
        session.cancel_edit()
        assert session.mode is SessionMode.IDLE

    def test_edit_unknown_polygon(self, session: EditSession) -> None:
        with pytest.raises(PolygonNotFoundError):
            session.edit_polygon("polygon-9")
        assert session.mode is SessionMode.IDLE

    def test_edit_from_empty_drawing(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        polygon_id = _save_triangle(session, surface)
        session.start_drawing()
        session.edit_polygon(polygon_id)
        assert session.mode is SessionMode.EDITING

    def test_edit_while_drawing_points_rejected(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        polygon_id = _save_triangle(session, surface)
        surface.click(ORIGIN)
        with pytest.raises(SessionStateError, match="edit polygon"):
            session.edit_polygon(polygon_id)
        assert session.buffer_size == 1

    def test_commit_outside_editing_rejected(self, session: EditSession) -> None:
        with pytest.raises(SessionStateError, match="commit edit"):
            session.commit_edit()

    def test_start_drawing_while_editing_rejected(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        polygon_id = _save_triangle(session, surface)
        session.edit_polygon(polygon_id)
        with pytest.raises(SessionStateError) as exc_info:
            session.start_drawing()
        assert exc_info.value.to_error_dict()["code"] == "INVALID_SESSION_STATE"


class TestDelete:
    def test_delete_removes_layer(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        polygon_id = _save_triangle(session, surface)
        session.delete_polygon(polygon_id)
        assert session.list_polygons() == []
        assert polygon_id not in surface.layers
        assert polygon_id not in surface.sources

    def test_delete_unknown(self, session: EditSession, surface: InMemoryMapSurface) -> None:
        _save_triangle(session, surface)
        with pytest.raises(PolygonNotFoundError):
            session.delete_polygon("polygon-9")
        assert len(session.list_polygons()) == 1

    def test_delete_polygon_being_edited_rejected(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        polygon_id = _save_triangle(session, surface)
        session.edit_polygon(polygon_id)
        with pytest.raises(SessionStateError):
            session.delete_polygon(polygon_id)
        assert len(session.list_polygons()) == 1

    def test_delete_other_polygon_while_editing(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        first = _save_triangle(session, surface)
        second = _save_triangle(session, surface)
        session.edit_polygon(first)
        session.delete_polygon(second)
        assert [p.id for p in session.list_polygons()] == [first]
        assert session.mode is SessionMode.EDITING

    def test_new_ids_after_delete(self, session: EditSession, surface: InMemoryMapSurface) -> None:
        first = _save_triangle(session, surface)
        session.delete_polygon(first)
        assert _save_triangle(session, surface) == "polygon-2"


class TestReadViews:
    def test_summary_and_export(self, session: EditSession, surface: InMemoryMapSurface) -> None:
        polygon_id = _save_triangle(session, surface)
        summary = session.polygon_summary(polygon_id)
        assert summary.vertex_count == 3
        collection = session.export_geojson()
        assert collection["type"] == "FeatureCollection"
        assert len(collection["features"]) == 1  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Lifecycle and dispatch
# ---------------------------------------------------------------------------


class TestLifecycle:
    def test_generated_session_id(self) -> None:
        assert EditSession().session_id.startswith("session-")

    def test_open_twice_rejected(self, session: EditSession) -> None:
        with pytest.raises(SessionStateError, match="already bound"):
            session.open(InMemoryMapSurface())

    def test_close_drops_temporary_state(
        self, session: EditSession, surface: InMemoryMapSurface
    ) -> None:
        polygon_id = _save_triangle(session, surface)
        surface.click(ORIGIN)
        surface.click(NORTH)

        session.close()

        assert not session.is_open
        assert surface.markers == {}
        assert TEMP_LINE_ID not in surface.layers
        assert polygon_id in surface.layers
        surface.click(ORIGIN)
        assert session.buffer_size == 0

    def test_closed_session_rejects_commands(self, session: EditSession) -> None:
        session.close()
        session.close()
        with pytest.raises(SessionStateError, match="closed"):
            session.start_drawing()
        with pytest.raises(SessionStateError):
            session.open(InMemoryMapSurface())

    def test_open_renders_saved_polygons(self, config: EditorConfig) -> None:
        session = EditSession(
            config,
            color_assigner=PaletteColorAssigner(),
            projector=lambda p: ScreenPoint(p.longitude * 100, p.latitude * 100),
        )
        session.on_closure_confirmation_needed(lambda ring: True)
        for point in (ORIGIN, NORTH, NORTH_EAST, ORIGIN):
            session.handle_click(point, ScreenPoint(point.longitude * 100, point.latitude * 100))
        assert len(session.list_polygons()) == 1

        surface = InMemoryMapSurface()
        session.open(surface)
        assert set(surface.layers) == {"polygon-1"}


class TestDispatch:
    @pytest.fixture()
    def headless(self, config: EditorConfig) -> EditSession:
        return EditSession(
            config,
            color_assigner=PaletteColorAssigner(),
            projector=lambda p: ScreenPoint(p.longitude * 100, p.latitude * 100),
            session_id="headless",
        )

    @staticmethod
    def _click(point: Point) -> MapClick:
        return MapClick(point=point, screen=ScreenPoint(point.longitude * 100, point.latitude * 100))

    def test_click_event(self, headless: EditSession) -> None:
        effects = headless.dispatch(self._click(ORIGIN))
        assert effects[0] == CreateMarker(marker_id="marker-1", point=ORIGIN)

    def test_closure_without_surface(self, headless: EditSession) -> None:
        for point in (ORIGIN, NORTH, NORTH_EAST):
            headless.dispatch(self._click(point))
        effects = headless.dispatch(
            MapClick(point=Point(0.01, 0.01), screen=ScreenPoint(1.0, 1.0))
        )
        assert headless.mode is SessionMode.CLOSURE_PENDING
        rendered = [e for e in effects if isinstance(e, RenderLayer)]
        assert rendered[-1].layer_id == TEMP_POLYGON_ID
        assert isinstance(effects[-1], ConfirmClosure)

    def test_key_and_drag_events(self, headless: EditSession) -> None:
        headless.dispatch(self._click(ORIGIN))
        headless.dispatch(self._click(NORTH))
        headless.dispatch(MarkerDragEnd(marker_id="marker-2", point=EAST))
        assert headless.working_ring() == [ORIGIN, EAST]
        headless.dispatch(KeyDown(key="Escape"))
        assert headless.working_ring() == [ORIGIN]

    def test_unknown_event(self, headless: EditSession) -> None:
        with pytest.raises(TypeError, match="Unsupported event"):
            headless.dispatch("click")  # type: ignore[arg-type]

    def test_closure_needs_projection(self, config: EditorConfig) -> None:
        session = EditSession(config)
        for point in (ORIGIN, NORTH, NORTH_EAST):
            session.handle_click(point, ScreenPoint(0.0, 0.0))
        with pytest.raises(SessionStateError, match="No projection"):
            session.handle_click(ORIGIN, ScreenPoint(0.0, 0.0))
