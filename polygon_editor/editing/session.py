"""Edit session: the polygon capture and edit state machine.

One session exists per map instance.  It owns the working ring
(``PointBuffer``) and the saved polygons (``PolygonStore``) and is the
only thing that mutates them.  Map input arrives as events, host UI
input as commands; both are dispatched into explicit transitions that
push render effects, which the session returns and, when bound to a
surface, applies.

States::

    IDLE --click--> DRAWING --click near first vertex--> CLOSURE_PENDING
      ^                                                     |
      +------------------ save / discard -------------------+
    IDLE --edit_polygon(id)--> EDITING(id) --commit_edit--> IDLE

``CLOSURE_PENDING`` replaces a modal confirm dialog: while it lasts the
session ignores clicks, Escape and marker drags.  A registered
confirmation handler answers synchronously (``True`` saves, ``False``
discards) or returns ``None`` to defer to ``resolve_closure``.  A failing
handler, ``cancel_closure``, ``cancel_edit`` and ``close`` all discard.
"""

from __future__ import annotations

import enum
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, NoReturn, TypeVar

from polygon_editor.core.config import EditorConfig
from polygon_editor.core.constants import ESCAPE_KEY, TEMP_POLYGON_ID
from polygon_editor.core.exceptions import InvalidRingError, SessionStateError
from polygon_editor.editing.colors import get_color_assigner
from polygon_editor.editing.point_buffer import PointBuffer
from polygon_editor.editing.polygon_store import PolygonStore
from polygon_editor.editing.proximity import ProximityDetector
from polygon_editor.editing.ring import close_ring
from polygon_editor.models.effects import (
    ConfirmClosure,
    EffectQueue,
    LayerStyle,
    MoveMarker,
    Notice,
    RemoveLayer,
    RenderLayer,
)
from polygon_editor.models.events import KeyDown, MapClick, MarkerDragEnd
from polygon_editor.surface.render import apply_effects

if TYPE_CHECKING:
    from polygon_editor.editing.colors import ColorAssigner
    from polygon_editor.models.effects import Effect
    from polygon_editor.models.events import MapEvent
    from polygon_editor.models.geo import Point, ScreenPoint
    from polygon_editor.models.metadata import PolygonSummary
    from polygon_editor.models.polygon import Polygon
    from polygon_editor.surface.base import MapSurface

logger = logging.getLogger("polygon_editor.editing.session")

T = TypeVar("T")

ConfirmationHandler = Callable[[list["Point"]], "bool | None"]
NoticeHandler = Callable[[Notice], object]
Projector = Callable[["Point"], "ScreenPoint"]


class SessionMode(enum.Enum):
    """Mode of the edit session.

    Values:
        IDLE:            No working ring.
        DRAWING:         Collecting vertices of a new polygon.
        EDITING:         Working ring is a copy of a saved polygon.
        CLOSURE_PENDING: New ring closed, waiting for save/discard.
    """

    IDLE = "idle"
    DRAWING = "drawing"
    EDITING = "editing"
    CLOSURE_PENDING = "closure_pending"


@dataclass(frozen=True, slots=True)
class SessionState:
    """Immutable snapshot of the session's control state.

    Attributes:
        mode: Current mode.
        target_id: Polygon being edited (``EDITING`` only).
        pending_ring: Closed ring awaiting confirmation (``CLOSURE_PENDING`` only).
    """

    mode: SessionMode = SessionMode.IDLE
    target_id: str | None = None
    pending_ring: tuple[Point, ...] = ()


IDLE_STATE = SessionState()


class EditSession:
    """Interactive polygon capture and edit state machine.

    Args:
        config: Editor configuration (defaults to ``EditorConfig()``).
        color_assigner: Fill colour strategy; defaults to the one named by
            ``config.color_strategy``.
        projector: Geographic-to-screen projection used for closure
            detection when the session is not bound to a surface.
        session_id: Identifier used in logs and error payloads.
    """

    def __init__(
        self,
        config: EditorConfig | None = None,
        *,
        color_assigner: ColorAssigner | None = None,
        projector: Projector | None = None,
        session_id: str = "",
    ) -> None:
        self._config = config or EditorConfig()
        self.session_id = session_id or f"session-{uuid.uuid4().hex[:12]}"

        self._effects = EffectQueue()
        self._proximity = ProximityDetector(self._config.closure_tolerance_px)
        self._buffer = PointBuffer(
            self._config.geo_bounds,
            self._effects,
            line_style=LayerStyle(
                line_color=self._config.temp_line_color,
                line_width=self._config.temp_line_width,
            ),
            polygon_style=self._temp_polygon_style(),
        )
        self._store = PolygonStore(
            self._effects,
            color_assigner=color_assigner
            or get_color_assigner(self._config.color_strategy, self._config.color_seed),
            fill_opacity=self._config.fill_opacity,
        )

        self._state = IDLE_STATE
        self._projector = projector
        self._surface: MapSurface | None = None
        self._closed = False
        self._confirm_handler: ConfirmationHandler | None = None
        self._notice_handlers: list[NoticeHandler] = []
        self._batch: list[Effect] | None = None
        self.last_effects: list[Effect] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def mode(self) -> SessionMode:
        return self._state.mode

    @property
    def config(self) -> EditorConfig:
        return self._config

    @property
    def buffer_size(self) -> int:
        """Number of vertices in the working ring."""
        return len(self._buffer)

    @property
    def is_open(self) -> bool:
        """Whether the session is bound to a map surface."""
        return self._surface is not None

    def working_ring(self) -> list[Point]:
        """Return a copy of the working ring."""
        return self._buffer.snapshot()

    def marker_ids(self) -> list[str]:
        """Return the working-ring marker ids, in vertex order."""
        return self._buffer.marker_ids()

    def list_polygons(self) -> list[Polygon]:
        """Return every saved polygon in insertion order."""
        return self._store.list()

    def get_polygon(self, polygon_id: str) -> Polygon:
        """Return a saved polygon.

        Raises:
            PolygonNotFoundError: If *polygon_id* is unknown.
        """
        return self._store.get(polygon_id)

    def polygon_summary(self, polygon_id: str) -> PolygonSummary:
        """Return area, centroid and bounding box of a saved polygon.

        Raises:
            PolygonNotFoundError: If *polygon_id* is unknown.
        """
        return self._store.summary(polygon_id)

    def export_geojson(self) -> dict[str, object]:
        """Return all saved polygons as a GeoJSON FeatureCollection."""
        return self._store.to_feature_collection()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self, surface: MapSurface) -> None:
        """Bind the session to *surface* and subscribe to its events.

        Saved polygons are rendered on the new surface.

        Raises:
            SessionStateError: If the session is closed or already open.
        """
        self._ensure_usable()
        if self._surface is not None:
            msg = "Session is already bound to a map surface"
            raise SessionStateError(msg, session_id=self.session_id)

        self._surface = surface
        self._projector = surface.project
        surface.on_click(self.handle_click)
        surface.on_key_down(self.handle_key_down)
        surface.on_marker_drag_end(self.handle_marker_drag_end)

        def _render_saved() -> None:
            for polygon in self._store.list():
                self._store.render(polygon.id)

        self._run(_render_saved)
        logger.info("Session opened | session=%s | polygons=%d", self.session_id, len(self._store))

    def close(self) -> None:
        """Discard any working ring, drop temporary renders and unsubscribe.

        A closed session rejects every further event and command.
        """
        if self._closed:
            return

        def _teardown() -> None:
            if self._state.mode is not SessionMode.IDLE:
                self._discard()
            else:
                self._buffer.clear()

        self._run(_teardown)
        if self._surface is not None:
            self._surface.unsubscribe(self.handle_click)
            self._surface.unsubscribe(self.handle_key_down)
            self._surface.unsubscribe(self.handle_marker_drag_end)
        self._surface = None
        self._closed = True
        logger.info("Session closed | session=%s", self.session_id)

    # ------------------------------------------------------------------
    # Host channels
    # ------------------------------------------------------------------

    def on_closure_confirmation_needed(self, handler: ConfirmationHandler | None) -> None:
        """Register the save/discard callback (``None`` to unregister)."""
        self._confirm_handler = handler

    def on_notice(self, handler: NoticeHandler) -> None:
        """Register a receiver of user-visible rejection notices."""
        self._notice_handlers.append(handler)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def dispatch(self, event: MapEvent) -> list[Effect]:
        """Dispatch a map event and return the effects it produced.

        Raises:
            TypeError: If *event* is not a known event type.
        """
        if isinstance(event, MapClick):
            return self.handle_click(event.point, event.screen)
        if isinstance(event, KeyDown):
            return self.handle_key_down(event.key)
        if isinstance(event, MarkerDragEnd):
            return self.handle_marker_drag_end(event.marker_id, event.point)
        msg = f"Unsupported event: {type(event).__name__}"
        raise TypeError(msg)

    def handle_click(self, point: Point, screen: ScreenPoint) -> list[Effect]:
        self._run(lambda: self._on_click(point, screen))
        return self.last_effects

    def handle_key_down(self, key: str) -> list[Effect]:
        self._run(lambda: self._on_key_down(key))
        return self.last_effects

    def handle_marker_drag_end(self, marker_id: str, point: Point) -> list[Effect]:
        self._run(lambda: self._on_marker_drag_end(marker_id, point))
        return self.last_effects

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_drawing(self) -> None:
        """Enter ``DRAWING`` with an empty working ring.

        Raises:
            SessionStateError: While editing or awaiting confirmation.
        """

        def _start() -> None:
            mode = self._state.mode
            if mode is SessionMode.DRAWING:
                return
            if mode is not SessionMode.IDLE:
                self._wrong_state("start drawing")
            self._state = SessionState(mode=SessionMode.DRAWING)
            logger.info("Drawing started | session=%s", self.session_id)

        self._run(_start)

    def edit_polygon(self, polygon_id: str) -> None:
        """Load a saved polygon into the working ring for editing.

        Allowed from ``IDLE`` or from ``DRAWING`` with an empty ring.

        Raises:
            SessionStateError: In any other state.
            PolygonNotFoundError: If *polygon_id* is unknown.
        """

        def _edit() -> None:
            mode = self._state.mode
            drawing_nothing = mode is SessionMode.DRAWING and len(self._buffer) == 0
            if mode is not SessionMode.IDLE and not drawing_nothing:
                self._wrong_state(f"edit polygon '{polygon_id}'")

            polygon = self._store.get(polygon_id)
            self._buffer.live_polygon = True
            self._buffer.load(polygon.ring)
            self._state = SessionState(mode=SessionMode.EDITING, target_id=polygon_id)
            logger.info(
                "Editing started | session=%s | polygon=%s | vertices=%d",
                self.session_id,
                polygon_id,
                len(polygon.ring),
            )

        self._run(_edit)

    def commit_edit(self) -> Polygon:
        """Write the working ring back to the polygon being edited.

        An open ring with at least 3 distinct vertices is closed first.

        Returns:
            The updated polygon.

        Raises:
            SessionStateError: If the session is not editing.
            InvalidRingError: If the working ring cannot form a polygon;
                the session stays in ``EDITING`` with the ring retained.
        """

        def _commit() -> Polygon:
            target_id = self._state.target_id
            if self._state.mode is not SessionMode.EDITING or target_id is None:
                self._wrong_state("commit edit")

            try:
                ring = close_ring(self._buffer.snapshot(), f"polygon '{target_id}'")
                polygon = self._store.update(target_id, ring)
            except InvalidRingError as exc:
                exc.session_id = self.session_id
                logger.warning(
                    "Commit rejected | session=%s | polygon=%s | %s",
                    self.session_id,
                    target_id,
                    exc.message,
                )
                raise

            self._buffer.clear()
            self._state = IDLE_STATE
            return polygon

        return self._run(_commit)

    def cancel_edit(self) -> None:
        """Abandon the working ring (drawing, editing or pending) and return to ``IDLE``.

        Saved polygons are left untouched.
        """

        def _cancel() -> None:
            if self._state.mode is SessionMode.IDLE:
                return
            logger.info(
                "Working ring cancelled | session=%s | mode=%s",
                self.session_id,
                self._state.mode.value,
            )
            self._discard()

        self._run(_cancel)

    def delete_polygon(self, polygon_id: str) -> Polygon:
        """Delete a saved polygon and its map layer.

        Raises:
            SessionStateError: If *polygon_id* is currently being edited.
            PolygonNotFoundError: If *polygon_id* is unknown.
        """

        def _delete() -> Polygon:
            if self._state.mode is SessionMode.EDITING and self._state.target_id == polygon_id:
                self._wrong_state(f"delete polygon '{polygon_id}' while editing it")
            return self._store.delete(polygon_id)

        return self._run(_delete)

    def resolve_closure(self, save: bool) -> Polygon | None:
        """Answer a pending closure: save the ring or discard it.

        Returns:
            The saved polygon, or ``None`` on discard or rejected save.

        Raises:
            SessionStateError: If no closure is pending.
        """

        def _resolve() -> Polygon | None:
            if self._state.mode is not SessionMode.CLOSURE_PENDING:
                self._wrong_state("resolve closure")
            return self._resolve(save)

        return self._run(_resolve)

    def cancel_closure(self) -> None:
        """Discard a pending closure.

        Raises:
            SessionStateError: If no closure is pending.
        """
        self.resolve_closure(False)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _on_click(self, point: Point, screen: ScreenPoint) -> None:
        mode = self._state.mode
        if mode is SessionMode.CLOSURE_PENDING:
            logger.warning("Click ignored | session=%s | confirmation pending", self.session_id)
            return
        if mode is SessionMode.EDITING:
            logger.debug("Click ignored | session=%s | editing", self.session_id)
            return

        if (
            mode is SessionMode.DRAWING
            and len(self._buffer) >= 3
            and self._is_near_first_point(screen)
        ):
            self._close_ring()
            return

        if self._buffer.add_point(point) and mode is SessionMode.IDLE:
            self._state = SessionState(mode=SessionMode.DRAWING)
            logger.info("Drawing started | session=%s", self.session_id)

    def _on_key_down(self, key: str) -> None:
        if key != ESCAPE_KEY:
            return
        mode = self._state.mode
        if mode is SessionMode.CLOSURE_PENDING:
            logger.warning("Escape ignored | session=%s | confirmation pending", self.session_id)
            return
        if mode in (SessionMode.DRAWING, SessionMode.EDITING):
            self._buffer.remove_last()

    def _on_marker_drag_end(self, marker_id: str, point: Point) -> None:
        mode = self._state.mode
        if mode is SessionMode.CLOSURE_PENDING:
            previous = self._buffer.position_of(marker_id)
            if previous is not None:
                self._effects.push(MoveMarker(marker_id=marker_id, point=previous))
            logger.warning("Drag ignored | session=%s | confirmation pending", self.session_id)
            return
        if mode in (SessionMode.DRAWING, SessionMode.EDITING):
            self._buffer.move_point(marker_id, point)

    def _close_ring(self) -> None:
        self._buffer.close_ring()
        ring = tuple(self._buffer.snapshot())
        self._effects.push(
            RenderLayer(
                layer_id=TEMP_POLYGON_ID,
                geometry_type="Polygon",
                coordinates=ring,
                style=self._temp_polygon_style(),
            )
        )
        self._effects.push(ConfirmClosure(ring=ring))
        self._state = SessionState(mode=SessionMode.CLOSURE_PENDING, pending_ring=ring)
        logger.info("Closure detected | session=%s | vertices=%d", self.session_id, len(ring) - 1)

        # Render the closed ring before asking.
        self._flush()
        self._ask_confirmation(ring)

    def _ask_confirmation(self, ring: tuple[Point, ...]) -> None:
        handler = self._confirm_handler
        if handler is None:
            logger.info("Awaiting closure confirmation | session=%s", self.session_id)
            return

        try:
            answer = handler(list(ring))
        except Exception:
            logger.exception(
                "Confirmation handler failed | session=%s | discarding ring", self.session_id
            )
            answer = False

        if self._state.mode is not SessionMode.CLOSURE_PENDING:
            # Handler resolved the closure itself.
            return
        if answer is None:
            logger.info("Closure confirmation deferred | session=%s", self.session_id)
            return
        self._resolve(bool(answer))

    def _resolve(self, save: bool) -> Polygon | None:
        ring = self._state.pending_ring
        if not save:
            logger.info("Closure discarded | session=%s", self.session_id)
            self._discard()
            return None

        try:
            polygon = self._store.save(ring)
        except InvalidRingError as exc:
            # Reopen the ring so the user can fix it.
            self._buffer.remove_last()
            self._effects.push(RemoveLayer(layer_id=TEMP_POLYGON_ID))
            self._state = SessionState(mode=SessionMode.DRAWING)
            self._notify(exc)
            return None

        self._buffer.clear()
        self._state = IDLE_STATE
        return polygon

    def _discard(self) -> None:
        target_id = self._state.target_id
        self._buffer.clear()
        self._state = IDLE_STATE
        if target_id is not None and target_id in self._store:
            self._store.render(target_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_near_first_point(self, screen: ScreenPoint) -> bool:
        first = self._buffer.first
        if first is None:
            return False
        if self._projector is None:
            msg = "No projection available: open the session on a map surface or pass a projector"
            raise SessionStateError(msg, session_id=self.session_id)
        return self._proximity.is_near(screen, self._projector(first))

    def _temp_polygon_style(self) -> LayerStyle:
        return LayerStyle(
            fill_color=self._config.temp_fill_color,
            fill_opacity=self._config.fill_opacity,
        )

    def _notify(self, error: InvalidRingError) -> None:
        error.session_id = self.session_id
        logger.warning("Rejected | session=%s | code=%s | %s", self.session_id, error.code, error.message)
        self._effects.push(Notice(code=error.code, message=error.message, error=error.to_error_dict()))

    def _wrong_state(self, action: str) -> NoReturn:
        msg = f"Cannot {action} in state {self._state.mode.value}"
        raise SessionStateError(msg, session_id=self.session_id)

    def _ensure_usable(self) -> None:
        if self._closed:
            msg = "Session is closed"
            raise SessionStateError(msg, session_id=self.session_id)

    def _run(self, action: Callable[[], T]) -> T:
        """Run a transition and flush the effects it produced.

        Nested runs (a confirmation handler calling back into the session)
        share the outermost batch.
        """
        self._ensure_usable()
        outer = self._batch is None
        if outer:
            self._batch = []
        try:
            return action()
        finally:
            try:
                self._flush()
            finally:
                if outer:
                    self.last_effects = self._batch or []
                    self._batch = None

    def _flush(self) -> None:
        items = self._effects.drain()
        if not items:
            return
        if self._batch is not None:
            self._batch.extend(items)
        if self._surface is not None:
            apply_effects(self._surface, items)
        for item in items:
            if isinstance(item, Notice):
                for handler in self._notice_handlers:
                    try:
                        handler(item)
                    except Exception:
                        logger.exception(
                            "Notice handler failed | session=%s | code=%s",
                            self.session_id,
                            item.code,
                        )
