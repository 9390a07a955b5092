"""Unified editor exception taxonomy.

Every domain exception inherits from ``EditorError`` and carries
structured context fields so the host UI can decide how to surface a
rejection (toast, dialog, log line) without parsing message text.

Taxonomy categories
-------------------
- ``ValidationError`` — bad input geometry or configuration.
- ``NotFoundError``   — operation on an unknown polygon id.
- ``StateError``      — command issued while the session is in the wrong state.

None of these is fatal: the session stays usable after any of them.
Every exception exposes ``to_error_dict()`` for a stable structured
payload suitable for user-visible notices and logging.
"""

from __future__ import annotations


class EditorError(Exception):
    """Base exception for all editor-domain errors.

    Attributes:
        message: Human-readable error description.
        component: Component that rejected the operation
            (e.g. ``"point_buffer"``, ``"polygon_store"``).
        code: Machine-readable error code (e.g. ``"OUT_OF_BOUNDS"``).
        session_id: Identifier of the edit session, when known.
    """

    #: Default component for subclasses (override via class attribute or kwarg).
    default_component: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        component: str = "",
        code: str = "",
        session_id: str = "",
    ) -> None:
        self.message = message
        self.component = component or self.default_component
        self.code = code or self.default_code
        self.session_id = session_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, NotFoundError):
            return "not_found"
        if isinstance(self, StateError):
            return "state"
        return "editor"

    @property
    def recoverable(self) -> bool:
        """Editor errors never end the session."""
        return True

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "component": self.component,
            "message": self.message,
            "recoverable": self.recoverable,
            "session_id": self.session_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(EditorError):
    """Input geometry or configuration failed validation."""


class NotFoundError(EditorError):
    """A referenced entity does not exist."""


class StateError(EditorError):
    """The command is not allowed in the current session state."""


# ---------------------------------------------------------------------------
# Concrete errors
# ---------------------------------------------------------------------------


class OutOfBoundsError(ValidationError):
    """A point or marker drag fell outside the configured region."""

    default_component = "point_buffer"
    default_code = "OUT_OF_BOUNDS"


class InvalidRingError(ValidationError):
    """A ring is not a closed, simple polygon with at least 3 distinct vertices."""

    default_component = "polygon_store"
    default_code = "INVALID_RING"


class PolygonNotFoundError(NotFoundError):
    """No stored polygon has the requested id.

    Attributes:
        polygon_id: The id that was looked up.
    """

    default_component = "polygon_store"
    default_code = "POLYGON_NOT_FOUND"

    def __init__(self, polygon_id: str, **kwargs: object) -> None:
        self.polygon_id = polygon_id
        super().__init__(f"Polygon '{polygon_id}' not found", **kwargs)  # type: ignore[arg-type]


class SessionStateError(StateError):
    """A host command was issued in a state that does not accept it."""

    default_component = "edit_session"
    default_code = "INVALID_SESSION_STATE"
