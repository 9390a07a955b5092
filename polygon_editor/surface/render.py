"""Apply declarative effects to a map surface."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from polygon_editor.models.effects import (
    ConfirmClosure,
    CreateMarker,
    MoveMarker,
    Notice,
    RemoveLayer,
    RemoveMarker,
    RenderLayer,
)

if TYPE_CHECKING:
    from polygon_editor.models.effects import Effect
    from polygon_editor.surface.base import MapSurface

logger = logging.getLogger("polygon_editor.surface.render")


def apply_effects(surface: MapSurface, effects: Iterable[Effect]) -> int:
    """Translate *effects* into surface calls, in order.

    A rendered layer replaces any existing layer and source of the same
    id.  Notices and confirmation requests are host concerns and are
    skipped.

    Returns:
        Number of effects applied to the surface.
    """
    applied = 0
    for effect in effects:
        if isinstance(effect, RenderLayer):
            remove_layer_and_source(surface, effect.layer_id)
            surface.add_or_replace_layer(
                effect.layer_id,
                effect.geometry_type,
                effect.coordinates,
                effect.style,
            )
        elif isinstance(effect, RemoveLayer):
            remove_layer_and_source(surface, effect.layer_id)
        elif isinstance(effect, CreateMarker):
            surface.create_marker(effect.marker_id, effect.point, effect.draggable)
        elif isinstance(effect, MoveMarker):
            surface.set_marker_position(effect.marker_id, effect.point)
        elif isinstance(effect, RemoveMarker):
            surface.remove_marker(effect.marker_id)
        elif isinstance(effect, (Notice, ConfirmClosure)):
            continue
        else:
            msg = f"Unsupported effect: {type(effect).__name__}"
            raise TypeError(msg)
        applied += 1

    logger.debug("Effects applied | count=%d", applied)
    return applied


def remove_layer_and_source(surface: MapSurface, layer_id: str) -> bool:
    """Remove layer and source *layer_id* when the source exists.

    Returns:
        ``True`` if something was removed.
    """
    if not surface.has_source(layer_id):
        return False
    surface.remove_layer(layer_id)
    surface.remove_source(layer_id)
    return True
