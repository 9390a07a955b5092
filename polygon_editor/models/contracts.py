"""Canonical payload contracts for the host UI boundary.

Every dict the editor hands to its host (polygon listings, GeoJSON
exports, rejection notices) is described here as a ``TypedDict``.  Drift
tests compare these contracts with the keys actually produced by the
models' serialisers.
"""

from __future__ import annotations

from typing import TypedDict


class PolygonPayload(TypedDict):
    """Serialised ``Polygon`` — ``Polygon.to_dict()``."""

    id: str
    ring: list[list[float]]
    closed: bool
    fill_color: str
    outline_color: str
    fill_opacity: float


class PolygonProperties(TypedDict):
    """``properties`` member of an exported polygon feature."""

    id: str
    fill_color: str
    outline_color: str
    fill_opacity: float


class PolygonGeometry(TypedDict):
    type: str
    coordinates: list[list[list[float]]]


class PolygonFeature(TypedDict):
    """GeoJSON Feature produced by ``Polygon.to_geojson_feature()``."""

    type: str
    id: str
    properties: PolygonProperties
    geometry: PolygonGeometry


class PolygonFeatureCollection(TypedDict):
    """GeoJSON FeatureCollection of every stored polygon."""

    type: str
    features: list[PolygonFeature]


class ErrorPayload(TypedDict):
    """Structured error — ``EditorError.to_error_dict()``."""

    category: str
    code: str
    component: str
    message: str
    recoverable: bool
    session_id: str
