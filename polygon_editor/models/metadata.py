"""Pydantic summary model for a saved polygon.

Gives the host UI the measurements it shows next to each polygon in the
list panel: geodesic area, centroid, bounding box and vertex count.  All
coordinates are WGS 84 (EPSG:4326); area is in hectares.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

SCHEMA_VERSION = "polygon-summary-v1"


class PolygonSummary(BaseModel):
    """Measurements of one stored polygon.

    Attributes:
        polygon_id: Store id of the polygon.
        coordinates: GeoJSON-style ``[exterior_ring]`` of ``[lon, lat]`` pairs.
        vertex_count: Distinct vertices (closing vertex not counted).
        area_hectares: Geodesic area on the WGS 84 ellipsoid.
        perimeter_m: Geodesic perimeter in metres.
        centroid: ``[lon, lat]``.
        bounding_box: ``[min_lon, min_lat, max_lon, max_lat]``.
        fill_color: Fill colour assigned at save time.
        crs: Coordinate reference system EPSG code.
    """

    schema_version: str = Field(default=SCHEMA_VERSION, alias="$schema")
    polygon_id: str
    coordinates: list[list[list[float]]] = Field(default_factory=list)
    vertex_count: int = 0
    area_hectares: float = 0.0
    perimeter_m: float = 0.0
    centroid: list[float] = Field(default_factory=list)
    bounding_box: list[float] = Field(default_factory=list)
    fill_color: str = ""
    crs: str = "EPSG:4326"

    model_config = {"populate_by_name": True}

    def to_json(self, *, indent: int = 2) -> str:
        """Serialise to a JSON string using the ``$schema`` alias."""
        return self.model_dump_json(indent=indent, by_alias=True)

    def to_dict(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)  # type: ignore[return-value]
