"""
Value types shared by the tracker, search, routing and render layers.

Every type here is immutable. State owners replace values wholesale
instead of mutating them, which keeps late asynchronous results from
corrupting what another coroutine already applied.

Key models:
- Coordinate: a validated (lon, lat) pair in degrees
- PlaceCandidate: one autocomplete suggestion
- Destination: the selected place
- RouteGeometry: a driving path tagged with its (origin, destination)
- TrackedPosition: the last accepted device position
- SearchSession: query text, candidates and the staleness generation
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from core.exceptions import ValidationError


@dataclass(frozen=True)
class Coordinate:
    """A longitude/latitude pair in degrees."""

    lon: float
    lat: float

    def __post_init__(self) -> None:
        try:
            lon = float(self.lon)
            lat = float(self.lat)
        except (TypeError, ValueError) as exc:
            msg = "Coordinate values must be numeric"
            raise ValidationError(msg, {"lon": self.lon, "lat": self.lat}) from exc
        if not (-180.0 <= lon <= 180.0 and -90.0 <= lat <= 90.0):
            msg = "Coordinate out of range"
            raise ValidationError(msg, {"lon": lon, "lat": lat})
        object.__setattr__(self, "lon", lon)
        object.__setattr__(self, "lat", lat)

    @classmethod
    def from_sequence(cls, value: Any) -> Coordinate:
        """Build from a GeoJSON-style [lon, lat] sequence."""
        if not isinstance(value, (list, tuple)) or len(value) < 2:
            msg = "Coordinate requires a [lon, lat] sequence"
            raise ValidationError(msg, {"value": value})
        return cls(value[0], value[1])

    def as_list(self) -> list[float]:
        return [self.lon, self.lat]


@dataclass(frozen=True)
class PlaceCandidate:
    """A ranked geocoding suggestion."""

    display_name: str
    label: str
    coordinate: Coordinate

    @property
    def selection_label(self) -> str:
        # Resolve by the full label; fall back to the short name.
        return self.label or self.display_name

    @classmethod
    def from_feature(cls, feature: dict[str, Any]) -> PlaceCandidate:
        properties = feature.get("properties") or {}
        geometry = feature.get("geometry") or {}
        return cls(
            display_name=str(properties.get("name") or ""),
            label=str(properties.get("label") or ""),
            coordinate=Coordinate.from_sequence(geometry.get("coordinates")),
        )


@dataclass(frozen=True)
class Destination:
    name: str
    coordinate: Coordinate


@dataclass(frozen=True)
class RouteGeometry:
    """Ordered path coordinates for one (origin, destination) pair."""

    origin: Coordinate
    destination: Coordinate
    coordinates: tuple[Coordinate, ...] = ()

    def is_for(self, origin: Coordinate, destination: Coordinate) -> bool:
        return self.origin == origin and self.destination == destination

    def to_feature_collection(self) -> dict[str, Any]:
        """GeoJSON FeatureCollection holding the path as one LineString."""
        return {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "geometry": {
                        "type": "LineString",
                        "coordinates": [point.as_list() for point in self.coordinates],
                    },
                    "properties": {},
                },
            ],
        }


def empty_feature_collection() -> dict[str, Any]:
    return {"type": "FeatureCollection", "features": []}


@dataclass(frozen=True)
class TrackedPosition:
    coordinate: Coordinate
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class SearchSession:
    """Snapshot of the search box state.

    ``generation`` increases on every query change so a response for a
    superseded query can be recognised and dropped.
    """

    query_text: str = ""
    candidates: tuple[PlaceCandidate, ...] = ()
    visible: bool = False
    generation: int = 0


__all__ = [
    "Coordinate",
    "Destination",
    "PlaceCandidate",
    "RouteGeometry",
    "SearchSession",
    "TrackedPosition",
    "empty_feature_collection",
]
