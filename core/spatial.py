"""
Spatial utilities.

Centralizes coordinate validation, the planar significant-change filter
and bounding boxes used to fit the render viewport.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any

from core.constants import METERS_PER_DEGREE
from core.models import Coordinate

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)


class GeometryService:
    """Coordinate helpers for provider payloads and viewport fitting."""

    @staticmethod
    def validate_coordinate_pair(
        coord: Sequence[Any],
    ) -> tuple[bool, list[float] | None]:
        """Validate a [lon, lat] coordinate pair."""
        if not isinstance(coord, (list, tuple)) or len(coord) < 2:
            return False, None
        try:
            lon = float(coord[0])
            lat = float(coord[1])
        except (TypeError, ValueError, IndexError):
            return False, None
        if not (-180 <= lon <= 180 and -90 <= lat <= 90):
            return False, None
        return True, [lon, lat]

    @staticmethod
    def coerce_coordinates(points: Iterable[Any]) -> tuple[Coordinate, ...]:
        """Convert raw [lon, lat] points, skipping malformed ones."""
        normalized: list[Coordinate] = []
        skipped = 0
        for point in points:
            valid, pair = GeometryService.validate_coordinate_pair(point)
            if not valid or pair is None:
                skipped += 1
                continue
            normalized.append(Coordinate(pair[0], pair[1]))
        if skipped:
            logger.debug("Skipped %d malformed coordinates", skipped)
        return tuple(normalized)

    @staticmethod
    def bounding_box(
        coordinates: Iterable[Coordinate],
    ) -> list[list[float]] | None:
        """Return [[min_lon, min_lat], [max_lon, max_lat]] or None if empty."""
        points = list(coordinates)
        if not points:
            return None
        lons = [point.lon for point in points]
        lats = [point.lat for point in points]
        return [[min(lons), min(lats)], [max(lons), max(lats)]]


class GeoFilter:
    """Significant-change filter over a planar degrees approximation.

    Not geodesic: ``sqrt(dlon^2 + dlat^2) * 111000`` is close enough to
    suppress jitter at city scale.
    """

    @staticmethod
    def planar_distance_m(a: Coordinate, b: Coordinate) -> float:
        return math.hypot(b.lon - a.lon, b.lat - a.lat) * METERS_PER_DEGREE

    @staticmethod
    def accept(
        current: Coordinate | None,
        candidate: Coordinate,
        threshold_m: float,
    ) -> bool:
        if current is None:
            return True
        return GeoFilter.planar_distance_m(current, candidate) >= threshold_m
