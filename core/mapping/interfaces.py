"""
Collaborator interfaces for place search, device location and map drawing.
"""

from collections.abc import Callable
from typing import Any, Protocol

from core.models import Coordinate, PlaceCandidate, RouteGeometry


class PlaceSearchProvider(Protocol):
    """Interface for geocoding and routing services."""

    async def autocomplete(self, text: str) -> list[PlaceCandidate]:
        """Return up to five candidates for partial input."""
        ...

    async def resolve(self, label: str) -> Coordinate | None:
        """Resolve a place label into a coordinate."""
        ...

    async def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
    ) -> RouteGeometry | None:
        """Calculate a driving route between two points."""
        ...


class PositionWatch(Protocol):
    """Handle for a running continuous position stream."""

    def remove(self) -> None:
        """Stop the underlying stream."""
        ...


class LocationProvider(Protocol):
    """Interface for the platform location service.

    Implementations raise PermissionDeniedError when access is refused.
    """

    async def get_current_position(self, *, high_accuracy: bool = True) -> Coordinate:
        """Acquire a single position fix."""
        ...

    async def watch_position(
        self,
        callback: Callable[[Coordinate], None],
        *,
        interval_s: float,
        distance_m: float,
    ) -> PositionWatch:
        """Start delivering raw positions to ``callback``."""
        ...


class MapHandle(Protocol):
    """In-process map object driven by InProcessRenderBridge."""

    def set_user_marker(self, lon: float, lat: float) -> None: ...

    def set_destination_marker(self, lon: float, lat: float) -> None: ...

    def remove_destination_marker(self) -> None: ...

    def set_route_data(self, feature_collection: dict[str, Any]) -> None: ...

    def fit_bounds(self, bounds: list[list[float]], *, padding: int) -> None: ...
