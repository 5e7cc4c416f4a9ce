"""
Navigation engine.

Wires location tracking, place search, destination routing and the render
bridge into one object a host screen can drive:

    position fix -> LocationTracker -> bridge marker + RouteCoordinator
    keystrokes   -> SearchDebouncer -> candidates
    selection    -> RouteCoordinator -> marker, route, viewport

The engine never lets location or network failures escape. They are
logged and reflected in ``location_error`` or in empty results.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.exceptions import (
    AcquisitionTimeoutError,
    LocationError,
    PermissionDeniedError,
)
from routing.service import RouteCoordinator
from search.services.search_service import SearchDebouncer
from tracking.services.location_tracker import LocationTracker, TrackingSubscription

if TYPE_CHECKING:
    from collections.abc import Callable

    from core.mapping.interfaces import LocationProvider, PlaceSearchProvider
    from core.models import (
        Coordinate,
        Destination,
        PlaceCandidate,
        RouteGeometry,
        SearchSession,
        TrackedPosition,
    )
    from render.bridge import RenderBridge

logger = logging.getLogger(__name__)


class NavigationEngine:
    def __init__(
        self,
        places: PlaceSearchProvider,
        location_provider: LocationProvider,
        bridge: RenderBridge,
        *,
        settle_seconds: float | None = None,
        acquisition_timeout: float | None = None,
    ) -> None:
        self._bridge = bridge
        self._tracker = LocationTracker(
            location_provider,
            acquisition_timeout=acquisition_timeout,
        )
        self._search = SearchDebouncer(places, settle_seconds=settle_seconds)
        self._routes = RouteCoordinator(places, bridge)

        self._loading = True
        self._location_error: LocationError | None = None
        self._subscription: TrackingSubscription | None = None
        self._unsubscribe: list[Callable[[], None]] = [
            self._tracker.subscribe(self._on_position_accepted),
            bridge.on_ready(self._resend_state),
        ]

    # -- accessors -----------------------------------------------------

    @property
    def position(self) -> TrackedPosition | None:
        return self._tracker.position

    @property
    def search_session(self) -> SearchSession:
        return self._search.session

    @property
    def destination(self) -> Destination | None:
        return self._routes.destination

    @property
    def route(self) -> RouteGeometry | None:
        return self._routes.route

    @property
    def route_state(self) -> str:
        return self._routes.state

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def location_error(self) -> LocationError | None:
        return self._location_error

    @property
    def tracker(self) -> LocationTracker:
        return self._tracker

    @property
    def search(self) -> SearchDebouncer:
        return self._search

    @property
    def routes(self) -> RouteCoordinator:
        return self._routes

    # -- wiring --------------------------------------------------------

    def _on_position_accepted(self, coordinate: Coordinate) -> None:
        self._bridge.set_tracked_position(coordinate)
        self._routes.on_position_changed(coordinate)

    def _resend_state(self) -> None:
        position = self._tracker.position
        if position is not None:
            self._bridge.set_tracked_position(position.coordinate)
        destination = self._routes.destination
        if destination is not None:
            self._bridge.set_destination_marker(destination.coordinate)
        route = self._routes.route
        if route is not None:
            self._bridge.set_route_geometry(route)

    # -- operations ----------------------------------------------------

    async def start(self) -> None:
        """Acquire the first fix, then follow the device continuously.

        Without a fix the engine still serves search, but routes are
        withheld until a position arrives through ``update_position``.
        """
        try:
            await self._tracker.acquire_once()
            self._location_error = None
        except (PermissionDeniedError, AcquisitionTimeoutError) as exc:
            logger.warning("Initial location unavailable: %s", exc.message)
            self._location_error = exc
        finally:
            self._loading = False

        if self._tracker.position is None or self._tracker.is_tracking:
            return
        try:
            self._subscription = await self._tracker.start_continuous()
        except PermissionDeniedError as exc:
            logger.warning("Continuous tracking unavailable: %s", exc.message)
            self._location_error = exc

    def on_query_changed(self, text: str) -> None:
        self._search.on_query_changed(text)

    async def select_candidate(self, candidate: PlaceCandidate) -> Destination | None:
        self._search.accept_selection(candidate.selection_label)
        return await self._routes.select(candidate)

    async def clear_destination(self) -> None:
        self._routes.clear()
        self._search.clear()

    def update_position(self, coordinate: Coordinate) -> bool:
        return self._tracker.update_position(coordinate)

    async def wait_idle(self) -> None:
        """Wait for pending searches, route work and bridge delivery."""
        await self._search.wait_idle()
        await self._routes.wait_idle()
        await self._bridge.drain()

    async def stop(self) -> None:
        self._tracker.stop()
        self._subscription = None
        self._search.close()
        self._routes.close()
        await self._bridge.drain()
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe.clear()
        self._bridge.close()
        logger.info("Navigation engine stopped")
