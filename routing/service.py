"""
Destination and route coordination.

Owns the selected destination and the current driving route, requests
routes from the place provider as the tracked position moves, and pushes
accepted changes to the render bridge.

Every route request carries a tag (request id, origin, destination).
Only the response to the latest tag is applied; anything older is a
superseded request and is dropped. Selections carry a separate token so
clearing or re-selecting cancels the effect of an in-flight resolve.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from core.exceptions import ProviderUnavailableError
from core.models import Coordinate, Destination, PlaceCandidate, RouteGeometry
from events import Subscribers

if TYPE_CHECKING:
    from collections.abc import Callable

    from core.mapping.interfaces import PlaceSearchProvider
    from render.bridge import RenderBridge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteRequest:
    request_id: int
    origin: Coordinate
    destination: Coordinate


@dataclass(frozen=True)
class RouteSnapshot:
    state: str
    destination: Destination | None
    route: RouteGeometry | None


class RouteCoordinator:
    """State machine over Destination x RouteGeometry."""

    STATE_NO_DESTINATION: ClassVar[str] = "no_destination"
    STATE_RESOLVING: ClassVar[str] = "resolving_destination"
    STATE_HAS_ROUTE: ClassVar[str] = "has_destination_and_route"
    STATE_NO_ROUTE: ClassVar[str] = "has_destination_no_route"

    def __init__(self, places: PlaceSearchProvider, bridge: RenderBridge) -> None:
        self._places = places
        self._bridge = bridge

        self._state = self.STATE_NO_DESTINATION
        self._destination: Destination | None = None
        self._route: RouteGeometry | None = None
        self._origin: Coordinate | None = None

        self._selection = 0
        self._request_ids = itertools.count(1)
        self._latest_request: RouteRequest | None = None
        self._tasks: set[asyncio.Task] = set()
        self._subscribers: Subscribers[RouteSnapshot] = Subscribers("route state")

    @property
    def state(self) -> str:
        return self._state

    @property
    def destination(self) -> Destination | None:
        return self._destination

    @property
    def route(self) -> RouteGeometry | None:
        return self._route

    @property
    def origin(self) -> Coordinate | None:
        return self._origin

    @property
    def has_destination(self) -> bool:
        return self._state in (self.STATE_HAS_ROUTE, self.STATE_NO_ROUTE)

    def snapshot(self) -> RouteSnapshot:
        return RouteSnapshot(self._state, self._destination, self._route)

    def subscribe(
        self,
        callback: Callable[[RouteSnapshot], None],
    ) -> Callable[[], None]:
        return self._subscribers.add(callback)

    def _set_state(self, state: str) -> None:
        if state != self._state:
            logger.debug("Route state %s -> %s", self._state, state)
        self._state = state
        self._subscribers.notify(self.snapshot())

    def _new_request(self, origin: Coordinate, destination: Coordinate) -> RouteRequest:
        request = RouteRequest(next(self._request_ids), origin, destination)
        self._latest_request = request
        return request

    async def _fetch_route(self, request: RouteRequest) -> RouteGeometry | None:
        try:
            return await self._places.route(request.origin, request.destination)
        except ProviderUnavailableError as exc:
            logger.warning(
                "Route request %d failed: %s",
                request.request_id,
                exc.message,
            )
            return None

    def _apply_route(self, request: RouteRequest, route: RouteGeometry | None) -> bool:
        if request != self._latest_request:
            logger.debug("Discarding stale route response %d", request.request_id)
            return False
        if route is None:
            # Keep whatever route is on screen; it is stale but still useful.
            logger.info("No route for request %d, keeping previous", request.request_id)
            return False
        self._route = route
        self._set_state(self.STATE_HAS_ROUTE)
        self._bridge.set_route_geometry(route)
        return True

    async def select(self, candidate: PlaceCandidate) -> Destination | None:
        """Resolve ``candidate`` and compute the first route to it.

        Returns the new Destination, or None if resolution failed or the
        selection was superseded by a newer select or clear while waiting.
        """
        self._selection += 1
        token = self._selection
        had_destination = self._destination is not None or self._route is not None

        self._latest_request = None
        self._destination = None
        self._route = None
        self._set_state(self.STATE_RESOLVING)
        if had_destination:
            self._bridge.set_destination_marker(None)
            self._bridge.set_route_geometry(None)

        name = candidate.selection_label
        try:
            coordinate = await self._places.resolve(name)
        except ProviderUnavailableError as exc:
            logger.warning("Resolving %r failed: %s", name, exc.message)
            coordinate = None

        if token != self._selection:
            logger.debug("Discarding stale resolution for %r", name)
            return None
        if coordinate is None:
            self._set_state(self.STATE_NO_DESTINATION)
            return None

        destination = Destination(name=name, coordinate=coordinate)
        self._destination = destination
        self._set_state(self.STATE_NO_ROUTE)
        self._bridge.set_destination_marker(coordinate)

        origin = self._origin
        if origin is None:
            logger.info("No tracked position yet; route to %r withheld", name)
            self._bridge.fit_viewport([coordinate])
            return destination

        request = self._new_request(origin, coordinate)
        route = await self._fetch_route(request)
        if self._apply_route(request, route):
            self._bridge.fit_viewport([origin, coordinate, *route.coordinates])
        elif token == self._selection:
            # A recompute may have landed while this request was in flight.
            current = self._route
            if current is not None:
                self._bridge.fit_viewport(
                    [current.origin, coordinate, *current.coordinates],
                )
            else:
                self._bridge.fit_viewport([self._origin or origin, coordinate])

        return destination if token == self._selection else None

    def on_position_changed(self, coordinate: Coordinate) -> None:
        """Record the new origin and recompute the route if one is wanted."""
        self._origin = coordinate
        if not self.has_destination or self._destination is None:
            return
        request = self._new_request(coordinate, self._destination.coordinate)
        task = asyncio.get_running_loop().create_task(self._recompute(request))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    async def _recompute(self, request: RouteRequest) -> None:
        route = await self._fetch_route(request)
        self._apply_route(request, route)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Route recomputation failed", exc_info=exc)

    def clear(self) -> None:
        """Drop destination and route; safe to call repeatedly."""
        had_destination = self._destination is not None or self._route is not None
        self._selection += 1
        self._latest_request = None
        self._destination = None
        self._route = None
        self._set_state(self.STATE_NO_DESTINATION)
        if had_destination:
            self._bridge.set_destination_marker(None)
            self._bridge.set_route_geometry(None)

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
