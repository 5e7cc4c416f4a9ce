"""
Render bridge contract and adapters.

The engine pushes state through four fire-and-forget calls. It never reads
rendering state back and never sees far-side errors. Each bridge gates on
the surface's ready signal itself: calls made before readiness are queued
(bounded, oldest dropped first) and flushed in order once the surface is
ready, after which ready listeners run so the engine can resend current
state.

Two adapters share the contract:
- InProcessRenderBridge drives a map object living in the same process.
- MessageRenderBridge serializes commands to JSON and hands them to an
  async transport, one at a time, in issue order.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import TYPE_CHECKING, Any

from core.constants import RENDER_QUEUE_LIMIT
from core.models import Coordinate, RouteGeometry, empty_feature_collection
from core.spatial import GeometryService
from events import Subscribers
from render.schemas import (
    FitViewport,
    RenderCommand,
    SetDestinationMarker,
    SetRouteGeometry,
    SetTrackedPosition,
    parse_surface_message,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from core.mapping.interfaces import MapHandle

logger = logging.getLogger(__name__)


class RenderBridge(ABC):
    def __init__(self, *, queue_limit: int = RENDER_QUEUE_LIMIT) -> None:
        self._ready = False
        self._closed = False
        self._pending: deque[RenderCommand] = deque(maxlen=queue_limit)
        self._ready_subscribers: Subscribers[None] = Subscribers("render ready")

    @property
    def is_ready(self) -> bool:
        return self._ready

    def on_ready(self, callback: Callable[[], None]) -> Callable[[], None]:
        return self._ready_subscribers.add(lambda _: callback())

    # -- push contract -------------------------------------------------

    def set_tracked_position(self, coordinate: Coordinate) -> None:
        self._push(SetTrackedPosition(coordinate=coordinate.as_list()))

    def set_destination_marker(self, coordinate: Coordinate | None) -> None:
        self._push(
            SetDestinationMarker(
                coordinate=coordinate.as_list() if coordinate else None,
            ),
        )

    def set_route_geometry(self, route: RouteGeometry | None) -> None:
        payload = route.to_feature_collection() if route else empty_feature_collection()
        self._push(SetRouteGeometry(route=payload))

    def fit_viewport(self, coordinates: Iterable[Coordinate]) -> None:
        bounds = GeometryService.bounding_box(coordinates)
        if bounds is None:
            logger.debug("Skipping viewport fit with no coordinates")
            return
        self._push(FitViewport(bounds=bounds))

    # -- readiness -----------------------------------------------------

    def _push(self, command: RenderCommand) -> None:
        if self._closed:
            logger.debug("Render bridge closed, dropping %s", command.type)
            return
        if not self._ready:
            if len(self._pending) == self._pending.maxlen:
                logger.warning("Render queue full, dropping oldest command")
            self._pending.append(command)
            return
        self._dispatch(command)

    def mark_ready(self) -> None:
        """Flush queued commands, then let listeners resend current state.

        A surface that reloads signals ready again; listeners run every
        time so it converges to the engine's state.
        """
        if self._closed:
            return
        self._ready = True
        logger.info("Render surface ready (%d queued commands)", len(self._pending))
        while self._pending:
            self._dispatch(self._pending.popleft())
        self._ready_subscribers.notify(None)

    def mark_not_ready(self) -> None:
        self._ready = False

    def handle_message(self, raw: Any) -> None:
        """Consume a message posted by the render surface."""
        message = parse_surface_message(raw)
        if message is None:
            return
        if message.type == "ready":
            self.mark_ready()
        elif message.type == "error":
            logger.warning("Render surface reported an error: %s", message.message)

    @abstractmethod
    def _dispatch(self, command: RenderCommand) -> None:
        """Deliver one command to a ready surface."""

    async def drain(self) -> None:
        """Wait until dispatched commands have been handed to the surface."""
        return

    def close(self) -> None:
        self._closed = True
        self._pending.clear()
        self._ready_subscribers.clear()


class InProcessRenderBridge(RenderBridge):
    """Drives a map object that lives in the engine's own process."""

    def __init__(self, map_handle: MapHandle, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._map = map_handle

    def _dispatch(self, command: RenderCommand) -> None:
        try:
            if isinstance(command, SetTrackedPosition):
                lon, lat = command.coordinate
                self._map.set_user_marker(lon, lat)
            elif isinstance(command, SetDestinationMarker):
                if command.coordinate is None:
                    self._map.remove_destination_marker()
                else:
                    lon, lat = command.coordinate
                    self._map.set_destination_marker(lon, lat)
            elif isinstance(command, SetRouteGeometry):
                self._map.set_route_data(command.route)
            elif isinstance(command, FitViewport):
                self._map.fit_bounds(command.bounds, padding=command.padding)
        except Exception:
            logger.exception("Map handle failed to apply %s", command.type)


class MessageRenderBridge(RenderBridge):
    """Serializes commands for a render surface in another context.

    ``send`` is the host transport (e.g. a WebView post function). A single
    drain task awaits it for one message at a time so delivery order
    matches call order even though sending is asynchronous.
    """

    def __init__(
        self,
        send: Callable[[str], Awaitable[None]],
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._send = send
        self._outbox: deque[str] = deque()
        self._sender: asyncio.Task | None = None

    def _dispatch(self, command: RenderCommand) -> None:
        self._outbox.append(command.model_dump_json())
        if self._sender is None or self._sender.done():
            self._sender = asyncio.get_running_loop().create_task(self._drain_outbox())

    async def _drain_outbox(self) -> None:
        while self._outbox:
            payload = self._outbox.popleft()
            try:
                await self._send(payload)
            except Exception:
                logger.exception("Render transport failed to deliver a message")

    async def drain(self) -> None:
        while self._sender is not None and not self._sender.done():
            await asyncio.shield(self._sender)

    def close(self) -> None:
        super().close()
        self._outbox.clear()
        if self._sender is not None and not self._sender.done():
            self._sender.cancel()
