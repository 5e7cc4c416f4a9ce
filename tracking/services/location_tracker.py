"""
Device position tracking.

Owns the canonical tracked position. Raw fixes from the platform location
provider only replace it when they pass the significant-change filter:
10 m for one-shot and API-driven updates, 20 m for the continuous stream.
The filter always compares against the last accepted position, never the
last raw fix, so slow drift still adds up to an update.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, ClassVar

from config import get_location_timeout_seconds
from core.constants import (
    MANUAL_UPDATE_THRESHOLD_M,
    TRACKING_DISTANCE_HINT_M,
    TRACKING_INTERVAL_SECONDS,
    TRACKING_UPDATE_THRESHOLD_M,
)
from core.exceptions import (
    AcquisitionTimeoutError,
    AlreadyTrackingError,
    PermissionDeniedError,
)
from core.models import Coordinate, TrackedPosition
from core.spatial import GeoFilter
from events import Subscribers

if TYPE_CHECKING:
    from collections.abc import Callable

    from core.mapping.interfaces import LocationProvider, PositionWatch

logger = logging.getLogger(__name__)


class TrackingSubscription:
    """Handle for one continuous tracking session.

    ``cancel()`` is idempotent and takes effect immediately: fixes the
    provider delivers afterwards are ignored even if its stream has not
    wound down yet.
    """

    def __init__(
        self,
        tracker: LocationTracker,
        on_accepted: Callable[[Coordinate], None] | None,
    ) -> None:
        self._tracker = tracker
        self._on_accepted = on_accepted
        self._watch: PositionWatch | None = None
        self.active = True

    def _attach(self, watch: PositionWatch) -> None:
        self._watch = watch
        if not self.active:
            # Cancelled while the provider was still starting the stream.
            self._remove_watch()

    def _remove_watch(self) -> None:
        watch, self._watch = self._watch, None
        if watch is None:
            return
        try:
            watch.remove()
        except Exception:
            logger.exception("Failed to stop location stream")

    def _deliver(self, coordinate: Coordinate) -> None:
        if self._on_accepted is None:
            return
        try:
            self._on_accepted(coordinate)
        except Exception:
            logger.exception("Tracking callback failed")

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self._remove_watch()
        self._tracker._release(self)
        logger.info("Continuous location tracking stopped")


class LocationTracker:
    """Filters raw device positions into accepted TrackedPosition updates.

    Only one continuous subscription may run at a time; a second
    ``start_continuous`` call raises AlreadyTrackingError instead of
    silently replacing the first.
    """

    STATE_UNINITIALIZED: ClassVar[str] = "uninitialized"
    STATE_ACQUIRING: ClassVar[str] = "acquiring"
    STATE_TRACKING: ClassVar[str] = "tracking"

    def __init__(
        self,
        provider: LocationProvider,
        *,
        acquisition_timeout: float | None = None,
        manual_threshold_m: float = MANUAL_UPDATE_THRESHOLD_M,
        tracking_threshold_m: float = TRACKING_UPDATE_THRESHOLD_M,
        interval_s: float = TRACKING_INTERVAL_SECONDS,
        distance_hint_m: float = TRACKING_DISTANCE_HINT_M,
    ) -> None:
        self._provider = provider
        self._acquisition_timeout = (
            get_location_timeout_seconds()
            if acquisition_timeout is None
            else acquisition_timeout
        )
        self._manual_threshold_m = manual_threshold_m
        self._tracking_threshold_m = tracking_threshold_m
        self._interval_s = interval_s
        self._distance_hint_m = distance_hint_m

        self._state = self.STATE_UNINITIALIZED
        self._position: TrackedPosition | None = None
        self._subscription: TrackingSubscription | None = None
        self._subscribers: Subscribers[Coordinate] = Subscribers("tracked position")

    @property
    def state(self) -> str:
        return self._state

    @property
    def position(self) -> TrackedPosition | None:
        return self._position

    @property
    def is_tracking(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def subscribe(self, callback: Callable[[Coordinate], None]) -> Callable[[], None]:
        """Be notified of every accepted position, whatever its source."""
        return self._subscribers.add(callback)

    def _offer(self, coordinate: Coordinate, threshold_m: float) -> bool:
        current = self._position.coordinate if self._position else None
        if not GeoFilter.accept(current, coordinate, threshold_m):
            return False
        self._position = TrackedPosition(coordinate)
        self._state = self.STATE_TRACKING
        self._subscribers.notify(coordinate)
        return True

    def _fallback_state(self) -> None:
        if self._position is None:
            self._state = self.STATE_UNINITIALIZED

    async def acquire_once(self) -> Coordinate:
        """Acquire a single fix, bounded by the acquisition timeout.

        Raises:
            PermissionDeniedError: location access was refused.
            AcquisitionTimeoutError: no fix arrived in time.
        """
        if self._position is None:
            self._state = self.STATE_ACQUIRING
        try:
            coordinate = await asyncio.wait_for(
                self._provider.get_current_position(high_accuracy=True),
                timeout=self._acquisition_timeout,
            )
        except TimeoutError as exc:
            self._fallback_state()
            msg = "Timed out acquiring the device location"
            raise AcquisitionTimeoutError(
                msg,
                {"timeout_seconds": self._acquisition_timeout},
            ) from exc
        except PermissionDeniedError:
            self._fallback_state()
            logger.warning("Location permission denied")
            raise
        except Exception:
            self._fallback_state()
            logger.exception("Location provider failed during acquisition")
            raise

        accepted = self._offer(coordinate, self._manual_threshold_m)
        logger.debug(
            "One-shot fix %s,%s %s",
            coordinate.lon,
            coordinate.lat,
            "accepted" if accepted else "ignored",
        )
        return coordinate

    def update_position(self, coordinate: Coordinate) -> bool:
        """Offer an API-driven position; True if it became the tracked one."""
        return self._offer(coordinate, self._manual_threshold_m)

    async def start_continuous(
        self,
        on_accepted: Callable[[Coordinate], None] | None = None,
    ) -> TrackingSubscription:
        if self.is_tracking:
            msg = "Continuous location tracking is already running"
            raise AlreadyTrackingError(msg)

        subscription = TrackingSubscription(self, on_accepted)
        self._subscription = subscription

        def handle_raw(coordinate: Coordinate) -> None:
            if not subscription.active:
                return
            if self._offer(coordinate, self._tracking_threshold_m):
                subscription._deliver(coordinate)

        try:
            watch = await self._provider.watch_position(
                handle_raw,
                interval_s=self._interval_s,
                distance_m=self._distance_hint_m,
            )
        except Exception:
            subscription.active = False
            self._release(subscription)
            raise

        subscription._attach(watch)
        logger.info(
            "Continuous location tracking started (every %ss / %sm)",
            self._interval_s,
            self._distance_hint_m,
        )
        return subscription

    def _release(self, subscription: TrackingSubscription) -> None:
        if self._subscription is subscription:
            self._subscription = None

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
