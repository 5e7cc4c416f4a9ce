from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from config import get_search_settle_seconds
from core.constants import MAX_CANDIDATES, MIN_QUERY_LENGTH
from core.exceptions import ProviderUnavailableError
from core.models import SearchSession
from events import Subscribers

if TYPE_CHECKING:
    from collections.abc import Callable

    from core.mapping.interfaces import PlaceSearchProvider

logger = logging.getLogger(__name__)


class SearchDebouncer:
    """Turns keystroke-level query changes into settled autocomplete requests.

    At most one settle timer exists at a time and it issues at most one
    request when it expires. Every query change bumps the session
    generation; a response tagged with an older generation is dropped, so
    a slow answer for "Obel" can never overwrite the one for "Obelisco".
    """

    def __init__(
        self,
        places: PlaceSearchProvider,
        *,
        settle_seconds: float | None = None,
        min_query_length: int = MIN_QUERY_LENGTH,
        max_candidates: int = MAX_CANDIDATES,
    ) -> None:
        self._places = places
        self._settle_seconds = (
            get_search_settle_seconds() if settle_seconds is None else settle_seconds
        )
        self._min_query_length = min_query_length
        self._max_candidates = max_candidates

        self._session = SearchSession()
        self._timer: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        self._subscribers: Subscribers[SearchSession] = Subscribers("search session")

    @property
    def session(self) -> SearchSession:
        return self._session

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def subscribe(
        self,
        callback: Callable[[SearchSession], None],
    ) -> Callable[[], None]:
        return self._subscribers.add(callback)

    def _update(self, **changes) -> None:
        self._session = replace(self._session, **changes)
        self._subscribers.notify(self._session)

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Search task failed", exc_info=exc)

    def on_query_changed(self, text: str) -> None:
        """Record new input and (re)start the settle timer.

        Input shorter than the minimum clears and hides suggestions at
        once without touching the network.
        """
        generation = self._session.generation + 1
        self._cancel_timer()

        if len(text) < self._min_query_length:
            self._update(
                query_text=text,
                candidates=(),
                visible=False,
                generation=generation,
            )
            return

        self._update(query_text=text, generation=generation)
        self._timer = asyncio.get_running_loop().create_task(
            self._settle_then_search(text, generation),
        )
        self._track(self._timer)

    async def _settle_then_search(self, text: str, generation: int) -> None:
        await asyncio.sleep(self._settle_seconds)
        # From here on the request runs to completion; supersession is
        # handled by the generation check below.
        self._timer = None

        logger.debug("Searching places for %r (generation %d)", text, generation)
        try:
            candidates = await self._places.autocomplete(text)
        except ProviderUnavailableError as exc:
            logger.warning("Place search failed for %r: %s", text, exc.message)
            candidates = []

        if generation != self._session.generation:
            logger.debug(
                "Discarding stale search results for generation %d (current %d)",
                generation,
                self._session.generation,
            )
            return

        self._update(
            candidates=tuple(candidates[: self._max_candidates]),
            visible=True,
        )

    def accept_selection(self, name: str) -> None:
        """Show the chosen place in the box and close the suggestion list."""
        self._cancel_timer()
        self._update(
            query_text=name,
            candidates=(),
            visible=False,
            generation=self._session.generation + 1,
        )

    def clear(self) -> None:
        self._cancel_timer()
        self._update(
            query_text="",
            candidates=(),
            visible=False,
            generation=self._session.generation + 1,
        )

    async def wait_idle(self) -> None:
        """Wait for the pending timer and in-flight searches to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        self._cancel_timer()
        for task in list(self._tasks):
            task.cancel()
