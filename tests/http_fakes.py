from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Self

import aiohttp
from yarl import URL

if TYPE_CHECKING:
    from types import TracebackType


@dataclass
class FakeResponse:
    """Stand-in for an aiohttp response used as ``async with`` target.

    ``json_data`` may be an exception, raised when the body is decoded.
    """

    status: int = 200
    json_data: Any = None
    text_data: str = ""
    url: str = "https://api.openrouteservice.org"
    decoded_as: list[str | None] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.request_info = aiohttp.RequestInfo(
            url=URL(self.url),
            method="GET",
            headers={},
            real_url=URL(self.url),
        )

    async def json(self, content_type: str | None = "application/json") -> Any:
        self.decoded_as.append(content_type)
        if isinstance(self.json_data, Exception):
            raise self.json_data
        return self.json_data

    async def text(self) -> str:
        return self.text_data

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        return False


class FakeSession:
    """Replays queued responses (or raises queued exceptions) per GET."""

    def __init__(
        self,
        *,
        get_responses: list[FakeResponse | Exception] | None = None,
    ) -> None:
        self._responses = list(get_responses or [])
        self.requests: list[tuple[str, str, dict[str, Any]]] = []
        self.closed = False

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append(("GET", url, kwargs))
        if not self._responses:
            msg = f"No fake response queued for {url}"
            raise AssertionError(msg)
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response
