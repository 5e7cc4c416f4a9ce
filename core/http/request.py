"""
Shared HTTP request helper for provider clients.

Keeps JSON request/response handling and error mapping consistent: any
non-2xx status, transport failure, timeout or undecodable body surfaces
as ProviderUnavailableError.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import aiohttp

from core.exceptions import ProviderUnavailableError

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = range(200, 300)
_SECRET_PARAMS = {"api_key", "key", "access_token", "token"}


def redact_url(url: str) -> str:
    """Mask credential query parameters so URLs can be logged safely."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [
        (name, "***" if name.lower() in _SECRET_PARAMS else value)
        for name, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="*,")))


def redact_params(params: dict[str, Any] | None) -> dict[str, Any]:
    return {
        name: "***" if name.lower() in _SECRET_PARAMS else value
        for name, value in (params or {}).items()
    }


async def request_json(
    method: str,
    url: str,
    *,
    session: Any,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    expected_status: int | Iterable[int] = SUCCESS_STATUSES,
    service_name: str = "Provider",
    timeout: Any | None = None,
) -> Any:
    method_upper = method.upper()
    if isinstance(expected_status, int):
        expected = {expected_status}
    else:
        expected = set(expected_status)

    if method_upper == "GET":
        request_fn = session.get
    else:
        request_fn = getattr(session, "request", None)
        if request_fn is None:
            msg = f"{service_name} request error: unsupported method {method_upper}"
            raise ProviderUnavailableError(msg, {"url": redact_url(url)})

    request_kwargs: dict[str, Any] = {"params": params, "headers": headers}
    if timeout is not None:
        request_kwargs["timeout"] = timeout

    safe_details = {"url": redact_url(url), "params": redact_params(params)}
    try:
        async with request_fn(url, **request_kwargs) as response:
            if response.status not in expected:
                body = await response.text()
                msg = f"{service_name} error: {response.status}"
                raise ProviderUnavailableError(
                    msg,
                    {**safe_details, "status": response.status, "body": body[:500]},
                )
            # ORS answers with application/geo+json for directions.
            return await response.json(content_type=None)
    except ProviderUnavailableError:
        raise
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
        msg = f"{service_name} request failed: {exc.__class__.__name__}"
        raise ProviderUnavailableError(msg, safe_details) from exc
