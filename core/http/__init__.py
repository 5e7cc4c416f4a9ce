"""HTTP client utilities and session management."""

from core.http.openrouteservice import OpenRouteServiceClient
from core.http.request import redact_url, request_json
from core.http.retry import retry_async
from core.http.session import cleanup_session, get_session

__all__ = [
    "OpenRouteServiceClient",
    "cleanup_session",
    "get_session",
    "redact_url",
    "request_json",
    "retry_async",
]
