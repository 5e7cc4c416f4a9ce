"""Centralized configuration for environment variables and external APIs.

This module is the single source of truth for configuration used across the
engine. Import from here rather than calling os.getenv directly in multiple
places.
"""

from __future__ import annotations

import logging
import os
from typing import Final

from dotenv import load_dotenv

from core.exceptions import ConfigurationError

# Load environment variables from .env if present
load_dotenv()

logger = logging.getLogger(__name__)


# --- OpenRouteService Configuration ---
DEFAULT_ORS_BASE_URL: Final[str] = "https://api.openrouteservice.org"

# --- Engine timing defaults ---
DEFAULT_SEARCH_SETTLE_SECONDS: Final[float] = 0.3
DEFAULT_LOCATION_TIMEOUT_SECONDS: Final[float] = 10.0
DEFAULT_ORS_MAX_RETRIES: Final[int] = 0


def _env_number(name: str, default: float, cast: type = float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def get_openrouteservice_api_key() -> str:
    return os.getenv("OPENROUTESERVICE_API_KEY", "").strip()


def require_openrouteservice_api_key() -> str:
    """Return the provider credential or raise ConfigurationError.

    Geocoding and routing are unusable without it, so callers check once
    when the client is built instead of on every request.
    """
    api_key = get_openrouteservice_api_key()
    if not api_key:
        msg = "OPENROUTESERVICE_API_KEY is not configured"
        raise ConfigurationError(msg, {"setting": "OPENROUTESERVICE_API_KEY"})
    return api_key


def get_openrouteservice_base_url() -> str:
    base_url = os.getenv("ORS_BASE_URL", "").strip() or DEFAULT_ORS_BASE_URL
    return base_url.rstrip("/")


def get_openrouteservice_max_retries() -> int:
    return max(0, int(_env_number("ORS_MAX_RETRIES", DEFAULT_ORS_MAX_RETRIES, int)))


def get_search_settle_seconds() -> float:
    return max(
        0.0,
        _env_number("SEARCH_SETTLE_SECONDS", DEFAULT_SEARCH_SETTLE_SECONDS),
    )


def get_location_timeout_seconds() -> float:
    return _env_number("LOCATION_TIMEOUT_SECONDS", DEFAULT_LOCATION_TIMEOUT_SECONDS)


__all__ = [
    "DEFAULT_LOCATION_TIMEOUT_SECONDS",
    "DEFAULT_ORS_BASE_URL",
    "DEFAULT_ORS_MAX_RETRIES",
    "DEFAULT_SEARCH_SETTLE_SECONDS",
    "get_location_timeout_seconds",
    "get_openrouteservice_api_key",
    "get_openrouteservice_base_url",
    "get_openrouteservice_max_retries",
    "get_search_settle_seconds",
    "require_openrouteservice_api_key",
]
