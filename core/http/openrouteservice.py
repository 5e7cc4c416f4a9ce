"""
OpenRouteService HTTP client.

Centralizes place autocomplete, place resolution and driving directions
against the OpenRouteService API. Every failure surfaces as
ProviderUnavailableError; "nothing found" is an empty or None result.
"""

from __future__ import annotations

import logging
from typing import Any

from config import (
    get_openrouteservice_base_url,
    get_openrouteservice_max_retries,
    require_openrouteservice_api_key,
)
from core.constants import MAX_CANDIDATES
from core.exceptions import ProviderUnavailableError, ValidationError
from core.http.request import request_json
from core.http.retry import retry_async
from core.http.session import get_session
from core.models import Coordinate, PlaceCandidate, RouteGeometry
from core.spatial import GeometryService

logger = logging.getLogger(__name__)

ROUTE_PROFILE = "driving-car"


class OpenRouteServiceClient:
    """Geocoding and routing against OpenRouteService.

    The credential is checked once here; a missing key raises
    ConfigurationError before any request is attempted.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        max_retries: int | None = None,
        retry_delay: float = 1.0,
    ) -> None:
        self._api_key = api_key or require_openrouteservice_api_key()
        self._base_url = (base_url or get_openrouteservice_base_url()).rstrip("/")
        self._autocomplete_url = f"{self._base_url}/geocode/autocomplete"
        self._search_url = f"{self._base_url}/geocode/search"
        self._directions_url = f"{self._base_url}/v2/directions/{ROUTE_PROFILE}"

        retries = (
            get_openrouteservice_max_retries() if max_retries is None else max_retries
        )
        self.max_retries = max(0, retries)
        if self.max_retries:
            self._get_json = retry_async(
                max_retries=self.max_retries,
                retry_delay=retry_delay,
            )(self._get_json)

    async def _get_json(
        self,
        url: str,
        params: dict[str, Any],
        service_name: str,
    ) -> dict[str, Any]:
        session = await get_session()
        data = await request_json(
            "GET",
            url,
            session=session,
            params={"api_key": self._api_key, **params},
            service_name=service_name,
        )
        if not isinstance(data, dict):
            msg = f"{service_name} error: unexpected response"
            raise ProviderUnavailableError(msg, {"url": url})
        return data

    @staticmethod
    def _features(data: dict[str, Any], service_name: str) -> list[dict[str, Any]]:
        features = data.get("features")
        if features is None:
            return []
        if not isinstance(features, list):
            msg = f"{service_name} error: malformed features"
            raise ProviderUnavailableError(msg)
        return [feature for feature in features if isinstance(feature, dict)]

    async def autocomplete(self, text: str) -> list[PlaceCandidate]:
        """Return up to five ranked candidates for partial input."""
        data = await self._get_json(
            self._autocomplete_url,
            {"text": text},
            "ORS autocomplete",
        )
        candidates: list[PlaceCandidate] = []
        for feature in self._features(data, "ORS autocomplete"):
            try:
                candidates.append(PlaceCandidate.from_feature(feature))
            except ValidationError as exc:
                logger.debug("Skipping malformed autocomplete feature: %s", exc.message)
                continue
            if len(candidates) >= MAX_CANDIDATES:
                break
        logger.debug("Autocomplete returned %d candidates", len(candidates))
        return candidates

    async def resolve(self, label: str) -> Coordinate | None:
        """Return the first match's coordinate, or None when nothing matches."""
        data = await self._get_json(
            self._search_url,
            {"text": label},
            "ORS search",
        )
        features = self._features(data, "ORS search")
        if not features:
            logger.info("No geocoding match for %r", label)
            return None
        geometry = features[0].get("geometry") or {}
        try:
            return Coordinate.from_sequence(geometry.get("coordinates"))
        except ValidationError as exc:
            msg = "ORS search error: malformed coordinates"
            raise ProviderUnavailableError(msg, exc.details) from exc

    async def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
    ) -> RouteGeometry | None:
        """Request one driving route; None when the provider finds no route."""
        data = await self._get_json(
            self._directions_url,
            {
                "start": f"{origin.lon},{origin.lat}",
                "end": f"{destination.lon},{destination.lat}",
            },
            "ORS directions",
        )
        features = self._features(data, "ORS directions")
        if not features:
            logger.info(
                "No route between %s,%s and %s,%s",
                origin.lon,
                origin.lat,
                destination.lon,
                destination.lat,
            )
            return None
        geometry = features[0].get("geometry") or {}
        raw_coordinates = geometry.get("coordinates")
        if not isinstance(raw_coordinates, list):
            msg = "ORS directions error: malformed geometry"
            raise ProviderUnavailableError(msg)
        return RouteGeometry(
            origin=origin,
            destination=destination,
            coordinates=GeometryService.coerce_coordinates(raw_coordinates),
        )


__all__ = ["ROUTE_PROFILE", "OpenRouteServiceClient"]
