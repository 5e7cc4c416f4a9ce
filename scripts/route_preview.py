#!/usr/bin/env python3
"""Preview a route from a fixed origin to the first match for a query.

Usage:
    python scripts/route_preview.py --origin -58.40 -34.60 "Obelisco"

Runs the full engine against the live OpenRouteService API with a
stationary location and a map handle that only logs what it is told.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

logger = logging.getLogger("route_preview")


class StationaryLocation:
    """Location provider that always reports the same fix."""

    def __init__(self, coordinate) -> None:
        self._coordinate = coordinate

    async def get_current_position(self, *, high_accuracy: bool = True):
        return self._coordinate

    async def watch_position(self, callback, *, interval_s: float, distance_m: float):
        return self

    def remove(self) -> None:
        return


class LoggingMapHandle:
    def set_user_marker(self, lon: float, lat: float) -> None:
        logger.info("user marker -> %.5f,%.5f", lon, lat)

    def set_destination_marker(self, lon: float, lat: float) -> None:
        logger.info("destination marker -> %.5f,%.5f", lon, lat)

    def remove_destination_marker(self) -> None:
        logger.info("destination marker removed")

    def set_route_data(self, feature_collection: dict[str, Any]) -> None:
        features = feature_collection.get("features") or []
        points = len(features[0]["geometry"]["coordinates"]) if features else 0
        logger.info("route -> %d points", points)

    def fit_bounds(self, bounds: list[list[float]], *, padding: int) -> None:
        logger.info("fit bounds -> %s (padding %d)", bounds, padding)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Preview the driving route to the first match for a place query.",
    )
    parser.add_argument("query", help="Place to search for, e.g. \"Obelisco\".")
    parser.add_argument(
        "--origin",
        required=True,
        nargs=2,
        type=float,
        metavar=("LON", "LAT"),
        help="Starting point as longitude and latitude.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every request and render push at DEBUG level.",
    )
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    # Local imports after sys.path adjustment.
    from core.exceptions import NavigationError
    from core.http.openrouteservice import OpenRouteServiceClient
    from core.models import Coordinate
    from core.startup import configure_logging, shutdown_shared_runtime
    from navigation_engine import NavigationEngine
    from render.bridge import InProcessRenderBridge

    args = parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        origin = Coordinate.from_sequence(args.origin)
        places = OpenRouteServiceClient()
    except NavigationError as exc:
        logger.error("%s", exc.message)
        return 2

    bridge = InProcessRenderBridge(LoggingMapHandle())
    bridge.mark_ready()
    engine = NavigationEngine(places, StationaryLocation(origin), bridge)
    try:
        await engine.start()
        candidates = await places.autocomplete(args.query)
        if not candidates:
            print(f"No places found for {args.query!r}")
            return 1

        candidate = candidates[0]
        print(f"Selected: {candidate.selection_label}")
        destination = await engine.select_candidate(candidate)
        await engine.wait_idle()
        if destination is None:
            print("Could not resolve the selected place")
            return 1

        route = engine.route
        if route is None:
            print(f"No route to {destination.name}")
            return 1
        print(
            f"Route to {destination.name}: {len(route.coordinates)} points, "
            f"ending at {destination.coordinate.lon:.5f},{destination.coordinate.lat:.5f}",
        )
        return 0
    except NavigationError as exc:
        logger.error("Preview failed: %s", exc.message)
        return 1
    finally:
        await shutdown_shared_runtime(engine=engine)


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
