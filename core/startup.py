"""Shared runtime startup/shutdown utilities for hosts and scripts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.http.session import cleanup_session

if TYPE_CHECKING:
    from navigation_engine import NavigationEngine

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


async def shutdown_shared_runtime(
    *,
    engine: NavigationEngine | None = None,
    close_http_session: bool = True,
) -> None:
    """Stop the engine (if given) and release shared resources."""
    if engine is not None:
        await engine.stop()
    if close_http_session:
        await cleanup_session()
