"""Global constants for the core package.

This module contains shared constants used across the engine.
"""

from typing import Final

# HTTP Client Constants
HTTP_CONNECTION_LIMIT: Final[int] = 10
HTTP_TIMEOUT_CONNECT: Final[float] = 10.0
HTTP_TIMEOUT_SOCK_READ: Final[float] = 30.0
HTTP_TIMEOUT_TOTAL: Final[float] = 60.0

# Planar degrees-to-meters approximation, good enough at city scale
METERS_PER_DEGREE: Final[float] = 111000.0

# Significant-change thresholds
MANUAL_UPDATE_THRESHOLD_M: Final[float] = 10.0
TRACKING_UPDATE_THRESHOLD_M: Final[float] = 20.0

# Continuous tracking hints handed to the location provider
TRACKING_INTERVAL_SECONDS: Final[float] = 5.0
TRACKING_DISTANCE_HINT_M: Final[float] = 20.0

# Search
MIN_QUERY_LENGTH: Final[int] = 3
MAX_CANDIDATES: Final[int] = 5

# Render surface
VIEWPORT_PADDING_PX: Final[int] = 50
RENDER_QUEUE_LIMIT: Final[int] = 100
