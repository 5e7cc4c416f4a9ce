"""Render bridge payload schema.

Commands flow from the engine to the render surface; surface messages
flow back. Everything crossing the boundary is plain JSON: coordinates
as [lon, lat] lists and routes as GeoJSON FeatureCollections.
"""

from __future__ import annotations

import json
import logging
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from core.constants import VIEWPORT_PADDING_PX

logger = logging.getLogger(__name__)

# Bare string the embedded map page posts once its script has loaded.
LEGACY_READY_MESSAGE = "WEBVIEW_READY"


class RenderCommand(BaseModel):
    model_config = ConfigDict(frozen=True)


class SetTrackedPosition(RenderCommand):
    type: Literal["set_tracked_position"] = "set_tracked_position"
    coordinate: list[float]


class SetDestinationMarker(RenderCommand):
    type: Literal["set_destination_marker"] = "set_destination_marker"
    coordinate: list[float] | None = None


class SetRouteGeometry(RenderCommand):
    type: Literal["set_route_geometry"] = "set_route_geometry"
    route: dict[str, Any]


class FitViewport(RenderCommand):
    type: Literal["fit_viewport"] = "fit_viewport"
    bounds: list[list[float]]
    padding: int = VIEWPORT_PADDING_PX


AnyRenderCommand = Annotated[
    SetTrackedPosition | SetDestinationMarker | SetRouteGeometry | FitViewport,
    Field(discriminator="type"),
]
render_command_adapter: TypeAdapter[AnyRenderCommand] = TypeAdapter(AnyRenderCommand)


class SurfaceMessage(BaseModel):
    """Message posted by the render surface back to the engine."""

    type: Literal["ready", "error"]
    message: str | None = None


def decode_render_command(raw: str) -> RenderCommand:
    return render_command_adapter.validate_json(raw)


def parse_surface_message(raw: Any) -> SurfaceMessage | None:
    """Parse a surface message, or return None if it is not understood."""
    if isinstance(raw, str):
        if raw.strip() == LEGACY_READY_MESSAGE:
            return SurfaceMessage(type="ready")
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring non-JSON render surface message: %.80s", raw)
            return None
    try:
        return SurfaceMessage.model_validate(raw)
    except PydanticValidationError:
        logger.warning("Ignoring unknown render surface message: %.80s", raw)
        return None


__all__ = [
    "LEGACY_READY_MESSAGE",
    "AnyRenderCommand",
    "FitViewport",
    "RenderCommand",
    "SetDestinationMarker",
    "SetRouteGeometry",
    "SetTrackedPosition",
    "SurfaceMessage",
    "decode_render_command",
    "parse_surface_message",
]
