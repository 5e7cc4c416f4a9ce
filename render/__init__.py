"""Render bridge package.

Pushes engine state to whatever surface draws the map, either in-process
or over a message channel.
"""

from render.bridge import InProcessRenderBridge, MessageRenderBridge, RenderBridge

__all__ = ["InProcessRenderBridge", "MessageRenderBridge", "RenderBridge"]
