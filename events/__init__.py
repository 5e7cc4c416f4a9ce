"""Events package for the engine.

Contains the in-process notification mechanism every state owner uses to
publish changes to subscribers.
"""

from events.subscribers import Subscribers

__all__ = ["Subscribers"]
