"""Python side of the SPA data flow: a REST client plus local chat state."""

from .api import ApiError
from .api import MemoryTokenStore
from .api import TokenStore
from .api import TravelBuddyClient
from .chat import ChatTimeline
from .chat import TimelineEntry

__all__ = [
    "ApiError",
    "ChatTimeline",
    "MemoryTokenStore",
    "TimelineEntry",
    "TokenStore",
    "TravelBuddyClient",
]
