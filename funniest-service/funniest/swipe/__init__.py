"""Client-side swipe queue: pure reducer, HTTP client and asyncio driver."""
from .client import CaptionsAPIError, CaptionsClient
from .machine import Direction, Pair, Phase, SwipeState, initial_state, reduce
from .session import SwipeSession

__all__ = [
    "CaptionsAPIError",
    "CaptionsClient",
    "Direction",
    "Pair",
    "Phase",
    "SwipeSession",
    "SwipeState",
    "initial_state",
    "reduce",
]
