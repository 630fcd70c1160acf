"""
Playback agent - polls the published drawing document and replays it
pixel by pixel onto a target surface.
"""

from .agent import AgentState, PlaybackAgent, PollOutcome
from .config import AgentConfig

__all__ = [
    "AgentConfig",
    "AgentState",
    "PlaybackAgent",
    "PollOutcome",
]
