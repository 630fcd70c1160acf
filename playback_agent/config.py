"""
Configuration for the playback agent.

Environment variables:
  PLAYBACK_DRAWING_URL   - raw URL of drawing.json (required)
  PLAYBACK_POLL_INTERVAL - seconds between checks for a new drawing (default: 10)
  PLAYBACK_BATCH_SIZE    - pixels drawn per tick (default: 5)
  PLAYBACK_TICK_INTERVAL - seconds between render ticks (default: 1/60)
  PLAYBACK_TARGET_LAYER  - canvas layer to draw on (default: 1)
  PLAYBACK_SURFACE       - target surface: log or http (default: log)
  PLAYBACK_SURFACE_URL   - endpoint for the http surface
  PLAYBACK_REFRESH_DELAY - seconds to wait before the gallery refresh (default: 0.5)
  PLAYBACK_HTTP_TIMEOUT  - network timeout in seconds (default: 10)
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    val = env.get(name)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        logger.warning("%s=%s invalid, using default=%s", name, val, default)
        return default


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    val = env.get(name)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        logger.warning("%s=%s invalid, using default=%s", name, val, default)
        return default


@dataclass(frozen=True)
class AgentConfig:
    drawing_url: str
    poll_interval: float = 10.0
    batch_size: int = 5
    tick_interval: float = 1 / 60
    target_layer: int = 1
    surface: str = "log"
    surface_url: Optional[str] = None
    refresh_delay: float = 0.5
    http_timeout: float = 10.0
    progress_every: int = 50

    def __post_init__(self):
        if not self.drawing_url:
            raise ValueError("drawing_url is required (set PLAYBACK_DRAWING_URL or pass --url)")
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, **overrides) -> "AgentConfig":
        """Build from PLAYBACK_* variables; non-None keyword overrides win."""
        if env is None:
            env = os.environ
        config = dict(
            drawing_url=env.get("PLAYBACK_DRAWING_URL", ""),
            poll_interval=_env_float(env, "PLAYBACK_POLL_INTERVAL", 10.0),
            batch_size=_env_int(env, "PLAYBACK_BATCH_SIZE", 5),
            tick_interval=_env_float(env, "PLAYBACK_TICK_INTERVAL", 1 / 60),
            target_layer=_env_int(env, "PLAYBACK_TARGET_LAYER", 1),
            surface=env.get("PLAYBACK_SURFACE", "log"),
            surface_url=env.get("PLAYBACK_SURFACE_URL") or None,
            refresh_delay=_env_float(env, "PLAYBACK_REFRESH_DELAY", 0.5),
            http_timeout=_env_float(env, "PLAYBACK_HTTP_TIMEOUT", 10.0),
        )
        config.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**config)
