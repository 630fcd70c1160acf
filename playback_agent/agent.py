"""
Playback agent state machine.

    Idle -> Fetching -> Unchanged -> Idle
                     -> Rendering -> (one batch per tick) -> Idle
    any  -> Stopped

Two triggers drive it on a single asyncio timeline: the poll timer, which
is ignored while a render is in progress, and the render tick, which
applies one batch and schedules the next until the pixel list is used up.
A render that has started always runs to completion (or until stop());
a newer document is picked up by the next poll after it finishes.
"""

import asyncio
import enum
import json
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

from .config import AgentConfig
from .surfaces import Operation, SelectColor, SetPixel, TargetSurface

logger = logging.getLogger(__name__)


class AgentState(str, enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    UNCHANGED = "unchanged"
    RENDERING = "rendering"
    STOPPED = "stopped"


class PollOutcome(str, enum.Enum):
    SUPPRESSED = "suppressed"   # render in progress or agent stopped
    FAILED = "failed"           # unreachable or malformed document
    UNCHANGED = "unchanged"     # same stamp as the last completed render
    STARTED = "started"         # new drawing, render begun


class DocumentError(Exception):
    """Raised when the fetched drawing cannot be used."""
    pass


Pixel = Tuple[int, int, int, int, int]  # x, y, r, g, b


@dataclass
class Drawing:
    """A parsed drawing document."""
    pixels: List[Pixel]
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def stamp(self) -> str:
        """updatedAt when present, otherwise the pixel count."""
        updated_at = self.meta.get("updatedAt")
        if updated_at:
            return str(updated_at)
        return str(len(self.pixels))

    @property
    def name(self) -> str:
        return self.meta.get("filename") or "image"


def parse_drawing(raw: str) -> Drawing:
    """Parse drawing.json text. Raises DocumentError on anything unusable."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise DocumentError(f"JSON parse error: {e}")

    if not isinstance(data, dict) or not isinstance(data.get("pixels"), list):
        raise DocumentError("Document has no pixel list")

    meta = data.get("meta") or {}
    if not isinstance(meta, dict):
        raise DocumentError("Document meta is not an object")

    pixels = []
    for i, p in enumerate(data["pixels"]):
        try:
            pixels.append((int(p["x"]), int(p["y"]), int(p["r"]), int(p["g"]), int(p["b"])))
        except (KeyError, TypeError, ValueError):
            raise DocumentError(f"Pixel {i} is malformed: {p!r}")

    return Drawing(pixels=pixels, meta=meta)


class PlaybackAgent:
    """
    Polls the drawing document and replays new drawings onto a surface.

    Usage:
        async with httpx.AsyncClient() as client:
            agent = PlaybackAgent(config, client, get_surface("log"))
            await agent.run()          # until agent.stop()

    Tests can drive the machine directly with poll() and render_tick().
    """

    def __init__(self, config: AgentConfig, client: httpx.AsyncClient, surface: TargetSurface):
        self.config = config
        self.client = client
        self.surface = surface

        self.state = AgentState.IDLE
        self.last_stamp: Optional[str] = None

        self._drawing: Optional[Drawing] = None
        self._index = 0
        self._last_color: Optional[Tuple[int, int, int]] = None
        self._wake: Optional[asyncio.Event] = None

        self.render_ticks = 0
        self.renders_completed = 0

    # -- fetching --------------------------------------------------------

    async def fetch(self) -> Drawing:
        """
        Download and parse the drawing.

        A unique query parameter and no-cache headers make sure the CDN in
        front of the raw file never answers with a stale copy.
        """
        try:
            response = await self.client.get(
                self.config.drawing_url,
                params={"t": str(time.time_ns())},
                headers={"Cache-Control": "no-cache", "Pragma": "no-cache"},
            )
        except httpx.HTTPError as e:
            raise DocumentError(f"HTTP request failed: {e}")

        if response.is_error:
            raise DocumentError(f"HTTP {response.status_code} fetching drawing")
        return parse_drawing(response.text)

    async def poll(self) -> PollOutcome:
        """
        Timer trigger: fetch the document and start a render if it changed.

        A no-op while rendering or after stop().
        """
        if self.state in (AgentState.RENDERING, AgentState.STOPPED):
            logger.debug("Poll skipped (%s)", self.state.value)
            return PollOutcome.SUPPRESSED

        self.state = AgentState.FETCHING
        try:
            drawing = await self.fetch()
        except DocumentError as e:
            logger.warning("Fetch failed: %s", e)
            self._settle_idle()
            return PollOutcome.FAILED

        if self.state is AgentState.STOPPED:
            return PollOutcome.SUPPRESSED

        if drawing.stamp == self.last_stamp:
            self.state = AgentState.UNCHANGED
            logger.debug("Up to date (%s)", drawing.stamp)
            self._settle_idle()
            return PollOutcome.UNCHANGED

        logger.info(
            "New drawing! pixels=%d size=%sx%s file=%s updated=%s",
            len(drawing.pixels),
            drawing.meta.get("canvasSize", "?"),
            drawing.meta.get("canvasSize", "?"),
            drawing.name,
            drawing.meta.get("updatedAt", "?"),
        )
        await self._begin_render(drawing)
        return PollOutcome.STARTED

    def _settle_idle(self):
        if self.state is not AgentState.STOPPED:
            self.state = AgentState.IDLE

    # -- rendering -------------------------------------------------------

    async def _begin_render(self, drawing: Drawing):
        self._drawing = drawing
        self._index = 0
        self._last_color = None
        self.state = AgentState.RENDERING
        logger.info(
            "Drawing '%s' | %d pixels | layer %d | %d px/tick (%d ticks)",
            drawing.name,
            len(drawing.pixels),
            self.config.target_layer,
            self.config.batch_size,
            math.ceil(len(drawing.pixels) / self.config.batch_size),
        )
        if not drawing.pixels:
            await self._finish_render()

    def _build_batch(self) -> List[Operation]:
        pixels = self._drawing.pixels
        end = min(self._index + self.config.batch_size, len(pixels))
        operations: List[Operation] = []
        for x, y, r, g, b in pixels[self._index:end]:
            color = (r, g, b)
            if color != self._last_color:
                operations.append(SelectColor(r, g, b))
                self._last_color = color
            operations.append(SetPixel(x, y, self.config.target_layer))
        self._index = end
        return operations

    async def render_tick(self) -> bool:
        """
        Render trigger: apply the next batch to the surface.

        Returns True while more batches remain. The drawing's stamp is
        recorded only after the last batch has been applied.
        """
        if self.state is not AgentState.RENDERING or self._drawing is None:
            return False

        operations = self._build_batch()
        try:
            await self.surface.apply(operations)
        except Exception as e:
            if self.state is AgentState.STOPPED:
                logger.warning("Surface %s failed while stopping: %s", self.surface.name, e)
                return False
            # Stamp stays unrecorded, so the next poll replays the drawing from the start
            logger.error("Surface %s failed at pixel %d, abandoning render: %s", self.surface.name, self._index, e)
            self._drawing = None
            self._settle_idle()
            return False
        self.render_ticks += 1

        # stop() may have arrived while the batch was in flight
        if self.state is AgentState.STOPPED:
            return False

        total = len(self._drawing.pixels)
        if self._index % self.config.progress_every < self.config.batch_size or self._index >= total:
            logger.info("Drawing %s... %d%%", self._drawing.name, int(self._index * 100 / total))

        if self._index >= total:
            await self._finish_render()
            return False
        return True

    async def _finish_render(self):
        drawing = self._drawing
        self.last_stamp = drawing.stamp
        self._drawing = None
        self.renders_completed += 1
        self._settle_idle()
        logger.info("Drawing complete - %d pixels sent", len(drawing.pixels))
        await self._refresh_gallery()

    async def _refresh_gallery(self):
        """Best-effort, non-critical: failures are logged and never propagated."""
        await self._pause(self.config.refresh_delay)
        if self.state is AgentState.STOPPED:
            return
        try:
            await self.surface.refresh_gallery()
        except Exception as e:
            logger.warning("Gallery refresh failed (ignored): %s", e)

    # -- scheduling ------------------------------------------------------

    def stop(self):
        """
        Enter the terminal Stopped state.

        A render in progress stops after its current batch and its stamp is
        not recorded, so a restarted agent replays that drawing in full.
        """
        if self.state is AgentState.RENDERING:
            logger.info("Stopping mid-render at pixel %d/%d", self._index, len(self._drawing.pixels))
        self.state = AgentState.STOPPED
        self._drawing = None
        if self._wake is not None:
            self._wake.set()

    async def _pause(self, seconds: float):
        """Sleep, returning early if stop() is called."""
        if seconds <= 0:
            await asyncio.sleep(0)
            return
        if self.state is AgentState.STOPPED:
            return
        if self._wake is None:
            self._wake = asyncio.Event()
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def run(self):
        """Poll immediately, then every poll_interval; render one batch per tick in between."""
        self._wake = asyncio.Event()
        loop = asyncio.get_running_loop()
        next_poll = loop.time()

        logger.info("Playback agent started")
        logger.info("URL    : %s", self.config.drawing_url)
        logger.info("Poll   : %s seconds", self.config.poll_interval)
        logger.info("Batch  : %d pixels/tick", self.config.batch_size)
        logger.info("Layer  : %d", self.config.target_layer)
        logger.info("Surface: %s", self.surface.name)

        while self.state is not AgentState.STOPPED:
            if loop.time() >= next_poll:
                next_poll = loop.time() + self.config.poll_interval
                await self.poll()

            if self.state is AgentState.RENDERING:
                await self.render_tick()
                await self._pause(self.config.tick_interval)
            elif self.state is not AgentState.STOPPED:
                await self._pause(next_poll - loop.time())

        logger.info("Playback agent stopped")

    async def run_once(self) -> PollOutcome:
        """Fetch once and, if the drawing changed, render it to completion."""
        outcome = await self.poll()
        while self.state is AgentState.RENDERING:
            await self.render_tick()
            if self.state is AgentState.RENDERING:
                await self._pause(self.config.tick_interval)
        return outcome
