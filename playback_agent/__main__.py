#!/usr/bin/env python3
"""
Run the playback agent.

Usage:
    python -m playback_agent --url https://raw.githubusercontent.com/owner/repo/main/drawing.json
    python -m playback_agent --surface http --surface-url http://localhost:8787 --batch-size 10
    python -m playback_agent --once
"""

import argparse
import asyncio
import logging
import signal
import sys

import httpx

from .agent import PlaybackAgent
from .config import AgentConfig
from .surfaces import SURFACES, get_surface

logger = logging.getLogger("playback_agent")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Replay the published drawing onto a canvas")
    parser.add_argument("--url", dest="drawing_url", help="Raw URL of drawing.json (PLAYBACK_DRAWING_URL)")
    parser.add_argument("--poll-interval", type=float, help="Seconds between checks for a new drawing")
    parser.add_argument("--batch-size", type=int, help="Pixels drawn per tick")
    parser.add_argument("--tick-interval", type=float, help="Seconds between render ticks")
    parser.add_argument("--layer", dest="target_layer", type=int, help="Canvas layer to draw on")
    parser.add_argument("--surface", choices=sorted(SURFACES), help="Render target")
    parser.add_argument("--surface-url", help="Endpoint for the http surface")
    parser.add_argument("--once", action="store_true", help="Fetch and render once, then exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


async def run(config: AgentConfig, once: bool) -> int:
    async with httpx.AsyncClient(timeout=config.http_timeout) as client:
        surface = get_surface(config.surface, url=config.surface_url, timeout=config.http_timeout)
        agent = PlaybackAgent(config, client, surface)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, agent.stop)
            except (NotImplementedError, RuntimeError):
                # Not available on Windows event loops
                pass

        try:
            if once:
                await agent.run_once()
            else:
                await agent.run()
        finally:
            await surface.aclose()

    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        config = AgentConfig.from_env(
            drawing_url=args.drawing_url,
            poll_interval=args.poll_interval,
            batch_size=args.batch_size,
            tick_interval=args.tick_interval,
            target_layer=args.target_layer,
            surface=args.surface,
            surface_url=args.surface_url,
        )
        return asyncio.run(run(config, args.once))
    except ValueError as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
