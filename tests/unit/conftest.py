"""
Fixtures for unit tests that don't require the app or the fake GitHub API.
"""

import json
from typing import List

import httpx
import pytest

from playback_agent.surfaces import Operation, SelectColor, SetPixel, TargetSurface


class RecordingSurface(TargetSurface):
    """Surface that remembers every batch it was given."""

    def __init__(self, fail_refresh: bool = False, fail_on_batch: int = 0):
        self.batches: List[List[Operation]] = []
        self.refreshes = 0
        self.fail_refresh = fail_refresh
        self.fail_on_batch = fail_on_batch

    @property
    def name(self) -> str:
        return "recording"

    async def apply(self, operations):
        if self.fail_on_batch and len(self.batches) + 1 == self.fail_on_batch:
            self.fail_on_batch = 0
            raise RuntimeError("host rejected batch")
        self.batches.append(list(operations))

    async def refresh_gallery(self):
        self.refreshes += 1
        if self.fail_refresh:
            raise RuntimeError("UpdateBoard unavailable")

    @property
    def pixels(self):
        return [op for batch in self.batches for op in batch if isinstance(op, SetPixel)]

    @property
    def color_selects(self):
        return [op for batch in self.batches for op in batch if isinstance(op, SelectColor)]


class DrawingServer:
    """Serves a mutable drawing.json body through httpx.MockTransport."""

    def __init__(self):
        self.body = None
        self.status = 200
        self.requests: List[httpx.Request] = []

    def publish(self, pixels, updated_at="2025-01-15T10:00:00.000000Z", **meta):
        document = {
            "meta": {"canvasSize": 8, "totalPixels": len(pixels), **meta},
            "pixels": [{"x": x, "y": y, "r": r, "g": g, "b": b} for x, y, r, g, b in pixels],
        }
        if updated_at is not None:
            document["meta"]["updatedAt"] = updated_at
        self.body = json.dumps(document)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.body is None:
            return httpx.Response(404, text="404: Not Found")
        return httpx.Response(self.status, text=self.body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def drawing_server():
    return DrawingServer()
