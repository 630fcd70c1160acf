"""
Surface that forwards each batch to a host bridge over HTTP.

POST {url}/batch    {"operations": [{"op": "color", "r":..}, {"op": "pixel", "x":.., "y":.., "layer":..}]}
POST {url}/refresh  (empty body)
"""

from typing import List, Optional

import httpx

from .base import Operation, SelectColor, TargetSurface


def serialize(op: Operation) -> dict:
    if isinstance(op, SelectColor):
        return {"op": "color", "r": op.r, "g": op.g, "b": op.b}
    return {"op": "pixel", "x": op.x, "y": op.y, "layer": op.layer}


class HttpSurface(TargetSurface):

    def __init__(self, url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0, **kwargs):
        if not url:
            raise ValueError("The http surface needs a URL (PLAYBACK_SURFACE_URL or --surface-url)")
        self.url = url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def name(self) -> str:
        return "http"

    async def apply(self, operations: List[Operation]) -> None:
        response = await self.client.post(
            f"{self.url}/batch",
            json={"operations": [serialize(op) for op in operations]},
        )
        response.raise_for_status()

    async def refresh_gallery(self) -> None:
        response = await self.client.post(f"{self.url}/refresh")
        response.raise_for_status()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
