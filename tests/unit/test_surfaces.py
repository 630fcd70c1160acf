"""
Unit tests for render surfaces and the surface registry.
"""

import json

import httpx
import pytest

from playback_agent.surfaces import (
    HttpSurface,
    LogSurface,
    SelectColor,
    SetPixel,
    get_surface,
)
from playback_agent.surfaces.http_surface import serialize


@pytest.mark.unit
class TestRegistry:

    def test_log_surface(self):
        assert isinstance(get_surface("log"), LogSurface)

    def test_name_is_case_insensitive(self):
        assert get_surface("LOG").name == "log"

    def test_http_surface(self):
        surface = get_surface("http", url="http://localhost:8787/", timeout=1)
        assert isinstance(surface, HttpSurface)
        assert surface.url == "http://localhost:8787"

    def test_http_surface_requires_url(self):
        with pytest.raises(ValueError, match="URL"):
            get_surface("http")

    def test_unknown_surface(self):
        with pytest.raises(ValueError, match="Unknown surface"):
            get_surface("canvas3d")


@pytest.mark.unit
class TestSerialize:

    def test_color(self):
        assert serialize(SelectColor(1, 2, 3)) == {"op": "color", "r": 1, "g": 2, "b": 3}

    def test_pixel(self):
        assert serialize(SetPixel(4, 5, 2)) == {"op": "pixel", "x": 4, "y": 5, "layer": 2}


@pytest.mark.unit
@pytest.mark.asyncio
class TestSurfaces:

    async def test_log_surface_counts(self):
        surface = LogSurface()
        await surface.apply([SelectColor(1, 2, 3), SetPixel(1, 1), SetPixel(2, 1)])
        await surface.refresh_gallery()
        assert surface.pixels_drawn == 2
        assert surface.colors_selected == 1

    async def test_http_surface_posts_batches(self):
        seen = []

        def handler(request):
            seen.append((request.method, str(request.url), request.content))
            return httpx.Response(204)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            surface = HttpSurface(url="http://host:8787", client=client)
            await surface.apply([SelectColor(9, 8, 7), SetPixel(1, 2, 1)])
            await surface.refresh_gallery()
            await surface.aclose()
            assert not client.is_closed

        assert seen[0][:2] == ("POST", "http://host:8787/batch")
        assert json.loads(seen[0][2]) == {"operations": [
            {"op": "color", "r": 9, "g": 8, "b": 7},
            {"op": "pixel", "x": 1, "y": 2, "layer": 1},
        ]}
        assert seen[1][:2] == ("POST", "http://host:8787/refresh")

    async def test_http_surface_raises_on_error(self):
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(503))) as client:
            surface = HttpSurface(url="http://host", client=client)
            with pytest.raises(httpx.HTTPStatusError):
                await surface.apply([SetPixel(1, 1)])
