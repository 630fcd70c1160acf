"""
Integration tests for ConversionService wired to GitHubStore and the fake API.
"""

import itertools
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from fake_github import make_image
from pixelbridge.errors import ConflictError, DecodeError, PublishError
from pixelbridge.models import PixelRecord
from pixelbridge.service import ConversionService
from pixelbridge.store import GitHubStore


def ticking_clock(start=datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)):
    counter = itertools.count()
    return lambda: start + timedelta(microseconds=next(counter))


def make_service(fake_github, settings, store_cls=GitHubStore, clock=None):
    client = httpx.AsyncClient(transport=fake_github.transport())
    return client, ConversionService(settings, store_cls(settings, client), client, clock=clock or ticking_clock())


class RacingStore(GitHubStore):
    """Lets another writer update the drawing between our hash read and our write."""

    def __init__(self, settings, client):
        super().__init__(settings, client)
        self.race_path = None

    async def read_hash(self, path):
        sha = await super().read_hash(path)
        if path == self.race_path:
            self.race_path = None
            await GitHubStore.write(self, path, b'{"winner": true}', "other writer", sha)
        return sha


@pytest.mark.integration
@pytest.mark.asyncio
class TestPublish:

    async def test_publish_round_trip(self, fake_github, settings):
        pixels = [PixelRecord(x=1, y=1, r=1, g=2, b=3), PixelRecord(x=2, y=1, r=4, g=5, b=6)]
        client, service = make_service(fake_github, settings)
        async with client:
            first = await service.publish(pixels, filename="a.png")
            read_back = await service.read_drawing()
            second = await service.publish(pixels[:1], filename="b.png")

        assert read_back.pixels == pixels
        assert read_back.meta.total_pixels == 2
        assert read_back.meta.canvas_size == settings.canvas_size
        assert read_back.stamp == first.stamp
        assert second.stamp != first.stamp
        assert fake_github.json("drawing.json")["meta"]["totalPixels"] == 1
        assert [c["message"] for c in fake_github.commits] == [
            "Update drawing - 2 pixels",
            "Update drawing - 1 pixels",
        ]

    async def test_document_written_with_wire_names(self, fake_github, settings):
        client, service = make_service(fake_github, settings)
        async with client:
            await service.publish([PixelRecord(x=1, y=1, r=9, g=9, b=9)], filename="a.png", image_url="https://raw/a.png")

        doc = fake_github.json("drawing.json")
        assert doc["meta"] == {
            "canvasSize": 8,
            "totalPixels": 1,
            "updatedAt": "2025-01-15T10:00:00.000000Z",
            "filename": "a.png",
            "imageUrl": "https://raw/a.png",
        }
        assert doc["pixels"] == [{"x": 1, "y": 1, "r": 9, "g": 9, "b": 9}]

    async def test_lost_race_is_a_conflict(self, fake_github, settings):
        fake_github.put_file("drawing.json", b"{}")
        client, service = make_service(fake_github, settings, store_cls=RacingStore)
        service.store.race_path = "drawing.json"
        async with client:
            with pytest.raises(ConflictError):
                await service.publish([PixelRecord(x=1, y=1, r=0, g=0, b=0)])

        assert fake_github.json("drawing.json") == {"winner": True}


@pytest.mark.integration
@pytest.mark.asyncio
class TestConvertUpload:

    async def test_archive_then_publish(self, fake_github, settings):
        client, service = make_service(fake_github, settings)
        data = make_image((4, 4), (0, 255, 0, 255))
        async with client:
            result = await service.convert_upload(data, "Green Square.PNG")

        assert result.total_pixels == 64
        assert result.image.filename == "green_square.png"
        assert result.image.raw_url == fake_github.raw_url("images/green_square.png")
        assert fake_github.content("images/green_square.png") == data
        assert fake_github.json("drawing.json")["meta"]["imageUrl"] == result.image.raw_url
        assert [c["path"] for c in fake_github.commits] == ["images/green_square.png", "drawing.json"]

    async def test_reupload_replaces_archive(self, fake_github, settings):
        client, service = make_service(fake_github, settings)
        async with client:
            await service.convert_upload(make_image(color=(1, 1, 1, 255)), "a.png")
            await service.convert_upload(make_image(color=(2, 2, 2, 255)), "a.png")

        assert fake_github.content("images/a.png") == make_image(color=(2, 2, 2, 255))

    async def test_undecodable_upload_is_not_archived(self, fake_github, settings):
        client, service = make_service(fake_github, settings)
        async with client:
            with pytest.raises(DecodeError):
                await service.convert_upload(b"GIF89a but not really", "bad.gif")

        assert fake_github.files == {}
        assert fake_github.commits == []

    async def test_publish_failure_keeps_archive(self, fake_github, settings):
        fake_github.fail_next("PUT", "drawing.json", 503, "Service Unavailable")
        client, service = make_service(fake_github, settings)
        async with client:
            with pytest.raises(PublishError) as exc_info:
                await service.convert_upload(make_image(), "cat.png")

        error = exc_info.value
        assert "images/cat.png" in fake_github.files
        assert "drawing.json" not in fake_github.files
        assert error.image["rawUrl"] == fake_github.raw_url("images/cat.png")
        assert error.to_dict()["recoverable"] is True


@pytest.mark.integration
@pytest.mark.asyncio
class TestConvertFromUrl:

    async def test_external_url(self, fake_github, settings):
        url = "https://example.com/pics/Sun%20Set.png"
        fake_github.external[url] = make_image((3, 3), (255, 200, 0, 255))
        client, service = make_service(fake_github, settings)
        async with client:
            result = await service.convert_from_url(url)

        doc = fake_github.json("drawing.json")
        assert result.total_pixels == 64
        assert result.image is None
        assert doc["meta"]["filename"] == "Sun Set.png"
        assert doc["meta"]["imageUrl"] == url
        assert not any(path.startswith("images/") for path in fake_github.files)
