"""
Conversion service: archive uploads, encode them into pixel grids and
publish the drawing document.

All durable state lives in the remote store. The service holds only the
read-only settings and its collaborators, so requests never share
mutable state.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional
from urllib.parse import unquote, urlparse

import httpx

from .config import Settings
from .encoder import encode
from .errors import (
    BridgeError,
    ConfigError,
    EmptyInputError,
    NotFoundError,
    PayloadTooLargeError,
    PublishError,
    TransientError,
    ValidationError,
)
from .models import (
    ArchivedImageListing,
    DrawingDocument,
    DrawingMeta,
    ImageArchiveEntry,
    PixelRecord,
)
from .store import RemoteDocumentStore

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9._-]")


def sanitize_filename(filename: Optional[str], default: str = "image") -> str:
    """
    Make an uploaded filename safe to use as a repository path segment.

    Lower-cases, turns whitespace into underscores and drops every character
    outside [a-z0-9._-]. Leading dots are removed so the result is never a
    hidden file or a relative path component.

    >>> sanitize_filename("My Photo! (1).PNG")
    'my_photo_1.png'
    """
    name = (filename or "").strip().lower()
    name = _WHITESPACE.sub("_", name)
    name = _DISALLOWED.sub("", name)
    name = name.lstrip(".")
    return name or default


def utc_stamp(now: datetime) -> str:
    """ISO-8601 UTC timestamp with microseconds, e.g. 2025-01-15T10:30:00.123456Z"""
    return now.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


@dataclass
class ConversionResult:
    """Summary of a published drawing."""
    total_pixels: int
    canvas_size: int
    drawing_url: str
    image: Optional[ImageArchiveEntry] = None
    updated_at: Optional[str] = None


class ConversionService:
    """
    Orchestrates the encoder and the remote store.

    Usage:
        service = ConversionService(settings, store, http_client)
        result = await service.convert_upload(data, "cat.png")
    """

    def __init__(
        self,
        settings: Settings,
        store: RemoteDocumentStore,
        http_client: httpx.AsyncClient,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.settings = settings
        self.store = store
        self.http_client = http_client
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    # -- helpers ---------------------------------------------------------

    def _require_config(self):
        missing = self.settings.missing()
        if missing:
            raise ConfigError(
                f"Server not configured: missing {' and '.join(missing)} env vars. "
                "Set them and restart the service."
            )

    def _too_large(self) -> PayloadTooLargeError:
        limit_mb = self.settings.max_upload_bytes / (1024 * 1024)
        return PayloadTooLargeError(f"Image exceeds the {limit_mb:g} MB upload limit")

    def _check_size(self, data: bytes):
        if not data:
            raise EmptyInputError("Image file is empty")
        if len(data) > self.settings.max_upload_bytes:
            raise self._too_large()

    def archive_path(self, filename: str) -> str:
        return f"{self.settings.images_folder}/{filename}"

    async def verify_store(self) -> dict:
        """Fail fast on a misconfigured or unreachable store before any encoding work."""
        self._require_config()
        return await self.store.check_repository()

    async def _encode(self, data: bytes) -> List[PixelRecord]:
        # Pillow work is CPU bound, keep it off the event loop
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            encode,
            data,
            self.settings.canvas_size,
            self.settings.alpha_threshold,
        )

    # -- store operations ------------------------------------------------

    async def archive_image(self, data: bytes, filename: str) -> ImageArchiveEntry:
        """Store the original upload under images/<filename>, replacing any previous copy."""
        path = self.archive_path(filename)
        sha = await self.store.read_hash(path)
        await self.store.write(path, data, f"Archive image {filename}", sha)
        return ImageArchiveEntry(filename=filename, path=path, raw_url=self.settings.raw_url(path))

    async def publish(
        self,
        pixels: List[PixelRecord],
        filename: Optional[str] = None,
        image_url: Optional[str] = None
    ) -> DrawingDocument:
        """
        Replace the drawing document with a new pixel list.

        Reads the current hash and writes against it, so a concurrent
        publisher that got there first makes this write fail with
        ConflictError rather than being overwritten.
        """
        document = DrawingDocument(
            meta=DrawingMeta(
                canvas_size=self.settings.canvas_size,
                total_pixels=len(pixels),
                updated_at=utc_stamp(self.clock()),
                filename=filename,
                image_url=image_url,
            ),
            pixels=pixels,
        )
        content = json.dumps(document.to_json_dict(), indent=2).encode("utf-8")

        path = self.settings.drawing_path
        sha = await self.store.read_hash(path)
        await self.store.write(path, content, f"Update drawing - {len(pixels)} pixels", sha)
        logger.info("Published %s: %d pixels (%s)", path, len(pixels), document.meta.updated_at)
        return document

    async def read_drawing(self) -> DrawingDocument:
        """Read back the currently published drawing."""
        self._require_config()
        content, _ = await self.store.read(self.settings.drawing_path)
        return DrawingDocument.model_validate_json(content)

    # -- conversions -----------------------------------------------------

    async def convert_upload(self, data: bytes, original_filename: Optional[str]) -> ConversionResult:
        """
        Archive an uploaded image, convert it and publish the drawing.

        The image is decoded before anything is archived, so an unreadable
        file never reaches the repository. If publishing fails after the
        archive write succeeded, the archived copy is kept and PublishError
        tells the caller which URL to retry with.
        """
        self._check_size(data)
        await self.verify_store()

        filename = sanitize_filename(original_filename)
        logger.info("Processing image: %s (%d bytes)", filename, len(data))

        pixels = await self._encode(data)
        logger.info(
            "Converted to %d pixels at %dx%d",
            len(pixels), self.settings.canvas_size, self.settings.canvas_size
        )

        entry = await self.archive_image(data, filename)

        try:
            document = await self.publish(pixels, filename=filename, image_url=entry.raw_url)
        except BridgeError as e:
            logger.warning("Archived %s but publishing the drawing failed: %s", entry.path, e.message)
            raise PublishError(
                f"Image archived but the drawing could not be published: {e.message}. "
                "Retry with /use-image using the archived image URL.",
                image=entry.model_dump(by_alias=True),
                cause=e,
            )

        return ConversionResult(
            total_pixels=len(pixels),
            canvas_size=self.settings.canvas_size,
            drawing_url=self.settings.drawing_url,
            image=entry,
            updated_at=document.meta.updated_at,
        )

    async def fetch_image(self, url: str) -> bytes:
        """
        Download image bytes from an http(s) URL.

        The body is streamed and the download is abandoned as soon as it
        passes max_upload_bytes, so an oversize or endless response is
        never held in memory.
        """
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError("rawUrl must be an http(s) URL")

        limit = self.settings.max_upload_bytes
        chunks = []
        received = 0
        try:
            async with self.http_client.stream("GET", url, follow_redirects=True) as response:
                if response.status_code == 404:
                    raise NotFoundError(f"Image not found at {url}")
                if response.is_error:
                    raise TransientError(f"Fetching image failed with HTTP {response.status_code}")

                declared = response.headers.get("content-length", "")
                if declared.isdigit() and int(declared) > limit:
                    raise self._too_large()

                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if received > limit:
                        raise self._too_large()
                    chunks.append(chunk)
        except httpx.TimeoutException as e:
            raise TransientError(f"Timed out fetching image: {e}")
        except httpx.TransportError as e:
            raise TransientError(f"Could not fetch image: {e}")

        return b"".join(chunks)

    async def convert_from_url(self, raw_url: Optional[str], display_name: Optional[str] = None) -> ConversionResult:
        """Convert an image that is already reachable by URL (typically an archived one) without re-archiving it."""
        if not raw_url or not raw_url.strip():
            raise ValidationError("No image URL provided")
        raw_url = raw_url.strip()

        await self.verify_store()
        data = await self.fetch_image(raw_url)
        self._check_size(data)

        if not display_name:
            display_name = unquote(urlparse(raw_url).path.rsplit("/", 1)[-1]) or "image"

        pixels = await self._encode(data)
        document = await self.publish(pixels, filename=display_name, image_url=raw_url)

        return ConversionResult(
            total_pixels=len(pixels),
            canvas_size=self.settings.canvas_size,
            drawing_url=self.settings.drawing_url,
            updated_at=document.meta.updated_at,
        )

    # -- archive ---------------------------------------------------------

    async def list_archive(self) -> List[ArchivedImageListing]:
        self._require_config()
        files = await self.store.list(self.settings.images_folder)
        return [
            ArchivedImageListing(
                name=f.name,
                path=f.path,
                size=f.size,
                raw_url=self.settings.raw_url(f.path),
                sha=f.sha,
            )
            for f in files
        ]

    async def delete_archive_entry(self, filename: str) -> str:
        """Delete an archived image. Raises NotFoundError if it is already gone."""
        self._require_config()
        name = sanitize_filename(filename, default="")
        if not name:
            raise ValidationError("Invalid filename")

        path = self.archive_path(name)
        sha = await self.store.read_hash(path)
        if not sha:
            raise NotFoundError(f"Image {name} not found")

        await self.store.delete(path, sha, f"Delete image {name}")
        return name

    # -- diagnostics -----------------------------------------------------

    def status(self) -> dict:
        """Liveness and configuration summary. Never raises."""
        configured = self.settings.is_configured
        return {
            "status": "running",
            "repo": self.settings.github_repo or "not configured",
            "branch": self.settings.github_branch,
            "canvasSize": self.settings.canvas_size,
            "file": self.settings.drawing_path,
            "imagesFolder": self.settings.images_folder,
            "configured": configured,
            "drawingUrl": self.settings.drawing_url if configured else None,
        }

    async def config_check(self) -> dict:
        """
        Pre-flight the configuration for the upload page.

        Returns {"ok": True, ...diagnostics} or {"ok": False, "issues": [...]};
        store failures are reported as issues, never raised.
        """
        issues = [f"{name} is not set" for name in self.settings.missing()]
        if issues:
            return {"ok": False, "issues": issues}

        try:
            repo = await self.store.check_repository()
        except BridgeError as e:
            return {"ok": False, "issues": [e.message]}

        if not repo.get("push"):
            issues.append(f"Token cannot push to {self.settings.github_repo}; grant it write access to contents")

        try:
            if not await self.store.branch_exists(self.settings.github_branch):
                issues.append(f"Branch '{self.settings.github_branch}' does not exist in {self.settings.github_repo}")
        except BridgeError as e:
            issues.append(e.message)

        if issues:
            return {"ok": False, "issues": issues}

        return {
            "ok": True,
            "repo": repo.get("repo"),
            "branch": self.settings.github_branch,
            "canPush": True,
            "canvasSize": self.settings.canvas_size,
            "drawingUrl": self.settings.drawing_url,
        }
