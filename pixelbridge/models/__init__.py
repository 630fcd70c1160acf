"""
Pydantic models for the drawing document and the HTTP API.
"""

from .drawing import (
    PixelRecord,
    DrawingMeta,
    DrawingDocument
)

from .archive import (
    RemoteFile,
    ImageArchiveEntry,
    ArchivedImageListing
)

from .api import (
    UseImageRequest,
    ConversionResponse,
    ImageListResponse,
    DeleteResponse
)

__all__ = [
    # Drawing document
    "PixelRecord",
    "DrawingMeta",
    "DrawingDocument",

    # Archive
    "RemoteFile",
    "ImageArchiveEntry",
    "ArchivedImageListing",

    # API bodies
    "UseImageRequest",
    "ConversionResponse",
    "ImageListResponse",
    "DeleteResponse"
]
