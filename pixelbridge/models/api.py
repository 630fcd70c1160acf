"""
Pydantic models for HTTP request and response bodies.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .archive import ArchivedImageListing, ImageArchiveEntry


class UseImageRequest(BaseModel):
    """Request body for POST /use-image. Missing fields are reported as 400s by the route."""
    model_config = ConfigDict(populate_by_name=True)

    raw_url: Optional[str] = Field(None, alias="rawUrl", description="URL of an image to convert")
    filename: Optional[str] = Field(None, description="Display name stored in the drawing metadata")


class ConversionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    image: Optional[ImageArchiveEntry] = None
    total_pixels: int = Field(..., alias="totalPixels")
    canvas_size: int = Field(..., alias="canvasSize")
    drawing_url: str = Field(..., alias="drawingUrl")
    message: Optional[str] = None


class ImageListResponse(BaseModel):
    images: List[ArchivedImageListing]


class DeleteResponse(BaseModel):
    success: bool = True
    deleted: str
