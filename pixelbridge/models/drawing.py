"""
Pydantic models for the published drawing document.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class PixelRecord(BaseModel):
    """One opaque grid cell. Coordinates are 1-based."""
    x: int = Field(..., ge=1)
    y: int = Field(..., ge=1)
    r: int = Field(..., ge=0, le=255)
    g: int = Field(..., ge=0, le=255)
    b: int = Field(..., ge=0, le=255)


class DrawingMeta(BaseModel):
    """Header of the drawing document, read by the playback agent first."""
    model_config = ConfigDict(populate_by_name=True)

    canvas_size: int = Field(..., ge=1, alias="canvasSize")
    total_pixels: int = Field(..., ge=0, alias="totalPixels")
    updated_at: Optional[str] = Field(None, alias="updatedAt")
    filename: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")


class DrawingDocument(BaseModel):
    """The single live drawing: metadata plus the sparse pixel list."""
    meta: DrawingMeta
    pixels: List[PixelRecord]

    @model_validator(mode="after")
    def check_pixels(self):
        if self.meta.total_pixels != len(self.pixels):
            raise ValueError(
                f"totalPixels ({self.meta.total_pixels}) does not match pixel count ({len(self.pixels)})"
            )
        size = self.meta.canvas_size
        for p in self.pixels:
            if p.x > size or p.y > size:
                raise ValueError(f"pixel ({p.x}, {p.y}) outside {size}x{size} canvas")
        return self

    @property
    def stamp(self) -> str:
        """Change-detection value: updatedAt, or the pixel count when absent."""
        if self.meta.updated_at:
            return str(self.meta.updated_at)
        return str(len(self.pixels))

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
