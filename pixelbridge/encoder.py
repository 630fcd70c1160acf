"""
Image to pixel-grid conversion.

The renderer on the other side addresses its canvas with 1-based (x, y)
grid positions and leaves untouched cells blank, so transparent cells are
dropped and the result is a sparse, row-major list of pixel records.
"""

import io
import logging
from typing import List

from PIL import Image, UnidentifiedImageError

from .errors import DecodeError, EmptyInputError
from .models import PixelRecord

logger = logging.getLogger(__name__)

DEFAULT_ALPHA_THRESHOLD = 10


def load_rgba(data: bytes) -> Image.Image:
    """Decode image bytes into an RGBA image, adding an opaque alpha channel if missing."""
    if not data:
        raise EmptyInputError("Image is empty")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
        return img.convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as e:
        raise DecodeError(f"Could not decode image: {e}")


def encode(data: bytes, target_size: int, alpha_threshold: int = DEFAULT_ALPHA_THRESHOLD) -> List[PixelRecord]:
    """
    Convert image bytes into pixel records on a target_size x target_size grid.

    The source is stretched to fill the grid (aspect ratio is not kept).
    Cells are visited row by row, y outer and x inner, and a record is
    emitted only when the cell's alpha is at least alpha_threshold.

    Raises:
        EmptyInputError: data is zero-length
        DecodeError: data is not a readable raster image
    """
    if target_size < 1:
        raise ValueError("target_size must be positive")

    img = load_rgba(data)
    if img.size != (target_size, target_size):
        img = img.resize((target_size, target_size), Image.Resampling.LANCZOS)

    raw = img.tobytes()
    pixels = []
    for y in range(target_size):
        row = y * target_size
        for x in range(target_size):
            i = (row + x) * 4
            if raw[i + 3] < alpha_threshold:
                continue
            pixels.append(PixelRecord(x=x + 1, y=y + 1, r=raw[i], g=raw[i + 1], b=raw[i + 2]))

    logger.debug("Encoded %d opaque pixels on a %dx%d grid", len(pixels), target_size, target_size)
    return pixels
