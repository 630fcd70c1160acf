"""
Conversion routes.

POST /upload     - multipart upload (field "image"), archived and converted
POST /use-image  - convert an image already reachable by URL, no archiving
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile

from pixelbridge.config import Settings
from pixelbridge.dependencies import get_service, get_settings
from pixelbridge.errors import BridgeError, ValidationError
from pixelbridge.models import ConversionResponse, UseImageRequest
from pixelbridge.service import ConversionService
from pixelbridge.utils import log_conversion

router = APIRouter(tags=["Drawing"])


@router.post("/upload", response_model=ConversionResponse)
async def upload_image(
    request: Request,
    image: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
    service: ConversionService = Depends(get_service)
):
    """
    Convert an uploaded image and publish it as the current drawing.

    The original file is archived in the images folder so it can be
    reused later through /use-image.
    """
    if image is None:
        raise ValidationError("No image file provided")

    # One byte past the limit is enough to tell an oversize upload apart
    data = await image.read(settings.max_upload_bytes + 1)

    try:
        result = await service.convert_upload(data, image.filename)
    except BridgeError as e:
        log_conversion("upload", image.filename, False, request=request, details=e.message)
        raise

    log_conversion("upload", result.image.filename, True, result.total_pixels, request=request)

    return ConversionResponse(
        image=result.image,
        total_pixels=result.total_pixels,
        canvas_size=result.canvas_size,
        drawing_url=result.drawing_url,
        message=f"Image converted to {result.total_pixels} pixels and saved",
    )


@router.post("/use-image", response_model=ConversionResponse)
async def use_image(
    body: UseImageRequest,
    request: Request,
    service: ConversionService = Depends(get_service)
):
    """Re-publish a previously archived (or any reachable) image as the current drawing."""
    try:
        result = await service.convert_from_url(body.raw_url, body.filename)
    except BridgeError as e:
        log_conversion("url", body.filename, False, request=request, details=e.message)
        raise

    log_conversion("url", body.filename, True, result.total_pixels, request=request)

    return ConversionResponse(
        total_pixels=result.total_pixels,
        canvas_size=result.canvas_size,
        drawing_url=result.drawing_url,
        message=f"Image converted to {result.total_pixels} pixels and saved",
    )
