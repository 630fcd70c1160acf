"""
Image archive routes.

Lists and deletes the original uploads kept in the images folder.
"""

from fastapi import APIRouter, Depends

from pixelbridge.dependencies import get_service
from pixelbridge.models import DeleteResponse, ImageListResponse
from pixelbridge.service import ConversionService

router = APIRouter(prefix="/images", tags=["Image Archive"])


@router.get("", response_model=ImageListResponse)
async def list_images(service: ConversionService = Depends(get_service)):
    """List archived images. An empty or missing folder yields an empty list."""
    images = await service.list_archive()
    return ImageListResponse(images=images)


@router.delete("/{filename}", response_model=DeleteResponse)
async def delete_image(filename: str, service: ConversionService = Depends(get_service)):
    """
    Delete an archived image.

    Returns 404 if the image does not exist. The current drawing is not
    touched even if it was made from this image.
    """
    deleted = await service.delete_archive_entry(filename)
    return DeleteResponse(deleted=deleted)
