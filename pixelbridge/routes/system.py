"""
Service banner, liveness and configuration pre-flight routes.
"""

from fastapi import APIRouter, Depends

from pixelbridge import __version__
from pixelbridge.dependencies import get_service
from pixelbridge.service import ConversionService

router = APIRouter(tags=["System"])


@router.get("/")
async def root():
    return {
        "message": "Pixel Bridge API",
        "version": __version__,
        "endpoints": ["/upload", "/use-image", "/images", "/status", "/config-check"],
    }


@router.get("/status")
async def status(service: ConversionService = Depends(get_service)):
    """Liveness plus a summary of the active configuration."""
    return service.status()


@router.get("/config-check")
async def config_check(service: ConversionService = Depends(get_service)):
    """
    Check credential, repository and branch before the user uploads anything.

    Always answers 200; problems are listed under "issues".
    """
    return await service.config_check()
