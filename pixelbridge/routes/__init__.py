"""
API route modules.
"""

from .drawing import router as drawing_router
from .images import router as images_router
from .system import router as system_router

__all__ = [
    "drawing_router",
    "images_router",
    "system_router"
]
