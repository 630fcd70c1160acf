"""
FastAPI dependencies that hand the startup-built objects to routes.

Settings and the service are created once in the app lifespan and kept
on app.state; routes receive them through Depends instead of reading
module globals.
"""

from fastapi import Request

from .config import Settings
from .service import ConversionService


def get_settings(request: Request) -> Settings:
    """Return the application's settings."""
    return request.app.state.settings


def get_service(request: Request) -> ConversionService:
    """Return the conversion service bound to this application."""
    return request.app.state.service
