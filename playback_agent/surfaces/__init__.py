"""
Render targets for the playback agent.

Each surface receives batches of colour/pixel operations; the registry
maps the PLAYBACK_SURFACE name to an implementation.
"""

from .base import Operation, SelectColor, SetPixel, TargetSurface
from .http_surface import HttpSurface
from .log_surface import LogSurface

# Registry of available surfaces
SURFACES = {
    'log': LogSurface,
    'http': HttpSurface,
}


def get_surface(surface_name: str, **kwargs) -> TargetSurface:
    """
    Factory function to get a surface instance by name.

    Args:
        surface_name: Name of the surface ('log', 'http')
        **kwargs: Passed to the surface constructor (url, timeout)

    Returns:
        An instance of the requested surface

    Raises:
        ValueError: If surface_name is not recognized
    """
    surface_name = surface_name.lower()
    if surface_name not in SURFACES:
        available = ', '.join(SURFACES.keys())
        raise ValueError(f"Unknown surface '{surface_name}'. Available: {available}")

    return SURFACES[surface_name](**kwargs)


__all__ = [
    'Operation',
    'SelectColor',
    'SetPixel',
    'TargetSurface',
    'LogSurface',
    'HttpSurface',
    'get_surface',
    'SURFACES',
]
