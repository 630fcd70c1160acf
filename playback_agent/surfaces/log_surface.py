"""
Surface that only logs what it would draw. Useful for dry runs.
"""

import logging
from typing import List

from .base import Operation, SelectColor, SetPixel, TargetSurface

logger = logging.getLogger(__name__)


class LogSurface(TargetSurface):

    def __init__(self, **kwargs):
        self.pixels_drawn = 0
        self.colors_selected = 0

    @property
    def name(self) -> str:
        return "log"

    async def apply(self, operations: List[Operation]) -> None:
        for op in operations:
            if isinstance(op, SelectColor):
                self.colors_selected += 1
                logger.debug("color #%02x%02x%02x", op.r, op.g, op.b)
            elif isinstance(op, SetPixel):
                self.pixels_drawn += 1
                logger.debug("pixel (%d, %d) layer %d", op.x, op.y, op.layer)

    async def refresh_gallery(self) -> None:
        logger.info("Gallery refresh requested (%d pixels drawn so far)", self.pixels_drawn)
