"""
Base classes and interfaces for render targets.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Union


@dataclass(frozen=True)
class SelectColor:
    """Switch the brush colour. Only emitted when the colour actually changes."""
    r: int
    g: int
    b: int


@dataclass(frozen=True)
class SetPixel:
    """Paint one 1-based grid cell with the current colour."""
    x: int
    y: int
    layer: int = 1


Operation = Union[SelectColor, SetPixel]


class TargetSurface(ABC):
    """
    Abstract base class for the canvas the agent draws on.

    The agent hands over one batch of operations per scheduling tick, so a
    surface sees at most batch_size SetPixel operations per apply() call.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the surface name."""
        pass

    @abstractmethod
    async def apply(self, operations: List[Operation]) -> None:
        """Apply one tick's worth of operations, in order."""
        pass

    async def refresh_gallery(self) -> None:
        """
        Ask the host to refresh its gallery after a drawing completes.

        Best effort: the agent logs and ignores any failure.
        """
        pass

    async def aclose(self) -> None:
        pass
