"""
Drawing-surface size tracking.

All scene code works in logical units; the backing buffer is
``logical size * pixel ratio`` pixels.
"""

import math
from dataclasses import dataclass

from solarscope.core.color import finite_or


@dataclass
class Viewport:
    """Logical size and pixel density of the drawing surface."""

    width: float = 0.0
    height: float = 0.0
    pixel_ratio: float = 1.0

    def update(self, width: float, height: float, pixel_ratio: float | None = None) -> bool:
        """
        Record a new size and/or density.

        Args:
            width: Logical width. Negative/non-finite values become 0.
            height: Logical height. Negative/non-finite values become 0.
            pixel_ratio: Device pixels per logical unit. Keeps the current
                ratio when None; non-positive/non-finite values become 1.

        Returns:
            True if anything changed.
        """
        width = max(0.0, finite_or(width))
        height = max(0.0, finite_or(height))
        if pixel_ratio is None:
            pixel_ratio = self.pixel_ratio
        pixel_ratio = finite_or(pixel_ratio, 1.0)
        if pixel_ratio <= 0:
            pixel_ratio = 1.0

        changed = (width, height, pixel_ratio) != (self.width, self.height, self.pixel_ratio)
        self.width, self.height, self.pixel_ratio = width, height, pixel_ratio
        return changed

    @property
    def size(self) -> tuple[float, float]:
        return (self.width, self.height)

    @property
    def backing_size(self) -> tuple[int, int]:
        """Backing buffer size in device pixels."""
        return (
            int(math.floor(self.width * self.pixel_ratio)),
            int(math.floor(self.height * self.pixel_ratio)),
        )

    @property
    def center(self) -> tuple[float, float]:
        return (self.width / 2, self.height / 2)

    @property
    def is_empty(self) -> bool:
        bw, bh = self.backing_size
        return bw == 0 or bh == 0
