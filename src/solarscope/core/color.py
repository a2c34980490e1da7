"""
HSL colour helpers.

Colours travel through the mapper as hue/saturation/lightness triples
(hue in degrees, saturation and lightness in percent) and are only turned
into RGB at draw time.
"""

import colorsys
import math
from typing import NamedTuple


def round_half_up(value: float) -> int:
    """Round .5 away from zero towards +inf (``round`` uses banker's rounding)."""
    return int(math.floor(value + 0.5))


def finite_or(value: float, default: float = 0.0) -> float:
    """Return ``value`` as a float, or ``default`` when it is NaN/inf/not a number."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


def posterize(value: float, levels: int) -> float:
    """
    Quantize a percentage to ``levels`` discrete steps.

    Args:
        value: Percentage value (normally 0-100).
        levels: Number of steps. Anything up to 1 (or non-finite) collapses
            every input onto the single level 0.

    Returns:
        ``value`` snapped to the nearest multiple of ``100 / levels``.
    """
    levels = finite_or(levels, 1.0)
    if levels <= 1:
        return 0.0
    step = 100.0 / levels
    return round_half_up(finite_or(value) / step) * step


class HSL(NamedTuple):
    """A colour in CSS-style HSL space."""

    hue: float  # degrees
    saturation: float  # percent
    lightness: float  # percent

    def to_rgb(self) -> tuple[int, int, int]:
        """Convert to an 8-bit RGB tuple."""
        h = (finite_or(self.hue) % 360.0) / 360.0
        s = min(max(finite_or(self.saturation) / 100.0, 0.0), 1.0)
        l = min(max(finite_or(self.lightness) / 100.0, 0.0), 1.0)
        r, g, b = colorsys.hls_to_rgb(h, l, s)
        return (round_half_up(r * 255), round_half_up(g * 255), round_half_up(b * 255))

    def to_rgba(self, alpha: float = 1.0) -> tuple[int, int, int, int]:
        """Convert to an 8-bit RGBA tuple; ``alpha`` is 0-1."""
        a = min(max(finite_or(alpha, 1.0), 0.0), 1.0)
        return self.to_rgb() + (round_half_up(a * 255),)

    def css(self, alpha: float | None = None) -> str:
        """CSS notation, handy for debugging output."""
        if alpha is None:
            return f"hsl({round_half_up(self.hue)}, {self.saturation:g}%, {self.lightness:g}%)"
        return f"hsla({round_half_up(self.hue)}, {self.saturation:g}%, {self.lightness:g}%, {alpha:g})"
