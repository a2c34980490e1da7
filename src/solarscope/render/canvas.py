"""
2D render target on top of a pygame surface.

Coordinates passed to every primitive are logical units; the canvas
scales them to the backing buffer (the equivalent of a canvas
``setTransform(ratio, 0, 0, ratio, 0, 0)``).

Translucent shapes (rects, circles, lines) are collected on a per-pixel
alpha overlay that is composited onto the backing buffer before any
full-buffer operation and at ``flush()``.
"""

import math
from contextlib import contextmanager
from typing import Iterator, Sequence

import numpy as np
import pygame

from solarscope.errors import RenderTargetLost
from solarscope.render.viewport import Viewport

RGBA = tuple[int, int, int, int]

# Gradient layers are cached; background/core only change with the signal
_GRADIENT_CACHE_SIZE = 4


class Canvas:
    """
    Drawing surface exposing the six primitives the corona scene needs:
    clear, filled rect, filled circle, stroked line, radial gradient and
    raw pixel blending.
    """

    def __init__(self, viewport: Viewport | None = None):
        self.viewport = Viewport()
        self.scale = 1.0
        self._surface: pygame.Surface | None = None
        self._overlay: pygame.Surface | None = None
        self._overlay_dirty = False
        self._gradients: dict[tuple, tuple[pygame.Surface, bytes]] = {}
        self.resize(viewport if viewport is not None else Viewport())

    # -- lifecycle ---------------------------------------------------------

    def resize(self, viewport: Viewport) -> bool:
        """
        Match the backing buffer to ``viewport``.

        Reallocates only when the backing size changes; always refreshes
        the logical→backing scale. Returns True if buffers were reallocated.
        """
        old_backing = self.viewport.backing_size if self._surface is not None else None
        self.viewport = Viewport(viewport.width, viewport.height, viewport.pixel_ratio)
        self.scale = self.viewport.pixel_ratio

        backing = self.viewport.backing_size
        if backing == old_backing:
            return False

        try:
            self._surface = pygame.Surface(backing, 0, 32)
            self._overlay = pygame.Surface(backing, pygame.SRCALPHA, 32)
        except pygame.error as e:
            self._surface = None
            self._overlay = None
            raise RenderTargetLost(f"Cannot allocate {backing[0]}x{backing[1]} surface: {e}") from e
        self._overlay.fill((0, 0, 0, 0))
        self._overlay_dirty = False
        self._gradients.clear()
        return True

    def release(self):
        """Drop the backing buffers; further drawing raises RenderTargetLost."""
        self._surface = None
        self._overlay = None
        self._gradients.clear()

    @property
    def surface(self) -> pygame.Surface:
        if self._surface is None:
            raise RenderTargetLost("Canvas has no backing surface")
        return self._surface

    @property
    def logical_size(self) -> tuple[float, float]:
        return self.viewport.size

    @property
    def backing_size(self) -> tuple[int, int]:
        return self.viewport.backing_size

    @contextmanager
    def _drawing(self, overlay: bool = False) -> Iterator[pygame.Surface]:
        if self._surface is None or self._overlay is None:
            raise RenderTargetLost("Canvas has no backing surface")
        try:
            if overlay:
                self._overlay_dirty = True
                yield self._overlay
            else:
                self._composite()
                yield self._surface
        except pygame.error as e:
            raise RenderTargetLost(str(e)) from e

    def _composite(self):
        if self._overlay_dirty:
            self._surface.blit(self._overlay, (0, 0))
            self._overlay.fill((0, 0, 0, 0))
            self._overlay_dirty = False

    def flush(self):
        """Composite pending translucent shapes onto the backing buffer."""
        with self._drawing():
            pass

    # -- primitives --------------------------------------------------------

    def clear(self, color: Sequence[int] = (0, 0, 0)):
        """Fill the whole buffer and discard pending overlay shapes."""
        if self._overlay is not None and self._overlay_dirty:
            self._overlay.fill((0, 0, 0, 0))
            self._overlay_dirty = False
        with self._drawing() as surface:
            surface.fill(tuple(color[:3]))

    def fill_rect(self, x: float, y: float, w: float, h: float, color: RGBA):
        s = self.scale
        rect = pygame.Rect(
            int(math.floor(x * s)),
            int(math.floor(y * s)),
            max(1, int(round(w * s))),
            max(1, int(round(h * s))),
        )
        with self._drawing(overlay=True) as layer:
            pygame.draw.rect(layer, color, rect)

    def fill_circle(self, cx: float, cy: float, radius: float, color: RGBA):
        s = self.scale
        with self._drawing(overlay=True) as layer:
            pygame.draw.circle(layer, color, (cx * s, cy * s), max(1.0, radius * s))

    def stroke_line(
        self,
        start: tuple[float, float],
        end: tuple[float, float],
        color: RGBA,
        width: float = 1.0,
    ):
        s = self.scale
        with self._drawing(overlay=True) as layer:
            pygame.draw.line(
                layer,
                color,
                (start[0] * s, start[1] * s),
                (end[0] * s, end[1] * s),
                max(1, int(round(width * s))),
            )

    def fill_radial_gradient(
        self,
        center: tuple[float, float],
        inner_radius: float,
        outer_radius: float,
        inner_color: RGBA,
        outer_color: RGBA,
        bounded: bool = False,
    ):
        """
        Composite a two-stop radial gradient.

        Colours interpolate in premultiplied space between ``inner_radius``
        and ``outer_radius``; inside the inner radius the inner colour is
        used, outside the outer radius the outer colour. With ``bounded``
        the fill is clipped to the outer circle (an ``arc`` + ``fill``),
        otherwise it covers the whole buffer (a ``fillRect``).
        """
        s = self.scale
        cx, cy = center[0] * s, center[1] * s
        r0, r1 = inner_radius * s, outer_radius * s

        with self._drawing() as surface:
            bw, bh = surface.get_size()
            if bounded:
                x0 = max(0, int(math.floor(cx - r1)))
                x1 = min(bw, int(math.ceil(cx + r1)))
                y0 = max(0, int(math.floor(cy - r1)))
                y1 = min(bh, int(math.ceil(cy + r1)))
            else:
                x0, y0, x1, y1 = 0, 0, bw, bh
            if x1 <= x0 or y1 <= y0:
                return

            key = (
                x0, y0, x1, y1,
                round(cx, 2), round(cy, 2), round(r0, 2), round(r1, 2),
                tuple(inner_color), tuple(outer_color), bounded,
            )
            cached = self._gradients.get(key)
            if cached is None:
                cached = self._build_gradient(
                    (x0, y0, x1, y1), (cx, cy), r0, r1, inner_color, outer_color, bounded
                )
                if len(self._gradients) >= _GRADIENT_CACHE_SIZE:
                    self._gradients.pop(next(iter(self._gradients)))
                self._gradients[key] = cached

            surface.blit(cached[0], (x0, y0))

    def _build_gradient(
        self,
        box: tuple[int, int, int, int],
        center: tuple[float, float],
        r0: float,
        r1: float,
        inner_color: RGBA,
        outer_color: RGBA,
        bounded: bool,
    ) -> tuple[pygame.Surface, bytes]:
        x0, y0, x1, y1 = box
        cx, cy = center
        y, x = np.mgrid[y0:y1, x0:x1].astype(np.float32)
        dist = np.sqrt((x + 0.5 - cx) ** 2 + (y + 0.5 - cy) ** 2)
        span = max(r1 - r0, 1e-6)
        t = np.clip((dist - r0) / span, 0, 1)[:, :, np.newaxis]

        c0 = np.asarray(inner_color, dtype=np.float32) / 255.0
        c1 = np.asarray(outer_color, dtype=np.float32) / 255.0
        alpha = c0[3] * (1 - t) + c1[3] * t
        premult = (c0[:3] * c0[3]) * (1 - t) + (c1[:3] * c1[3]) * t
        rgb = premult / np.maximum(alpha, 1e-6)

        if bounded:
            alpha = np.where(dist[:, :, np.newaxis] > r1, 0.0, alpha)

        rgba = np.concatenate([rgb, alpha], axis=2)
        data = (np.clip(rgba, 0, 1) * 255).astype(np.uint8).tobytes()
        layer = pygame.image.frombuffer(data, (x1 - x0, y1 - y0), "RGBA")
        return layer, data

    def blend_pixels(self, values: np.ndarray, opacity: float):
        """
        Blend a raw pixel buffer over the whole frame.

        Args:
            values: (H, W) grey or (H, W, 3) RGB array at backing
                resolution, 0-255.
            opacity: Blend factor 0-1.
        """
        opacity = min(max(float(opacity), 0.0), 1.0)
        src = np.asarray(values, dtype=np.float32)
        if src.ndim == 2:
            src = src[:, :, np.newaxis]
        bw, bh = self.backing_size
        if src.shape[:2] != (bh, bw):
            raise ValueError(f"Pixel buffer {src.shape[:2]} does not match backing size {(bh, bw)}")

        with self._drawing() as surface:
            pixels = pygame.surfarray.pixels3d(surface)
            # surfarray is (W, H, 3)
            src = np.transpose(src, (1, 0, 2))
            blended = pixels.astype(np.float32) * (1.0 - opacity) + src * opacity
            pixels[...] = np.clip(blended, 0, 255).astype(np.uint8)
            del pixels

    def to_array(self) -> np.ndarray:
        """Copy of the composited frame as an (H, W, 3) uint8 array."""
        self.flush()
        arr = pygame.surfarray.array3d(self.surface)
        return np.transpose(arr, (1, 0, 2))
