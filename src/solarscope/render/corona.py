"""
Corona frame renderer.

Paints one frame of the scene: background glow, pulsing core, orbiting
particle corona with flare streaks, and an optional film-grain pass.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np

from solarscope.core.color import HSL, finite_or
from solarscope.core.mapper import MappedVisualParams
from solarscope.core.params import ParameterSet
from solarscope.core.particles import ParticlePopulation
from solarscope.core.signal import Signal
from solarscope.render.canvas import Canvas

logger = logging.getLogger(__name__)


@dataclass
class CoronaConfig:
    """Tunable drawing constants for the corona scene."""

    # Background gradient radius as a fraction of max(width, height)
    background_radius: float = 1 / 1.2

    # Core
    core_radius: float = 0.16  # fraction of min(width, height)
    core_sunspot_growth: float = 40.0  # logical px at sunspot_area == 1
    core_inner_fraction: float = 0.08
    core_fade: HSL = HSL(0, 80, 60)  # hue replaced by the mapped hue

    # Particles
    square_size: float = 1.2
    circle_radius: float = 1.0
    sunspot_size_growth: float = 1.2
    alpha_base: float = 0.25
    alpha_jitter: float = 0.35  # twinkle

    # Flare streaks
    streak_extension: float = 1.25  # streak end as a multiple of the orbit radius
    streak_color: HSL = HSL(0, 95, 70)
    streak_alpha: float = 0.35
    streak_width: float = 1.0
    streak_chance: float | None = None  # None: use the style preset's value

    # Film grain
    grain_max: int = 30
    grain_opacity: float = 20 / 255


def _safe(value: float, default: float, what: str) -> float:
    result = finite_or(value, default)
    if result != value:
        logger.debug("Non-finite %s (%r), using %r", what, value, default)
    return result


class CoronaRenderer:
    """
    Draws the corona scene onto a Canvas.

    Particles are advanced as part of drawing, so every call to
    ``draw_frame`` moves the animation one step forward.
    """

    def __init__(
        self,
        config: CoronaConfig | None = None,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.cfg = config if config is not None else CoronaConfig()
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def draw_frame(
        self,
        canvas: Canvas,
        signal: Signal,
        knobs: ParameterSet,
        mapped: MappedVisualParams,
        population: ParticlePopulation,
    ):
        """
        Paint one frame.

        Args:
            canvas: Render target, already sized to the viewport.
            signal: Snapshot used for the size-dependent terms.
            knobs: Sanitized knob set.
            mapped: Output of ``map_visual_params(signal, knobs)``.
            population: Corona particles; their angles are advanced.
        """
        w, h = canvas.logical_size
        if canvas.viewport.is_empty:
            # Nothing visible, but keep the corona turning
            population.advance(mapped.rotation_speed)
            return

        center = (w / 2, h / 2)
        canvas.clear()
        self._draw_background(canvas, center, mapped, max(w, h))
        self._draw_core(canvas, center, signal, mapped, min(w, h))
        self._draw_corona(canvas, center, signal, knobs, mapped, population)
        if knobs.grain:
            self._draw_grain(canvas)
        canvas.flush()

    def _draw_background(self, canvas: Canvas, center, mapped: MappedVisualParams, extent: float):
        radius = extent * self.cfg.background_radius
        canvas.fill_radial_gradient(
            center,
            0.0,
            radius,
            mapped.background.to_rgba(1.0),
            mapped.edge.to_rgba(1.0),
        )

    def _draw_core(self, canvas: Canvas, center, signal: Signal, mapped: MappedVisualParams, extent: float):
        cfg = self.cfg
        radius = extent * cfg.core_radius + signal.sunspot_area * cfg.core_sunspot_growth
        radius = _safe(radius, extent * cfg.core_radius, "core radius")
        if radius <= 0:
            return
        fade = cfg.core_fade._replace(hue=mapped.hue)
        canvas.fill_radial_gradient(
            center,
            radius * cfg.core_inner_fraction,
            radius,
            mapped.core.to_rgba(1.0),
            fade.to_rgba(0.0),
            bounded=True,
        )

    def _draw_corona(
        self,
        canvas: Canvas,
        center,
        signal: Signal,
        knobs: ParameterSet,
        mapped: MappedVisualParams,
        population: ParticlePopulation,
    ):
        cfg = self.cfg
        population.advance(mapped.rotation_speed)
        n = len(population)
        if n == 0:
            return

        cx, cy = center
        rgb = mapped.particle_color.to_rgb()
        alphas = cfg.alpha_base + cfg.alpha_jitter * self.rng.random(n)

        chance = mapped.streak_chance if cfg.streak_chance is None else cfg.streak_chance
        streak_p = _safe(mapped.flare_burst * chance, 0.0, "streak probability")
        streaks = self.rng.random(n) < streak_p
        streak_rgba = cfg.streak_color._replace(hue=mapped.hue).to_rgba(cfg.streak_alpha)

        circles = knobs.particle_shape == "circle"
        if circles:
            size = cfg.circle_radius + signal.sunspot_area * cfg.sunspot_size_growth
        else:
            size = cfg.square_size + signal.sunspot_area * cfg.sunspot_size_growth

        for p, alpha, streak in zip(population, alphas, streaks):
            dx = math.cos(p.angle) * p.radius
            dy = math.sin(p.angle) * p.radius
            if not (math.isfinite(dx) and math.isfinite(dy)):
                continue
            x, y = cx + dx, cy + dy
            color = rgb + (int(alpha * 255),)
            if circles:
                canvas.fill_circle(x, y, size, color)
            else:
                canvas.fill_rect(x - size / 2, y - size / 2, size, size, color)

            if streak:
                ext = cfg.streak_extension
                canvas.stroke_line(
                    (x, y),
                    (cx + dx * ext, cy + dy * ext),
                    streak_rgba,
                    cfg.streak_width,
                )

    def _draw_grain(self, canvas: Canvas):
        bw, bh = canvas.backing_size
        noise = self.rng.integers(0, self.cfg.grain_max, size=(bh, bw), dtype=np.uint8)
        canvas.blend_pixels(noise, self.cfg.grain_opacity)
