"""
Signal + knobs -> concrete render parameters.

Mapping rules:
- Kp index        -> hue swing around the preset's base hue
- Flare prob      -> saturation boost, streak bursts, particle lightness
- Sunspot area    -> core lightness, particle count
- Solar wind      -> corona rotation speed
"""

from dataclasses import dataclass

from solarscope.core.color import HSL, finite_or, posterize, round_half_up
from solarscope.core.params import DEFAULT_STYLE, ParameterSet, sanitize_levels
from solarscope.core.signal import Signal

# Lightness band of the core colour
CORE_LIGHTNESS_BASE = 42.0
CORE_LIGHTNESS_SWING = 14.0

# Rotation: idle drift plus the wind-driven part
BASE_ROTATION = 0.002
WIND_ROTATION = 0.01


@dataclass(frozen=True)
class StylePreset:
    """A named palette and its reactivity constants."""

    base_hue: float  # degrees
    base_saturation: float  # percent
    hue_swing: float  # degrees at kp_index == 1
    saturation_swing: float  # percent at flare_prob == 1
    streak_chance: float  # per-particle streak probability at flare_burst == 1


STYLE_PRESETS = {
    # Amber/sand, posterized and deliberately quiet
    "Deck223": StylePreset(38, 45, 25, 10, 0.004),
    # Greens
    "Solarpunk": StylePreset(130, 60, 140, 25, 0.01),
    # Indigo/cyan
    "Aurora": StylePreset(200, 55, 140, 25, 0.01),
}


def get_style_preset(style: str) -> StylePreset:
    """Look up a preset, falling back to the default one."""
    return STYLE_PRESETS.get(style, STYLE_PRESETS[DEFAULT_STYLE])


@dataclass(frozen=True)
class MappedVisualParams:
    """Everything the frame renderer needs that derives from signal and knobs."""

    hue: float
    saturation: float
    lightness: float
    background: HSL  # gradient centre
    edge: HSL  # gradient rim
    core: HSL
    particle_color: HSL
    particle_count: int
    rotation_speed: float  # radians per frame
    flare_burst: float
    streak_chance: float


def map_visual_params(signal: Signal, knobs: ParameterSet) -> MappedVisualParams:
    """
    Map a signal snapshot and knob set to render parameters.

    Pure and deterministic. Signal channels are trusted to be clamped
    already; non-finite knob values contribute nothing.

    Args:
        signal: Current signal snapshot.
        knobs: Current knob set.

    Returns:
        MappedVisualParams for the next frame(s).
    """
    preset = get_style_preset(knobs.style)
    levels = sanitize_levels(knobs.posterize)

    bg_lightness = finite_or(knobs.bg_lightness)

    hue = (preset.base_hue + signal.kp_index * preset.hue_swing) % 360.0
    saturation = preset.base_saturation + signal.flare_prob * preset.saturation_swing
    lightness = CORE_LIGHTNESS_BASE + signal.sunspot_area * CORE_LIGHTNESS_SWING

    background = HSL(hue, posterize(saturation * 0.8, levels), posterize(bg_lightness, levels))
    core = HSL(hue, posterize(saturation, levels), posterize(lightness, levels))
    edge = HSL(hue, 40.0, max(6.0, bg_lightness - 20.0))
    particle_color = HSL(hue, 90.0, 55.0 + signal.flare_prob * 20.0)

    count = finite_or(knobs.base_particles) + signal.sunspot_area * finite_or(knobs.particle_amp)
    particle_count = max(0, round_half_up(count))

    rotation_speed = BASE_ROTATION + signal.solar_wind_speed * WIND_ROTATION * finite_or(
        knobs.wind_multiplier
    )
    flare_burst = signal.flare_prob * finite_or(knobs.flare_amp)

    return MappedVisualParams(
        hue=hue,
        saturation=saturation,
        lightness=lightness,
        background=background,
        edge=edge,
        core=core,
        particle_color=particle_color,
        particle_count=particle_count,
        rotation_speed=rotation_speed,
        flare_burst=flare_burst,
        streak_chance=preset.streak_chance,
    )
