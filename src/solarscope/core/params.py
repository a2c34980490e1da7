"""
User-editable knobs.

A ``ParameterSet`` is an immutable value: the host builds a new one for
every edit and hands it to the loop, which reads it once per frame.
"""

import json
import math
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Union

STYLES = ("Deck223", "Solarpunk", "Aurora")
DEFAULT_STYLE = "Deck223"

SHAPES = ("square", "circle")
DEFAULT_SHAPE = "square"

DEFAULT_POSTERIZE = 6


@dataclass(frozen=True)
class KnobRange:
    """Bounds and step of a numeric knob as exposed by the control panel."""

    low: float
    high: float
    step: float

    def clamp(self, value: float) -> float:
        return max(self.low, min(self.high, value))


KNOB_RANGES = {
    "bg_lightness": KnobRange(4, 30, 1),
    "base_particles": KnobRange(50, 1000, 10),
    "particle_amp": KnobRange(0, 2000, 50),
    "wind_multiplier": KnobRange(0.2, 3.0, 0.05),
    "flare_amp": KnobRange(0.0, 3.0, 0.05),
    "posterize": KnobRange(3, 12, 1),
}

# camelCase aliases accepted in knob files
_CAMEL_KEYS = {
    "bgLightness": "bg_lightness",
    "baseParticles": "base_particles",
    "particleAmp": "particle_amp",
    "windMultiplier": "wind_multiplier",
    "flareAmp": "flare_amp",
    "particleShape": "particle_shape",
}


@dataclass(frozen=True)
class ParameterSet:
    """Aesthetic and behavioural knobs for the corona scene."""

    bg_lightness: float = 10  # percent
    base_particles: int = 350
    particle_amp: float = 1200  # extra particles at full sunspot area
    wind_multiplier: float = 1.0
    flare_amp: float = 1.0
    style: str = DEFAULT_STYLE  # "Deck223", "Solarpunk", "Aurora"
    particle_shape: str = DEFAULT_SHAPE  # "square", "circle"
    posterize: int = DEFAULT_POSTERIZE  # quantization levels, >= 1
    grain: bool = True

    def sanitized(self) -> "ParameterSet":
        """
        Return a copy with invalid enumerations and levels replaced.

        Numeric knobs are left alone; the mapper zeroes non-finite ones.
        """
        style = self.style if self.style in STYLES else DEFAULT_STYLE
        shape = self.particle_shape if self.particle_shape in SHAPES else DEFAULT_SHAPE
        return replace(
            self,
            style=style,
            particle_shape=shape,
            posterize=sanitize_levels(self.posterize),
            grain=bool(self.grain),
        )

    def nudge(self, name: str, steps: int = 1) -> "ParameterSet":
        """Move a numeric knob by whole control steps, staying in range."""
        knob_range = KNOB_RANGES[name]
        current = getattr(self, name)
        if not isinstance(current, (int, float)) or not math.isfinite(current):
            current = getattr(ParameterSet(), name)
        value = knob_range.clamp(current + steps * knob_range.step)
        if isinstance(getattr(ParameterSet(), name), int):
            value = int(round(value))
        else:
            value = round(value, 4)
        return replace(self, **{name: value})

    def cycle_style(self) -> "ParameterSet":
        idx = STYLES.index(self.style) if self.style in STYLES else -1
        return replace(self, style=STYLES[(idx + 1) % len(STYLES)])

    def toggle_shape(self) -> "ParameterSet":
        shape = "circle" if self.particle_shape == "square" else "square"
        return replace(self, particle_shape=shape)

    def toggle_grain(self) -> "ParameterSet":
        return replace(self, grain=not self.grain)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParameterSet":
        """Build knobs from a mapping; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            key = _CAMEL_KEYS.get(key, key)
            if key in known:
                values[key] = value
        return cls(**values).sanitized()

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def sanitize_levels(levels: Any) -> int:
    try:
        levels = float(levels)
    except (TypeError, ValueError):
        return DEFAULT_POSTERIZE
    if not math.isfinite(levels) or levels < 1:
        return DEFAULT_POSTERIZE
    return max(1, int(round(levels)))


def load_knobs(path: Union[str, Path]) -> ParameterSet:
    """Read a knob preset from a JSON object file."""
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Knob file {path} must contain a JSON object")
    return ParameterSet.from_dict(data)
