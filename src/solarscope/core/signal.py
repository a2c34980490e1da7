"""
Normalized solar signal snapshots and the feeds that produce them.

A feed only has to answer "what is the current snapshot"; the animation
loop never sees history. Every channel is clamped to [0, 1] when a
snapshot is built, so nothing downstream ever has to clamp again.
"""

import json
import math
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Union

import numpy as np

from solarscope.errors import SignalSourceError

CHANNELS = ("flare_prob", "solar_wind_speed", "kp_index", "sunspot_area")

# camelCase record keys accepted in signal feeds
_CAMEL_KEYS = {
    "flareProb": "flare_prob",
    "solarWindSpeed": "solar_wind_speed",
    "kpIndex": "kp_index",
    "sunspotArea": "sunspot_area",
}


def clamp01(value: Any) -> float:
    """Clamp to [0, 1]; non-numeric and non-finite values become 0."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(1.0, value))


@dataclass(frozen=True)
class Signal:
    """One immutable snapshot of the four normalized channels."""

    timestamp: float = 0.0
    flare_prob: float = 0.0
    solar_wind_speed: float = 0.0
    kp_index: float = 0.0
    sunspot_area: float = 0.0

    def __post_init__(self):
        for name in CHANNELS:
            object.__setattr__(self, name, clamp01(getattr(self, name)))

    @classmethod
    def from_dict(cls, data: dict[str, Any], timestamp: float | None = None) -> "Signal":
        """Build a snapshot from a record with snake_case or camelCase keys."""
        values = {}
        for key, value in data.items():
            key = _CAMEL_KEYS.get(key, key)
            if key in CHANNELS:
                values[key] = value
        if timestamp is None:
            timestamp = float(data.get("timestamp", data.get("time", 0.0)) or 0.0)
        return cls(timestamp=timestamp, **values)

    def to_dict(self) -> dict[str, float]:
        return {
            "timestamp": self.timestamp,
            "flare_prob": self.flare_prob,
            "solar_wind_speed": self.solar_wind_speed,
            "kp_index": self.kp_index,
            "sunspot_area": self.sunspot_area,
        }


# Starting point of the mock feed
DEFAULT_SIGNAL = Signal(
    flare_prob=0.2,
    solar_wind_speed=0.35,
    kp_index=0.15,
    sunspot_area=0.25,
)

# Full width of the uniform step applied to each channel per update
RANDOM_WALK_STEPS = {
    "flare_prob": 0.05,
    "solar_wind_speed": 0.04,
    "kp_index": 0.08,
    "sunspot_area": 0.03,
}


class RandomWalkSignalSource:
    """
    Mock feed: perturbs the previous snapshot with small bounded deltas.

    Call ``poll(now)`` from the host's timer; a new snapshot is produced
    once ``interval`` seconds have passed since the last one.
    """

    def __init__(
        self,
        interval: float = 1.2,
        seed: int | None = None,
        initial: Signal | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.interval = interval
        self.rng = np.random.default_rng(seed)
        self.clock = clock
        start = initial or DEFAULT_SIGNAL
        self._current = Signal(
            timestamp=clock(),
            flare_prob=start.flare_prob,
            solar_wind_speed=start.solar_wind_speed,
            kp_index=start.kp_index,
            sunspot_area=start.sunspot_area,
        )
        self._last_update = self._current.timestamp

    def current(self) -> Signal:
        return self._current

    def step(self, now: float | None = None) -> Signal:
        """Produce the next snapshot unconditionally."""
        now = self.clock() if now is None else now
        prev = self._current
        self._current = Signal(
            timestamp=now,
            **{
                name: getattr(prev, name) + (self.rng.random() - 0.5) * width
                for name, width in RANDOM_WALK_STEPS.items()
            },
        )
        self._last_update = now
        return self._current

    def poll(self, now: float | None = None) -> bool:
        """Advance if the interval elapsed. Returns True when a new snapshot exists."""
        now = self.clock() if now is None else now
        if now - self._last_update < self.interval:
            return False
        self.step(now)
        return True


class ReplaySignalSource:
    """
    Replays recorded snapshots from a list, one per interval, looping.

    This is the shape a real data adapter takes: whatever the upstream
    format, records are normalized and clamped on the way in.
    """

    def __init__(
        self,
        records: list[dict[str, Any]],
        interval: float = 1.2,
        loop: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not records:
            raise SignalSourceError("Replay feed has no records")
        self.interval = interval
        self.loop = loop
        self.clock = clock
        try:
            self.signals = [Signal.from_dict(r) for r in records]
        except (AttributeError, TypeError, ValueError) as e:
            raise SignalSourceError(f"Replay records must be objects: {e}") from e
        self.index = 0
        self._last_update = clock()

    @classmethod
    def from_json(cls, path: Union[str, Path], **kwargs) -> "ReplaySignalSource":
        """
        Load a feed from JSON.

        Accepts either ``{"frames": [...]}`` or a bare list of records.
        """
        path = Path(path)
        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SignalSourceError(f"Cannot read signal feed {path}: {e}") from e

        if isinstance(data, dict):
            data = data.get("frames", [])
        if not isinstance(data, list):
            raise SignalSourceError(f"Signal feed {path} must hold a list of records")
        return cls(data, **kwargs)

    def current(self) -> Signal:
        return self.signals[self.index]

    def step(self, now: float | None = None) -> Signal:
        if self.index + 1 < len(self.signals):
            self.index += 1
        elif self.loop:
            self.index = 0
        self._last_update = self.clock() if now is None else now
        return self.current()

    def poll(self, now: float | None = None) -> bool:
        now = self.clock() if now is None else now
        if now - self._last_update < self.interval:
            return False
        before = self.index
        self.step(now)
        return self.index != before
