"""Pytest configuration and shared fixtures."""

import os

# Headless pygame; must be set before pygame initializes a display
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pytest

from solarscope.core.params import ParameterSet
from solarscope.core.signal import Signal
from solarscope.render.canvas import Canvas
from solarscope.render.viewport import Viewport


@pytest.fixture
def zero_signal() -> Signal:
    """All channels at rest."""
    return Signal(flare_prob=0.0, solar_wind_speed=0.0, kp_index=0.0, sunspot_area=0.0)


@pytest.fixture
def busy_signal() -> Signal:
    """A stormy snapshot that exercises every mapping term."""
    return Signal(flare_prob=0.9, solar_wind_speed=0.7, kp_index=0.6, sunspot_area=0.5)


@pytest.fixture
def default_knobs() -> ParameterSet:
    return ParameterSet()


@pytest.fixture
def small_canvas() -> Canvas:
    """A 160x120 logical canvas at pixel ratio 1."""
    return Canvas(Viewport(160, 120, 1.0))
