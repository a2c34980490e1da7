"""
Solarscope: data-driven solar corona art.

Maps a normalized solar signal and a set of aesthetic knobs to an
animated, posterized corona scene.
"""

from solarscope.core.mapper import MappedVisualParams, map_visual_params
from solarscope.core.params import ParameterSet
from solarscope.core.particles import ParticlePopulation
from solarscope.core.signal import RandomWalkSignalSource, ReplaySignalSource, Signal
from solarscope.render.canvas import Canvas
from solarscope.render.corona import CoronaConfig, CoronaRenderer
from solarscope.render.loop import AnimationLoop, LoopState, ManualScheduler
from solarscope.render.viewport import Viewport

__version__ = "0.1.0"
