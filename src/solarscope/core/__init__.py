"""Signal, knob and mapping primitives."""

from solarscope.core.mapper import MappedVisualParams, StylePreset, map_visual_params
from solarscope.core.params import ParameterSet
from solarscope.core.particles import Particle, ParticlePopulation, reconcile
from solarscope.core.signal import RandomWalkSignalSource, ReplaySignalSource, Signal
