"""
Corona particle population.

Particles keep their state for as long as they exist; only growth and
shrinkage touch membership. New particles are appended, surplus ones are
dropped from the tail.
"""

import math
from dataclasses import dataclass

import numpy as np

from solarscope.core.color import finite_or, round_half_up

# Orbital radius band in logical pixels
RADIUS_RANGE = (40.0, 300.0)
# Per-particle angular speed multiplier band
SPEED_RANGE = (0.2, 1.4)


@dataclass
class Particle:
    """One orbiting corona element."""

    angle: float  # radians
    radius: float  # logical pixels from the centre
    speed: float  # multiplier on the global rotation speed


def spawn_particle(
    rng: np.random.Generator,
    radius_range: tuple[float, float] = RADIUS_RANGE,
    speed_range: tuple[float, float] = SPEED_RANGE,
) -> Particle:
    return Particle(
        angle=rng.uniform(0.0, 2 * math.pi),
        radius=rng.uniform(*radius_range),
        speed=rng.uniform(*speed_range),
    )


def reconcile(
    particles: list[Particle],
    target: int,
    rng: np.random.Generator,
    radius_range: tuple[float, float] = RADIUS_RANGE,
    speed_range: tuple[float, float] = SPEED_RANGE,
) -> list[Particle]:
    """
    Grow or shrink ``particles`` in place to ``target`` members.

    Args:
        particles: Current population (mutated).
        target: Desired size. Negative/non-finite counts as 0.
        rng: Random source for newly created particles.
        radius_range: Orbital radius band for new particles.
        speed_range: Speed multiplier band for new particles.

    Returns:
        The same list, for chaining.
    """
    target = max(0, round_half_up(finite_or(target)))
    while len(particles) < target:
        particles.append(spawn_particle(rng, radius_range, speed_range))
    if len(particles) > target:
        del particles[target:]
    return particles


class ParticlePopulation:
    """
    Owns the particle list and reconciles it only when the target changes.
    """

    def __init__(
        self,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        radius_range: tuple[float, float] = RADIUS_RANGE,
        speed_range: tuple[float, float] = SPEED_RANGE,
    ):
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.radius_range = radius_range
        self.speed_range = speed_range
        self.particles: list[Particle] = []
        self.target: int | None = None

    def __len__(self) -> int:
        return len(self.particles)

    def __iter__(self):
        return iter(self.particles)

    def sync(self, target: int) -> bool:
        """
        Reconcile towards ``target`` if it differs from the last target.

        Returns:
            True if membership was reconciled.
        """
        if target == self.target:
            return False
        self.target = target
        reconcile(self.particles, target, self.rng, self.radius_range, self.speed_range)
        return True

    def advance(self, rotation_speed: float):
        """Rotate every particle by ``rotation_speed`` times its own multiplier."""
        rotation_speed = finite_or(rotation_speed)
        for p in self.particles:
            p.angle = (p.angle + rotation_speed * p.speed) % (2 * math.pi)
