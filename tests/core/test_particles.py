"""Tests for the corona particle population."""

import math

import numpy as np
import pytest

from solarscope.core.particles import (
    RADIUS_RANGE,
    SPEED_RANGE,
    Particle,
    ParticlePopulation,
    reconcile,
)


def _snapshot(particles):
    return [(p.angle, p.radius, p.speed) for p in particles]


class TestReconcile:
    def test_grows_to_target(self):
        rng = np.random.default_rng(0)
        particles = reconcile([], 50, rng)
        assert len(particles) == 50

    def test_new_particles_within_bands(self):
        rng = np.random.default_rng(1)
        for p in reconcile([], 500, rng):
            assert 0 <= p.angle < 2 * math.pi
            assert RADIUS_RANGE[0] <= p.radius <= RADIUS_RANGE[1]
            assert SPEED_RANGE[0] <= p.speed <= SPEED_RANGE[1]

    def test_growth_keeps_existing_state(self):
        rng = np.random.default_rng(2)
        particles = reconcile([], 10, rng)
        before = _snapshot(particles)
        reconcile(particles, 25, rng)
        assert _snapshot(particles[:10]) == before

    def test_shrink_truncates_tail(self):
        rng = np.random.default_rng(3)
        particles = reconcile([], 10, rng)
        first_ids = [id(p) for p in particles[:6]]
        reconcile(particles, 6, rng)
        assert [id(p) for p in particles] == first_ids

    def test_grow_then_shrink_drops_newest(self):
        rng = np.random.default_rng(4)
        particles = reconcile([], 20, rng)
        original = list(particles)
        reconcile(particles, 35, rng)
        added = particles[20:]
        reconcile(particles, 20, rng)
        assert len(particles) == 20
        assert all(a is b for a, b in zip(particles, original))
        assert not any(p is q for p in added for q in particles)

    def test_idempotent(self):
        rng = np.random.default_rng(5)
        particles = reconcile([], 30, rng)
        before = _snapshot(particles)
        reconcile(particles, 30, rng)
        reconcile(particles, 30, rng)
        assert _snapshot(particles) == before

    def test_mutates_in_place(self):
        particles = []
        assert reconcile(particles, 3, np.random.default_rng(6)) is particles

    @pytest.mark.parametrize("target", [-5, float("nan"), float("-inf")])
    def test_bad_targets_empty_the_population(self, target):
        rng = np.random.default_rng(7)
        particles = reconcile([], 5, rng)
        assert reconcile(particles, target, rng) == []

    def test_custom_bands(self):
        rng = np.random.default_rng(8)
        for p in reconcile([], 100, rng, radius_range=(10, 20), speed_range=(1, 2)):
            assert 10 <= p.radius <= 20
            assert 1 <= p.speed <= 2


class TestParticlePopulation:
    def test_seeded_populations_match(self):
        a = ParticlePopulation(seed=42)
        b = ParticlePopulation(seed=42)
        a.sync(40)
        b.sync(40)
        assert _snapshot(a) == _snapshot(b)

    def test_sync_only_on_target_change(self):
        pop = ParticlePopulation(seed=1)
        assert pop.sync(30) is True
        assert pop.sync(30) is False
        assert pop.sync(31) is True
        assert len(pop) == 31

    def test_sync_does_not_reset_advanced_particles(self):
        pop = ParticlePopulation(seed=2)
        pop.sync(10)
        pop.advance(0.5)
        advanced = _snapshot(pop)
        pop.sync(10)
        assert _snapshot(pop) == advanced

    def test_advance_rotates_by_speed_multiplier(self):
        pop = ParticlePopulation(seed=3)
        pop.particles = [Particle(angle=0.0, radius=100.0, speed=0.5), Particle(angle=1.0, radius=50.0, speed=1.0)]
        pop.advance(0.2)
        assert pop.particles[0].angle == pytest.approx(0.1)
        assert pop.particles[1].angle == pytest.approx(1.2)
        # radius and speed untouched
        assert pop.particles[0].radius == 100.0
        assert pop.particles[1].speed == 1.0

    def test_advance_wraps_angle(self):
        pop = ParticlePopulation()
        pop.particles = [Particle(angle=2 * math.pi - 0.05, radius=40.0, speed=1.0)]
        pop.advance(0.1)
        assert 0 <= pop.particles[0].angle < 2 * math.pi
        assert pop.particles[0].angle == pytest.approx(0.05)

    def test_advance_ignores_non_finite_speed(self):
        pop = ParticlePopulation(seed=4)
        pop.sync(5)
        before = _snapshot(pop)
        pop.advance(float("nan"))
        assert _snapshot(pop) == before

    def test_injected_rng(self):
        rng = np.random.default_rng(9)
        pop = ParticlePopulation(rng=rng)
        assert pop.rng is rng
