"""Tests for the visual parameter mapper and its colour helpers."""

import math

import numpy as np
import pytest

from solarscope.core.color import HSL, finite_or, posterize, round_half_up
from solarscope.core.mapper import STYLE_PRESETS, get_style_preset, map_visual_params
from solarscope.core.params import STYLES, ParameterSet
from solarscope.core.signal import Signal


def _is_multiple(value: float, step: float) -> bool:
    k = value / step
    return math.isclose(k, round(k), abs_tol=1e-9)


def _random_signals(n: int, seed: int = 0):
    rng = np.random.default_rng(seed)
    for row in rng.random((n, 4)):
        yield Signal(
            flare_prob=row[0],
            solar_wind_speed=row[1],
            kp_index=row[2],
            sunspot_area=row[3],
        )


class TestPosterize:
    @pytest.mark.parametrize("levels", [1, 2, 3, 6, 7, 12])
    def test_snaps_to_step_multiples(self, levels):
        step = 100 / levels
        for v in np.linspace(0, 100, 41):
            assert _is_multiple(posterize(v, levels), step)

    def test_one_level_collapses(self):
        values = {posterize(v, 1) for v in np.linspace(0, 100, 41)}
        assert values == {0.0}

    @pytest.mark.parametrize("levels", [0, -2, float("nan")])
    def test_degenerate_levels_do_not_divide_by_zero(self, levels):
        assert posterize(42, levels) == posterize(42, 1)

    def test_rounds_half_up(self):
        # 25 / (100/2) == 0.5 -> 1 level up, not banker's rounding
        assert posterize(25, 2) == 50.0
        assert round_half_up(2.5) == 3

    def test_known_value(self):
        assert posterize(45, 6) == pytest.approx(50.0)


class TestHSL:
    def test_primary_colours(self):
        assert HSL(0, 100, 50).to_rgb() == (255, 0, 0)
        assert HSL(120, 100, 50).to_rgb() == (0, 255, 0)
        assert HSL(240, 100, 50).to_rgb() == (0, 0, 255)

    def test_greys_ignore_hue(self):
        assert HSL(37, 0, 0).to_rgb() == (0, 0, 0)
        assert HSL(200, 0, 100).to_rgb() == (255, 255, 255)

    def test_rgba_alpha(self):
        assert HSL(0, 100, 50).to_rgba(0.0)[3] == 0
        assert HSL(0, 100, 50).to_rgba(1.0)[3] == 255

    def test_non_finite_is_safe(self):
        rgb = HSL(float("nan"), float("inf"), 50).to_rgb()
        assert all(0 <= c <= 255 for c in rgb)

    def test_css(self):
        assert HSL(38, 50, 10).css() == "hsl(38, 50%, 10%)"
        assert HSL(38, 50, 10).css(0.5) == "hsla(38, 50%, 10%, 0.5)"

    def test_finite_or(self):
        assert finite_or(float("nan"), 3.0) == 3.0
        assert finite_or("x") == 0.0
        assert finite_or(2) == 2.0


class TestStylePresets:
    def test_every_style_has_a_preset(self):
        assert set(STYLES) == set(STYLE_PRESETS)

    def test_unknown_style_uses_default(self):
        assert get_style_preset("Nope") is STYLE_PRESETS["Deck223"]

    def test_minimalist_default_swings_less(self):
        deck = STYLE_PRESETS["Deck223"]
        for name in ("Solarpunk", "Aurora"):
            other = STYLE_PRESETS[name]
            assert deck.hue_swing < other.hue_swing
            assert deck.streak_chance < other.streak_chance


class TestMapVisualParams:
    def test_resting_scenario(self, zero_signal, default_knobs):
        mapped = map_visual_params(zero_signal, default_knobs)
        assert mapped.particle_count == 350
        assert mapped.rotation_speed == pytest.approx(0.002)
        assert mapped.flare_burst == 0.0
        assert mapped.hue == 38

    def test_flare_burst_scenario(self, zero_signal):
        sig = Signal(flare_prob=1.0)
        mapped = map_visual_params(sig, ParameterSet(flare_amp=2))
        assert mapped.flare_burst == pytest.approx(2.0)

    def test_sunspot_particle_scenario(self):
        sig = Signal(sunspot_area=1.0)
        mapped = map_visual_params(sig, ParameterSet(base_particles=350, particle_amp=1200))
        assert mapped.particle_count == 1550

    def test_unknown_style_falls_back(self, zero_signal):
        mapped = map_visual_params(zero_signal, ParameterSet(style="Synthwave"))
        reference = map_visual_params(zero_signal, ParameterSet(style="Deck223"))
        assert mapped.hue == reference.hue == 38
        assert mapped.saturation == reference.saturation == 45
        assert mapped.core == reference.core

    def test_hue_swing(self):
        sig = Signal(kp_index=1.0)
        assert map_visual_params(sig, ParameterSet(style="Deck223")).hue == 63
        assert map_visual_params(sig, ParameterSet(style="Solarpunk")).hue == 270
        assert map_visual_params(sig, ParameterSet(style="Aurora")).hue == 340

    def test_saturation_and_lightness(self):
        sig = Signal(flare_prob=1.0, sunspot_area=1.0)
        mapped = map_visual_params(sig, ParameterSet(style="Aurora"))
        assert mapped.saturation == 80
        assert mapped.lightness == 56

    @pytest.mark.parametrize("style", STYLES)
    @pytest.mark.parametrize("levels", [1, 3, 6, 12])
    def test_ranges_and_posterization(self, style, levels):
        knobs = ParameterSet(style=style, posterize=levels, bg_lightness=17)
        step = 100 / levels
        for sig in _random_signals(25, seed=levels):
            mapped = map_visual_params(sig, knobs)
            assert 0 <= mapped.hue < 360
            for color in (mapped.background, mapped.core):
                assert color.hue == mapped.hue
                assert _is_multiple(color.saturation, step)
                assert _is_multiple(color.lightness, step)

    def test_posterize_one_is_constant(self):
        knobs = ParameterSet(posterize=1)
        cores = {map_visual_params(sig, knobs).core[1:] for sig in _random_signals(30)}
        assert len(cores) == 1

    def test_deterministic(self, busy_signal, default_knobs):
        assert map_visual_params(busy_signal, default_knobs) == map_visual_params(busy_signal, default_knobs)

    @pytest.mark.parametrize("wind", [0.0, 0.2, 1.0, 3.0])
    def test_rotation_monotonic_in_wind_speed(self, wind):
        knobs = ParameterSet(wind_multiplier=wind)
        speeds = [
            map_visual_params(Signal(solar_wind_speed=v), knobs).rotation_speed
            for v in np.linspace(0, 1, 21)
        ]
        assert all(b >= a for a, b in zip(speeds, speeds[1:]))

    def test_count_never_negative(self):
        mapped = map_visual_params(Signal(sunspot_area=1.0), ParameterSet(base_particles=-50, particle_amp=-10))
        assert mapped.particle_count == 0

    def test_non_finite_knobs_contribute_nothing(self, busy_signal):
        nan = float("nan")
        knobs = ParameterSet(
            bg_lightness=nan,
            base_particles=nan,
            particle_amp=float("inf"),
            wind_multiplier=nan,
            flare_amp=nan,
        )
        mapped = map_visual_params(busy_signal, knobs)
        assert mapped.particle_count == 0
        assert mapped.rotation_speed == pytest.approx(0.002)
        assert mapped.flare_burst == 0.0
        for color in (mapped.background, mapped.core, mapped.edge):
            assert all(math.isfinite(c) for c in color)

    def test_burst_bounded_by_clamped_signal(self):
        # Signals are clamped upstream; a hand-built out-of-range snapshot
        # is already clamped by Signal itself
        mapped = map_visual_params(Signal(flare_prob=5.0), ParameterSet(flare_amp=1.0))
        assert mapped.flare_burst == 1.0

    def test_background_uses_bg_lightness(self, zero_signal):
        mapped = map_visual_params(zero_signal, ParameterSet(bg_lightness=30, posterize=10))
        assert mapped.background.lightness == pytest.approx(30)
        assert mapped.edge.lightness == pytest.approx(10)
        dark = map_visual_params(zero_signal, ParameterSet(bg_lightness=4))
        assert dark.edge.lightness == 6
