"""
Tests for the growth animation state.

Growth is a pure function of age, so the same clock time must always give
the same state no matter how the clock got there.
"""

import jax.numpy as jnp
import numpy as np
import pytest

from garden.config import AnimationConfig, PhaseWindow
from garden.growth import (
    GrowthState,
    ease_out_back,
    ease_out_elastic,
    ease_out_quart,
    ease_out_subtle_elastic,
    growth_batch,
    growth_pose,
    growth_state,
    is_fast_scrub,
    overall_progress,
    petal_stagger,
    phase_progress,
)


class TestEasing:
    """Tests for easing curves."""

    @pytest.mark.parametrize(
        "fn", [ease_out_quart, ease_out_back, ease_out_elastic, ease_out_subtle_elastic]
    )
    def test_endpoints(self, fn) -> None:
        assert float(fn(jnp.asarray(0.0))) == pytest.approx(0.0, abs=1e-6)
        assert float(fn(jnp.asarray(1.0))) == pytest.approx(1.0, abs=1e-6)

    def test_back_overshoots(self) -> None:
        x = jnp.linspace(0.0, 1.0, 101)
        assert float(jnp.max(ease_out_back(x, 0.5))) > 1.0

    def test_subtle_elastic_stays_close(self) -> None:
        """The bloom easing wobbles far less than textbook elastic."""
        x = jnp.linspace(0.0, 1.0, 201)
        subtle = ease_out_subtle_elastic(x, 0.4, 0.15)
        textbook = ease_out_elastic(x, 0.4)
        assert float(jnp.max(subtle)) < 1.05
        assert float(jnp.max(subtle)) < float(jnp.max(textbook))

    def test_quart_is_fast_start(self) -> None:
        assert float(ease_out_quart(jnp.asarray(0.25))) > 0.25


class TestProgress:
    """Tests for overall and phase progress."""

    def test_clamped(self) -> None:
        progress = overall_progress(jnp.array([-1.0, 0.0, 0.5, 1.0, 3.0]), 1.0)
        np.testing.assert_allclose(np.asarray(progress), [0.0, 0.0, 0.5, 1.0, 1.0])

    def test_zero_duration(self) -> None:
        """A zero-length animation is complete at birth and absent before it."""
        progress = overall_progress(jnp.array([-0.1, 0.0, 2.0]), 0.0)
        np.testing.assert_allclose(np.asarray(progress), [0.0, 1.0, 1.0])

    def test_phase_windows_overlap(self) -> None:
        """At 30% the stem and leaves are both growing; the bloom has not started."""
        config = AnimationConfig()
        state = growth_batch(jnp.array([0.3 * config.duration_days]), config)
        assert 0.0 < float(state.stem[0]) < 1.0
        assert 0.0 < float(state.leaves[0]) < 1.0
        assert float(state.bloom[0]) == 0.0

    def test_phase_values(self) -> None:
        window = PhaseWindow(0.25, 0.7)
        np.testing.assert_allclose(
            np.asarray(phase_progress(jnp.array([0.0, 0.25, 0.475, 0.7, 1.0]), window)),
            [0.0, 0.0, 0.5, 1.0, 1.0],
            atol=1e-6,
        )

    def test_zero_width_window(self) -> None:
        window = PhaseWindow(0.5, 0.5)
        np.testing.assert_allclose(
            np.asarray(phase_progress(jnp.array([0.4, 0.5, 0.6]), window)), [0.0, 1.0, 1.0]
        )

    def test_duration_in_days(self) -> None:
        config = AnimationConfig()
        assert config.duration_seconds == pytest.approx(2.0 / 2.7)
        assert config.duration_days == pytest.approx(2.0 / 2.7)


class TestGrowthState:
    """Tests for per-entry growth."""

    def test_unborn_is_zero(self, make_entry) -> None:
        state = growth_state(make_entry(5.0), 4.0)
        assert state == GrowthState(0.0, 0.0, 0.0, 0.0)

    def test_complete_after_duration(self, make_entry) -> None:
        state = growth_state(make_entry(5.0), 7.0)
        assert state.is_complete()
        assert (state.stem, state.leaves, state.bloom) == (1.0, 1.0, 1.0)

    def test_reversible(self, make_entry) -> None:
        """Visiting other times first does not change the state at t1."""
        entry = make_entry(5.0)
        t1 = 5.3
        direct = growth_state(entry, t1)
        for t2 in [9.0, 4.0, 5.1, 100.0]:
            growth_state(entry, t2)
            assert growth_state(entry, t1) == direct

    def test_fast_scrub_snaps(self, make_entry) -> None:
        """Fast scrubbing completes born organisms and leaves unborn ones absent."""
        entry = make_entry(5.0)
        assert growth_state(entry, 5.01, clock_rate=10.0).progress == 1.0
        assert growth_state(entry, 5.01, clock_rate=-10.0).progress == 1.0
        assert growth_state(entry, 4.99, clock_rate=10.0).progress == 0.0
        assert growth_state(entry, 5.01, clock_rate=1.0).progress < 1.0

    def test_fast_scrub_threshold(self) -> None:
        config = AnimationConfig()
        assert not is_fast_scrub(2.0, config)
        assert is_fast_scrub(2.5, config)
        assert is_fast_scrub(-3.0, config)


class TestGrowthPose:
    """Tests for eased geometry controls."""

    def test_stem_starts_below_ground(self) -> None:
        pose = growth_pose(GrowthState(0.0, 0.0, 0.0, 0.0))
        assert pose.stem_height == 0.0
        assert pose.leaf_scale == 0.0

    def test_full_pose(self) -> None:
        pose = growth_pose(GrowthState(1.0, 1.0, 1.0, 1.0), stem_bend=0.3, leaf_size=1.2, petal_total=8)
        assert pose.stem_height == pytest.approx(3.0)
        assert pose.stem_bend == pytest.approx(0.6)
        assert pose.leaf_scale == pytest.approx(1.2)
        assert pose.petal_progress == (1.0,) * 8
        assert pose.center_scale == pytest.approx(1.0, abs=1e-6)

    def test_leaf_scale_floor(self) -> None:
        """Leaves that have just started are tiny but present."""
        pose = growth_pose(GrowthState(0.3, 0.6, 0.001, 0.0))
        assert pose.leaf_scale == pytest.approx(0.01)

    def test_petals_open_in_sequence(self) -> None:
        progress = petal_stagger(0.5, 4)
        assert progress[0] == 1.0
        assert progress[0] > progress[1] > progress[2] > progress[3] >= 0.0

    def test_no_petals(self) -> None:
        assert petal_stagger(0.7, 0) == ()
