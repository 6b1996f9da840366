"""
Growth animation state.

An organism's entrance animation is a pure function of its age on the
clock, so scrubbing in either direction lands on the same pose without any
tracked animation state:

    progress = clamp(age / D, 0, 1)

Three overlapping phases run inside that progress:

    stem     [0.00, 0.50]   ease-out
    leaves   [0.25, 0.70]   mild overshoot (ease-out-back)
    bloom    [0.60, 1.00]   very subtle elastic

When the clock moves faster than the fast-scrub threshold every born
organism snaps to progress 1, so seeking never triggers animation storms.
"""

import math
from typing import NamedTuple

import jax.numpy as jnp
import numpy as np
from jax import Array

from garden.config import AnimationConfig, Entry, PhaseWindow


class GrowthState(NamedTuple):
    """Overall and per-phase progress, each in [0, 1] (scalars or arrays)."""

    progress: Array | float
    stem: Array | float
    leaves: Array | float
    bloom: Array | float

    def is_complete(self) -> bool:
        return bool(jnp.all(jnp.asarray(self.progress) >= 1.0))


# =============================================================================
# EASING
# =============================================================================


def ease_out_quad(x: Array) -> Array:
    return 1.0 - (1.0 - x) ** 2


def ease_out_quart(x: Array) -> Array:
    return 1.0 - (1.0 - x) ** 4


def ease_out_back(x: Array, overshoot: float = 0.5) -> Array:
    """Overshoots 1 slightly before settling; f(0) = 0, f(1) = 1."""
    return 1.0 + (overshoot + 1.0) * (x - 1.0) ** 3 + overshoot * (x - 1.0) ** 2


def ease_out_elastic(x: Array, period: float = 0.4) -> Array:
    """Textbook decaying sine; f(0) = 0, f(1) ~ 1."""
    x = jnp.asarray(x)
    wave = 2.0 ** (-10.0 * x) * jnp.sin((x - period / 4.0) * (2.0 * math.pi) / period) + 1.0
    return jnp.where((x <= 0.0) | (x >= 1.0), jnp.clip(x, 0.0, 1.0), wave)


def ease_out_subtle_elastic(x: Array, period: float = 0.4, amplitude: float = 0.15) -> Array:
    """Ease-out-quart carrying `amplitude` of the elastic wobble."""
    base = ease_out_quart(x)
    return base + amplitude * (ease_out_elastic(x, period) - base)


# =============================================================================
# PROGRESS
# =============================================================================


def overall_progress(age: Array, duration: float) -> Array:
    """
    Fraction of the entrance animation completed at a given age.

    A zero-length animation is complete the moment the organism is born.
    """
    age = jnp.asarray(age)
    if duration <= 0:
        return jnp.where(age >= 0.0, 1.0, 0.0)
    return jnp.clip(age / duration, 0.0, 1.0)


def phase_progress(progress: Array, window: PhaseWindow) -> Array:
    """Progress through one phase window, clamped to [0, 1]."""
    progress = jnp.asarray(progress)
    span = window.end - window.start
    if span <= 0:
        return jnp.where(progress >= window.start, 1.0, 0.0)
    return jnp.clip((progress - window.start) / span, 0.0, 1.0)


def is_fast_scrub(clock_rate: float, config: AnimationConfig) -> bool:
    """True when the clock moves faster than the threshold (days per second)."""
    return abs(clock_rate) > config.fast_scrub_threshold


def growth_batch(
    ages: Array, config: AnimationConfig | None = None, clock_rate: float = 0.0
) -> GrowthState:
    """
    Growth state for many organisms at once.

    Args:
        ages: Clock days since each organism's birth (negative = unborn)
        config: Animation timing and phase windows
        clock_rate: Clock days advanced per real second this frame

    Returns:
        GrowthState of arrays shaped like `ages`
    """
    if config is None:
        config = AnimationConfig()
    ages = jnp.asarray(ages)
    if is_fast_scrub(clock_rate, config):
        progress = jnp.where(ages >= 0.0, 1.0, 0.0)
    else:
        progress = overall_progress(ages, config.duration_days)
    return GrowthState(
        progress=progress,
        stem=phase_progress(progress, config.stem),
        leaves=phase_progress(progress, config.leaves),
        bloom=phase_progress(progress, config.bloom),
    )


def growth_state(
    entry: Entry, t: float, config: AnimationConfig | None = None, clock_rate: float = 0.0
) -> GrowthState:
    """Growth state of one entry at clock time t, as plain floats."""
    state = growth_batch(jnp.asarray([t - entry.time]), config, clock_rate)
    return GrowthState(*(float(v[0]) for v in state))


# =============================================================================
# POSE
# =============================================================================


class GrowthPose(NamedTuple):
    """Geometry controls derived from the eased phases."""

    stem_height: float  # current stem tip height above ground, >= 0
    stem_bend: float  # current sideways bend of the stem midpoint
    leaf_scale: float  # multiplier on the leaf size
    petal_progress: tuple[float, ...]  # per-petal opening in [0, 1]
    center_scale: float  # bloom center / bud scale


def petal_stagger(bloom: float, petal_total: int) -> tuple[float, ...]:
    """
    Petals open one after another over the bloom phase.

    Petal i starts at 0.5 * i / n of the phase and takes half the phase.
    """
    if petal_total <= 0:
        return ()
    delays = 0.5 * np.arange(petal_total) / petal_total
    return tuple(float(p) for p in np.clip((bloom - delays) / 0.5, 0.0, 1.0))


def growth_pose(
    state: GrowthState,
    config: AnimationConfig | None = None,
    stem_bend: float = 0.0,
    leaf_size: float = 1.0,
    petal_total: int = 0,
) -> GrowthPose:
    """
    Turn phase progress into the values that drive geometry.

    The stem tip rises from below ground to its final height and bends more
    as it grows; leaves scale in with a small overshoot; petals open in a
    staggered sweep while the center follows the bloom phase.
    """
    if config is None:
        config = AnimationConfig()
    stem = float(ease_out_quad(jnp.asarray(float(state.stem))))
    travel = config.stem_final_height + config.stem_start_below
    tip = max(0.0, stem * travel - config.stem_start_below)
    bend = stem_bend * 2.0 * (tip / config.stem_final_height) if config.stem_final_height else 0.0

    leaves = float(ease_out_back(jnp.asarray(float(state.leaves)), config.back_overshoot))
    leaf_scale = leaf_size * min(max(leaves, 0.01), 1.1) if float(state.leaves) > 0 else 0.0

    bloom = float(state.bloom)
    center = float(
        ease_out_subtle_elastic(jnp.asarray(bloom), config.elastic_period, config.elastic_amplitude)
    )
    return GrowthPose(
        stem_height=tip,
        stem_bend=bend,
        leaf_scale=leaf_scale,
        petal_progress=petal_stagger(bloom, petal_total),
        center_scale=center,
    )
