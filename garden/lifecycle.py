"""
Garden level and organism fading.

The garden level is a signed environmental scalar summarizing recent
emotional polarity. Every entry born by time t contributes its clamped
intensity, halving every `half_life_days`:

    level(t) = sum_{ts <= t} clamp(v, +/-c) * exp(-ln 2 * (t - ts) / half_life)

Negative entries push the garden "lush" (negative), positive entries push
it "barren" (positive). The level only modulates how fast organisms fade.

Each organism lives for an effective lifespan

    L' = L * (1 + a * |v|) * (1 + b * m)

where m in [-1, 1] is how strongly the current level favors the organism's
polarity (Blooms like negative levels, Remnants like positive, Sprouts are
indifferent), and fades as

    opacity = clamp(1 - (age / L') ** p, 0, 1)

Everything here is a pure function of the clock, so scrubbing is free.
Batch functions take ages (t - timestamp) computed in float64 by the caller
so absolute epoch days never lose precision on the jax side.
"""

import math
from typing import NamedTuple

import jax.numpy as jnp
import numpy as np
from jax import Array

from garden.config import AnimationConfig, Entry, LifecycleConfig, OrganismType
from garden.growth import growth_state

LN2 = math.log(2.0)


class VisibilityState(NamedTuple):
    """Whether and how an organism shows at one clock time."""

    entry_id: str
    opacity: float  # in [0, 1]
    growth_progress: float  # overall entrance animation progress in [0, 1]
    lifespan: float  # effective lifespan L' in days
    visible: bool  # False means excluded from render output entirely


# =============================================================================
# GARDEN LEVEL
# =============================================================================


def entry_ages(entries: list[Entry], t: float) -> np.ndarray:
    """Float64 ages of entries at clock time t (negative = unborn)."""
    return t - np.array([e.time for e in entries], dtype=np.float64)


def decay_weights(ages: Array, half_life: float) -> Array:
    """Exponential decay weight per entry; zero for unborn entries."""
    ages = jnp.asarray(ages)
    weights = jnp.exp(-LN2 * jnp.maximum(ages, 0.0) / half_life)
    return jnp.where(ages >= 0.0, weights, 0.0)


def garden_level_batch(
    ages: Array, intensities: Array, config: LifecycleConfig | None = None
) -> Array:
    """Garden level from per-entry ages and intensities."""
    if config is None:
        config = LifecycleConfig()
    cap = config.max_entry_contribution
    contributions = jnp.clip(jnp.asarray(intensities), -cap, cap)
    return jnp.sum(contributions * decay_weights(ages, config.half_life_days))


def garden_level(entries: list[Entry], t: float, config: LifecycleConfig | None = None) -> float:
    """
    Garden level at clock time t, daily entries included.

    Bounded by max_entry_contribution * N; with entries at most one per
    unit of time it stays below c / (1 - 2 ** (-1 / half_life)).
    """
    if not entries:
        return 0.0
    intensities = np.array([e.intensity for e in entries])
    return float(garden_level_batch(entry_ages(entries, t), intensities, config))


def garden_level_series(
    entries: list[Entry], times: np.ndarray, config: LifecycleConfig | None = None
) -> Array:
    """Garden level at each of several clock times."""
    times = np.asarray(times, dtype=np.float64)
    if not entries:
        return jnp.zeros(len(times))
    stamps = np.array([e.time for e in entries], dtype=np.float64)
    intensities = jnp.asarray([e.intensity for e in entries])
    ages = times[:, None] - stamps[None, :]
    if config is None:
        config = LifecycleConfig()
    cap = config.max_entry_contribution
    weights = decay_weights(ages, config.half_life_days)
    return jnp.sum(jnp.clip(intensities, -cap, cap)[None, :] * weights, axis=1)


# =============================================================================
# FADING
# =============================================================================


def match_factor(level: Array, polarity: Array, config: LifecycleConfig | None = None) -> Array:
    """
    How strongly the level favors an organism, in [-1, 1].

    Positive when the level has the organism's favored sign, negative when
    it opposes it, zero for indifferent organisms.
    """
    if config is None:
        config = LifecycleConfig()
    normalized = jnp.clip(jnp.asarray(level) / config.level_normalization, -1.0, 1.0)
    return jnp.asarray(polarity) * normalized


def fade_modifier(
    level: float, organism_type: OrganismType, config: LifecycleConfig | None = None
) -> float:
    """Lifespan multiplier from the garden level alone (1 = unmodified)."""
    if config is None:
        config = LifecycleConfig()
    m = match_factor(level, organism_type.favored_polarity, config)
    return float(1.0 + config.match_modifier * m)


def effective_lifespan(
    intensity: Array, match: Array, config: LifecycleConfig | None = None
) -> Array:
    if config is None:
        config = LifecycleConfig()
    intensity_boost = 1.0 + config.intensity_modifier * jnp.abs(jnp.asarray(intensity))
    match_boost = 1.0 + config.match_modifier * jnp.asarray(match)
    return config.base_lifespan_days * intensity_boost * match_boost


def fade_opacity(ages: Array, lifespans: Array, exponent: float = 2.0) -> Array:
    """Accelerating fade: flat early, steep near the end; 0 before birth."""
    ages = jnp.asarray(ages)
    fraction = jnp.maximum(ages, 0.0) / jnp.asarray(lifespans)
    opacity = jnp.clip(1.0 - fraction**exponent, 0.0, 1.0)
    return jnp.where(ages >= 0.0, opacity, 0.0)


def visibility_batch(
    ages: Array,
    intensities: Array,
    polarities: Array,
    level: Array,
    config: LifecycleConfig | None = None,
) -> tuple[Array, Array]:
    """
    Opacity and effective lifespan for many organisms sharing one level.

    Returns:
        (opacity, lifespan) arrays shaped like `ages`
    """
    if config is None:
        config = LifecycleConfig()
    lifespans = effective_lifespan(intensities, match_factor(level, polarities, config), config)
    return fade_opacity(ages, lifespans, config.fade_exponent), lifespans


def visibility_state(
    entry: Entry,
    t: float,
    level: float,
    config: LifecycleConfig | None = None,
    animation: AnimationConfig | None = None,
    clock_rate: float = 0.0,
) -> VisibilityState:
    """
    Visibility of one organism at clock time t.

    `level` is the garden level at t, computed once per frame by the caller.
    """
    if config is None:
        config = LifecycleConfig()
    age = t - entry.time
    if age < 0:
        return VisibilityState(entry.id, 0.0, 0.0, 0.0, False)
    opacity, lifespan = visibility_batch(
        jnp.asarray([age]),
        jnp.asarray([entry.intensity]),
        jnp.asarray([entry.organism_type.favored_polarity]),
        level,
        config,
    )
    opacity = float(opacity[0])
    progress = growth_state(entry, t, animation, clock_rate).progress
    return VisibilityState(
        entry_id=entry.id,
        opacity=opacity,
        growth_progress=progress,
        lifespan=float(lifespan[0]),
        visible=opacity > 0.0,
    )
