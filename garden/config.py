"""
Configuration and type definitions for the garden engines.

This module defines the entry record consumed from the data pipeline, the
organism classification, and every tunable knob of the layout, scale,
life-cycle and animation engines.

Clock:
    All times are float days since the Unix epoch. Use `to_days` to convert
    a `datetime`; naive datetimes are interpreted as UTC so results never
    depend on the host timezone.

Polarity:
    Negative intensity (unpleasant) entries become Blooms and push the
    garden level negative ("lush"). Positive intensity entries become
    Remnants and push it positive ("barren"). Neutral entries become Sprouts.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

SECONDS_PER_DAY = 86400.0


def to_days(moment: datetime) -> float:
    """Convert a datetime to float days since the Unix epoch."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp() / SECONDS_PER_DAY


class OrganismType(str, Enum):
    """What kind of organism an entry grows into."""

    BLOOM = "bloom"
    SPROUT = "sprout"
    REMNANT = "remnant"

    @property
    def favored_polarity(self) -> int:
        """Sign of the garden level this organism thrives in (0 = indifferent)."""
        if self is OrganismType.BLOOM:
            return -1
        if self is OrganismType.REMNANT:
            return 1
        return 0


class EntryKind(str, Enum):
    """Momentary entries spawn organisms; daily entries only move the garden level."""

    MOMENTARY = "momentary"
    DAILY = "daily"


def organism_type_for(classification: str) -> OrganismType:
    """
    Map a valence classification label to an organism type.

    "Very Unpleasant", "Unpleasant", "Slightly Unpleasant" -> Bloom
    "Neutral" -> Sprout
    Any pleasant variant -> Remnant
    """
    label = classification.lower().strip()
    if "unpleasant" in label:
        return OrganismType.BLOOM
    if label == "neutral":
        return OrganismType.SPROUT
    return OrganismType.REMNANT


@dataclass(frozen=True)
class Entry:
    """
    One timestamped emotional entry, already resolved to colors.

    Created once by the ingestion collaborator and never mutated.
    """

    id: str
    timestamp: datetime
    intensity: float  # Signed valence in [-1, 1]
    organism_type: OrganismType
    primary_color: str
    secondary_colors: tuple[str, ...] = ()
    accent_colors: tuple[str, ...] = ()
    kind: EntryKind = EntryKind.MOMENTARY

    def __post_init__(self) -> None:
        if not -1.0 <= self.intensity <= 1.0:
            raise ValueError(f"Intensity must be in [-1, 1], got {self.intensity}")
        if len(self.secondary_colors) > 2:
            raise ValueError("At most 2 secondary colors are allowed")
        if len(self.accent_colors) > 3:
            raise ValueError("At most 3 accent colors are allowed")

    @property
    def time(self) -> float:
        """Birth time in days since the epoch."""
        return to_days(self.timestamp)

    @property
    def seed(self) -> int:
        """32-bit seed derived from the millisecond timestamp."""
        return int(round(self.time * SECONDS_PER_DAY * 1000.0)) & 0xFFFFFFFF

    @property
    def day_key(self) -> str:
        """Calendar day (UTC) as YYYY-MM-DD."""
        moment = self.timestamp
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(timezone.utc).strftime("%Y-%m-%d")

    @property
    def spawns_organism(self) -> bool:
        return self.kind is EntryKind.MOMENTARY


@dataclass(frozen=True)
class LayoutConfig:
    """
    Spiral-plus-scatter layout parameters.

    The spiral runs from `min_radius_fraction * garden_radius` (oldest day)
    to `max_radius_fraction * garden_radius` (newest day). Final positions
    are clamped to the rectangle [-half_width, half_width] x
    [-half_depth, half_depth] in the ground (x, z) plane.
    """

    garden_radius: float = 12.0
    spiral_rotations: float = 3.5
    min_radius_fraction: float = 0.1
    max_radius_fraction: float = 0.85
    day_scatter_radius: float = 2.0  # How far a day drifts from the spiral
    entry_scatter_radius: float = 1.5  # How far entries spread within a day
    min_stem_clearance: float = 2.0  # Global minimum plan-view stem distance
    half_width: float = 15.0  # x half-extent of the plantable bed
    half_depth: float = 12.0  # z half-extent of the plantable bed
    max_iterations: int = 200  # Relaxation passes before giving up
    tolerance: float = 1e-6  # Allowed residual overlap

    def __post_init__(self) -> None:
        for name in (
            "garden_radius",
            "day_scatter_radius",
            "entry_scatter_radius",
            "min_stem_clearance",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be nonnegative")
        if self.half_width <= 0 or self.half_depth <= 0:
            raise ValueError("Bed half-extents must be positive")
        if not 0 <= self.min_radius_fraction <= self.max_radius_fraction:
            raise ValueError("Spiral radius fractions must satisfy 0 <= min <= max")
        if self.max_iterations < 0:
            raise ValueError("max_iterations must be nonnegative")


@dataclass(frozen=True)
class ScaleRange:
    """Linear scale range a percentile maps into."""

    min: float
    max: float

    def __post_init__(self) -> None:
        if self.min < 0 or self.max < self.min:
            raise ValueError(f"Invalid scale range [{self.min}, {self.max}]")


def _default_ranges() -> dict[OrganismType, ScaleRange]:
    return {
        OrganismType.BLOOM: ScaleRange(0.4, 1.8),
        OrganismType.SPROUT: ScaleRange(0.8, 1.0),  # Narrow, always visible
        OrganismType.REMNANT: ScaleRange(1.0, 3.6),
    }


@dataclass(frozen=True)
class ScaleConfig:
    """
    Percentile-to-scale calibration.

    scale = min + (percentile / 100) ** exponent * (max - min)

    exponent = 1 is the linear contractual mapping; exponent < 1 spreads out
    the low end.
    """

    ranges: dict[OrganismType, ScaleRange] = field(default_factory=_default_ranges)
    exponent: float = 1.0
    fixed_type: OrganismType | None = OrganismType.SPROUT  # Always percentile 50

    def __post_init__(self) -> None:
        if self.exponent <= 0:
            raise ValueError("Exponent must be positive")
        missing = set(OrganismType) - set(self.ranges)
        if missing:
            raise ValueError(f"Missing scale ranges for {sorted(m.value for m in missing)}")

    def __hash__(self) -> int:
        return hash((tuple(sorted((k.value, v) for k, v in self.ranges.items())),
                     self.exponent, self.fixed_type))

    def range_for(self, organism_type: OrganismType) -> ScaleRange:
        return self.ranges[organism_type]


@dataclass(frozen=True)
class LifecycleConfig:
    """
    Garden level and fade parameters.

    Effective lifespan:
        L' = L * (1 + intensity_modifier * |v|) * (1 + match_modifier * m)

    where m in [-1, 1] is positive when the garden level favors the organism.
    Opacity:
        opacity = clip(1 - (age / L') ** fade_exponent, 0, 1)
    """

    half_life_days: float = 7.0
    max_entry_contribution: float = 1.0
    base_lifespan_days: float = 14.0
    intensity_modifier: float = 0.5  # +50% lifespan at max intensity
    match_modifier: float = 0.5  # +/-50% lifespan at full (mis)match
    level_normalization: float = 5.0  # Garden level that counts as full match
    fade_exponent: float = 2.0  # > 1: slow start, fast end

    def __post_init__(self) -> None:
        if self.half_life_days <= 0:
            raise ValueError("Half-life must be positive")
        if self.base_lifespan_days <= 0:
            raise ValueError("Base lifespan must be positive")
        if self.level_normalization <= 0:
            raise ValueError("Level normalization must be positive")
        if not 0 <= self.match_modifier < 1:
            raise ValueError("match_modifier must be in [0, 1)")
        if self.intensity_modifier < 0 or self.max_entry_contribution < 0:
            raise ValueError("Modifiers must be nonnegative")
        if self.fade_exponent <= 0:
            raise ValueError("Fade exponent must be positive")


@dataclass(frozen=True)
class PhaseWindow:
    """A [start, end] window over overall growth progress."""

    start: float
    end: float

    def __post_init__(self) -> None:
        if not 0 <= self.start <= self.end <= 1:
            raise ValueError(f"Invalid phase window [{self.start}, {self.end}]")


@dataclass(frozen=True)
class AnimationConfig:
    """
    Growth animation parameters.

    The animation lasts base_duration / speed_multiplier real seconds. At the
    nominal playback rate this is converted to clock days so growth stays a
    pure function of the clock.
    """

    base_duration: float = 2.0  # seconds
    speed_multiplier: float = 2.7
    playback_days_per_second: float = 1.0
    fast_scrub_threshold: float = 2.0  # clock days per real second
    stem: PhaseWindow = PhaseWindow(0.0, 0.5)
    leaves: PhaseWindow = PhaseWindow(0.25, 0.70)
    bloom: PhaseWindow = PhaseWindow(0.6, 1.0)
    back_overshoot: float = 0.5
    elastic_period: float = 0.4  # Higher = less bouncy
    elastic_amplitude: float = 0.15  # Fraction of the textbook elastic swing
    stem_final_height: float = 3.0
    stem_start_below: float = 0.5  # How far below ground the stem tip starts

    def __post_init__(self) -> None:
        if self.base_duration < 0 or self.speed_multiplier <= 0:
            raise ValueError("Duration must be nonnegative and speed positive")
        if self.playback_days_per_second < 0 or self.fast_scrub_threshold < 0:
            raise ValueError("Rates must be nonnegative")
        if self.elastic_period <= 0:
            raise ValueError("Elastic period must be positive")

    @property
    def duration_seconds(self) -> float:
        return self.base_duration / self.speed_multiplier

    @property
    def duration_days(self) -> float:
        """Animation length in clock days at the nominal playback rate."""
        return self.duration_seconds * self.playback_days_per_second


@dataclass(frozen=True)
class GardenConfig:
    """Complete configuration for all engines."""

    layout: LayoutConfig = field(default_factory=LayoutConfig)
    scale: ScaleConfig = field(default_factory=ScaleConfig)
    lifecycle: LifecycleConfig = field(default_factory=LifecycleConfig)
    animation: AnimationConfig = field(default_factory=AnimationConfig)

    @classmethod
    def default(cls) -> "GardenConfig":
        """Defaults tuned for a few months of entries in a 30 x 24 bed."""
        return cls()

    @classmethod
    def fast_fade(cls) -> "GardenConfig":
        """Short-lived organisms for dense datasets."""
        return cls(
            lifecycle=LifecycleConfig(base_lifespan_days=5.0, half_life_days=3.0),
        )

    @classmethod
    def spread_out(cls) -> "GardenConfig":
        """A compressed low end and a wider spiral for large datasets."""
        return cls(
            layout=LayoutConfig(spiral_rotations=4.5, day_scatter_radius=2.5),
            scale=ScaleConfig(exponent=0.6),
        )
