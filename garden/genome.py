"""
Per-organism genomes.

A genome is the named set of shape and color traits that drives one
organism's geometry. Every trait is classified:

    LOCKED       directly encodes data (colors, scale); never randomized
    FREE         may vary for visual diversity (rotation, stem bend)
    CONSTRAINED  may vary only inside a narrow range before geometry
                 becomes degenerate (petal proportions, aspect ratio)

Genomes are frozen dataclasses, derived once per entry from the entry's
seeded stream and cached by `GenomeCache`.
"""

import dataclasses
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from garden.config import Entry, OrganismType
from garden.percentile import PercentileRecord
from garden.random_stream import Stream

logger = logging.getLogger(__name__)

FALLBACK_EMOTION_COLOR = "#FFFFFF"
FALLBACK_ASSOCIATION_COLOR = "#FFD700"

# Applied by the renderer as a transform, never baked into geometry
TRANSFORM_TRAITS = ("scale", "rotation")


class TraitKind(str, Enum):
    LOCKED = "locked"
    FREE = "free"
    CONSTRAINED = "constrained"


# =============================================================================
# GENOME TYPES
# =============================================================================


@dataclass(frozen=True)
class BloomGenome:
    """Flower: stem with leaves, rings of teardrop petals and a center."""

    scale: float
    petal_colors: tuple[str, ...]
    center_color: str
    stem_colors: tuple[str, ...]
    rotation: float = 0.0  # Y-axis rotation in radians
    stem_bend: float = 0.3
    petal_count: int = 8
    petal_rows: int = 2
    petal_length: float = 1.2
    petal_width: float = 0.6
    petal_curvature: float = 0.5
    leaf_count: int = 2
    leaf_size: float = 1.0
    leaf_orientation: float = 0.0  # degrees around the stem
    leaf_angle: float = 0.5  # tilt toward the tangent, fraction of 90 degrees

    TRAITS: ClassVar[dict[str, TraitKind]] = {
        "scale": TraitKind.LOCKED,
        "petal_colors": TraitKind.LOCKED,
        "center_color": TraitKind.LOCKED,
        "stem_colors": TraitKind.LOCKED,
        "rotation": TraitKind.FREE,
        "stem_bend": TraitKind.FREE,
        "petal_count": TraitKind.FREE,
        "petal_rows": TraitKind.CONSTRAINED,
        "petal_length": TraitKind.CONSTRAINED,
        "petal_width": TraitKind.CONSTRAINED,
        "petal_curvature": TraitKind.FREE,
        "leaf_count": TraitKind.FREE,
        "leaf_size": TraitKind.CONSTRAINED,
        "leaf_orientation": TraitKind.FREE,
        "leaf_angle": TraitKind.CONSTRAINED,
    }
    RANGES: ClassVar[dict[str, tuple[float, float]]] = {
        "petal_rows": (1, 3),
        "petal_length": (0.8, 1.6),
        "petal_width": (0.4, 0.8),
        "leaf_size": (0.6, 1.4),
        "leaf_angle": (0.0, 1.0),
    }
    COLOR_TRAITS: ClassVar[tuple[str, ...]] = ("petal_colors", "center_color", "stem_colors")

    @property
    def organism_type(self) -> OrganismType:
        return OrganismType.BLOOM

    def leaf_color(self, index: int) -> str:
        """Leaves use accents after the stem color."""
        n = len(self.stem_colors)
        if n == 1:
            return self.stem_colors[0]
        return self.stem_colors[min(index + 1, n - 1)]


@dataclass(frozen=True)
class SproutGenome:
    """Seedling: short stem, paired cotyledons, closed striped bud."""

    scale: float
    bud_color: str
    bud_stripe2_color: str
    bud_stripe3_color: str
    stem_color: str
    cotyledon1_color: str
    cotyledon2_color: str
    rotation: float = 0.0
    bud_size: float = 1.0
    bud_pointiness: float = 0.5
    stem_height: float = 1.0
    stem_curve: float = 0.2
    stem_thickness: float = 0.8
    cotyledon_size: float = 1.0

    TRAITS: ClassVar[dict[str, TraitKind]] = {
        "scale": TraitKind.LOCKED,
        "bud_color": TraitKind.LOCKED,
        "bud_stripe2_color": TraitKind.LOCKED,
        "bud_stripe3_color": TraitKind.LOCKED,
        "stem_color": TraitKind.LOCKED,
        "cotyledon1_color": TraitKind.LOCKED,
        "cotyledon2_color": TraitKind.LOCKED,
        "rotation": TraitKind.FREE,
        "bud_size": TraitKind.CONSTRAINED,
        "bud_pointiness": TraitKind.CONSTRAINED,
        "stem_height": TraitKind.CONSTRAINED,
        "stem_curve": TraitKind.FREE,
        "stem_thickness": TraitKind.CONSTRAINED,
        "cotyledon_size": TraitKind.CONSTRAINED,
    }
    RANGES: ClassVar[dict[str, tuple[float, float]]] = {
        "bud_size": (0.5, 1.5),
        "bud_pointiness": (0.0, 1.0),
        "stem_height": (0.8, 1.5),
        "stem_thickness": (0.5, 1.0),
        "cotyledon_size": (0.5, 1.5),
    }
    COLOR_TRAITS: ClassVar[tuple[str, ...]] = (
        "bud_color",
        "bud_stripe2_color",
        "bud_stripe3_color",
        "stem_color",
        "cotyledon1_color",
        "cotyledon2_color",
    )

    @property
    def organism_type(self) -> OrganismType:
        return OrganismType.SPROUT


@dataclass(frozen=True)
class RemnantGenome:
    """Decay scar: three stacked organic layers with radiating cracks."""

    scale: float
    layer_colors: tuple[str, str, str]  # innermost (top) first
    crack_colors: tuple[str, ...]
    crack_count: int = 6
    rotation: float = 0.0
    size: float = 1.0
    aspect_ratio: float = 1.2
    edge_wobble: float = 0.5
    crack_wobble: float = 0.4
    layer_seed: float = 0.0  # Phase offset shared by the three layers

    TRAITS: ClassVar[dict[str, TraitKind]] = {
        "scale": TraitKind.LOCKED,
        "layer_colors": TraitKind.LOCKED,
        "crack_colors": TraitKind.LOCKED,
        "crack_count": TraitKind.LOCKED,  # encodes intensity
        "rotation": TraitKind.FREE,
        "size": TraitKind.CONSTRAINED,
        "aspect_ratio": TraitKind.CONSTRAINED,
        "edge_wobble": TraitKind.CONSTRAINED,
        "crack_wobble": TraitKind.FREE,
        "layer_seed": TraitKind.FREE,
    }
    RANGES: ClassVar[dict[str, tuple[float, float]]] = {
        "size": (0.8, 1.2),
        "aspect_ratio": (1.0, 1.6),
        "edge_wobble": (0.0, 1.0),
    }
    COLOR_TRAITS: ClassVar[tuple[str, ...]] = ("layer_colors", "crack_colors")

    @property
    def organism_type(self) -> OrganismType:
        return OrganismType.REMNANT

    def crack_color(self, index: int) -> str:
        """Cycle through up to three crack colors by index mod 3."""
        slot = index % 3
        if slot < len(self.crack_colors):
            return self.crack_colors[slot]
        return self.crack_colors[0]


Genome = BloomGenome | SproutGenome | RemnantGenome


# =============================================================================
# TRAIT HANDLING
# =============================================================================


def trait_kind(genome: Genome, name: str) -> TraitKind:
    return type(genome).TRAITS[name]


def shape_key(genome: Genome) -> tuple:
    """
    Value key of every trait that drives geometry.

    Colors and transform-only traits (scale, rotation) are excluded, so two
    genomes with equal keys produce identical meshes.
    """
    skip = set(type(genome).COLOR_TRAITS) | set(TRANSFORM_TRAITS)
    return (type(genome).__name__,) + tuple(
        getattr(genome, f.name)
        for f in dataclasses.fields(genome)
        if f.name not in skip
    )


def constrain(genome: Genome) -> Genome:
    """Clamp every constrained trait into its safe range."""
    changes = {}
    for name, (low, high) in type(genome).RANGES.items():
        value = getattr(genome, name)
        clamped = min(max(value, low), high)
        if isinstance(value, int):
            clamped = int(round(clamped))
        if clamped != value:
            changes[name] = clamped
    if not changes:
        return genome
    logger.debug("Clamped constrained traits %s", sorted(changes))
    return dataclasses.replace(genome, **changes)


def with_traits(genome: Genome, **changes) -> Genome:
    """
    Return a copy with some traits changed.

    Locked traits encode data and cannot be changed this way; constrained
    traits are clamped into range.

    Raises:
        ValueError: if a locked trait is changed
        KeyError: if a trait name is unknown
    """
    traits = type(genome).TRAITS
    for name in changes:
        if traits[name] is TraitKind.LOCKED:
            raise ValueError(f"Trait {name!r} is locked")
    return constrain(dataclasses.replace(genome, **changes))


# =============================================================================
# DERIVATION
# =============================================================================


def _emotion_colors(entry: Entry) -> tuple[str, ...]:
    colors = tuple(c for c in (entry.primary_color, *entry.secondary_colors) if c)
    return colors or (FALLBACK_EMOTION_COLOR,)


def _association_colors(entry: Entry) -> tuple[str, ...]:
    colors = tuple(c for c in entry.accent_colors if c)
    return colors or (FALLBACK_ASSOCIATION_COLOR,)


def _bloom(entry: Entry, scale: float, stream: Stream) -> BloomGenome:
    emotions = _emotion_colors(entry)
    return BloomGenome(
        scale=scale,
        petal_colors=emotions,
        center_color=emotions[0],
        stem_colors=_association_colors(entry),
        rotation=stream.angle(),
        stem_bend=stream.uniform(0.1, 0.5),
    )


def _sprout(entry: Entry, scale: float, stream: Stream) -> SproutGenome:
    emotions = _emotion_colors(entry)
    associations = _association_colors(entry)
    stem_color = associations[0]
    return SproutGenome(
        scale=scale,
        bud_color=emotions[0],
        bud_stripe2_color=emotions[1] if len(emotions) > 1 else emotions[0],
        bud_stripe3_color=emotions[2] if len(emotions) > 2 else emotions[0],
        stem_color=stem_color,
        cotyledon1_color=associations[1] if len(associations) > 1 else stem_color,
        cotyledon2_color=associations[2] if len(associations) > 2 else stem_color,
        rotation=stream.angle(),
        stem_curve=stream.uniform(-0.3, 0.3),
    )


def _remnant(entry: Entry, scale: float, stream: Stream) -> RemnantGenome:
    emotions = _emotion_colors(entry)
    primary = emotions[0]
    layer_colors = (
        primary,
        emotions[1] if len(emotions) > 1 else primary,
        emotions[2] if len(emotions) > 2 else primary,
    )
    return RemnantGenome(
        scale=scale,
        layer_colors=layer_colors,
        crack_colors=_association_colors(entry),
        crack_count=4 + int(round(abs(entry.intensity) * 8)),
        rotation=stream.angle(),
        aspect_ratio=stream.uniform(1.0, 1.5),
        edge_wobble=stream.uniform(0.3, 0.8),
        crack_wobble=stream.uniform(0.2, 0.8),
        layer_seed=stream.uniform(0.0, 2.0 * math.pi),
    )


_BUILDERS = {
    OrganismType.BLOOM: _bloom,
    OrganismType.SPROUT: _sprout,
    OrganismType.REMNANT: _remnant,
}


def derive_genome(entry: Entry, record: PercentileRecord) -> Genome:
    """
    Build an entry's genome.

    Free traits are drawn from a stream seeded by the entry timestamp, so
    the same entry always grows the same organism.
    """
    stream = Stream(entry.seed)
    genome = _BUILDERS[entry.organism_type](entry, record.scale, stream)
    return constrain(genome)


class GenomeCache:
    """Derive-once store of genomes keyed by entry id."""

    def __init__(self) -> None:
        self._genomes: dict[str, Genome] = {}

    def get(self, entry: Entry, record: PercentileRecord) -> Genome:
        genome = self._genomes.get(entry.id)
        if genome is None:
            genome = derive_genome(entry, record)
            self._genomes[entry.id] = genome
        return genome

    def __len__(self) -> int:
        return len(self._genomes)

    def __contains__(self, entry_id: str) -> bool:
        return entry_id in self._genomes
