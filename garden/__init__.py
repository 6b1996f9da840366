"""
Emotional Garden Engine

Turns a dataset of timestamped emotional entries into a generative garden:
each entry grows into a bloom, sprout or remnant whose shape, position,
size and visibility are pure functions of the data and a scrubbable clock.

Modules:
    config: Entry record, organism types and engine configuration
    random_stream: Seeded reproducible random streams and index hashes
    genome: Per-organism trait sets and their derivation
    shapes: Procedural petals, leaves, decay layers, cracks and stems
    layout: Spiral-plus-scatter placement with collision resolution
    percentile: Rank-based scale calibration
    lifecycle: Garden level and opacity fading
    growth: Phase-based entrance animation
    pipeline: Load-once garden and per-frame evaluation
    visualization: Matplotlib plan-view previews
"""

from garden.config import (
    AnimationConfig,
    Entry,
    EntryKind,
    GardenConfig,
    LayoutConfig,
    LifecycleConfig,
    OrganismType,
    PhaseWindow,
    ScaleConfig,
    ScaleRange,
    organism_type_for,
    to_days,
)
from garden.genome import (
    BloomGenome,
    Genome,
    GenomeCache,
    RemnantGenome,
    SproutGenome,
    TraitKind,
    derive_genome,
    shape_key,
    with_traits,
)
from garden.growth import GrowthPose, GrowthState, growth_batch, growth_pose, growth_state
from garden.layout import LayoutReport, Placement, compute_layout
from garden.lifecycle import (
    VisibilityState,
    fade_modifier,
    garden_level,
    garden_level_series,
    visibility_batch,
    visibility_state,
)
from garden.percentile import PercentileRecord, calculate_percentiles
from garden.pipeline import Frame, Garden, RenderItem
from garden.random_stream import Stream, seed, string_seed
from garden.shapes import (
    BloomGeometry,
    GeometryCache,
    MeshData,
    RemnantGeometry,
    SproutGeometry,
    build_geometry,
    crack_polygons,
    decay_layers,
    leaf_frame,
    organic_layer_outline,
    petal_layout,
    teardrop_outline,
)

__all__ = [
    # Config
    "AnimationConfig",
    "Entry",
    "EntryKind",
    "GardenConfig",
    "LayoutConfig",
    "LifecycleConfig",
    "OrganismType",
    "PhaseWindow",
    "ScaleConfig",
    "ScaleRange",
    "organism_type_for",
    "to_days",
    # Randomness
    "Stream",
    "seed",
    "string_seed",
    # Genomes
    "BloomGenome",
    "Genome",
    "GenomeCache",
    "RemnantGenome",
    "SproutGenome",
    "TraitKind",
    "derive_genome",
    "shape_key",
    "with_traits",
    # Geometry
    "BloomGeometry",
    "GeometryCache",
    "MeshData",
    "RemnantGeometry",
    "SproutGeometry",
    "build_geometry",
    "crack_polygons",
    "decay_layers",
    "leaf_frame",
    "organic_layer_outline",
    "petal_layout",
    "teardrop_outline",
    # Layout and calibration
    "LayoutReport",
    "Placement",
    "compute_layout",
    "PercentileRecord",
    "calculate_percentiles",
    # Time
    "VisibilityState",
    "fade_modifier",
    "garden_level",
    "garden_level_series",
    "visibility_batch",
    "visibility_state",
    "GrowthPose",
    "GrowthState",
    "growth_batch",
    "growth_pose",
    "growth_state",
    # Pipeline
    "Frame",
    "Garden",
    "RenderItem",
]
