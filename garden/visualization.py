"""
Matplotlib previews of a garden.

- Plan view of one frame: organism footprints at their placements, filled
  with each organism's primary color at its current opacity
- Garden-level timeline across the dataset span

These are debugging and poster aids; the real renderer consumes
`Frame.items` directly.
"""

from __future__ import annotations

import math

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Polygon as MplPolygon, Rectangle
from shapely import affinity
from shapely.geometry import Point as ShapelyPoint, Polygon as ShapelyPolygon
from shapely.ops import unary_union

from garden.genome import BloomGenome, RemnantGenome, SproutGenome
from garden.pipeline import Frame, Garden, RenderItem
from garden.shapes import BloomGeometry, RemnantGeometry, SproutGeometry, petal_outline

BED_COLOR = "#E8DCC8"
BED_EDGE = "#6B4F2F"
LUSH_COLOR = "#2E8B57"
BARREN_COLOR = "#B5651D"


def primary_color(item: RenderItem) -> str:
    genome = item.genome
    if isinstance(genome, BloomGenome):
        return genome.petal_colors[0]
    if isinstance(genome, SproutGenome):
        return genome.bud_color
    return genome.layer_colors[0]


# =============================================================================
# FOOTPRINTS
# =============================================================================


def _bloom_footprint(genome: BloomGenome, geometry: BloomGeometry):
    """Petals projected onto the ground around the bloom center."""
    outline = petal_outline(genome.petal_length, genome.petal_width)
    shapes = [ShapelyPoint(0, 0).buffer(geometry.center_radius)]
    for slot in geometry.petals:
        petal = ShapelyPolygon(outline)
        # Tilted petals look shorter from above
        petal = affinity.scale(petal, 1.0, math.cos(slot.tilt), origin=(0, 0))
        petal = affinity.rotate(petal, slot.angle - math.pi / 2, origin=(0, 0), use_radians=True)
        shapes.append(petal)
    return unary_union(shapes)


def _sprout_footprint(genome: SproutGenome, geometry: SproutGeometry):
    radius = float(np.max(geometry.bud_profile[:, 0]))
    shapes = [ShapelyPoint(0, 0).buffer(radius)]
    for center in geometry.cotyledon_centers:
        leaf = ShapelyPoint(center[0], center[2]).buffer(1.0)
        radii = geometry.cotyledon_radii
        shapes.append(affinity.scale(leaf, radii[0], radii[2]))
    return unary_union(shapes)


def _remnant_footprint(genome: RemnantGenome, geometry: RemnantGeometry):
    return geometry.footprint


def organism_footprint(garden: Garden, item: RenderItem):
    """Plan-view shapely geometry of an organism in world (x, z) coordinates."""
    geometry = garden.geometry_for(item.entry_id)
    genome = item.genome
    if isinstance(genome, BloomGenome):
        shape = _bloom_footprint(genome, geometry)
    elif isinstance(genome, SproutGenome):
        shape = _sprout_footprint(genome, geometry)
    else:
        shape = _remnant_footprint(genome, geometry)

    # Growth shrinks the footprint; remnants are flat and appear at full size
    grown = 1.0 if isinstance(genome, RemnantGenome) else max(item.growth.bloom, 0.05)
    size = item.scale * grown
    shape = affinity.scale(shape, size, size, origin=(0, 0))
    shape = affinity.rotate(shape, genome.rotation, origin=(0, 0), use_radians=True)
    x, z = item.placement.plan
    return affinity.translate(shape, x, z)


def _polygons(shape) -> list[np.ndarray]:
    if shape.is_empty:
        return []
    parts = getattr(shape, "geoms", [shape])
    return [np.asarray(p.exterior.coords) for p in parts if hasattr(p, "exterior")]


# =============================================================================
# PLOTS
# =============================================================================


def plot_frame(
    garden: Garden,
    frame: Frame,
    ax: plt.Axes | None = None,
    show_stems: bool = True,
) -> tuple[plt.Figure, plt.Axes]:
    """
    Draw one frame in plan view.

    Args:
        garden: Loaded garden (for geometry and bed size)
        frame: Result of `garden.frame(t)`
        ax: Axes to draw into (a new figure if None)
        show_stems: Mark each placement with a dot

    Returns:
        (figure, axes) tuple
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 8))
    else:
        fig = ax.figure

    layout = garden.config.layout
    ax.add_patch(
        Rectangle(
            (-layout.half_width, -layout.half_depth),
            2 * layout.half_width,
            2 * layout.half_depth,
            facecolor=BED_COLOR,
            edgecolor=BED_EDGE,
            linewidth=2,
            zorder=0,
        )
    )

    # Remnants lie flat under everything else
    order = sorted(frame.items, key=lambda i: 0 if isinstance(i.genome, RemnantGenome) else 1)
    for item in order:
        color = primary_color(item)
        for verts in _polygons(organism_footprint(garden, item)):
            ax.add_patch(
                MplPolygon(
                    verts,
                    facecolor=color,
                    edgecolor="#1a1a1a",
                    linewidth=0.5,
                    alpha=item.opacity,
                    zorder=2,
                )
            )
        if show_stems:
            x, z = item.placement.plan
            ax.plot(x, z, "o", color="#1a1a1a", markersize=1.5, alpha=item.opacity, zorder=3)

    ax.set_xlim(-layout.half_width - 1, layout.half_width + 1)
    ax.set_ylim(-layout.half_depth - 1, layout.half_depth + 1)
    ax.set_aspect("equal")
    ax.set_xlabel("x")
    ax.set_ylabel("z")
    ax.set_title(f"t = {frame.time:.1f} d, level = {frame.garden_level:+.2f}, {len(frame)} visible")
    return fig, ax


def plot_garden_level(
    garden: Garden,
    samples: int = 400,
    ax: plt.Axes | None = None,
    mark: float | None = None,
) -> tuple[plt.Figure, plt.Axes]:
    """Garden level over the dataset span, shaded lush below and barren above zero."""
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 3))
    else:
        fig = ax.figure

    start, end = garden.time_span()
    end = end + garden.config.lifecycle.base_lifespan_days
    times = np.linspace(start, end, samples)
    levels = np.array([garden.garden_level(t) for t in times])
    days = times - start

    ax.plot(days, levels, color="#1a1a1a", linewidth=1.2)
    ax.fill_between(days, levels, 0, where=levels < 0, color=LUSH_COLOR, alpha=0.4, label="lush")
    ax.fill_between(days, levels, 0, where=levels > 0, color=BARREN_COLOR, alpha=0.4, label="barren")
    ax.axhline(0, color="gray", linewidth=0.5)
    if mark is not None:
        ax.axvline(mark - start, color="red", linewidth=1, linestyle="--")

    ax.set_xlabel("Days since first entry")
    ax.set_ylabel("Garden level")
    ax.legend(loc="upper right")
    return fig, ax


def render_garden(
    garden: Garden, t: float, figsize: tuple = (10, 11)
) -> tuple[plt.Figure, list[plt.Axes]]:
    """Plan view above a garden-level timeline marked at t."""
    fig, (top, bottom) = plt.subplots(
        2, 1, figsize=figsize, gridspec_kw={"height_ratios": [3, 1]}
    )
    plot_frame(garden, garden.frame(t), ax=top)
    plot_garden_level(garden, ax=bottom, mark=t)
    plt.tight_layout()
    return fig, [top, bottom]


def save_garden(filepath: str, garden: Garden, t: float, dpi: int = 150) -> None:
    """Render and save a garden preview to file."""
    fig, _ = render_garden(garden, t)
    fig.savefig(filepath, dpi=dpi, bbox_inches="tight", pad_inches=0.1)
    plt.close(fig)
    print(f"Saved to {filepath}")


def save_garden_level(filepath: str, garden: Garden, dpi: int = 150) -> None:
    """Render and save the garden-level timeline to file."""
    fig, _ = plot_garden_level(garden)
    fig.savefig(filepath, dpi=dpi, bbox_inches="tight", pad_inches=0.1)
    plt.close(fig)
    print(f"Saved to {filepath}")
