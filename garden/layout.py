"""
Spiral-plus-scatter garden layout.

Each calendar day is a point on a spiral that winds from near the center
(oldest day) toward the edge (newest day). A day drifts off the spiral by a
seeded scatter, and entries sharing a day scatter around the day's point by
a smaller radius, so same-day organisms stay visually clustered.

A relaxation pass then pushes apart any two stems closer than the minimum
clearance, and every position is clamped to the rectangular bed. Layout is
computed once per load and is a pure function of the entry set and config.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass

import numpy as np
from scipy.spatial import cKDTree

from garden.config import Entry, LayoutConfig
from garden.random_stream import Stream, pair_angle, string_seed

logger = logging.getLogger(__name__)

# Spiral progress used when every entry falls on one day
SINGLE_DAY_PROGRESS = 0.5


@dataclass(frozen=True)
class Placement:
    """Fixed ground position of one entry's organism (y is up)."""

    entry_id: str
    position: tuple[float, float, float]

    @property
    def plan(self) -> tuple[float, float]:
        """Plan-view (x, z) coordinates."""
        return self.position[0], self.position[2]


@dataclass(frozen=True)
class LayoutReport:
    """How well collision resolution converged."""

    iterations: int
    residual_overlap: float  # clearance minus the closest pair distance, >= 0
    converged: bool


# =============================================================================
# INITIAL PLACEMENT
# =============================================================================


def spiral_point(progress: float, config: LayoutConfig) -> np.ndarray:
    """Point on the garden spiral at progress in [0, 1]."""
    fraction = config.min_radius_fraction + progress * (
        config.max_radius_fraction - config.min_radius_fraction
    )
    radius = config.garden_radius * fraction
    angle = progress * config.spiral_rotations * 2 * math.pi
    return np.array([radius * math.cos(angle), radius * math.sin(angle)])


def scatter_offset(stream: Stream, radius: float) -> np.ndarray:
    """Offset at a random angle and a random distance up to radius."""
    angle = stream.angle()
    distance = stream.next() * radius
    return np.array([distance * math.cos(angle), distance * math.sin(angle)])


def group_by_day(entries: list[Entry]) -> dict[str, list[Entry]]:
    """Entries grouped by UTC calendar day, each day in time order."""
    days: dict[str, list[Entry]] = defaultdict(list)
    for entry in entries:
        days[entry.day_key].append(entry)
    for day in days.values():
        day.sort(key=lambda e: (e.time, e.id))
    return dict(sorted(days.items()))


def day_progress(days: dict[str, list[Entry]]) -> dict[str, float]:
    """Normalized time of each day's first entry across the dataset span."""
    starts = {key: group[0].time for key, group in days.items()}
    if not starts:
        return {}
    first, last = min(starts.values()), max(starts.values())
    span = last - first
    if span <= 0:
        return {key: SINGLE_DAY_PROGRESS for key in starts}
    return {key: (start - first) / span for key, start in starts.items()}


def initial_positions(
    entries: list[Entry], config: LayoutConfig
) -> tuple[list[str], np.ndarray]:
    """
    Unresolved plan-view positions.

    Returns:
        (entry ids, (N, 2) array of (x, z) positions) in day then time order
    """
    days = group_by_day(entries)
    progress = day_progress(days)
    ids: list[str] = []
    points: list[np.ndarray] = []

    for key, group in days.items():
        day_stream = Stream(string_seed(key))
        center = spiral_point(progress[key], config) + scatter_offset(
            day_stream, config.day_scatter_radius
        )
        for entry in group:
            if len(group) == 1:
                point = center
            else:
                point = center + scatter_offset(Stream(entry.seed), config.entry_scatter_radius)
            ids.append(entry.id)
            points.append(point)

    if not points:
        return ids, np.zeros((0, 2))
    return ids, clamp_to_bed(np.array(points), config)


def clamp_to_bed(points: np.ndarray, config: LayoutConfig) -> np.ndarray:
    """Clamp (x, z) positions to the rectangular bed."""
    return np.column_stack([
        np.clip(points[:, 0], -config.half_width, config.half_width),
        np.clip(points[:, 1], -config.half_depth, config.half_depth),
    ])


# =============================================================================
# COLLISION RESOLUTION
# =============================================================================


def close_pairs(points: np.ndarray, clearance: float, tolerance: float) -> np.ndarray:
    """Index pairs (i < j) closer than clearance - tolerance, sorted."""
    reach = clearance - tolerance
    if len(points) < 2 or reach <= 0:
        return np.zeros((0, 2), dtype=int)
    pairs = cKDTree(points).query_pairs(reach, output_type="ndarray")
    if len(pairs) == 0:
        return np.zeros((0, 2), dtype=int)
    # query_pairs order is not guaranteed; sort for reproducible pushes
    order = np.lexsort((pairs[:, 1], pairs[:, 0]))
    return pairs[order]


def min_pair_distance(points: np.ndarray) -> float:
    """Smallest plan-view distance between any two points (inf if < 2)."""
    if len(points) < 2:
        return math.inf
    distances, _ = cKDTree(points).query(points, k=2)
    return float(np.min(distances[:, 1]))


def resolve_collisions(
    points: np.ndarray, config: LayoutConfig
) -> tuple[np.ndarray, LayoutReport]:
    """
    Push overlapping stems apart until clearance holds or iterations run out.

    Each pass visits every close pair in index order and moves both points
    half the overlap along their connecting vector, using positions already
    updated earlier in the same pass. Coincident points separate along a
    deterministic per-pair direction. Positions are clamped to the bed after
    every pass, so a bed too crowded to fit everyone ends with residual
    overlap instead of escaping its bounds.
    """
    points = np.array(points, dtype=float)
    clearance = config.min_stem_clearance
    iterations = 0

    for iterations in range(1, config.max_iterations + 1):
        pairs = close_pairs(points, clearance, config.tolerance)
        if len(pairs) == 0:
            iterations -= 1
            break
        for i, j in pairs:
            delta = points[j] - points[i]
            distance = math.hypot(delta[0], delta[1])
            if distance >= clearance:
                continue
            if distance < 1e-9:
                angle = pair_angle(int(i), int(j))
                direction = np.array([math.cos(angle), math.sin(angle)])
            else:
                direction = delta / distance
            push = (clearance - distance) / 2.0
            points[i] -= direction * push
            points[j] += direction * push
        points = clamp_to_bed(points, config)

    residual = max(0.0, clearance - min_pair_distance(points))
    report = LayoutReport(
        iterations=iterations,
        residual_overlap=residual,
        converged=residual <= config.tolerance,
    )
    return points, report


# =============================================================================
# ENTRY POINT
# =============================================================================


def compute_layout(
    entries: list[Entry], config: LayoutConfig | None = None
) -> tuple[list[Placement], LayoutReport]:
    """
    Place every organism-spawning entry in the garden.

    Args:
        entries: All entries; daily entries are ignored
        config: Layout parameters

    Returns:
        (placements in day then time order, convergence report)
    """
    if config is None:
        config = LayoutConfig()

    planted = [e for e in entries if e.spawns_organism]
    ids, points = initial_positions(planted, config)
    points, report = resolve_collisions(points, config)

    if report.converged:
        logger.info(
            "Placed %d organisms in %d relaxation passes", len(ids), report.iterations
        )
    else:
        logger.warning(
            "Layout left %.4f residual overlap after %d passes (%d organisms)",
            report.residual_overlap,
            report.iterations,
            len(ids),
        )

    placements = [
        Placement(entry_id=entry_id, position=(float(x), 0.0, float(z)))
        for entry_id, (x, z) in zip(ids, points)
    ]
    return placements, report
