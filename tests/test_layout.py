"""
Tests for the spiral-plus-scatter layout engine.
"""

import math

import numpy as np
import pytest

from garden.config import EntryKind, LayoutConfig
from garden.layout import (
    clamp_to_bed,
    compute_layout,
    day_progress,
    group_by_day,
    min_pair_distance,
    resolve_collisions,
    spiral_point,
)


def plan_points(placements) -> np.ndarray:
    return np.array([p.plan for p in placements])


class TestSpiral:
    """Tests for the base spiral."""

    def test_starts_near_center(self) -> None:
        config = LayoutConfig()
        point = spiral_point(0.0, config)
        assert np.linalg.norm(point) == pytest.approx(config.garden_radius * 0.1)

    def test_ends_near_edge(self) -> None:
        config = LayoutConfig()
        point = spiral_point(1.0, config)
        assert np.linalg.norm(point) == pytest.approx(config.garden_radius * 0.85)

    def test_radius_grows(self) -> None:
        config = LayoutConfig()
        radii = [np.linalg.norm(spiral_point(p, config)) for p in np.linspace(0, 1, 20)]
        assert all(b > a for a, b in zip(radii, radii[1:]))

    def test_day_progress_spans_unit_interval(self, month_of_entries) -> None:
        progress = day_progress(group_by_day(month_of_entries))
        assert min(progress.values()) == 0.0
        assert max(progress.values()) == 1.0

    def test_single_day_sits_mid_spiral(self, make_entry) -> None:
        progress = day_progress(group_by_day([make_entry(0.1), make_entry(0.2, entry_id="b")]))
        assert list(progress.values()) == [0.5]


class TestComputeLayout:
    """Tests for full layout computation."""

    def test_deterministic(self, month_of_entries) -> None:
        """Repeated runs give bit-identical placements."""
        first, _ = compute_layout(month_of_entries)
        second, _ = compute_layout(month_of_entries)
        assert first == second

    def test_one_placement_per_organism(self, month_of_entries, make_entry) -> None:
        daily = make_entry(3.0, -0.4, entry_id="daily", kind=EntryKind.DAILY)
        placements, _ = compute_layout(month_of_entries + [daily])
        ids = [p.entry_id for p in placements]
        assert len(ids) == len(month_of_entries)
        assert "daily" not in ids

    def test_collision_invariant(self, month_of_entries) -> None:
        """All stems end at least the minimum clearance apart."""
        config = LayoutConfig()
        placements, report = compute_layout(month_of_entries, config)
        assert report.converged
        assert min_pair_distance(plan_points(placements)) >= config.min_stem_clearance - 1e-6

    def test_inside_bed(self, month_of_entries) -> None:
        config = LayoutConfig(half_width=6.0, half_depth=5.0, min_stem_clearance=0.5)
        placements, _ = compute_layout(month_of_entries, config)
        points = plan_points(placements)
        assert np.all(np.abs(points[:, 0]) <= 6.0)
        assert np.all(np.abs(points[:, 1]) <= 5.0)

    def test_on_ground(self, month_of_entries) -> None:
        placements, _ = compute_layout(month_of_entries)
        assert all(p.position[1] == 0.0 for p in placements)

    def test_same_day_entries_cluster(self, make_entry) -> None:
        """Entries sharing a day stay within the entry scatter of each other (before relaxation)."""
        config = LayoutConfig(min_stem_clearance=0.0)
        entries = [make_entry(0.1 * k, -0.5, entry_id=f"d0_{k}") for k in range(5)]
        entries += [make_entry(20.0, -0.5, entry_id="later")]
        placements, _ = compute_layout(entries, config)
        same_day = plan_points([p for p in placements if p.entry_id.startswith("d0_")])
        spread = max(
            np.linalg.norm(a - b) for a in same_day for b in same_day
        )
        assert spread <= 2 * config.entry_scatter_radius + 1e-9

    def test_empty(self) -> None:
        placements, report = compute_layout([])
        assert placements == []
        assert report.converged


class TestResolveCollisions:
    """Tests for the relaxation pass."""

    def test_separates_coincident_points(self) -> None:
        config = LayoutConfig(min_stem_clearance=1.0)
        points, report = resolve_collisions(np.zeros((2, 2)), config)
        assert np.linalg.norm(points[0] - points[1]) == pytest.approx(1.0)
        assert report.converged

    def test_pair_pushed_symmetrically(self) -> None:
        config = LayoutConfig(min_stem_clearance=2.0)
        points, _ = resolve_collisions(np.array([[0.0, 0.0], [1.0, 0.0]]), config)
        np.testing.assert_allclose(points, [[-0.5, 0.0], [1.5, 0.0]])

    def test_already_clear_untouched(self) -> None:
        start = np.array([[0.0, 0.0], [5.0, 0.0], [0.0, 5.0]])
        points, report = resolve_collisions(start, LayoutConfig())
        np.testing.assert_array_equal(points, start)
        assert report.iterations == 0

    def test_crowded_bed_terminates_with_residual(self) -> None:
        """More stems than the bed can hold ends with reported overlap."""
        config = LayoutConfig(half_width=1.0, half_depth=1.0, min_stem_clearance=2.0, max_iterations=50)
        start = np.array([[0.1 * i, 0.05 * i] for i in range(20)])
        points, report = resolve_collisions(start, config)
        assert report.iterations == 50
        assert not report.converged
        assert report.residual_overlap > 0
        assert np.all(np.abs(points) <= 1.0)

    def test_many_same_day_entries(self, make_entry) -> None:
        """A hundred entries on one day still resolve within the iteration cap."""
        entries = [make_entry(0.001 * k, -0.5, entry_id=f"burst{k}") for k in range(100)]
        config = LayoutConfig(min_stem_clearance=1.0)
        placements, report = compute_layout(entries, config)
        assert len(placements) == 100
        assert report.residual_overlap < config.min_stem_clearance * 0.5

    def test_clamp_to_bed(self) -> None:
        config = LayoutConfig(half_width=2.0, half_depth=1.0)
        clamped = clamp_to_bed(np.array([[5.0, -3.0], [0.5, 0.5]]), config)
        np.testing.assert_array_equal(clamped, [[2.0, -1.0], [0.5, 0.5]])


def test_spiral_angle_follows_rotations() -> None:
    """Half-way along a 2-turn spiral points back along +x."""
    config = LayoutConfig(spiral_rotations=2.0)
    point = spiral_point(0.5, config)
    assert math.atan2(point[1], point[0]) == pytest.approx(0.0, abs=1e-9)
