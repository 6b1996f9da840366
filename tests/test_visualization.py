"""
Smoke tests for matplotlib previews.
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt

from garden.pipeline import Garden
from garden.visualization import (
    organism_footprint,
    plot_frame,
    plot_garden_level,
    primary_color,
    save_garden,
)


class TestPreview:
    """Tests for plan-view and timeline plots."""

    def test_plot_frame(self, month_of_entries) -> None:
        garden = Garden(month_of_entries)
        t = month_of_entries[-1].time
        fig, ax = plot_frame(garden, garden.frame(t))
        assert len(ax.patches) > 1
        plt.close(fig)

    def test_footprints_near_placement(self, month_of_entries) -> None:
        garden = Garden(month_of_entries)
        frame = garden.frame(month_of_entries[-1].time + 1.0)
        for item in frame.items:
            shape = organism_footprint(garden, item)
            x, z = item.placement.plan
            assert not shape.is_empty
            assert abs(shape.centroid.x - x) < 6.0
            assert abs(shape.centroid.y - z) < 6.0
            assert primary_color(item).startswith("#")

    def test_plot_garden_level(self, month_of_entries) -> None:
        garden = Garden(month_of_entries)
        fig, ax = plot_garden_level(garden, samples=50)
        assert len(ax.lines) >= 1
        plt.close(fig)

    def test_save_garden(self, month_of_entries, tmp_path, capsys) -> None:
        garden = Garden(month_of_entries)
        path = tmp_path / "garden.png"
        save_garden(str(path), garden, month_of_entries[-1].time, dpi=40)
        assert path.exists()
        assert "Saved to" in capsys.readouterr().out
