"""
Load pipeline and per-frame evaluation.

`Garden` does the load-time work once (percentiles, layout, genomes) and
then answers frames: given a clock time it computes the garden level once,
evaluates visibility and growth for every organism in one vectorized pass,
and returns what the renderer needs for each visible organism.
"""

import logging
from dataclasses import dataclass

import numpy as np

from garden import growth, lifecycle
from garden.config import Entry, GardenConfig, OrganismType
from garden.genome import Genome, GenomeCache
from garden.growth import GrowthState
from garden.layout import Placement, compute_layout
from garden.percentile import PercentileRecord, calculate_percentiles
from garden.shapes import Geometry, GeometryCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderItem:
    """Everything the renderer needs to draw one visible organism."""

    entry_id: str
    organism_type: OrganismType
    placement: Placement
    genome: Genome
    scale: float
    opacity: float
    growth: GrowthState


@dataclass(frozen=True)
class Frame:
    """One evaluated clock time."""

    time: float
    garden_level: float
    items: list[RenderItem]
    fast_scrub: bool

    def __len__(self) -> int:
        return len(self.items)

    def ids(self) -> list[str]:
        return [item.entry_id for item in self.items]


class Garden:
    """
    A loaded garden: immutable entries plus their cached derived data.

    Args:
        entries: All entries from the data pipeline (ids must be unique)
        config: Engine configuration

    Raises:
        ValueError: if two entries share an id
    """

    def __init__(self, entries: list[Entry], config: GardenConfig | None = None) -> None:
        self.config = config if config is not None else GardenConfig.default()
        self.entries = list(entries)
        self._by_id: dict[str, Entry] = {}
        for entry in self.entries:
            if entry.id in self._by_id:
                raise ValueError(f"Duplicate entry id {entry.id!r}")
            self._by_id[entry.id] = entry

        self.percentiles: dict[str, PercentileRecord] = calculate_percentiles(
            self.entries, self.config.scale
        )
        placements, self.layout_report = compute_layout(self.entries, self.config.layout)
        self.placements: dict[str, Placement] = {p.entry_id: p for p in placements}

        self.genomes = GenomeCache()
        self.geometry = GeometryCache()
        self.organisms: list[Entry] = [e for e in self.entries if e.spawns_organism]
        for entry in self.organisms:
            self.genomes.get(entry, self.percentiles[entry.id])

        # Frame-invariant columns for the vectorized evaluation
        self._times = np.array([e.time for e in self.entries], dtype=np.float64)
        self._intensities = np.array([e.intensity for e in self.entries])
        self._organism_times = np.array([e.time for e in self.organisms], dtype=np.float64)
        self._organism_intensities = np.array([e.intensity for e in self.organisms])
        self._polarities = np.array([e.organism_type.favored_polarity for e in self.organisms])

        logger.info(
            "Loaded garden: %d entries, %d organisms, %d genomes",
            len(self.entries),
            len(self.organisms),
            len(self.genomes),
        )

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, entry_id: str) -> bool:
        return entry_id in self._by_id

    def entry(self, entry_id: str) -> Entry:
        """Look up an entry; raises KeyError for unknown ids."""
        return self._by_id[entry_id]

    def placement(self, entry_id: str) -> Placement:
        return self.placements[entry_id]

    def genome(self, entry_id: str) -> Genome:
        entry = self._by_id[entry_id]
        if not entry.spawns_organism:
            raise KeyError(entry_id)
        return self.genomes.get(entry, self.percentiles[entry_id])

    def geometry_for(self, entry_id: str) -> Geometry:
        """Mesh data for an organism, shared between equal shapes."""
        return self.geometry.get(self.genome(entry_id))

    def time_span(self) -> tuple[float, float]:
        """First and last entry time in clock days."""
        if not self.entries:
            return 0.0, 0.0
        return float(self._times.min()), float(self._times.max())

    # =========================================================================
    # PER-FRAME EVALUATION
    # =========================================================================

    def garden_level(self, t: float) -> float:
        if not self.entries:
            return 0.0
        level = lifecycle.garden_level_batch(
            t - self._times, self._intensities, self.config.lifecycle
        )
        return float(level)

    def visibility(self, entry_id: str, t: float, clock_rate: float = 0.0) -> lifecycle.VisibilityState:
        entry = self._by_id[entry_id]
        return lifecycle.visibility_state(
            entry,
            t,
            self.garden_level(t),
            self.config.lifecycle,
            self.config.animation,
            clock_rate,
        )

    def frame(self, t: float, clock_rate: float = 0.0) -> Frame:
        """
        Evaluate every organism at clock time t.

        Args:
            t: Clock time in days since the epoch
            clock_rate: Clock days advanced per real second (for fast-scrub)

        Returns:
            Frame with a RenderItem for each organism whose opacity is > 0
        """
        level = self.garden_level(t)
        fast = growth.is_fast_scrub(clock_rate, self.config.animation)
        if not self.organisms:
            return Frame(time=t, garden_level=level, items=[], fast_scrub=fast)

        ages = t - self._organism_times
        opacity, _ = lifecycle.visibility_batch(
            ages, self._organism_intensities, self._polarities, level, self.config.lifecycle
        )
        states = growth.growth_batch(ages, self.config.animation, clock_rate)

        opacity = np.asarray(opacity)
        columns = [np.asarray(c) for c in states]
        items = []
        for index in np.flatnonzero(opacity > 0.0):
            entry = self.organisms[index]
            record = self.percentiles[entry.id]
            items.append(
                RenderItem(
                    entry_id=entry.id,
                    organism_type=entry.organism_type,
                    placement=self.placements[entry.id],
                    genome=self.genomes.get(entry, record),
                    scale=record.scale,
                    opacity=float(opacity[index]),
                    growth=GrowthState(*(float(c[index]) for c in columns)),
                )
            )
        return Frame(time=t, garden_level=level, items=items, fast_scrub=fast)
