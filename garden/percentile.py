"""
Percentile-based scale calibration.

Raw intensities cluster (many entries sit around |v| = 0.5-0.7), so a linear
|v| -> scale mapping makes most organisms the same size. Instead each entry
is ranked by |intensity| within its organism type:

    percentile = 100 * rank / (N - 1)        (rank 0-indexed, ascending)
    scale      = min + (percentile / 100) ** k * (max - min)

Single-element groups get percentile 50. The configured fixed type (Sprouts
by default) always gets 50. Daily entries spawn nothing and also get 50.
Ties keep input order (stable sort).
"""

import logging
from collections import defaultdict
from typing import NamedTuple

from garden.config import Entry, OrganismType, ScaleConfig

logger = logging.getLogger(__name__)

MIDDLE_PERCENTILE = 50.0


class PercentileRecord(NamedTuple):
    """Rank-derived size of one entry."""

    entry_id: str
    percentile: float  # 0-100
    scale: float


def percentile_to_scale(
    percentile: float, low: float, high: float, exponent: float = 1.0
) -> float:
    """Map a percentile in [0, 100] into [low, high]."""
    fraction = min(max(percentile / 100.0, 0.0), 1.0)
    return low + (fraction**exponent) * (high - low)


def rank_percentiles(intensities: list[float]) -> list[float]:
    """
    Percentile of each value's |magnitude| within the list, in input order.

    Returns:
        A permutation of {0, 100/(N-1), ..., 100}, or [50] for N = 1.
    """
    n = len(intensities)
    if n == 0:
        return []
    if n == 1:
        return [MIDDLE_PERCENTILE]
    order = sorted(range(n), key=lambda i: abs(intensities[i]))
    percentiles = [0.0] * n
    for rank, index in enumerate(order):
        percentiles[index] = 100.0 * rank / (n - 1)
    return percentiles


def calculate_percentiles(
    entries: list[Entry], config: ScaleConfig | None = None
) -> dict[str, PercentileRecord]:
    """
    Calibrate every entry's scale. Call once at load time.

    Args:
        entries: All entries (order breaks ties)
        config: Scale ranges and curve exponent

    Returns:
        Mapping of entry id -> PercentileRecord
    """
    if config is None:
        config = ScaleConfig()

    groups: dict[OrganismType, list[Entry]] = defaultdict(list)
    records: dict[str, PercentileRecord] = {}

    for entry in entries:
        if entry.spawns_organism and entry.organism_type is not config.fixed_type:
            groups[entry.organism_type].append(entry)
        else:
            records[entry.id] = _make_record(entry, MIDDLE_PERCENTILE, config)

    for organism_type, group in groups.items():
        percentiles = rank_percentiles([e.intensity for e in group])
        for entry, percentile in zip(group, percentiles):
            records[entry.id] = _make_record(entry, percentile, config)

    logger.info(
        "Calibrated %d entries: %s",
        len(records),
        ", ".join(f"{len(g)} {t.value}" for t, g in sorted(groups.items())),
    )
    return records


def _make_record(entry: Entry, percentile: float, config: ScaleConfig) -> PercentileRecord:
    scale_range = config.range_for(entry.organism_type)
    scale = percentile_to_scale(percentile, scale_range.min, scale_range.max, config.exponent)
    return PercentileRecord(entry_id=entry.id, percentile=percentile, scale=scale)
