"""Shared fixtures for garden tests."""

from datetime import datetime, timedelta, timezone

import pytest

from garden.config import Entry, EntryKind, OrganismType

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
START = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def entry_at(
    days: float,
    intensity: float = -0.5,
    organism_type: OrganismType | None = None,
    entry_id: str | None = None,
    kind: EntryKind = EntryKind.MOMENTARY,
    origin: datetime = EPOCH,
) -> Entry:
    """Entry `days` after origin; organism type follows the intensity sign."""
    if organism_type is None:
        if intensity < 0:
            organism_type = OrganismType.BLOOM
        elif intensity > 0:
            organism_type = OrganismType.REMNANT
        else:
            organism_type = OrganismType.SPROUT
    return Entry(
        id=entry_id or f"e{days:g}_{intensity:g}",
        timestamp=origin + timedelta(days=days),
        intensity=intensity,
        organism_type=organism_type,
        primary_color="#4A90D9",
        secondary_colors=("#7B68EE",),
        accent_colors=("#228B22", "#8FBC8F"),
        kind=kind,
    )


@pytest.fixture
def make_entry():
    """Factory for entries on the epoch clock (day 0 = 1970-01-01)."""
    return entry_at


@pytest.fixture
def month_of_entries() -> list[Entry]:
    """Forty-five entries over a month: one to three per day, mixed polarity."""
    entries = []
    intensities = [-0.9, -0.4, 0.0, 0.3, 0.8, -0.6, 0.5, -0.2]
    n = 0
    for day in range(30):
        for k in range(1 + (day % 3 == 0) + (day % 7 == 0)):
            v = intensities[n % len(intensities)]
            entries.append(
                entry_at(day + 0.3 * k + 0.1, v, entry_id=f"m{n}", origin=START)
            )
            n += 1
    return entries
