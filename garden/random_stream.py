"""
Seeded pseudo-random streams and deterministic hashes.

Every "random" choice in the garden comes from one of two sources:

- `Stream`: a mulberry32 generator seeded from a 32-bit integer. Each
  instance owns its state; the same seed always yields the same sequence,
  so layouts and genomes are reproducible across sessions.
- Pure hash functions of an index (`index_jitter`, `pair_angle`) used where a
  sub-generator must stay reproducible without consuming stream state.
"""

import math

MASK32 = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    """32-bit integer multiply (wrapping)."""
    return (a * b) & MASK32


class Stream:
    """
    Deterministic float stream in [0, 1).

    Example:
        >>> s = Stream(42)
        >>> a = [s.next() for _ in range(3)]
        >>> Stream(42).take(3) == a
        True
    """

    __slots__ = ("_state",)

    def __init__(self, seed: int) -> None:
        self._state = int(seed) & MASK32

    def next(self) -> float:
        self._state = (self._state + 0x6D2B79F5) & MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & MASK32
        return ((t ^ (t >> 14)) & MASK32) / 4294967296.0

    def uniform(self, low: float, high: float) -> float:
        """Draw from [low, high)."""
        return low + (high - low) * self.next()

    def angle(self) -> float:
        """Draw an angle in [0, 2*pi)."""
        return self.next() * 2.0 * math.pi

    def take(self, n: int) -> list[float]:
        return [self.next() for _ in range(n)]


def seed(value: int) -> Stream:
    """Create a stream from an integer seed."""
    return Stream(value)


def string_seed(text: str) -> int:
    """
    Java-style 31-multiplier string hash, folded to a nonnegative 32-bit int.

    Used for calendar-day seeds so every entry on the same day shares the
    same day-level scatter.
    """
    h = 0
    for ch in text:
        h = ((h << 5) - h + ord(ch)) & MASK32
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def index_jitter(index: int, frequency: float = 7.3) -> float:
    """Deterministic value in [-0.5, 0.5] from an index, no stream state."""
    return math.sin(index * frequency) * 0.5


def pair_angle(i: int, j: int) -> float:
    """Deterministic direction for separating two coincident points."""
    golden = (math.sqrt(5.0) - 1.0) / 2.0
    frac = ((i + 1) * golden + (j + 1) * golden * golden) % 1.0
    return frac * 2.0 * math.pi
