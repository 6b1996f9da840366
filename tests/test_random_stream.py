"""
Tests for seeded random streams and deterministic hashes.

Reproducibility is the whole point: the same seed must give the same
sequence in every session, or layouts and genomes shift between runs.
"""

import math

from garden.random_stream import Stream, index_jitter, pair_angle, seed, string_seed


class TestStream:
    """Tests for the mulberry32 stream."""

    def test_same_seed_same_sequence(self) -> None:
        """Two streams from one seed agree value for value."""
        assert Stream(1234).take(50) == Stream(1234).take(50)

    def test_different_seeds_differ(self) -> None:
        """Neighbouring seeds give different sequences."""
        assert Stream(1).take(5) != Stream(2).take(5)

    def test_values_in_unit_interval(self) -> None:
        """Every draw lies in [0, 1)."""
        for value in Stream(99).take(2000):
            assert 0.0 <= value < 1.0

    def test_instances_are_independent(self) -> None:
        """Drawing from one stream does not disturb another."""
        a, b = Stream(7), Stream(7)
        a.take(10)
        assert b.next() == Stream(7).next()

    def test_seed_wraps_to_32_bits(self) -> None:
        """Seeds are taken modulo 2**32."""
        assert Stream(5).take(3) == Stream(5 + 2**32).take(3)

    def test_roughly_uniform(self) -> None:
        """Mean of many draws is close to one half."""
        values = Stream(2024).take(5000)
        assert abs(sum(values) / len(values) - 0.5) < 0.02

    def test_uniform_range(self) -> None:
        """uniform(low, high) stays in range."""
        s = Stream(3)
        for _ in range(200):
            assert 0.1 <= s.uniform(0.1, 0.5) < 0.5

    def test_angle_range(self) -> None:
        """Angles lie in [0, 2*pi)."""
        s = seed(11)
        for _ in range(200):
            assert 0.0 <= s.angle() < 2 * math.pi


class TestHashes:
    """Tests for stream-free deterministic functions."""

    def test_string_seed_stable(self) -> None:
        """String hashes are stable and nonnegative."""
        assert string_seed("2024-03-01") == string_seed("2024-03-01")
        assert string_seed("2024-03-01") != string_seed("2024-03-02")
        assert string_seed("2024-03-01") >= 0

    def test_string_seed_known_value(self) -> None:
        """Matches the 31-multiplier hash: 'ab' = 97 * 31 + 98."""
        assert string_seed("ab") == 97 * 31 + 98
        assert string_seed("") == 0

    def test_index_jitter_bounded(self) -> None:
        """Jitter lies in [-0.5, 0.5] and depends only on the index."""
        for i in range(100):
            assert -0.5 <= index_jitter(i) <= 0.5
            assert index_jitter(i) == index_jitter(i)
        assert index_jitter(0) == 0.0

    def test_pair_angle_deterministic(self) -> None:
        """Separation directions are reproducible and vary between pairs."""
        assert pair_angle(3, 8) == pair_angle(3, 8)
        assert pair_angle(3, 8) != pair_angle(4, 8)
        assert 0.0 <= pair_angle(3, 8) < 2 * math.pi
