from __future__ import annotations

from track_rover.rng import mulberry32


def test_same_seed_same_stream() -> None:
    a = mulberry32(69420)
    b = mulberry32(69420)
    assert [a() for _ in range(1000)] == [b() for _ in range(1000)]


def test_values_in_unit_interval() -> None:
    rand = mulberry32(12345)
    values = [rand() for _ in range(5000)]
    assert all(0.0 <= v < 1.0 for v in values)
    # Not a constant stream
    assert len(set(values)) > 4900


def test_different_seeds_diverge() -> None:
    a = mulberry32(1)
    b = mulberry32(2)
    assert [a() for _ in range(10)] != [b() for _ in range(10)]


def test_seed_truncated_to_32_bits() -> None:
    a = mulberry32(7)
    b = mulberry32(7 + 2**32)
    assert [a() for _ in range(10)] == [b() for _ in range(10)]


def test_uniform_bounds() -> None:
    rand = mulberry32(3)
    for _ in range(1000):
        v = rand.uniform(12.0, 20.0)
        assert 12.0 <= v < 20.0
