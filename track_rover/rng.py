"""
Deterministic pseudo-random generator used for track generation.

A Mulberry32 stream: one 32-bit integer of state, one float in [0, 1) per
call. The same seed always yields the same sequence, so a whole track can be
rebuilt from a single integer.
"""

from __future__ import annotations

_MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


class Mulberry32:
    """Seeded generator returning floats in [0, 1)."""

    def __init__(self, seed: int) -> None:
        self._state = int(seed) & _MASK32

    def __call__(self) -> float:
        self._state = (self._state + _INCREMENT) & _MASK32
        a = self._state
        t = ((a ^ (a >> 15)) * (a | 1)) & _MASK32
        t = ((t + (((t ^ (t >> 7)) * (t | 61)) & _MASK32)) & _MASK32) ^ t
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_POW_32

    def uniform(self, low: float, high: float) -> float:
        """Float in [low, high) drawn from the stream."""
        return low + self() * (high - low)


def mulberry32(seed: int) -> Mulberry32:
    """Create a generator for `seed` (truncated to 32 bits)."""
    return Mulberry32(seed)
