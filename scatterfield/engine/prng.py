"""PCG32 pseudorandom number generator.

Implements the PCG-XSH-RR variant (32-bit output, 64-bit state).
Reference: https://www.pcg-random.org/

Every random draw made by the engine goes through a ``PCG32`` instance that
the caller creates and passes down, so two runs with the same seed consume
identical streams. Map generation uses sequence 0 of a seed and token
generation uses sequence 1.
"""

from __future__ import annotations

import random

SEED_LIMIT = 2**32

MAP_STREAM = 0
TOKEN_STREAM = 1


def random_seed() -> int:
    """Draw a fresh seed uniformly from [0, 2**32)."""
    return random.randint(0, SEED_LIMIT - 1)


def check_seed(seed: int) -> int:
    """Return ``seed`` if it is a valid 32-bit unsigned integer.

    Raises ValueError otherwise.
    """
    if isinstance(seed, bool) or not isinstance(seed, int):
        raise ValueError(f"Seed must be an integer, got {seed!r}")
    if not 0 <= seed < SEED_LIMIT:
        raise ValueError(f"Seed must be in [0, 2**32), got {seed}")
    return seed


class PCG32:
    _MASK32 = 0xFFFFFFFF
    _MASK64 = 0xFFFFFFFFFFFFFFFF
    _MUL = 6364136223846793005

    def __init__(self, seed: int, seq: int = 0) -> None:
        self._state: int = 0
        self._inc: int = ((seq << 1) | 1) & self._MASK64
        self._advance()
        self._state = (self._state + seed) & self._MASK64
        self._advance()

    def _advance(self) -> None:
        self._state = (self._state * self._MUL + self._inc) & self._MASK64

    def next_u32(self) -> int:
        old = self._state
        self._advance()
        xorshifted = (((old >> 18) ^ old) >> 27) & self._MASK32
        rot = (old >> 59) & 31
        return (
            (xorshifted >> rot) | (xorshifted << ((-rot) & 31))
        ) & self._MASK32

    def next_float(self) -> float:
        """Uniform float in [0, 1)."""
        return self.next_u32() / (self._MASK32 + 1)

    def next_int(self, lo: int, hi: int) -> int:
        """Uniform integer in [lo, hi] inclusive."""
        return lo + self.next_u32() % (hi - lo + 1)

    def next_index(self, n: int) -> int:
        """Uniform index in [0, n), drawn from a single float."""
        return int(self.next_float() * n)
