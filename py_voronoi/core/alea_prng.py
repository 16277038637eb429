"""
Alea pseudo-random generator used to place seeds and pick their colors.

Based on Johannes Baagøe's Alea algorithm. A string seed always yields the
same sequence, so a diagram can be rebuilt exactly from its seed string.
"""

from typing import Sequence, TypeVar

T = TypeVar("T")

_TWO_POW_32 = 0x100000000
_TWO_POW_NEG_32 = 2.3283064365386963e-10


def _uint32(n):
    return int(n) & 0xFFFFFFFF


class _Mash:
    """Hash that turns arbitrary seed values into floats in [0, 1)."""

    def __init__(self):
        self.n = 0xEFC8249D

    def __call__(self, data) -> float:
        for char in str(data):
            self.n += ord(char)
            h = 0.02519603282416938 * self.n
            self.n = _uint32(h)
            h -= self.n
            h *= self.n
            self.n = _uint32(h)
            h -= self.n
            self.n += h * _TWO_POW_32
        return _uint32(self.n) * _TWO_POW_NEG_32


class AleaPRNG:
    """
    Deterministic random source seeded by a string (or a sequence of values).

    Exposes the small surface the tessellation engine draws from:
    ``random()``, ``randint(n)`` and ``choice(seq)``.
    """

    def __init__(self, seed):
        self.seed = seed
        self.call_count = 0

        if hasattr(seed, "__iter__") and not isinstance(seed, str):
            args = list(seed)
        else:
            args = [seed]

        mash = _Mash()
        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        for arg in args:
            self.s0 = (self.s0 - mash(arg)) % 1.0
            self.s1 = (self.s1 - mash(arg)) % 1.0
            self.s2 = (self.s2 - mash(arg)) % 1.0

    def random(self) -> float:
        """Next float in [0, 1)."""
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * _TWO_POW_NEG_32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def randint(self, n: int) -> int:
        """Uniform integer in ``0..n-1``."""
        if n <= 0:
            raise ValueError(f"randint() upper bound must be positive, got {n}")
        return int(self.random() * n)

    def choice(self, seq: Sequence[T]) -> T:
        """Choose a random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[self.randint(len(seq))]

    def __repr__(self):
        return f"AleaPRNG(seed={self.seed!r}, calls={self.call_count})"
