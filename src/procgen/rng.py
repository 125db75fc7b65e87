"""Deterministic pseudo-random stream (xorshift64*).

Every stochastic decision in the generator draws from one of these streams,
so a fixed seed reproduces a run exactly. ``numpy.random`` is deliberately
not used for decisions: its streams are not stable across numpy releases.
"""

from typing import Sequence, TypeVar

T = TypeVar("T")

MASK64 = 0xFFFFFFFFFFFFFFFF
SEED_SCRAMBLE = 0x5DEECE66D
MULTIPLIER = 0x2545F4914F6CDD1D


class RandomGenerator:
    """Seeded xorshift64* generator.

    ``next_int`` reduces by modulo and is slightly biased for ranges that are
    not powers of two. That bias is part of the reproducible output.
    """

    def __init__(self, seed: int):
        self.set_seed(seed)

    @property
    def seed(self) -> int:
        """Seed the stream was created with (masked to 64 bits)."""
        return self._seed

    def set_seed(self, seed: int) -> None:
        """Restart the stream from a new seed."""
        self._seed = seed & MASK64
        state = self._seed ^ SEED_SCRAMBLE
        # A zero state is a fixed point of xorshift
        self._state = state if state else SEED_SCRAMBLE

    def next_u64(self) -> int:
        """Next raw 64-bit value."""
        s = self._state
        s ^= s >> 12
        s ^= (s << 25) & MASK64
        s ^= s >> 27
        self._state = s
        return (s * MULTIPLIER) & MASK64

    def next_int(self, max_value: int) -> int:
        """Integer in [0, max_value), or 0 when max_value is 0."""
        if max_value <= 0:
            return 0
        return self.next_u64() % max_value

    def next_int_range(self, min_value: int, max_value: int) -> int:
        """Integer in [min_value, max_value] inclusive."""
        if min_value >= max_value:
            return min_value
        return min_value + self.next_u64() % (max_value - min_value + 1)

    def next_float(self) -> float:
        """Float in [0, 1) from the low 32 bits."""
        return (self.next_u64() & 0xFFFFFFFF) / 4294967296.0

    def next_float_range(self, min_value: float, max_value: float) -> float:
        return min_value + self.next_float() * (max_value - min_value)

    def next_bool(self, probability: float = 0.5) -> bool:
        return self.next_float() < probability

    def next_point_in_unit_circle(self) -> tuple[float, float]:
        """Uniform point in the unit disc by rejection sampling."""
        while True:
            x = self.next_float_range(-1.0, 1.0)
            y = self.next_float_range(-1.0, 1.0)
            if x * x + y * y <= 1.0:
                return x, y

    def choice(self, items: Sequence[T]) -> T:
        """Pick one element. The sequence must not be empty."""
        return items[self.next_int(len(items))]
