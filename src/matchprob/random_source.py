"""Seedable linear congruential generator used by every sampler."""

from __future__ import annotations

_MULTIPLIER = 1664525
_INCREMENT = 1013904223
_MODULUS = 2**32


class SeededRandom:
    """Deterministic uniform source on ``[0, 1)``.

    The state is a single 32-bit integer advanced by
    ``s = (s * 1664525 + 1013904223) mod 2**32``.  Integer arithmetic keeps
    the sequence bit-exact across platforms; any integer seed is accepted and
    reduced modulo ``2**32``.
    """

    __slots__ = ("_state",)

    def __init__(self, seed: int = 0) -> None:
        self._state = 0
        self.reseed(seed)

    @property
    def state(self) -> int:
        return self._state

    def reseed(self, seed: int) -> None:
        self._state = int(seed) % _MODULUS

    def next(self) -> float:
        self._state = (self._state * _MULTIPLIER + _INCREMENT) % _MODULUS
        return self._state / _MODULUS

    def range(self, minimum: float, maximum: float) -> float:
        return minimum + self.next() * (maximum - minimum)

    def __repr__(self) -> str:
        return f"SeededRandom(state={self._state})"


__all__ = ["SeededRandom"]
