"""Poisson sampling and density evaluation with an owned cache."""

from __future__ import annotations

import collections
import logging
import math
from typing import Dict, Tuple

from .random_source import SeededRandom

logger = logging.getLogger(__name__)

# Beyond these the direct formula risks overflow in ``lam ** k`` or ``k!``.
_DIRECT_LIMIT = 50
_TWO_PI = 2.0 * math.pi


def _python_factorial(n: int) -> float:
    result = 1.0
    for value in range(2, n + 1):
        result *= value
    return result


class PoissonCache:
    """Factorial and density lookup tables owned by one :class:`PoissonEngine`.

    Densities are keyed by ``(round(lam, precision), k)``.  The value stored
    under a key is computed from the exact rate of the first call that misses,
    so rates sharing a key may differ by up to half a unit in the last kept
    decimal.  When ``max_entries`` is set the oldest densities are evicted
    first; the factorial table is bounded by the direct-formula limit and
    never evicted.
    """

    def __init__(self, precision: int = 3, max_entries: int | None = None) -> None:
        if precision < 0:
            raise ValueError("precision must be non-negative")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive when provided")
        self.precision = precision
        self.max_entries = max_entries
        self._factorials: Dict[int, float] = {}
        self._densities: collections.OrderedDict[Tuple[float, int], float] = (
            collections.OrderedDict()
        )
        self.hits = 0
        self.misses = 0

    def key(self, lam: float, k: int) -> Tuple[float, int]:
        return (round(lam, self.precision), k)

    def factorial(self, n: int) -> float:
        if n <= 1:
            return 1.0
        cached = self._factorials.get(n)
        if cached is None:
            cached = _python_factorial(n)
            self._factorials[n] = cached
        return cached

    def get(self, key: Tuple[float, int]) -> float | None:
        value = self._densities.get(key)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def put(self, key: Tuple[float, int], value: float) -> None:
        self._densities[key] = value
        if self.max_entries is not None:
            while len(self._densities) > self.max_entries:
                self._densities.popitem(last=False)

    def clear(self) -> None:
        self._factorials.clear()
        self._densities.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._densities)

    @property
    def factorial_entries(self) -> int:
        return len(self._factorials)


class PoissonEngine:
    """Draws Poisson counts and evaluates Poisson probabilities.

    Parameters
    ----------
    rng:
        Uniform source consumed by :meth:`sample`.  A fresh seeded source is
        created when omitted.
    normal_threshold:
        Rates strictly above this are sampled with a Box-Muller normal
        approximation instead of Knuth's multiplicative algorithm.
    precision, max_entries:
        Forwarded to the engine's :class:`PoissonCache`.

    The engine mutates its random source and cache in place, so one instance
    must not be shared between concurrent callers.
    """

    def __init__(
        self,
        rng: SeededRandom | None = None,
        *,
        normal_threshold: float = 30.0,
        precision: int = 3,
        max_entries: int | None = None,
    ) -> None:
        self.rng = rng if rng is not None else SeededRandom()
        self.normal_threshold = normal_threshold
        self.cache = PoissonCache(precision=precision, max_entries=max_entries)

    # -- sampling -----------------------------------------------------------

    def sample(self, lam: float) -> int:
        if lam <= 0.0:
            return 0
        if lam > self.normal_threshold:
            return max(0, int(round(self._normal_approximation(lam))))

        limit = math.exp(-lam)
        k = 0
        p = 1.0
        while True:
            k += 1
            p *= self.rng.next()
            if p <= limit:
                break
        return k - 1

    def _normal_approximation(self, lam: float) -> float:
        # 1 - u keeps the logarithm argument inside (0, 1].
        u1 = 1.0 - self.rng.next()
        u2 = self.rng.next()
        z = math.sqrt(-2.0 * math.log(u1)) * math.cos(_TWO_PI * u2)
        return lam + math.sqrt(lam) * z

    # -- densities ----------------------------------------------------------

    def density(self, lam: float, k: int) -> float:
        if k < 0:
            return 0.0
        if lam <= 0.0:
            return 1.0 if k == 0 else 0.0
        if k == 0:
            return math.exp(-lam)

        key = self.cache.key(lam, k)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        if k > _DIRECT_LIMIT or lam > _DIRECT_LIMIT:
            value = self._stirling_density(lam, k)
        else:
            value = (lam**k) * math.exp(-lam) / self.cache.factorial(k)
        value = min(1.0, max(0.0, value))
        self.cache.put(key, value)
        return value

    @staticmethod
    def _stirling_density(lam: float, k: int) -> float:
        log_factorial = k * math.log(k) - k + 0.5 * math.log(_TWO_PI * k)
        return math.exp(k * math.log(lam) - lam - log_factorial)

    def clear_cache(self) -> None:
        logger.debug(
            "Clearing Poisson cache (%d densities, %d factorials)",
            len(self.cache),
            self.cache.factorial_entries,
        )
        self.cache.clear()


__all__ = ["PoissonCache", "PoissonEngine"]
