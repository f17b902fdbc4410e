from __future__ import annotations

import math
import random
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


class SeededRng:
    """Seeded RNG wrapper with explicit sampling primitives.

    ``shuffle`` is a Fisher-Yates pass and ``sample`` is a partial Fisher-Yates
    pass, so every ordering/subset is equally likely and a fixed seed always
    yields the same stream.
    """

    def __init__(self, seed: int) -> None:
        self._rng = random.Random(int(seed))

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def choice(self, seq: Sequence[T]) -> T:
        if not seq:
            raise ValueError("cannot choose from an empty sequence")
        return seq[self.randint(0, len(seq) - 1)]

    def shuffle(self, seq: Sequence[T]) -> list[T]:
        """Return a uniformly shuffled copy of ``seq``."""

        out = list(seq)
        for i in range(len(out) - 1, 0, -1):
            j = self.randint(0, i)
            out[i], out[j] = out[j], out[i]
        return out

    def sample(self, seq: Sequence[T], k: int) -> list[T]:
        """Draw ``k`` items uniformly without replacement, in draw order."""

        if not (0 <= k <= len(seq)):
            raise ValueError("sample size must be in [0, len(seq)]")
        pool = list(seq)
        n = len(pool)
        for i in range(k):
            j = self.randint(i, n - 1)
            pool[i], pool[j] = pool[j], pool[i]
        return pool[:k]


def new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def round_half_up(x: float) -> int:
    # Matches the 0.5-rounds-up behavior players expect for percentages.
    return int(math.floor(x + 0.5))
