from __future__ import annotations

import math
import random
import string
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")

_ID_ALPHABET = string.ascii_letters + string.digits


class SeededRng:
    """Seeded RNG wrapper to keep every random draw of a session explicit.

    Placement, shuffles and catch assignment all pull from an instance of this
    class, so a session is reproducible from its seed.
    """

    def __init__(self, seed: int) -> None:
        self._seed = int(seed)
        self._rng = random.Random(self._seed)

    @property
    def seed(self) -> int:
        return self._seed

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def choice(self, seq: Sequence[T]) -> T:
        return self._rng.choice(seq)

    def uniform(self, a: float, b: float) -> float:
        return self._rng.uniform(a, b)

    def random(self) -> float:
        return self._rng.random()

    def sample_without_replacement(self, population: Sequence[T], k: int) -> list[T]:
        """Return ``k`` distinct elements of ``population`` in random order.

        Callers clamp ``k`` themselves; asking for more than the population
        holds is a programming error.
        """

        k = int(k)
        if k < 0:
            raise ValueError("k must be >= 0")
        if k > len(population):
            raise ValueError(f"cannot sample {k} from a population of {len(population)}")
        return list(self._rng.sample(list(population), k))

    def shuffle(self, seq: Sequence[T]) -> list[T]:
        out = list(seq)
        self._rng.shuffle(out)
        return out

    def heading(self) -> float:
        """Uniform direction in radians."""

        return self._rng.random() * 2.0 * math.pi

    def random_id(self, length: int = 4) -> str:
        if length <= 0:
            raise ValueError("length must be > 0")
        return "".join(self._rng.choice(_ID_ALPHABET) for _ in range(length))


def new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def round_half_up(x: float) -> int:
    # Matches browser Math.round for the non-negative counts used here.
    return int(math.floor(x + 0.5))
