# slot_engine/infrastructure/rng/strategies/mersenne_rng.py
import random
from typing import Optional

from .rng_strategy import RNGStrategy


class MersenneTwisterRNG(RNGStrategy):
    """
    Strategy backed by a private ``random.Random`` (Mersenne Twister).

    Not safe for concurrent draws; machines shared between worker threads
    wrap it in ThreadLocalRNG.
    """
    def __init__(self, seed_value: Optional[int] = None):
        self._random = random.Random(seed_value)

    def _below(self, n: int) -> int:
        return self._random.randrange(n)

    def get_random_fraction(self) -> float:
        return self._random.random()

    def seed(self, seed_value: Optional[int]) -> None:
        self._random.seed(seed_value)
