# slot_engine/infrastructure/rng/strategies/numpy_rng.py
from typing import Any, List, Optional, Sequence

import numpy as np

from .rng_strategy import RNGStrategy


class NumpyRNG(RNGStrategy):
    """
    Strategy backed by a private ``numpy.random.RandomState``.

    Batch draws and shuffles are vectorised, which is what makes it the
    faster choice for long RTP simulations.
    """
    def __init__(self, seed_value: Optional[int] = None):
        self._state = np.random.RandomState(seed_value)

    def _below(self, n: int) -> int:
        return int(self._state.randint(n))

    def get_random_fraction(self) -> float:
        return float(self._state.random_sample())

    def seed(self, seed_value: Optional[int]) -> None:
        self._state = np.random.RandomState(seed_value)

    def get_batch_ints(self, min_val: int, max_val: int, count: int) -> List[int]:
        # randint's upper bound is exclusive
        return self._state.randint(min_val, max_val + 1, size=count).tolist()

    def shuffle(self, items: Sequence[Any]) -> List[Any]:
        # Permute indices so symbol objects are returned as-is, not as numpy scalars
        return [items[i] for i in self._state.permutation(len(items))]
