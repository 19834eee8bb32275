# slot_engine/infrastructure/rng/strategies/rng_strategy.py
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence


class RNGStrategy(ABC):
    """
    Base class for the random sources a machine draws from.

    A concrete strategy supplies two primitives, ``_below(n)`` and
    ``get_random_fraction()``, plus ``seed``. Everything the engine asks for
    (inclusive integer ranges, weighted element picks, reel order
    permutations) is derived from them here, so every strategy consumes its
    generator the same way for the same call sequence.
    """

    @abstractmethod
    def _below(self, n: int) -> int:
        """Uniform integer in [0, n); ``n`` is at least 1."""

    @abstractmethod
    def get_random_fraction(self) -> float:
        """Uniform float in [0.0, 1.0), never 1.0."""

    @abstractmethod
    def seed(self, seed_value: Optional[int]) -> None:
        """Reset the generator; None reseeds from system entropy."""

    def get_random_int(self, min_val: int, max_val: int) -> int:
        """
        Get a random integer in the range [min_val, max_val].

        Raises:
            ValueError: If max_val < min_val
        """
        if max_val < min_val:
            raise ValueError(f"Empty range [{min_val}, {max_val}]")
        return min_val + self._below(max_val - min_val + 1)

    def get_random_float(self, min_val: float, max_val: float) -> float:
        return min_val + (max_val - min_val) * self.get_random_fraction()

    def get_batch_ints(self, min_val: int, max_val: int, count: int) -> List[int]:
        return [self.get_random_int(min_val, max_val) for _ in range(count)]

    def choice(self, items: Sequence[Any]) -> Any:
        """
        Pick one element uniformly.

        Raises:
            IndexError: If ``items`` is empty
        """
        if not items:
            raise IndexError("Cannot choose from an empty list")
        return items[self._below(len(items))]

    def shuffle(self, items: Sequence[Any]) -> List[Any]:
        """Return a shuffled copy of ``items``; the argument is left untouched."""
        shuffled = list(items)
        # Fisher-Yates from the back
        for i in range(len(shuffled) - 1, 0, -1):
            j = self._below(i + 1)
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
        return shuffled
