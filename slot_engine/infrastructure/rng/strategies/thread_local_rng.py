# slot_engine/infrastructure/rng/strategies/thread_local_rng.py
import itertools
import logging
import threading
from typing import Any, Callable, List, Optional


class ThreadLocalRNG:
    """
    RNG strategy that hands every thread its own underlying generator.

    Spins for different player sessions may run on different workers at the
    same time; none of the concrete strategies are safe for concurrent draws,
    so each thread lazily gets a private instance from ``factory``. When a base
    seed is given the n-th thread to draw is seeded with ``base_seed + n``,
    which keeps single-threaded runs reproducible.
    """
    def __init__(self, factory: Callable[[Optional[int]], Any], base_seed: Optional[int] = None):
        """
        Args:
            factory: Callable building a strategy from an optional seed
            base_seed: Optional seed for the first thread's generator
        """
        self.logger = logging.getLogger("infrastructure.rng.thread_local")
        self._factory = factory
        self._base_seed = base_seed
        self._local = threading.local()
        self._counter = itertools.count()
        self._counter_lock = threading.Lock()

    def _delegate(self):
        rng = getattr(self._local, "rng", None)
        if rng is None:
            with self._counter_lock:
                index = next(self._counter)
            seed = None if self._base_seed is None else self._base_seed + index
            rng = self._factory(seed)
            self._local.rng = rng
            self.logger.debug(
                f"Created generator #{index} for thread {threading.current_thread().name} (seed={seed})"
            )
        return rng

    def get_random_int(self, min_val: int, max_val: int) -> int:
        return self._delegate().get_random_int(min_val, max_val)

    def get_random_float(self, min_val: float, max_val: float) -> float:
        return self._delegate().get_random_float(min_val, max_val)

    def get_random_fraction(self) -> float:
        return self._delegate().get_random_fraction()

    def get_batch_ints(self, min_val: int, max_val: int, count: int) -> List[int]:
        return self._delegate().get_batch_ints(min_val, max_val, count)

    def seed(self, seed_value: Optional[int]) -> None:
        """Reseed the calling thread's generator only."""
        self._delegate().seed(seed_value)

    def choice(self, items: List[Any]) -> Any:
        return self._delegate().choice(items)

    def shuffle(self, items: List[Any]) -> List[Any]:
        return self._delegate().shuffle(items)
