# slot_engine/infrastructure/rng/rng_provider.py
import logging
from typing import Optional, Dict, Any

from .strategies.mersenne_rng import MersenneTwisterRNG
from .strategies.numpy_rng import NumpyRNG
from .strategies.rng_strategy import RNGStrategy
from .strategies.thread_local_rng import ThreadLocalRNG


class RNGProvider:
    """
    Factory for creating and managing Random Number Generator strategies.
    """
    def __init__(self):
        """Initialize the RNG provider."""
        self.logger = logging.getLogger("infrastructure.rng.provider")
        self._strategies = {}  # cache of unseeded shared strategies

    def get_rng(self, strategy_name: str, seed: Optional[int] = None) -> RNGStrategy:
        """
        Get a RNG strategy instance by name.

        Args:
            strategy_name: Name of the RNG strategy ("mersenne", "numpy")
            seed: Optional seed value for the RNG

        Returns:
            An instance of the requested RNG strategy

        Raises:
            ValueError: If the strategy name is unknown
        """
        cache_key = f"{strategy_name.lower()}_{seed}"
        if seed is None and cache_key in self._strategies:
            return self._strategies[cache_key]

        strategy = self._create_strategy(strategy_name, seed)

        if seed is None:
            self._strategies[cache_key] = strategy

        return strategy

    def get_thread_local_rng(self, strategy_name: str, seed: Optional[int] = None) -> ThreadLocalRNG:
        """
        Get a strategy that keeps one generator per thread.

        This is what machines shared between worker threads should draw from.

        Args:
            strategy_name: Name of the underlying RNG strategy
            seed: Optional base seed; thread n is seeded with seed + n

        Returns:
            ThreadLocalRNG wrapping the named strategy

        Raises:
            ValueError: If the strategy name is unknown
        """
        # Fail fast on a bad name instead of on the first draw
        self._create_strategy(strategy_name, seed)
        self.logger.debug(f"Creating thread-local {strategy_name} RNG with base seed: {seed}")
        return ThreadLocalRNG(lambda thread_seed: self._create_strategy(strategy_name, thread_seed), seed)

    def _create_strategy(self, strategy_name: str, seed: Optional[int] = None) -> RNGStrategy:
        """
        Create a new RNG strategy instance.

        Args:
            strategy_name: Name of the RNG strategy
            seed: Optional seed value

        Returns:
            A new RNG strategy instance
        """
        strategy_name = strategy_name.lower()

        if strategy_name == "mersenne":
            return MersenneTwisterRNG(seed)
        elif strategy_name == "numpy":
            return NumpyRNG(seed)
        else:
            self.logger.error(f"Unknown RNG strategy: {strategy_name}")
            raise ValueError(f"Unknown RNG strategy: {strategy_name}")

    def create_from_config(self, config: Dict[str, Any]) -> RNGStrategy:
        """
        Create an RNG strategy from a configuration dictionary.

        Args:
            config: Dictionary with 'strategy' and optional 'seed' and
                'thread_local' keys

        Returns:
            An RNG strategy instance

        Example config:
            {"strategy": "numpy", "seed": 12345, "thread_local": true}
        """
        strategy_name = config.get('strategy', 'mersenne')
        seed = config.get('seed', None)

        if config.get('thread_local', True):
            return self.get_thread_local_rng(strategy_name, seed)
        return self.get_rng(strategy_name, seed)

    @staticmethod
    def get_available_strategies() -> Dict[str, str]:
        """
        Get a dictionary of available RNG strategies with descriptions.

        Returns:
            Dictionary mapping strategy names to descriptions
        """
        return {
            "mersenne": "Mersenne Twister (Python's default random generator)",
            "numpy": "NumPy-based random generator (better performance for large batches)"
        }
