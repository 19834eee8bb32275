# tests/test_rng.py
import unittest
import sys
import os
import threading
from collections import Counter

import numpy as np

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from slot_engine.infrastructure.rng.rng_provider import RNGProvider
from slot_engine.infrastructure.rng.strategies.mersenne_rng import MersenneTwisterRNG
from slot_engine.infrastructure.rng.strategies.numpy_rng import NumpyRNG
from slot_engine.infrastructure.rng.strategies.thread_local_rng import ThreadLocalRNG


class TestRNGStrategies(unittest.TestCase):
    """Behaviour shared by the concrete strategies."""

    def setUp(self):
        self.strategies = [MersenneTwisterRNG(seed_value=12345), NumpyRNG(seed_value=12345)]

    def test_int_range_is_inclusive(self):
        for rng in self.strategies:
            values = {rng.get_random_int(0, 3) for _ in range(2000)}
            self.assertEqual(values, {0, 1, 2, 3})

    def test_fraction_range(self):
        for rng in self.strategies:
            values = np.array([rng.get_random_fraction() for _ in range(10000)])
            self.assertTrue(np.all(values >= 0.0))
            self.assertTrue(np.all(values < 1.0))
            self.assertAlmostEqual(float(values.mean()), 0.5, delta=0.02)

    def test_batch_ints(self):
        for rng in self.strategies:
            batch = rng.get_batch_ints(1, 6, 500)
            self.assertEqual(len(batch), 500)
            self.assertTrue(all(1 <= value <= 6 for value in batch))

    def test_shuffle_returns_copy(self):
        for rng in self.strategies:
            items = list(range(20))
            shuffled = rng.shuffle(items)
            self.assertEqual(items, list(range(20)))
            self.assertEqual(sorted(shuffled), items)

    def test_choice_returns_member(self):
        items = ["seven", "cherry", "lemon"]
        for rng in self.strategies:
            self.assertIn(rng.choice(items), items)
            with self.assertRaises(IndexError):
                rng.choice([])

    def test_empty_range(self):
        for rng in self.strategies:
            with self.assertRaises(ValueError):
                rng.get_random_int(5, 4)
            self.assertEqual(rng.get_random_int(4, 4), 4)

    def test_shuffle_is_uniform_over_positions(self):
        for rng in self.strategies:
            first = Counter(rng.shuffle(["a", "b", "c"])[0] for _ in range(6000))
            for item in "abc":
                self.assertAlmostEqual(first[item] / 6000, 1 / 3, delta=0.03)

    def test_reseed(self):
        for rng in self.strategies:
            rng.seed(3)
            before = [rng.get_random_fraction() for _ in range(5)]
            rng.seed(3)
            self.assertEqual([rng.get_random_fraction() for _ in range(5)], before)

    def test_seed_reproduces_sequence(self):
        for cls in (MersenneTwisterRNG, NumpyRNG):
            first, second = cls(seed_value=7), cls(seed_value=7)
            self.assertEqual([first.get_random_int(0, 100) for _ in range(20)],
                             [second.get_random_int(0, 100) for _ in range(20)])


class TestRNGProvider(unittest.TestCase):

    def setUp(self):
        self.provider = RNGProvider()

    def test_unseeded_instances_are_cached(self):
        self.assertIs(self.provider.get_rng("mersenne"), self.provider.get_rng("MERSENNE"))
        self.assertIsNot(self.provider.get_rng("mersenne", 1), self.provider.get_rng("mersenne", 1))

    def test_unknown_strategy(self):
        with self.assertRaises(ValueError):
            self.provider.get_rng("quantum")
        with self.assertRaises(ValueError):
            self.provider.get_thread_local_rng("quantum")

    def test_create_from_config(self):
        rng = self.provider.create_from_config({"strategy": "numpy", "seed": 3})
        self.assertIsInstance(rng, ThreadLocalRNG)

        plain = self.provider.create_from_config({"strategy": "numpy", "thread_local": False})
        self.assertIsInstance(plain, NumpyRNG)

    def test_available_strategies(self):
        self.assertEqual(set(RNGProvider.get_available_strategies()), {"mersenne", "numpy"})


class TestThreadLocalRNG(unittest.TestCase):
    """Each thread draws from its own generator."""

    def test_threads_get_distinct_generators(self):
        rng = self.provider_rng(base_seed=100)
        seen = {}

        def worker(name):
            seen[name] = rng._delegate()
            rng.get_random_int(0, 10)

        threads = [threading.Thread(target=worker, args=(f"t{i}",)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len({id(delegate) for delegate in seen.values()}), 4)

    def test_thread_seeds_follow_base_seed(self):
        created = []

        def factory(seed):
            created.append(seed)
            return MersenneTwisterRNG(seed)

        rng = ThreadLocalRNG(factory, base_seed=50)
        rng.get_random_fraction()

        thread = threading.Thread(target=rng.get_random_fraction)
        thread.start()
        thread.join()

        self.assertEqual(created, [50, 51])

    def test_first_thread_matches_plain_seeded_strategy(self):
        rng = self.provider_rng(base_seed=9)
        plain = MersenneTwisterRNG(seed_value=9)
        self.assertEqual([rng.get_random_int(0, 1000) for _ in range(10)],
                         [plain.get_random_int(0, 1000) for _ in range(10)])

    def test_concurrent_draws(self):
        rng = self.provider_rng(base_seed=1)
        results = {}

        def worker(index):
            results[index] = [rng.get_random_int(0, 99) for _ in range(5000)]

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(results), 8)
        for values in results.values():
            self.assertEqual(len(values), 5000)
            self.assertTrue(all(0 <= value <= 99 for value in values))

    def provider_rng(self, base_seed):
        return RNGProvider().get_thread_local_rng("mersenne", base_seed)


if __name__ == "__main__":
    unittest.main()
