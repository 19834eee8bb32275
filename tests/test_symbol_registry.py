# tests/test_symbol_registry.py
import unittest
import sys
import os
from collections import Counter

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from slot_engine.domain.machine.entities.symbol import Symbol, ValueTier
from slot_engine.domain.machine.entities.symbol_registry import SymbolRegistry, WeightedRegistry
from slot_engine.infrastructure.rng.strategies.mersenne_rng import MersenneTwisterRNG


class TestWeightedRegistry(unittest.TestCase):
    """Weighted draws over cumulative boundaries."""

    def test_draw_distribution_follows_weights(self):
        registry = WeightedRegistry()
        registry.add_element("A", 1)
        registry.add_element("B", 1)
        registry.add_element("C", 2)

        rng = MersenneTwisterRNG(seed_value=12345)
        draws = Counter(registry.get_random_element(rng) for _ in range(100000))

        self.assertEqual(registry.total_weight, 4)
        self.assertAlmostEqual(draws["C"] / draws["A"], 2.0, delta=0.1)
        self.assertAlmostEqual(draws["C"] / draws["B"], 2.0, delta=0.1)
        self.assertAlmostEqual(draws["A"] / 100000, 0.25, delta=0.01)

    def test_non_positive_weight_is_ignored(self):
        registry = WeightedRegistry()
        registry.add_element("A", 0)
        registry.add_element("B", -3)

        self.assertTrue(registry.is_empty())
        self.assertEqual(registry.total_weight, 0)
        self.assertIsNone(registry.get_random_element(MersenneTwisterRNG(1)))

    def test_clear(self):
        registry = WeightedRegistry()
        registry.add_element("A", 5)
        registry.clear()

        self.assertEqual(len(registry), 0)
        self.assertIsNone(registry.get_random_element(MersenneTwisterRNG(1)))


class TestSymbolRegistry(unittest.TestCase):
    """Directional equivalence and value pools."""

    def setUp(self):
        self.seven = Symbol("seven", 6, ValueTier.HIGH)
        self.star = Symbol("star", 10, ValueTier.HIGH)
        self.grapes = Symbol("grapes", 7, ValueTier.MID)
        self.cherry = Symbol("cherry", 30, ValueTier.LOW)
        self.registry = SymbolRegistry(
            [self.seven, self.star, self.grapes, self.cherry],
            {"star": ["grapes", "cherry"]}
        )

    def test_identity_matches(self):
        for symbol in self.registry.symbols:
            self.assertTrue(self.registry.matches(symbol, symbol))

    def test_equivalence_is_directional(self):
        self.assertTrue(self.registry.matches(self.cherry, self.star))
        self.assertTrue(self.registry.matches(self.grapes, self.star))
        self.assertFalse(self.registry.matches(self.star, self.cherry))
        self.assertFalse(self.registry.matches(self.star, self.grapes))
        self.assertFalse(self.registry.matches(self.seven, self.star))

    def test_directionality_for_every_pair(self):
        symbols = self.registry.symbols
        for a in symbols:
            for b in symbols:
                if a == b:
                    continue
                forward = self.registry.matches(a, b)
                backward = self.registry.matches(b, a)
                # Only star has been registered as an equivalent
                self.assertEqual(forward, b == self.star and a in (self.grapes, self.cherry))
                self.assertFalse(forward and backward)

    def test_empty_cell_never_matches(self):
        self.assertFalse(self.registry.matches(self.cherry, None))
        self.assertFalse(self.registry.matches(None, self.cherry))

    def test_count_matches_includes_wildcards(self):
        row = [self.cherry, self.star, self.cherry, self.seven, self.grapes]
        self.assertEqual(self.registry.count_matches(self.cherry, row), 3)
        self.assertEqual(self.registry.count_matches(self.star, row), 1)
        self.assertFalse(self.registry.matches_all(self.cherry, row))
        self.assertTrue(self.registry.matches_all(self.cherry, [self.cherry, self.star]))

    def test_wildcards(self):
        self.assertTrue(self.registry.is_wildcard(self.star))
        self.assertFalse(self.registry.is_wildcard(self.cherry))
        self.assertEqual(self.registry.wildcards, [self.star])
        self.assertEqual(self.registry.substitutes_for(self.star), frozenset({"grapes", "cherry"}))
        self.assertEqual(self.registry.accepted_for(self.cherry), frozenset({"star"}))

    def test_unknown_equivalent_raises(self):
        with self.assertRaises(KeyError):
            SymbolRegistry([self.seven, self.star], {"star": ["banana"]})

    def test_symbols_compare_by_id(self):
        self.assertEqual(Symbol("seven", 1), self.seven)
        self.assertEqual(hash(Symbol("seven", 99)), hash(self.seven))

    def test_configured_value_pools(self):
        pools = self.registry.value_pools()
        self.assertEqual(pools[ValueTier.HIGH], [self.seven, self.star])
        self.assertEqual(pools[ValueTier.MID], [self.grapes])
        self.assertEqual(pools[ValueTier.LOW], [self.cherry])

    def test_value_pools_fall_back_to_weight_thirds(self):
        symbols = [Symbol(f"s{w}", w) for w in (30, 1, 20, 2, 10, 3)]
        pools = SymbolRegistry(symbols).value_pools()

        self.assertEqual([s.id for s in pools[ValueTier.HIGH]], ["s1", "s2"])
        self.assertEqual([s.id for s in pools[ValueTier.MID]], ["s3", "s10"])
        self.assertEqual([s.id for s in pools[ValueTier.LOW]], ["s20", "s30"])


if __name__ == "__main__":
    unittest.main()
