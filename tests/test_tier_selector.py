# tests/test_tier_selector.py
import unittest
import sys
import os
from collections import Counter

import yaml

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from slot_engine.domain.machine.entities.outcome_tier import (DEFAULT_TIER_SPECS, OutcomeTier,
                                                              TierSpec, TierTable)
from slot_engine.domain.machine.services.tier_selector import OutcomeTierSelector
from slot_engine.infrastructure.rng.strategies.mersenne_rng import MersenneTwisterRNG
from slot_engine.application.registry.machine_registry import DEFAULT_MACHINE_DIR


class FixedRNG:
    """Returns a fixed fraction."""
    def __init__(self, value):
        self.value = value

    def get_random_fraction(self):
        return self.value


class TestTierTable(unittest.TestCase):

    def test_default_table_is_calibrated(self):
        table = TierTable.default()
        self.assertAlmostEqual(table.expected_rtp(), 0.445, places=9)
        self.assertTrue(table.is_calibrated())
        self.assertLessEqual(abs(table.expected_rtp() - table.target_rtp), 0.01)

    def test_bundled_machine_table_is_calibrated(self):
        with open(os.path.join(DEFAULT_MACHINE_DIR, "classic_slots.yaml"), encoding="utf-8") as f:
            config = yaml.safe_load(f)

        specs = {
            OutcomeTier.parse(name): TierSpec(entry["probability"], entry["multiplier"], entry["multiplier"])
            for name, entry in config["tiers"].items()
        }
        table = TierTable(specs, config["rtp"]["target"], config["rtp"]["tolerance"])
        self.assertTrue(table.is_calibrated())

    def test_probabilities_must_sum_to_one(self):
        specs = dict(DEFAULT_TIER_SPECS)
        specs[OutcomeTier.LOSS] = TierSpec(0.80, 0.0, 0.0)
        with self.assertRaises(ValueError):
            TierTable(specs)

    def test_missing_tier_rejected(self):
        specs = dict(DEFAULT_TIER_SPECS)
        del specs[OutcomeTier.HUGE]
        with self.assertRaises(ValueError):
            TierTable(specs)

    def test_inverted_multiplier_range_rejected(self):
        specs = dict(DEFAULT_TIER_SPECS)
        specs[OutcomeTier.SMALL] = TierSpec(0.12, 2.0, 1.0)
        with self.assertRaises(ValueError):
            TierTable(specs)

    def test_uncalibrated_table_is_reported(self):
        specs = dict(DEFAULT_TIER_SPECS)
        specs[OutcomeTier.JACKPOT] = TierSpec(0.001, 500.0, 500.0)
        table = TierTable(specs)
        self.assertFalse(table.is_calibrated())


class TestOutcomeTierSelector(unittest.TestCase):

    def setUp(self):
        self.selector = OutcomeTierSelector(TierTable.default())

    def test_cumulative_boundaries(self):
        self.assertEqual(self.selector.determine_outcome(FixedRNG(0.0)), OutcomeTier.LOSS)
        self.assertEqual(self.selector.determine_outcome(FixedRNG(0.8199)), OutcomeTier.LOSS)
        self.assertEqual(self.selector.determine_outcome(FixedRNG(0.83)), OutcomeTier.SMALL)
        self.assertEqual(self.selector.determine_outcome(FixedRNG(0.95)), OutcomeTier.MEDIUM)
        self.assertEqual(self.selector.determine_outcome(FixedRNG(0.985)), OutcomeTier.LARGE)
        self.assertEqual(self.selector.determine_outcome(FixedRNG(0.9960)), OutcomeTier.HUGE)
        self.assertEqual(self.selector.determine_outcome(FixedRNG(0.9995)), OutcomeTier.JACKPOT)

    def test_uncovered_draw_falls_back_to_loss(self):
        self.assertEqual(self.selector.determine_outcome(FixedRNG(1.5)), OutcomeTier.LOSS)

    def test_observed_frequencies(self):
        rng = MersenneTwisterRNG(seed_value=2024)
        draws = 200000
        counts = Counter(self.selector.determine_outcome(rng) for _ in range(draws))

        for tier, spec in TierTable.default().items():
            self.assertAlmostEqual(counts[tier] / draws, spec.probability,
                                   delta=max(0.005, spec.probability * 0.15))


if __name__ == "__main__":
    unittest.main()
