# slot_engine/domain/machine/services/tier_selector.py
import logging

from ..entities.outcome_tier import OutcomeTier, TierTable


class OutcomeTierSelector:
    """Draws the outcome tier of a spin from the machine's tier table."""

    def __init__(self, tier_table: TierTable):
        self.tier_table = tier_table
        self.logger = logging.getLogger("domain.machine.tier_selector")

    def determine_outcome(self, rng) -> OutcomeTier:
        """
        Pick a tier with probability equal to its configured probability.

        Args:
            rng: RNG strategy

        Returns:
            The selected tier; LOSS if rounding leaves the draw uncovered
        """
        roll = rng.get_random_fraction()
        cumulative = 0.0
        for tier, spec in self.tier_table.items():
            cumulative += spec.probability
            if roll < cumulative:
                return tier

        self.logger.debug(f"Roll {roll} not covered by cumulative probability {cumulative}, using LOSS")
        return OutcomeTier.LOSS
