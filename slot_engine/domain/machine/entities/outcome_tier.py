# slot_engine/domain/machine/entities/outcome_tier.py
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Mapping, Tuple


class OutcomeTier(Enum):
    """Payout categories, ordered from lowest to highest value."""
    LOSS = "loss"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    HUGE = "huge"
    JACKPOT = "jackpot"

    @classmethod
    def parse(cls, name: str) -> "OutcomeTier":
        return cls(str(name).strip().lower())


@dataclass(frozen=True)
class TierSpec:
    probability: float
    min_multiplier: float
    max_multiplier: float

    @property
    def representative_multiplier(self) -> float:
        return (self.min_multiplier + self.max_multiplier) / 2.0


# Probability x multiplier sums to 0.445 against a 0.45 target
DEFAULT_TIER_SPECS: Dict[OutcomeTier, TierSpec] = {
    OutcomeTier.LOSS: TierSpec(0.82, 0.0, 0.0),
    OutcomeTier.SMALL: TierSpec(0.12, 1.5, 1.5),
    OutcomeTier.MEDIUM: TierSpec(0.04, 2.5, 2.5),
    OutcomeTier.LARGE: TierSpec(0.015, 5.0, 5.0),
    OutcomeTier.HUGE: TierSpec(0.004, 10.0, 10.0),
    OutcomeTier.JACKPOT: TierSpec(0.001, 50.0, 50.0),
}

DEFAULT_TARGET_RTP = 0.45
DEFAULT_RTP_TOLERANCE = 0.01
PROBABILITY_SUM_TOLERANCE = 1e-6


class TierTable:
    """
    Immutable table of outcome tiers in enum order.

    Construction validates the table; it does not check RTP calibration,
    which is reported by ``is_calibrated`` and checked by tests.
    """
    def __init__(self, specs: Mapping[OutcomeTier, TierSpec],
                 target_rtp: float = DEFAULT_TARGET_RTP,
                 tolerance: float = DEFAULT_RTP_TOLERANCE):
        """
        Raises:
            ValueError: If a tier is missing, a probability is negative, a
                multiplier range is inverted or probabilities do not sum to 1.0
        """
        missing = [tier.value for tier in OutcomeTier if tier not in specs]
        if missing:
            raise ValueError(f"Tier table is missing tiers: {', '.join(missing)}")

        for tier, spec in specs.items():
            if spec.probability < 0:
                raise ValueError(f"Tier {tier.value} has negative probability {spec.probability}")
            if spec.min_multiplier > spec.max_multiplier:
                raise ValueError(
                    f"Tier {tier.value} has min multiplier {spec.min_multiplier} "
                    f"above max multiplier {spec.max_multiplier}"
                )

        total = math.fsum(spec.probability for spec in specs.values())
        if abs(total - 1.0) > PROBABILITY_SUM_TOLERANCE:
            raise ValueError(f"Tier probabilities sum to {total}, expected 1.0")

        self._specs: Dict[OutcomeTier, TierSpec] = {tier: specs[tier] for tier in OutcomeTier}
        self.target_rtp = target_rtp
        self.tolerance = tolerance

    @classmethod
    def default(cls) -> "TierTable":
        return cls(DEFAULT_TIER_SPECS)

    def __getitem__(self, tier: OutcomeTier) -> TierSpec:
        return self._specs[tier]

    def items(self) -> Iterator[Tuple[OutcomeTier, TierSpec]]:
        return iter(self._specs.items())

    def expected_rtp(self) -> float:
        """Sum of probability x representative multiplier over all tiers."""
        return math.fsum(spec.probability * spec.representative_multiplier
                         for spec in self._specs.values())

    def is_calibrated(self) -> bool:
        return abs(self.expected_rtp() - self.target_rtp) <= self.tolerance

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {
            tier.value: {
                "probability": spec.probability,
                "min_multiplier": spec.min_multiplier,
                "max_multiplier": spec.max_multiplier,
            }
            for tier, spec in self._specs.items()
        }
