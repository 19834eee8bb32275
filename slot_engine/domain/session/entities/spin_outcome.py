# slot_engine/domain/session/entities/spin_outcome.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import time

from ...machine.entities.outcome_tier import OutcomeTier
from ...machine.entities.symbol import Symbol
from ...machine.entities.symbol_grid import Position, SymbolGrid
from ...machine.services.reward_evaluator import RewardMatch


@dataclass
class SpinOutcome:
    """
    Result of a single spin, handed to the presentation and economy sides.

    The presentation side renders ``grid`` and highlights
    ``matched_positions``; the economy side pays ``payout`` and runs the
    reward's commands.
    """
    machine_id: str
    bet: float
    tier: OutcomeTier
    grid: SymbolGrid
    reward: Optional[RewardMatch] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def result(self) -> List[Optional[Symbol]]:
        """The middle row."""
        return self.grid.middle_row

    @property
    def payout(self) -> float:
        return self.reward.value if self.reward else 0.0

    @property
    def matched_positions(self) -> List[Position]:
        return list(self.reward.positions) if self.reward else []

    @property
    def is_win(self) -> bool:
        return self.reward is not None

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data form for storage or transport."""
        return {
            "machine_id": self.machine_id,
            "bet": self.bet,
            "tier": self.tier.value,
            "grid": self.grid.to_ids(),
            "result": [symbol.id if symbol else None for symbol in self.result],
            "payout": self.payout,
            "matched_positions": [list(position) for position in self.matched_positions],
            "reward": self.reward.to_dict() if self.reward else None,
            "timestamp": self.timestamp,
        }
