# slot_engine/domain/machine/services/reward_evaluator.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..entities.reward_rule import RewardRule
from ..entities.symbol_grid import Position, SymbolGrid
from ..entities.symbol_registry import SymbolRegistry


@dataclass(frozen=True)
class RewardMatch:
    """The rule that paid on a grid, its value for the bet and the cells it covers."""
    rule: RewardRule
    value: float
    positions: List[Position]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule.describe(),
            "value": self.value,
            "positions": [list(position) for position in self.positions],
            "commands": [command.to_string() for command in self.rule.commands],
        }


class RewardEvaluator:
    """
    Picks the single best paying rule for a completed grid.

    Rules are tried in declared order and the strictly highest value wins, so
    ties go to the rule declared first. A rule worth nothing never wins.
    """
    def __init__(self, rules: Sequence[RewardRule], registry: SymbolRegistry):
        self.rules = tuple(rules)
        self.registry = registry
        self.logger = logging.getLogger("domain.machine.reward_evaluator")

    def check_rewards(self, grid: SymbolGrid, bet: float) -> Optional[RewardMatch]:
        """
        Evaluate every rule against ``grid``.

        Args:
            grid: Completed symbol grid
            bet: Bet the payout values are computed for

        Returns:
            RewardMatch of the best rule, or None when nothing pays
        """
        best_rule = None
        best_value = 0.0

        for rule in self.rules:
            if rule.check(grid, self.registry) is None:
                continue
            value = rule.value(bet)
            if value > best_value:
                best_rule, best_value = rule, value

        if best_rule is None:
            return None

        # Positions are recomputed for the winner so they belong to it
        positions = best_rule.check(grid, self.registry)
        self.logger.debug(f"Best reward {best_rule.describe()} worth {best_value} at {positions}")
        return RewardMatch(best_rule, best_value, positions)
