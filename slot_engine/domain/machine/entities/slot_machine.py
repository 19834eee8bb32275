# slot_engine/domain/machine/entities/slot_machine.py
import logging
import numbers
from typing import Any, Dict, List, Optional, Sequence

from .outcome_tier import OutcomeTier, TierTable
from .reward_rule import RewardRule
from .symbol_grid import SymbolGrid
from .symbol_registry import SymbolRegistry
from ..services.reward_evaluator import RewardEvaluator
from ..services.symbol_synthesizer import SymbolSynthesizer
from ..services.tier_selector import OutcomeTierSelector
from ...session.entities.spin_outcome import SpinOutcome

DEFAULT_ROWS = 3
DEFAULT_COLUMNS = 5


class SlotMachine:
    """
    A configured slot machine.

    A spin first draws the outcome tier, then synthesizes a grid consistent
    with it and finally lets the reward evaluator pick the paying rule. The
    machine is a read-only snapshot: a reload builds a new machine rather
    than changing this one, so spins running on another thread are never
    affected.
    """
    def __init__(self, machine_id: str, registry: SymbolRegistry, tier_table: TierTable,
                 rules: Sequence[RewardRule], synthesizer: SymbolSynthesizer,
                 rows: int = DEFAULT_ROWS, columns: int = DEFAULT_COLUMNS,
                 rng_strategy=None, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the slot machine.

        Args:
            machine_id: Unique identifier for this machine
            registry: Symbol registry with the equivalence map
            tier_table: Outcome tier probabilities and multipliers
            rules: Reward rules in declared order
            synthesizer: Result synthesizer bound to ``registry``
            rows: Grid rows
            columns: Grid columns (reels)
            rng_strategy: RNG strategy, normally a thread-local one
            config: Configuration the machine was built from
        """
        self.id = machine_id
        self.logger = logging.getLogger(f"domain.machine.{machine_id}")

        self.registry = registry
        self.tier_table = tier_table
        self.rules = tuple(rules)
        self.synthesizer = synthesizer
        self.rows = rows
        self.columns = columns
        self.rng = rng_strategy
        self.config = config or {}

        self._selector = OutcomeTierSelector(tier_table)
        self._evaluator = RewardEvaluator(self.rules, registry)

        self.logger.info(
            f"Slot machine {machine_id} ready: {len(registry)} symbols, {len(self.rules)} rules, "
            f"{rows}x{columns} grid, expected RTP {tier_table.expected_rtp():.4f}"
        )

    def spin(self, bet: float, tier: Optional[OutcomeTier] = None) -> SpinOutcome:
        """
        Execute a spin on the full grid.

        Args:
            bet: Amount wagered, used to evaluate money commands
            tier: Force this outcome tier instead of drawing one

        Returns:
            SpinOutcome with the tier, grid, best reward and payout

        Raises:
            ValueError: If the bet is not a positive number
        """
        return self._spin(bet, self.rows, self.columns, tier)

    def spin_row(self, bet: float, reel_count: Optional[int] = None,
                 tier: Optional[OutcomeTier] = None) -> SpinOutcome:
        """
        Execute a spin on a single row of reels.

        Args:
            bet: Amount wagered
            reel_count: Number of reels; defaults to the configured columns
            tier: Force this outcome tier instead of drawing one

        Raises:
            ValueError: If the bet is not positive or reel_count is below 1
        """
        reel_count = self.columns if reel_count is None else reel_count
        if reel_count < 1:
            raise ValueError(f"Reel count must be at least 1, got {reel_count}")
        return self._spin(bet, 1, reel_count, tier)

    def _spin(self, bet: float, rows: int, columns: int, tier: Optional[OutcomeTier]) -> SpinOutcome:
        self._check_bet(bet)

        if self.registry.is_empty():
            self.logger.warning(f"Machine {self.id} has no symbols, returning an empty result")
            return SpinOutcome(self.id, bet, OutcomeTier.LOSS, SymbolGrid.empty(rows, columns))

        if tier is None:
            tier = self._selector.determine_outcome(self.rng)

        grid = self.synthesizer.generate_grid(tier, rows, columns, self.rng)
        reward = self._evaluator.check_rewards(grid, bet)

        outcome = SpinOutcome(self.id, bet, tier, grid, reward)
        self.logger.debug(
            f"Spin bet={bet} tier={tier.value} result={[s.id for s in outcome.result]} payout={outcome.payout}"
        )
        return outcome

    def _check_bet(self, bet: Any) -> None:
        if isinstance(bet, bool) or not isinstance(bet, numbers.Real) or not bet > 0:
            error_msg = f"Invalid bet: {bet!r}, must be a positive number"
            self.logger.error(error_msg)
            raise ValueError(error_msg)

    def get_info(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "grid": {"rows": self.rows, "columns": self.columns},
            "symbols": [symbol.id for symbol in self.registry.symbols],
            "wildcards": [symbol.id for symbol in self.registry.wildcards],
            "rules": [rule.describe() for rule in self.rules],
            "tiers": self.tier_table.to_dict(),
            "expected_rtp": self.tier_table.expected_rtp(),
            "target_rtp": self.tier_table.target_rtp,
        }
