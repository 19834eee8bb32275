# slot_engine/domain/machine/entities/reward_rule.py
import math
from typing import List, Optional, Sequence, Tuple

from .reward_command import CommandKind, RewardCommand
from .symbol import Symbol
from .symbol_grid import Position, SymbolGrid
from .symbol_registry import SymbolRegistry
from ..services import pattern_matcher
from ..services.pattern_matcher import PatternKind


class RewardRule:
    """
    Base class of the reward rule variants.

    Rules are immutable and shared by every spin of a machine, so ``check``
    returns the matched positions instead of storing them.
    """
    def __init__(self, name: str, commands: Sequence[RewardCommand]):
        self.name = name
        self.commands: Tuple[RewardCommand, ...] = tuple(commands)

    def check(self, grid: SymbolGrid, registry: SymbolRegistry) -> Optional[List[Position]]:
        """
        Test the rule against a completed grid.

        Args:
            grid: Completed symbol grid
            registry: Registry providing the equivalence relation

        Returns:
            Matched positions, or None when the rule does not match
        """
        raise NotImplementedError("This method must be implemented")

    def value(self, bet: float) -> float:
        """Sum of the rule's money commands evaluated for ``bet``."""
        return math.fsum(command.payout(bet) for command in self.commands)

    @property
    def money_commands(self) -> List[RewardCommand]:
        return [command for command in self.commands if command.kind == CommandKind.MONEY]

    def describe(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.describe()})"


class RowReward(RewardRule):
    """Pays when at least ``required_count`` middle-row cells match ``symbol``."""
    def __init__(self, symbol: Symbol, required_count: int, commands: Sequence[RewardCommand]):
        super().__init__(f"{symbol.id}x{required_count}", commands)
        self.symbol = symbol
        self.required_count = required_count

    def check(self, grid: SymbolGrid, registry: SymbolRegistry) -> Optional[List[Position]]:
        row_index = grid.middle_row_index
        positions = [
            Position(row_index, col)
            for col, cell in enumerate(grid.middle_row)
            if registry.matches(self.symbol, cell)
        ]
        if len(positions) >= self.required_count:
            return positions
        return None

    def describe(self) -> str:
        return f"{self.required_count} x {self.symbol.display_name}"


class ExactMatchReward(RewardRule):
    """Pays when the middle row matches a fixed symbol sequence index by index."""
    def __init__(self, symbols: Sequence[Symbol], commands: Sequence[RewardCommand]):
        super().__init__("exact:" + ",".join(symbol.id for symbol in symbols), commands)
        self.symbols: Tuple[Symbol, ...] = tuple(symbols)

    def check(self, grid: SymbolGrid, registry: SymbolRegistry) -> Optional[List[Position]]:
        row = grid.middle_row
        if len(row) != len(self.symbols):
            return None

        if all(registry.matches(required, cell) for required, cell in zip(self.symbols, row)):
            return [Position(grid.middle_row_index, col) for col in range(len(row))]
        return None

    def describe(self) -> str:
        return "[" + " ".join(symbol.id for symbol in self.symbols) + "]"


class PatternReward(RewardRule):
    """Pays when a grid shape holds one matching symbol, optionally a given one."""
    def __init__(self, name: str, kind: PatternKind, commands: Sequence[RewardCommand],
                 required_symbol: Optional[Symbol] = None):
        super().__init__(name, commands)
        self.kind = kind
        self.required_symbol = required_symbol

    def check(self, grid: SymbolGrid, registry: SymbolRegistry) -> Optional[List[Position]]:
        if pattern_matcher.matches(grid, self.kind, registry, self.required_symbol):
            return pattern_matcher.positions_for(self.kind, grid.rows, grid.columns)
        return None

    def describe(self) -> str:
        if self.required_symbol is None:
            return f"{self.name} ({self.kind.value})"
        return f"{self.name} ({self.kind.value} of {self.required_symbol.id})"
