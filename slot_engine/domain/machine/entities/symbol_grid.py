# slot_engine/domain/machine/entities/symbol_grid.py
from typing import List, NamedTuple, Optional, Sequence

from .symbol import Symbol


class Position(NamedTuple):
    row: int
    col: int

    def __repr__(self) -> str:
        return f"({self.row},{self.col})"


class SymbolGrid:
    """
    Rectangular rows x columns grid of symbols.

    The middle row (``rows // 2``) is the linear result that row and
    exact-match rewards are checked against. A grid is read-only once built;
    cells are only ``None`` in the degenerate result of an empty machine.
    """
    def __init__(self, cells: Sequence[Sequence[Optional[Symbol]]]):
        """
        Args:
            cells: Rows of symbols, all of the same length

        Raises:
            ValueError: If the rows are ragged or the grid is empty
        """
        rows = [tuple(row) for row in cells]
        if not rows or not rows[0]:
            raise ValueError("A symbol grid needs at least one row and one column")
        if any(len(row) != len(rows[0]) for row in rows):
            raise ValueError("All grid rows must have the same number of columns")

        self._cells = tuple(rows)

    @classmethod
    def from_row(cls, row: Sequence[Optional[Symbol]]) -> "SymbolGrid":
        """Single-row grid for linear games."""
        return cls([row])

    @classmethod
    def empty(cls, rows: int, columns: int) -> "SymbolGrid":
        return cls([[None] * columns for _ in range(rows)])

    @property
    def rows(self) -> int:
        return len(self._cells)

    @property
    def columns(self) -> int:
        return len(self._cells[0])

    @property
    def middle_row_index(self) -> int:
        return self.rows // 2

    @property
    def middle_row(self) -> List[Optional[Symbol]]:
        return list(self._cells[self.middle_row_index])

    def at(self, position: Position) -> Optional[Symbol]:
        """Symbol at ``position``; None outside the grid."""
        row, col = position
        if 0 <= row < self.rows and 0 <= col < self.columns:
            return self._cells[row][col]
        return None

    def row(self, index: int) -> List[Optional[Symbol]]:
        return list(self._cells[index])

    def to_ids(self) -> List[List[Optional[str]]]:
        return [[symbol.id if symbol else None for symbol in row] for row in self._cells]

    def __eq__(self, other) -> bool:
        return isinstance(other, SymbolGrid) and self._cells == other._cells

    def __repr__(self) -> str:
        return f"SymbolGrid({self.rows}x{self.columns}, middle={[s.id if s else None for s in self.middle_row]})"
