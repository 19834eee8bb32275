# slot_engine/domain/machine/services/pattern_matcher.py
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from ..entities.symbol import Symbol
from ..entities.symbol_grid import Position, SymbolGrid
from ..entities.symbol_registry import SymbolRegistry


class PatternKind(Enum):
    TOP_LINE = "top_line"
    MIDDLE_LINE = "middle_line"
    BOTTOM_LINE = "bottom_line"
    COLUMN_1 = "column_1"
    COLUMN_2 = "column_2"
    COLUMN_3 = "column_3"
    COLUMN_4 = "column_4"
    COLUMN_5 = "column_5"
    DIAGONAL_DOWN = "diagonal_down"
    DIAGONAL_UP = "diagonal_up"
    ZIGZAG_DOWN = "zigzag_down"
    ZIGZAG_UP = "zigzag_up"
    WAVE = "wave"
    V_SHAPE = "v_shape"
    DIAMOND = "diamond"
    FOUR_CORNERS = "four_corners"
    BORDER = "border"
    CROSS = "cross"
    X_PATTERN = "x_pattern"

    @classmethod
    def parse(cls, name: str) -> "PatternKind":
        """
        Raises:
            ValueError: If ``name`` is not a known pattern
        """
        return cls(str(name).strip().lower())


def _row(index: Callable[[int], int]):
    return lambda rows, cols: [Position(index(rows), c) for c in range(cols)]


def _column(col: int):
    return lambda rows, cols: [Position(r, col) for r in range(rows)]


def _fixed(*cells: Tuple[int, int]):
    return lambda rows, cols: [Position(r, c) for r, c in cells]


def _v_shape(rows: int, cols: int) -> List[Position]:
    return [Position(0, 0), Position(0, cols - 1),
            Position(1, 0), Position(1, cols - 1),
            Position(2, 1), Position(2, 2), Position(2, cols - 2)]


def _diamond(rows: int, cols: int) -> List[Position]:
    mid_row, mid_col = rows // 2, cols // 2
    return [Position(mid_row - 1, mid_col),
            Position(mid_row, mid_col - 1),
            Position(mid_row, mid_col),
            Position(mid_row, mid_col + 1),
            Position(mid_row + 1, mid_col)]


def _four_corners(rows: int, cols: int) -> List[Position]:
    return [Position(0, 0), Position(0, cols - 1),
            Position(rows - 1, 0), Position(rows - 1, cols - 1)]


def _border(rows: int, cols: int) -> List[Position]:
    positions = [Position(0, c) for c in range(cols)]
    positions += [Position(rows - 1, c) for c in range(cols)]
    positions += [Position(r, 0) for r in range(1, rows - 1)]
    positions += [Position(r, cols - 1) for r in range(1, rows - 1)]
    return positions


def _cross(rows: int, cols: int) -> List[Position]:
    mid_row, mid_col = rows // 2, cols // 2
    positions = [Position(mid_row, c) for c in range(cols)]
    positions += [Position(r, mid_col) for r in range(rows) if r != mid_row]
    return positions


def _x_pattern(rows: int, cols: int) -> List[Position]:
    steps = min(rows, cols)
    positions = [Position(i, i) for i in range(steps)]
    # Anti-diagonal of the leading square, centre cell only once
    positions += [Position(steps - 1 - i, i) for i in range(steps) if steps - 1 - i != i]
    return positions


# kind -> ((min rows, min columns), position builder)
_SHAPES: Dict[PatternKind, Tuple[Tuple[int, int], Callable[[int, int], List[Position]]]] = {
    PatternKind.TOP_LINE: ((1, 1), _row(lambda rows: 0)),
    PatternKind.MIDDLE_LINE: ((1, 1), _row(lambda rows: rows // 2)),
    PatternKind.BOTTOM_LINE: ((2, 1), _row(lambda rows: rows - 1)),
    PatternKind.COLUMN_1: ((1, 1), _column(0)),
    PatternKind.COLUMN_2: ((1, 2), _column(1)),
    PatternKind.COLUMN_3: ((1, 3), _column(2)),
    PatternKind.COLUMN_4: ((1, 4), _column(3)),
    PatternKind.COLUMN_5: ((1, 5), _column(4)),
    PatternKind.DIAGONAL_DOWN: ((3, 3), _fixed((0, 0), (1, 1), (2, 2))),
    PatternKind.DIAGONAL_UP: ((3, 3), _fixed((2, 0), (1, 1), (0, 2))),
    PatternKind.ZIGZAG_DOWN: ((3, 5), _fixed((0, 0), (1, 1), (2, 2), (1, 3), (0, 4))),
    PatternKind.ZIGZAG_UP: ((3, 5), _fixed((2, 0), (1, 1), (0, 2), (1, 3), (2, 4))),
    PatternKind.WAVE: ((2, 5), _fixed((0, 0), (1, 1), (0, 2), (1, 3), (0, 4))),
    PatternKind.V_SHAPE: ((3, 5), _v_shape),
    PatternKind.DIAMOND: ((3, 3), _diamond),
    PatternKind.FOUR_CORNERS: ((2, 2), _four_corners),
    PatternKind.BORDER: ((2, 2), _border),
    PatternKind.CROSS: ((3, 3), _cross),
    PatternKind.X_PATTERN: ((3, 3), _x_pattern),
}


def positions_for(kind: PatternKind, rows: int, cols: int) -> List[Position]:
    """
    Grid cells making up ``kind`` on a rows x cols grid.

    Returns an empty list when the grid is smaller than the shape needs; an
    empty shape never matches.
    """
    (min_rows, min_cols), build = _SHAPES[kind]
    if rows < min_rows or cols < min_cols:
        return []
    return build(rows, cols)


def matches(grid: SymbolGrid, kind: PatternKind, registry: SymbolRegistry,
            required: Optional[Symbol] = None) -> bool:
    """
    True if every cell of the shape holds a symbol matching the shape's first cell.

    Args:
        grid: Completed symbol grid
        kind: Pattern to look for
        registry: Registry providing the equivalence relation
        required: Optional symbol the first cell must satisfy

    Returns:
        Whether the pattern is present
    """
    positions = positions_for(kind, grid.rows, grid.columns)
    if not positions:
        return False

    reference = grid.at(positions[0])
    if reference is None:
        return False

    if required is not None and not registry.matches(required, reference):
        return False

    return all(registry.matches(reference, grid.at(position)) for position in positions)
