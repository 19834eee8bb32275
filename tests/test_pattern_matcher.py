# tests/test_pattern_matcher.py
import unittest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from slot_engine.domain.machine.entities.symbol import Symbol
from slot_engine.domain.machine.entities.symbol_grid import Position, SymbolGrid
from slot_engine.domain.machine.entities.symbol_registry import SymbolRegistry
from slot_engine.domain.machine.services import pattern_matcher
from slot_engine.domain.machine.services.pattern_matcher import PatternKind


class TestPatternMatcher(unittest.TestCase):

    def setUp(self):
        self.seven = Symbol("seven", 5)
        self.cherry = Symbol("cherry", 20)
        self.star = Symbol("star", 10)
        self.registry = SymbolRegistry([self.seven, self.cherry, self.star], {"star": ["seven"]})

    def uniform(self, symbol, rows=3, cols=5):
        return SymbolGrid([[symbol] * cols for _ in range(rows)])

    def replace(self, grid, position, symbol):
        cells = [grid.row(r) for r in range(grid.rows)]
        cells[position.row][position.col] = symbol
        return SymbolGrid(cells)

    def test_uniform_grid_matches_every_kind(self):
        grid = self.uniform(self.cherry)
        for kind in PatternKind:
            self.assertTrue(pattern_matcher.matches(grid, kind, self.registry), kind)

    def test_single_mismatch_defeats_every_kind(self):
        grid = self.uniform(self.cherry)
        for kind in PatternKind:
            for position in pattern_matcher.positions_for(kind, 3, 5):
                broken = self.replace(grid, position, self.seven)
                self.assertFalse(pattern_matcher.matches(broken, kind, self.registry),
                                 f"{kind} matched with {position} replaced")

    def test_mismatch_outside_shape_is_ignored(self):
        grid = self.replace(self.uniform(self.cherry), Position(1, 1), self.seven)
        self.assertTrue(pattern_matcher.matches(grid, PatternKind.FOUR_CORNERS, self.registry))
        self.assertTrue(pattern_matcher.matches(grid, PatternKind.TOP_LINE, self.registry))
        self.assertFalse(pattern_matcher.matches(grid, PatternKind.MIDDLE_LINE, self.registry))

    def test_required_symbol(self):
        grid = self.uniform(self.cherry)
        self.assertFalse(pattern_matcher.matches(grid, PatternKind.BORDER, self.registry, self.seven))
        self.assertTrue(pattern_matcher.matches(grid, PatternKind.BORDER, self.registry, self.cherry))

    def test_wildcard_inside_shape(self):
        grid = self.replace(self.uniform(self.seven), Position(1, 1), self.star)
        self.assertTrue(pattern_matcher.matches(grid, PatternKind.DIAGONAL_DOWN, self.registry, self.seven))

        # Star as the reference cell does not accept sevens
        grid = self.replace(self.uniform(self.seven), Position(0, 0), self.star)
        self.assertFalse(pattern_matcher.matches(grid, PatternKind.DIAGONAL_DOWN, self.registry))

    def test_small_grid_never_matches_large_shape(self):
        grid = self.uniform(self.cherry, rows=2, cols=3)
        self.assertEqual(pattern_matcher.positions_for(PatternKind.ZIGZAG_DOWN, 2, 3), [])
        self.assertFalse(pattern_matcher.matches(grid, PatternKind.ZIGZAG_DOWN, self.registry))
        self.assertFalse(pattern_matcher.matches(grid, PatternKind.COLUMN_5, self.registry))
        self.assertTrue(pattern_matcher.matches(grid, PatternKind.FOUR_CORNERS, self.registry))

    def test_empty_cells_never_match(self):
        grid = SymbolGrid.empty(3, 5)
        self.assertFalse(pattern_matcher.matches(grid, PatternKind.TOP_LINE, self.registry))

    def test_shape_positions(self):
        self.assertEqual(pattern_matcher.positions_for(PatternKind.DIAGONAL_UP, 3, 5),
                         [Position(2, 0), Position(1, 1), Position(0, 2)])
        self.assertEqual(pattern_matcher.positions_for(PatternKind.V_SHAPE, 3, 5),
                         [Position(0, 0), Position(0, 4), Position(1, 0), Position(1, 4),
                          Position(2, 1), Position(2, 2), Position(2, 3)])
        self.assertEqual(set(pattern_matcher.positions_for(PatternKind.DIAMOND, 3, 5)),
                         {Position(0, 2), Position(1, 1), Position(1, 2), Position(1, 3), Position(2, 2)})
        self.assertEqual(len(pattern_matcher.positions_for(PatternKind.BORDER, 3, 5)), 12)
        self.assertEqual(len(pattern_matcher.positions_for(PatternKind.CROSS, 3, 5)), 7)
        self.assertEqual(len(pattern_matcher.positions_for(PatternKind.X_PATTERN, 3, 5)), 5)

    def test_parse_is_case_insensitive(self):
        self.assertEqual(PatternKind.parse("Four_Corners"), PatternKind.FOUR_CORNERS)
        with self.assertRaises(ValueError):
            PatternKind.parse("spiral")


if __name__ == "__main__":
    unittest.main()
