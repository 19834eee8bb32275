# slot_engine/domain/machine/entities/reward_command.py
import ast
import operator
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict

BET_PLACEHOLDER = "%bet%"
_BET_NAME = "bet"

_COMMAND_PATTERN = re.compile(r"^(\w+):\s*(.+)$")

_BINARY_OPERATORS: Dict[type, Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}

_UNARY_OPERATORS: Dict[type, Callable[[float], float]] = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}


class CommandKind(Enum):
    MONEY = "money"
    SOUND = "sound"
    MESSAGE = "message"
    COMMAND = "command"


class InvalidExpressionError(ValueError):
    pass


class MoneyExpression:
    """
    Arithmetic payout expression over ``%bet%``.

    Only numbers, the bet placeholder, ``+ - * /``, unary signs and
    parentheses are allowed. The expression is parsed once; evaluation walks
    the parsed tree and never calls ``eval``.
    """
    def __init__(self, source: str):
        """
        Raises:
            InvalidExpressionError: If the expression is not plain arithmetic
        """
        self.source = source
        try:
            tree = ast.parse(source.replace(BET_PLACEHOLDER, _BET_NAME).strip(), mode="eval")
        except SyntaxError as e:
            raise InvalidExpressionError(f"Cannot parse money expression '{source}': {e.msg}") from e

        self._check(tree.body)
        self._tree = tree.body

    def _check(self, node: ast.AST) -> None:
        if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
            self._check(node.left)
            self._check(node.right)
        elif isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
            self._check(node.operand)
        elif isinstance(node, ast.Constant) and type(node.value) in (int, float):
            pass
        elif isinstance(node, ast.Name) and node.id == _BET_NAME:
            pass
        else:
            raise InvalidExpressionError(
                f"Unsupported element '{ast.dump(node)}' in money expression '{self.source}'"
            )

    def evaluate(self, bet: float) -> float:
        """Value of the expression for ``bet``; a division by zero yields 0."""
        try:
            return float(self._evaluate(self._tree, bet))
        except ZeroDivisionError:
            return 0.0

    def _evaluate(self, node: ast.AST, bet: float) -> float:
        if isinstance(node, ast.BinOp):
            return _BINARY_OPERATORS[type(node.op)](self._evaluate(node.left, bet),
                                                    self._evaluate(node.right, bet))
        if isinstance(node, ast.UnaryOp):
            return _UNARY_OPERATORS[type(node.op)](self._evaluate(node.operand, bet))
        if isinstance(node, ast.Name):
            return bet
        return node.value

    def __repr__(self) -> str:
        return f"MoneyExpression({self.source!r})"


@dataclass(frozen=True)
class RewardCommand:
    """
    One action attached to a reward rule.

    Only money commands contribute to a rule's payout value; the other kinds
    are carried through untouched for the collaborators that execute them.
    """
    kind: CommandKind
    value: str
    expression: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def parse(cls, raw: str) -> "RewardCommand":
        """
        Parse ``"kind: value"``; anything without a known kind is a console command.

        Raises:
            InvalidExpressionError: If a money command's expression is invalid
        """
        text = str(raw).strip()
        match = _COMMAND_PATTERN.match(text)
        if not match:
            return cls(CommandKind.COMMAND, text)

        kind_name, value = match.group(1).lower(), match.group(2).strip()
        try:
            kind = CommandKind(kind_name)
        except ValueError:
            return cls(CommandKind.COMMAND, text)

        if kind == CommandKind.MONEY:
            return cls(kind, value, MoneyExpression(value))
        return cls(kind, value)

    @classmethod
    def money(cls, expression: str) -> "RewardCommand":
        return cls(CommandKind.MONEY, expression, MoneyExpression(expression))

    def payout(self, bet: float) -> float:
        if self.kind != CommandKind.MONEY:
            return 0.0
        return self.expression.evaluate(bet)

    def to_string(self) -> str:
        return f"{self.kind.value}: {self.value}"
