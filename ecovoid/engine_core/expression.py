"""
Expression Evaluator - Numeric formulas in effect rules.

Rule values can be plain integers or formulas over a small vocabulary:

    CARD_VALUE
    floor(CARD_VALUE / 2)
    ceil(CARD_VALUE / 3) + 1
    max(1, CARD_VALUE - 5)

Formulas are parsed with the ast module and only arithmetic, the names
in the context and the whitelisted functions are allowed. Nothing is
ever passed to eval().
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable
import ast
import math
import operator


class ExpressionError(ValueError):
    """A formula could not be parsed or evaluated."""


FUNCTIONS: dict[str, Callable[..., float]] = {
    "floor": math.floor,
    "ceil": math.ceil,
    "min": min,
    "max": max,
    "abs": abs,
}

BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
}

UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

KNOWN_VARIABLES = ("CARD_VALUE", "TURN", "CORRUPTION")


@dataclass
class ExpressionContext:
    """Variables available to a formula."""
    variables: dict[str, float] = field(default_factory=dict)

    @classmethod
    def for_card(cls, card_value: int, **extra: float) -> ExpressionContext:
        return cls(variables={"CARD_VALUE": card_value, **extra})


class ExpressionEvaluator:
    """
    Evaluates rule formulas.

    Parsed trees are cached by source text, so a ruleset pays the parse
    cost once.
    """

    def __init__(self):
        self._cache: dict[str, ast.Expression] = {}

    def compile(self, expr: str) -> ast.Expression:
        """Parse and check a formula. Raises ExpressionError."""
        if expr in self._cache:
            return self._cache[expr]
        try:
            tree = ast.parse(expr.strip(), mode="eval")
        except SyntaxError as e:
            raise ExpressionError(f"Invalid formula {expr!r}: {e.msg}") from e
        self._check(tree.body, expr)
        self._cache[expr] = tree
        return tree

    def evaluate(self, expr: str | int | float, context: ExpressionContext | None = None) -> float:
        """Evaluate a formula (or pass a number through)."""
        if isinstance(expr, bool):
            raise ExpressionError(f"Boolean is not a valid value: {expr!r}")
        if isinstance(expr, (int, float)):
            return expr
        context = context or ExpressionContext()
        text = expr.strip()
        if text.lstrip("-").isdigit():
            return int(text)
        tree = self.compile(text)
        try:
            return self._eval(tree.body, context)
        except ZeroDivisionError as e:
            raise ExpressionError(f"Division by zero in {expr!r}") from e

    def evaluate_int(self, expr: str | int | float, context: ExpressionContext | None = None) -> int:
        """Evaluate and floor to a non-negative integer."""
        return max(0, math.floor(self.evaluate(expr, context)))

    def _check(self, node: ast.AST, source: str) -> None:
        if isinstance(node, ast.Constant):
            if not isinstance(node.value, (int, float)) or isinstance(node.value, bool):
                raise ExpressionError(f"Only numbers allowed in {source!r}")
        elif isinstance(node, ast.Name):
            if node.id not in KNOWN_VARIABLES:
                raise ExpressionError(f"Unknown variable {node.id!r} in {source!r}")
        elif isinstance(node, ast.BinOp):
            if type(node.op) not in BINARY_OPS:
                raise ExpressionError(f"Operator not allowed in {source!r}")
            self._check(node.left, source)
            self._check(node.right, source)
        elif isinstance(node, ast.UnaryOp):
            if type(node.op) not in UNARY_OPS:
                raise ExpressionError(f"Operator not allowed in {source!r}")
            self._check(node.operand, source)
        elif isinstance(node, ast.Call):
            if not isinstance(node.func, ast.Name) or node.func.id not in FUNCTIONS:
                raise ExpressionError(f"Unknown function in {source!r}")
            if node.func.id in ("min", "max"):
                arity_ok = len(node.args) >= 2
            else:
                arity_ok = len(node.args) == 1
            if node.keywords or not arity_ok:
                raise ExpressionError(f"Bad call arguments in {source!r}")
            for arg in node.args:
                self._check(arg, source)
        else:
            raise ExpressionError(f"Unsupported syntax in {source!r}")

    def _eval(self, node: ast.AST, context: ExpressionContext) -> Any:
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, ast.Name):
            return context.variables.get(node.id, 0)
        if isinstance(node, ast.BinOp):
            op = BINARY_OPS[type(node.op)]
            return op(self._eval(node.left, context), self._eval(node.right, context))
        if isinstance(node, ast.UnaryOp):
            return UNARY_OPS[type(node.op)](self._eval(node.operand, context))
        if isinstance(node, ast.Call):
            args = [self._eval(arg, context) for arg in node.args]
            return FUNCTIONS[node.func.id](*args)
        raise ExpressionError("Unsupported syntax")


# Convenience function
def evaluate_expression(expr: str | int, card_value: int = 0, **variables: float) -> int:
    """Evaluate a rule value for a card."""
    context = ExpressionContext.for_card(card_value, **variables)
    return ExpressionEvaluator().evaluate_int(expr, context)
