"""
exprlang - Evaluator
Reduces an expression tree to a value node by direct tree walking.

Value forms are NumberNode, StringNode, BoolNode and NullNode. Operators
coerce their operands:
  - arithmetic and ordering operators need integers (NumberNode only)
  - '!', '&&' and '||' need booleans:
        true/false -> itself, number -> n > 0, string -> non-empty, null -> false
  - '==' and '!=' compare value forms structurally, across kinds
The input tree is never mutated.
"""

from typing import Optional
from .lexer import BinOp, UnOp, INT_MIN, INT_MAX
from .ast_nodes import (
    NumberNode, StringNode, BoolNode, NullNode, IdentifierNode,
    BinaryOpNode, UnaryOpNode, ASTNode
)
from .environment import Environment


class EvalError(Exception):
    def __init__(self, message: str, line: int = 0):
        super().__init__(f"[EvalError] Line {line}: {message}")
        self.line = line
        self.message = message


class FailedConversionError(EvalError):
    pass


class InvalidComparisonError(FailedConversionError):
    pass


class InvalidUnaryOperationError(EvalError):
    pass


class FailedBinEvaluationError(EvalError):
    pass


class DivisionByZeroError(FailedBinEvaluationError):
    def __init__(self, line: int = 0):
        super().__init__("Division by zero", line)


class UndefinedVariableError(EvalError):
    def __init__(self, name: str, line: int = 0):
        super().__init__(f"Variable '{name}' is not defined", line)
        self.name = name


# ---------------------------------------------------------------------- coercions

def coerce_to_integer(node: ASTNode) -> int:
    if isinstance(node, NumberNode):
        return node.value
    raise FailedConversionError(
        f"Cannot convert {_describe(node)} to an integer", node.line
    )


def coerce_to_boolean(node: ASTNode) -> bool:
    if isinstance(node, BoolNode):
        return node.value
    if isinstance(node, NumberNode):
        return node.value > 0
    if isinstance(node, StringNode):
        return len(node.value) > 0
    if isinstance(node, NullNode):
        return False
    raise FailedConversionError(
        f"Cannot convert {_describe(node)} to a boolean", node.line
    )


def _describe(node: ASTNode) -> str:
    if isinstance(node, IdentifierNode):
        return f"unresolved variable '{node.name}'"
    return type(node).__name__


def _truncating_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


_ARITHMETIC = {
    BinOp.ADD: lambda a, b: a + b,
    BinOp.SUB: lambda a, b: a - b,
    BinOp.MUL: lambda a, b: a * b,
    BinOp.DIV: _truncating_div,
}

_ORDERING = {
    BinOp.GT:  lambda a, b: a > b,
    BinOp.LT:  lambda a, b: a < b,
    BinOp.GTE: lambda a, b: a >= b,
    BinOp.LTE: lambda a, b: a <= b,
}

_LOGICAL = {
    BinOp.AND: lambda a, b: a and b,
    BinOp.OR:  lambda a, b: a or b,
}


class Evaluator:
    def __init__(self, env: Optional[Environment] = None):
        self.env = env

    def evaluate(self, node: ASTNode) -> ASTNode:
        method = f"_visit_{type(node).__name__}"
        visitor = getattr(self, method, None)
        if visitor is None:
            raise EvalError(
                f"Cannot evaluate {type(node).__name__}", getattr(node, 'line', 0)
            )
        return visitor(node)

    # ------------------------------------------------------------------ literals

    def _visit_NumberNode(self, node: NumberNode) -> ASTNode:
        return NumberNode(value=node.value, line=node.line)

    def _visit_StringNode(self, node: StringNode) -> ASTNode:
        return StringNode(value=node.value, line=node.line)

    def _visit_BoolNode(self, node: BoolNode) -> ASTNode:
        return BoolNode(value=node.value, line=node.line)

    def _visit_NullNode(self, node: NullNode) -> ASTNode:
        return NullNode(line=node.line)

    def _visit_IdentifierNode(self, node: IdentifierNode) -> ASTNode:
        if self.env is None:
            raise FailedConversionError(
                f"Cannot evaluate unresolved variable '{node.name}'", node.line
            )
        try:
            value = self.env.resolve(node.name)
        except KeyError:
            raise UndefinedVariableError(node.name, node.line) from None
        return self.evaluate(value)

    # ------------------------------------------------------------------ operators

    def _visit_UnaryOpNode(self, node: UnaryOpNode) -> ASTNode:
        if node.op != UnOp.BANG:
            raise InvalidUnaryOperationError(f"Unknown unary operator {node.op!r}", node.line)
        operand = self.evaluate(node.operand)
        try:
            value = coerce_to_boolean(operand)
        except FailedConversionError as e:
            raise InvalidUnaryOperationError(
                f"Invalid operand for '!': {e.message}", node.line
            ) from e
        return BoolNode(value=not value, line=node.line)

    def _visit_BinaryOpNode(self, node: BinaryOpNode) -> ASTNode:
        op = node.op
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)

        if op in _ARITHMETIC:
            a, b = coerce_to_integer(left), coerce_to_integer(right)
            if op == BinOp.DIV and b == 0:
                raise DivisionByZeroError(node.line)
            result = _ARITHMETIC[op](a, b)
            if not INT_MIN <= result <= INT_MAX:
                raise FailedBinEvaluationError(
                    f"Integer overflow in {a} {op.value} {b}", node.line
                )
            return NumberNode(value=result, line=node.line)

        if op == BinOp.EQ:
            return BoolNode(value=left == right, line=node.line)

        if op == BinOp.NEQ:
            return BoolNode(value=left != right, line=node.line)

        if op in _ORDERING:
            try:
                a, b = coerce_to_integer(left), coerce_to_integer(right)
            except FailedConversionError as e:
                raise InvalidComparisonError(
                    f"Cannot order {_describe(left)} and {_describe(right)} with '{op.value}'",
                    node.line
                ) from e
            return BoolNode(value=_ORDERING[op](a, b), line=node.line)

        if op in _LOGICAL:
            # Both sides are always evaluated and coerced, no short-circuit
            a, b = coerce_to_boolean(left), coerce_to_boolean(right)
            return BoolNode(value=_LOGICAL[op](a, b), line=node.line)

        raise FailedBinEvaluationError(f"Unknown binary operator {op!r}", node.line)


def evaluate(node: ASTNode, env: Optional[Environment] = None) -> ASTNode:
    """Evaluate an expression tree to a value node."""
    return Evaluator(env).evaluate(node)
