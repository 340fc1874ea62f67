"""
exprlang - Formatter
Renders values for display and turns AST nodes back into exprlang source.
"""

from .lexer import BinOp, INT_MIN, INT_MAX
from .ast_nodes import (
    ProgramNode, AssignmentNode, PrintNode, ExpressionStatementNode,
    NumberNode, StringNode, BoolNode, NullNode, IdentifierNode,
    BinaryOpNode, UnaryOpNode, ASTNode
)


class FormatError(Exception):
    def __init__(self, message: str, line: int = 0):
        super().__init__(f"[FormatError] Line {line}: {message}")
        self.line = line


_PRECEDENCE = {
    BinOp.AND: 0, BinOp.OR: 0,
    BinOp.EQ: 1, BinOp.NEQ: 1, BinOp.GT: 1, BinOp.LT: 1, BinOp.GTE: 1, BinOp.LTE: 1,
    BinOp.ADD: 2, BinOp.SUB: 2,
    BinOp.MUL: 3, BinOp.DIV: 3,
}


def to_text(value: ASTNode) -> str:
    """
    Display form of an evaluated value: numbers and booleans bare,
    strings quoted, null as `null`.
    """
    if isinstance(value, NumberNode):
        return str(value.value)
    return to_source(value)


def to_source(node: ASTNode) -> str:
    """Return exprlang source text for a statement, expression or program."""
    if isinstance(node, ProgramNode):
        return "\n".join(to_source(s) for s in node.statements)

    if isinstance(node, AssignmentNode):
        return f"let {node.name} = {_emit_expr(node.value)};"
    if isinstance(node, PrintNode):
        return f"print {_emit_expr(node.value)};"
    if isinstance(node, ExpressionStatementNode):
        return f"{_emit_expr(node.expr)};"

    return _emit_expr(node)


def _emit_expr(node: ASTNode) -> str:
    if isinstance(node, NumberNode):
        return _emit_number(node.value)

    if isinstance(node, StringNode):
        return f'"{node.value}"'

    if isinstance(node, BoolNode):
        return "true" if node.value else "false"

    if isinstance(node, NullNode):
        return "null"

    if isinstance(node, IdentifierNode):
        return node.name

    if isinstance(node, BinaryOpNode):
        left = _maybe_paren(node.left, node.op, right_side=False)
        right = _maybe_paren(node.right, node.op, right_side=True)
        return f"{left} {node.op.value} {right}"

    if isinstance(node, UnaryOpNode):
        operand = _emit_expr(node.operand)
        if isinstance(node.operand, BinaryOpNode):
            operand = f"({operand})"
        return f"{node.op.value}{operand}"

    raise FormatError(f"Unknown AST node type: {type(node).__name__}", getattr(node, 'line', 0))


def _emit_number(value: int) -> str:
    # The grammar has no negative literals and 2147483648 does not lex
    if value == INT_MIN:
        return f"(0 - {INT_MAX} - 1)"
    if value < 0:
        return f"(0 - {-value})"
    return str(value)


def _maybe_paren(node: ASTNode, parent_op: BinOp, right_side: bool) -> str:
    """Parenthesize operands that bind looser than their parent."""
    code = _emit_expr(node)
    if isinstance(node, BinaryOpNode):
        prec, parent = _PRECEDENCE[node.op], _PRECEDENCE[parent_op]
        # All binary tiers are left-associative
        if prec < parent or (right_side and prec == parent):
            return f"({code})"
    return code
