"""
exprlang - AST Node Definitions
Expression and statement nodes. The four literal expression nodes double
as the evaluator's value forms.
"""

from dataclasses import dataclass, field
from typing import List

from .lexer import BinOp, UnOp


@dataclass
class ASTNode:
    """Base class for all AST nodes."""
    line: int = field(default=0, compare=False)


# ---------------------------------------------------------------- expressions

@dataclass
class NumberNode(ASTNode):
    """A 32-bit integer literal."""
    value: int = 0


@dataclass
class StringNode(ASTNode):
    """A string literal."""
    value: str = ""


@dataclass
class BoolNode(ASTNode):
    """true / false"""
    value: bool = False


@dataclass
class NullNode(ASTNode):
    """null"""


@dataclass
class IdentifierNode(ASTNode):
    """A variable reference."""
    name: str = ""


@dataclass
class BinaryOpNode(ASTNode):
    """left op right"""
    left: ASTNode = None
    op: BinOp = None
    right: ASTNode = None


@dataclass
class UnaryOpNode(ASTNode):
    """op operand"""
    op: UnOp = None
    operand: ASTNode = None


VALUE_NODES = (NumberNode, StringNode, BoolNode, NullNode)


def is_value(node: ASTNode) -> bool:
    """True if node is already in value form."""
    return isinstance(node, VALUE_NODES)


# ---------------------------------------------------------------- statements

@dataclass
class AssignmentNode(ASTNode):
    """let name = value"""
    name: str = ""
    value: ASTNode = None


@dataclass
class PrintNode(ASTNode):
    """print value"""
    value: ASTNode = None


@dataclass
class ExpressionStatementNode(ASTNode):
    """A bare expression used as a statement."""
    expr: ASTNode = None


@dataclass
class ProgramNode(ASTNode):
    """Root node of the program."""
    statements: List[ASTNode] = field(default_factory=list)
