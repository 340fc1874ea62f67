"""
exprlang - Optimizer
Constant folding over parsed statements.

opt_level 0 leaves the tree untouched. opt_level 1 replaces every
identifier-free expression subtree with its evaluated value, so
`let x = (1 + 1) * 3;` becomes `let x = 6;`. Subtrees that reference a
variable are kept, but their constant children are still folded.
"""

from typing import List
from .ast_nodes import (
    AssignmentNode, PrintNode, ExpressionStatementNode,
    IdentifierNode, BinaryOpNode, UnaryOpNode, ASTNode, is_value
)
from .evaluator import evaluate, EvalError
from .parser import ParseError


class Optimizer:
    def __init__(self, opt_level: int = 1):
        """
        opt_level 0 – no optimizations
        opt_level 1 – constant folding
        """
        self.opt_level = opt_level

    def optimize(self, statements: List[ASTNode]) -> List[ASTNode]:
        if self.opt_level == 0:
            return statements
        return [self._visit(s) for s in statements]

    # ------------------------------------------------------------------ visitor

    def _visit(self, node: ASTNode) -> ASTNode:
        method = f"_visit_{type(node).__name__}"
        visitor = getattr(self, method, self._visit_leaf)
        return visitor(node)

    def _visit_leaf(self, node: ASTNode) -> ASTNode:
        return node

    def _visit_AssignmentNode(self, node: AssignmentNode) -> ASTNode:
        return AssignmentNode(name=node.name, value=self._visit(node.value), line=node.line)

    def _visit_PrintNode(self, node: PrintNode) -> ASTNode:
        return PrintNode(value=self._visit(node.value), line=node.line)

    def _visit_ExpressionStatementNode(self, node: ExpressionStatementNode) -> ASTNode:
        return ExpressionStatementNode(expr=self._visit(node.expr), line=node.line)

    def _visit_BinaryOpNode(self, node: BinaryOpNode) -> ASTNode:
        folded = BinaryOpNode(
            left=self._visit(node.left), op=node.op,
            right=self._visit(node.right), line=node.line
        )
        if is_value(folded.left) and is_value(folded.right):
            return self._fold(folded)
        return folded

    def _visit_UnaryOpNode(self, node: UnaryOpNode) -> ASTNode:
        folded = UnaryOpNode(op=node.op, operand=self._visit(node.operand), line=node.line)
        if is_value(folded.operand):
            return self._fold(folded)
        return folded

    def _visit_IdentifierNode(self, node: IdentifierNode) -> ASTNode:
        return node

    # ------------------------------------------------------------------ helpers

    def _fold(self, node: ASTNode) -> ASTNode:
        try:
            return evaluate(node)
        except EvalError as e:
            raise ParseError(f"Constant expression cannot be evaluated: {e}", node.line) from e
