"""
exprlang - Interpreter
Runs all front-end phases in sequence and executes the resulting statements.
"""

import json
import sys
from enum import Enum
from typing import List, Optional, TextIO
from .lexer import tokenize, LexerError
from .parser import Parser, ParseError
from .ast_nodes import (
    AssignmentNode, PrintNode, ExpressionStatementNode, StringNode, ASTNode
)
from .evaluator import Evaluator, EvalError
from .environment import Environment
from .optimizer import Optimizer
from .formatter import to_text


class InterpreterError(Exception):
    """Unified error wrapper for every phase."""
    pass


class UnsupportedStatementError(InterpreterError):
    def __init__(self, message: str, line: int = 0):
        super().__init__(f"[UnsupportedStatement] Line {line}: {message}")
        self.line = line


class Interpreter:
    def __init__(
        self,
        env: Optional[Environment] = None,
        out: Optional[TextIO] = None,
    ):
        """
        env : binding store for `let`; without one, assignments cannot run
        out : stream that `print` writes to (default: sys.stdout)
        """
        self.env = env
        self.out = out
        self._evaluator = Evaluator(env)

    def run(self, statements: List[ASTNode]) -> List[ASTNode]:
        """Execute statements in order; return the values of expression statements."""
        results = []
        for stmt in statements:
            value = self.execute(stmt)
            if value is not None:
                results.append(value)
        return results

    def execute(self, stmt: ASTNode) -> Optional[ASTNode]:
        if isinstance(stmt, ExpressionStatementNode):
            return self._evaluator.evaluate(stmt.expr)

        if isinstance(stmt, PrintNode):
            value = self._evaluator.evaluate(stmt.value)
            text = value.value if isinstance(value, StringNode) else to_text(value)
            out = self.out if self.out is not None else sys.stdout
            out.write(text + "\n")
            return None

        if isinstance(stmt, AssignmentNode):
            if self.env is None:
                raise UnsupportedStatementError(
                    f"Assignment to '{stmt.name}' is not yet supported without an environment",
                    stmt.line
                )
            self.env.assign(stmt.name, self._evaluator.evaluate(stmt.value))
            return None

        raise UnsupportedStatementError(
            f"Unknown statement type: {type(stmt).__name__}", getattr(stmt, 'line', 0)
        )


def parse_source(source: str, opt_level: int = 0, debug: bool = False) -> List[ASTNode]:
    """
    Tokenize and parse exprlang source text.

    Parameters
    ----------
    source     : exprlang source code string
    opt_level  : 0 = no optimizations, 1 = constant folding
    debug      : print each phase summary to stderr

    Returns
    -------
    The list of parsed (and possibly folded) statements

    Raises
    ------
    InterpreterError on any phase failure
    """
    def log(msg):
        if debug:
            print(f"[exprlang] {msg}", file=sys.stderr)

    # ── Phase 1: Lexical Analysis ─────────────────────────────────────────────
    log("Phase 1: Lexical analysis")
    try:
        tokens = tokenize(source)
    except LexerError as e:
        raise InterpreterError(str(e)) from e

    log(f"  {len(tokens)} tokens produced")

    # ── Phase 2: Parsing ──────────────────────────────────────────────────────
    log("Phase 2: Parsing")
    try:
        statements = Parser(tokens).get_statements()
    except ParseError as e:
        raise InterpreterError(str(e)) from e
    except RecursionError as e:
        raise InterpreterError("[ParseError] Expression nesting too deep") from e

    log(f"  {len(statements)} statements")

    # ── Phase 3: Optimization ─────────────────────────────────────────────────
    log(f"Phase 3: Optimization (level {opt_level})")
    try:
        statements = Optimizer(opt_level=opt_level).optimize(statements)
    except ParseError as e:
        raise InterpreterError(str(e)) from e
    except RecursionError as e:
        raise InterpreterError("[ParseError] Expression nesting too deep to fold") from e

    return statements


def run_source(
    source: str,
    env: Optional[Environment] = None,
    opt_level: int = 0,
    out: Optional[TextIO] = None,
    debug: bool = False,
) -> List[ASTNode]:
    """
    Parse and execute exprlang source text.

    Returns the values of all expression statements, in source order.
    Raises InterpreterError on any phase failure.
    """
    statements = parse_source(source, opt_level=opt_level, debug=debug)

    if debug:
        print("[exprlang] Phase 4: Execution", file=sys.stderr)
    try:
        results = Interpreter(env=env, out=out).run(statements)
    except EvalError as e:
        raise InterpreterError(str(e)) from e
    except RecursionError as e:
        raise InterpreterError("[EvalError] Expression nesting too deep to evaluate") from e

    if debug:
        print(f"[exprlang]   {len(results)} values produced", file=sys.stderr)
    return results


# ── AST serialization (for --emit-ast) ────────────────────────────────────────

def ast_to_json(node) -> str:
    try:
        return json.dumps(_node_to_dict(node), indent=2)
    except RecursionError as e:
        raise InterpreterError("[exprlang] AST nesting too deep to serialize") from e


def _node_to_dict(node):
    if node is None:
        return None
    if isinstance(node, list):
        return [_node_to_dict(n) for n in node]
    if isinstance(node, Enum):
        return node.name  # BinOp / UnOp
    if not hasattr(node, '__dataclass_fields__'):
        return node  # primitive
    d = {"_type": type(node).__name__}
    for field_name in node.__dataclass_fields__:
        val = getattr(node, field_name)
        d[field_name] = _node_to_dict(val)
    return d
