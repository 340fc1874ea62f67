"""
exprlang - Recursive Descent Parser
Splits a token list into statements and parses each one into a typed AST.
"""

from typing import List, Optional, Sequence
from .lexer import Token, TokenType, BinOp, UnOp
from .ast_nodes import (
    ProgramNode, AssignmentNode, PrintNode, ExpressionStatementNode,
    NumberNode, StringNode, BoolNode, NullNode, IdentifierNode,
    BinaryOpNode, UnaryOpNode, ASTNode
)


class ParseError(Exception):
    def __init__(self, message: str, line: int):
        super().__init__(f"[ParseError] Line {line}: {message}")
        self.line = line


class InvalidTokenIndexError(ParseError):
    def __init__(self, index: int, line: int):
        super().__init__(f"Token index {index} is out of range", line)
        self.index = index


class EmptyMatchError(ParseError):
    def __init__(self, line: int):
        super().__init__("Empty statement", line)


class InvalidLetStatementError(ParseError):
    def __init__(self, line: int):
        super().__init__("Incomplete let statement, expected 'let <identifier> = <expression>'", line)


class ExpectedTokenError(ParseError):
    def __init__(self, expected: str, found: Optional[Token], line: int):
        if found is None:
            got = "end of input"
        else:
            got = f"{found.type.name} ({found.text!r})"
        super().__init__(f"Expected {expected} but got {got}", line)
        self.expected = expected
        self.found = found


class UnknownKeywordError(ParseError):
    def __init__(self, keyword: str, line: int):
        super().__init__(f"Unknown keyword {keyword!r} at start of statement", line)
        self.keyword = keyword


def _op_token(op) -> Token:
    return Token(TokenType.OPERATOR, op.value, op=op)


_LOGICAL_OPS        = tuple(_op_token(op) for op in (BinOp.AND, BinOp.OR))
_COMPARE_OPS        = tuple(_op_token(op) for op in (
    BinOp.EQ, BinOp.NEQ, BinOp.GT, BinOp.LT, BinOp.GTE, BinOp.LTE
))
_ADDITIVE_OPS       = tuple(_op_token(op) for op in (BinOp.ADD, BinOp.SUB))
_MULTIPLICATIVE_OPS = tuple(_op_token(op) for op in (BinOp.MUL, BinOp.DIV))
_BANG               = _op_token(UnOp.BANG)

# Pattern slots of these kinds match any token of the same kind
_WILDCARD_TYPES = (TokenType.INT, TokenType.IDENTIFIER)


class Parser:
    def __init__(self, tokens: Sequence[Token]):
        self._tokens: List[Token] = list(tokens)
        self._pos = 0

    # ------------------------------------------------------------------ cursor

    @property
    def pos(self) -> int:
        """Current cursor index into the token list."""
        return self._pos

    def advance(self) -> Optional[Token]:
        """Move past the current token and return it (None past the end)."""
        tok = self._peek()
        self._pos += 1
        return tok

    def previous(self) -> Token:
        return self.at(self._pos - 1)

    def current(self) -> Token:
        return self.at(self._pos)

    def at(self, index: int) -> Token:
        if index < 0 or index >= len(self._tokens):
            raise InvalidTokenIndexError(index, self._line_at(index))
        return self._tokens[index]

    def is_at_end(self) -> bool:
        """True once the cursor is on or past the last token."""
        return self._pos + 1 >= len(self._tokens)

    def _peek(self) -> Optional[Token]:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _line_at(self, index: int) -> int:
        if not self._tokens:
            return 1
        index = min(max(index, 0), len(self._tokens) - 1)
        return self._tokens[index].line

    def _expect(self, ttype: TokenType, expected: str) -> Token:
        tok = self._peek()
        if tok is None or tok.type != ttype:
            raise ExpectedTokenError(expected, tok, self._line_at(self._pos))
        return self.advance()

    # ------------------------------------------------------------------ matching

    def matches(self, *candidates: Token) -> Optional[Token]:
        """
        Consume and return the current token if it equals one of the
        candidates. The cursor is left untouched when nothing matches.
        """
        tok = self._peek()
        if tok is None:
            return None
        for candidate in candidates:
            if tok == candidate:
                self._pos += 1
                return tok
        return None

    def match_rule(self, pattern: Sequence[Token]) -> bool:
        """
        Consume a fixed sequence of tokens. INT and IDENTIFIER slots in the
        pattern match any token of that kind, other slots must be equal.
        On any mismatch the cursor is restored and False is returned.
        """
        saved = self._pos
        for expected in pattern:
            tok = self._peek()
            if tok is None or not _fits(expected, tok):
                self._pos = saved
                return False
            self._pos += 1
        return True

    # ------------------------------------------------------------------ public

    def parse(self) -> ProgramNode:
        return ProgramNode(statements=self.get_statements(), line=1)

    def get_statements(self) -> List[ASTNode]:
        """Parse every ';'-separated statement until the tokens run out."""
        stmts = []
        while self._pos < len(self._tokens):
            stmts.append(self.stmt())
        return stmts

    def stmt(self) -> ASTNode:
        """Parse the statement slice at the cursor and skip its ';'."""
        start = self._pos
        end = start
        while end < len(self._tokens) and self._tokens[end].type != TokenType.SEMI:
            end += 1

        if end == start:
            raise EmptyMatchError(self._line_at(start))

        node = statement_from_tokens(self._tokens[start:end])
        self._pos = end + 1 if end < len(self._tokens) else end
        return node

    # ------------------------------------------------------------------ expressions

    def expr(self) -> ASTNode:
        left = self.compare()

        while True:
            op_tok = self.matches(*_LOGICAL_OPS)
            if op_tok is None:
                return left
            right = self.compare()
            left = BinaryOpNode(left=left, op=op_tok.op, right=right, line=op_tok.line)

    def compare(self) -> ASTNode:
        left = self._parse_additive()

        while True:
            op_tok = self.matches(*_COMPARE_OPS)
            if op_tok is None:
                return left
            right = self._parse_additive()
            left = BinaryOpNode(left=left, op=op_tok.op, right=right, line=op_tok.line)

    def _parse_additive(self) -> ASTNode:
        left = self._parse_multiplicative()

        while True:
            op_tok = self.matches(*_ADDITIVE_OPS)
            if op_tok is None:
                return left
            right = self._parse_multiplicative()
            left = BinaryOpNode(left=left, op=op_tok.op, right=right, line=op_tok.line)

    def _parse_multiplicative(self) -> ASTNode:
        left = self._parse_unary()

        while True:
            op_tok = self.matches(*_MULTIPLICATIVE_OPS)
            if op_tok is None:
                return left
            right = self._parse_unary()
            left = BinaryOpNode(left=left, op=op_tok.op, right=right, line=op_tok.line)

    def _parse_unary(self) -> ASTNode:
        op_tok = self.matches(_BANG)
        if op_tok is not None:
            operand = self._parse_unary()
            return UnaryOpNode(op=UnOp.BANG, operand=operand, line=op_tok.line)
        return self._parse_primary()

    def _parse_primary(self) -> ASTNode:
        tok = self._peek()
        if tok is None:
            raise ExpectedTokenError("expression", None, self._line_at(self._pos))

        if tok.type == TokenType.LPAREN:
            self.advance()
            expr = self.expr()
            self._expect(TokenType.RPAREN, "')'")
            return expr

        if tok.type == TokenType.INT:
            self.advance()
            return NumberNode(value=tok.value, line=tok.line)

        if tok.type == TokenType.STRING:
            self.advance()
            return StringNode(value=tok.value, line=tok.line)

        if tok.type == TokenType.BOOL:
            self.advance()
            return BoolNode(value=tok.value, line=tok.line)

        if tok.type == TokenType.NULL:
            self.advance()
            return NullNode(line=tok.line)

        if tok.type == TokenType.IDENTIFIER:
            self.advance()
            return IdentifierNode(name=tok.value, line=tok.line)

        raise ExpectedTokenError("expression", tok, tok.line)


# ---------------------------------------------------------------------- statements

def statement_from_tokens(tokens: Sequence[Token]) -> ASTNode:
    """Classify one statement slice (without its ';') and parse it."""
    first = tokens[0]

    if first.type != TokenType.KEYWORD:
        return ExpressionStatementNode(expr=_parse_whole(tokens), line=first.line)

    if first.value == "let":
        return _parse_let(tokens)

    if first.value == "print":
        if len(tokens) < 2:
            raise ExpectedTokenError("expression", None, first.line)
        return PrintNode(value=_parse_whole(tokens[1:]), line=first.line)

    raise UnknownKeywordError(first.value, first.line)


def _parse_let(tokens: Sequence[Token]) -> AssignmentNode:
    let_tok = tokens[0]
    if len(tokens) < 2:
        raise InvalidLetStatementError(let_tok.line)

    name_tok = tokens[1]
    if name_tok.type != TokenType.IDENTIFIER:
        raise ExpectedTokenError("identifier", name_tok, name_tok.line)

    if len(tokens) < 3:
        raise InvalidLetStatementError(let_tok.line)
    if tokens[2].type != TokenType.ASSIGN:
        raise ExpectedTokenError("'='", tokens[2], tokens[2].line)

    # let statements must be at least 4 tokens long
    if len(tokens) < 4:
        raise InvalidLetStatementError(let_tok.line)

    value = _parse_whole(tokens[3:])
    return AssignmentNode(name=name_tok.value, value=value, line=let_tok.line)


def _parse_whole(tokens: Sequence[Token]) -> ASTNode:
    parser = Parser(tokens)
    expr = parser.expr()
    leftover = parser._peek()
    if leftover is not None:
        raise ExpectedTokenError("';'", leftover, leftover.line)
    return expr


def _fits(expected: Token, tok: Token) -> bool:
    if expected.type in _WILDCARD_TYPES:
        return tok.type == expected.type
    return tok == expected
