"""
exprlang - Lexer
Tokenizes exprlang source code into a flat, finite token list.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Union
from enum import Enum, auto


class TokenType(Enum):
    # Literals
    INT        = auto()
    STRING     = auto()
    BOOL       = auto()   # true false
    NULL       = auto()   # null
    IDENTIFIER = auto()
    # Keywords
    KEYWORD    = auto()   # let print
    # Operators / punctuation
    OPERATOR   = auto()   # carries a BinOp or UnOp in Token.op
    ASSIGN     = auto()   # =
    SEMI       = auto()   # ;
    LPAREN     = auto()   # (
    RPAREN     = auto()   # )


class BinOp(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    EQ  = "=="
    NEQ = "!="
    GT  = ">"
    LT  = "<"
    GTE = ">="
    LTE = "<="
    AND = "&&"
    OR  = "||"


class UnOp(Enum):
    BANG = "!"


KEYWORDS = {"let", "print"}
BOOL_LITERALS = {"true": True, "false": False}

INT_MIN = -(2 ** 31)
INT_MAX = 2 ** 31 - 1


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: object = None
    op: Optional[Union[BinOp, UnOp]] = None
    line: int = field(default=1, compare=False)

    @property
    def text(self) -> str:
        """Source spelling of the token."""
        if self.type == TokenType.STRING:
            return f'"{self.value}"'
        if self.type == TokenType.BOOL:
            return "true" if self.value else "false"
        return str(self.value)

    def __repr__(self):
        if self.op is not None:
            return f"Token({self.type.name}, {self.op.name}, line={self.line})"
        return f"Token({self.type.name}, {self.value!r}, line={self.line})"


class LexerError(Exception):
    def __init__(self, message: str, line: int):
        super().__init__(f"[LexerError] Line {line}: {message}")
        self.line = line


class IllegalCharacterError(LexerError):
    def __init__(self, char: str, line: int):
        super().__init__(f"Illegal character: {char!r}", line)
        self.char = char


class UnterminatedStringError(LexerError):
    def __init__(self, line: int):
        super().__init__("Unterminated string literal", line)


class IntegerLiteralError(LexerError):
    def __init__(self, literal: str, line: int):
        super().__init__(f"Integer literal out of range: {literal}", line)
        self.literal = literal


# Token specification: ordered list of (TokenType, regex) pairs.
# Two-character operators come before their one-character prefixes.
_TOKEN_SPEC = [
    (TokenType.OPERATOR,   r'==|!=|>=|<=|&&|\|\||[+\-*/><!]'),
    (TokenType.ASSIGN,     r'='),
    (TokenType.SEMI,       r';'),
    (TokenType.LPAREN,     r'\('),
    (TokenType.RPAREN,     r'\)'),
    (TokenType.INT,        r'\d+'),
    (TokenType.IDENTIFIER, r'[A-Za-z_][A-Za-z0-9_]*'),
]

_MASTER_RE = re.compile(
    r'(?:' + '|'.join(f'(?P<T{i}>{spec[1]})' for i, spec in enumerate(_TOKEN_SPEC)) + r')',
    re.ASCII
)

_WHITESPACE_RE = re.compile(r'[ \t\r]+')
_COMMENT_RE    = re.compile(r'//[^\n]*')
_NEWLINE_RE    = re.compile(r'\n')

_OPERATORS = {op.value: op for op in BinOp}
_OPERATORS[UnOp.BANG.value] = UnOp.BANG


def tokenize(source: str) -> List[Token]:
    """
    Convert exprlang source string into a list of Tokens.
    Raises a LexerError subclass on an illegal character, an unterminated
    string or an out-of-range integer literal.
    """
    tokens: List[Token] = []
    line = 1
    pos = 0
    length = len(source)

    while pos < length:
        m = _WHITESPACE_RE.match(source, pos)
        if m:
            pos = m.end()
            continue

        m = _COMMENT_RE.match(source, pos)
        if m:
            pos = m.end()
            continue

        m = _NEWLINE_RE.match(source, pos)
        if m:
            line += 1
            pos = m.end()
            continue

        # Strings may span lines, so they are scanned by hand
        if source[pos] == '"':
            end = source.find('"', pos + 1)
            if end == -1:
                raise UnterminatedStringError(line)
            text = source[pos + 1:end]
            tokens.append(Token(TokenType.STRING, text, line=line))
            line += text.count("\n")
            pos = end + 1
            continue

        m = _MASTER_RE.match(source, pos)
        if not m:
            raise IllegalCharacterError(source[pos], line)

        raw = m.group(0)
        tok_type = None
        for i, (ttype, _) in enumerate(_TOKEN_SPEC):
            if m.group(f'T{i}') is not None:
                tok_type = ttype
                break

        tokens.append(_make_token(tok_type, raw, line))
        pos = m.end()

    return tokens


def _make_token(tok_type: TokenType, raw: str, line: int) -> Token:
    if tok_type == TokenType.OPERATOR:
        return Token(TokenType.OPERATOR, raw, op=_OPERATORS[raw], line=line)

    if tok_type == TokenType.INT:
        value = int(raw)
        if value > INT_MAX:
            raise IntegerLiteralError(raw, line)
        return Token(TokenType.INT, value, line=line)

    # Reclassify identifiers that are keywords or literals
    if tok_type == TokenType.IDENTIFIER:
        if raw in KEYWORDS:
            return Token(TokenType.KEYWORD, raw, line=line)
        if raw in BOOL_LITERALS:
            return Token(TokenType.BOOL, BOOL_LITERALS[raw], line=line)
        if raw == "null":
            return Token(TokenType.NULL, raw, line=line)

    return Token(tok_type, raw, line=line)
