"""
exprlang - a small expression-oriented scripting language front end.
"""

from .lexer import tokenize, Token, TokenType, BinOp, UnOp, LexerError
from .parser import Parser, ParseError
from .evaluator import evaluate, coerce_to_integer, coerce_to_boolean, EvalError
from .environment import Environment
from .formatter import to_text, to_source
from .interpreter import Interpreter, parse_source, run_source, InterpreterError

__version__ = "0.1.0"
