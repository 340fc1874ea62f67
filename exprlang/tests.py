"""
exprlang - Test Suite
Tests for Lexer, Parser, Evaluator, Optimizer, Formatter, Interpreter and CLI.
"""

import sys
import os
import io
import json
import unittest
from contextlib import redirect_stdout, redirect_stderr

# Allow running from project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from exprlang.lexer import (
    tokenize, Token, TokenType, BinOp, UnOp, LexerError,
    IllegalCharacterError, UnterminatedStringError, IntegerLiteralError
)
from exprlang.parser import (
    Parser, ParseError, InvalidTokenIndexError, EmptyMatchError,
    InvalidLetStatementError, ExpectedTokenError, UnknownKeywordError,
    statement_from_tokens
)
from exprlang.ast_nodes import (
    AssignmentNode, PrintNode, ExpressionStatementNode, ProgramNode,
    NumberNode, StringNode, BoolNode, NullNode, IdentifierNode,
    BinaryOpNode, UnaryOpNode
)
from exprlang.evaluator import (
    Evaluator, evaluate, coerce_to_integer, coerce_to_boolean, EvalError,
    FailedConversionError, InvalidComparisonError, InvalidUnaryOperationError,
    FailedBinEvaluationError, DivisionByZeroError, UndefinedVariableError
)
from exprlang.environment import Environment
from exprlang.optimizer import Optimizer
from exprlang.formatter import to_text, to_source
from exprlang.interpreter import (
    Interpreter, parse_source, run_source, ast_to_json,
    InterpreterError, UnsupportedStatementError
)
from exprlang.cli import main as cli_main


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════

def token_types(source: str):
    return [t.type for t in tokenize(source)]


def statements_(source: str):
    return Parser(tokenize(source.strip())).get_statements()


def expr_(source: str):
    return Parser(tokenize(source)).expr()


def eval_(source: str, env=None):
    return evaluate(expr_(source), env)


def op(o) -> Token:
    return Token(TokenType.OPERATOR, o.value, op=o)


# ═══════════════════════════════════════════════════════════════════════════════
# Lexer Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestLexer(unittest.TestCase):

    def test_integer(self):
        toks = tokenize("42")
        self.assertEqual(toks[0].type, TokenType.INT)
        self.assertEqual(toks[0].value, 42)

    def test_string(self):
        toks = tokenize('"hello world"')
        self.assertEqual(toks, [Token(TokenType.STRING, "hello world")])

    def test_identifier(self):
        toks = tokenize("myVar_2")
        self.assertEqual(toks[0].type, TokenType.IDENTIFIER)
        self.assertEqual(toks[0].value, "myVar_2")

    def test_keywords(self):
        self.assertEqual(token_types("let print"), [TokenType.KEYWORD, TokenType.KEYWORD])

    def test_bool_and_null_literals(self):
        toks = tokenize("true false null")
        self.assertEqual(toks[0], Token(TokenType.BOOL, True))
        self.assertEqual(toks[1], Token(TokenType.BOOL, False))
        self.assertEqual(toks[2].type, TokenType.NULL)

    def test_no_end_sentinel(self):
        self.assertEqual(tokenize(""), [])
        self.assertEqual(len(tokenize("1 + 2")), 3)

    def test_let_statement(self):
        types = token_types("let x = 5;")
        self.assertEqual(types, [
            TokenType.KEYWORD, TokenType.IDENTIFIER, TokenType.ASSIGN,
            TokenType.INT, TokenType.SEMI,
        ])

    def test_operators_carry_sub_tag(self):
        ops = [t.op for t in tokenize("+ - * / == != > < >= <= && || !")]
        self.assertEqual(ops, [
            BinOp.ADD, BinOp.SUB, BinOp.MUL, BinOp.DIV, BinOp.EQ, BinOp.NEQ,
            BinOp.GT, BinOp.LT, BinOp.GTE, BinOp.LTE, BinOp.AND, BinOp.OR,
            UnOp.BANG,
        ])

    def test_two_char_operators_without_spaces(self):
        toks = tokenize("a>=b!=!c")
        self.assertEqual([t.op for t in toks if t.type == TokenType.OPERATOR],
                         [BinOp.GTE, BinOp.NEQ, UnOp.BANG])

    def test_brackets(self):
        types = token_types("(1)")
        self.assertEqual(types, [TokenType.LPAREN, TokenType.INT, TokenType.RPAREN])

    def test_whitespace_and_comment_ignored(self):
        toks = tokenize("  // a comment\n\t7  ")
        self.assertEqual(toks, [Token(TokenType.INT, 7)])

    def test_line_tracking(self):
        toks = tokenize("a\nb\n\"x\ny\"\nc")
        lines = [t.line for t in toks]
        self.assertEqual(lines, [1, 2, 3, 5])

    def test_line_not_part_of_equality(self):
        self.assertEqual(Token(TokenType.INT, 1, line=1), Token(TokenType.INT, 1, line=9))

    def test_illegal_character(self):
        with self.assertRaises(IllegalCharacterError) as ctx:
            tokenize("1 + @")
        self.assertEqual(ctx.exception.char, "@")
        self.assertIsInstance(ctx.exception, LexerError)

    def test_single_ampersand_is_illegal(self):
        with self.assertRaises(IllegalCharacterError):
            tokenize("a & b")

    def test_unterminated_string(self):
        with self.assertRaises(UnterminatedStringError):
            tokenize('let s = "never closed;')

    def test_integer_literal_out_of_range(self):
        self.assertEqual(tokenize("2147483647")[0].value, 2147483647)
        with self.assertRaises(IntegerLiteralError):
            tokenize("2147483648")

    def test_token_text_reproduces_kinds(self):
        src = 'let flag = !(1 + 2 * 3 >= 4) || "s" != null && true;'
        toks = tokenize(src)
        rejoined = " ".join(t.text for t in toks)
        self.assertEqual(token_types(rejoined), [t.type for t in toks])
        self.assertEqual(tokenize(rejoined), toks)


# ═══════════════════════════════════════════════════════════════════════════════
# Parser Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestParserCursor(unittest.TestCase):

    def test_helpers(self):
        parser = Parser(tokenize("let a = (1 + 1) + 2 - 432; let b = 3;"))
        self.assertEqual(parser.at(4), Token(TokenType.INT, 1))
        self.assertEqual(parser.current(), Token(TokenType.KEYWORD, "let"))

        parser.advance()
        self.assertEqual(parser.previous(), Token(TokenType.KEYWORD, "let"))

        total = len(tokenize("let a = (1 + 1) + 2 - 432; let b = 3;"))
        for _ in range(total - 2):
            parser.advance()
        self.assertTrue(parser.is_at_end())
        self.assertEqual(parser.pos, total - 1)

    def test_at_out_of_range(self):
        parser = Parser(tokenize("1 + 2"))
        with self.assertRaises(InvalidTokenIndexError):
            parser.at(3)
        with self.assertRaises(InvalidTokenIndexError):
            parser.previous()

    def test_match_rule_success(self):
        parser = Parser(tokenize("let x = 5;"))
        rule = [
            Token(TokenType.KEYWORD, "let"),
            Token(TokenType.IDENTIFIER, "anything"),
            Token(TokenType.ASSIGN, "="),
            Token(TokenType.INT, 0),
            Token(TokenType.SEMI, ";"),
        ]
        self.assertTrue(parser.match_rule(rule))
        self.assertEqual(parser.pos, 5)

    def test_match_rule_fail_restores_cursor(self):
        parser = Parser(tokenize("let = 5;"))
        rule = [
            Token(TokenType.KEYWORD, "let"),
            Token(TokenType.IDENTIFIER, "x"),
            Token(TokenType.ASSIGN, "="),
            Token(TokenType.INT, 0),
            Token(TokenType.SEMI, ";"),
        ]
        self.assertFalse(parser.match_rule(rule))
        self.assertEqual(parser.pos, 0)

    def test_match_rule_identifier_slot_needs_identifier(self):
        parser = Parser(tokenize("5"))
        self.assertFalse(parser.match_rule([Token(TokenType.IDENTIFIER, "x")]))

    def test_match_rule_past_end(self):
        parser = Parser(tokenize("let"))
        self.assertFalse(parser.match_rule([Token(TokenType.KEYWORD, "let"), Token(TokenType.SEMI, ";")]))
        self.assertEqual(parser.pos, 0)

    def test_matches(self):
        parser = Parser(tokenize("+ -3"))
        candidates = (op(BinOp.ADD), op(BinOp.SUB))
        self.assertEqual(parser.matches(*candidates), op(BinOp.ADD))
        self.assertEqual(parser.matches(*candidates), op(BinOp.SUB))
        self.assertIsNone(parser.matches(*candidates))
        self.assertEqual(parser.pos, 2)


class TestParser(unittest.TestCase):

    def test_string_equality_assignment(self):
        stmts = statements_('let x = "this is a string." == "this is another string.";')
        self.assertEqual(len(stmts), 1)
        stmt = stmts[0]
        self.assertIsInstance(stmt, AssignmentNode)
        self.assertEqual(stmt.name, "x")
        self.assertEqual(stmt.value, BinaryOpNode(
            left=StringNode(value="this is a string."),
            op=BinOp.EQ,
            right=StringNode(value="this is another string."),
        ))
        self.assertEqual(evaluate(stmt.value), BoolNode(value=False))

    def test_two_statements_in_order(self):
        stmts = statements_("let a = 1; let b = 2;")
        self.assertEqual([type(s) for s in stmts], [AssignmentNode, AssignmentNode])
        self.assertEqual([s.name for s in stmts], ["a", "b"])

    def test_trailing_statement_without_semicolon(self):
        stmts = statements_("1; 2")
        self.assertEqual(stmts, [
            ExpressionStatementNode(expr=NumberNode(value=1)),
            ExpressionStatementNode(expr=NumberNode(value=2)),
        ])

    def test_empty_input(self):
        self.assertEqual(statements_(""), [])

    def test_empty_statement(self):
        with self.assertRaises(EmptyMatchError):
            statements_("let a = 1;;")

    def test_leading_terminator(self):
        with self.assertRaises(EmptyMatchError):
            statements_("; 1;")

    def test_let_missing_identifier(self):
        with self.assertRaises(ExpectedTokenError) as ctx:
            statements_("let = 5;")
        self.assertEqual(ctx.exception.expected, "identifier")

    def test_let_missing_assignment_sign(self):
        with self.assertRaises(ExpectedTokenError) as ctx:
            statements_("let x 5;")
        self.assertEqual(ctx.exception.expected, "'='")

    def test_let_too_short(self):
        for src in ("let;", "let x;", "let x =;"):
            with self.assertRaises(InvalidLetStatementError):
                statements_(src)

    def test_print_statement(self):
        stmt = statements_("print 1 + 2;")[0]
        self.assertIsInstance(stmt, PrintNode)
        self.assertIsInstance(stmt.value, BinaryOpNode)

    def test_print_without_expression(self):
        with self.assertRaises(ExpectedTokenError):
            statements_("print;")

    def test_keyword_in_expression_position(self):
        with self.assertRaises(ExpectedTokenError):
            statements_("1 + let;")

    def test_unknown_keyword_from_token_slice(self):
        with self.assertRaises(UnknownKeywordError):
            statement_from_tokens([Token(TokenType.KEYWORD, "while"), Token(TokenType.INT, 1)])

    def test_stmt_consumes_terminator(self):
        parser = Parser(tokenize("let x = !(true == false); 3;"))
        stmt = parser.stmt()
        self.assertIsInstance(stmt, AssignmentNode)
        self.assertEqual(parser.pos, 10)
        self.assertEqual(evaluate(stmt.value), BoolNode(value=True))

    def test_precedence(self):
        tree = expr_("1 + 2 * 3")
        self.assertEqual(tree.op, BinOp.ADD)
        self.assertEqual(tree.right.op, BinOp.MUL)

    def test_left_associative(self):
        tree = expr_("10 - 4 - 3")
        self.assertEqual(tree.op, BinOp.SUB)
        self.assertIsInstance(tree.left, BinaryOpNode)
        self.assertEqual(tree.right, NumberNode(value=3))

    def test_comparison_below_additive(self):
        tree = Parser(tokenize("(3 + 15) / 2 == 9")).compare()
        self.assertEqual(tree.op, BinOp.EQ)
        self.assertEqual(tree.left.op, BinOp.DIV)

    def test_logical_is_lowest(self):
        tree = expr_("1 < 2 && 3 > 2 || false")
        self.assertEqual(tree.op, BinOp.OR)
        self.assertEqual(tree.left.op, BinOp.AND)
        self.assertEqual(tree.left.left.op, BinOp.LT)

    def test_nested_unary(self):
        tree = expr_("!!x")
        self.assertIsInstance(tree, UnaryOpNode)
        self.assertIsInstance(tree.operand, UnaryOpNode)
        self.assertEqual(tree.operand.operand, IdentifierNode(name="x"))

    def test_primary_literals(self):
        self.assertEqual(expr_("null"), NullNode())
        self.assertEqual(expr_("true"), BoolNode(value=True))
        self.assertEqual(expr_('"s"'), StringNode(value="s"))

    def test_missing_closing_bracket(self):
        with self.assertRaises(ExpectedTokenError) as ctx:
            statements_("(1 + 2;")
        self.assertEqual(ctx.exception.expected, "')'")

    def test_missing_operand(self):
        with self.assertRaises(ExpectedTokenError) as ctx:
            statements_("1 + ;")
        self.assertEqual(ctx.exception.expected, "expression")

    def test_unexpected_token_in_primary(self):
        with self.assertRaises(ExpectedTokenError):
            statements_("= 3;")

    def test_trailing_tokens(self):
        with self.assertRaises(ExpectedTokenError) as ctx:
            statements_("1 2;")
        self.assertEqual(ctx.exception.expected, "';'")

    def test_error_reports_line(self):
        with self.assertRaises(ParseError) as ctx:
            statements_("1;\n\nlet 4 = 2;")
        self.assertEqual(ctx.exception.line, 3)
        self.assertIn("Line 3", str(ctx.exception))

    def test_parse_program(self):
        program = Parser(tokenize("1; 2;")).parse()
        self.assertIsInstance(program, ProgramNode)
        self.assertEqual(len(program.statements), 2)


# ═══════════════════════════════════════════════════════════════════════════════
# Evaluator Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestEvaluator(unittest.TestCase):

    def test_literals_evaluate_to_themselves(self):
        for node in (NumberNode(value=4), StringNode(value="a"), BoolNode(value=True), NullNode()):
            self.assertEqual(evaluate(node), node)

    def test_arithmetic(self):
        cases = {
            "2 + 3 * 4": 14,
            "(2 + 3) * 4": 20,
            "10 - 4 - 3": 3,
            "7 / 2": 3,
            "(0 - 7) / 2": -3,
            "7 / (0 - 2)": -3,
            "100 / 10 / 5": 2,
            "(3 + 15) / 2": 9,
        }
        for src, expected in cases.items():
            with self.subTest(src=src):
                self.assertEqual(eval_(src), NumberNode(value=expected))

    def test_compare_nums(self):
        self.assertEqual(eval_("(3 + 15) / 2 == 9"), BoolNode(value=True))
        self.assertEqual(eval_("(3 + 15) / 2 == 20"), BoolNode(value=False))

    def test_compare_strings(self):
        self.assertEqual(eval_('"This is a string" == "This is a string"'), BoolNode(value=True))
        self.assertEqual(eval_('"This is a string" == "This is another string"'), BoolNode(value=False))

    def test_compare_bools(self):
        self.assertEqual(eval_("true == true"), BoolNode(value=True))
        self.assertEqual(eval_("true == false"), BoolNode(value=False))

    def test_equality_across_kinds(self):
        self.assertEqual(eval_('1 == "1"'), BoolNode(value=False))
        self.assertEqual(eval_("1 == true"), BoolNode(value=False))
        self.assertEqual(eval_("0 != null"), BoolNode(value=True))
        self.assertEqual(eval_("null == null"), BoolNode(value=True))

    def test_ordering(self):
        self.assertEqual(eval_("3 > 2"), BoolNode(value=True))
        self.assertEqual(eval_("3 < 2"), BoolNode(value=False))
        self.assertEqual(eval_("2 >= 2"), BoolNode(value=True))
        self.assertEqual(eval_("3 <= 2"), BoolNode(value=False))

    def test_ordering_needs_integers(self):
        with self.assertRaises(InvalidComparisonError) as ctx:
            eval_('"a" < 1')
        self.assertIsInstance(ctx.exception, FailedConversionError)

    def test_arithmetic_needs_integers(self):
        for src in ('"a" + 1', "true * 2", "null - 1"):
            with self.subTest(src=src):
                with self.assertRaises(FailedConversionError):
                    eval_(src)

    def test_division_by_zero(self):
        with self.assertRaises(DivisionByZeroError) as ctx:
            eval_("1 / (2 - 2)")
        self.assertIsInstance(ctx.exception, FailedBinEvaluationError)

    def test_overflow(self):
        with self.assertRaises(FailedBinEvaluationError):
            eval_("2147483647 + 1")
        with self.assertRaises(FailedBinEvaluationError):
            eval_("65536 * 65536")

    def test_logical(self):
        self.assertEqual(eval_("1 && 0"), BoolNode(value=False))
        self.assertEqual(eval_('"x" && true'), BoolNode(value=True))
        self.assertEqual(eval_('"" || null'), BoolNode(value=False))
        self.assertEqual(eval_("0 || 3"), BoolNode(value=True))

    def test_logical_is_eager(self):
        # The right side is still evaluated when the left decides the result
        with self.assertRaises(FailedConversionError):
            eval_("true || x")
        with self.assertRaises(DivisionByZeroError):
            eval_("false && 1 / 0")

    def test_negation(self):
        self.assertEqual(eval_("!(true == false)"), BoolNode(value=True))
        self.assertEqual(eval_("!0"), BoolNode(value=True))
        self.assertEqual(eval_('!"text"'), BoolNode(value=False))
        self.assertEqual(eval_("!null"), BoolNode(value=True))

    def test_double_negation(self):
        for src, node in (("5", NumberNode(value=5)), ('""', StringNode(value="")),
                          ("null", NullNode()), ("0 - 3", None)):
            with self.subTest(src=src):
                expected = coerce_to_boolean(node if node is not None else eval_(src))
                self.assertEqual(eval_(f"!!({src})"), BoolNode(value=expected))

    def test_negation_of_unresolved_variable(self):
        with self.assertRaises(FailedConversionError) as ctx:
            eval_("!x")
        self.assertNotIsInstance(ctx.exception, InvalidUnaryOperationError)

    def test_negation_operand_errors_propagate(self):
        with self.assertRaises(FailedConversionError) as ctx:
            eval_('!("a" + 1)')
        self.assertNotIsInstance(ctx.exception, InvalidUnaryOperationError)
        with self.assertRaises(InvalidComparisonError):
            eval_('!("a" < 1)')
        with self.assertRaises(DivisionByZeroError):
            eval_("!(1 / 0)")

    def test_negation_of_uncoercible_operand(self):
        # null evaluates to a node coerce_to_boolean does not accept
        class _Evaluator(Evaluator):
            def _visit_NullNode(self, node):
                return IdentifierNode(name="opaque")

        with self.assertRaises(InvalidUnaryOperationError) as ctx:
            _Evaluator().evaluate(expr_("!null"))
        self.assertIsInstance(ctx.exception.__cause__, FailedConversionError)

    def test_variable_without_environment(self):
        with self.assertRaises(FailedConversionError):
            eval_("x + 1")

    def test_variable_with_environment(self):
        env = Environment({"x": NumberNode(value=2)})
        self.assertEqual(eval_("x * 21", env), NumberNode(value=42))

    def test_undefined_variable(self):
        with self.assertRaises(UndefinedVariableError) as ctx:
            eval_("y", Environment())
        self.assertEqual(ctx.exception.name, "y")

    def test_statement_node_not_evaluable(self):
        with self.assertRaises(EvalError):
            evaluate(PrintNode(value=NumberNode(value=1)))

    def test_input_tree_not_mutated(self):
        tree = expr_("(1 + 2) * 3")
        before = to_source(tree)
        evaluate(tree)
        self.assertEqual(to_source(tree), before)

    def test_coerce_to_boolean_table(self):
        self.assertFalse(coerce_to_boolean(NumberNode(value=0)))
        self.assertTrue(coerce_to_boolean(NumberNode(value=7)))
        self.assertFalse(coerce_to_boolean(NumberNode(value=-1)))
        self.assertFalse(coerce_to_boolean(StringNode(value="")))
        self.assertTrue(coerce_to_boolean(StringNode(value="a")))
        self.assertFalse(coerce_to_boolean(NullNode()))
        self.assertTrue(coerce_to_boolean(BoolNode(value=True)))
        with self.assertRaises(FailedConversionError):
            coerce_to_boolean(IdentifierNode(name="v"))
        with self.assertRaises(FailedConversionError):
            coerce_to_boolean(expr_("1 + 1"))

    def test_coerce_to_integer(self):
        self.assertEqual(coerce_to_integer(NumberNode(value=3)), 3)
        for node in (StringNode(value="3"), BoolNode(value=True), NullNode(), IdentifierNode(name="n")):
            with self.subTest(node=node):
                with self.assertRaises(FailedConversionError):
                    coerce_to_integer(node)


# ═══════════════════════════════════════════════════════════════════════════════
# Optimizer Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestOptimizer(unittest.TestCase):

    def test_opt_level_0_keeps_tree(self):
        stmts = statements_("let x = 1 + 1;")
        self.assertIs(Optimizer(opt_level=0).optimize(stmts), stmts)

    def test_folds_assignment(self):
        stmts = Optimizer().optimize(statements_("let coolVariable = (1 + 1);"))
        self.assertEqual(stmts, [AssignmentNode(name="coolVariable", value=NumberNode(value=2))])
        self.assertNotEqual(stmts[0].value, NumberNode(value=3))

    def test_folds_unary_negation(self):
        stmts = Optimizer().optimize(statements_("let x = !(true == false);"))
        self.assertEqual(stmts[0].value, BoolNode(value=True))

    def test_partial_fold_around_variable(self):
        stmts = Optimizer().optimize(statements_("x + 2 * 3;"))
        self.assertEqual(stmts[0].expr, BinaryOpNode(
            left=IdentifierNode(name="x"), op=BinOp.ADD, right=NumberNode(value=6),
        ))

    def test_fold_error_is_parse_error(self):
        with self.assertRaises(ParseError) as ctx:
            Optimizer().optimize(statements_("print 1 / 0;"))
        self.assertIsInstance(ctx.exception.__cause__, DivisionByZeroError)

    def test_folding_matches_evaluation(self):
        src = '(8 - 2) / 4 * 3 >= 3 && !("a" == "b")'
        folded = Optimizer().optimize(statements_(src + ";"))[0].expr
        self.assertEqual(folded, eval_(src))


# ═══════════════════════════════════════════════════════════════════════════════
# Formatter Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestFormatter(unittest.TestCase):

    def test_to_text(self):
        self.assertEqual(to_text(NumberNode(value=-5)), "-5")
        self.assertEqual(to_text(BoolNode(value=True)), "true")
        self.assertEqual(to_text(StringNode(value="hi")), '"hi"')
        self.assertEqual(to_text(NullNode()), "null")

    def test_to_source_statements(self):
        self.assertEqual(to_source(statements_("let x   =  1+2;")[0]), "let x = 1 + 2;")
        self.assertEqual(to_source(statements_("print  !x;")[0]), "print !x;")
        self.assertEqual(to_source(statements_("null")[0]), "null;")

    def test_to_source_parentheses(self):
        self.assertEqual(to_source(expr_("(1 + 2) * 3")), "(1 + 2) * 3")
        self.assertEqual(to_source(expr_("1 + (2 * 3)")), "1 + 2 * 3")
        self.assertEqual(to_source(expr_("1 - (2 - 3)")), "1 - (2 - 3)")
        self.assertEqual(to_source(expr_("!(a == b)")), "!(a == b)")

    def test_to_source_retokenizes(self):
        src = 'let v = !(1 + 2 * (3 - 4) > 0) || "s" != null && (true || false);'
        stmt = statements_(src)[0]
        self.assertEqual(statements_(to_source(stmt))[0], stmt)

    def test_to_source_negative_numbers(self):
        self.assertEqual(to_source(NumberNode(value=-5)), "(0 - 5)")
        self.assertEqual(to_source(NumberNode(value=-2147483648)), "(0 - 2147483647 - 1)")
        self.assertEqual(to_source(expr_("x - (0 - 5)")), "x - (0 - 5)")

    def test_folded_negatives_reparse(self):
        for src in ("let x = 0 - 5;", "let x = 1 - 2 * 3;", "print y * (0 - 7);",
                    "let x = 0 - 2147483647 - 1;", "let x = !(0 - 1);"):
            with self.subTest(src=src):
                folded = Optimizer().optimize(statements_(src))
                text = to_source(folded[0])
                self.assertEqual(Optimizer().optimize(statements_(text)), folded)
        folded = Optimizer().optimize(statements_("let x = 0 - 5;"))
        self.assertEqual(to_source(folded[0]), "let x = (0 - 5);")

    def test_int_min_source_evaluates_back(self):
        node = NumberNode(value=-2147483648)
        self.assertEqual(eval_(to_source(node)), node)


# ═══════════════════════════════════════════════════════════════════════════════
# Interpreter / Integration Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestInterpreter(unittest.TestCase):

    def test_expression_results(self):
        results = run_source("1 + 1; \"a\" == \"a\"; null;")
        self.assertEqual(results, [NumberNode(value=2), BoolNode(value=True), NullNode()])

    def test_print_writes_output(self):
        out = io.StringIO()
        results = run_source('print 6 / 4; print "raw text"; print 1 == 1;', out=out)
        self.assertEqual(results, [])
        self.assertEqual(out.getvalue(), "1\nraw text\ntrue\n")

    def test_print_order_follows_source(self):
        out = io.StringIO()
        run_source("print 1; 2; print 3;", out=out)
        self.assertEqual(out.getvalue(), "1\n3\n")

    def test_assignment_without_environment(self):
        with self.assertRaises(UnsupportedStatementError) as ctx:
            run_source("let a = 1;")
        self.assertIsInstance(ctx.exception, InterpreterError)

    def test_assignment_with_environment(self):
        env = Environment()
        results = run_source("let a = 4; let b = a * a; b - a;", env=env)
        self.assertEqual(results, [NumberNode(value=12)])
        self.assertEqual(env.resolve("b"), NumberNode(value=16))
        self.assertEqual(env.names(), ["a", "b"])

    def test_reassignment(self):
        env = Environment()
        run_source("let a = 1; let a = a + 1;", env=env)
        self.assertEqual(env.resolve("a"), NumberNode(value=2))

    def test_environment_rejects_unevaluated(self):
        with self.assertRaises(TypeError):
            Environment().assign("x", IdentifierNode(name="y"))

    def test_execute_single_statement(self):
        interp = Interpreter()
        stmt = statements_("3 > 2;")[0]
        self.assertEqual(interp.execute(stmt), BoolNode(value=True))

    def test_lexer_error_wrapped(self):
        with self.assertRaises(InterpreterError) as ctx:
            run_source("1 $ 2;")
        self.assertIsInstance(ctx.exception.__cause__, LexerError)

    def test_parse_error_wrapped(self):
        with self.assertRaises(InterpreterError) as ctx:
            run_source("let = 5;")
        self.assertIsInstance(ctx.exception.__cause__, ExpectedTokenError)

    def test_eval_error_wrapped(self):
        with self.assertRaises(InterpreterError) as ctx:
            run_source('1 + "a";')
        self.assertIsInstance(ctx.exception.__cause__, FailedConversionError)

    def test_single_bad_statement_aborts(self):
        out = io.StringIO()
        with self.assertRaises(InterpreterError):
            run_source("print 1; let ;", out=out)
        self.assertEqual(out.getvalue(), "")

    def test_opt_level_folds(self):
        stmts = parse_source("let x = 2 * 3;", opt_level=1)
        self.assertEqual(stmts[0].value, NumberNode(value=6))

    def test_debug_logs_phases(self):
        err = io.StringIO()
        with redirect_stderr(err):
            run_source("1;", debug=True)
        self.assertIn("[exprlang] Phase 1: Lexical analysis", err.getvalue())
        self.assertIn("Phase 4: Execution", err.getvalue())

    def test_ast_to_json(self):
        parsed = json.loads(ast_to_json(parse_source("let x = !1;")))
        self.assertEqual(parsed[0]["_type"], "AssignmentNode")
        self.assertEqual(parsed[0]["value"]["_type"], "UnaryOpNode")
        self.assertEqual(parsed[0]["value"]["op"], "BANG")

    def test_deep_chain_reports_nesting(self):
        with self.assertRaises(InterpreterError) as ctx:
            run_source(" + ".join(["1"] * 5000) + ";")
        self.assertIn("nesting too deep", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, RecursionError)

    def test_deep_parentheses_report_nesting(self):
        with self.assertRaises(InterpreterError) as ctx:
            parse_source("(" * 1000 + "1" + ")" * 1000 + ";")
        self.assertIsInstance(ctx.exception.__cause__, RecursionError)

    def test_deep_chain_fold_reports_nesting(self):
        with self.assertRaises(InterpreterError):
            parse_source(" - ".join(["1"] * 5000) + ";", opt_level=1)


# ═══════════════════════════════════════════════════════════════════════════════
# CLI Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestCLI(unittest.TestCase):

    def _run(self, argv):
        out, err = io.StringIO(), io.StringIO()
        code = 0
        with redirect_stdout(out), redirect_stderr(err):
            try:
                cli_main(argv)
            except SystemExit as e:
                code = e.code
        return code, out.getvalue(), err.getvalue()

    def test_run_command(self):
        code, out, _ = self._run(["-c", 'let x = 3; print x * 2; x == 3; "s";'])
        self.assertEqual(code, 0)
        self.assertEqual(out, '6\ntrue\n"s"\n')

    def test_emit_tokens(self):
        code, out, _ = self._run(["-c", "1;", "--emit-tokens"])
        self.assertEqual(code, 0)
        self.assertIn("Token(INT, 1, line=1)", out)

    def test_emit_source_folded(self):
        code, out, _ = self._run(["-c", "let x = (1 + 2) * y;", "--emit-source", "--opt-level", "1"])
        self.assertEqual(code, 0)
        self.assertEqual(out, "let x = 3 * y;\n")

    def test_emit_ast(self):
        code, out, _ = self._run(["-c", "1;", "--emit-ast"])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)[0]["_type"], "ExpressionStatementNode")

    def test_error_exit_code(self):
        code, _, err = self._run(["-c", "let a = 1;;"])
        self.assertEqual(code, 1)
        self.assertIn("[ParseError]", err)

    def test_lexer_error_in_emit_tokens(self):
        code, _, err = self._run(["-c", '"open', "--emit-tokens"])
        self.assertEqual(code, 1)
        self.assertIn("[LexerError]", err)

    def test_emit_source_negative_value(self):
        code, out, _ = self._run(["-c", "let x = 0 - 5;", "--emit-source", "--opt-level", "1"])
        self.assertEqual(code, 0)
        self.assertEqual(out, "let x = (0 - 5);\n")

    def test_deep_nesting_exit_code(self):
        deep = "(" * 1000 + "1" + ")" * 1000 + ";"
        code, _, err = self._run(["-c", deep])
        self.assertEqual(code, 1)
        self.assertIn("nesting too deep", err)
        code, _, err = self._run(["-c", " + ".join(["1"] * 5000) + ";", "--emit-source"])
        self.assertEqual(code, 1)
        self.assertIn("nesting too deep", err)

    def test_missing_file(self):
        code, _, err = self._run([os.path.join(os.path.dirname(__file__), "no_such_file.el")])
        self.assertEqual(code, 1)
        self.assertIn("not found", err)

    def test_requires_source(self):
        code, _, _ = self._run([])
        self.assertEqual(code, 2)


if __name__ == "__main__":
    unittest.main(verbosity=2)
