"""
exprlang - Command Line Interface

Usage:
    exprlang input.el [--opt-level 0|1] [--debug] [--emit-ast | --emit-tokens | --emit-source]
    exprlang -c 'let x = 1 + 2; print x * 3;'
    python -m exprlang input.el
"""

import sys
import argparse


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="exprlang",
        description="exprlang: a small expression-oriented scripting language",
    )
    parser.add_argument("input", nargs="?", help="Path to the source file")
    parser.add_argument("-c", "--command", dest="command", help="Program passed in as a string")
    parser.add_argument(
        "--opt-level",
        type=int,
        choices=[0, 1],
        default=0,
        dest="opt_level",
        help="Optimization level: 0 = none (default), 1 = constant folding",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print phase info to stderr",
    )
    emit_group = parser.add_mutually_exclusive_group()
    emit_group.add_argument(
        "--emit-ast",
        action="store_true",
        dest="emit_ast",
        help="Print the parsed statements as JSON instead of running them",
    )
    emit_group.add_argument(
        "--emit-tokens",
        action="store_true",
        dest="emit_tokens",
        help="Print the token list instead of running the program",
    )
    emit_group.add_argument(
        "--emit-source",
        action="store_true",
        dest="emit_source",
        help="Print the parsed statements back as normalized source",
    )

    args = parser.parse_args(argv)
    if (args.input is None) == (args.command is None):
        parser.error("exactly one of an input file or -c/--command is required")

    from .interpreter import parse_source, run_source, ast_to_json, InterpreterError
    from .environment import Environment
    from .formatter import to_source, to_text
    from .lexer import tokenize, LexerError

    try:
        if args.command is not None:
            source = args.command
        else:
            with open(args.input, "r", encoding="utf-8") as f:
                source = f.read()
    except FileNotFoundError:
        print(f"[exprlang] Error: Input file not found: {args.input!r}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.emit_tokens:
            for tok in tokenize(source):
                print(repr(tok))
        elif args.emit_ast:
            print(ast_to_json(parse_source(source, opt_level=args.opt_level, debug=args.debug)))
        elif args.emit_source:
            for stmt in parse_source(source, opt_level=args.opt_level, debug=args.debug):
                print(to_source(stmt))
        else:
            results = run_source(
                source,
                env=Environment(),
                opt_level=args.opt_level,
                debug=args.debug,
            )
            for value in results:
                print(to_text(value))
    except LexerError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)
    except InterpreterError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)
    except RecursionError:
        # to_source walks the tree recursively
        print("[exprlang] Error: Expression nesting too deep", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
