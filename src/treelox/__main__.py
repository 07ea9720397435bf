#!/usr/bin/env python3
"""
CLI for the treelox interpreter.

Usage:
    python -m treelox run [FILE] [--config FILE] [-v]
    python -m treelox check FILE
    python -m treelox ast FILE

Examples:
    # Run a program
    python -m treelox run examples/closure_map.lox

    # Start an interactive session (globals persist between lines)
    python -m treelox run

    # Report syntax and scope errors without running
    python -m treelox check examples/counter.lox

    # Print the parsed tree
    python -m treelox ast examples/fib.lox

Exit codes:
    0   success
    64  usage error
    65  syntax or static (resolver) error
    66  source file not found
    70  runtime error
    78  configuration error
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

EXIT_OK = 0
EXIT_USAGE = 64
EXIT_DATA_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_RUNTIME_ERROR = 70
EXIT_CONFIG_ERROR = 78

PROMPT = "> "


def _read_source(path_str: str) -> Optional[str]:
    """Read a source file, reporting a missing file on stderr."""
    source_path = Path(path_str)
    if not source_path.is_file():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return None
    return source_path.read_text(encoding="utf-8")


def _print_diagnostics(diagnostics) -> None:
    for diag in diagnostics:
        print(diag.format(), file=sys.stderr)


def cmd_run(args, config) -> int:
    """Run a program file, or start a REPL when no file is given."""
    from .runtime import Interpreter, run_source

    if args.file is None:
        return _repl(config)

    source = _read_source(args.file)
    if source is None:
        return EXIT_NO_INPUT

    interpreter = Interpreter(config=config)
    result = run_source(source, filename=args.file, interpreter=interpreter)
    _print_diagnostics(result.diagnostics)

    if result.success:
        return EXIT_OK
    if result.stage == "runtime":
        return EXIT_RUNTIME_ERROR
    return EXIT_DATA_ERROR


def _repl(config) -> int:
    """Read-eval-print loop over stdin. Each line is a complete program."""
    from .runtime import Interpreter, run_source

    interpreter = Interpreter(config=config)
    while True:
        try:
            line = input(PROMPT)
        except EOFError:
            print()
            return EXIT_OK
        except KeyboardInterrupt:
            print()
            continue
        if not line.strip():
            continue
        result = run_source(line, filename="<stdin>", interpreter=interpreter)
        _print_diagnostics(result.diagnostics)


def cmd_check(args, config) -> int:
    """Check a file for syntax and scope errors without running it."""
    from . import tokenize, parse, resolve, DslError, ParserError
    from .runtime import get_builtin_registry

    source = _read_source(args.file)
    if source is None:
        return EXIT_NO_INPUT

    try:
        tokens = tokenize(source, args.file)
        program = parse(tokens, args.file, source)
    except ParserError as e:
        _print_diagnostics(d.with_source(source) for d in e.diagnostics)
        return EXIT_DATA_ERROR
    except DslError as e:
        _print_diagnostics([e.diagnostic.with_source(source)])
        return EXIT_DATA_ERROR

    natives = config.natives if config.natives is not None else get_builtin_registry().names()
    result = resolve(program, config, natives)
    _print_diagnostics(d.with_source(source) for d in result.diagnostics)

    if result.has_errors:
        return EXIT_DATA_ERROR

    name = Path(args.file).name
    print(f"OK: {name} - {len(program.statements)} top-level statement(s), "
          f"{len(result.bindings)} resolved local reference(s)")
    if result.has_warnings:
        print(f"  {len(result.warnings)} warning(s)")
    return EXIT_OK


def cmd_ast(args, config) -> int:
    """Print the parsed tree of a file."""
    from . import tokenize, parse, format_ast, DslError, ParserError

    source = _read_source(args.file)
    if source is None:
        return EXIT_NO_INPUT

    try:
        program = parse(tokenize(source, args.file), args.file, source)
    except ParserError as e:
        _print_diagnostics(d.with_source(source) for d in e.diagnostics)
        return EXIT_DATA_ERROR
    except DslError as e:
        _print_diagnostics([e.diagnostic.with_source(source)])
        return EXIT_DATA_ERROR

    try:
        text = format_ast(program)
    except RecursionError:
        print("Error: syntax tree too deep to print", file=sys.stderr)
        return EXIT_DATA_ERROR
    print(text)
    return EXIT_OK


def _configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level_name),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='python -m treelox',
        description='treelox interpreter',
    )
    parser.add_argument('-c', '--config', metavar='FILE',
                        help='YAML configuration file')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase log output (-v info, -vv debug)')

    subparsers = parser.add_subparsers(dest='action', required=True)

    run_parser = subparsers.add_parser('run', help='Run a program (REPL if no file)')
    run_parser.add_argument('file', nargs='?', help='Source file')

    check_parser = subparsers.add_parser('check', help='Check a file for errors')
    check_parser.add_argument('file', help='Source file')

    ast_parser = subparsers.add_parser('ast', help='Print the parsed tree')
    ast_parser.add_argument('file', help='Source file')

    return parser


def main(argv=None) -> int:
    from .config import ConfigError, resolve_config
    from .runtime import get_builtin_registry

    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return EXIT_USAGE if e.code else EXIT_OK

    try:
        config = resolve_config(args.config)
    except (ConfigError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if config.natives is not None:
        known = set(get_builtin_registry().names())
        unknown = [name for name in config.natives if name not in known]
        if unknown:
            print(f"Error: unknown built-in(s) in natives: {', '.join(unknown)}", file=sys.stderr)
            return EXIT_CONFIG_ERROR

    level = config.log_level
    if args.verbose == 1:
        level = "INFO"
    elif args.verbose >= 2:
        level = "DEBUG"
    _configure_logging(level)

    if args.action == 'run':
        return cmd_run(args, config)
    elif args.action == 'check':
        return cmd_check(args, config)
    elif args.action == 'ast':
        return cmd_ast(args, config)
    return EXIT_USAGE


if __name__ == '__main__':
    sys.exit(main())
