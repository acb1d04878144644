#!/usr/bin/env python3
"""
Developer CLI for the boba language core.

Usage:
    python -m boba check FILE [-v] [--config PATH]
    python -m boba tokens FILE [-v]
    python -m boba ast FILE [-v] [--config PATH]
    python -m boba run FILE [-v] [--config PATH]

Examples:
    # Check syntax only
    python -m boba check swap.boba

    # Show the token stream or the parsed tree
    python -m boba tokens swap.boba
    python -m boba ast swap.boba

    # Run a program with debug logging and custom limits
    python -m boba run swap.boba -v --config limits.yaml
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional


def _read_source(path_str: str) -> Optional[str]:
    source_path = Path(path_str)
    if not source_path.exists():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return None
    return source_path.read_text(encoding='utf-8')


def _load_config(args):
    from .config import load_config

    try:
        return load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"Error: Invalid config: {e}", file=sys.stderr)
        return None


def cmd_check(args) -> int:
    """Lex and parse a file, reporting the first diagnostic."""
    from .errors import ScriptError
    from .parser import parse_source

    source = _read_source(args.file)
    if source is None:
        return 1
    config = _load_config(args)
    if config is None:
        return 1

    try:
        program = parse_source(source, args.file, config)
    except ScriptError as e:
        print(e.diagnostic.format(), file=sys.stderr)
        return 1

    print(f"OK: {len(program.statements)} top-level statement(s)")
    return 0


def cmd_tokens(args) -> int:
    """Print the token stream of a file, one token per line."""
    from .errors import ScriptError
    from .lexer import Lexer

    source = _read_source(args.file)
    if source is None:
        return 1

    lexer = Lexer(source, args.file)
    try:
        for token in lexer:
            print(f"{token.span.start.line}:{token.span.start.column}\t{token}")
    except ScriptError as e:
        print(e.diagnostic.format(), file=sys.stderr)
        return 1
    return 0


def cmd_ast(args) -> int:
    """Print the parsed tree of a file."""
    from .ast import format_ast
    from .errors import ScriptError
    from .parser import parse_source

    source = _read_source(args.file)
    if source is None:
        return 1
    config = _load_config(args)
    if config is None:
        return 1

    try:
        program = parse_source(source, args.file, config)
    except ScriptError as e:
        print(e.diagnostic.format(), file=sys.stderr)
        return 1

    print(format_ast(program))
    return 0


def cmd_run(args) -> int:
    """Run a file and print its final value unless it is none."""
    from .runtime import Session, ValueKind, repr_value

    source = _read_source(args.file)
    if source is None:
        return 1
    config = _load_config(args)
    if config is None:
        return 1

    with Session(config=config, output=sys.stdout) as session:
        result = session.execute(source, args.file)

    if not result.success:
        print(f"{result.error_kind}: {result.error_message}", file=sys.stderr)
        return 1
    if result.value.kind != ValueKind.NONE:
        print(repr_value(result.value))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    from . import __version__

    parser = argparse.ArgumentParser(
        prog='python -m boba',
        description='boba language core: lexer, parser and interpreter',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    # Options shared by every subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('file', help='Source file')
    common.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    common.add_argument('--config', metavar='PATH',
                        help='Interpreter config (YAML)')

    subparsers = parser.add_subparsers(dest='action', required=True)
    subparsers.add_parser('check', parents=[common], help='Check a file for syntax errors')
    subparsers.add_parser('tokens', parents=[common], help='Print the token stream')
    subparsers.add_parser('ast', parents=[common], help='Print the syntax tree')
    subparsers.add_parser('run', parents=[common], help='Run a file')

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(levelname)s %(name)s: %(message)s')

    if args.action == 'check':
        return cmd_check(args)
    elif args.action == 'tokens':
        return cmd_tokens(args)
    elif args.action == 'ast':
        return cmd_ast(args)
    elif args.action == 'run':
        return cmd_run(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
