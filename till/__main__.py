"""CLI entry point for the Till interpreter.

Usage:
    python -m till [-v|-vv|-vvv] [--frontend descent|lark] <program_file>
    python -m till [-v...] --emit-ast <program_file>
    python -m till [-v...] --ast <ast_json_file>
    python -m till --format <program_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --frontend    Parser used to read source files (default: descent)
  --emit-ast    Parse the given .till file and emit an AST JSON file
  --ast         Type check and execute a previously emitted AST JSON file
  --format      Print the given .till file in canonical layout

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. Lexical, syntax, type and runtime errors are
reported on stderr and make the process exit with status 1.
"""

import argparse
import json
import sys
from pathlib import Path

from .ast_json import ast_to_obj, ast_from_obj
from .checker import TypeChecker
from .errors import TillError
from .interpreter import FRONTENDS, Interpreter, compile_program, parse_source
from .printer import format_program


def read_source(path: Path) -> str:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Till language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--frontend', choices=FRONTENDS, default='descent',
                        help='parser used for source files (default: descent)')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='TILL_FILE', help='emit AST JSON for the given .till file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='type check and execute AST from a JSON file')
    group.add_argument('--format', metavar='TILL_FILE', help='print the given .till file in canonical layout')
    parser.add_argument('program', nargs='?', help='Till program file (.till) to execute')
    args = parser.parse_args(argv)

    try:
        # Emit AST mode
        if args.emit_ast:
            program_file = Path(args.emit_ast)
            source = read_source(program_file)
            ast_program = parse_source(source, args.frontend)
            obj = ast_to_obj(ast_program)
            out_path = program_file.with_name(program_file.name + '.ast.json')
            with open(out_path, 'w', encoding='utf-8') as out:
                json.dump(obj, out, ensure_ascii=False, indent=2)
            print(str(out_path))
            return

        # Pretty-print mode
        if args.format:
            source = read_source(Path(args.format))
            print(format_program(parse_source(source, args.frontend)), end='')
            return

        # Execute from AST JSON
        if args.ast:
            ast_path = Path(args.ast)
            if not ast_path.exists():
                print(f"Error: file {ast_path} not found", file=sys.stderr)
                sys.exit(1)
            try:
                with open(ast_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                ast_program = ast_from_obj(data)
            except (json.JSONDecodeError, KeyError, TypeError, ValueError, RecursionError) as e:
                print(f"Error: invalid AST file {ast_path}: {e}", file=sys.stderr)
                sys.exit(1)
            ast_program = TypeChecker().check(ast_program)
            Interpreter(debug_level=args.v).run(ast_program)
            return

        # Default: execute source file
        if not args.program:
            parser.error('missing program file; or use --emit-ast/--ast/--format')
        source = read_source(Path(args.program))
        ast_program = compile_program(source, args.frontend)
        Interpreter(debug_level=args.v).run(ast_program)
    except TillError as e:
        sys.stdout.flush()
        print(str(e), file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
