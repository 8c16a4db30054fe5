"""CLI entry point for the RetroScript interpreter.

Usage:
    python -m retroscript [-v|-vv|-vvv] [--timeout S] [--root DIR] [--set NAME=VALUE]... <script_file>
    python -m retroscript --check <script_file>
    python -m retroscript --emit-ast <script_file>
    python -m retroscript [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --check       Parse the given script and report syntax errors only
  --emit-ast    Parse the given script and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file
  --timeout     Wall-clock limit in seconds (0 disables it)
  --root        Directory the script's filesystem statements operate in
  --set         Initial variable binding; VALUE is read as JSON when it parses

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. Script output goes to stdout.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from .ast_json import ast_from_obj, ast_to_obj
from .context import CommandBus, EventBus, HostContext, MemoryFileSystem, WindowManager
from .engine import ScriptEngine
from .limits import SafetyLimits
from .std.io import DirectoryFileSystem


def read_file(path: str) -> str:
    program_file = Path(path)
    if not program_file.exists():
        print(f"Error: file {program_file} not found", file=sys.stderr)
        sys.exit(1)
    with open(program_file, 'r', encoding='utf-8') as f:
        return f.read()


def parse_binding(text: str):
    name, sep, raw = text.partition('=')
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got '{text}'")
    try:
        value = json.loads(raw)
    except ValueError:
        value = raw
    return name.lstrip('$'), value


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog='retroscript', description="RetroScript interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--check', metavar='SCRIPT_FILE', help='only parse the given script')
    group.add_argument('--emit-ast', metavar='SCRIPT_FILE', help='emit AST JSON for the given script')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('--timeout', type=float, default=SafetyLimits.timeout, help='time limit in seconds')
    parser.add_argument('--root', metavar='DIR', help='directory backing the script filesystem')
    parser.add_argument('--set', dest='bindings', metavar='NAME=VALUE', type=parse_binding,
                        action='append', default=[], help='bind a variable before the script runs')
    parser.add_argument('program', nargs='?', help='RetroScript file (.retro) to execute')
    args = parser.parse_args(argv)

    engine = ScriptEngine(
        context=HostContext(
            filesystem=DirectoryFileSystem(args.root) if args.root else MemoryFileSystem(),
            events=EventBus(),
            commands=CommandBus(),
            windows=WindowManager(),
        ),
        limits=SafetyLimits(timeout=args.timeout or None),
        debug_level=args.v,
        debug_file='debug.txt',
    )
    try:
        # Syntax check mode
        if args.check:
            parsed = engine.parse(read_file(args.check))
            if not parsed.success:
                print(f"Syntax error: {parsed.error}", file=sys.stderr)
                sys.exit(1)
            print(f"{args.check}: OK")
            return

        # Emit AST mode
        if args.emit_ast:
            program_file = Path(args.emit_ast)
            parsed = engine.parse(read_file(args.emit_ast))
            if not parsed.success:
                print(f"Syntax error: {parsed.error}", file=sys.stderr)
                sys.exit(1)
            out_path = program_file.with_name(program_file.name + '.ast.json')
            with open(out_path, 'w', encoding='utf-8') as out:
                json.dump(ast_to_obj(parsed.ast), out, ensure_ascii=False, indent=2)
            print(str(out_path))
            return

        # Execute from AST JSON or source
        if args.ast:
            try:
                program = ast_from_obj(json.loads(read_file(args.ast)))
            except (TypeError, ValueError) as e:
                print(f"Error: invalid AST file {args.ast}: {e}", file=sys.stderr)
                sys.exit(1)
        elif args.program:
            program = read_file(args.program)
        else:
            parser.error('missing script file; or use --check/--emit-ast/--ast')

        result = asyncio.run(engine.run(program,
                                        variables=dict(args.bindings),
                                        on_output=print))
        if not result.success:
            label = 'Syntax error' if result.error.type == 'ScriptParseError' else 'Runtime error'
            print(f"{label}: {result.error}", file=sys.stderr)
            sys.exit(1)
    finally:
        engine.close()


if __name__ == '__main__':
    main()
