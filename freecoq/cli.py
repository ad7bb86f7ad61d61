"""Command line entry point."""

from __future__ import annotations

import logging
import sys

from .backend import to_gallina
from .config import Options
from .converter import convert_module
from .frontend import ParseError, TokenizeError, parse
from .ir import DataDecl, FuncDecl, Module, TypeSig, TypeSynDecl
from .middleend import (
    NonRecursive,
    func_dependency_graph,
    group_dependencies,
    type_dependency_graph,
)
from .middleend.components import component_names

PHASES: list[str] = [
    "parse",
    "graph",
    "components",
    "convert",
]

USAGE: str = """\
freecoq [OPTIONS] [INPUT] [-o OUTPUT]

Options:
  --stop-at PHASE     Stop after phase: parse, graph, components, convert
  --dot               Print dependency graphs in DOT format (implies
                      --stop-at graph)
  --module NAME       Name of the Coq module if the input has no header
  --no-sections       Convert all recursive functions with helper functions
  --no-comments       Do not emit comments
  --fail-fast         Stop at the first declaration group that fails
  -v, --verbose       Log debug messages to stderr
  -o, --output FILE   Write output to FILE instead of stdout
  --help              Show this help message
"""


class Args:
    """Parsed command line."""

    def __init__(self) -> None:
        self.stop_at: str = "convert"
        self.dot: bool = False
        self.verbose: bool = False
        self.input_file: str | None = None
        self.output_file: str | None = None
        self.options: Options = Options()


def read_source(input_file: str | None) -> tuple[str, int]:
    """Read source from file or stdin. Returns (source, exit_code) where exit_code 0 means OK."""
    if input_file is not None:
        try:
            with open(input_file, "rb") as f:
                raw = f.read()
        except OSError:
            print("error: cannot open '" + input_file + "'", file=sys.stderr)
            return ("", 1)
    else:
        raw = sys.stdin.buffer.read()
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("error: invalid utf-8 in input", file=sys.stderr)
        return ("", 1)
    return (source, 0)


def write_output(output: str, output_file: str | None) -> int:
    """Write output to file or stdout. Returns 0 on success, 1 on error."""
    if output_file is not None:
        try:
            with open(output_file, "w") as f:
                f.write(output)
        except OSError:
            print("error: cannot write '" + output_file + "'", file=sys.stderr)
            return 1
        return 0
    sys.stdout.write(output)
    return 0


# --- Phase output ---


def describe_decls(module: Module) -> str:
    """One line per declaration, in source order."""
    lines: list[str] = []
    if module.name is not None:
        lines.append("module " + module.name)
    for pragma in module.pragmas:
        lines.append("pragma decreasing " + pragma.func_name + " " + pragma.arg_name)
    for decl in module.decls:
        if isinstance(decl, DataDecl):
            cons = " | ".join(c.name for c in decl.con_decls)
            lines.append(" ".join(["data", decl.name] + decl.type_args) + " = " + cons)
        elif isinstance(decl, TypeSynDecl):
            lines.append(" ".join(["type", decl.name] + decl.type_args))
        elif isinstance(decl, TypeSig):
            lines.append("sig " + ", ".join(decl.names))
        elif isinstance(decl, FuncDecl):
            lines.append(" ".join(["func", decl.name] + decl.arg_names))
    return "".join(line + "\n" for line in lines)


def describe_graphs(module: Module, dot: bool) -> str:
    type_graph = type_dependency_graph(module.type_decls)
    func_graph = func_dependency_graph(module.func_decls)
    if dot:
        return type_graph.to_dot() + func_graph.to_dot()
    lines: list[str] = []
    for graph in (type_graph, func_graph):
        for key in graph.keys():
            lines.append(key + ": " + ", ".join(graph.dependencies(key)))
    return "".join(line + "\n" for line in lines)


def describe_components(module: Module) -> str:
    lines: list[str] = []
    for graph in (type_dependency_graph(module.type_decls), func_dependency_graph(module.func_decls)):
        for component in group_dependencies(graph):
            kind = "non-recursive" if isinstance(component, NonRecursive) else "recursive"
            lines.append(kind + ": " + ", ".join(component_names(component)))
    return "".join(line + "\n" for line in lines)


# --- Pipeline ---


def run_pipeline(source: str, args: Args) -> tuple[int, str]:
    """Run the compiler pipeline. Returns (exit_code, output)."""
    try:
        module = parse(source)
    except (TokenizeError, ParseError) as e:
        print("error: " + str(e), file=sys.stderr)
        return (1, "")
    if args.stop_at == "parse":
        return (0, describe_decls(module))
    if args.stop_at == "graph":
        return (0, describe_graphs(module, args.dot))
    if args.stop_at == "components":
        return (0, describe_components(module))
    result = convert_module(module, args.options)
    if not result.ok:
        for err in result.errors:
            print("error: " + str(err), file=sys.stderr)
        return (1, "")
    return (0, to_gallina(result.sentences))


def _require_value(args: list[str], i: int) -> str:
    if i + 1 >= len(args):
        print("error: " + args[i] + " requires an argument", file=sys.stderr)
        sys.exit(2)
    return args[i + 1]


def parse_args(argv: list[str]) -> Args:
    """Parse command-line arguments; exits with status 2 on usage errors."""
    parsed = Args()
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            sys.exit(0)
        elif arg == "--stop-at":
            parsed.stop_at = _require_value(argv, i)
            i += 2
        elif arg == "-o" or arg == "--output":
            parsed.output_file = _require_value(argv, i)
            i += 2
        elif arg == "--module":
            parsed.options.module_name = _require_value(argv, i)
            i += 2
        elif arg == "--dot":
            parsed.dot = True
            parsed.stop_at = "graph"
            i += 1
        elif arg == "--no-sections":
            parsed.options.use_sections = False
            i += 1
        elif arg == "--no-comments":
            parsed.options.emit_comments = False
            i += 1
        elif arg == "--fail-fast":
            parsed.options.fail_fast = True
            i += 1
        elif arg == "-v" or arg == "--verbose":
            parsed.verbose = True
            i += 1
        elif arg.startswith("-") and arg != "-":
            print("error: unknown flag '" + arg + "'", file=sys.stderr)
            sys.exit(2)
        else:
            if parsed.input_file is not None:
                print("error: unexpected argument '" + arg + "'", file=sys.stderr)
                sys.exit(2)
            if arg != "-":
                parsed.input_file = arg
            i += 1
    if parsed.stop_at not in PHASES:
        print("error: unknown phase '" + parsed.stop_at + "'", file=sys.stderr)
        sys.exit(2)
    return parsed


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    if argv is None:
        argv = sys.argv[1:]
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    source, err = read_source(args.input_file)
    if err != 0:
        return err
    if len(source.strip()) == 0:
        print("error: no input provided", file=sys.stderr)
        return 2
    exit_code, output = run_pipeline(source, args)
    if exit_code != 0:
        return exit_code
    return write_output(output, args.output_file)


if __name__ == "__main__":
    sys.exit(main())
