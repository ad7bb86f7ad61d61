"""End-to-end tests of `python -m freecoq.cli`.

Each case in tests/cli/*.tests runs the command line once. A case starts
with `=== name`, then an `args:` line with the command line flags. The IR
program fed on stdin follows, or a `stdin-bytes:` line giving raw input as
hex. A `---` line closes the input. The expected outcome comes next, one
check per line, and another `---` closes it:

    === convert
    args: --no-comments
    double x = x + x
    ---
    exit: 0
    stdout-contains: Definition double
    ---

Checks: `exit: N`, `stderr: TEXT` (whole stderr without the final newline),
`stderr-contains: TEXT`, `stdout-contains: TEXT`, `stderr-empty: true` and
`stdout-empty: true`. The in-process tests at the end call `main` and
`parse_args` directly.
"""

import subprocess
import sys
from pathlib import Path

import pytest

from freecoq.cli import Args, describe_decls, main, parse_args
from freecoq.frontend import parse

CLI_DIR = Path(__file__).parent / "cli"
REPO_DIR = Path(__file__).parent.parent


def parse_cli_test_file(path: Path) -> list[tuple[str, dict]]:
    """Parse a .tests file into (name, spec) tuples."""
    lines = path.read_text().split("\n")
    result: list[tuple[str, dict]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            result.append((test_name, _parse_spec(input_lines, expected_lines)))
        else:
            i += 1
    return result


def _parse_spec(input_lines: list[str], expected_lines: list[str]) -> dict:
    spec: dict = {
        "args": [],
        "stdin": None,
        "stdin_bytes": None,
        "assertions": [],
    }
    body_start = 0
    if input_lines and input_lines[0].startswith("args:"):
        args_str = input_lines[0][5:].strip()
        spec["args"] = args_str.split() if args_str else []
        body_start = 1

    remaining = input_lines[body_start:]
    if remaining and remaining[0].startswith("stdin-bytes:"):
        spec["stdin_bytes"] = bytes.fromhex(remaining[0][len("stdin-bytes:") :].strip())
    else:
        spec["stdin"] = "\n".join(remaining)

    for line in expected_lines:
        line = line.strip()
        if not line:
            continue
        if line.startswith("exit:"):
            spec["assertions"].append(("exit", int(line[5:].strip())))
        elif line.startswith("stderr:"):
            spec["assertions"].append(("stderr", line[7:].strip()))
        elif line.startswith("stderr-contains:"):
            spec["assertions"].append(("stderr-contains", line[16:].strip()))
        elif line.startswith("stderr-empty:"):
            spec["assertions"].append(("stderr-empty", None))
        elif line.startswith("stdout-contains:"):
            spec["assertions"].append(("stdout-contains", line[16:].strip()))
        elif line.startswith("stdout-empty:"):
            spec["assertions"].append(("stdout-empty", None))
    return spec


def discover_cli_tests() -> list[tuple[str, dict]]:
    results = []
    for test_file in sorted(CLI_DIR.glob("*.tests")):
        for name, spec in parse_cli_test_file(test_file):
            results.append((f"{test_file.stem}/{name}", spec))
    return results


def run_cli(spec: dict) -> subprocess.CompletedProcess[bytes]:
    cmd = [sys.executable, "-m", "freecoq.cli", *spec["args"]]
    if spec["stdin_bytes"] is not None:
        stdin_data = spec["stdin_bytes"]
    elif spec["stdin"] is not None:
        stdin_data = spec["stdin"].encode()
    else:
        stdin_data = b""
    return subprocess.run(cmd, input=stdin_data, capture_output=True, cwd=REPO_DIR)


def check_assertions(
    result: subprocess.CompletedProcess[bytes], assertions: list[tuple]
) -> None:
    for kind, value in assertions:
        if kind == "exit":
            assert result.returncode == value, (
                f"expected exit {value}, got {result.returncode}"
                f"\nstderr: {result.stderr.decode(errors='replace')}"
            )
        elif kind == "stderr":
            actual = result.stderr.decode(errors="replace").rstrip("\n")
            assert actual == value, f"expected stderr {value!r}, got {actual!r}"
        elif kind == "stderr-contains":
            actual = result.stderr.decode(errors="replace")
            assert value in actual, f"expected stderr to contain {value!r}, got {actual!r}"
        elif kind == "stderr-empty":
            assert result.stderr == b"", f"expected empty stderr, got {result.stderr!r}"
        elif kind == "stdout-contains":
            actual = result.stdout.decode(errors="replace")
            assert value in actual, f"expected stdout to contain {value!r}, got {actual!r}"
        elif kind == "stdout-empty":
            assert result.stdout == b"", f"expected empty stdout, got {result.stdout[:200]!r}"


def pytest_generate_tests(metafunc):
    if "cli_spec" in metafunc.fixturenames:
        params = [pytest.param(spec, id=test_id) for test_id, spec in discover_cli_tests()]
        metafunc.parametrize("cli_spec", params)


def test_cli(cli_spec: dict) -> None:
    result = run_cli(cli_spec)
    check_assertions(result, cli_spec["assertions"])


# ── In-process ──


def test_parse_args_defaults():
    args = parse_args([])
    assert isinstance(args, Args)
    assert args.stop_at == "convert"
    assert args.input_file is None
    assert args.options.use_sections


def test_parse_args_flags():
    args = parse_args(["in.ir", "--no-sections", "--no-comments", "--fail-fast", "-o", "out.v"])
    assert args.input_file == "in.ir"
    assert args.output_file == "out.v"
    assert not args.options.use_sections
    assert not args.options.emit_comments
    assert args.options.fail_fast


def test_parse_args_stdin_dash():
    assert parse_args(["-"]).input_file is None


def test_usage_error_exits_2():
    with pytest.raises(SystemExit) as exc:
        parse_args(["--bogus"])
    assert exc.value.code == 2


def test_main_writes_output_file(tmp_path: Path):
    source = tmp_path / "double.ir"
    source.write_text("double x = x + x\n")
    out = tmp_path / "double.v"
    assert main([str(source), "-o", str(out)]) == 0
    text = out.read_text()
    assert text.startswith("From Base Require Import Free Prelude.")
    assert "Definition double" in text


def test_main_reports_conversion_errors(tmp_path: Path, capsys):
    source = tmp_path / "bad.ir"
    source.write_text("f = g\n")
    assert main([str(source)]) == 1
    assert "error: unknown identifier g at line 1 col 5" in capsys.readouterr().err


def test_describe_decls():
    module = parse("-- pragma decreasing f n\ntype T a = [a]\nf :: Integer -> Integer\nf n = n")
    assert describe_decls(module) == (
        "pragma decreasing f n\ntype T a\nsig f\nfunc f n\n"
    )
