"""CLI tests for the implcheck entry point.

Test cases live in cli/*.tests files. Format:

    === test name
    args: --format json src
    file: src/shape.ts
    interface I { a: string }
    file: src/other.ts
    ...
    ---
    exit: 1
    stdout-contains: [missingProperty]
    stderr-contains: parse error
    stdout-empty: true
    stderr-empty: true
    ---

Directives in the input section:
    args:   CLI arguments (first line, required)
    file:   path of a file to create; following lines are its content

Assertion directives in the expected section:
    exit:             exact exit code
    stdout:           exact stdout line (repeatable, in order)
    stdout-contains:  stdout must contain substring
    stdout-lacks:     stdout must not contain substring
    stderr-contains:  stderr must contain substring
    stdout-empty:     stdout must be empty
    stderr-empty:     stderr must be empty
"""

from pathlib import Path

import pytest

from implcheck.cli import main

CLI_DIR = Path(__file__).parent / "cli"


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
    """Parse input + expected lines into a test spec dict."""
    spec: dict = {"args": [], "files": {}, "assertions": []}
    body_start = 0
    if input_lines and input_lines[0].startswith("args:"):
        args_str = input_lines[0][5:].strip()
        spec["args"] = args_str.split() if args_str else []
        body_start = 1
    current: str | None = None
    for line in input_lines[body_start:]:
        if line.startswith("file:"):
            current = line[5:].strip()
            spec["files"][current] = []
        elif current is not None:
            spec["files"][current].append(line)
    for line in expected_lines:
        line = line.strip()
        if not line:
            continue
        key, _, value = line.partition(":")
        value = value.strip()
        if key == "exit":
            spec["assertions"].append(("exit", int(value)))
        elif key in ("stdout", "stdout-contains", "stdout-lacks", "stderr-contains"):
            spec["assertions"].append((key, value))
        elif key in ("stdout-empty", "stderr-empty"):
            spec["assertions"].append((key, None))
    return spec


def discover_cli_tests() -> list[tuple[str, dict]]:
    """Find all CLI tests across .tests files."""
    results = []
    for test_file in sorted(CLI_DIR.glob("*.tests")):
        for name, spec in parse_cli_test_file(test_file):
            results.append((f"{test_file.stem}/{name}", spec))
    return results


def check_assertions(code: int, out: str, err: str, assertions: list[tuple]) -> None:
    """Check all assertions against a CLI run."""
    out_lines = out.splitlines()
    line_idx = 0
    for kind, value in assertions:
        if kind == "exit":
            assert code == value, f"expected exit {value}, got {code}\nstderr: {err}"
        elif kind == "stdout":
            assert line_idx < len(out_lines), f"expected stdout line {value!r}, got end of output"
            assert out_lines[line_idx] == value, f"expected {value!r}, got {out_lines[line_idx]!r}"
            line_idx += 1
        elif kind == "stdout-contains":
            assert value in out, f"expected stdout to contain {value!r}, got {out!r}"
        elif kind == "stdout-lacks":
            assert value not in out, f"expected stdout not to contain {value!r}, got {out!r}"
        elif kind == "stderr-contains":
            assert value in err, f"expected stderr to contain {value!r}, got {err!r}"
        elif kind == "stdout-empty":
            assert out == "", f"expected empty stdout, got {out[:200]!r}"
        elif kind == "stderr-empty":
            assert err == "", f"expected empty stderr, got {err[:200]!r}"


def pytest_generate_tests(metafunc):
    """Parametrize test_cli over all .tests files."""
    if "cli_spec" in metafunc.fixturenames:
        tests = discover_cli_tests()
        params = [pytest.param(spec, id=test_id) for test_id, spec in tests]
        metafunc.parametrize("cli_spec", params)


def test_cli(cli_spec: dict, tmp_path: Path, monkeypatch, capsys) -> None:
    """Run a single CLI test case from a .tests file inside a scratch directory."""
    for rel, content in cli_spec["files"].items():
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(content))
    monkeypatch.chdir(tmp_path)
    code = main(cli_spec["args"])
    captured = capsys.readouterr()
    check_assertions(code, captured.out, captured.err, cli_spec["assertions"])


def test_invalid_utf8_is_reported(tmp_path: Path, monkeypatch, capsys) -> None:
    (tmp_path / "bad.ts").write_bytes(b"type T = '\xff';")
    monkeypatch.chdir(tmp_path)
    assert main(["bad.ts"]) == 1
    assert "implcheck: bad.ts: invalid utf-8" in capsys.readouterr().err
