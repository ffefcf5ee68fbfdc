"""implcheck CLI: check @implements annotations in TypeScript sources."""

from __future__ import annotations

import json
import logging
import os
import sys

from .checker import Checker
from .frontend import ParseError, TokenizeError, parse
from .frontend.ast import SourceUnit
from .report import Diagnostic, Reporter


USAGE: str = """\
implcheck [OPTIONS] PATH...

Check that type aliases tagged @implements {Iface} conform to Iface.

Options:
  --format FORMAT    Output format: text (default) or json
  --exclude SEGMENT  Skip paths containing this directory name
                     (repeatable; default: node_modules)
  --verbose          Log index and checker decisions to stderr
  --help             Show this help message
"""

SOURCE_SUFFIXES: tuple[str, ...] = (".ts", ".tsx", ".mts", ".cts")

logger = logging.getLogger(__name__)


def discover(paths: list[str], exclude: list[str]) -> list[str]:
    """Expand directories into source files, sorted; explicit files are kept as given."""
    found: list[str] = []
    for path in paths:
        if not os.path.isdir(path):
            found.append(path)
            continue
        for root, dirs, files in os.walk(path):
            dirs[:] = sorted(d for d in dirs if d not in exclude)
            for name in sorted(files):
                if name.endswith(SOURCE_SUFFIXES):
                    found.append(os.path.join(root, name))
    return found


def read_units(files: list[str]) -> tuple[list[SourceUnit], int]:
    """Parse each file; report failures on stderr and keep going. Returns (units, failures)."""
    units: list[SourceUnit] = []
    failures = 0
    for path in files:
        try:
            with open(path, "rb") as f:
                raw = f.read()
        except FileNotFoundError:
            print("implcheck: " + path + ": No such file or directory", file=sys.stderr)
            failures += 1
            continue
        except OSError as e:
            print("implcheck: " + path + ": " + str(e), file=sys.stderr)
            failures += 1
            continue
        try:
            source = raw.decode("utf-8")
        except ValueError:
            print("implcheck: " + path + ": invalid utf-8", file=sys.stderr)
            failures += 1
            continue
        try:
            units.append(parse(source, path))
        except (TokenizeError, ParseError) as e:
            print("implcheck: " + path + ": parse error: " + str(e), file=sys.stderr)
            failures += 1
    return units, failures


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    paths: list[str] = []
    fmt = "text"
    exclude: list[str] = []
    verbose = False
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return 0
        elif arg == "--format":
            if i + 1 >= len(args):
                print("implcheck: --format requires a value", file=sys.stderr)
                return 2
            fmt = args[i + 1]
            if fmt not in ("text", "json"):
                print("implcheck: unknown format '" + fmt + "'", file=sys.stderr)
                return 2
            i += 2
        elif arg == "--exclude":
            if i + 1 >= len(args):
                print("implcheck: --exclude requires a value", file=sys.stderr)
                return 2
            exclude.append(args[i + 1])
            i += 2
        elif arg == "--verbose" or arg == "-v":
            verbose = True
            i += 1
        elif arg.startswith("-") and arg != "-":
            print("implcheck: unknown flag '" + arg + "'", file=sys.stderr)
            return 2
        else:
            paths.append(arg)
            i += 1
    if not paths:
        print("implcheck: missing path argument", file=sys.stderr)
        return 2
    if not exclude:
        exclude = ["node_modules"]

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    files = discover(paths, exclude)
    logger.debug("discovered %d file(s)", len(files))
    units, failures = read_units(files)
    checker = Checker(units, exclude)
    diagnostics: list[Diagnostic] = []
    reporter = Reporter(diagnostics.append)
    count = reporter.report_all(checker.run())

    if fmt == "json":
        print(json.dumps([d.to_dict() for d in diagnostics], indent=2))
    else:
        for d in diagnostics:
            print(d.format_text())

    if count > 0 or failures > 0:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
