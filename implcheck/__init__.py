"""implcheck: checks type aliases against the interfaces named by their @implements tags."""

from __future__ import annotations

from .checker import CheckResult, Checker, check_units
from .completion import PropertyStub, missing_property_stubs
from .conformance import (
    Finding,
    InterfaceNotFound,
    MissingProperty,
    UnsupportedGeneric,
    WrongType,
)
from .frontend import ParseError as ParseError, TokenizeError as TokenizeError, parse
from .report import MESSAGES, Diagnostic, Reporter


def check_source(source: str, path: str = "<input>") -> list[CheckResult]:
    """Parse one source text and check it on its own. Returns one result per annotated alias."""
    return check_units([parse(source, path)])


def diagnose_source(source: str, path: str = "<input>") -> list[Diagnostic]:
    """Parse, check and report one source text."""
    reporter = Reporter()
    reporter.report_all(check_source(source, path))
    return reporter.diagnostics


__all__ = [
    "MESSAGES",
    "CheckResult",
    "Checker",
    "Diagnostic",
    "Finding",
    "InterfaceNotFound",
    "MissingProperty",
    "ParseError",
    "PropertyStub",
    "Reporter",
    "TokenizeError",
    "UnsupportedGeneric",
    "WrongType",
    "check_source",
    "check_units",
    "diagnose_source",
    "missing_property_stubs",
    "parse",
]
