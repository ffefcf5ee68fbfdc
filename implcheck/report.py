"""Diagnostic reporter: findings to message records, forwarded to a sink."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable

from .checker import CheckResult
from .conformance import Finding

MESSAGES: dict[str, str] = {
    "missingProperty": "Property '{propertyName}' is missing in type '{typeName}' but required by interface '{interfaceName}'",
    "interfaceNotFound": "Interface '{interfaceName}' specified in @implements tag was not found in the project",
    "wrongType": "Property '{propertyName}' has type '{actualType}' but interface '{interfaceName}' expects '{expectedType}'",
    "unsupportedGeneric": "Generic interfaces are not supported. Interface '{interfaceName}' contains generic type parameters.",
}

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def format_message(message_id: str, data: dict[str, str]) -> str:
    """Substitute `{name}` placeholders; unknown placeholders are left as written."""
    template = MESSAGES[message_id]
    return _PLACEHOLDER_RE.sub(lambda m: data.get(m.group(1), m.group(0)), template)


@dataclass(frozen=True)
class Diagnostic:
    message_id: str
    message: str
    data: dict[str, str]
    path: str
    line: int
    col: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "messageId": self.message_id,
            "message": self.message,
            "data": dict(self.data),
            "path": self.path,
            "line": self.line,
            "col": self.col,
        }

    def format_text(self) -> str:
        return (
            self.path
            + ":"
            + str(self.line)
            + ":"
            + str(self.col)
            + ": error: "
            + self.message
            + " ["
            + self.message_id
            + "]"
        )


def to_diagnostic(finding: Finding, path: str, line: int, col: int) -> Diagnostic:
    data = finding.data()
    return Diagnostic(finding.MESSAGE_ID, format_message(finding.MESSAGE_ID, data), data, path, line, col)


class Reporter:
    """Forwards one Diagnostic per finding to `sink`; collects them when no sink is given."""

    def __init__(self, sink: Callable[[Diagnostic], None] | None = None):
        self.diagnostics: list[Diagnostic] = []
        self.sink: Callable[[Diagnostic], None] = sink if sink is not None else self.diagnostics.append

    def report(self, result: CheckResult) -> int:
        """Report every finding of one result at the alias's position."""
        pos = result.alias.pos
        for finding in result.findings:
            self.sink(to_diagnostic(finding, result.path, pos.line, pos.col))
        return len(result.findings)

    def report_all(self, results: list[CheckResult]) -> int:
        count = 0
        for result in results:
            count += self.report(result)
        return count
