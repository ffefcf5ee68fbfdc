"""Checker: runs the annotation, resolution and conformance gates over source units."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from .annotations import extract_implements
from .conformance import (
    Finding,
    InterfaceNotFound,
    UnsupportedGeneric,
    check_members,
)
from .declarations import (
    VENDORED_SEGMENTS,
    DeclarationIndex,
    is_vendored,
    walk_declarations,
)
from .frontend.ast import SourceUnit, TypeAliasDecl
from .model import TypeModel
from .types import Member

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    """Findings for one annotated type alias."""

    path: str
    alias: TypeAliasDecl
    interface_name: str
    findings: list[Finding] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return len(self.findings) == 0


class Checker:
    """One analysis pass: the index and type model are built once, then only read."""

    def __init__(self, units: Iterable[SourceUnit], vendored: Iterable[str] = VENDORED_SEGMENTS):
        self.units: list[SourceUnit] = list(units)
        self.vendored: tuple[str, ...] = tuple(vendored)
        self.index: DeclarationIndex = DeclarationIndex.build(self.units, self.vendored)
        self.model: TypeModel = TypeModel(self.index)

    def implementation_members(self, alias: TypeAliasDecl) -> list[Member]:
        return self.model.members_of(self.model.alias_type(alias))

    def check_declaration(self, alias: TypeAliasDecl) -> list[Finding]:
        """Findings for one alias; empty when it carries no annotation."""
        name = extract_implements(alias)
        if name is None:
            return []
        return self._check_annotated(alias, name)

    def _check_annotated(self, alias: TypeAliasDecl, name: str) -> list[Finding]:
        if "<" in name:
            logger.debug("%s: generic annotation %s", alias.name, name)
            return [UnsupportedGeneric(name)]
        iface = self.index.resolve(name)
        if iface is None:
            logger.debug("%s: interface %s not found", alias.name, name)
            return [InterfaceNotFound(name)]
        if iface.is_generic or alias.type_params:
            logger.debug("%s: generic declaration involved for %s", alias.name, name)
            return [UnsupportedGeneric(name)]
        impl = self.implementation_members(alias)
        required = self.model.members_of_declaration(iface)
        findings = check_members(impl, required, self.model, alias.name, name)
        logger.debug("%s implements %s: %d finding(s)", alias.name, name, len(findings))
        return findings

    def run(self) -> list[CheckResult]:
        """Check every annotated alias in every non-vendored unit, in source order."""
        results: list[CheckResult] = []
        for unit in self.units:
            if is_vendored(unit.path, self.vendored):
                continue
            for decl in walk_declarations(unit.decls):
                if not isinstance(decl, TypeAliasDecl):
                    continue
                name = extract_implements(decl)
                if name is None:
                    continue
                findings = self._check_annotated(decl, name)
                results.append(CheckResult(unit.path, decl, name, findings))
        return results


# ============================================================
# PUBLIC API
# ============================================================


def check_units(units: Iterable[SourceUnit], vendored: Iterable[str] = VENDORED_SEGMENTS) -> list[CheckResult]:
    """Check a set of parsed units as one pass. Returns one result per annotated alias."""
    return Checker(units, vendored).run()
