"""Nominal declaration index: interfaces merged across fragments, with inheritance flattened."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from .frontend.ast import (
    CallSig,
    Decl,
    EnumDecl,
    IndexSig,
    InterfaceDecl,
    MemberNode,
    NamespaceDecl,
    SourceUnit,
    TypeAliasDecl,
    TypeNode,
)

logger = logging.getLogger(__name__)

VENDORED_SEGMENTS: tuple[str, ...] = ("node_modules",)

_SEPARATOR_RE = re.compile(r"[\\/]")


def is_vendored(path: str, segments: Iterable[str] = VENDORED_SEGMENTS) -> bool:
    """True when any directory segment of `path` names a vendored tree."""
    parts = _SEPARATOR_RE.split(path)
    for segment in segments:
        if segment in parts:
            return True
    return False


@dataclass(frozen=True)
class ExtendsStep:
    """One `extends` edge: the parent's type parameters and the arguments written for them."""

    owner: str
    params: tuple[str, ...]
    args: tuple[TypeNode, ...]


@dataclass(frozen=True)
class DeclaredMember:
    """A member node together with the interface that declares it.

    `chain` lists the `extends` edges walked from the merged interface down
    to `owner`; it is empty for the interface's own members.
    """

    node: MemberNode
    owner: str
    chain: tuple[ExtendsStep, ...] = ()


@dataclass(frozen=True)
class NominalDeclaration:
    """An interface after merging fragments and flattening `extends`.

    `members` holds own members first, then inherited ones depth-first in
    `extends` order. The first declaration of a name wins.
    """

    name: str
    type_params: tuple[str, ...]
    members: tuple[DeclaredMember, ...]
    ancestors: tuple[str, ...]
    fragments: tuple[InterfaceDecl, ...]
    is_generic: bool

    def member_names(self) -> list[str]:
        return [m.node.name for m in self.members]


def walk_declarations(decls: list[Decl]) -> Iterator[Decl]:
    """Yield every declaration, descending into namespace bodies."""
    for decl in decls:
        if isinstance(decl, NamespaceDecl):
            yield from walk_declarations(decl.decls)
        else:
            yield decl


# ============================================================
# INDEX
# ============================================================


class DeclarationIndex:
    """Name-keyed lookup built once from a set of source units; read-only afterward."""

    def __init__(
        self,
        declarations: Mapping[str, NominalDeclaration],
        aliases: Mapping[str, TypeAliasDecl],
        local_names: frozenset[str],
        enums: Mapping[str, frozenset[str]] | None = None,
    ):
        self._declarations: Mapping[str, NominalDeclaration] = MappingProxyType(dict(declarations))
        self._aliases: Mapping[str, TypeAliasDecl] = MappingProxyType(dict(aliases))
        self._local_names: frozenset[str] = local_names
        self._enums: Mapping[str, frozenset[str]] = MappingProxyType(dict(enums or {}))

    @classmethod
    def build(
        cls, units: Iterable[SourceUnit], vendored: Iterable[str] = VENDORED_SEGMENTS
    ) -> DeclarationIndex:
        segments = tuple(vendored)
        fragments: dict[str, list[InterfaceDecl]] = {}
        aliases: dict[str, TypeAliasDecl] = {}
        enums: dict[str, frozenset[str]] = {}
        local: set[str] = set()
        for unit in units:
            unit_vendored = is_vendored(unit.path, segments)
            for decl in walk_declarations(unit.decls):
                if isinstance(decl, InterfaceDecl):
                    fragments.setdefault(decl.name, []).append(decl)
                    if not unit_vendored:
                        local.add(decl.name)
                elif isinstance(decl, TypeAliasDecl):
                    if decl.name not in aliases:
                        aliases[decl.name] = decl
                elif isinstance(decl, EnumDecl):
                    # Enum declarations merge like interfaces
                    enums[decl.name] = enums.get(decl.name, frozenset()) | frozenset(decl.members)
        declarations: dict[str, NominalDeclaration] = {}
        for name in fragments:
            declarations[name] = _merge(name, fragments)
        logger.debug(
            "indexed %d interfaces (%d local), %d aliases, %d enums",
            len(declarations),
            len(local),
            len(aliases),
            len(enums),
        )
        return cls(declarations, aliases, frozenset(local), enums)

    def resolve(self, name: str) -> NominalDeclaration | None:
        """Look up an interface declared outside vendored trees."""
        if name not in self._local_names:
            return None
        return self._declarations.get(name)

    def lookup(self, name: str) -> NominalDeclaration | None:
        """Look up any interface, vendored or not, for type references."""
        return self._declarations.get(name)

    def alias(self, name: str) -> TypeAliasDecl | None:
        return self._aliases.get(name)

    def enum_members(self, name: str) -> frozenset[str] | None:
        """Member names of an enum, or None when `name` is not an enum."""
        return self._enums.get(name)

    def names(self) -> list[str]:
        return sorted(self._local_names)

    def __contains__(self, name: object) -> bool:
        return name in self._local_names


# ============================================================
# MERGING
# ============================================================


def _type_params(own: list[InterfaceDecl]) -> tuple[str, ...]:
    for frag in own:
        if frag.type_params:
            return tuple(frag.type_params)
    return ()


def _merge(name: str, fragments: Mapping[str, list[InterfaceDecl]]) -> NominalDeclaration:
    own = fragments[name]
    type_params = _type_params(own)
    members: list[DeclaredMember] = []
    seen: set[str] = set()
    ancestors: list[str] = []
    _collect(name, name, (), fragments, members, seen, ancestors, set())
    return NominalDeclaration(
        name=name,
        type_params=type_params,
        members=tuple(members),
        ancestors=tuple(ancestors),
        fragments=tuple(own),
        is_generic=len(type_params) > 0,
    )


def _collect(
    root: str,
    name: str,
    chain: tuple[ExtendsStep, ...],
    fragments: Mapping[str, list[InterfaceDecl]],
    members: list[DeclaredMember],
    seen: set[str],
    ancestors: list[str],
    visiting: set[str],
) -> None:
    """Depth-first pre-order over the extends graph; each interface visited once."""
    if name in visiting:
        return
    visiting.add(name)
    own = fragments.get(name)
    if own is None:
        logger.debug("extends target %s is not declared, skipping", name)
        return
    for frag in own:
        for node in frag.members:
            if isinstance(node, (IndexSig, CallSig)):
                continue
            if node.name in seen:
                continue
            seen.add(node.name)
            members.append(DeclaredMember(node, name, chain))
    for frag in own:
        for ref in frag.extends:
            if ref.name != root and ref.name not in ancestors:
                ancestors.append(ref.name)
            parent = fragments.get(ref.name)
            params = _type_params(parent) if parent is not None else ()
            step = ExtendsStep(ref.name, params, tuple(ref.args))
            _collect(root, ref.name, chain + (step,), fragments, members, seen, ancestors, visiting)

