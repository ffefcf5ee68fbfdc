"""Completion query: stubs for interface properties an implementation still lacks."""

from __future__ import annotations

from dataclasses import dataclass

from .annotations import extract_implements
from .declarations import DeclarationIndex
from .frontend.ast import TypeAliasDecl
from .model import TypeModel
from .types import property_name


@dataclass(frozen=True)
class PropertyStub:
    name: str
    type_text: str
    optional: bool
    insert_text: str


def missing_property_stubs(decl: TypeAliasDecl, index: DeclarationIndex, model: TypeModel) -> list[PropertyStub]:
    """Interface properties not yet declared by `decl`, in interface order.

    Returns nothing when the alias has no usable annotation target.
    """
    name = extract_implements(decl)
    if name is None or "<" in name:
        return []
    iface = index.resolve(name)
    if iface is None or iface.is_generic:
        return []
    present = {m.name for m in model.members_of(model.alias_type(decl))}
    stubs: list[PropertyStub] = []
    for m in model.members_of_declaration(iface):
        if m.name in present:
            continue
        type_text = model.render(m.typ)
        stubs.append(PropertyStub(m.name, type_text, m.optional, property_name(m.name) + ": " + type_text))
    return stubs
