"""Pytest configuration for the implcheck unit tests."""

from dataclasses import dataclass

import pytest

from implcheck import parse
from implcheck.declarations import DeclarationIndex
from implcheck.frontend.ast import SourceUnit, TypeAliasDecl
from implcheck.model import TypeModel
from implcheck.types import Member, Type


@dataclass
class Project:
    """Parsed units plus the index and type model built over them."""

    units: list[SourceUnit]
    index: DeclarationIndex
    model: TypeModel

    def alias(self, name: str) -> TypeAliasDecl:
        decl = self.index.alias(name)
        assert decl is not None, f"no alias named {name}"
        return decl

    def type_of(self, name: str) -> Type:
        """Resolved target type of the alias `name`."""
        return self.model.alias_type(self.alias(name))

    def render(self, name: str) -> str:
        return self.model.render(self.type_of(name))

    def interface_members(self, name: str) -> list[Member]:
        decl = self.index.lookup(name)
        assert decl is not None, f"no interface named {name}"
        return self.model.members_of_declaration(decl)

    def alias_members(self, name: str) -> list[Member]:
        return self.model.members_of(self.type_of(name))

    def assignable(self, source: str, target: str) -> bool:
        """Assignability between the targets of two aliases."""
        return self.model.is_assignable(self.type_of(source), self.type_of(target))


def load(files: str | dict[str, str]) -> Project:
    """Parse one source (or a path -> source mapping) and index it."""
    if isinstance(files, str):
        files = {"<input>": files}
    units = [parse(source, path) for path, source in files.items()]
    index = DeclarationIndex.build(units)
    return Project(units, index, TypeModel(index))


@pytest.fixture
def project():
    """Factory fixture: project(source) or project({path: source, ...})."""
    return load
