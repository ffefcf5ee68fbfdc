"""Declaration index tests: merging, inheritance, vendored units."""

import pytest

from implcheck.declarations import is_vendored


def names(project, source: str, iface: str) -> list[str]:
    decl = project(source).index.resolve(iface)
    assert decl is not None
    return decl.member_names()


def test_fragments_merge_in_declaration_order(project):
    source = "interface A { x: string }\ninterface A { y: number }"
    assert names(project, source, "A") == ["x", "y"]


def test_fragments_merge_across_units(project):
    p = project({"a.ts": "interface A { x: string }", "b.ts": "interface A { y: number }"})
    decl = p.index.resolve("A")
    assert decl is not None
    assert decl.member_names() == ["x", "y"]
    assert len(decl.fragments) == 2


def test_first_duplicate_member_wins(project):
    p = project("interface A { x: string }\ninterface A { x: number; y: boolean }")
    members = p.interface_members("A")
    assert [m.name for m in members] == ["x", "y"]
    assert p.model.render(members[0].typ) == "string"


def test_inherited_members_follow_own_members(project):
    source = """
interface Base { b: string }
interface Mid extends Base { m: string }
interface Leaf extends Mid { l: string }
"""
    p = project(source)
    decl = p.index.resolve("Leaf")
    assert decl.member_names() == ["l", "m", "b"]
    assert decl.ancestors == ("Mid", "Base")


def test_multiple_parents_in_extends_order(project):
    source = """
interface Left { l: string }
interface Right { r: string }
interface Both extends Left, Right { own: string }
"""
    assert names(project, source, "Both") == ["own", "l", "r"]


def test_child_member_shadows_inherited(project):
    p = project('interface Base { x: string }\ninterface Child extends Base { x: "a" }')
    members = p.interface_members("Child")
    assert len(members) == 1
    assert p.model.render(members[0].typ) == '"a"'


def test_cyclic_inheritance_terminates(project):
    source = "interface A extends B { a: string }\ninterface B extends A { b: string }"
    assert names(project, source, "A") == ["a", "b"]
    assert names(project, source, "B") == ["b", "a"]


def test_unknown_parent_is_ignored(project):
    assert names(project, "interface A extends Missing { a: string }", "A") == ["a"]


def test_index_and_call_signatures_have_no_names(project):
    source = "interface A { [key: string]: any; (): void; new (): A; a: string }"
    assert names(project, source, "A") == ["a"]


def test_generic_flags(project):
    p = project(
        """
interface Plain { v: string }
interface Box<T> { v: T }
interface StringBox extends Box<string> {}
"""
    )
    assert not p.index.resolve("Plain").is_generic
    assert p.index.resolve("Box").is_generic
    assert p.index.resolve("Box").type_params == ("T",)
    assert not p.index.resolve("StringBox").is_generic


def test_extends_arguments_substitute_into_inherited_members(project):
    p = project(
        """
interface Pair<K, V> { key: K; value: V; pairs: Pair<K, V>[] }
interface Box<T> extends Pair<string, T[]> { item: T }
interface NumberBox extends Box<number> { label: string }
interface Loose extends Box { label: string }
"""
    )
    members = {m.name: p.model.render(m.typ) for m in p.interface_members("NumberBox")}
    assert members == {
        "label": "string",
        "item": "number",
        "key": "string",
        "value": "number[]",
        "pairs": "Pair<string, number[]>[]",
    }
    loose = {m.name: p.model.render(m.typ) for m in p.interface_members("Loose")}
    assert loose["item"] == "T"
    assert loose["value"] == "T[]"


def test_generic_parameter_in_any_fragment(project):
    p = project("interface A { a: string }\ninterface A<T> { b: T }")
    assert p.index.resolve("A").is_generic


def test_namespace_declarations_are_indexed(project):
    p = project("namespace NS {\n  export interface Inner { a: string }\n}\ndeclare global {\n  interface Win { w: number }\n}")
    assert p.index.resolve("Inner") is not None
    assert p.index.resolve("Win") is not None


def test_vendored_units_do_not_resolve(project):
    p = project(
        {
            "node_modules/lib/index.d.ts": "interface Lib { a: string }",
            "src/main.ts": "interface Local { b: Lib }",
        }
    )
    assert p.index.resolve("Lib") is None
    assert p.index.lookup("Lib") is not None
    assert "Lib" not in p.index
    assert "Local" in p.index
    assert p.index.names() == ["Local"]


def test_first_alias_wins(project):
    p = project({"a.ts": "type T = string;", "b.ts": "type T = number;"})
    assert p.render("T") == "string"


@pytest.mark.parametrize(
    "path,expected",
    [
        ("node_modules/pkg/index.d.ts", True),
        ("app/node_modules/pkg/index.d.ts", True),
        ("app\\node_modules\\pkg\\index.d.ts", True),
        ("app/node_modules_extra/index.ts", False),
        ("app/src/node_modules.ts", False),
        ("src/main.ts", False),
    ],
)
def test_is_vendored(path: str, expected: bool):
    assert is_vendored(path) is expected
