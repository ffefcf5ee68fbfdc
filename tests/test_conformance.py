"""Conformance engine tests: the missing/incompatible rules and the checker gates."""

from implcheck import (
    InterfaceNotFound,
    MissingProperty,
    UnsupportedGeneric,
    WrongType,
    check_source,
    check_units,
    parse,
)
from implcheck.conformance import check_members, find_missing_properties
from implcheck.types import BOOLEAN_T, NUMBER_T, STRING_T, Member


def findings(source: str) -> list:
    out: list = []
    for result in check_source(source):
        out.extend(result.findings)
    return out


def member(name: str, typ=STRING_T, optional: bool = False, readonly: bool = False) -> Member:
    return Member(name, typ, optional, readonly)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def test_missing_is_exact_set_difference(project):
    model = project("").model
    iface = [member("a"), member("b"), member("c"), member("d")]
    impl = [member("b"), member("d"), member("extra")]
    found = find_missing_properties(impl, iface, "Impl", "Iface")
    assert [f.property_name for f in found] == ["a", "c"]
    assert all(f.type_name == "Impl" and f.interface_name == "Iface" for f in found)
    assert check_members(iface + [member("extra")], iface, model, "Impl", "Iface") == []


def test_missing_before_wrong_type(project):
    model = project("").model
    iface = [member("a", NUMBER_T), member("b")]
    impl = [member("a", BOOLEAN_T)]
    found = check_members(impl, iface, model, "Impl", "Iface")
    assert found == [
        MissingProperty("b", "Impl", "Iface"),
        WrongType("a", "boolean", "number", "Iface"),
    ]


def test_check_is_idempotent():
    source = """
interface I { a: string; b: number; c: boolean }
/** @implements {I} */
type T = { a: number; c: string };
"""
    assert findings(source) == findings(source)
    assert len(findings(source)) == 3


def test_extra_members_are_silent():
    source = """
interface I { a: string }
/** @implements {I} */
type T = { a: string; b: number; c: () => void };
"""
    assert findings(source) == []


def test_readonly_is_one_directional():
    required = """
interface I { readonly prop: string }
/** @implements {I} */
type T = { prop: string };
"""
    assert findings(required) == [WrongType("prop", "string", "readonly string", "I")]
    stricter = """
interface I { prop: string }
/** @implements {I} */
type T = { readonly prop: string };
"""
    assert findings(stricter) == []


def test_optional_widening():
    loose_iface = """
interface I { prop?: string }
/** @implements {I} */
type T = { prop: string };
"""
    assert findings(loose_iface) == []
    loose_impl = """
interface I { prop: string }
/** @implements {I} */
type T = { prop?: string };
"""
    assert findings(loose_impl) == [WrongType("prop", "string | undefined", "string", "I")]


def test_union_rule_accepts_subset_and_superset():
    subset = """
interface I { prop: string | number }
/** @implements {I} */
type T = { prop: string };
"""
    assert findings(subset) == []
    superset = """
interface I { prop: "a" | "b" }
/** @implements {I} */
type T = { prop: "a" | "b" | "c" };
"""
    assert findings(superset) == []
    disjoint = """
interface I { prop: "a" | "b" }
/** @implements {I} */
type T = { prop: "c" };
"""
    assert findings(disjoint) == [WrongType("prop", '"c"', '"a" | "b"', "I")]


def test_non_union_expected_is_strict():
    source = """
interface I { prop: string }
/** @implements {I} */
type T = { prop: string | number };
"""
    assert findings(source) == [WrongType("prop", "string | number", "string", "I")]


def test_null_and_undefined_are_distinct():
    source = """
interface I { a: string | null; b: string | undefined }
/** @implements {I} */
type T = { a: undefined; b: null };
"""
    assert findings(source) == [
        WrongType("a", "undefined", "string | null", "I"),
        WrongType("b", "null", "string | undefined", "I"),
    ]


# ---------------------------------------------------------------------------
# Resolution through the checker
# ---------------------------------------------------------------------------


def test_merged_fragments_report_the_omitted_member():
    source = """
interface I { a: string }
interface I { b: number }
/** @implements {I} */
type T = { a: string };
"""
    assert findings(source) == [MissingProperty("b", "T", "I")]


def test_inheritance_chain_reports_mid_chain_member():
    source = """
interface A { a: string }
interface B extends A { b: string }
interface C extends B { c: string }
/** @implements {C} */
type T = { a: string; c: string };
"""
    assert findings(source) == [MissingProperty("b", "T", "C")]


def test_generic_rejection_is_unconditional():
    declared = """
interface Box<T> { value: T }
/** @implements {Box} */
type T = { value: string };
"""
    assert findings(declared) == [UnsupportedGeneric("Box")]
    annotated = """
interface Box { value: string }
/** @implements {Box<string>} */
type T = { nothing: number };
"""
    assert findings(annotated) == [UnsupportedGeneric("Box<string>")]
    implementation = """
interface Box { value: string }
/** @implements {Box} */
type T<V> = { value: V };
"""
    assert findings(implementation) == [UnsupportedGeneric("Box")]


def test_generic_annotation_wins_over_not_found():
    source = "/** @implements {Missing<string>} */\ntype T = {};"
    assert findings(source) == [UnsupportedGeneric("Missing<string>")]


def test_not_found_short_circuits():
    source = """
interface Other { a: string }
/** @implements {Missing} */
type T = { a: number };
"""
    assert findings(source) == [InterfaceNotFound("Missing")]


def test_type_alias_is_not_an_interface():
    source = """
type Shape = { a: string };
/** @implements {Shape} */
type T = { a: string };
"""
    assert findings(source) == [InterfaceNotFound("Shape")]


def test_interfaces_resolve_across_units():
    units = [
        parse("interface Shared { a: string }", "shared.ts"),
        parse("/** @implements {Shared} */\ntype T = { b: number };", "impl.ts"),
    ]
    results = check_units(units)
    assert len(results) == 1
    assert results[0].path == "impl.ts"
    assert results[0].findings == [MissingProperty("a", "T", "Shared")]
    assert not results[0].ok


def test_vendored_interfaces_are_not_found():
    units = [
        parse("interface Lib { a: string }", "node_modules/lib/index.d.ts"),
        parse("/** @implements {Lib} */\ntype T = { a: string };", "src/impl.ts"),
    ]
    assert check_units(units)[0].findings == [InterfaceNotFound("Lib")]


def test_vendored_aliases_are_not_checked():
    units = [
        parse("interface I { a: string }", "src/i.ts"),
        parse("/** @implements {I} */\ntype T = {};", "node_modules/lib/t.ts"),
    ]
    assert check_units(units) == []


def test_intersection_implementation():
    source = """
interface I { a: string; b: number }
interface Part { a: string }
/** @implements {I} */
type T = Part & { b: number };
"""
    assert findings(source) == []


def test_one_result_per_annotated_alias_in_order():
    source = """
interface I { a: string }
/** @implements {I} */
type First = { a: string };
type Unannotated = {};
namespace NS {
  /** @implements {I} */
  export type Second = {};
}
"""
    results = check_source(source)
    assert [r.alias.name for r in results] == ["First", "Second"]
    assert results[0].ok
    assert results[1].findings == [MissingProperty("a", "Second", "I")]
