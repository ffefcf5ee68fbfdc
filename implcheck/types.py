"""Resolved type representation, normalization, and the canonical type printer."""

from __future__ import annotations

import re
from dataclasses import dataclass


# ============================================================
# RESOLVED TYPE REPRESENTATION
# ============================================================

TY_STRING: str = "string"
TY_NUMBER: str = "number"
TY_BIGINT: str = "bigint"
TY_BOOLEAN: str = "boolean"
TY_SYMBOL: str = "symbol"
TY_OBJECT: str = "object"
TY_ANY: str = "any"
TY_UNKNOWN: str = "unknown"
TY_NEVER: str = "never"
TY_VOID: str = "void"
TY_NULL: str = "null"
TY_UNDEFINED: str = "undefined"


@dataclass
class Type:
    kind: str


@dataclass
class LiteralT(Type):
    """String, number, bigint or boolean literal. `value` is unquoted text."""

    base: str
    value: str


@dataclass
class TemplateT(Type):
    parts: list[str]
    holes: list[Type]


@dataclass
class UnionT(Type):
    members: list[Type]


@dataclass
class IntersectionT(Type):
    members: list[Type]


@dataclass
class ArrayT(Type):
    element: Type
    readonly: bool


@dataclass
class TupleElem:
    typ: Type
    optional: bool
    rest: bool


@dataclass
class TupleT(Type):
    elements: list[TupleElem]
    readonly: bool


@dataclass
class ParamT:
    name: str
    typ: Type
    optional: bool
    rest: bool


@dataclass
class FnT(Type):
    """Call signature. `method` marks method-signature syntax (bivariant params)."""

    type_params: list[str]
    params: list[ParamT]
    ret: Type
    method: bool


@dataclass
class Member:
    """A named property, on either side of a conformance check."""

    name: str
    typ: Type
    optional: bool
    readonly: bool


@dataclass
class ObjectT(Type):
    members: list[Member]


@dataclass
class RefT(Type):
    """Reference to a named interface or alias, expanded lazily by the type model."""

    name: str
    args: list[Type]


@dataclass
class TypeParamT(Type):
    """Type parameter; `key` identifies its binding site (owner and index)."""

    name: str
    key: str


@dataclass
class OpaqueT(Type):
    """Construct outside the modeled subset, compared by its text."""

    text: str


# Keyword singletons
STRING_T: Type = Type(kind=TY_STRING)
NUMBER_T: Type = Type(kind=TY_NUMBER)
BIGINT_T: Type = Type(kind=TY_BIGINT)
BOOLEAN_T: Type = Type(kind=TY_BOOLEAN)
SYMBOL_T: Type = Type(kind=TY_SYMBOL)
OBJECT_T: Type = Type(kind=TY_OBJECT)
ANY_T: Type = Type(kind=TY_ANY)
UNKNOWN_T: Type = Type(kind=TY_UNKNOWN)
NEVER_T: Type = Type(kind=TY_NEVER)
VOID_T: Type = Type(kind=TY_VOID)
NULL_T: Type = Type(kind=TY_NULL)
UNDEFINED_T: Type = Type(kind=TY_UNDEFINED)

KEYWORD_MAP: dict[str, Type] = {
    TY_STRING: STRING_T,
    TY_NUMBER: NUMBER_T,
    TY_BIGINT: BIGINT_T,
    TY_BOOLEAN: BOOLEAN_T,
    TY_SYMBOL: SYMBOL_T,
    TY_OBJECT: OBJECT_T,
    TY_ANY: ANY_T,
    TY_UNKNOWN: UNKNOWN_T,
    TY_NEVER: NEVER_T,
    TY_VOID: VOID_T,
    TY_NULL: NULL_T,
    TY_UNDEFINED: UNDEFINED_T,
}

# Keyword primitives print first in a union, in this order
PRIMITIVE_ORDER: list[str] = [
    TY_STRING,
    TY_NUMBER,
    TY_BIGINT,
    TY_BOOLEAN,
    TY_SYMBOL,
    TY_VOID,
    TY_OBJECT,
]


def is_keyword(t: Type) -> bool:
    return type(t) is Type


def literal(base: str, value: str) -> LiteralT:
    return LiteralT(kind="literal", base=base, value=value)


# ============================================================
# TYPE EQUALITY
# ============================================================


def type_eq(a: Type, b: Type) -> bool:
    if a is b:
        return True
    if a.kind != b.kind or type(a) is not type(b):
        return False
    if isinstance(a, LiteralT) and isinstance(b, LiteralT):
        return a.base == b.base and a.value == b.value
    if isinstance(a, TemplateT) and isinstance(b, TemplateT):
        return a.parts == b.parts and _list_eq(a.holes, b.holes)
    if isinstance(a, UnionT) and isinstance(b, UnionT):
        return _members_eq_unordered(a.members, b.members)
    if isinstance(a, IntersectionT) and isinstance(b, IntersectionT):
        return _members_eq_unordered(a.members, b.members)
    if isinstance(a, ArrayT) and isinstance(b, ArrayT):
        return a.readonly == b.readonly and type_eq(a.element, b.element)
    if isinstance(a, TupleT) and isinstance(b, TupleT):
        if a.readonly != b.readonly or len(a.elements) != len(b.elements):
            return False
        for x, y in zip(a.elements, b.elements):
            if x.optional != y.optional or x.rest != y.rest or not type_eq(x.typ, y.typ):
                return False
        return True
    if isinstance(a, FnT) and isinstance(b, FnT):
        if len(a.type_params) != len(b.type_params) or len(a.params) != len(b.params):
            return False
        for p, q in zip(a.params, b.params):
            if p.optional != q.optional or p.rest != q.rest or not type_eq(p.typ, q.typ):
                return False
        return type_eq(a.ret, b.ret)
    if isinstance(a, ObjectT) and isinstance(b, ObjectT):
        if len(a.members) != len(b.members):
            return False
        by_name = {m.name: m for m in b.members}
        for m in a.members:
            other = by_name.get(m.name)
            if other is None:
                return False
            if m.optional != other.optional or m.readonly != other.readonly:
                return False
            if not type_eq(m.typ, other.typ):
                return False
        return True
    if isinstance(a, RefT) and isinstance(b, RefT):
        return a.name == b.name and _list_eq(a.args, b.args)
    if isinstance(a, TypeParamT) and isinstance(b, TypeParamT):
        return a.key == b.key
    if isinstance(a, OpaqueT) and isinstance(b, OpaqueT):
        return a.text == b.text
    return True


def _list_eq(a: list[Type], b: list[Type]) -> bool:
    if len(a) != len(b):
        return False
    for x, y in zip(a, b):
        if not type_eq(x, y):
            return False
    return True


def _members_eq_unordered(a: list[Type], b: list[Type]) -> bool:
    if len(a) != len(b):
        return False
    for m in a:
        found = False
        for n in b:
            if type_eq(m, n):
                found = True
                break
        if not found:
            return False
    return True


# ============================================================
# TYPE KEYS
# ============================================================


def type_key(t: Type) -> str:
    """Produce a string key for a resolved Type, for use in sets."""
    if isinstance(t, RefT):
        if not t.args:
            return "ref:" + t.name
        return "ref:" + t.name + "<" + ",".join(type_key(a) for a in t.args) + ">"
    if isinstance(t, TypeParamT):
        return "param:" + t.key
    if isinstance(t, UnionT):
        return "union{" + "|".join(sorted(type_key(m) for m in t.members)) + "}"
    if isinstance(t, IntersectionT):
        return "inter{" + "&".join(sorted(type_key(m) for m in t.members)) + "}"
    if isinstance(t, LiteralT):
        return "lit:" + t.base + ":" + t.value
    return type_name(t)


# ============================================================
# UNION / INTERSECTION NORMALIZATION
# ============================================================


def normalize_union(members: list[Type]) -> Type:
    flat: list[Type] = []
    for m in members:
        if isinstance(m, UnionT):
            flat.extend(m.members)
        else:
            flat.append(m)
    for m in flat:
        if m.kind == TY_ANY:
            return ANY_T
    for m in flat:
        if m.kind == TY_UNKNOWN:
            return UNKNOWN_T
    # Deduplicate, dropping never
    deduped: list[Type] = []
    for m in flat:
        if m.kind == TY_NEVER:
            continue
        if not any(type_eq(m, existing) for existing in deduped):
            deduped.append(m)
    deduped = _collapse_booleans(deduped)
    # Absorb literals into their base primitive
    bases = {m.kind for m in deduped if is_keyword(m)}
    kept: list[Type] = []
    for m in deduped:
        if isinstance(m, LiteralT) and m.base in bases:
            continue
        if isinstance(m, TemplateT) and TY_STRING in bases:
            continue
        kept.append(m)
    if len(kept) == 0:
        return NEVER_T
    if len(kept) == 1:
        return kept[0]
    order = list(range(len(kept)))
    order.sort(key=lambda i: _union_rank(kept[i], i))
    return UnionT(kind="union", members=[kept[i] for i in order])


def _collapse_booleans(members: list[Type]) -> list[Type]:
    """true | false prints and behaves as boolean."""
    has_true = any(isinstance(m, LiteralT) and m.base == TY_BOOLEAN and m.value == "true" for m in members)
    has_false = any(isinstance(m, LiteralT) and m.base == TY_BOOLEAN and m.value == "false" for m in members)
    if not (has_true and has_false):
        return members
    out: list[Type] = []
    placed = False
    for m in members:
        if isinstance(m, LiteralT) and m.base == TY_BOOLEAN:
            if not placed:
                out.append(BOOLEAN_T)
                placed = True
            continue
        if m.kind == TY_BOOLEAN and is_keyword(m):
            continue
        out.append(m)
    return out


def _union_rank(t: Type, index: int) -> tuple[int, int]:
    if is_keyword(t):
        if t.kind == TY_NULL:
            return (2, 0)
        if t.kind == TY_UNDEFINED:
            return (3, 0)
        if t.kind in PRIMITIVE_ORDER:
            return (0, PRIMITIVE_ORDER.index(t.kind))
    return (1, index)


def normalize_intersection(members: list[Type]) -> Type:
    flat: list[Type] = []
    for m in members:
        if isinstance(m, IntersectionT):
            flat.extend(m.members)
        else:
            flat.append(m)
    for m in flat:
        if m.kind == TY_ANY:
            return ANY_T
    for m in flat:
        if m.kind == TY_NEVER:
            return NEVER_T
    deduped: list[Type] = []
    for m in flat:
        if m.kind == TY_UNKNOWN:
            continue
        if not any(type_eq(m, existing) for existing in deduped):
            deduped.append(m)
    if len(deduped) == 0:
        return UNKNOWN_T
    if len(deduped) == 1:
        return deduped[0]
    return IntersectionT(kind="intersection", members=deduped)


def with_undefined(t: Type) -> Type:
    """T | undefined: the effective type of an optional property or parameter."""
    return normalize_union([t, UNDEFINED_T])


# ============================================================
# CANONICAL PRINTER
# ============================================================

_IDENT_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_NUMERIC_RE = re.compile(r"^(0|[1-9][0-9]*)(\.[0-9]+)?$")


def quote_string(value: str) -> str:
    out = value.replace("\\", "\\\\").replace('"', '\\"')
    out = out.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
    return '"' + out + '"'


def property_name(name: str) -> str:
    """Print a property key: identifiers and numbers bare, anything else quoted."""
    if _IDENT_RE.match(name) or _NUMERIC_RE.match(name):
        return name
    if name.startswith("[") and name.endswith("]"):
        return name
    return quote_string(name)


def type_name(t: Type) -> str:
    """Render a type the way the structural type system's printer does."""
    if isinstance(t, LiteralT):
        if t.base == TY_STRING:
            return quote_string(t.value)
        if t.base == TY_BIGINT:
            return t.value + "n"
        return t.value
    if isinstance(t, TemplateT):
        out = "`"
        for i, hole in enumerate(t.holes):
            out += _escape_template(t.parts[i]) + "${" + type_name(hole) + "}"
        return out + _escape_template(t.parts[-1]) + "`"
    if isinstance(t, UnionT):
        return " | ".join(_wrap(m, _UNION_PARENS) for m in t.members)
    if isinstance(t, IntersectionT):
        return " & ".join(_wrap(m, _INTERSECTION_PARENS) for m in t.members)
    if isinstance(t, ArrayT):
        text = _wrap(t.element, _ARRAY_PARENS) + "[]"
        if t.readonly:
            return "readonly " + text
        return text
    if isinstance(t, TupleT):
        parts: list[str] = []
        for e in t.elements:
            if e.rest:
                parts.append("..." + type_name(e.typ))
            elif e.optional:
                parts.append(_wrap(e.typ, _ARRAY_PARENS) + "?")
            else:
                parts.append(type_name(e.typ))
        text = "[" + ", ".join(parts) + "]"
        if t.readonly:
            return "readonly " + text
        return text
    if isinstance(t, FnT):
        return _type_params_text(t.type_params) + "(" + _params_text(t.params) + ") => " + type_name(t.ret)
    if isinstance(t, ObjectT):
        if len(t.members) == 0:
            return "{}"
        parts2: list[str] = []
        for m in t.members:
            parts2.append(member_text(m) + ";")
        return "{ " + " ".join(parts2) + " }"
    if isinstance(t, RefT):
        if not t.args:
            return t.name
        return t.name + "<" + ", ".join(type_name(a) for a in t.args) + ">"
    if isinstance(t, TypeParamT):
        return t.name
    if isinstance(t, OpaqueT):
        return t.text
    return t.kind


def member_text(m: Member) -> str:
    """One object-literal member, without the trailing semicolon."""
    name = property_name(m.name)
    if isinstance(m.typ, FnT) and m.typ.method:
        q = "?" if m.optional else ""
        fn = m.typ
        return (
            name
            + q
            + _type_params_text(fn.type_params)
            + "("
            + _params_text(fn.params)
            + "): "
            + type_name(fn.ret)
        )
    prefix = "readonly " if m.readonly else ""
    if m.optional:
        return prefix + name + "?: " + type_name(with_undefined(m.typ))
    return prefix + name + ": " + type_name(m.typ)


def _type_params_text(names: list[str]) -> str:
    if not names:
        return ""
    return "<" + ", ".join(names) + ">"


def _params_text(params: list[ParamT]) -> str:
    parts: list[str] = []
    for p in params:
        if p.rest:
            parts.append("..." + p.name + ": " + type_name(p.typ))
        elif p.optional:
            parts.append(p.name + "?: " + type_name(with_undefined(p.typ)))
        else:
            parts.append(p.name + ": " + type_name(p.typ))
    return ", ".join(parts)


def _escape_template(text: str) -> str:
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


# Constituents that need parentheses in each position
_UNION_PARENS = (IntersectionT, FnT)
_INTERSECTION_PARENS = (UnionT, FnT)
_ARRAY_PARENS = (UnionT, IntersectionT, FnT)


def _wrap(t: Type, parens: tuple[type, ...]) -> str:
    text = type_name(t)
    if isinstance(t, parens):
        return "(" + text + ")"
    if isinstance(t, (ArrayT, TupleT)) and t.readonly and parens is _ARRAY_PARENS:
        return "(" + text + ")"
    return text
