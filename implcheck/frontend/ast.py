"""Declaration AST: parse-time node definitions."""

from __future__ import annotations

from dataclasses import dataclass, field


# ============================================================
# POSITION
# ============================================================


@dataclass
class Pos:
    """Source position, 1-indexed."""

    line: int
    col: int


@dataclass
class Comment:
    """A block comment body (without the /* */ delimiters)."""

    text: str
    pos: Pos


# ============================================================
# TYPES (parse-time, unresolved)
# ============================================================


@dataclass
class TypeNode:
    """Base for all type nodes."""

    pos: Pos


@dataclass
class KeywordType(TypeNode):
    """string, number, boolean, bigint, symbol, object, any, unknown, never, void, null, undefined."""

    kind: str


@dataclass
class LiteralType(TypeNode):
    """"a", 42, -1, true. `base` is string, number, boolean or bigint."""

    base: str
    value: str


@dataclass
class TemplateType(TypeNode):
    """`head${A}mid${B}tail`, where len(parts) == len(holes) + 1."""

    parts: list[str]
    holes: list[TypeNode]


@dataclass
class TypeRef(TypeNode):
    """Name or Name<Args>, possibly dotted (ns.Name)."""

    name: str
    args: list[TypeNode] = field(default_factory=list)


@dataclass
class UnionTypeNode(TypeNode):
    """A | B, 2+ members."""

    members: list[TypeNode]


@dataclass
class IntersectionTypeNode(TypeNode):
    """A & B, 2+ members."""

    members: list[TypeNode]


@dataclass
class ArrayTypeNode(TypeNode):
    """T[] or readonly T[]."""

    element: TypeNode
    readonly: bool = False


@dataclass
class TupleElement:
    """One tuple slot: T, T?, ...T[], or a labeled name: T."""

    typ: TypeNode
    optional: bool = False
    rest: bool = False


@dataclass
class TupleTypeNode(TypeNode):
    """[A, B?, ...C[]]."""

    elements: list[TupleElement]
    readonly: bool = False


@dataclass
class ParamNode:
    """Function parameter. typ is None when the annotation is omitted."""

    pos: Pos
    name: str
    typ: TypeNode | None
    optional: bool = False
    rest: bool = False


@dataclass
class FunctionTypeNode(TypeNode):
    """<T>(a: A, b?: B, ...r: R[]) => Ret."""

    type_params: list[str]
    params: list[ParamNode]
    ret: TypeNode


@dataclass
class ObjectTypeNode(TypeNode):
    """{ members }."""

    members: list[MemberNode]


@dataclass
class OpaqueTypeNode(TypeNode):
    """keyof T, typeof x, T[K]: kept as source text, compared by text."""

    text: str


# ============================================================
# MEMBERS
# ============================================================


@dataclass
class MemberNode:
    """Base for object / interface members."""

    pos: Pos
    name: str


@dataclass
class PropertySig(MemberNode):
    """readonly name?: Type."""

    typ: TypeNode | None
    optional: bool = False
    readonly: bool = False


@dataclass
class MethodSig(MemberNode):
    """name?<T>(params): Ret."""

    type_params: list[str]
    params: list[ParamNode]
    ret: TypeNode | None
    optional: bool = False


@dataclass
class IndexSig(MemberNode):
    """[key: K]: V. Not a named property; never part of a property set."""

    key: TypeNode | None
    typ: TypeNode | None
    readonly: bool = False


@dataclass
class CallSig(MemberNode):
    """(params): Ret or new (params): Ret. Not a named property."""

    params: list[ParamNode]
    ret: TypeNode | None


# ============================================================
# DECLARATIONS
# ============================================================


@dataclass
class Decl:
    """Base for all top-level statements."""

    pos: Pos
    comments: list[Comment]


@dataclass
class InterfaceDecl(Decl):
    """interface Name<T> extends A, B<X> { members }."""

    name: str
    type_params: list[str]
    extends: list[TypeRef]
    members: list[MemberNode]
    exported: bool = False


@dataclass
class TypeAliasDecl(Decl):
    """type Name<T> = Type."""

    name: str
    type_params: list[str]
    typ: TypeNode
    exported: bool = False


@dataclass
class EnumDecl(Decl):
    """enum Name { A, B = 1 }; member initializers are not kept."""

    name: str
    members: list[str]
    exported: bool = False


@dataclass
class NamespaceDecl(Decl):
    """namespace N { ... }, declare module "m" { ... }, declare global { ... }."""

    name: str
    decls: list[Decl]


@dataclass
class OtherDecl(Decl):
    """Any statement outside the declaration subset (imports, values, classes)."""

    keyword: str


@dataclass
class SourceUnit:
    """One parsed source file."""

    path: str
    decls: list[Decl]
