"""Type model: resolves declaration types and answers assignability queries."""

from __future__ import annotations

import logging
import re

from .declarations import DeclarationIndex, NominalDeclaration
from .frontend.ast import (
    ArrayTypeNode,
    FunctionTypeNode,
    IntersectionTypeNode,
    KeywordType,
    LiteralType,
    MemberNode,
    MethodSig,
    ObjectTypeNode,
    OpaqueTypeNode,
    ParamNode,
    PropertySig,
    TemplateType,
    TupleTypeNode,
    TypeAliasDecl,
    TypeNode,
    TypeRef,
    UnionTypeNode,
)
from .types import (
    ANY_T,
    KEYWORD_MAP,
    TY_ANY,
    TY_BIGINT,
    TY_BOOLEAN,
    TY_NEVER,
    TY_NULL,
    TY_NUMBER,
    TY_OBJECT,
    TY_STRING,
    TY_UNDEFINED,
    TY_UNKNOWN,
    TY_VOID,
    UNKNOWN_T,
    ArrayT,
    FnT,
    IntersectionT,
    LiteralT,
    Member,
    ObjectT,
    OpaqueT,
    ParamT,
    RefT,
    TemplateT,
    TupleElem,
    TupleT,
    Type,
    TypeParamT,
    UnionT,
    is_keyword,
    literal,
    normalize_intersection,
    normalize_union,
    type_eq,
    type_key,
    type_name,
    with_undefined,
)

logger = logging.getLogger(__name__)

Scope = dict[str, Type]

_NUMERIC_PATTERN = r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?"

# Types with no properties of their own; never assignable to an object shape
_NULLISH: set[str] = {TY_NULL, TY_UNDEFINED, TY_VOID}


class TypeModel:
    """Query surface over resolved types for one analysis pass.

    Built on a finished DeclarationIndex; caches reference expansions
    and resolved interface members for the lifetime of the pass.
    """

    def __init__(self, index: DeclarationIndex):
        self.index: DeclarationIndex = index
        self._expansions: dict[str, Type | None] = {}
        self._declared: dict[str, list[Member]] = {}

    # ── Resolution ───────────────────────────────────────────

    def resolve_type(self, node: TypeNode | None, scope: Scope | None = None, depth: int = 0) -> Type:
        """Resolve a parse-time type node to a Type."""
        if scope is None:
            scope = {}
        if node is None:
            return ANY_T
        if isinstance(node, KeywordType):
            return KEYWORD_MAP[node.kind]
        if isinstance(node, LiteralType):
            return literal(node.base, node.value)
        if isinstance(node, TemplateType):
            if not node.holes:
                return literal(TY_STRING, node.parts[0])
            holes = [self.resolve_type(h, scope, depth) for h in node.holes]
            return TemplateT(kind="template", parts=list(node.parts), holes=holes)
        if isinstance(node, TypeRef):
            return self._resolve_ref(node, scope, depth)
        if isinstance(node, UnionTypeNode):
            return normalize_union([self.resolve_type(m, scope, depth) for m in node.members])
        if isinstance(node, IntersectionTypeNode):
            return normalize_intersection([self.resolve_type(m, scope, depth) for m in node.members])
        if isinstance(node, ArrayTypeNode):
            return ArrayT(kind="array", element=self.resolve_type(node.element, scope, depth), readonly=node.readonly)
        if isinstance(node, TupleTypeNode):
            elems = [TupleElem(self.resolve_type(e.typ, scope, depth), e.optional, e.rest) for e in node.elements]
            return TupleT(kind="tuple", elements=elems, readonly=node.readonly)
        if isinstance(node, FunctionTypeNode):
            return self._resolve_signature(node.type_params, node.params, node.ret, False, scope, depth)
        if isinstance(node, ObjectTypeNode):
            members: list[Member] = []
            seen: set[str] = set()
            for m in node.members:
                resolved = self.resolve_member(m, scope, depth)
                if resolved is None or resolved.name in seen:
                    continue
                seen.add(resolved.name)
                members.append(resolved)
            return ObjectT(kind="shape", members=members)
        if isinstance(node, OpaqueTypeNode):
            return OpaqueT(kind="opaque", text=node.text)
        raise TypeError("unhandled type node: " + type(node).__name__)

    def _resolve_ref(self, node: TypeRef, scope: Scope, depth: int) -> Type:
        if node.name in scope and not node.args:
            return scope[node.name]
        args = [self.resolve_type(a, scope, depth) for a in node.args]
        if node.name in ("Array", "ReadonlyArray") and len(args) == 1:
            return ArrayT(kind="array", element=args[0], readonly=node.name == "ReadonlyArray")
        alias = self.index.alias(node.name)
        if alias is not None and not alias.type_params:
            # Aliases of a keyword or literal print as their target
            if isinstance(alias.typ, (KeywordType, LiteralType)):
                return self.resolve_type(alias.typ)
        return RefT(kind="ref", name=node.name, args=args)

    def _resolve_signature(
        self,
        type_params: list[str],
        params: list[ParamNode],
        ret: TypeNode | None,
        method: bool,
        scope: Scope,
        depth: int,
    ) -> FnT:
        if type_params:
            depth += 1
            scope = dict(scope)
            for i, name in enumerate(type_params):
                scope[name] = TypeParamT(kind="typeparam", name=name, key="fn" + str(depth) + "#" + str(i))
        resolved: list[ParamT] = []
        for p in params:
            typ = self.resolve_type(p.typ, scope, depth)
            if p.rest and p.typ is None:
                typ = ArrayT(kind="array", element=ANY_T, readonly=False)
            resolved.append(ParamT(p.name, typ, p.optional, p.rest))
        return FnT(
            kind="fn",
            type_params=list(type_params),
            params=resolved,
            ret=self.resolve_type(ret, scope, depth),
            method=method,
        )

    def resolve_member(self, node: MemberNode, scope: Scope | None = None, depth: int = 0) -> Member | None:
        """Resolve a property or method signature; other members have no name to check."""
        if scope is None:
            scope = {}
        if isinstance(node, PropertySig):
            return Member(node.name, self.resolve_type(node.typ, scope, depth), node.optional, node.readonly)
        if isinstance(node, MethodSig):
            fn = self._resolve_signature(node.type_params, node.params, node.ret, True, scope, depth)
            return Member(node.name, fn, node.optional, False)
        return None

    def members_of_declaration(self, decl: NominalDeclaration, args: list[Type] | None = None) -> list[Member]:
        """Resolved members of a merged interface, own members first."""
        if not args and decl.name in self._declared:
            return self._declared[decl.name]
        root: Scope = {}
        for i, param in enumerate(decl.type_params):
            if args:
                root[param] = args[i] if i < len(args) else UNKNOWN_T
            else:
                root[param] = TypeParamT(kind="typeparam", name=param, key=decl.name + "#" + str(i))
        members: list[Member] = []
        for dm in decl.members:
            scope = root
            for step in dm.chain:
                # Extends arguments are written in the child's scope
                inner: Scope = {}
                for i, param in enumerate(step.params):
                    if i < len(step.args):
                        inner[param] = self.resolve_type(step.args[i], scope)
                    else:
                        inner[param] = TypeParamT(kind="typeparam", name=param, key=step.owner + "#" + str(i))
                scope = inner
            resolved = self.resolve_member(dm.node, scope)
            if resolved is not None:
                members.append(resolved)
        if not args:
            self._declared[decl.name] = members
        return members

    def alias_type(self, alias: TypeAliasDecl) -> Type:
        """The target type of an alias declaration, with its own params left abstract."""
        scope: Scope = {}
        for i, param in enumerate(alias.type_params):
            scope[param] = TypeParamT(kind="typeparam", name=param, key=alias.name + "#" + str(i))
        return self.resolve_type(alias.typ, scope)

    def expand(self, ref: RefT) -> Type | None:
        """Structural form of a named reference, or None when the name is unknown."""
        key = type_key(ref)
        if key in self._expansions:
            return self._expansions[key]
        result: Type | None = None
        decl = self.index.lookup(ref.name)
        if decl is not None:
            result = ObjectT(kind="shape", members=self.members_of_declaration(decl, ref.args))
        else:
            alias = self.index.alias(ref.name)
            if alias is not None:
                scope: Scope = {}
                for i, param in enumerate(alias.type_params):
                    scope[param] = ref.args[i] if i < len(ref.args) else UNKNOWN_T
                result = self.resolve_type(alias.typ, scope)
            else:
                logger.debug("unresolved type reference %s", ref.name)
        self._expansions[key] = result
        return result

    # ── Queries ──────────────────────────────────────────────

    def members_of(self, t: Type) -> list[Member]:
        """Named properties of a type; intersections merge members by name."""
        return self._members_of(t, set())

    def _members_of(self, t: Type, seen: set[str]) -> list[Member]:
        if isinstance(t, ObjectT):
            return list(t.members)
        if isinstance(t, RefT):
            key = type_key(t)
            if key in seen:
                return []
            expanded = self.expand(t)
            if expanded is None:
                return []
            seen.add(key)
            try:
                return self._members_of(expanded, seen)
            finally:
                seen.discard(key)
        if isinstance(t, IntersectionT):
            merged: dict[str, Member] = {}
            for part in t.members:
                for m in self._members_of(part, seen):
                    prior = merged.get(m.name)
                    if prior is None:
                        merged[m.name] = m
                    else:
                        merged[m.name] = Member(
                            m.name,
                            normalize_intersection([prior.typ, m.typ]),
                            prior.optional and m.optional,
                            prior.readonly or m.readonly,
                        )
            return list(merged.values())
        return []

    def is_union(self, t: Type) -> bool:
        """True when the type, after alias expansion, is a union of two or more members."""
        seen: set[str] = set()
        while isinstance(t, RefT) and self.index.lookup(t.name) is None:
            key = type_key(t)
            if key in seen:
                return False
            seen.add(key)
            expanded = self.expand(t)
            if expanded is None:
                return False
            t = expanded
        return isinstance(t, UnionT)

    def with_undefined(self, t: Type) -> Type:
        return with_undefined(t)

    def render(self, t: Type) -> str:
        return type_name(t)

    def is_assignable(self, source: Type, target: Type) -> bool:
        """Whether a value of `source` can be used where `target` is expected."""
        return self._assignable(source, target, set())

    # ── Assignability ────────────────────────────────────────

    def _assignable(self, s: Type, t: Type, assumed: set[tuple[str, str]]) -> bool:
        if s is t or type_eq(s, t):
            return True
        if t.kind == TY_ANY or t.kind == TY_UNKNOWN:
            return True
        if s.kind == TY_ANY:
            return t.kind != TY_NEVER
        if s.kind == TY_NEVER:
            return True
        if s.kind == TY_UNKNOWN or t.kind == TY_NEVER:
            return False
        if isinstance(s, RefT) or isinstance(t, RefT):
            return self._assignable_refs(s, t, assumed)
        if isinstance(s, UnionT):
            return all(self._assignable(m, t, assumed) for m in s.members)
        if isinstance(t, UnionT):
            return any(self._assignable(s, m, assumed) for m in t.members)
        if isinstance(t, IntersectionT):
            return all(self._assignable(s, m, assumed) for m in t.members)
        if isinstance(s, IntersectionT):
            if any(self._assignable(m, t, assumed) for m in s.members):
                return True
            if isinstance(t, ObjectT):
                return self._members_assignable(self.members_of(s), t.members, assumed)
            return False
        if isinstance(s, LiteralT):
            if is_keyword(t) and t.kind == s.base:
                return True
            if isinstance(t, TemplateT) and s.base == TY_STRING:
                return template_matches(s.value, t)
            return self._primitive_to_object(s, t)
        if isinstance(s, TemplateT):
            if is_keyword(t) and t.kind == TY_STRING:
                return True
            return self._primitive_to_object(s, t)
        if is_keyword(s):
            if s.kind == TY_UNDEFINED and t.kind == TY_VOID:
                return True
            if s.kind == TY_OBJECT:
                return isinstance(t, ObjectT) and self._all_optional(t)
            return self._primitive_to_object(s, t)
        if isinstance(s, (TypeParamT, OpaqueT)):
            return False
        if isinstance(t, ObjectT):
            return self._members_assignable(self.members_of(s), t.members, assumed)
        if is_keyword(t) and t.kind == TY_OBJECT:
            return isinstance(s, (ObjectT, ArrayT, TupleT, FnT))
        if isinstance(t, ArrayT):
            if isinstance(s, ArrayT):
                if s.readonly and not t.readonly:
                    return False
                return self._assignable(s.element, t.element, assumed)
            if isinstance(s, TupleT):
                if s.readonly and not t.readonly:
                    return False
                return all(self._assignable(_element_type(e), t.element, assumed) for e in s.elements)
            return False
        if isinstance(t, TupleT):
            if not isinstance(s, TupleT):
                return False
            return self._tuple_assignable(s, t, assumed)
        if isinstance(t, FnT):
            if not isinstance(s, FnT):
                return False
            return self._signature_assignable(s, t, assumed)
        return False

    def _assignable_refs(self, s: Type, t: Type, assumed: set[tuple[str, str]]) -> bool:
        parent = self._enum_parent(s)
        if parent is not None:
            if isinstance(t, UnionT) and any(self._assignable(s, m, assumed) for m in t.members):
                return True
            # An enum member is assignable wherever its enum is
            return self._assignable(parent, t, assumed)
        key = (type_key(s), type_key(t))
        if key in assumed:
            return True
        s2 = self.expand(s) if isinstance(s, RefT) else s
        t2 = self.expand(t) if isinstance(t, RefT) else t
        if s2 is None or t2 is None:
            # Unresolved names still match themselves inside unions
            if isinstance(t, UnionT):
                return any(self._assignable(s, m, assumed) for m in t.members)
            if isinstance(s, UnionT):
                return all(self._assignable(m, t, assumed) for m in s.members)
            return False
        assumed.add(key)
        try:
            return self._assignable(s2, t2, assumed)
        finally:
            assumed.discard(key)

    def _enum_parent(self, t: Type) -> RefT | None:
        """The enum `E` (or `NS.E`) when `t` names one of its members as `E.A`."""
        if not isinstance(t, RefT) or t.args or "." not in t.name:
            return None
        prefix, member = t.name.rsplit(".", 1)
        members = self.index.enum_members(prefix)
        if members is None:
            members = self.index.enum_members(prefix.rsplit(".", 1)[-1])
        if members is None or member not in members:
            return None
        return RefT(kind="ref", name=prefix, args=[])

    def _primitive_to_object(self, s: Type, t: Type) -> bool:
        """Primitives satisfy only object shapes with no required members."""
        if s.kind in _NULLISH:
            return False
        return isinstance(t, ObjectT) and self._all_optional(t)

    def _all_optional(self, t: ObjectT) -> bool:
        return all(m.optional for m in t.members)

    def _members_assignable(self, source: list[Member], target: list[Member], assumed: set[tuple[str, str]]) -> bool:
        by_name = {m.name: m for m in source}
        for tm in target:
            sm = by_name.get(tm.name)
            if sm is None:
                if tm.optional:
                    continue
                return False
            if sm.optional and not tm.optional:
                return False
            s_typ = with_undefined(sm.typ) if sm.optional else sm.typ
            t_typ = with_undefined(tm.typ) if tm.optional else tm.typ
            if not self._assignable(s_typ, t_typ, assumed):
                return False
        return True

    def _tuple_assignable(self, s: TupleT, t: TupleT, assumed: set[tuple[str, str]]) -> bool:
        if s.readonly and not t.readonly:
            return False
        t_fixed = [e for e in t.elements if not e.rest]
        t_rest = [e for e in t.elements if e.rest]
        t_required = len([e for e in t_fixed if not e.optional])
        s_fixed = [e for e in s.elements if not e.rest]
        s_rest = [e for e in s.elements if e.rest]
        if len(s_fixed) < t_required:
            return False
        if not t_rest:
            if s_rest or len(s_fixed) > len(t_fixed):
                return False
            for se, te in zip(s_fixed, t_fixed):
                if se.optional and not te.optional:
                    return False
                if not self._assignable(se.typ, te.typ, assumed):
                    return False
            return True
        rest_elem = _element_type(t_rest[0])
        for i, se in enumerate(s.elements):
            if se.rest:
                target = rest_elem
            elif i < len(t_fixed):
                target = t_fixed[i].typ
            else:
                target = rest_elem
            if not self._assignable(_element_type(se), target, assumed):
                return False
        return True

    def _signature_assignable(self, s: FnT, t: FnT, assumed: set[tuple[str, str]]) -> bool:
        if s.type_params and len(s.type_params) != len(t.type_params):
            return False
        s_fixed = [p for p in s.params if not p.rest]
        s_rest = next((p for p in s.params if p.rest), None)
        t_fixed = [p for p in t.params if not p.rest]
        t_rest = next((p for p in t.params if p.rest), None)
        s_required = len([p for p in s_fixed if not p.optional])
        if t_rest is None and s_required > len(t_fixed):
            return False
        bivariant = s.method or t.method
        for i in range(max(len(s_fixed), len(t_fixed))):
            sp = _param_type_at(s_fixed, s_rest, i)
            tp = _param_type_at(t_fixed, t_rest, i)
            if sp is None or tp is None:
                continue
            if not self._param_compatible(sp, tp, bivariant, assumed):
                return False
        if s_rest is not None and t_rest is not None:
            if not self._param_compatible(_rest_element(s_rest.typ), _rest_element(t_rest.typ), bivariant, assumed):
                return False
        if t.ret.kind == TY_VOID and is_keyword(t.ret):
            return True
        return self._assignable(s.ret, t.ret, assumed)

    def _param_compatible(self, sp: Type, tp: Type, bivariant: bool, assumed: set[tuple[str, str]]) -> bool:
        # Parameters compare contravariantly
        if self._assignable(tp, sp, assumed):
            return True
        return bivariant and self._assignable(sp, tp, assumed)


def _element_type(e: TupleElem) -> Type:
    if e.rest:
        return _rest_element(e.typ)
    if e.optional:
        return with_undefined(e.typ)
    return e.typ


def _rest_element(t: Type) -> Type:
    if isinstance(t, ArrayT):
        return t.element
    if isinstance(t, TupleT):
        return normalize_union([_element_type(e) for e in t.elements])
    return ANY_T


def _param_type_at(fixed: list[ParamT], rest: ParamT | None, i: int) -> Type | None:
    if i < len(fixed):
        p = fixed[i]
        if p.optional:
            return with_undefined(p.typ)
        return p.typ
    if rest is not None:
        return _rest_element(rest.typ)
    return None


# ============================================================
# TEMPLATE LITERAL MATCHING
# ============================================================


def template_matches(value: str, t: TemplateT) -> bool:
    """Whether a string literal's value fits a template literal type."""
    pattern = ""
    for i, hole in enumerate(t.holes):
        hole_pattern = _hole_pattern(hole)
        if hole_pattern is None:
            return False
        pattern += re.escape(t.parts[i]) + hole_pattern
    pattern += re.escape(t.parts[-1])
    return re.fullmatch(pattern, value, re.DOTALL) is not None


def _hole_pattern(t: Type) -> str | None:
    if isinstance(t, LiteralT):
        return "(?:" + re.escape(t.value) + ")"
    if isinstance(t, UnionT):
        parts: list[str] = []
        for m in t.members:
            p = _hole_pattern(m)
            if p is None:
                return None
            parts.append(p)
        return "(?:" + "|".join(parts) + ")"
    if t.kind == TY_STRING or t.kind == TY_ANY:
        return "(?:.*?)"
    if t.kind == TY_NUMBER:
        return "(?:" + _NUMERIC_PATTERN + ")"
    if t.kind == TY_BIGINT:
        return r"(?:-?\d+)"
    if t.kind == TY_BOOLEAN:
        return "(?:true|false)"
    if t.kind == TY_NULL or t.kind == TY_UNDEFINED:
        return "(?:" + t.kind + ")"
    return None

