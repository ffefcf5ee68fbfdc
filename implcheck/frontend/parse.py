"""Declaration parser: recursive descent, one method per grammar production."""

from __future__ import annotations

from .ast import (
    ArrayTypeNode,
    CallSig,
    Comment,
    Decl,
    EnumDecl,
    FunctionTypeNode,
    IndexSig,
    InterfaceDecl,
    IntersectionTypeNode,
    KeywordType,
    LiteralType,
    MemberNode,
    MethodSig,
    NamespaceDecl,
    ObjectTypeNode,
    OpaqueTypeNode,
    OtherDecl,
    ParamNode,
    Pos,
    PropertySig,
    SourceUnit,
    TemplateType,
    TupleElement,
    TupleTypeNode,
    TypeAliasDecl,
    TypeNode,
    TypeRef,
    UnionTypeNode,
)
from .tokens import (
    TK_EOF,
    TK_IDENT,
    TK_NUMBER,
    TK_OP,
    TK_STRING,
    TK_TEMPLATE,
    Token,
    number_text,
    tokenize,
)

KEYWORD_TYPES: set[str] = {
    "string",
    "number",
    "boolean",
    "bigint",
    "symbol",
    "object",
    "any",
    "unknown",
    "never",
    "void",
    "null",
    "undefined",
}

# Words that begin a new statement; used to recover statement boundaries
# when skipping code outside the declaration subset.
STATEMENT_STARTS: set[str] = {
    "abstract",
    "class",
    "const",
    "declare",
    "enum",
    "export",
    "function",
    "import",
    "interface",
    "let",
    "module",
    "namespace",
    "type",
    "var",
}

PARAM_MODIFIERS: set[str] = {"public", "private", "protected", "readonly", "override"}

OPENERS: dict[str, str] = {"(": ")", "[": "]", "{": "}"}

NO_SPACE_BEFORE: set[str] = {",", ";", ")", "]", ">", ".", "?", ":", "[", "<"}
NO_SPACE_AFTER: set[str] = {"(", "[", "<", ".", "..."}


class ParseError(Exception):
    """Parse error with location info."""

    def __init__(self, msg: str, line: int, col: int):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        super().__init__(msg + " at line " + str(line) + " col " + str(col))


class Parser:
    """Recursive descent parser for the TypeScript declaration subset."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[len(self.tokens) - 1]
        return self.tokens[idx]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        tok = self.current()
        return tok.value == value and (tok.type == TK_OP or tok.type == TK_IDENT)

    def at_type(self, type_: str) -> bool:
        return self.current().type == type_

    def at_ident(self) -> bool:
        return self.current().type == TK_IDENT

    def expect(self, value: str) -> Token:
        tok = self.current()
        if not self.at(value):
            raise self.error("expected '" + value + "', got '" + _describe(tok) + "'")
        return self.advance()

    def expect_ident(self) -> Token:
        tok = self.current()
        if tok.type != TK_IDENT:
            raise self.error("expected identifier, got '" + _describe(tok) + "'")
        return self.advance()

    def error(self, msg: str) -> ParseError:
        tok = self.current()
        return ParseError(msg, tok.line, tok.col)

    def _pos(self) -> Pos:
        tok = self.current()
        return Pos(tok.line, tok.col)

    def _matching_close(self, idx: int) -> int:
        """Index of the bracket closing the one at `idx`, or -1."""
        depth = 0
        i = idx
        while i < len(self.tokens):
            tok = self.tokens[i]
            if tok.type == TK_EOF:
                return -1
            if tok.type == TK_OP and tok.value in OPENERS:
                depth += 1
            elif tok.type == TK_OP and tok.value in (")", "]", "}"):
                depth -= 1
                if depth == 0:
                    return i
            i += 1
        return -1

    def _span_text(self, start: int, end: int) -> str:
        """Reassemble source-like text for tokens[start:end]."""
        out = ""
        prev = ""
        i = start
        while i < end:
            tok = self.tokens[i]
            text = _token_text(tok)
            if out and prev not in NO_SPACE_AFTER and (tok.value not in NO_SPACE_BEFORE or prev == "{"):
                out += " "
            out += text
            prev = tok.value
            i += 1
        return out

    # ── Top Level ────────────────────────────────────────────

    def parse_program(self, path: str) -> SourceUnit:
        decls: list[Decl] = []
        while not self.at_type(TK_EOF):
            decl = self.parse_statement()
            if decl is not None:
                decls.append(decl)
        return SourceUnit(path, decls)

    def parse_statement(self) -> Decl | None:
        if self.at(";"):
            self.advance()
            return None
        first = self.current()
        pos = self._pos()
        comments = first.leading_comments
        exported = False
        if self.at("export"):
            nxt = self.peek(1).value
            if nxt in ("default", "=", "*", "{", "as", "import"):
                return self.skip_statement(pos, comments)
            self.advance()
            exported = True
        if self.at("declare"):
            self.advance()
        if self.at("const") and self.peek(1).value == "enum":
            self.advance()
        if self.at("enum") and self.peek(1).type == TK_IDENT:
            return self.parse_enum_decl(pos, comments, exported)
        if self.at("interface") and self.peek(1).type == TK_IDENT:
            return self.parse_interface_decl(pos, comments, exported)
        if self.at("type") and self.peek(1).type == TK_IDENT and self.peek(2).value in ("=", "<"):
            return self.parse_type_alias_decl(pos, comments, exported)
        if (self.at("namespace") or self.at("module")) and self.peek(1).type in (TK_IDENT, TK_STRING):
            return self.parse_namespace_decl(pos, comments)
        if self.at("global") and self.peek(1).value == "{":
            return self.parse_namespace_decl(pos, comments)
        return self.skip_statement(pos, comments)

    def skip_statement(self, pos: Pos, comments: list[Comment]) -> OtherDecl:
        """Skip a statement outside the declaration subset by bracket balancing."""
        keyword = self.current().value
        start = self.pos
        depth = 0
        while not self.at_type(TK_EOF):
            # An unbalanced closer ends the enclosing block, not this statement
            if depth == 0 and self.pos > start and self.at("}"):
                break
            tok = self.advance()
            closed_block = False
            if tok.type == TK_OP and tok.value in OPENERS:
                depth += 1
            elif tok.type == TK_OP and tok.value in (")", "]", "}"):
                depth = max(depth - 1, 0)
                closed_block = tok.value == "}"
            if depth > 0:
                continue
            if tok.type == TK_OP and tok.value == ";":
                break
            nxt = self.current()
            if closed_block and (nxt.newline_before or nxt.type == TK_EOF):
                break
            if nxt.newline_before and nxt.type == TK_IDENT and nxt.value in STATEMENT_STARTS:
                break
        return OtherDecl(pos, comments, keyword)

    # ── Declarations ─────────────────────────────────────────

    def parse_interface_decl(self, pos: Pos, comments: list[Comment], exported: bool) -> InterfaceDecl:
        self.expect("interface")
        name = self.expect_ident().value
        type_params = self.parse_type_params()
        extends: list[TypeRef] = []
        if self.at("extends"):
            self.advance()
            extends.append(self.parse_type_ref())
            while self.at(","):
                self.advance()
                extends.append(self.parse_type_ref())
        members = self.parse_members()
        return InterfaceDecl(pos, comments, name, type_params, extends, members, exported)

    def parse_type_alias_decl(self, pos: Pos, comments: list[Comment], exported: bool) -> TypeAliasDecl:
        self.expect("type")
        name = self.expect_ident().value
        type_params = self.parse_type_params()
        self.expect("=")
        typ = self.parse_type()
        if self.at(";"):
            self.advance()
        return TypeAliasDecl(pos, comments, name, type_params, typ, exported)

    def parse_enum_decl(self, pos: Pos, comments: list[Comment], exported: bool) -> EnumDecl:
        self.expect("enum")
        name = self.expect_ident().value
        self.expect("{")
        members: list[str] = []
        while not self.at("}"):
            members.append(self.parse_property_name())
            if self.at("="):
                self._skip_initializer()
            if not self.at(","):
                break
            self.advance()
        self.expect("}")
        return EnumDecl(pos, comments, name, members, exported)

    def _skip_initializer(self) -> None:
        """Skip `= expr` up to the next top-level ',' or '}'."""
        self.advance()
        depth = 0
        while not self.at_type(TK_EOF):
            if depth == 0 and (self.at(",") or self.at("}")):
                return
            tok = self.advance()
            if tok.type == TK_OP and tok.value in OPENERS:
                depth += 1
            elif tok.type == TK_OP and tok.value in (")", "]", "}"):
                depth -= 1
        raise self.error("unterminated enum member initializer")

    def parse_namespace_decl(self, pos: Pos, comments: list[Comment]) -> NamespaceDecl:
        if self.at("global"):
            name = self.advance().value
        else:
            self.advance()
            name = self.advance().value
            while self.at("."):
                self.advance()
                name += "." + self.expect_ident().value
        self.expect("{")
        decls: list[Decl] = []
        while not self.at("}"):
            if self.at_type(TK_EOF):
                raise self.error("unterminated namespace '" + name + "'")
            decl = self.parse_statement()
            if decl is not None:
                decls.append(decl)
        self.expect("}")
        return NamespaceDecl(pos, comments, name, decls)

    def parse_type_params(self) -> list[str]:
        """Optional <T, U extends X = Y>; returns the parameter names."""
        names: list[str] = []
        if not self.at("<"):
            return names
        self.advance()
        while not self.at(">"):
            while self.current().value in ("const", "in", "out") and self.peek(1).type == TK_IDENT:
                self.advance()
            names.append(self.expect_ident().value)
            if self.at("extends"):
                self.advance()
                self.parse_type()
            if self.at("="):
                self.advance()
                self.parse_type()
            if not self.at(","):
                break
            self.advance()
        self.expect(">")
        return names

    def parse_type_ref(self) -> TypeRef:
        pos = self._pos()
        name = self.expect_ident().value
        while self.at(".") and self.peek(1).type == TK_IDENT:
            self.advance()
            name += "." + self.advance().value
        args: list[TypeNode] = []
        if self.at("<"):
            args = self.parse_type_args()
        return TypeRef(pos, name, args)

    def parse_type_args(self) -> list[TypeNode]:
        self.expect("<")
        args: list[TypeNode] = []
        while not self.at(">"):
            args.append(self.parse_type())
            if not self.at(","):
                break
            self.advance()
        self.expect(">")
        return args

    # ── Members ──────────────────────────────────────────────

    def parse_members(self) -> list[MemberNode]:
        self.expect("{")
        members: list[MemberNode] = []
        while not self.at("}"):
            if self.at_type(TK_EOF):
                raise self.error("expected '}', got end of input")
            members.append(self.parse_member())
            if self.at(";") or self.at(","):
                self.advance()
            elif not self.at("}") and not self.current().newline_before:
                raise self.error("expected ';', got '" + _describe(self.current()) + "'")
        self.expect("}")
        return members

    def parse_member(self) -> MemberNode:
        pos = self._pos()
        readonly = False
        if self.at("readonly") and self._modifier_follows():
            self.advance()
            readonly = True
        # [key: K]: V
        if self.at("[") and self.peek(1).type == TK_IDENT and self.peek(2).value == ":":
            self.advance()
            key_name = self.advance().value
            self.advance()
            key = self.parse_type()
            self.expect("]")
            if self.at("?"):
                self.advance()
            typ: TypeNode | None = None
            if self.at(":"):
                self.advance()
                typ = self.parse_type()
            return IndexSig(pos, "[" + key_name + "]", key, typ, readonly)
        if self.at("(") or self.at("<"):
            return self._parse_call_sig(pos, "()")
        if self.at("new") and self.peek(1).value in ("(", "<"):
            self.advance()
            return self._parse_call_sig(pos, "new()")
        if (self.at("get") or self.at("set")) and self._name_follows(1):
            kind = self.advance().value
            name = self.parse_property_name()
            self.parse_type_params()
            params = self.parse_params()
            accessor_type: TypeNode | None = None
            if kind == "get":
                if self.at(":"):
                    self.advance()
                    accessor_type = self.parse_type()
            elif params:
                accessor_type = params[0].typ
            return PropertySig(pos, name, accessor_type, False, readonly)
        name = self.parse_property_name()
        optional = False
        if self.at("?"):
            self.advance()
            optional = True
        elif self.at("!"):
            self.advance()
        if self.at("(") or self.at("<"):
            type_params = self.parse_type_params()
            params = self.parse_params()
            ret: TypeNode | None = None
            if self.at(":"):
                self.advance()
                ret = self.parse_return_type()
            return MethodSig(pos, name, type_params, params, ret, optional)
        typ2: TypeNode | None = None
        if self.at(":"):
            self.advance()
            typ2 = self.parse_type()
        return PropertySig(pos, name, typ2, optional, readonly)

    def _parse_call_sig(self, pos: Pos, name: str) -> CallSig:
        self.parse_type_params()
        params = self.parse_params()
        ret: TypeNode | None = None
        if self.at(":"):
            self.advance()
            ret = self.parse_return_type()
        return CallSig(pos, name, params, ret)

    def _modifier_follows(self) -> bool:
        """True when the word at the cursor is a modifier rather than a member name."""
        return self._name_follows(1)

    def _name_follows(self, offset: int) -> bool:
        nxt = self.peek(offset)
        if nxt.type in (TK_IDENT, TK_STRING, TK_NUMBER):
            return True
        return nxt.type == TK_OP and nxt.value in ("[", "#")

    def parse_property_name(self) -> str:
        """Identifier, quoted or numeric name, normalized to its string form."""
        tok = self.current()
        if tok.type == TK_IDENT or tok.type == TK_STRING:
            self.advance()
            return tok.value
        if tok.type == TK_NUMBER:
            self.advance()
            return number_text(tok.value)
        if self.at("#") and self.peek(1).type == TK_IDENT:
            self.advance()
            return "#" + self.advance().value
        if self.at("["):
            close = self._matching_close(self.pos)
            if close < 0:
                raise self.error("unterminated computed property name")
            text = "[" + self._span_text(self.pos + 1, close) + "]"
            self.pos = close + 1
            return text
        raise self.error("expected property name, got '" + _describe(tok) + "'")

    def parse_params(self) -> list[ParamNode]:
        self.expect("(")
        params: list[ParamNode] = []
        while not self.at(")"):
            params.append(self.parse_param())
            if not self.at(","):
                break
            self.advance()
        self.expect(")")
        return params

    def parse_param(self) -> ParamNode:
        pos = self._pos()
        while self.at_ident() and self.current().value in PARAM_MODIFIERS and self._name_follows(1):
            self.advance()
        rest = False
        if self.at("..."):
            self.advance()
            rest = True
        if self.at("{") or self.at("["):
            close = self._matching_close(self.pos)
            if close < 0:
                raise self.error("unterminated binding pattern")
            name = self._span_text(self.pos, close + 1)
            self.pos = close + 1
        else:
            name = self.expect_ident().value
        optional = False
        if self.at("?"):
            self.advance()
            optional = True
        typ: TypeNode | None = None
        if self.at(":"):
            self.advance()
            typ = self.parse_type()
        return ParamNode(pos, name, typ, optional, rest)

    # ── Types ────────────────────────────────────────────────

    def parse_type(self) -> TypeNode:
        start = self.pos
        if self.at("<"):
            return self.parse_function_type()
        if self.at("(") and self._is_function_type_start():
            return self.parse_function_type()
        if self.at("new") and self.peek(1).value in ("(", "<"):
            self.advance()
            return self.parse_function_type()
        if self.at("abstract") and self.peek(1).value == "new":
            self.advance()
            self.advance()
            return self.parse_function_type()
        typ = self.parse_union()
        # Conditional type: kept opaque
        if self.at("extends") and not self.current().newline_before:
            check_end = self.pos
            self.advance()
            self.parse_union()
            extends_end = self.pos
            self.expect("?")
            self.parse_type()
            true_end = self.pos
            self.expect(":")
            self.parse_type()
            text = (
                self._span_text(start, check_end)
                + " extends "
                + self._span_text(check_end + 1, extends_end)
                + " ? "
                + self._span_text(extends_end + 1, true_end)
                + " : "
                + self._span_text(true_end + 1, self.pos)
            )
            return OpaqueTypeNode(typ.pos, text)
        return typ

    def _is_function_type_start(self) -> bool:
        close = self._matching_close(self.pos)
        if close < 0 or close + 1 >= len(self.tokens):
            return False
        nxt = self.tokens[close + 1]
        return nxt.type == TK_OP and nxt.value == "=>"

    def parse_function_type(self) -> FunctionTypeNode:
        pos = self._pos()
        type_params = self.parse_type_params()
        params = self.parse_params()
        self.expect("=>")
        ret = self.parse_return_type()
        return FunctionTypeNode(pos, type_params, params, ret)

    def parse_return_type(self) -> TypeNode:
        """A type, or an opaque type predicate (x is T, asserts x)."""
        start = self.pos
        pos = self._pos()
        if self.at("asserts") and self.peek(1).type == TK_IDENT and not self.peek(1).newline_before:
            self.advance()
            self.advance()
            if self.at("is"):
                self.advance()
                self.parse_type()
            return OpaqueTypeNode(pos, self._span_text(start, self.pos))
        if self.at_ident() and self.peek(1).type == TK_IDENT and self.peek(1).value == "is":
            self.advance()
            self.advance()
            self.parse_type()
            return OpaqueTypeNode(pos, self._span_text(start, self.pos))
        return self.parse_type()

    def parse_union(self) -> TypeNode:
        pos = self._pos()
        if self.at("|"):
            self.advance()
        members: list[TypeNode] = [self.parse_intersection()]
        while self.at("|"):
            self.advance()
            members.append(self.parse_intersection())
        if len(members) == 1:
            return members[0]
        return UnionTypeNode(pos, members)

    def parse_intersection(self) -> TypeNode:
        pos = self._pos()
        if self.at("&"):
            self.advance()
        members: list[TypeNode] = [self.parse_type_operator()]
        while self.at("&"):
            self.advance()
            members.append(self.parse_type_operator())
        if len(members) == 1:
            return members[0]
        return IntersectionTypeNode(pos, members)

    def parse_type_operator(self) -> TypeNode:
        start = self.pos
        pos = self._pos()
        if (self.at("keyof") or self.at("unique") or self.at("infer")) and self._operand_follows():
            self.advance()
            self.parse_type_operator()
            return OpaqueTypeNode(pos, self._span_text(start, self.pos))
        if self.at("readonly") and self._operand_follows():
            self.advance()
            inner = self.parse_type_operator()
            if isinstance(inner, (ArrayTypeNode, TupleTypeNode)):
                inner.readonly = True
            return inner
        return self.parse_postfix()

    def _operand_follows(self) -> bool:
        nxt = self.peek(1)
        if nxt.type == TK_OP:
            return nxt.value in ("(", "[", "{", "-")
        return nxt.type != TK_EOF and not nxt.newline_before

    def parse_postfix(self) -> TypeNode:
        start = self.pos
        typ = self.parse_primary()
        while self.at("[") and not self.current().newline_before:
            if self.peek(1).value == "]":
                self.advance()
                self.advance()
                typ = ArrayTypeNode(typ.pos, typ)
            else:
                # Indexed access: kept opaque
                self.advance()
                self.parse_type()
                self.expect("]")
                typ = OpaqueTypeNode(typ.pos, self._span_text(start, self.pos))
        return typ

    def parse_primary(self) -> TypeNode:
        tok = self.current()
        pos = self._pos()
        if self.at("("):
            self.advance()
            inner = self.parse_type()
            self.expect(")")
            return inner
        if self.at("{"):
            if self._is_mapped_type():
                start = self.pos
                close = self._matching_close(start)
                if close < 0:
                    raise self.error("unterminated mapped type")
                self.pos = close + 1
                return OpaqueTypeNode(pos, self._span_text(start, self.pos))
            return ObjectTypeNode(pos, self.parse_members())
        if self.at("["):
            return self.parse_tuple_type()
        if tok.type == TK_STRING:
            self.advance()
            return LiteralType(pos, "string", tok.value)
        if tok.type == TK_NUMBER:
            self.advance()
            base = "bigint" if tok.value.endswith("n") else "number"
            return LiteralType(pos, base, number_text(tok.value))
        if self.at("-") and self.peek(1).type == TK_NUMBER:
            self.advance()
            num = self.advance()
            base = "bigint" if num.value.endswith("n") else "number"
            return LiteralType(pos, base, "-" + number_text(num.value))
        if tok.type == TK_TEMPLATE:
            self.advance()
            holes = [_parse_hole(hole, pos) for hole in tok.template_holes]
            return TemplateType(pos, list(tok.template_parts), holes)
        if tok.type == TK_IDENT:
            if tok.value == "true" or tok.value == "false":
                self.advance()
                return LiteralType(pos, "boolean", tok.value)
            if tok.value in KEYWORD_TYPES and self.peek(1).value != ".":
                self.advance()
                return KeywordType(pos, tok.value)
            if tok.value == "import" and self.peek(1).value == "(":
                return OpaqueTypeNode(pos, self._import_type_text())
            if tok.value == "typeof":
                start = self.pos
                self.advance()
                if self.at("import") and self.peek(1).value == "(":
                    return OpaqueTypeNode(pos, "typeof " + self._import_type_text())
                self.parse_type_ref()
                return OpaqueTypeNode(pos, self._span_text(start, self.pos))
            return self.parse_type_ref()
        raise self.error("expected type, got '" + _describe(tok) + "'")

    def _import_type_text(self) -> str:
        """Consume import("mod").Name<Args>; the module itself is not followed."""
        self.expect("import")
        open_idx = self.pos
        close = self._matching_close(open_idx)
        if close < 0:
            raise self.error("unterminated import type")
        text = "import(" + self._span_text(open_idx + 1, close) + ")"
        self.pos = close + 1
        start = self.pos
        while self.at(".") and self.peek(1).type == TK_IDENT:
            self.advance()
            self.advance()
        if self.at("<"):
            self.parse_type_args()
        return text + self._span_text(start, self.pos)

    def _is_mapped_type(self) -> bool:
        i = 1
        if self.peek(i).value in ("+", "-"):
            i += 1
        if self.peek(i).value == "readonly":
            i += 1
        return (
            self.peek(i).value == "["
            and self.peek(i + 1).type == TK_IDENT
            and self.peek(i + 2).value == "in"
        )

    def parse_tuple_type(self) -> TupleTypeNode:
        pos = self._pos()
        self.expect("[")
        elements: list[TupleElement] = []
        while not self.at("]"):
            rest = False
            optional = False
            if self.at("..."):
                self.advance()
                rest = True
            # Labeled element: name: T or name?: T
            if self.at_ident() and self.peek(1).value == ":":
                self.advance()
                self.advance()
            elif self.at_ident() and self.peek(1).value == "?" and self.peek(2).value == ":":
                self.advance()
                self.advance()
                self.advance()
                optional = True
            typ = self.parse_type()
            if self.at("?"):
                self.advance()
                optional = True
            elements.append(TupleElement(typ, optional, rest))
            if not self.at(","):
                break
            self.advance()
        self.expect("]")
        return TupleTypeNode(pos, elements)


def _describe(tok: Token) -> str:
    if tok.type == TK_EOF:
        return "end of input"
    return _token_text(tok)


def _token_text(tok: Token) -> str:
    if tok.type == TK_STRING:
        return '"' + tok.value.replace("\\", "\\\\").replace('"', '\\"') + '"'
    if tok.type == TK_TEMPLATE:
        out = "`"
        for i, hole in enumerate(tok.template_holes):
            out += tok.template_parts[i] + "${" + hole + "}"
        return out + tok.template_parts[-1] + "`"
    return tok.value


def _parse_hole(source: str, pos: Pos) -> TypeNode:
    """Parse the type inside a template literal `${...}` hole."""
    try:
        parser = Parser(tokenize(source))
        typ = parser.parse_type()
    except ParseError as e:
        raise ParseError("in template literal: " + e.msg, pos.line, pos.col) from None
    if not parser.at_type(TK_EOF):
        raise ParseError(
            "unexpected '" + _describe(parser.current()) + "' in template literal",
            pos.line,
            pos.col,
        )
    return typ


def parse(source: str, path: str = "<input>") -> SourceUnit:
    """Parse declaration source into a SourceUnit."""
    return Parser(tokenize(source, jsx=path.endswith(".tsx"))).parse_program(path)
