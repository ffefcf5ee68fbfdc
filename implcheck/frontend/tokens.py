"""Declaration tokenizer: lexes TypeScript declaration source into a flat token list."""

from __future__ import annotations

from .ast import Comment, Pos


# Token type constants
TK_IDENT = "IDENT"
TK_NUMBER = "NUMBER"
TK_STRING = "STRING"
TK_TEMPLATE = "TEMPLATE"
TK_OP = "OP"
TK_REGEX = "REGEX"
TK_JSX = "JSX"
TK_EOF = "EOF"

# Multi-character operators, sorted by length descending for greedy matching
MULTI_OPS: list[str] = [
    "...",
    "=>",
    "?.",
    "&&",
    "||",
    "??",
    "==",
    "!=",
    "<=",
    ">=",
]

SINGLE_OPS: set[str] = {
    "{",
    "}",
    "(",
    ")",
    "[",
    "]",
    "<",
    ">",
    ",",
    ";",
    ":",
    "?",
    "|",
    "&",
    "=",
    ".",
    "*",
    "+",
    "-",
    "!",
    "@",
    "#",
    "%",
    "^",
    "~",
    "/",
}

ESCAPE_MAP: dict[str, str] = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
    "\\": "\\",
    '"': '"',
    "'": "'",
    "`": "`",
}

# Keywords after which `/` or `<` begins an operand rather than an operator
OPERAND_KEYWORDS: set[str] = {
    "return",
    "typeof",
    "instanceof",
    "in",
    "of",
    "new",
    "delete",
    "void",
    "throw",
    "case",
    "do",
    "else",
    "yield",
    "await",
}

# Elements nested deeper than this are not treated as JSX
JSX_MAX_DEPTH = 64


class TokenizeError(Exception):
    """Error during tokenization."""

    def __init__(self, msg: str, line: int, col: int):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        super().__init__(msg + " at line " + str(line) + " col " + str(col))


class Token:
    """A token with type, value, and position.

    Block comments between the previous token and this one are kept in
    `leading_comments`; `newline_before` records whether a line break
    separates this token from the previous one.
    """

    def __init__(self, type_: str, value: str, line: int, col: int):
        self.type: str = type_
        self.value: str = value
        self.line: int = line
        self.col: int = col
        self.leading_comments: list[Comment] = []
        self.newline_before: bool = False
        # Template literals: literal chunks and raw `${...}` hole sources
        self.template_parts: list[str] = []
        self.template_holes: list[str] = []

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.value)
            + ", "
            + str(self.line)
            + ", "
            + str(self.col)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_ident_start(c: str) -> bool:
    return c.isalpha() or c == "_" or c == "$"


def _is_ident_char(c: str) -> bool:
    return _is_ident_start(c) or _is_digit(c)


def number_text(raw: str) -> str:
    """Canonical text of a numeric literal, the way property keys are normalized."""
    cleaned = raw.replace("_", "")
    lower = cleaned.lower()
    if lower.startswith("0x") or lower.startswith("0o") or lower.startswith("0b"):
        return str(int(cleaned, 0))
    if lower.endswith("n"):
        return cleaned[:-1]
    value = float(cleaned)
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def _process_escape(src: str, pos: int, line: int, col: int) -> tuple[str, int]:
    """Process escape after backslash. Returns (resolved_char, new_pos)."""
    if pos >= len(src):
        raise TokenizeError("unexpected end of string in escape", line, col)
    c = src[pos]
    if c in ESCAPE_MAP:
        return ESCAPE_MAP[c], pos + 1
    if c == "x":
        digits = src[pos + 1 : pos + 3]
        if len(digits) != 2:
            raise TokenizeError("incomplete \\x escape", line, col)
        try:
            return chr(int(digits, 16)), pos + 3
        except ValueError:
            raise TokenizeError("invalid hex escape", line, col) from None
    if c == "u":
        if pos + 1 < len(src) and src[pos + 1] == "{":
            end = src.find("}", pos + 2)
            if end < 0:
                raise TokenizeError("unterminated \\u{} escape", line, col)
            digits = src[pos + 2 : end]
            new_pos = end + 1
        else:
            digits = src[pos + 1 : pos + 5]
            new_pos = pos + 5
        try:
            return chr(int(digits, 16)), new_pos
        except ValueError:
            raise TokenizeError("invalid unicode escape", line, col) from None
    if c == "\n":
        # Line continuation
        return "", pos + 1
    return c, pos + 1


class _Lexer:
    """Cursor over the source text with line/column bookkeeping."""

    def __init__(self, source: str):
        self.src: str = source
        self.pos: int = 0
        self.line: int = 1
        self.col: int = 1

    def step(self, n: int) -> None:
        end = self.pos + n
        while self.pos < end:
            if self.src[self.pos] == "\n":
                self.line += 1
                self.col = 1
            else:
                self.col += 1
            self.pos += 1

    def at(self, text: str) -> bool:
        return self.src.startswith(text, self.pos)


def _lex_template(lx: _Lexer, start_line: int, start_col: int) -> Token:
    """Lex a backtick template literal; the opening backtick is already consumed."""
    src = lx.src
    parts: list[str] = []
    holes: list[str] = []
    chunk: list[str] = []
    while True:
        if lx.pos >= len(src):
            raise TokenizeError("unterminated template literal", start_line, start_col)
        c = src[lx.pos]
        if c == "`":
            lx.step(1)
            break
        if c == "\\":
            ch, new_pos = _process_escape(src, lx.pos + 1, lx.line, lx.col)
            chunk.append(ch)
            lx.step(new_pos - lx.pos)
            continue
        if lx.at("${"):
            lx.step(2)
            depth = 1
            hole_start = lx.pos
            while lx.pos < len(src) and depth > 0:
                if src[lx.pos] == "{":
                    depth += 1
                elif src[lx.pos] == "}":
                    depth -= 1
                    if depth == 0:
                        break
                lx.step(1)
            if lx.pos >= len(src):
                raise TokenizeError("unterminated template hole", start_line, start_col)
            holes.append(src[hole_start : lx.pos])
            lx.step(1)  # skip closing }
            parts.append("".join(chunk))
            chunk = []
            continue
        chunk.append(c)
        lx.step(1)
    parts.append("".join(chunk))
    tok = Token(TK_TEMPLATE, "".join(parts), start_line, start_col)
    tok.template_parts = parts
    tok.template_holes = holes
    return tok


def _operand_expected(tokens: list[Token]) -> bool:
    """True when the next token starts an operand rather than continuing an expression."""
    if not tokens:
        return True
    prev = tokens[-1]
    if prev.type == TK_OP:
        return prev.value not in (")", "]", "}")
    if prev.type == TK_IDENT:
        return prev.value in OPERAND_KEYWORDS
    return False


def _lex_regex(lx: _Lexer, start_line: int, start_col: int) -> Token | None:
    """Lex a regular expression literal at `/`, or None when the line ends first."""
    src = lx.src
    i = lx.pos + 1
    in_class = False
    while True:
        if i >= len(src) or src[i] == "\n":
            return None
        c = src[i]
        if c == "\\":
            i += 2
            continue
        if c == "[":
            in_class = True
        elif c == "]":
            in_class = False
        elif c == "/" and not in_class:
            break
        i += 1
    i += 1
    while i < len(src) and _is_ident_char(src[i]):
        i += 1
    text = src[lx.pos : i]
    lx.step(i - lx.pos)
    return Token(TK_REGEX, text, start_line, start_col)


# ── JSX ──────────────────────────────────────────────────────


def _skip_space(src: str, i: int) -> int:
    while i < len(src) and src[i].isspace():
        i += 1
    return i


def _jsx_name_end(src: str, i: int) -> int:
    while i < len(src) and (_is_ident_char(src[i]) or src[i] in ".:-"):
        i += 1
    return i


def _quoted_end(src: str, i: int) -> int:
    """Index just past the string or template literal opening at src[i], or -1."""
    quote = src[i]
    i += 1
    while i < len(src):
        c = src[i]
        if c == "\\":
            i += 2
            continue
        if c == quote:
            return i + 1
        if c == "\n" and quote != "`":
            return -1
        i += 1
    return -1


def _jsx_may_start(src: str, i: int, last: str) -> bool:
    if i + 1 >= len(src) or not (_is_ident_start(src[i + 1]) or src[i + 1] == ">"):
        return False
    if last in "(,=:?&|{[!>":
        return True
    j = i
    while j > 0 and src[j - 1].isspace():
        j -= 1
    return src.endswith("return", 0, j)


def _jsx_expression_end(src: str, i: int, depth: int) -> int:
    """Index just past the `{...}` container opening at src[i], or -1."""
    braces = 0
    last = "{"
    while i < len(src):
        c = src[i]
        if c == '"' or c == "'" or c == "`":
            i = _quoted_end(src, i)
            if i < 0:
                return -1
            last = c
            continue
        if src.startswith("//", i):
            nl = src.find("\n", i)
            i = len(src) if nl < 0 else nl
            continue
        if src.startswith("/*", i):
            close = src.find("*/", i + 2)
            if close < 0:
                return -1
            i = close + 2
            continue
        if c == "<" and _jsx_may_start(src, i, last):
            end = _jsx_element_end(src, i, depth + 1)
            if end >= 0:
                i = end
                last = ">"
                continue
        if c == "{":
            braces += 1
        elif c == "}":
            braces -= 1
            if braces == 0:
                return i + 1
        if not c.isspace():
            last = c
        i += 1
    return -1


def _jsx_element_end(src: str, i: int, depth: int) -> int:
    """Index just past the element or fragment opening at src[i] == '<', or -1."""
    if depth > JSX_MAX_DEPTH:
        return -1
    length = len(src)
    name_end = _jsx_name_end(src, i + 1)
    name = src[i + 1 : name_end]
    if name and not _is_ident_start(name[0]):
        return -1
    if not name and not src.startswith(">", name_end):
        return -1
    i = _skip_space(src, name_end)
    # A type parameter list such as <T,> or <T extends U> is not an element
    if src.startswith(",", i) or src.startswith("extends", i):
        return -1
    while True:
        if i >= length:
            return -1
        if src.startswith("/>", i):
            return i + 2
        if src[i] == ">":
            i += 1
            break
        if src[i] == "{":
            i = _jsx_expression_end(src, i, depth)
        elif _is_ident_start(src[i]):
            i = _skip_space(src, _jsx_name_end(src, i))
            if i < length and src[i] == "=":
                i = _skip_space(src, i + 1)
                if i >= length:
                    return -1
                if src[i] == '"' or src[i] == "'":
                    close = src.find(src[i], i + 1)
                    i = close + 1 if close >= 0 else -1
                elif src[i] == "{":
                    i = _jsx_expression_end(src, i, depth)
                else:
                    return -1
        else:
            return -1
        if i < 0:
            return -1
        i = _skip_space(src, i)
    while i < length:
        if src.startswith("</", i):
            close = src.find(">", i)
            if close < 0 or src[i + 2 : close].strip() != name:
                return -1
            return close + 1
        if src[i] == "<":
            i = _jsx_element_end(src, i, depth + 1)
        elif src[i] == "{":
            i = _jsx_expression_end(src, i, depth)
        else:
            i += 1
        if i < 0:
            return -1
    return -1


def _lex_jsx(lx: _Lexer, start_line: int, start_col: int) -> Token | None:
    """Lex a whole JSX element as one token, or None when `<` does not open one."""
    end = _jsx_element_end(lx.src, lx.pos, 0)
    if end < 0:
        return None
    text = lx.src[lx.pos : end]
    lx.step(end - lx.pos)
    return Token(TK_JSX, text, start_line, start_col)


def tokenize(source: str, jsx: bool = False) -> list[Token]:
    """Tokenize declaration source into a flat list ending with TK_EOF.

    With `jsx` set, elements in operand position are kept as single TK_JSX
    tokens so their text never reaches the string lexer.
    """
    tokens: list[Token] = []
    lx = _Lexer(source)
    src = source
    length = len(source)
    pending: list[Comment] = []
    saw_newline = False

    def emit(tok: Token) -> None:
        nonlocal pending, saw_newline
        tok.leading_comments = pending
        tok.newline_before = saw_newline
        pending = []
        saw_newline = False
        tokens.append(tok)

    while lx.pos < length:
        c = src[lx.pos]

        # Newlines
        if c == "\n":
            saw_newline = True
            lx.step(1)
            continue

        # Whitespace
        if c == " " or c == "\t" or c == "\r" or c == "\ufeff":
            lx.step(1)
            continue

        # Line comment: //
        if lx.at("//"):
            while lx.pos < length and src[lx.pos] != "\n":
                lx.step(1)
            continue

        start_line = lx.line
        start_col = lx.col

        # Block comment: /* ... */ (kept for annotation lookup)
        if lx.at("/*"):
            end = src.find("*/", lx.pos + 2)
            if end < 0:
                raise TokenizeError("unterminated block comment", start_line, start_col)
            body = src[lx.pos + 2 : end]
            lx.step(end + 2 - lx.pos)
            pending.append(Comment(body, Pos(start_line, start_col)))
            continue

        # Regex literal: `/` where an operand is expected
        if c == "/" and _operand_expected(tokens):
            regex = _lex_regex(lx, start_line, start_col)
            if regex is not None:
                emit(regex)
                continue

        # JSX element: `<Name` where an operand is expected
        if jsx and c == "<" and _operand_expected(tokens):
            element = _lex_jsx(lx, start_line, start_col)
            if element is not None:
                emit(element)
                continue

        # Number: decimal, float, exponent, hex/octal/binary, bigint suffix
        if _is_digit(c) or (c == "." and lx.pos + 1 < length and _is_digit(src[lx.pos + 1])):
            start = lx.pos
            if c == "0" and lx.pos + 1 < length and src[lx.pos + 1] in "xXoObB":
                lx.step(2)
                while lx.pos < length and (src[lx.pos].isalnum() or src[lx.pos] == "_"):
                    lx.step(1)
            else:
                while lx.pos < length and (_is_digit(src[lx.pos]) or src[lx.pos] == "_"):
                    lx.step(1)
                if lx.pos < length and src[lx.pos] == ".":
                    lx.step(1)
                    while lx.pos < length and _is_digit(src[lx.pos]):
                        lx.step(1)
                if lx.pos < length and src[lx.pos] in "eE":
                    lx.step(1)
                    if lx.pos < length and src[lx.pos] in "+-":
                        lx.step(1)
                    if lx.pos >= length or not _is_digit(src[lx.pos]):
                        raise TokenizeError("invalid number exponent", start_line, start_col)
                    while lx.pos < length and _is_digit(src[lx.pos]):
                        lx.step(1)
                if lx.pos < length and src[lx.pos] == "n":
                    lx.step(1)
            emit(Token(TK_NUMBER, src[start : lx.pos], start_line, start_col))
            continue

        # String literal: "..." or '...'
        if c == '"' or c == "'":
            quote = c
            lx.step(1)
            chars: list[str] = []
            while lx.pos < length and src[lx.pos] != quote:
                if src[lx.pos] == "\n":
                    raise TokenizeError("unterminated string literal", start_line, start_col)
                if src[lx.pos] == "\\":
                    ch, new_pos = _process_escape(src, lx.pos + 1, lx.line, lx.col)
                    chars.append(ch)
                    lx.step(new_pos - lx.pos)
                else:
                    chars.append(src[lx.pos])
                    lx.step(1)
            if lx.pos >= length:
                raise TokenizeError("unterminated string literal", start_line, start_col)
            lx.step(1)  # skip closing quote
            emit(Token(TK_STRING, "".join(chars), start_line, start_col))
            continue

        # Template literal: `...${T}...`
        if c == "`":
            lx.step(1)
            emit(_lex_template(lx, start_line, start_col))
            continue

        # Identifier or keyword (keywords are contextual in declaration files)
        if _is_ident_start(c):
            start = lx.pos
            while lx.pos < length and _is_ident_char(src[lx.pos]):
                lx.step(1)
            emit(Token(TK_IDENT, src[start : lx.pos], start_line, start_col))
            continue

        # Multi-character operators
        matched = False
        for op in MULTI_OPS:
            if lx.at(op):
                emit(Token(TK_OP, op, start_line, start_col))
                lx.step(len(op))
                matched = True
                break
        if matched:
            continue

        # Single-character operators
        if c in SINGLE_OPS:
            emit(Token(TK_OP, c, start_line, start_col))
            lx.step(1)
            continue

        raise TokenizeError("unexpected character: " + repr(c), start_line, start_col)

    emit(Token(TK_EOF, "", lx.line, lx.col))
    return tokens
