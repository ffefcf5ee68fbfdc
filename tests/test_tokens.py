"""Tokenizer tests for operands whose text would otherwise read as strings."""

import pytest

from implcheck import parse
from implcheck.frontend.ast import InterfaceDecl
from implcheck.frontend.tokens import TK_JSX, TK_OP, TK_REGEX, TokenizeError, tokenize


def pairs(source: str, jsx: bool = False) -> list[tuple[str, str]]:
    return [(t.type, t.value) for t in tokenize(source, jsx)][:-1]


def test_regex_literal_is_one_token():
    toks = pairs("const r = /[/'\"]+\\//gi;")
    assert toks[3] == (TK_REGEX, "/[/'\"]+\\//gi")
    assert toks[4] == (TK_OP, ";")


@pytest.mark.parametrize(
    "source",
    [
        "a / b / 2",
        "(a) / 2 / (b)",
        "items[0] / total",
    ],
)
def test_slash_after_operand_is_division(source: str):
    assert TK_REGEX not in [kind for kind, _ in pairs(source)]


def test_regex_after_return_keyword():
    toks = pairs("return /'/.test(s)")
    assert toks[1] == (TK_REGEX, "/'/")


def test_unterminated_regex_falls_back_to_operator():
    toks = pairs("x = /\n1")
    assert toks[2] == (TK_OP, "/")


def test_jsx_element_is_one_token():
    toks = pairs("const el = <p className='x'>Don't {a && <b>it's</b>}</p>;", jsx=True)
    assert toks[3] == (TK_JSX, "<p className='x'>Don't {a && <b>it's</b>}</p>")
    assert toks[4] == (TK_OP, ";")


def test_jsx_fragment_and_self_closing_elements():
    toks = pairs("f(<>It's <br /></>, <Icon name=\"x\" />)", jsx=True)
    assert toks[2] == (TK_JSX, "<>It's <br /></>")
    assert toks[4] == (TK_JSX, '<Icon name="x" />')


def test_jsx_text_needs_jsx_mode():
    with pytest.raises(TokenizeError, match="unterminated string literal"):
        tokenize("const el = <p>Don't</p>;")


@pytest.mark.parametrize(
    "source",
    [
        "const id = <T,>(x: T) => x;",
        "const id = <T extends object>(x: T) => x;",
        "interface I { map: <T>(x: T) => T }",
        "type F = <T>(x: T) => T;",
    ],
)
def test_type_parameter_lists_are_not_jsx(source: str):
    toks = pairs(source, jsx=True)
    assert TK_JSX not in [kind for kind, _ in toks]
    assert (TK_OP, "<") in toks


def test_tsx_sources_are_parsed_in_jsx_mode():
    source = "const view = <p>Don't</p>;\nexport interface Props { title: string }\n"
    unit = parse(source, "view.tsx")
    assert isinstance(unit.decls[1], InterfaceDecl)
    assert unit.decls[1].name == "Props"
