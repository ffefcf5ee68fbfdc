"""Annotation extractor tests."""

import pytest

from implcheck import parse
from implcheck.annotations import extract_implements
from implcheck.frontend.ast import TypeAliasDecl


def first_alias(source: str) -> TypeAliasDecl:
    for decl in parse(source).decls:
        if isinstance(decl, TypeAliasDecl):
            return decl
    raise AssertionError("no type alias in source")


@pytest.mark.parametrize(
    "source,expected",
    [
        ("/** @implements {Shape} */\ntype T = {};", "Shape"),
        ("/** @implements { Shape } */\ntype T = {};", "Shape"),
        ("/** @implements{Shape}*/\ntype T = {};", "Shape"),
        ("/** @implements {Box<string>} */\ntype T = {};", "Box<string>"),
        ("/**\n * A square.\n * @implements {Shape}\n */\ntype T = {};", "Shape"),
        ("/* @implements {Shape} */\ntype T = {};", "Shape"),
        ("/** @implements {Shape} */\nexport type T = {};", "Shape"),
        ("/** @implements {First} @implements {Second} */\ntype T = {};", "First"),
        ("/** @implements {ns.Shape} */\ntype T = {};", "ns.Shape"),
    ],
)
def test_extract(source: str, expected: str):
    assert extract_implements(first_alias(source)) == expected


@pytest.mark.parametrize(
    "source",
    [
        "type T = {};",
        "/** A plain comment. */\ntype T = {};",
        "// @implements {Shape}\ntype T = {};",
        "/** @implements Shape */\ntype T = {};",
        "/** @implements {} */\ntype T = {};",
    ],
)
def test_no_annotation(source: str):
    assert extract_implements(first_alias(source)) is None


def test_first_tagged_comment_is_used():
    source = "/** @implements Broken */\n/** @implements {Shape} */\ntype T = {};"
    assert extract_implements(first_alias(source)) is None


def test_untagged_comment_before_tagged_one():
    source = "/** Docs. */\n/** @implements {Shape} */\ntype T = {};"
    assert extract_implements(first_alias(source)) == "Shape"


def test_comment_belongs_to_following_declaration():
    source = "/** @implements {Shape} */\ninterface Shape {}\ntype T = {};"
    assert extract_implements(first_alias(source)) is None
