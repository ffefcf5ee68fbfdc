"""Annotation extractor: the `@implements {Name}` tag on a type alias."""

from __future__ import annotations

import re

from .frontend.ast import TypeAliasDecl

IMPLEMENTS_TAG = "@implements"
IMPLEMENTS_PATTERN = re.compile(r"@implements\s*\{\s*([^}]+)\s*\}")


def extract_implements(decl: TypeAliasDecl) -> str | None:
    """Return the interface name claimed by the alias, verbatim and trimmed.

    Only the first block comment mentioning the tag is consulted, and only
    its first tag. Generic arguments (`Name<string>`) are kept in the text.
    """
    for comment in decl.comments:
        if IMPLEMENTS_TAG not in comment.text:
            continue
        m = IMPLEMENTS_PATTERN.search(comment.text)
        if m is None:
            return None
        name = m.group(1).strip()
        return name or None
    return None
