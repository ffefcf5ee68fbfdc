"""Frontend package - reads TypeScript declaration source into SourceUnits."""

from .ast import SourceUnit
from .parse import ParseError, Parser, parse
from .tokens import TokenizeError, tokenize

__all__ = [
    "ParseError",
    "Parser",
    "SourceUnit",
    "TokenizeError",
    "parse",
    "tokenize",
]
