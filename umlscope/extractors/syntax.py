"""Thin adapter over tree-sitter shared by the extractors and import resolver.

Everything that touches tree-sitter node objects goes through here or through
an extractor module; the rest of the package only sees plain dataclasses.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Iterator, List, Optional

import tree_sitter
import tree_sitter_typescript
from tree_sitter_language_pack import get_language

from ..models import ParseError

TYPESCRIPT_LANGUAGE = tree_sitter.Language(tree_sitter_typescript.language_typescript())
TSX_LANGUAGE = tree_sitter.Language(tree_sitter_typescript.language_tsx())

_SNIPPET_LENGTH = 24


@lru_cache(maxsize=None)
def dart_language() -> tree_sitter.Language:
    """The Dart grammar, loaded on first use."""
    return get_language("dart")


def new_parser(language: tree_sitter.Language = TYPESCRIPT_LANGUAGE) -> tree_sitter.Parser:
    return tree_sitter.Parser(language)


def parse_source(
    source: str, language: tree_sitter.Language = TYPESCRIPT_LANGUAGE
) -> tuple[tree_sitter.Tree, bytes]:
    source_bytes = source.encode("utf-8")
    return new_parser(language).parse(source_bytes), source_bytes


def node_text(node: Optional[tree_sitter.Node], source_bytes: bytes) -> str:
    if node is None:
        return ""
    return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def iter_nodes(root: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Depth-first, document-order walk using an explicit stack."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def has_token(node: tree_sitter.Node, token: str) -> bool:
    """True when ``node`` has a direct anonymous child of type ``token``."""
    return any(not child.is_named and child.type == token for child in node.children)


def child_of_type(node: tree_sitter.Node, *types: str) -> Optional[tree_sitter.Node]:
    """First direct child, named or not, whose type is one of ``types``."""
    for child in node.children:
        if child.type in types:
            return child
    return None


def line_of(node: tree_sitter.Node) -> int:
    return node.start_point[0] + 1


def collect_syntax_errors(root: tree_sitter.Node, source_bytes: bytes) -> List[ParseError]:
    """One ``ParseError`` per ERROR or missing node, in document order."""
    if not root.has_error:
        return []
    errors: List[ParseError] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_missing:
            errors.append(_error_at(node, f"Missing '{node.type}'"))
            continue
        if node.type == "ERROR":
            snippet = " ".join(node_text(node, source_bytes).split())
            if len(snippet) > _SNIPPET_LENGTH:
                snippet = snippet[: _SNIPPET_LENGTH - 3] + "..."
            message = f"Unexpected syntax near '{snippet}'" if snippet else "Unexpected syntax"
            errors.append(_error_at(node, message))
            continue
        stack.extend(reversed([child for child in node.children if child.has_error or child.is_missing]))
    return errors


def _error_at(node: tree_sitter.Node, message: str) -> ParseError:
    row, column = node.start_point[0], node.start_point[1]
    return ParseError(line=row + 1, column=column + 1, message=message, severity="error")


__all__ = [
    "TSX_LANGUAGE",
    "TYPESCRIPT_LANGUAGE",
    "child_of_type",
    "collect_syntax_errors",
    "dart_language",
    "has_token",
    "iter_nodes",
    "line_of",
    "new_parser",
    "node_text",
    "parse_source",
]
