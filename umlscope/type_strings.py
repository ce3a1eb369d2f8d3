"""Syntactic helpers for interpreting raw type strings.

Type strings are kept verbatim by the extractors (``"Employee[]"``,
``"Promise<Map<string, User>>"``, ``"Person | null"``). Everything here works on
the text alone: no symbol tables, no inference.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Set, Tuple

# Built-in and standard-library names that never produce a relationship.
BUILT_IN_TYPES: FrozenSet[str] = frozenset(
    {
        # TypeScript primitives and keywords
        "string",
        "number",
        "boolean",
        "void",
        "null",
        "undefined",
        "any",
        "unknown",
        "never",
        "object",
        "symbol",
        "bigint",
        "this",
        # TypeScript standard library
        "Object",
        "String",
        "Number",
        "Boolean",
        "Date",
        "Promise",
        "Array",
        "ReadonlyArray",
        "Map",
        "ReadonlyMap",
        "Set",
        "ReadonlySet",
        "WeakMap",
        "WeakSet",
        "Error",
        "RegExp",
        "Function",
        "Record",
        "Partial",
        "Required",
        "Readonly",
        "Pick",
        "Omit",
        "Iterable",
        "Iterator",
    }
)

# Generic containers whose element type is held by many-to-one ownership.
COLLECTION_WRAPPERS: FrozenSet[str] = frozenset(
    {"Array", "ReadonlyArray", "Set", "ReadonlySet", "Iterable"}
)

DART_BUILT_IN_TYPES: FrozenSet[str] = frozenset(
    {
        # dart:core
        "String",
        "int",
        "double",
        "num",
        "bool",
        "void",
        "dynamic",
        "Object",
        "Never",
        "Null",
        "Function",
        "List",
        "Map",
        "Set",
        "Iterable",
        "Iterator",
        "Future",
        "FutureOr",
        "Stream",
        "DateTime",
        "Duration",
        "Uri",
        "RegExp",
        "Symbol",
        "Type",
        "Comparable",
        "Pattern",
        "Match",
        "Error",
        "Exception",
        "StackTrace",
        # Flutter framework
        "Widget",
        "BuildContext",
        "State",
        "Key",
    }
)


@dataclass(frozen=True)
class TypeRules:
    """Per-language names that never relate and wrappers that mean ownership.

    ``keyed_collections`` hold their element in the last type argument, as
    in Dart's ``Map<K, V>``.
    """

    built_ins: FrozenSet[str]
    collections: FrozenSet[str]
    keyed_collections: FrozenSet[str] = frozenset()


TYPESCRIPT_RULES = TypeRules(built_ins=BUILT_IN_TYPES, collections=COLLECTION_WRAPPERS)
DART_RULES = TypeRules(
    built_ins=DART_BUILT_IN_TYPES,
    collections=frozenset({"List", "Iterable", "Set"}),
    keyed_collections=frozenset({"Map"}),
)

_RULES_BY_LANGUAGE = {"typescript": TYPESCRIPT_RULES, "tsx": TYPESCRIPT_RULES, "dart": DART_RULES}

_NULLISH = {"null", "undefined"}
_IDENTIFIER_RE = re.compile(r"[A-Za-z_$][\w$]*")
_OPEN = "<([{"
_CLOSE = ">)]}"


def rules_for(language: str) -> TypeRules:
    """Type rules for ``language``; unknown languages get the TypeScript rules."""
    return _RULES_BY_LANGUAGE.get(language, TYPESCRIPT_RULES)


def is_built_in(name: str, rules: TypeRules = TYPESCRIPT_RULES) -> bool:
    return name in rules.built_ins


def split_top_level(text: str, separator: str) -> List[str]:
    """Split ``text`` on ``separator`` outside of any bracket pair."""
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char in _OPEN:
            depth += 1
        elif char in _CLOSE:
            # "=>" in function types is not a closing bracket.
            if not (char == ">" and index > 0 and text[index - 1] == "="):
                depth = max(depth - 1, 0)
        if char == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        index += 1
    parts.append("".join(current).strip())
    return [part for part in parts if part]


def parse_generic(type_string: str) -> Optional[Tuple[str, List[str]]]:
    """Return ``(outer, args)`` for ``Outer<A, B>``, else ``None``."""
    text = type_string.strip()
    open_index = text.find("<")
    if open_index <= 0 or not text.endswith(">"):
        return None
    outer = text[:open_index].strip()
    if not re.fullmatch(r"[A-Za-z_$][\w$.]*", outer):
        return None
    depth = 0
    for index in range(open_index, len(text)):
        char = text[index]
        if char == "<":
            depth += 1
        elif char == ">" and text[index - 1] != "=":
            depth -= 1
            if depth == 0 and index != len(text) - 1:
                return None
    if depth != 0:
        return None
    return outer, split_top_level(text[open_index + 1 : -1], ",")


def strip_nullish(type_string: str) -> str:
    """Drop a trailing ``?`` and ``null``/``undefined`` members from a union with one real member."""
    text = type_string.strip()
    if text.endswith("?"):
        text = text[:-1].rstrip()
    members = split_top_level(text, "|")
    if len(members) <= 1:
        return text
    remaining = [member for member in members if member not in _NULLISH]
    if len(remaining) == 1:
        return remaining[0]
    return text


def _strip_parens(text: str) -> str:
    while text.startswith("(") and text.endswith(")"):
        depth = 0
        for index, char in enumerate(text):
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0 and index != len(text) - 1:
                    return text
        text = text[1:-1].strip()
    return text


def unwrap_type(type_string: str, rules: TypeRules = TYPESCRIPT_RULES) -> Tuple[str, bool]:
    """Reduce a property type to the name it points at.

    Trailing ``[]`` and the collection generics of ``rules`` are stripped,
    repeatedly. Any other generic reduces to its outer name, so
    ``Repository<User>`` gives ``Repository``. The flag reports whether a
    collection wrapper was seen.
    """
    text = strip_nullish((type_string or "").strip())
    is_collection = False
    while True:
        text = strip_nullish(_strip_parens(text.strip()))
        if text.startswith("readonly "):
            text = text[len("readonly ") :]
            continue
        if text.endswith("[]"):
            text = text[:-2]
            is_collection = True
            continue
        generic = parse_generic(text)
        if generic is not None:
            outer, args = generic
            if outer in rules.collections and args:
                text = strip_nullish(args[0])
                is_collection = True
                continue
            if outer in rules.keyed_collections and args:
                text = strip_nullish(args[-1])
                is_collection = True
                continue
            text = outer
        break
    return text, is_collection


def referenced_type_names(type_string: str, rules: TypeRules = TYPESCRIPT_RULES) -> List[str]:
    """Every non-built-in type name a signature type mentions, in order.

    Handles unions, intersections, arrays and nested generics, so
    ``Promise<Array<User> | null>`` yields ``["User"]``.
    """
    names: List[str] = []
    seen: Set[str] = set()
    for name in _collect_names((type_string or "").strip()):
        if name not in seen and not is_built_in(name, rules):
            seen.add(name)
            names.append(name)
    return names


def _collect_names(text: str) -> List[str]:
    text = _strip_parens(text.strip())
    if not text:
        return []
    if "=>" in text or text.startswith("{"):
        return [token for token in _IDENTIFIER_RE.findall(text)]
    for separator in ("|", "&"):
        members = split_top_level(text, separator)
        if len(members) > 1:
            collected: List[str] = []
            for member in members:
                collected.extend(_collect_names(member))
            return collected
    if text.startswith("readonly "):
        return _collect_names(text[len("readonly ") :])
    if text.endswith("?"):
        return _collect_names(text[:-1])
    if text.endswith("[]"):
        return _collect_names(text[:-2])
    generic = parse_generic(text)
    if generic is not None:
        outer, args = generic
        collected = []
        for arg in args:
            collected.extend(_collect_names(arg))
        collected.append(outer)
        return collected
    members = split_top_level(text, ",")
    if len(members) > 1:
        collected = []
        for member in members:
            collected.extend(_collect_names(member))
        return collected
    return [text] if _IDENTIFIER_RE.fullmatch(text) or "." in text else []


def identifier_tokens(text: str) -> Set[str]:
    return set(_IDENTIFIER_RE.findall(text or ""))


def type_references(type_string: str, entity_name: str) -> bool:
    """True when ``entity_name`` appears as a whole word in ``type_string``."""
    if not type_string or not entity_name:
        return False
    if re.sub(r"\s", "", type_string) == entity_name:
        return True
    return entity_name in identifier_tokens(type_string)


def strip_type_arguments(name: str) -> str:
    """``Base<T>`` -> ``Base``; heritage names are matched without arguments."""
    index = name.find("<")
    return name[:index].strip() if index > 0 else name.strip()


__all__ = [
    "BUILT_IN_TYPES",
    "COLLECTION_WRAPPERS",
    "DART_BUILT_IN_TYPES",
    "DART_RULES",
    "TYPESCRIPT_RULES",
    "TypeRules",
    "identifier_tokens",
    "is_built_in",
    "parse_generic",
    "referenced_type_names",
    "rules_for",
    "split_top_level",
    "strip_nullish",
    "strip_type_arguments",
    "type_references",
    "unwrap_type",
]
