"""Tree-sitter powered TypeScript entity extractor."""

from __future__ import annotations

from typing import List, Optional

import tree_sitter

from .base import Extractor
from .syntax import (
    TSX_LANGUAGE,
    TYPESCRIPT_LANGUAGE,
    collect_syntax_errors,
    has_token,
    iter_nodes,
    line_of,
    new_parser,
    node_text,
)
from ..logging import get_logger
from ..models import EntityKind, ExtractionResult, Method, Parameter, Property, TypeEntity
from ..type_strings import strip_type_arguments

logger = get_logger("extractors.typescript")

_CLASS_NODES = {"class_declaration", "abstract_class_declaration"}
_MEMBER_NAME_NODES = {"property_identifier", "private_property_identifier"}
_PARAMETER_NODES = {"required_parameter", "optional_parameter"}
_VISIBILITIES = {"public", "private", "protected"}


class TypeScriptExtractor(Extractor):
    """Extracts classes and interfaces from TypeScript sources."""

    language = "typescript"
    extensions = ("ts", "mts", "cts")
    display_name = "TypeScript"

    def __init__(self) -> None:
        self._parser: Optional[tree_sitter.Parser] = None

    def _language(self) -> tree_sitter.Language:
        return TYPESCRIPT_LANGUAGE

    def extract(self, source: str, file_id: str) -> ExtractionResult:
        result = ExtractionResult()
        if not source or not source.strip():
            return result

        if self._parser is None:
            self._parser = new_parser(self._language())
        source_bytes = source.encode("utf-8")
        tree = self._parser.parse(source_bytes)

        errors = collect_syntax_errors(tree.root_node, source_bytes)
        if errors:
            result.errors = errors
            return result

        for node in iter_nodes(tree.root_node):
            if not _is_declaration(node):
                continue
            try:
                entity = self._extract_declaration(node, source_bytes, file_id)
            except Exception as exc:
                logger.warning(
                    "Skipping %s at %s:%d: %s", node.type, file_id, line_of(node), exc
                )
                continue
            if entity is not None:
                result.entities.append(entity)
        return result

    def _extract_declaration(
        self, node: tree_sitter.Node, source_bytes: bytes, file_id: str
    ) -> Optional[TypeEntity]:
        if node.type == "interface_declaration":
            return _extract_interface(node, source_bytes, file_id)
        return _extract_class(node, source_bytes, file_id)


class TsxExtractor(TypeScriptExtractor):
    """TypeScript with JSX syntax."""

    language = "tsx"
    extensions = ("tsx",)
    display_name = "TypeScript (JSX)"

    def _language(self) -> tree_sitter.Language:
        return TSX_LANGUAGE


def _is_declaration(node: tree_sitter.Node) -> bool:
    if node.type in _CLASS_NODES or node.type == "interface_declaration":
        return True
    # `export default class {}` parses as a class expression.
    parent = node.parent
    return node.type == "class" and parent is not None and parent.type == "export_statement"


def _is_exported(node: tree_sitter.Node) -> bool:
    parent = node.parent
    return parent is not None and parent.type == "export_statement"


def _extract_class(node: tree_sitter.Node, source_bytes: bytes, file_id: str) -> TypeEntity:
    name = node_text(node.child_by_field_name("name"), source_bytes) or "AnonymousClass"

    parent_class_name: Optional[str] = None
    implemented: List[str] = []
    for heritage in node.children:
        if heritage.type != "class_heritage":
            continue
        for clause in heritage.named_children:
            if clause.type == "extends_clause" and parent_class_name is None:
                value = clause.child_by_field_name("value")
                if value is None and clause.named_children:
                    value = clause.named_children[0]
                if value is not None:
                    parent_class_name = strip_type_arguments(node_text(value, source_bytes))
            elif clause.type == "implements_clause":
                for type_node in clause.named_children:
                    implemented.append(strip_type_arguments(node_text(type_node, source_bytes)))

    properties: List[Property] = []
    methods: List[Method] = []
    body = node.child_by_field_name("body")
    if body is not None:
        for member in body.named_children:
            if member.type == "public_field_definition":
                prop = _extract_field(member, source_bytes)
                if prop is not None:
                    properties.append(prop)
            elif member.type in {"method_definition", "abstract_method_signature"}:
                method = _extract_method(member, source_bytes)
                if method is not None:
                    methods.append(method)

    return TypeEntity(
        name=name,
        file_id=file_id,
        kind=EntityKind.CLASS,
        properties=properties,
        methods=methods,
        type_parameters=_type_parameters(node, source_bytes),
        parent_class_name=parent_class_name,
        implemented_interface_names=implemented,
        is_abstract=node.type == "abstract_class_declaration",
        is_exported=_is_exported(node),
        line_number=line_of(node),
    )


def _extract_interface(
    node: tree_sitter.Node, source_bytes: bytes, file_id: str
) -> TypeEntity:
    name = node_text(node.child_by_field_name("name"), source_bytes)

    extended: List[str] = []
    for clause in node.named_children:
        if clause.type == "extends_type_clause":
            for type_node in clause.named_children:
                extended.append(strip_type_arguments(node_text(type_node, source_bytes)))

    properties: List[Property] = []
    methods: List[Method] = []
    body = node.child_by_field_name("body")
    if body is not None:
        for member in body.named_children:
            if member.type == "property_signature":
                prop = _extract_field(member, source_bytes)
                if prop is not None:
                    properties.append(prop)
            elif member.type == "method_signature":
                method = _extract_method(member, source_bytes)
                if method is not None:
                    methods.append(method)

    return TypeEntity(
        name=name,
        file_id=file_id,
        kind=EntityKind.INTERFACE,
        properties=properties,
        methods=methods,
        type_parameters=_type_parameters(node, source_bytes),
        extended_interface_names=extended,
        is_exported=_is_exported(node),
        line_number=line_of(node),
    )


def _extract_field(node: tree_sitter.Node, source_bytes: bytes) -> Optional[Property]:
    name_node = node.child_by_field_name("name")
    if name_node is None or name_node.type not in _MEMBER_NAME_NODES:
        return None
    visibility = _visibility(node, source_bytes)
    if name_node.type == "private_property_identifier":
        visibility = "private"
    value = node.child_by_field_name("value")
    return Property(
        name=node_text(name_node, source_bytes),
        type=_annotation(node.child_by_field_name("type"), source_bytes, "any"),
        visibility=visibility,
        is_static=has_token(node, "static"),
        is_readonly=has_token(node, "readonly"),
        is_optional=has_token(node, "?"),
        default_value=node_text(value, source_bytes) if value is not None else None,
    )


def _extract_method(node: tree_sitter.Node, source_bytes: bytes) -> Optional[Method]:
    name_node = node.child_by_field_name("name")
    if name_node is None or name_node.type not in _MEMBER_NAME_NODES:
        return None
    # Accessors are not methods in the diagram.
    if has_token(node, "get") or has_token(node, "set"):
        return None
    name = node_text(name_node, source_bytes)
    is_constructor = name == "constructor"
    return Method(
        name=name,
        return_type="void"
        if is_constructor
        else _annotation(node.child_by_field_name("return_type"), source_bytes, "void"),
        parameters=_parameters(node.child_by_field_name("parameters"), source_bytes),
        visibility=_visibility(node, source_bytes),
        is_static=has_token(node, "static"),
        is_abstract=not is_constructor
        and (node.type == "abstract_method_signature" or has_token(node, "abstract")),
        is_async=has_token(node, "async"),
    )


def _parameters(node: Optional[tree_sitter.Node], source_bytes: bytes) -> List[Parameter]:
    if node is None:
        return []
    parameters: List[Parameter] = []
    for param in node.named_children:
        if param.type not in _PARAMETER_NODES:
            continue
        pattern = param.child_by_field_name("pattern")
        if pattern is None or pattern.type != "identifier":
            continue
        value = param.child_by_field_name("value")
        parameters.append(
            Parameter(
                name=node_text(pattern, source_bytes),
                type=_annotation(param.child_by_field_name("type"), source_bytes, "any"),
                is_optional=param.type == "optional_parameter",
                default_value=node_text(value, source_bytes) if value is not None else None,
            )
        )
    return parameters


def _type_parameters(node: tree_sitter.Node, source_bytes: bytes) -> List[str]:
    params_node = node.child_by_field_name("type_parameters")
    if params_node is None:
        return []
    names: List[str] = []
    for param in params_node.named_children:
        if param.type != "type_parameter":
            continue
        name_node = param.child_by_field_name("name")
        if name_node is None and param.named_children:
            name_node = param.named_children[0]
        if name_node is not None:
            names.append(node_text(name_node, source_bytes))
    return names


def _annotation(node: Optional[tree_sitter.Node], source_bytes: bytes, default: str) -> str:
    if node is None:
        return default
    if node.named_children:
        return node_text(node.named_children[0], source_bytes).strip()
    return node_text(node, source_bytes).lstrip(":").strip() or default


def _visibility(node: tree_sitter.Node, source_bytes: bytes) -> str:
    for child in node.children:
        if child.type == "accessibility_modifier":
            text = node_text(child, source_bytes).strip()
            if text in _VISIBILITIES:
                return text
    return "public"


__all__ = ["TsxExtractor", "TypeScriptExtractor"]
