"""Tree-sitter powered Dart entity extractor.

Dart has no interface declaration; abstract (and ``interface``) classes are
what other classes implement, so they are reported as interfaces. ``with``
mixins are recorded next to implemented interfaces, and ``mixin``
declarations are reported as interfaces so those names resolve.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import tree_sitter

from .base import Extractor
from .syntax import (
    child_of_type,
    collect_syntax_errors,
    dart_language,
    iter_nodes,
    line_of,
    new_parser,
    node_text,
)
from ..logging import get_logger
from ..models import EntityKind, ExtractionResult, Method, Parameter, Property, TypeEntity

logger = get_logger("extractors.dart")

LANGUAGE = "dart"

_DECLARATION_NODES = {"class_definition", "mixin_declaration"}
_INTERFACE_MODIFIERS = ("abstract", "interface")
_TYPE_NODES = {
    "type_identifier",
    "type_arguments",
    "nullable_type",
    "void_type",
    "function_type",
    "record_type",
}
_READONLY_NODES = ("final_builtin", "final", "const_builtin", "const")
_DECLARATOR_LISTS = {
    "initialized_identifier_list",
    "static_final_declaration_list",
    "identifier_list",
}
_CONSTRUCTOR_NODES = ("constructor_signature", "constant_constructor_signature")
_FACTORY_NODES = ("factory_constructor_signature", "redirecting_factory_constructor_signature")


class DartExtractor(Extractor):
    """Extracts classes, abstract classes and mixins from Dart sources."""

    language = LANGUAGE
    extensions = ("dart",)
    display_name = "Dart"

    def __init__(self) -> None:
        self._parser: Optional[tree_sitter.Parser] = None

    def extract(self, source: str, file_id: str) -> ExtractionResult:
        result = ExtractionResult()
        if not source or not source.strip():
            return result

        if self._parser is None:
            self._parser = new_parser(dart_language())
        source_bytes = source.encode("utf-8")
        tree = self._parser.parse(source_bytes)

        errors = collect_syntax_errors(tree.root_node, source_bytes)
        if errors:
            result.errors = errors
            return result

        for node in iter_nodes(tree.root_node):
            if node.type not in _DECLARATION_NODES:
                continue
            try:
                if node.type == "mixin_declaration":
                    entity = _extract_mixin(node, source_bytes, file_id)
                else:
                    entity = _extract_class(node, source_bytes, file_id)
            except Exception as exc:
                logger.warning(
                    "Skipping %s at %s:%d: %s", node.type, file_id, line_of(node), exc
                )
                continue
            result.entities.append(entity)
        return result


def _extract_class(node: tree_sitter.Node, source_bytes: bytes, file_id: str) -> TypeEntity:
    name = _declared_name(node, source_bytes) or "UnnamedClass"
    parent, interfaces, mixins = _heritage(node, source_bytes)
    properties, methods = _members(_body(node), name, source_bytes)

    if child_of_type(node, *_INTERFACE_MODIFIERS) is not None:
        extended = ([parent] if parent else []) + interfaces
        return TypeEntity(
            name=name,
            file_id=file_id,
            kind=EntityKind.INTERFACE,
            properties=properties,
            methods=methods,
            type_parameters=_type_parameters(node, source_bytes),
            extended_interface_names=extended,
            is_exported=_is_public(name),
            line_number=line_of(node),
            language=LANGUAGE,
        )

    return TypeEntity(
        name=name,
        file_id=file_id,
        kind=EntityKind.CLASS,
        properties=properties,
        methods=methods,
        type_parameters=_type_parameters(node, source_bytes),
        parent_class_name=parent,
        implemented_interface_names=interfaces + mixins,
        is_exported=_is_public(name),
        line_number=line_of(node),
        language=LANGUAGE,
    )


def _extract_mixin(node: tree_sitter.Node, source_bytes: bytes, file_id: str) -> TypeEntity:
    name = _declared_name(node, source_bytes) or "UnnamedMixin"
    # `mixin M on A, B implements C`: both lists constrain what M can be applied to.
    extended = _type_names(node, source_bytes)
    interfaces = child_of_type(node, "interfaces")
    if interfaces is not None:
        extended.extend(_type_names(interfaces, source_bytes))
    properties, methods = _members(_body(node), name, source_bytes)
    return TypeEntity(
        name=name,
        file_id=file_id,
        kind=EntityKind.INTERFACE,
        properties=properties,
        methods=methods,
        type_parameters=_type_parameters(node, source_bytes),
        extended_interface_names=extended,
        is_exported=_is_public(name),
        line_number=line_of(node),
        language=LANGUAGE,
    )


def _declared_name(node: tree_sitter.Node, source_bytes: bytes) -> str:
    name_node = node.child_by_field_name("name") or child_of_type(node, "identifier")
    return node_text(name_node, source_bytes)


def _body(node: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    return node.child_by_field_name("body") or child_of_type(node, "class_body")


def _heritage(
    node: tree_sitter.Node, source_bytes: bytes
) -> Tuple[Optional[str], List[str], List[str]]:
    parent: Optional[str] = None
    interfaces: List[str] = []
    mixins: List[str] = []
    for child in node.children:
        if child.type == "superclass":
            names = _type_names(child, source_bytes)
            if names:
                parent = names[0]
            nested = child_of_type(child, "mixins")
            if nested is not None:
                mixins.extend(_type_names(nested, source_bytes))
        elif child.type == "mixins":
            mixins.extend(_type_names(child, source_bytes))
        elif child.type == "interfaces":
            interfaces.extend(_type_names(child, source_bytes))
    return parent, interfaces, mixins


def _type_names(clause: tree_sitter.Node, source_bytes: bytes) -> List[str]:
    """Bare type names listed directly in a heritage clause, without type arguments."""
    return [
        node_text(child, source_bytes)
        for child in clause.named_children
        if child.type == "type_identifier"
    ]


def _members(
    body: Optional[tree_sitter.Node], class_name: str, source_bytes: bytes
) -> Tuple[List[Property], List[Method]]:
    properties: List[Property] = []
    methods: List[Method] = []
    if body is None:
        return properties, methods
    for member in body.named_children:
        if member.type == "declaration":
            method = _declared_method(member, class_name, source_bytes)
            if method is not None:
                methods.append(method)
            elif not _is_accessor_or_operator(member):
                properties.extend(_fields(member, source_bytes))
        elif member.type == "method_signature":
            method = _signature_method(member, class_name, source_bytes)
            if method is not None:
                methods.append(method)
    return properties, methods


def _is_accessor_or_operator(node: tree_sitter.Node) -> bool:
    return (
        child_of_type(node, "getter_signature", "setter_signature", "operator_signature")
        is not None
    )


def _declared_method(
    node: tree_sitter.Node, class_name: str, source_bytes: bytes
) -> Optional[Method]:
    """Bodiless members: abstract or external methods and constructor declarations."""
    signature = child_of_type(node, "function_signature")
    if signature is not None:
        return _function_method(
            signature,
            source_bytes,
            is_static=child_of_type(node, "static") is not None,
            is_abstract=child_of_type(node, "external") is None,
            is_async=False,
        )
    constructor = child_of_type(node, *_CONSTRUCTOR_NODES)
    if constructor is not None:
        return _constructor(constructor, class_name, source_bytes)
    factory = child_of_type(node, *_FACTORY_NODES)
    if factory is not None:
        return _constructor(factory, class_name, source_bytes, factory=True)
    return None


def _signature_method(
    node: tree_sitter.Node, class_name: str, source_bytes: bytes
) -> Optional[Method]:
    """Members with a body; getters, setters and operators are skipped."""
    body = node.next_named_sibling
    is_async = (
        body is not None
        and body.type == "function_body"
        and child_of_type(body, "async", "async*") is not None
    )
    for child in node.children:
        if child.type == "function_signature":
            return _function_method(
                child,
                source_bytes,
                is_static=child_of_type(node, "static") is not None,
                is_abstract=False,
                is_async=is_async,
            )
        if child.type in _CONSTRUCTOR_NODES:
            return _constructor(child, class_name, source_bytes)
        if child.type in _FACTORY_NODES:
            return _constructor(child, class_name, source_bytes, factory=True)
    return None


def _function_method(
    node: tree_sitter.Node,
    source_bytes: bytes,
    *,
    is_static: bool,
    is_abstract: bool,
    is_async: bool,
) -> Optional[Method]:
    name_node = node.child_by_field_name("name") or child_of_type(node, "identifier")
    if name_node is None:
        return None
    name = node_text(name_node, source_bytes)
    return Method(
        name=name,
        return_type=_type_text(node, source_bytes, name_node) or "void",
        parameters=_parameters(child_of_type(node, "formal_parameter_list"), source_bytes),
        visibility=_visibility(name),
        is_static=is_static,
        is_abstract=is_abstract,
        is_async=is_async,
    )


def _constructor(
    node: tree_sitter.Node, class_name: str, source_bytes: bytes, *, factory: bool = False
) -> Method:
    identifiers = [
        node_text(child, source_bytes) for child in node.children if child.type == "identifier"
    ]
    # `Person.guest(...)` names the constructor `guest`; `Person(...)` is unnamed.
    name = f"{class_name}.{identifiers[-1]}" if len(identifiers) > 1 else class_name
    return Method(
        name=name,
        return_type=class_name if factory else "void",
        parameters=_parameters(child_of_type(node, "formal_parameter_list"), source_bytes),
        visibility=_visibility(identifiers[-1] if len(identifiers) > 1 else class_name),
        is_static=factory,
    )


def _fields(node: tree_sitter.Node, source_bytes: bytes) -> List[Property]:
    declarators: List[tree_sitter.Node] = []
    first: Optional[tree_sitter.Node] = None
    for child in node.children:
        if child.type in _DECLARATOR_LISTS:
            first = first or child
            declarators.extend(child.named_children)
        elif child.type == "identifier" and first is None:
            first = child
            declarators.append(child)

    type_text = _type_text(node, source_bytes, first) or "dynamic"
    is_static = child_of_type(node, "static") is not None
    is_readonly = child_of_type(node, *_READONLY_NODES) is not None

    properties: List[Property] = []
    for declarator in declarators:
        if declarator.type == "identifier":
            name_node, value = declarator, None
        else:
            name_node = child_of_type(declarator, "identifier")
            value = _after_token(declarator, "=")
        if name_node is None:
            continue
        name = node_text(name_node, source_bytes)
        properties.append(
            Property(
                name=name,
                type=type_text,
                visibility=_visibility(name),
                is_static=is_static,
                is_readonly=is_readonly,
                is_optional=type_text.endswith("?"),
                default_value=node_text(value, source_bytes) if value is not None else None,
            )
        )
    return properties


def _parameters(node: Optional[tree_sitter.Node], source_bytes: bytes) -> List[Parameter]:
    if node is None:
        return []
    parameters: List[Parameter] = []
    for child in node.named_children:
        if child.type == "formal_parameter":
            parameter = _parameter(child, child, source_bytes, optional=False)
            if parameter is not None:
                parameters.append(parameter)
        elif child.type == "optional_formal_parameters":
            # `[int count = 0]` and `{String? name, required int age}`.
            for wrapper in child.named_children:
                formal = (
                    wrapper
                    if wrapper.type == "formal_parameter"
                    else child_of_type(wrapper, "formal_parameter")
                )
                if formal is None:
                    continue
                required = (
                    child_of_type(wrapper, "required") is not None
                    or child_of_type(formal, "required") is not None
                )
                parameter = _parameter(wrapper, formal, source_bytes, optional=not required)
                if parameter is not None:
                    parameters.append(parameter)
    return parameters


def _parameter(
    wrapper: tree_sitter.Node,
    formal: tree_sitter.Node,
    source_bytes: bytes,
    *,
    optional: bool,
) -> Optional[Parameter]:
    # `this.name` and `super.name` forward to a field of the same name.
    target = child_of_type(formal, "constructor_param", "super_formal_parameter") or formal
    identifiers = [child for child in target.children if child.type == "identifier"]
    if not identifiers:
        return None
    name_node = identifiers[-1]
    type_text = _type_text(target, source_bytes, name_node)
    if type_text is None and target is not formal:
        type_text = _type_text(formal, source_bytes, target)
    type_text = type_text or "dynamic"
    value = _after_token(wrapper, "=", ":") if wrapper is not formal else None
    return Parameter(
        name=node_text(name_node, source_bytes),
        type=type_text,
        is_optional=optional or type_text.endswith("?"),
        default_value=node_text(value, source_bytes) if value is not None else None,
    )


def _type_parameters(node: tree_sitter.Node, source_bytes: bytes) -> List[str]:
    params_node = child_of_type(node, "type_parameters")
    if params_node is None:
        return []
    names: List[str] = []
    for param in params_node.named_children:
        if param.type != "type_parameter":
            continue
        name_node = child_of_type(param, "type_identifier", "identifier")
        if name_node is not None:
            names.append(node_text(name_node, source_bytes))
    return names


def _type_text(
    node: tree_sitter.Node, source_bytes: bytes, stop: Optional[tree_sitter.Node]
) -> Optional[str]:
    """Source text of the type written before ``stop``, or ``None`` when there is none."""
    parts: List[tree_sitter.Node] = []
    for child in node.children:
        if stop is not None and child.start_byte >= stop.start_byte:
            break
        if child.type in _TYPE_NODES or (parts and child.type == "?"):
            parts.append(child)
    if not parts:
        return None
    text = source_bytes[parts[0].start_byte : parts[-1].end_byte]
    return text.decode("utf-8", errors="replace").strip() or None


def _after_token(node: tree_sitter.Node, *tokens: str) -> Optional[tree_sitter.Node]:
    found = False
    for child in node.children:
        if child.type in tokens:
            found = True
            continue
        if found and child.type != "comment":
            return child
    return None


def _visibility(name: str) -> str:
    return "private" if name.startswith("_") else "public"


def _is_public(name: str) -> bool:
    return not name.startswith("_")


__all__ = ["DartExtractor"]
