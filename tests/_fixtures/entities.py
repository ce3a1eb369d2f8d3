"""Shorthand constructors for hand-built entities."""

from __future__ import annotations

from typing import Iterable, Optional

from umlscope.models import EntityKind, Method, Parameter, Property, TypeEntity


def make_class(
    name: str,
    file_id: str = "main.ts",
    *,
    parent: Optional[str] = None,
    implements: Iterable[str] = (),
    properties: Iterable[Property] = (),
    methods: Iterable[Method] = (),
    is_abstract: bool = False,
    language: str = "typescript",
) -> TypeEntity:
    return TypeEntity(
        name=name,
        file_id=file_id,
        kind=EntityKind.CLASS,
        properties=list(properties),
        methods=list(methods),
        parent_class_name=parent,
        implemented_interface_names=list(implements),
        is_abstract=is_abstract,
        language=language,
    )


def make_interface(
    name: str,
    file_id: str = "main.ts",
    *,
    extends: Iterable[str] = (),
    properties: Iterable[Property] = (),
    methods: Iterable[Method] = (),
    language: str = "typescript",
) -> TypeEntity:
    return TypeEntity(
        name=name,
        file_id=file_id,
        kind=EntityKind.INTERFACE,
        properties=list(properties),
        methods=list(methods),
        extended_interface_names=list(extends),
        language=language,
    )


def prop(name: str, type_: str = "any", **kwargs) -> Property:
    return Property(name=name, type=type_, **kwargs)


def method(name: str, return_type: str = "void", *params: Parameter, **kwargs) -> Method:
    return Method(name=name, return_type=return_type, parameters=list(params), **kwargs)


def param(name: str, type_: str = "any", **kwargs) -> Parameter:
    return Parameter(name=name, type=type_, **kwargs)


__all__ = ["make_class", "make_interface", "method", "param", "prop"]
