"""UML member notation for diagram node text."""

from __future__ import annotations

from typing import List

from .models import Method, Parameter, Property

_VISIBILITY_SYMBOLS = {"public": "+", "private": "-", "protected": "#"}


def visibility_symbol(visibility: str) -> str:
    """``+`` public, ``-`` private, ``#`` protected; unknown values read as public."""
    return _VISIBILITY_SYMBOLS.get(visibility, "+")


def format_property(prop: Property, is_interface: bool = False) -> str:
    """``+ name: Type {readOnly, static}``; interfaces carry no visibility or static."""
    text = f"{prop.name}: {prop.type}"
    if not is_interface:
        text = f"{visibility_symbol(prop.visibility)} {text}"

    modifiers: List[str] = []
    if prop.is_readonly:
        modifiers.append("readOnly")
    if not is_interface and prop.is_static:
        modifiers.append("static")
    return _with_modifiers(text, modifiers)


def format_method(method: Method, is_interface: bool = False) -> str:
    params = ", ".join(format_parameter(param) for param in method.parameters)
    text = f"{method.name}({params}): {method.return_type}"
    if not is_interface:
        text = f"{visibility_symbol(method.visibility)} {text}"

    modifiers: List[str] = []
    if not is_interface:
        if method.is_static:
            modifiers.append("static")
        if method.is_abstract:
            modifiers.append("abstract")
    return _with_modifiers(text, modifiers)


def format_parameter(param: Parameter) -> str:
    marker = "?" if param.is_optional else ""
    return f"{param.name}{marker}: {param.type}"


def _with_modifiers(text: str, modifiers: List[str]) -> str:
    if not modifiers:
        return text
    return f"{text} {{{', '.join(modifiers)}}}"


__all__ = ["format_method", "format_parameter", "format_property", "visibility_symbol"]
