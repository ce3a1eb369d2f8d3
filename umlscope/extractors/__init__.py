"""Extractor plugin implementations, registry and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set

from .base import Extractor, file_extension
from .dart import DartExtractor
from .typescript import TsxExtractor, TypeScriptExtractor
from ..logging import get_logger
from ..models import ExtractionResult

_ENTRY_POINT_GROUP = "umlscope.extractors"

UNSUPPORTED = "unsupported"

_BUILTIN_FACTORIES: dict[str, Callable[[], Extractor]] = {
    "typescript": TypeScriptExtractor,
    "tsx": TsxExtractor,
    "dart": DartExtractor,
}

# Extension (lower-case, no dot) to the language family reported to editors.
_EXTENSION_LANGUAGES: dict[str, str] = {
    "ts": "typescript",
    "mts": "typescript",
    "cts": "typescript",
    "tsx": "typescript",
    "dart": "dart",
}

logger = get_logger("extractors")


class ExtractorRegistry:
    """Routes files to extractors by extension.

    Registries are owned by the caller and passed to the pipeline; there is no
    process-wide instance. Registering a second extractor for an extension
    replaces the first.
    """

    def __init__(self, extractors: Iterable[Extractor] = ()) -> None:
        self._by_language: Dict[str, Extractor] = {}
        self._by_extension: Dict[str, Extractor] = {}
        for extractor in extractors:
            self.register(extractor)

    def register(self, extractor: Extractor) -> None:
        if not isinstance(extractor, Extractor):
            raise TypeError(f"Expected an Extractor instance, got {type(extractor).__name__}")
        self._by_language[extractor.language] = extractor
        for ext in extractor.extensions:
            self._by_extension[ext.lower().lstrip(".")] = extractor

    def extractor_for(self, path: str) -> Optional[Extractor]:
        ext = file_extension(path)
        return self._by_extension.get(ext) if ext else None

    def can_extract(self, path: str) -> bool:
        return self.extractor_for(path) is not None

    def extract(self, source: str, path: str, file_id: str) -> Optional[ExtractionResult]:
        """Extract entities from ``source``; ``None`` when no extractor handles ``path``."""
        extractor = self.extractor_for(path)
        if extractor is None:
            logger.debug("No extractor registered for %s", path)
            return None
        return extractor.extract(source, file_id)

    def extensions(self) -> List[str]:
        return sorted(self._by_extension)

    def extractors(self) -> List[Extractor]:
        return list(self._by_language.values())


def default_registry(enabled: Sequence[str] | None = None) -> ExtractorRegistry:
    """Return a fresh registry holding built-in and entry-point extractors."""

    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}

    registry = ExtractorRegistry()
    seen: Set[str] = set()

    def _add(name: str, factory: Callable[[], Extractor]) -> None:
        key = name.lower()
        if enabled_set is not None and key not in enabled_set:
            return
        if key in seen:
            return
        instance = factory()
        if not isinstance(instance, Extractor):
            raise TypeError(f"Extractor factory for '{name}' did not return an Extractor instance")
        registry.register(instance)
        seen.add(key)

    for name, factory in _BUILTIN_FACTORIES.items():
        _add(name, factory)

    for entry in _iter_entry_points():
        name = entry.name
        try:
            loaded = entry.load()
        except Exception as exc:
            raise RuntimeError(f"Failed to load extractor entry point '{name}': {exc}") from exc

        def _factory(obj: object = loaded) -> Extractor:
            return _coerce_extractor(obj)

        _add(name, _factory)

    if enabled_set is not None:
        missing = enabled_set - seen
        if missing:
            raise ValueError(f"Unknown extractors requested: {', '.join(sorted(missing))}")

    return registry


def detect_language(path: str) -> str:
    """Language family for ``path``, or ``"unsupported"``."""
    return _EXTENSION_LANGUAGES.get(file_extension(path), UNSUPPORTED)


def is_supported_language(path: str) -> bool:
    return detect_language(path) != UNSUPPORTED


def _coerce_extractor(obj: object) -> Extractor:
    if isinstance(obj, Extractor):
        return obj
    if isinstance(obj, type) and issubclass(obj, Extractor):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Extractor):
            return instance
    raise TypeError("Extractor entry point must be an Extractor subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "DartExtractor",
    "Extractor",
    "ExtractorRegistry",
    "TsxExtractor",
    "TypeScriptExtractor",
    "UNSUPPORTED",
    "default_registry",
    "detect_language",
    "file_extension",
    "is_supported_language",
]
