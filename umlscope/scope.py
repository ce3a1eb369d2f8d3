"""Scope filtering: which entities a diagram shows for a project or file view."""

from __future__ import annotations

import time
from typing import Dict, List, Mapping, Optional, Set

from .imports import DEFAULT_MAX_DEPTH, iter_reachable_files
from .logging import get_logger
from .models import (
    DependencyGraph,
    FilteredEntitySet,
    InclusionReason,
    InclusionType,
    Scope,
    ScopeMode,
    TypeEntity,
)
from .type_strings import identifier_tokens

logger = get_logger("scope")


def filter_by_scope(
    all_entities_by_file: Mapping[str, List[TypeEntity]],
    scope: Scope,
    dependency_graph: Optional[DependencyGraph] = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> FilteredEntitySet:
    """Filter ``all_entities_by_file`` down to what ``scope`` asks for.

    Project mode keeps everything. File mode keeps the active file's entities
    plus imported entities that are structurally related to what is already
    included, walking imports breadth first up to ``max_depth`` levels.
    ``dependency_graph`` falls back to ``scope.import_graph``.
    """
    start = time.perf_counter()
    total = sum(len(entities) for entities in all_entities_by_file.values())
    reasons: Dict[str, InclusionReason] = {}

    if scope.mode is ScopeMode.PROJECT:
        entities = _project_view(all_entities_by_file, reasons)
    elif scope.mode is ScopeMode.FILE:
        graph = dependency_graph if dependency_graph is not None else scope.import_graph
        entities = _file_view(all_entities_by_file, scope.active_file_id, graph, max_depth, reasons)
    else:
        raise ValueError(f"Unknown scope mode: {scope.mode!r}")

    elapsed_ms = (time.perf_counter() - start) * 1000.0
    logger.debug(
        "Scope %s kept %d of %d entities in %.2fms",
        scope.mode.value,
        len(entities),
        total,
        elapsed_ms,
    )
    return FilteredEntitySet(
        entities=entities,
        inclusion_reasons=reasons,
        total_before_filter=total,
        filter_time_ms=elapsed_ms,
    )


def _project_view(
    all_entities_by_file: Mapping[str, List[TypeEntity]],
    reasons: Dict[str, InclusionReason],
) -> List[TypeEntity]:
    entities: List[TypeEntity] = []
    for file_id, file_entities in all_entities_by_file.items():
        for entity in file_entities:
            entities.append(entity)
            reasons[entity.name] = InclusionReason(type=InclusionType.PROJECT_VIEW, file_id=file_id)
    return entities


def _file_view(
    all_entities_by_file: Mapping[str, List[TypeEntity]],
    active_file_id: Optional[str],
    graph: Optional[DependencyGraph],
    max_depth: int,
    reasons: Dict[str, InclusionReason],
) -> List[TypeEntity]:
    if not active_file_id:
        return []

    included = _IncludedSet()
    for entity in all_entities_by_file.get(active_file_id, []):
        included.add(entity)
        reasons[entity.name] = InclusionReason(type=InclusionType.LOCAL, file_id=active_file_id)

    if graph is None or active_file_id not in graph:
        return included.entities

    for node, depth in iter_reachable_files(active_file_id, graph, max_depth):
        if depth == 0:
            continue
        for entity in all_entities_by_file.get(node.file_id, []):
            if entity.name in included.names:
                continue
            if not included.is_related(entity):
                continue
            included.add(entity)
            reasons[entity.name] = InclusionReason(
                type=InclusionType.IMPORTED,
                file_id=node.file_id,
                imported_by=active_file_id,
                has_relationship=True,
            )
    return included.entities


def structural_references(entity: TypeEntity) -> Set[str]:
    """Identifier tokens of every type an entity extends, holds or mentions in a signature."""
    tokens: Set[str] = set()
    for name in entity.heritage_names():
        tokens |= identifier_tokens(name)
    for prop in entity.properties:
        tokens |= identifier_tokens(prop.type)
    for method in entity.methods:
        tokens |= identifier_tokens(method.return_type)
        for param in method.parameters:
            tokens |= identifier_tokens(param.type)
    return tokens


class _IncludedSet:
    """Entities included so far, with the name and reference indexes used for lookups."""

    def __init__(self) -> None:
        self.entities: List[TypeEntity] = []
        self.names: Set[str] = set()
        self.referenced: Set[str] = set()

    def add(self, entity: TypeEntity) -> None:
        self.entities.append(entity)
        self.names.add(entity.name)
        self.referenced |= structural_references(entity)

    def is_related(self, entity: TypeEntity) -> bool:
        if entity.name in self.referenced:
            return True
        return not self.names.isdisjoint(structural_references(entity))


__all__ = ["filter_by_scope", "structural_references"]
