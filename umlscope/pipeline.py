"""End-to-end diagram pipeline: extract, graph, filter, relate, lay out, diff."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

from .config import UmlScopeConfig
from .differ import compute_diagram_diff, merge_nodes_preserving_positions
from .extractors import ExtractorRegistry, default_registry
from .generator import generate_diagram
from .imports import build_dependency_graph
from .logging import get_logger, log_duration
from .models import (
    DiagramDiff,
    DiagramEdge,
    DiagramNode,
    FilteredEntitySet,
    ParseError,
    Relationship,
    Scope,
    ScopeMode,
    SourceFile,
    TypeEntity,
)
from .relationships import analyze_entities
from .scope import filter_by_scope


@dataclass
class DiagramSnapshot:
    """Nodes and edges a renderer is currently showing."""

    nodes: List[DiagramNode] = field(default_factory=list)
    edges: List[DiagramEdge] = field(default_factory=list)


@dataclass
class PipelineResult:
    nodes: List[DiagramNode]
    edges: List[DiagramEdge]
    errors: Dict[str, List[ParseError]]
    filtered: FilteredEntitySet
    relationships: List[Relationship]
    layout_direction: str = "TB"
    diff: Optional[DiagramDiff] = None

    @property
    def success(self) -> bool:
        return not self.errors

    def snapshot(self) -> DiagramSnapshot:
        return DiagramSnapshot(nodes=list(self.nodes), edges=list(self.edges))


class DiagramPipeline:
    """Runs every stage for one update request.

    The pipeline keeps only its registry and configuration; each ``run`` takes
    all project files as input and returns fresh output.
    """

    def __init__(
        self,
        registry: ExtractorRegistry | None = None,
        config: UmlScopeConfig | None = None,
    ) -> None:
        self.config = config or UmlScopeConfig()
        self.registry = registry or default_registry(self.config.extractors.enabled)
        self.logger = get_logger("pipeline")

    def run(
        self,
        files: Iterable[SourceFile],
        mode: Union[ScopeMode, str],
        active_file_id: Optional[str] = None,
        previous: Optional[DiagramSnapshot] = None,
    ) -> PipelineResult:
        scope_mode = ScopeMode(mode)
        supported = [source_file for source_file in files if self.registry.can_extract(source_file.path)]

        with log_duration(self.logger, "extraction", files=len(supported)):
            entities_by_file, errors = self._extract(supported)

        with log_duration(self.logger, "dependency graph", files=len(supported)):
            graph = build_dependency_graph(
                supported, entities_by_file, self.config.imports.extensions
            )

        scope = Scope(mode=scope_mode, active_file_id=active_file_id, import_graph=graph)
        with log_duration(self.logger, "scope filter", mode=scope_mode.value):
            filtered = filter_by_scope(
                entities_by_file, scope, max_depth=self.config.scope.max_depth
            )

        with log_duration(self.logger, "relationships", entities=len(filtered.entities)):
            relationships = analyze_entities(filtered.entities)

        with log_duration(self.logger, "layout", entities=len(filtered.entities)):
            diagram = generate_diagram(
                filtered.entities, relationships, scope_mode, self.config.layout
            )

        nodes = diagram.nodes
        diff: Optional[DiagramDiff] = None
        if previous is not None:
            diff = compute_diagram_diff(previous.nodes, nodes, previous.edges, diagram.edges)
            nodes = merge_nodes_preserving_positions(previous.nodes, nodes)

        return PipelineResult(
            nodes=nodes,
            edges=diagram.edges,
            errors=errors,
            filtered=filtered,
            relationships=relationships,
            layout_direction=diagram.layout_direction,
            diff=diff,
        )

    def _extract(
        self, files: List[SourceFile]
    ) -> tuple[Dict[str, List[TypeEntity]], Dict[str, List[ParseError]]]:
        entities_by_file: Dict[str, List[TypeEntity]] = {}
        errors: Dict[str, List[ParseError]] = {}
        for source_file in files:
            result = self.registry.extract(source_file.content, source_file.path, source_file.id)
            if result is None:
                continue
            entities_by_file[source_file.id] = list(result.entities)
            if result.errors:
                errors[source_file.id] = list(result.errors)
                self.logger.debug(
                    "%s: %d syntax errors", source_file.path, len(result.errors)
                )
        return entities_by_file, errors


__all__ = ["DiagramPipeline", "DiagramSnapshot", "PipelineResult"]
