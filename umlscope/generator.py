"""Turns entities and relationships into positioned diagram nodes and edges."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Union

from .config import LayoutConfig
from .formatting import format_method, format_property
from .layout import LayoutEngine, get_layout_config
from .logging import get_logger
from .models import (
    DiagramEdge,
    DiagramNode,
    NodeData,
    Relationship,
    ScopeMode,
    TypeEntity,
)

logger = get_logger("generator")

INTERFACE_STEREOTYPE = "<<interface>>"
ABSTRACT_STEREOTYPE = "<<abstract>>"


@dataclass
class DiagramData:
    nodes: List[DiagramNode] = field(default_factory=list)
    edges: List[DiagramEdge] = field(default_factory=list)
    layout_direction: str = "TB"


def generate_diagram(
    entities: Sequence[TypeEntity],
    relationships: Iterable[Relationship],
    mode: Union[ScopeMode, str] = ScopeMode.FILE,
    layout_config: Optional[LayoutConfig] = None,
) -> DiagramData:
    """Build one node per entity and one edge per relationship, then lay them out.

    Relationships whose source or target is not among ``entities`` are skipped.
    """
    nodes = [create_node(entity) for entity in entities]
    node_ids = {node.id for node in nodes}

    edges: List[DiagramEdge] = []
    for relationship in relationships:
        if relationship.source_id not in node_ids or relationship.target_id not in node_ids:
            logger.warning(
                "Skipping relationship %s: missing source or target node", relationship.id
            )
            continue
        edges.append(create_edge(relationship))

    options = get_layout_config(mode, layout_config)
    positioned = LayoutEngine(options).apply_layout(nodes, edges)
    return DiagramData(nodes=positioned, edges=edges, layout_direction=options.direction)


def create_node(entity: TypeEntity) -> DiagramNode:
    is_interface = entity.is_interface
    if is_interface:
        stereotype: Optional[str] = INTERFACE_STEREOTYPE
    else:
        stereotype = ABSTRACT_STEREOTYPE if entity.is_abstract else None
    return DiagramNode(
        id=entity.id,
        kind=entity.kind,
        data=NodeData(
            name=entity.name,
            properties=[format_property(prop, is_interface) for prop in entity.properties],
            methods=[format_method(method, is_interface) for method in entity.methods],
            stereotype=stereotype,
            file_id=entity.file_id,
        ),
    )


def create_edge(relationship: Relationship) -> DiagramEdge:
    return DiagramEdge(
        id=relationship.id,
        source=relationship.source_id,
        target=relationship.target_id,
        type=relationship.type.value,
        label=relationship.label,
    )


__all__ = [
    "ABSTRACT_STEREOTYPE",
    "DiagramData",
    "INTERFACE_STEREOTYPE",
    "create_edge",
    "create_node",
    "generate_diagram",
]
