"""Incremental comparison of two diagram snapshots."""

from __future__ import annotations

import dataclasses
from typing import Dict, List, Sequence

from .models import DiagramDiff, DiagramEdge, DiagramNode


def compute_diagram_diff(
    old_nodes: Sequence[DiagramNode],
    new_nodes: Sequence[DiagramNode],
    old_edges: Sequence[DiagramEdge],
    new_edges: Sequence[DiagramEdge],
) -> DiagramDiff:
    """Classify every node and edge as added, removed, modified or unchanged by id."""
    diff = DiagramDiff()

    old_node_map: Dict[str, DiagramNode] = {node.id: node for node in old_nodes}
    new_node_ids = {node.id for node in new_nodes}
    for node in new_nodes:
        previous = old_node_map.get(node.id)
        if previous is None:
            diff.nodes_added.append(node)
        elif is_node_modified(previous, node):
            diff.nodes_modified.append(node)
        else:
            diff.nodes_unchanged.append(node)
    diff.nodes_removed.extend(node for node in old_nodes if node.id not in new_node_ids)

    old_edge_map: Dict[str, DiagramEdge] = {edge.id: edge for edge in old_edges}
    new_edge_ids = {edge.id for edge in new_edges}
    for edge in new_edges:
        previous_edge = old_edge_map.get(edge.id)
        if previous_edge is None:
            diff.edges_added.append(edge)
        elif is_edge_modified(previous_edge, edge):
            diff.edges_modified.append(edge)
        else:
            diff.edges_unchanged.append(edge)
    diff.edges_removed.extend(edge for edge in old_edges if edge.id not in new_edge_ids)

    return diff


def is_node_modified(old: DiagramNode, new: DiagramNode) -> bool:
    return old.data != new.data or old.kind != new.kind or old.position != new.position


def is_edge_modified(old: DiagramEdge, new: DiagramEdge) -> bool:
    return (
        old.source != new.source
        or old.target != new.target
        or old.type != new.type
        or old.label != new.label
    )


def has_significant_changes(diff: DiagramDiff) -> bool:
    return bool(
        diff.nodes_added
        or diff.nodes_removed
        or diff.nodes_modified
        or diff.edges_added
        or diff.edges_removed
        or diff.edges_modified
    )


def merge_nodes_preserving_positions(
    old_nodes: Sequence[DiagramNode], new_nodes: Sequence[DiagramNode]
) -> List[DiagramNode]:
    """New nodes, except unchanged ones keep the old ``Position`` object."""
    old_node_map = {node.id: node for node in old_nodes}
    merged: List[DiagramNode] = []
    for node in new_nodes:
        previous = old_node_map.get(node.id)
        if previous is None or is_node_modified(previous, node):
            merged.append(node)
        else:
            merged.append(dataclasses.replace(node, position=previous.position))
    return merged


__all__ = [
    "compute_diagram_diff",
    "has_significant_changes",
    "is_edge_modified",
    "is_node_modified",
    "merge_nodes_preserving_positions",
]
