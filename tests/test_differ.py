"""Tests for umlscope.differ."""

from __future__ import annotations

import dataclasses

from umlscope.differ import (
    compute_diagram_diff,
    has_significant_changes,
    merge_nodes_preserving_positions,
)
from umlscope.models import DiagramEdge, DiagramNode, EntityKind, NodeData, Position


def _node(node_id: str, x: float = 0.0, props=()) -> DiagramNode:
    return DiagramNode(
        id=node_id,
        kind=EntityKind.CLASS,
        data=NodeData(name=node_id, properties=list(props)),
        position=Position(x=x, y=0.0),
        width=180.0,
        height=80.0,
    )


def _edge(edge_id: str, source: str, target: str, type_: str = "association") -> DiagramEdge:
    return DiagramEdge(id=edge_id, source=source, target=target, type=type_)


def test_diff_of_identical_snapshots_is_empty() -> None:
    nodes = [_node("A"), _node("B", x=200)]
    edges = [_edge("e1", "A", "B")]

    diff = compute_diagram_diff(nodes, nodes, edges, edges)

    assert diff.nodes_added == diff.nodes_removed == diff.nodes_modified == []
    assert diff.edges_added == diff.edges_removed == diff.edges_modified == []
    assert diff.nodes_unchanged == nodes
    assert diff.edges_unchanged == edges
    assert not has_significant_changes(diff)


def test_diff_classifies_each_bucket() -> None:
    old_nodes = [_node("A"), _node("B"), _node("C")]
    new_nodes = [_node("A"), _node("B", props=["+ x: number"]), _node("D")]
    old_edges = [_edge("e1", "A", "B"), _edge("e2", "B", "C"), _edge("e3", "A", "C")]
    new_edges = [_edge("e1", "A", "B"), _edge("e2", "B", "D"), _edge("e4", "A", "D")]

    diff = compute_diagram_diff(old_nodes, new_nodes, old_edges, new_edges)

    assert [n.id for n in diff.nodes_unchanged] == ["A"]
    assert [n.id for n in diff.nodes_modified] == ["B"]
    assert [n.id for n in diff.nodes_added] == ["D"]
    assert [n.id for n in diff.nodes_removed] == ["C"]
    assert [e.id for e in diff.edges_unchanged] == ["e1"]
    assert [e.id for e in diff.edges_modified] == ["e2"]
    assert [e.id for e in diff.edges_added] == ["e4"]
    assert [e.id for e in diff.edges_removed] == ["e3"]
    assert has_significant_changes(diff)


def test_moved_node_and_relabelled_edge_count_as_modified() -> None:
    old_edge = _edge("e1", "A", "B")
    diff = compute_diagram_diff(
        [_node("A")],
        [_node("A", x=50)],
        [old_edge],
        [dataclasses.replace(old_edge, label="owns")],
    )

    assert [n.id for n in diff.nodes_modified] == ["A"]
    assert [e.id for e in diff.edges_modified] == ["e1"]


def test_merge_keeps_old_position_object_for_unchanged_nodes() -> None:
    old_a = _node("A", x=10)
    old_b = _node("B", x=20)
    new_a = _node("A", x=10)
    new_b = _node("B", x=99, props=["+ y: string"])
    new_c = _node("C", x=5)

    merged = merge_nodes_preserving_positions([old_a, old_b], [new_a, new_b, new_c])

    assert [node.id for node in merged] == ["A", "B", "C"]
    assert merged[0].position is old_a.position
    assert merged[1].position is new_b.position
    assert merged[2] is new_c


def test_empty_snapshots() -> None:
    diff = compute_diagram_diff([], [], [], [])

    assert not has_significant_changes(diff)
    assert merge_nodes_preserving_positions([], []) == []
