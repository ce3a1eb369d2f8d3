"""Layered (Sugiyama style) layout for class diagrams.

The pass runs in five steps: break cycles, rank by longest path, split long
edges with dummy vertices, order each rank by barycenters, then assign
coordinates. Every step iterates in input order, so the same nodes and edges
always produce the same positions.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .config import LayoutConfig
from .logging import get_logger
from .models import DiagramEdge, DiagramNode, Position, ScopeMode

logger = get_logger("layout")

DIRECTIONS = ("TB", "BT", "LR", "RL")

MIN_WIDTH = 180
MIN_HEIGHT = 80
PADDING = 20
CHAR_WIDTH = 7
HEADER_CHAR_WIDTH = 9
HEADER_HEIGHT = 35
LINE_HEIGHT = 20
SECTION_SPACING = 10

MAX_SWEEPS = 12


@dataclass(frozen=True)
class LayoutOptions:
    """Direction plus spacing, in pixels, between nodes and between ranks."""

    direction: str = "TB"
    node_separation: float = 50.0
    rank_separation: float = 100.0

    def __post_init__(self) -> None:
        if self.direction not in DIRECTIONS:
            raise ValueError(f"Unknown layout direction: {self.direction!r}")


@dataclass(frozen=True)
class NodeDimensions:
    width: float
    height: float


FILE_LAYOUT = LayoutOptions(direction="TB", node_separation=50.0, rank_separation=100.0)
PROJECT_LAYOUT = LayoutOptions(direction="TB", node_separation=80.0, rank_separation=150.0)


def get_layout_config(
    mode: Union[ScopeMode, str], config: Optional[LayoutConfig] = None
) -> LayoutOptions:
    """Spacing preset for a scope mode: denser for one file, looser for the project."""
    scope_mode = ScopeMode(mode)
    if config is None:
        return PROJECT_LAYOUT if scope_mode is ScopeMode.PROJECT else FILE_LAYOUT
    spacing = config.project if scope_mode is ScopeMode.PROJECT else config.file
    return LayoutOptions(
        direction=config.direction,
        node_separation=spacing.node_separation,
        rank_separation=spacing.rank_separation,
    )


def calculate_node_dimensions(node: DiagramNode) -> NodeDimensions:
    """Content-driven box size for ``node``; grows with text length and member count."""
    max_line_width = len(node.data.name) * HEADER_CHAR_WIDTH
    for line in node.data.properties:
        max_line_width = max(max_line_width, len(line) * CHAR_WIDTH)
    for line in node.data.methods:
        max_line_width = max(max_line_width, len(line) * CHAR_WIDTH)
    width = max(MIN_WIDTH, max_line_width + PADDING * 2)

    height = HEADER_HEIGHT
    if node.data.properties:
        height += SECTION_SPACING + len(node.data.properties) * LINE_HEIGHT
    if node.data.methods:
        height += SECTION_SPACING + len(node.data.methods) * LINE_HEIGHT
    height += PADDING
    height = max(MIN_HEIGHT, height)

    return NodeDimensions(width=float(width), height=float(height))


class LayoutEngine:
    """Positions diagram nodes; edges only influence ranks and ordering."""

    def __init__(self, options: Optional[LayoutOptions] = None) -> None:
        self._options = options or FILE_LAYOUT

    @property
    def options(self) -> LayoutOptions:
        return self._options

    def set_options(self, **changes: object) -> None:
        self._options = dataclasses.replace(self._options, **changes)

    def calculate_node_dimensions(self, node: DiagramNode) -> NodeDimensions:
        return calculate_node_dimensions(node)

    def apply_layout(
        self, nodes: Sequence[DiagramNode], edges: Sequence[DiagramEdge]
    ) -> List[DiagramNode]:
        """Return copies of ``nodes`` with top-left positions and computed sizes."""
        if not nodes:
            return []

        dimensions = [self.calculate_node_dimensions(node) for node in nodes]
        index_by_id: Dict[str, int] = {}
        for index, node in enumerate(nodes):
            index_by_id.setdefault(node.id, index)

        pairs = _edge_pairs(edges, index_by_id)
        acyclic = _break_cycles(len(nodes), pairs)
        ranks = _longest_path_ranks(len(nodes), acyclic)
        graph = _LayeredGraph.build(ranks, acyclic)
        graph.reduce_crossings()

        centers = self._assign_coordinates(graph, dimensions)

        positioned: List[DiagramNode] = []
        for index, node in enumerate(nodes):
            dims = dimensions[index]
            cx, cy = centers[index]
            positioned.append(
                dataclasses.replace(
                    node,
                    position=Position(x=cx - dims.width / 2, y=cy - dims.height / 2),
                    width=dims.width,
                    height=dims.height,
                )
            )
        logger.debug(
            "Laid out %d nodes, %d edges over %d ranks (%d crossings)",
            len(nodes),
            len(pairs),
            len(graph.layers),
            graph.crossings(),
        )
        return positioned

    def _assign_coordinates(
        self, graph: "_LayeredGraph", dimensions: Sequence[NodeDimensions]
    ) -> Dict[int, Tuple[float, float]]:
        options = self._options
        horizontal_ranks = options.direction in ("LR", "RL")

        def rank_size(vertex: int) -> float:
            if vertex >= len(dimensions):
                return 0.0
            dims = dimensions[vertex]
            return dims.width if horizontal_ranks else dims.height

        def cross_size(vertex: int) -> float:
            if vertex >= len(dimensions):
                return 0.0
            dims = dimensions[vertex]
            return dims.height if horizontal_ranks else dims.width

        # Rank axis: each rank is as thick as its largest node.
        rank_centers: List[float] = []
        offset = 0.0
        for layer in graph.layers:
            thickness = max((rank_size(vertex) for vertex in layer), default=0.0)
            rank_centers.append(offset + thickness / 2)
            offset += thickness + options.rank_separation
        rank_extent = offset - options.rank_separation

        # In-rank axis: pack in order and center every rank on the same line.
        cross_centers: Dict[int, float] = {}
        for layer in graph.layers:
            cursor = 0.0
            local: List[Tuple[int, float]] = []
            for position, vertex in enumerate(layer):
                if position:
                    cursor += options.node_separation
                size = cross_size(vertex)
                local.append((vertex, cursor + size / 2))
                cursor += size
            shift = cursor / 2
            for vertex, center in local:
                cross_centers[vertex] = center - shift

        real = range(len(dimensions))
        min_edge = min(cross_centers[v] - cross_size(v) / 2 for v in real)

        centers: Dict[int, Tuple[float, float]] = {}
        for vertex in real:
            along = rank_centers[graph.rank_of[vertex]]
            if options.direction in ("BT", "RL"):
                along = rank_extent - along
            across = cross_centers[vertex] - min_edge
            centers[vertex] = (along, across) if horizontal_ranks else (across, along)
        return centers


def _edge_pairs(
    edges: Sequence[DiagramEdge], index_by_id: Dict[str, int]
) -> List[Tuple[int, int]]:
    pairs: List[Tuple[int, int]] = []
    seen = set()
    for edge in edges:
        source = index_by_id.get(edge.source)
        target = index_by_id.get(edge.target)
        if source is None or target is None:
            logger.debug("Ignoring edge %s with unknown endpoint", edge.id)
            continue
        if source == target:
            continue
        if (source, target) in seen:
            continue
        seen.add((source, target))
        pairs.append((source, target))
    return pairs


def _break_cycles(count: int, pairs: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Reverse DFS back edges, visiting nodes and edges in input order."""
    outgoing: List[List[int]] = [[] for _ in range(count)]
    for source, target in pairs:
        outgoing[source].append(target)

    state = [0] * count  # 0 new, 1 on stack, 2 done
    back_edges = set()
    for root in range(count):
        if state[root]:
            continue
        state[root] = 1
        stack: List[Tuple[int, int]] = [(root, 0)]
        while stack:
            vertex, next_child = stack[-1]
            if next_child >= len(outgoing[vertex]):
                state[vertex] = 2
                stack.pop()
                continue
            stack[-1] = (vertex, next_child + 1)
            child = outgoing[vertex][next_child]
            if state[child] == 1:
                back_edges.add((vertex, child))
            elif state[child] == 0:
                state[child] = 1
                stack.append((child, 0))

    acyclic: List[Tuple[int, int]] = []
    seen = set()
    for pair in pairs:
        edge = (pair[1], pair[0]) if pair in back_edges else pair
        if edge not in seen:
            seen.add(edge)
            acyclic.append(edge)
    return acyclic


def _longest_path_ranks(count: int, pairs: List[Tuple[int, int]]) -> List[int]:
    """Rank 0 for sources; every edge points at least one rank down."""
    incoming: List[List[int]] = [[] for _ in range(count)]
    outgoing: List[List[int]] = [[] for _ in range(count)]
    for source, target in pairs:
        outgoing[source].append(target)
        incoming[target].append(source)

    pending = [len(incoming[vertex]) for vertex in range(count)]
    ready = [vertex for vertex in range(count) if pending[vertex] == 0]
    ranks = [0] * count
    cursor = 0
    while cursor < len(ready):
        vertex = ready[cursor]
        cursor += 1
        for target in outgoing[vertex]:
            ranks[target] = max(ranks[target], ranks[vertex] + 1)
            pending[target] -= 1
            if pending[target] == 0:
                ready.append(target)
    return ranks


class _LayeredGraph:
    """Vertices per rank, real nodes first by index, dummies numbered after them."""

    def __init__(self, layers: List[List[int]], rank_of: Dict[int, int]) -> None:
        self.layers = layers
        self.rank_of = rank_of
        self.up: Dict[int, List[int]] = {vertex: [] for vertex in rank_of}
        self.down: Dict[int, List[int]] = {vertex: [] for vertex in rank_of}

    @classmethod
    def build(cls, ranks: List[int], pairs: List[Tuple[int, int]]) -> "_LayeredGraph":
        rank_of: Dict[int, int] = {vertex: rank for vertex, rank in enumerate(ranks)}
        layer_count = max(ranks) + 1 if ranks else 0
        layers: List[List[int]] = [[] for _ in range(layer_count)]
        for vertex, rank in enumerate(ranks):
            layers[rank].append(vertex)

        segments: List[Tuple[int, int]] = []
        next_vertex = len(ranks)
        for source, target in pairs:
            previous = source
            for rank in range(ranks[source] + 1, ranks[target]):
                dummy = next_vertex
                next_vertex += 1
                rank_of[dummy] = rank
                layers[rank].append(dummy)
                segments.append((previous, dummy))
                previous = dummy
            segments.append((previous, target))

        graph = cls(layers, rank_of)
        for source, target in segments:
            graph.down[source].append(target)
            graph.up[target].append(source)
        return graph

    def reduce_crossings(self) -> None:
        best = [list(layer) for layer in self.layers]
        best_crossings = self.crossings()
        for sweep in range(MAX_SWEEPS):
            if best_crossings == 0:
                break
            if sweep % 2 == 0:
                for rank in range(1, len(self.layers)):
                    self._order_by(rank, self.up, rank - 1)
            else:
                for rank in range(len(self.layers) - 2, -1, -1):
                    self._order_by(rank, self.down, rank + 1)
            crossings = self.crossings()
            if crossings < best_crossings:
                best_crossings = crossings
                best = [list(layer) for layer in self.layers]
        self.layers = best

    def _order_by(self, rank: int, neighbours: Dict[int, List[int]], fixed_rank: int) -> None:
        fixed_positions = {vertex: index for index, vertex in enumerate(self.layers[fixed_rank])}
        layer = self.layers[rank]
        keyed: List[Tuple[float, int, int]] = []
        for index, vertex in enumerate(layer):
            linked = [fixed_positions[n] for n in neighbours[vertex] if n in fixed_positions]
            barycenter = sum(linked) / len(linked) if linked else float(index)
            keyed.append((barycenter, index, vertex))
        keyed.sort()
        self.layers[rank] = [vertex for _, _, vertex in keyed]

    def crossings(self) -> int:
        total = 0
        for rank in range(len(self.layers) - 1):
            upper = {vertex: index for index, vertex in enumerate(self.layers[rank])}
            lower = {vertex: index for index, vertex in enumerate(self.layers[rank + 1])}
            segments = [
                (upper[source], lower[target])
                for source in self.layers[rank]
                for target in self.down[source]
                if target in lower
            ]
            for i, (a_top, a_bottom) in enumerate(segments):
                for b_top, b_bottom in segments[i + 1 :]:
                    if (a_top - b_top) * (a_bottom - b_bottom) < 0:
                        total += 1
        return total


__all__ = [
    "DIRECTIONS",
    "FILE_LAYOUT",
    "LayoutEngine",
    "LayoutOptions",
    "NodeDimensions",
    "PROJECT_LAYOUT",
    "calculate_node_dimensions",
    "get_layout_config",
]
