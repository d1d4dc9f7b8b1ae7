"""Sugiyama-style layered graph layout engine.

Phases:
  1. Cycle removal (greedy-FAS)
  2. Layer assignment
  3. Dummy node insertion
  4. Crossing minimization (barycenter)
  5. Coordinate assignment
  6. Edge routing (polylines through dummy nodes)

Every phase iterates nodes and edges in insertion order, so the same input
always produces the same coordinates.
"""

from __future__ import annotations

import copy
from bisect import bisect_right, insort
from dataclasses import dataclass, field

import networkx as nx

from sdfg_layout.constants import EDGESEP, MAX_CROSSING_PASSES, NODESEP, RANKSEP
from sdfg_layout.layout.bbox import intersect_rect
from sdfg_layout.layout.types import LayoutEdge, LayoutGraph, Point
from sdfg_layout.types import Ranker

DUMMY_PREFIX = "__dummy_"

Size = tuple[float, float]


def is_dummy(node_id: str) -> bool:
    return node_id.startswith(DUMMY_PREFIX)


def simple_digraph(graph: LayoutGraph) -> nx.DiGraph:
    """Collapse parallel edges and drop self-loops."""
    g: nx.DiGraph = nx.DiGraph()
    g.add_nodes_from(graph.digraph.nodes)
    for src, tgt in graph.digraph.edges():
        if src != tgt:
            g.add_edge(src, tgt)
    return g


def node_sizes(graph: LayoutGraph) -> dict[str, Size]:
    return {node.id: (node.width, node.height) for node in graph.nodes()}


# ─── Cycle Removal (Greedy-FAS) ─────────────────────────────────────────────


def greedy_fas_ordering(graph: nx.DiGraph) -> list[str]:
    """Compute a node ordering using the greedy-FAS heuristic."""
    active: dict[str, None] = dict.fromkeys(graph.nodes)
    out_deg: dict[str, int] = {}
    in_deg: dict[str, int] = {}
    for node in graph.nodes:
        out_deg[node] = graph.out_degree(node)
        in_deg[node] = graph.in_degree(node)

    s1: list[str] = []
    s2: list[str] = []

    while active:
        changed = True
        while changed:
            changed = False
            sinks = [n for n in active if out_deg[n] == 0]
            if sinks:
                changed = True
                for sink in sinks:
                    del active[sink]
                    s2.append(sink)
                    for pred in graph.predecessors(sink):
                        if pred in active:
                            out_deg[pred] -= 1

        changed = True
        while changed:
            changed = False
            sources = [n for n in active if in_deg[n] == 0]
            if sources:
                changed = True
                for source in sources:
                    del active[source]
                    s1.append(source)
                    for succ in graph.successors(source):
                        if succ in active:
                            in_deg[succ] -= 1

        if active:
            best = max(active, key=lambda n: out_deg[n] - in_deg[n])
            del active[best]
            s1.append(best)
            for succ in graph.successors(best):
                if succ in active:
                    in_deg[succ] -= 1
            for pred in graph.predecessors(best):
                if pred in active:
                    out_deg[pred] -= 1

    s2.reverse()
    s1.extend(s2)
    return s1


def remove_cycles(graph: nx.DiGraph) -> tuple[nx.DiGraph, set[tuple[str, str]]]:
    """Remove cycles using greedy-FAS. Returns (dag, reversed_edges)."""
    if graph.number_of_nodes() == 0:
        return graph.copy(), set()

    ordering = greedy_fas_ordering(graph)
    position: dict[str, int] = {node: pos for pos, node in enumerate(ordering)}

    reversed_edges: set[tuple[str, str]] = set()
    for src, tgt in graph.edges():
        if src != tgt and position[src] > position[tgt]:
            reversed_edges.add((src, tgt))

    dag: nx.DiGraph = nx.DiGraph()
    dag.add_nodes_from(graph.nodes)
    for src, tgt in graph.edges():
        if src == tgt:
            continue
        if (src, tgt) in reversed_edges:
            dag.add_edge(tgt, src)
        else:
            dag.add_edge(src, tgt)

    return dag, reversed_edges


# ─── Layer Assignment ────────────────────────────────────────────────────────


class LayerAssignment:
    def __init__(self, layers: dict[str, int], layer_count: int) -> None:
        self.layers = layers
        self.layer_count = layer_count

    @classmethod
    def assign(cls, dag: nx.DiGraph, ranker: Ranker = Ranker.TightTree) -> LayerAssignment:
        order = list(nx.topological_sort(dag))
        layers: dict[str, int] = {node_id: 0 for node_id in dag.nodes}
        for node in order:
            for pred in dag.predecessors(node):
                layers[node] = max(layers[node], layers[pred] + 1)

        if ranker is Ranker.TightTree:
            # Pull sources down next to their nearest successor.
            for node in reversed(order):
                if dag.in_degree(node) == 0 and dag.out_degree(node) > 0:
                    layers[node] = min(layers[succ] for succ in dag.successors(node)) - 1

        layer_count = (max(layers.values()) + 1) if layers else 1
        return cls(layers=layers, layer_count=layer_count)


# ─── Dummy Node Insertion ────────────────────────────────────────────────────


@dataclass
class DummyEdge:
    original_src: str
    original_tgt: str
    dummy_ids: list[str]


@dataclass
class AugmentedGraph:
    graph: nx.DiGraph
    layers: dict[str, int]
    layer_count: int
    dummy_edges: dict[tuple[str, str], DummyEdge] = field(default_factory=dict)

    def chain(self, src: str, tgt: str, reversed_edges: set[tuple[str, str]]) -> list[str]:
        """Node ids an edge passes through, from ``src`` to ``tgt``."""
        if (src, tgt) in reversed_edges:
            return list(reversed(self.chain(tgt, src, set())))
        dummy = self.dummy_edges.get((src, tgt))
        return [src, *(dummy.dummy_ids if dummy else ()), tgt]


def insert_dummy_nodes(dag: nx.DiGraph, la: LayerAssignment) -> AugmentedGraph:
    """Insert dummy nodes for edges spanning multiple layers."""
    g: nx.DiGraph = nx.DiGraph()
    g.add_nodes_from(dag.nodes)

    layers: dict[str, int] = copy.copy(la.layers)
    dummy_edges: dict[tuple[str, str], DummyEdge] = {}

    for edge_counter, (src_id, tgt_id) in enumerate(list(dag.edges())):
        src_layer = layers[src_id]
        layer_diff = layers[tgt_id] - src_layer

        if layer_diff <= 1:
            g.add_edge(src_id, tgt_id)
            continue

        dummy_ids: list[str] = []
        chain_prev = src_id
        for i in range(layer_diff - 1):
            dummy_id = f"{DUMMY_PREFIX}{edge_counter}_{i}"
            g.add_node(dummy_id)
            layers[dummy_id] = src_layer + i + 1
            dummy_ids.append(dummy_id)
            g.add_edge(chain_prev, dummy_id)
            chain_prev = dummy_id
        g.add_edge(chain_prev, tgt_id)

        dummy_edges[(src_id, tgt_id)] = DummyEdge(original_src=src_id, original_tgt=tgt_id, dummy_ids=dummy_ids)

    layer_count = (max(layers.values()) + 1) if layers else 1
    return AugmentedGraph(graph=g, layers=layers, layer_count=layer_count, dummy_edges=dummy_edges)


# ─── Crossing Minimization ───────────────────────────────────────────────────


def minimise_crossings(aug: AugmentedGraph, max_passes: int = MAX_CROSSING_PASSES) -> list[list[str]]:
    """Minimise edge crossings using barycenter heuristic."""
    layer_count = aug.layer_count
    ordering: list[list[str]] = [[] for _ in range(layer_count)]
    for node_id in aug.graph.nodes:
        ordering[aug.layers[node_id]].append(node_id)

    best_count = count_crossings(ordering, aug.graph)
    best = [list(layer) for layer in ordering]

    for _pass in range(max_passes):
        if best_count == 0:
            break
        for layer_idx in range(1, layer_count):
            prev: dict[str, float] = {nid: float(i) for i, nid in enumerate(ordering[layer_idx - 1])}
            own: dict[str, float] = {nid: float(i) for i, nid in enumerate(ordering[layer_idx])}
            ordering[layer_idx].sort(key=lambda a, p=prev, o=own: _barycenter(a, aug.graph, p, "incoming", o[a]))

        for layer_idx in range(layer_count - 2, -1, -1):
            nxt: dict[str, float] = {nid: float(i) for i, nid in enumerate(ordering[layer_idx + 1])}
            own = {nid: float(i) for i, nid in enumerate(ordering[layer_idx])}
            ordering[layer_idx].sort(key=lambda a, n=nxt, o=own: _barycenter(a, aug.graph, n, "outgoing", o[a]))

        new = count_crossings(ordering, aug.graph)
        if new >= best_count:
            break
        best_count = new
        best = [list(layer) for layer in ordering]

    return best


def _barycenter(
    node_id: str, graph: nx.DiGraph, neighbor_pos: dict[str, float], direction: str, default: float
) -> float:
    neighbors = graph.predecessors(node_id) if direction == "incoming" else graph.successors(node_id)
    positions = [neighbor_pos[nb] for nb in neighbors if nb in neighbor_pos]
    if not positions:
        return default
    return sum(positions) / len(positions)


def count_crossings(ordering: list[list[str]], graph: nx.DiGraph) -> int:
    total = 0
    for l_idx in range(len(ordering) - 1):
        tgt_pos: dict[str, int] = {nid: i for i, nid in enumerate(ordering[l_idx + 1])}
        edges: list[tuple[int, int]] = []
        for sp, src_id in enumerate(ordering[l_idx]):
            for nb in graph.successors(src_id):
                if nb in tgt_pos:
                    edges.append((sp, tgt_pos[nb]))
        edges.sort()
        seen: list[int] = []
        for _, tp in edges:
            total += len(seen) - bisect_right(seen, tp)
            insort(seen, tp)
    return total


# ─── Coordinate Assignment ───────────────────────────────────────────────────


def _separation(left: str, right: str, sizes: dict[str, Size], nodesep: float, edgesep: float) -> float:
    gap = nodesep if not (is_dummy(left) or is_dummy(right)) else edgesep
    return sizes.get(left, (0.0, 0.0))[0] / 2 + gap + sizes.get(right, (0.0, 0.0))[0] / 2


def _pack(layer: list[str], desired: list[float], sizes: dict[str, Size], nodesep: float, edgesep: float) -> list[float]:
    """Closest placement to ``desired`` that keeps the layer's order and spacing."""
    gaps = [_separation(layer[i], layer[i + 1], sizes, nodesep, edgesep) for i in range(len(layer) - 1)]
    left = list(desired)
    for i in range(1, len(left)):
        left[i] = max(left[i], left[i - 1] + gaps[i - 1])
    right = list(desired)
    for i in range(len(right) - 2, -1, -1):
        right[i] = min(right[i], right[i + 1] - gaps[i])
    return [(lx + rx) / 2 for lx, rx in zip(left, right)]


def assign_coordinates(
    ordering: list[list[str]],
    aug: AugmentedGraph,
    sizes: dict[str, Size],
    ranksep: float = RANKSEP,
    nodesep: float = NODESEP,
    edgesep: float = EDGESEP,
    sweeps: int = 4,
) -> dict[str, Point]:
    """Assign center coordinates to every node, dummies included."""
    layer_y: list[float] = []
    y = 0.0
    for layer_nodes in ordering:
        height = max((sizes.get(nid, (0.0, 0.0))[1] for nid in layer_nodes), default=0.0)
        layer_y.append(y + height / 2)
        y += height + ranksep

    xs: dict[str, float] = {}
    for layer_nodes in ordering:
        x = 0.0
        for i, node_id in enumerate(layer_nodes):
            if i:
                x += _separation(layer_nodes[i - 1], node_id, sizes, nodesep, edgesep)
            xs[node_id] = x

    # Barycenter refinement, alternating downward and upward sweeps.
    for sweep in range(sweeps):
        downward = sweep % 2 == 0
        indices = range(1, len(ordering)) if downward else range(len(ordering) - 2, -1, -1)
        for layer_idx in indices:
            layer_nodes = ordering[layer_idx]
            if not layer_nodes:
                continue
            desired: list[float] = []
            for node_id in layer_nodes:
                neighbors = list(aug.graph.predecessors(node_id) if downward else aug.graph.successors(node_id))
                if neighbors:
                    desired.append(sum(xs[nb] for nb in neighbors) / len(neighbors))
                else:
                    desired.append(xs[node_id])
            for node_id, x in zip(layer_nodes, _pack(layer_nodes, desired, sizes, nodesep, edgesep)):
                xs[node_id] = x

    return {node_id: Point(xs[node_id], layer_y[idx]) for idx, layer_nodes in enumerate(ordering) for node_id in layer_nodes}


# ─── Edge Routing ────────────────────────────────────────────────────────────


def edge_polyline(chain: list[str], positions: dict[str, Point], sizes: dict[str, Size]) -> list[Point]:
    """Polyline through the centers of a chain, clipped to the end nodes' boxes.

    Edges between adjacent layers get their midpoint as a middle bend point,
    so every routed edge has at least three points.
    """
    src, tgt = chain[0], chain[-1]
    inner = [positions[nid] for nid in chain[1:-1]]
    src_w, src_h = sizes.get(src, (0.0, 0.0))
    tgt_w, tgt_h = sizes.get(tgt, (0.0, 0.0))
    start = intersect_rect(positions[src], src_w, src_h, inner[0] if inner else positions[tgt])
    end = intersect_rect(positions[tgt], tgt_w, tgt_h, inner[-1] if inner else positions[src])
    if not inner:
        inner = [Point((start.x + end.x) / 2, (start.y + end.y) / 2)]
    return [start, *[Point(p.x, p.y) for p in inner], end]


def self_loop_points(center: Point, size: Size, nodesep: float) -> list[Point]:
    width, height = size
    right = center.x + width / 2
    out = right + nodesep / 2
    return [
        Point(right, center.y - height / 4),
        Point(out, center.y - height / 4),
        Point(out, center.y + height / 4),
        Point(right, center.y + height / 4),
    ]


def apply_layout(
    graph: LayoutGraph,
    positions: dict[str, Point],
    polylines: dict[LayoutEdge, list[Point]],
) -> None:
    """Write positions and polylines into the graph, shifted so the drawing starts at (0, 0)."""
    nodes = graph.nodes()
    xs = [positions[n.id].x - n.width / 2 for n in nodes if n.id in positions]
    ys = [positions[n.id].y - n.height / 2 for n in nodes if n.id in positions]
    for points in polylines.values():
        xs.extend(p.x for p in points)
        ys.extend(p.y for p in points)
    dx = -min(xs, default=0.0)
    dy = -min(ys, default=0.0)

    for node in nodes:
        pos = positions.get(node.id)
        if pos is not None:
            node.x = pos.x + dx
            node.y = pos.y + dy
    for edge, points in polylines.items():
        edge.points = [Point(p.x + dx, p.y + dy) for p in points]


# ─── SugiyamaLayout Engine ───────────────────────────────────────────────────


class SugiyamaLayout:
    """Sugiyama layered layout engine."""

    def __init__(
        self,
        ranksep: float = RANKSEP,
        nodesep: float = NODESEP,
        ranker: Ranker = Ranker.TightTree,
        max_passes: int = MAX_CROSSING_PASSES,
    ) -> None:
        self.ranksep = ranksep
        self.nodesep = nodesep
        self.ranker = ranker
        self.max_passes = max_passes

    def layout(self, graph: LayoutGraph) -> None:
        """Assign center coordinates to every node and a polyline to every edge."""
        if graph.node_count() == 0:
            return

        dag, reversed_edges = remove_cycles(simple_digraph(graph))
        la = LayerAssignment.assign(dag, self.ranker)
        aug = insert_dummy_nodes(dag, la)
        ordering = minimise_crossings(aug, self.max_passes)
        sizes = node_sizes(graph)
        positions = assign_coordinates(ordering, aug, sizes, self.ranksep, self.nodesep)

        polylines: dict[LayoutEdge, list[Point]] = {}
        for edge in graph.edges():
            if edge.src == edge.dst:
                polylines[edge] = self_loop_points(positions[edge.src], sizes[edge.src], self.nodesep)
            else:
                polylines[edge] = edge_polyline(aug.chain(edge.src, edge.dst, reversed_edges), positions, sizes)
        apply_layout(graph, positions, polylines)
