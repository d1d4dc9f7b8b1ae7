"""Vertical layout for control-flow graphs.

Blocks are ranked top to bottom along the program's flow: every block sits
below its forward predecessors, a loop's exits sit below the loop's whole
body, and back edges are routed in lanes to the left of the drawing instead
of reversing rank order. Only reducible graphs can be drawn this way; for
anything else ``layout`` raises ``StateMachineLayoutError`` before touching
the graph, and the caller falls back to the general layered layout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import networkx as nx

from sdfg_layout.constants import BACKEDGE_SPACING, MAX_CROSSING_PASSES, NODESEP, RANKSEP
from sdfg_layout.errors import IrreducibleControlFlowError, StateMachineLayoutError
from sdfg_layout.layout.sugiyama import (
    LayerAssignment,
    apply_layout,
    assign_coordinates,
    edge_polyline,
    insert_dummy_nodes,
    minimise_crossings,
    node_sizes,
    simple_digraph,
)
from sdfg_layout.layout.types import LayoutEdge, LayoutGraph, Point

logger = logging.getLogger(__name__)

ARTIFICIAL_START = "__start__"


def find_back_edges(graph: nx.DiGraph, root: str) -> list[tuple[str, str]]:
    """Edges closing a cycle in a depth-first search from ``root``."""
    back: list[tuple[str, str]] = []
    on_stack: dict[str, bool] = {root: True}
    stack = [(root, iter(graph.successors(root)))]
    while stack:
        node, successors = stack[-1]
        for succ in successors:
            if succ not in on_stack:
                on_stack[succ] = True
                stack.append((succ, iter(graph.successors(succ))))
                break
            if on_stack[succ]:
                back.append((node, succ))
        else:
            on_stack[node] = False
            stack.pop()
    return back


def dominates(idom: dict[str, str], dominator: str, node: str) -> bool:
    while True:
        if node == dominator:
            return True
        parent = idom.get(node)
        if parent is None or parent == node:
            return False
        node = parent


def natural_loop(graph: nx.DiGraph, header: str, latches: list[str]) -> set[str]:
    body = {header}
    stack = [latch for latch in latches if latch != header]
    body.update(stack)
    while stack:
        node = stack.pop()
        for pred in graph.predecessors(node):
            if pred not in body:
                body.add(pred)
                stack.append(pred)
    return body


@dataclass
class _Plan:
    flow: nx.DiGraph
    back_edges: set[tuple[str, str]]
    ranks: dict[str, int]


class StateMachineLayout:
    """Top-to-bottom layout of a reducible control-flow graph."""

    def __init__(self, ranksep: float = RANKSEP, nodesep: float = NODESEP, max_passes: int = MAX_CROSSING_PASSES) -> None:
        self.ranksep = ranksep
        self.nodesep = nodesep
        self.max_passes = max_passes

    def layout(self, graph: LayoutGraph, start: str | None = None) -> None:
        if graph.node_count() == 0:
            return
        plan = self._plan(graph, start)

        la = LayerAssignment(layers=plan.ranks, layer_count=max(plan.ranks.values()) + 1)
        aug = insert_dummy_nodes(plan.flow, la)
        ordering = minimise_crossings(aug, self.max_passes)
        sizes = node_sizes(graph)
        positions = assign_coordinates(ordering, aug, sizes, self.ranksep, self.nodesep)

        polylines: dict[LayoutEdge, list[Point]] = {}
        lane_edges: list[LayoutEdge] = []
        for edge in graph.edges():
            if edge.src == edge.dst or (edge.src, edge.dst) in plan.back_edges:
                lane_edges.append(edge)
            else:
                polylines[edge] = edge_polyline(aug.chain(edge.src, edge.dst, set()), positions, sizes)

        left = min(positions[node.id].x - node.width / 2 for node in graph.nodes())
        for lane, edge in enumerate(lane_edges):
            polylines[edge] = self._lane_points(edge, positions, sizes, left - BACKEDGE_SPACING * (lane + 1))
        apply_layout(graph, positions, polylines)

    def _plan(self, graph: LayoutGraph, start: str | None) -> _Plan:
        """Rank every block; raises without side effects when the graph does not fit."""
        simple = simple_digraph(graph)
        sources = [n for n in simple.nodes if simple.in_degree(n) == 0]
        if len(sources) > 1:
            logger.warning("Control flow graph has %d sources, adding an artificial start", len(sources))
            root = ARTIFICIAL_START
            simple.add_node(root)
            for source in sources:
                simple.add_edge(root, source)
        elif sources:
            root = sources[0]
        elif start is not None and start in simple:
            root = start
        else:
            raise StateMachineLayoutError("control flow graph has no entry block")

        unreachable = set(simple.nodes) - nx.descendants(simple, root) - {root}
        if unreachable:
            raise StateMachineLayoutError(f"blocks unreachable from the entry: {sorted(unreachable)}")

        back_edges = find_back_edges(simple, root)
        idom = nx.immediate_dominators(simple, root)
        for src, tgt in back_edges:
            if not dominates(idom, tgt, src):
                raise IrreducibleControlFlowError(f"back edge {src} -> {tgt} enters a loop through a non-header block")

        flow = simple.copy()
        flow.remove_edges_from(back_edges)

        # Loop exits rank below every block of the loop body.
        ranking = flow.copy()
        latches: dict[str, list[str]] = {}
        for src, tgt in back_edges:
            latches.setdefault(tgt, []).append(src)
        for header, header_latches in latches.items():
            body = natural_loop(simple, header, header_latches)
            members = [n for n in simple.nodes if n in body]
            for member in members:
                for succ in flow.successors(member):
                    if succ in body:
                        continue
                    for other in members:
                        ranking.add_edge(other, succ)
        if not nx.is_directed_acyclic_graph(ranking):
            raise StateMachineLayoutError("loop nesting does not admit a vertical ranking")

        ranks: dict[str, int] = {n: 0 for n in ranking.nodes}
        for node in nx.topological_sort(ranking):
            for pred in ranking.predecessors(node):
                ranks[node] = max(ranks[node], ranks[pred] + 1)
        return _Plan(flow=flow, back_edges=set(back_edges), ranks=ranks)

    @staticmethod
    def _lane_points(
        edge: LayoutEdge, positions: dict[str, Point], sizes: dict[str, tuple[float, float]], lane_x: float
    ) -> list[Point]:
        src, dst = positions[edge.src], positions[edge.dst]
        src_w, src_h = sizes[edge.src]
        dst_w, dst_h = sizes[edge.dst]
        src_y, dst_y = src.y, dst.y
        if edge.src == edge.dst:
            src_y, dst_y = src.y + src_h / 4, dst.y - dst_h / 4
        return [
            Point(src.x - src_w / 2, src_y),
            Point(lane_x, src_y),
            Point(lane_x, dst_y),
            Point(dst.x - dst_w / 2, dst_y),
        ]
