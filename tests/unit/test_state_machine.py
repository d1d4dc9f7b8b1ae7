"""Tests for layout/state_machine.py — vertical layout of reducible control flow."""

from __future__ import annotations

import networkx as nx
import pytest

from sdfg_layout.errors import IrreducibleControlFlowError, StateMachineLayoutError
from sdfg_layout.layout.state_machine import StateMachineLayout, dominates, find_back_edges, natural_loop
from sdfg_layout.layout.types import LayoutEdge, LayoutGraph, LayoutNode
from sdfg_layout.types import ElementType

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_cfg(count: int, *edges: tuple[int, int], width: float = 60.0, height: float = 40.0) -> LayoutGraph:
    """Blocks "0".."count-1" of equal size joined by the given edges."""
    g = LayoutGraph(cfg_id=0)
    for i in range(count):
        g.add_node(LayoutNode(id=str(i), uuid=f"0/{i}/-1/-1", kind=ElementType.SDFGState, width=width, height=height))
    for index, (src, dst) in enumerate(edges):
        g.add_edge(LayoutEdge(src=str(src), dst=str(dst), key=str(index), uuid=f"0/-1/-1/{index}"))
    return g


def make_digraph(*edges: tuple[str, str]) -> nx.DiGraph:
    g: nx.DiGraph = nx.DiGraph()
    g.add_edges_from(edges)
    return g


def left_edge(g: LayoutGraph) -> float:
    return min(n.x - n.width / 2 for n in g.nodes())


# ─── Graph analysis ──────────────────────────────────────────────────────────


class TestAnalysis:
    def test_find_back_edges(self):
        g = make_digraph(("0", "1"), ("1", "2"), ("2", "1"), ("1", "3"))
        assert find_back_edges(g, "0") == [("2", "1")]

    def test_no_back_edges_in_dag(self):
        g = make_digraph(("0", "1"), ("0", "2"), ("1", "3"), ("2", "3"))
        assert find_back_edges(g, "0") == []

    def test_dominates(self):
        g = make_digraph(("0", "1"), ("0", "2"), ("1", "3"), ("2", "3"))
        idom = nx.immediate_dominators(g, "0")
        assert dominates(idom, "0", "3")
        assert not dominates(idom, "1", "3")
        assert dominates(idom, "1", "1")

    def test_natural_loop(self):
        g = make_digraph(("0", "1"), ("1", "2"), ("2", "3"), ("3", "1"), ("1", "4"))
        assert natural_loop(g, "1", ["3"]) == {"1", "2", "3"}


# ─── Layout ──────────────────────────────────────────────────────────────────


class TestStateMachineLayout:
    def test_chain_is_vertical(self):
        g = make_cfg(3, (0, 1), (1, 2))
        StateMachineLayout().layout(g, "0")
        nodes = [g.node(str(i)) for i in range(3)]
        assert nodes[0].y < nodes[1].y < nodes[2].y
        assert nodes[0].x == nodes[1].x == nodes[2].x

    def test_loop_exit_below_body(self):
        """init → guard ⇄ body, guard → end: end ranks below the body."""
        g = make_cfg(4, (0, 1), (1, 2), (2, 1), (1, 3))
        StateMachineLayout().layout(g, "0")
        init, guard, body, end = (g.node(str(i)) for i in range(4))
        assert init.y < guard.y < body.y < end.y

    def test_back_edge_routed_in_left_lane(self):
        g = make_cfg(4, (0, 1), (1, 2), (2, 1), (1, 3))
        StateMachineLayout().layout(g, "0")
        back = [e for e in g.edges() if (e.src, e.dst) == ("2", "1")][0]
        assert len(back.points) == 4
        assert back.points[1].x < left_edge(g)
        assert back.points[1].x == back.points[2].x

    def test_lanes_do_not_share_x(self):
        g = make_cfg(5, (0, 1), (1, 2), (2, 3), (3, 2), (3, 1), (1, 4))
        StateMachineLayout().layout(g, "0")
        lanes = [e.points[1].x for e in g.edges() if (e.src, e.dst) in {("3", "2"), ("3", "1")}]
        assert len(set(lanes)) == 2

    def test_drawing_starts_at_origin(self):
        g = make_cfg(3, (0, 1), (1, 2), (2, 1))
        StateMachineLayout().layout(g, "0")
        xs = [n.x - n.width / 2 for n in g.nodes()] + [p.x for e in g.edges() for p in e.points]
        assert min(xs) == pytest.approx(0.0)

    def test_multiple_sources_share_top_rank(self):
        g = make_cfg(3, (0, 2), (1, 2))
        StateMachineLayout().layout(g)
        assert g.node("0").y == g.node("1").y < g.node("2").y

    def test_cycle_without_source_uses_start(self):
        g = make_cfg(2, (0, 1), (1, 0))
        StateMachineLayout().layout(g, "0")
        assert g.node("0").y < g.node("1").y

    def test_cycle_without_start_fails(self):
        g = make_cfg(2, (0, 1), (1, 0))
        with pytest.raises(StateMachineLayoutError):
            StateMachineLayout().layout(g)

    def test_unreachable_block_fails(self):
        g = make_cfg(4, (0, 1), (2, 3), (3, 2))
        with pytest.raises(StateMachineLayoutError, match="unreachable"):
            StateMachineLayout().layout(g, "0")

    def test_irreducible_fails_without_side_effects(self):
        """A second entry into a cycle raises before any node is moved."""
        g = make_cfg(4, (0, 1), (0, 2), (1, 2), (2, 1), (2, 3))
        with pytest.raises(IrreducibleControlFlowError):
            StateMachineLayout().layout(g, "0")
        assert all((n.x, n.y) == (0.0, 0.0) for n in g.nodes())
        assert all(e.points == [] for e in g.edges())

    def test_irreducible_is_state_machine_error(self):
        assert issubclass(IrreducibleControlFlowError, StateMachineLayoutError)
