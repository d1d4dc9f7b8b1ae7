"""Tests for layout/sugiyama.py — the layered layout phases and the full engine."""

from __future__ import annotations

import networkx as nx
import pytest

from sdfg_layout.layout.sugiyama import (
    DUMMY_PREFIX,
    LayerAssignment,
    SugiyamaLayout,
    assign_coordinates,
    count_crossings,
    edge_polyline,
    greedy_fas_ordering,
    insert_dummy_nodes,
    is_dummy,
    minimise_crossings,
    remove_cycles,
    simple_digraph,
)
from sdfg_layout.layout.types import LayoutEdge, LayoutGraph, LayoutNode, Point
from sdfg_layout.types import ElementType, Ranker

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_graph(*edges: tuple[str, str]) -> nx.DiGraph:
    """Build a DiGraph from a list of (src, tgt) string pairs."""
    g: nx.DiGraph = nx.DiGraph()
    for src, tgt in edges:
        g.add_edge(src, tgt)
    return g


def make_layout_graph(nodes: dict[str, tuple[float, float]], *edges: tuple[str, str]) -> LayoutGraph:
    """Build a LayoutGraph from {id: (width, height)} and (src, tgt) pairs."""
    g = LayoutGraph(cfg_id=0)
    for node_id, (width, height) in nodes.items():
        g.add_node(LayoutNode(id=node_id, uuid=f"0/{node_id}/-1/-1", kind=ElementType.SDFGState, width=width, height=height))
    for index, (src, tgt) in enumerate(edges):
        g.add_edge(LayoutEdge(src=src, dst=tgt, key=str(index), uuid=f"0/-1/-1/{index}"))
    return g


def overlaps(a: LayoutNode, b: LayoutNode) -> bool:
    return (
        abs(a.x - b.x) < (a.width + b.width) / 2
        and abs(a.y - b.y) < (a.height + b.height) / 2
    )


# ─── Cycle Removal ────────────────────────────────────────────────────────────


class TestCycleRemoval:
    def test_dag_has_no_reversed_edges(self):
        """A → B → C has nothing to reverse."""
        dag, reversed_edges = remove_cycles(make_graph(("A", "B"), ("B", "C")))
        assert reversed_edges == set()
        assert nx.is_directed_acyclic_graph(dag)

    def test_single_cycle_reversed(self):
        dag, reversed_edges = remove_cycles(make_graph(("A", "B"), ("B", "A")))
        assert len(reversed_edges) == 1
        assert nx.is_directed_acyclic_graph(dag)

    def test_self_loop_dropped(self):
        """Self-loops are removed from the DAG and are not reported as reversed."""
        dag, reversed_edges = remove_cycles(make_graph(("A", "A"), ("A", "B")))
        assert reversed_edges == set()
        assert list(dag.edges()) == [("A", "B")]

    def test_empty_graph(self):
        dag, reversed_edges = remove_cycles(nx.DiGraph())
        assert dag.number_of_nodes() == 0
        assert reversed_edges == set()

    def test_ordering_is_deterministic(self):
        g = make_graph(("A", "B"), ("B", "C"), ("C", "A"), ("D", "B"))
        assert greedy_fas_ordering(g) == greedy_fas_ordering(g.copy())

    def test_simple_digraph_collapses_parallel_edges(self):
        lg = make_layout_graph({"a": (10, 10), "b": (10, 10)}, ("a", "b"), ("a", "b"), ("b", "b"))
        g = simple_digraph(lg)
        assert list(g.edges()) == [("a", "b")]


# ─── Layer Assignment ────────────────────────────────────────────────────────


class TestLayerAssignment:
    def test_longest_path(self):
        dag = make_graph(("a", "b"), ("b", "c"), ("x", "c"))
        la = LayerAssignment.assign(dag, Ranker.LongestPath)
        assert la.layers == {"a": 0, "b": 1, "c": 2, "x": 0}
        assert la.layer_count == 3

    def test_tight_tree_pulls_sources_down(self):
        """A source feeding only the last layer sits right above it."""
        dag = make_graph(("a", "b"), ("b", "c"), ("x", "c"))
        la = LayerAssignment.assign(dag, Ranker.TightTree)
        assert la.layers["x"] == 1
        assert la.layers["a"] == 0

    def test_every_edge_points_down(self):
        dag = make_graph(("a", "b"), ("a", "c"), ("b", "d"), ("c", "d"), ("e", "d"))
        la = LayerAssignment.assign(dag)
        for src, tgt in dag.edges():
            assert la.layers[src] < la.layers[tgt]


class TestDummyNodes:
    def test_long_edge_gets_dummies(self):
        dag = make_graph(("a", "b"), ("b", "c"), ("a", "c"))
        la = LayerAssignment.assign(dag)
        aug = insert_dummy_nodes(dag, la)
        chain = aug.chain("a", "c", set())
        assert len(chain) == 3
        assert is_dummy(chain[1])
        assert chain[1].startswith(DUMMY_PREFIX)
        assert aug.layers[chain[1]] == 1

    def test_reversed_chain(self):
        dag = make_graph(("a", "b"))
        aug = insert_dummy_nodes(dag, LayerAssignment.assign(dag))
        assert aug.chain("b", "a", {("b", "a")}) == ["b", "a"]


# ─── Crossing Minimization ───────────────────────────────────────────────────


class TestCrossings:
    def test_count_crossings(self):
        g = make_graph(("a", "d"), ("b", "c"))
        assert count_crossings([["a", "b"], ["c", "d"]], g) == 1
        assert count_crossings([["a", "b"], ["d", "c"]], g) == 0

    def test_minimise_removes_crossing(self):
        dag = make_graph(("a", "d"), ("b", "c"))
        dag.add_nodes_from(["a", "b", "c", "d"])
        aug = insert_dummy_nodes(dag, LayerAssignment.assign(dag))
        ordering = minimise_crossings(aug)
        assert count_crossings(ordering, aug.graph) == 0


# ─── Coordinates and Routing ─────────────────────────────────────────────────


class TestCoordinates:
    def test_same_layer_respects_separation(self):
        dag = make_graph(("r", "a"), ("r", "b"))
        aug = insert_dummy_nodes(dag, LayerAssignment.assign(dag))
        ordering = minimise_crossings(aug)
        sizes = {"r": (40.0, 20.0), "a": (60.0, 20.0), "b": (80.0, 20.0)}
        pos = assign_coordinates(ordering, aug, sizes, ranksep=50.0, nodesep=50.0)
        assert abs(pos["a"].x - pos["b"].x) >= 30.0 + 50.0 + 40.0 - 1e-9
        assert pos["a"].y == pos["b"].y
        assert pos["a"].y - pos["r"].y == pytest.approx(10.0 + 50.0 + 10.0)

    def test_adjacent_edge_has_midpoint(self):
        positions = {"a": Point(0, 0), "b": Point(0, 100)}
        sizes = {"a": (20.0, 20.0), "b": (20.0, 20.0)}
        points = edge_polyline(["a", "b"], positions, sizes)
        assert [(p.x, p.y) for p in points] == [(0.0, 10.0), (0.0, 50.0), (0.0, 90.0)]


class TestSugiyamaLayout:
    def test_empty_graph(self):
        g = LayoutGraph()
        SugiyamaLayout().layout(g)
        assert g.node_count() == 0

    def test_chain_flows_downward(self):
        g = make_layout_graph({"a": (30, 20), "b": (30, 20), "c": (30, 20)}, ("a", "b"), ("b", "c"))
        SugiyamaLayout().layout(g)
        a, b, c = g.node("a"), g.node("b"), g.node("c")
        assert a.y < b.y < c.y

    def test_drawing_starts_at_origin(self):
        g = make_layout_graph({"a": (30, 20), "b": (50, 20), "c": (70, 20)}, ("a", "b"), ("a", "c"))
        SugiyamaLayout().layout(g)
        assert min(n.x - n.width / 2 for n in g.nodes()) == pytest.approx(0.0)
        assert min(n.y - n.height / 2 for n in g.nodes()) == pytest.approx(0.0)

    def test_no_overlaps(self):
        nodes = {str(i): (20.0 + 10 * i, 20.0) for i in range(8)}
        edges = [("0", "1"), ("0", "2"), ("0", "3"), ("1", "4"), ("2", "4"), ("3", "5"), ("6", "7"), ("4", "7")]
        g = make_layout_graph(nodes, *edges)
        SugiyamaLayout().layout(g)
        laid = g.nodes()
        for i, a in enumerate(laid):
            for b in laid[i + 1:]:
                assert not overlaps(a, b), f"{a.id} overlaps {b.id}"

    def test_every_edge_has_three_points(self):
        g = make_layout_graph({"a": (30, 20), "b": (30, 20), "c": (30, 20)}, ("a", "b"), ("b", "c"), ("a", "c"))
        SugiyamaLayout().layout(g)
        for edge in g.edges():
            assert len(edge.points) >= 3

    def test_cycle_edge_keeps_direction(self):
        """A reversed edge still starts at its source and ends at its target."""
        g = make_layout_graph({"a": (30, 20), "b": (30, 20)}, ("a", "b"), ("b", "a"))
        SugiyamaLayout().layout(g)
        back = [e for e in g.edges() if e.src == "b"][0]
        b, a = g.node("b"), g.node("a")
        assert abs(back.points[0].y - b.y) <= b.height / 2 + 1e-9
        assert abs(back.points[-1].y - a.y) <= a.height / 2 + 1e-9

    def test_self_loop_routed_on_the_right(self):
        g = make_layout_graph({"a": (30, 20)}, ("a", "a"))
        SugiyamaLayout().layout(g)
        edge = g.edges()[0]
        node = g.node("a")
        assert len(edge.points) == 4
        assert max(p.x for p in edge.points) > node.x + node.width / 2

    def test_deterministic(self):
        nodes = {str(i): (20.0 + 7 * i, 20.0) for i in range(6)}
        edges = [("0", "1"), ("1", "2"), ("2", "0"), ("0", "3"), ("3", "4"), ("5", "4")]
        first = make_layout_graph(nodes, *edges)
        second = make_layout_graph(nodes, *edges)
        SugiyamaLayout().layout(first)
        SugiyamaLayout().layout(second)
        assert [(n.x, n.y) for n in first.nodes()] == [(n.x, n.y) for n in second.nodes()]
        assert [e.points for e in first.edges()] == [e.points for e in second.edges()]
