"""Translate laid-out graphs.

Each layouter positions its children in local coordinates; the layouter one
level up moves a child's whole interior exactly once, after it knows where the
child landed. Nested interiors move along with their owner.
"""

from __future__ import annotations

from sdfg_layout.layout.types import LayoutGraph, LayoutNode, Point


def offset_graph(graph: LayoutGraph, dx: float, dy: float) -> None:
    """Move every node, connector and edge point of ``graph`` (recursively) by (dx, dy)."""
    if dx == 0 and dy == 0:
        return
    for node in graph.nodes():
        offset_node(node, dx, dy)
    for edge in graph.edges():
        edge.x += dx
        edge.y += dy
        edge.points = [Point(p.x + dx, p.y + dy) for p in edge.points]


def offset_node(node: LayoutNode, dx: float, dy: float) -> None:
    node.x += dx
    node.y += dy
    for conn in (*node.in_connectors, *node.out_connectors):
        conn.x += dx
        conn.y += dy
    if not node.collapsed and node.graph is not None:
        offset_graph(node.graph, dx, dy)
