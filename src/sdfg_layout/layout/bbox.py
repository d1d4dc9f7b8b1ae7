"""Bounding boxes and box/line intersection."""

from __future__ import annotations

from collections.abc import Iterable

from sdfg_layout.constants import MIN_EDGE_EXTENT, THIN_EDGE_EXTENT
from sdfg_layout.layout.types import BoundingBox, LayoutEdge, LayoutGraph, LayoutNode, Point


def calculate_bounding_box(graph: LayoutGraph) -> BoundingBox:
    """Smallest box around every node extent and edge point of ``graph``.

    An empty graph yields a zero box at the origin.
    """
    return elements_bounding_box(graph.nodes(), graph.edges())


def elements_bounding_box(nodes: Iterable[LayoutNode], edges: Iterable[LayoutEdge]) -> BoundingBox:
    min_x = min_y = float("inf")
    max_x = max_y = float("-inf")
    for node in nodes:
        min_x = min(min_x, node.x - node.width / 2)
        min_y = min(min_y, node.y - node.height / 2)
        max_x = max(max_x, node.x + node.width / 2)
        max_y = max(max_y, node.y + node.height / 2)
    for edge in edges:
        for point in edge.points:
            min_x = min(min_x, point.x)
            min_y = min(min_y, point.y)
            max_x = max(max_x, point.x)
            max_y = max(max_y, point.y)
    if min_x == float("inf"):
        return BoundingBox(0.0, 0.0, 0.0, 0.0)
    return BoundingBox(min_x, min_y, max_x - min_x, max_y - min_y)


def calculate_edge_bounding_box(points: list[Point]) -> BoundingBox:
    """Box around a polyline; sides of at most 5 units are widened to 10."""
    if not points:
        return BoundingBox(0.0, 0.0, 0.0, 0.0)
    min_x = min(p.x for p in points)
    min_y = min(p.y for p in points)
    bb = BoundingBox(min_x, min_y, max(p.x for p in points) - min_x, max(p.y for p in points) - min_y)
    if bb.width <= MIN_EDGE_EXTENT:
        bb.width = THIN_EDGE_EXTENT
        bb.x -= THIN_EDGE_EXTENT / 2
    if bb.height <= MIN_EDGE_EXTENT:
        bb.height = THIN_EDGE_EXTENT
        bb.y -= THIN_EDGE_EXTENT / 2
    return bb


def update_edge_bounding_box(edge: LayoutEdge) -> None:
    """Store the polyline's box on the edge; x/y become the box center."""
    bb = calculate_edge_bounding_box(edge.points)
    edge.width = bb.width
    edge.height = bb.height
    edge.x = bb.x + bb.width / 2
    edge.y = bb.y + bb.height / 2


def intersect_rect(center: Point, width: float, height: float, toward: Point) -> Point:
    """Where the segment from the center of a box to ``toward`` leaves the box."""
    dx = toward.x - center.x
    dy = toward.y - center.y
    half_w = width / 2
    half_h = height / 2
    if dx == 0 and dy == 0:
        return Point(center.x, center.y)

    if abs(dy) * half_w > abs(dx) * half_h:
        # Leaves through the top or bottom side.
        if dy < 0:
            half_h = -half_h
        return Point(center.x + half_h * dx / dy, center.y + half_h)
    if dx < 0:
        half_w = -half_w
    return Point(center.x + half_w, center.y + (half_w * dy / dx if dx else 0.0))
