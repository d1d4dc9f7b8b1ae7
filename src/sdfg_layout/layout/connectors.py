"""Connector placement and edge anchoring on dataflow nodes."""

from __future__ import annotations

import logging

from sdfg_layout.constants import CONNECTOR_SIZE, CONNECTOR_SPACING
from sdfg_layout.layout.bbox import intersect_rect
from sdfg_layout.layout.sizing import connector_row_width
from sdfg_layout.layout.types import LayoutConnector, LayoutEdge, LayoutGraph, LayoutNode, Point
from sdfg_layout.types import ConnectorDirection

logger = logging.getLogger(__name__)


def _place_row(connectors: list[LayoutConnector], center_x: float, y: float) -> None:
    x = center_x - connector_row_width(len(connectors)) / 2 + CONNECTOR_SIZE / 2
    for conn in connectors:
        conn.width = CONNECTOR_SIZE
        conn.height = CONNECTOR_SIZE
        conn.x = x
        conn.y = y
        x += CONNECTOR_SIZE + CONNECTOR_SPACING


def place_connectors(node: LayoutNode) -> None:
    """Center the input row on the node's top edge and the output row on its bottom edge."""
    top = node.y - node.height / 2
    _place_row(node.in_connectors, node.x, top)
    _place_row(node.out_connectors, node.x, top + node.height)


def reorder_in_connectors(graph: LayoutGraph) -> None:
    """Re-place each node's input row so connectors follow their sources left to right.

    A connector's key is the x of the source connector feeding it, or of the
    source node when that node has no output connectors. Connectors without a
    source keep their current x as key. Order within the row list is kept.
    """
    for node in graph.nodes():
        if len(node.in_connectors) < 2:
            continue
        source_x: dict[str, float] = {}
        for edge in graph.in_edges(node.id):
            if edge.dst_connector is None or edge.dst_connector in source_x:
                continue
            src = graph.node(edge.src)
            if src is None:
                continue
            if not src.out_connectors:
                source_x[edge.dst_connector] = src.x
                continue
            src_conn = src.connector(ConnectorDirection.Out, edge.src_connector) if edge.src_connector else None
            if src_conn is not None:
                source_x[edge.dst_connector] = src_conn.x

        ordered = sorted(node.in_connectors, key=lambda c, keys=source_x: keys.get(c.name, c.x))
        _place_row(ordered, node.x, node.y - node.height / 2)


def straighten_polyline(points: list[Point]) -> list[Point]:
    """A three-point polyline whose ends share an x is drawn as a straight segment."""
    if len(points) == 3 and points[0].x == points[-1].x:
        return [points[0], points[-1]]
    return points


def _endpoint_connector(graph: LayoutGraph, node_id: str, direction: ConnectorDirection, name: str | None) -> LayoutConnector | None:
    if not name:
        return None
    node = graph.node(node_id)
    if node is None:
        return None
    conn = node.connector(direction, name)
    if conn is None:
        logger.debug("Edge references missing %s connector %r on node %s", direction.value, name, node_id)
    return conn


def anchor_edge(graph: LayoutGraph, edge: LayoutEdge) -> None:
    """Attach the ends of a routed edge to its connectors' boundaries.

    Ends whose connector is missing stay where the layouter put them.
    """
    points = list(edge.points)
    if len(points) < 2:
        return
    src_conn = _endpoint_connector(graph, edge.src, ConnectorDirection.Out, edge.src_connector)
    dst_conn = _endpoint_connector(graph, edge.dst, ConnectorDirection.In, edge.dst_connector)

    if src_conn is not None:
        points[0] = Point(src_conn.x, src_conn.y)
    if dst_conn is not None:
        points[-1] = Point(dst_conn.x, dst_conn.y)
    if src_conn is not None:
        points[0] = intersect_rect(points[0], src_conn.width, src_conn.height, points[-1])
    if dst_conn is not None:
        points[-1] = intersect_rect(points[-1], dst_conn.width, dst_conn.height, points[0])

    edge.points = straighten_polyline(points)
