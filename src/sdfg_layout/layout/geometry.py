"""Export laid-out geometry and write it back onto input records.

Geometry is keyed by each element's ``"cfg/state/node/edge"`` identifier.
Projection stores it under ``attributes.layout`` of the element's source
record, the shape viewers read. Synthesized shortcut edges have no source
record and are never projected.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from sdfg_layout.ir.graph import SDFG, ConditionalBlock, ControlFlowRegion, State
from sdfg_layout.layout.types import LayoutConnector, LayoutEdge, LayoutGraph, LayoutNode, Point, element_uuid

logger = logging.getLogger(__name__)


@dataclass
class ElementGeometry:
    """Position and size of one element; x/y is the center."""

    x: float
    y: float
    width: float
    height: float
    points: list[Point] = field(default_factory=list)
    in_connectors: dict[str, Point] = field(default_factory=dict)
    out_connectors: dict[str, Point] = field(default_factory=dict)

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {"x": self.x, "y": self.y, "width": self.width, "height": self.height}
        if self.points:
            record["points"] = [{"x": p.x, "y": p.y} for p in self.points]
        if self.in_connectors:
            record["in_connectors"] = {name: {"x": p.x, "y": p.y} for name, p in self.in_connectors.items()}
        if self.out_connectors:
            record["out_connectors"] = {name: {"x": p.x, "y": p.y} for name, p in self.out_connectors.items()}
        return record


def _connector_points(connectors: list[LayoutConnector]) -> dict[str, Point]:
    return {conn.name: Point(conn.x, conn.y) for conn in connectors}


def _node_geometry(node: LayoutNode) -> ElementGeometry:
    return ElementGeometry(
        x=node.x,
        y=node.y,
        width=node.width,
        height=node.height,
        in_connectors=_connector_points(node.in_connectors),
        out_connectors=_connector_points(node.out_connectors),
    )


def _edge_geometry(edge: LayoutEdge) -> ElementGeometry:
    return ElementGeometry(
        x=edge.x,
        y=edge.y,
        width=edge.width,
        height=edge.height,
        points=[Point(p.x, p.y) for p in edge.points],
    )


def collect_geometry(graph: LayoutGraph) -> dict[str, ElementGeometry]:
    """Geometry of every laid-out element reachable from ``graph``, by identifier."""
    geometry: dict[str, ElementGeometry] = {}
    _collect(graph, geometry)
    return geometry


def _collect(graph: LayoutGraph, geometry: dict[str, ElementGeometry]) -> None:
    for node in graph.nodes():
        geometry[node.uuid] = _node_geometry(node)
        if node.graph is not None and not node.collapsed:
            _collect(node.graph, geometry)
    for edge in graph.edges():
        if not edge.shortcut:
            geometry[edge.uuid] = _edge_geometry(edge)


def iter_element_records(sdfg: SDFG) -> Iterator[tuple[str, dict[str, Any] | None]]:
    """Every element of the program with its identifier and source record."""
    yield from _region_records(sdfg)


def _region_records(region: ControlFlowRegion) -> Iterator[tuple[str, dict[str, Any] | None]]:
    cfg_id = region.cfg_list_id
    for block in region.nodes:
        yield element_uuid(cfg_id, block.id), block.source
        if isinstance(block, ControlFlowRegion):
            yield from _region_records(block)
        elif isinstance(block, ConditionalBlock):
            for _condition, branch in block.branches:
                yield element_uuid(branch.cfg_list_id), branch.source
                yield from _region_records(branch)
        elif isinstance(block, State):
            for node in block.nodes:
                yield element_uuid(cfg_id, block.id, node.id), node.source
                if node.sdfg is not None:
                    yield from _region_records(node.sdfg)
            for edge_id, edge in enumerate(block.edges):
                yield element_uuid(cfg_id, block.id, edge_id=edge_id), edge.source
    for edge_id, edge in enumerate(region.edges):
        yield element_uuid(cfg_id, edge_id=edge_id), edge.source


def project_geometry(sdfg: SDFG, geometry: dict[str, ElementGeometry]) -> int:
    """Store geometry under ``attributes.layout`` of each element's source record.

    Elements without geometry (inside collapsed blocks, or not drawn) are left
    untouched. Returns the number of records written.
    """
    written = 0
    for uuid, record in iter_element_records(sdfg):
        geom = geometry.get(uuid)
        if geom is None or record is None:
            continue
        attributes = record.setdefault("attributes", {})
        if attributes is None:
            attributes = record["attributes"] = {}
        attributes["layout"] = geom.to_record()
        written += 1
    logger.debug("Projected geometry onto %d records", written)
    return written
