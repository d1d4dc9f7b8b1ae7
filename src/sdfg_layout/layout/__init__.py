"""Layout engine public API."""

from __future__ import annotations

from sdfg_layout.layout.bbox import calculate_bounding_box, calculate_edge_bounding_box
from sdfg_layout.layout.block import layout_conditional_block, layout_control_flow_region
from sdfg_layout.layout.engine import LayoutEngine, layout_sdfg
from sdfg_layout.layout.geometry import ElementGeometry, collect_geometry, project_geometry
from sdfg_layout.layout.measure import MonospaceMeasurer, PillowMeasurer, TextMeasurer, font_override
from sdfg_layout.layout.offset import offset_graph
from sdfg_layout.layout.state import layout_state
from sdfg_layout.layout.state_machine import StateMachineLayout
from sdfg_layout.layout.sugiyama import SugiyamaLayout
from sdfg_layout.layout.types import (
    BoundingBox,
    LayoutConnector,
    LayoutContext,
    LayoutEdge,
    LayoutGraph,
    LayoutNode,
    LayoutRegistry,
    Point,
    element_uuid,
)

__all__ = [
    "BoundingBox",
    "ElementGeometry",
    "LayoutConnector",
    "LayoutContext",
    "LayoutEdge",
    "LayoutEngine",
    "LayoutGraph",
    "LayoutNode",
    "LayoutRegistry",
    "MonospaceMeasurer",
    "PillowMeasurer",
    "Point",
    "StateMachineLayout",
    "SugiyamaLayout",
    "TextMeasurer",
    "calculate_bounding_box",
    "calculate_edge_bounding_box",
    "collect_geometry",
    "element_uuid",
    "font_override",
    "layout_conditional_block",
    "layout_control_flow_region",
    "layout_sdfg",
    "layout_state",
    "offset_graph",
    "project_geometry",
]
