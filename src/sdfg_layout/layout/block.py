"""Layout of control-flow regions and conditional blocks.

Every block is sized first: a collapsed block gets a fixed one-line height;
an expanded block is laid out recursively and grows by a margin around its
content, plus header rows for loops and conditionals. The region's blocks
are then placed (vertically when possible) and each expanded block's
interior is moved into place.
"""

from __future__ import annotations

import logging

from sdfg_layout.config import LayoutConfig
from sdfg_layout.constants import BLOCK_MARGIN, COLLAPSED_BLOCK_HEIGHT, CONDITION_SPACING
from sdfg_layout.errors import StateMachineLayoutError
from sdfg_layout.ir.graph import Block, ConditionalBlock, ControlFlowRegion, LoopRegion, State
from sdfg_layout.layout.bbox import calculate_bounding_box, update_edge_bounding_box
from sdfg_layout.layout.offset import offset_graph
from sdfg_layout.layout.sizing import (
    collapsed_block_size,
    condition_text,
    loop_extra_height,
    loop_header_height,
)
from sdfg_layout.layout.state import layout_state
from sdfg_layout.layout.state_machine import StateMachineLayout
from sdfg_layout.layout.sugiyama import SugiyamaLayout
from sdfg_layout.layout.types import LayoutContext, LayoutEdge, LayoutGraph, LayoutNode, element_uuid

logger = logging.getLogger(__name__)


def layout_control_flow_region(cfg: ControlFlowRegion, ctx: LayoutContext) -> LayoutGraph:
    """Lay out a region and register its graph under the region's ``cfg_list_id``."""
    graph = LayoutGraph(cfg_id=cfg.cfg_list_id)
    for block in cfg.nodes:
        graph.add_node(_layout_block(block, cfg, ctx))

    for edge_id, edge in enumerate(cfg.edges):
        src, dst = str(edge.src), str(edge.dst)
        if not graph.has_node(src) or not graph.has_node(dst):
            logger.warning("Interstate edge %d in region %d references a missing block", edge_id, cfg.cfg_list_id)
            continue
        graph.add_edge(
            LayoutEdge(src=src, dst=dst, key=str(edge_id), uuid=element_uuid(cfg.cfg_list_id, edge_id=edge_id), data=edge)
        )

    start = str(cfg.start_block) if cfg.start_block is not None else None
    place_blocks(graph, ctx.config, start)
    for edge in graph.edges():
        update_edge_bounding_box(edge)
    for lnode in graph.nodes():
        _offset_interior(lnode)

    bb = calculate_bounding_box(graph)
    graph.width = bb.width
    graph.height = bb.height
    ctx.registry.graphs[cfg.cfg_list_id] = graph
    return graph


def place_blocks(graph: LayoutGraph, config: LayoutConfig, start: str | None = None) -> None:
    """Vertical state-machine layout, or the layered layout when that is off or fails."""
    if config.vertical_state_machine:
        try:
            StateMachineLayout(config.ranksep, config.nodesep).layout(graph, start)
            return
        except StateMachineLayoutError as exc:
            logger.debug("Vertical layout failed for region %s, using layered layout: %s", graph.cfg_id, exc)
    SugiyamaLayout(config.ranksep, config.nodesep).layout(graph)


def layout_conditional_block(block: ConditionalBlock, ctx: LayoutContext) -> LayoutGraph:
    """Place a conditional's branches side by side below the condition row.

    Coordinates are relative to the conditional block's top-left corner.
    """
    graph = LayoutGraph()
    branch_nodes: list[LayoutNode] = []
    for index, (condition, region) in enumerate(block.branches):
        bnode = LayoutNode(
            id=str(index),
            uuid=element_uuid(region.cfg_list_id),
            kind=region.kind,
            label=region.label,
            collapsed=region.is_collapsed,
            condition=condition,
            data=region,
        )
        if region.is_collapsed:
            size = collapsed_block_size(region, ctx.measurer)
            bnode.width, bnode.height = size.width, size.height
        else:
            bnode.graph = layout_control_flow_region(region, ctx)
            bb = calculate_bounding_box(bnode.graph)
            bnode.width = bb.width + 2 * BLOCK_MARGIN
            bnode.height = bb.height + 2 * BLOCK_MARGIN
        branch_nodes.append(bnode)

    branch_height = max((b.height for b in branch_nodes if not b.collapsed), default=COLLAPSED_BLOCK_HEIGHT)
    offset = 0.0
    for bnode in branch_nodes:
        if not bnode.collapsed:
            bnode.height = branch_height
        bnode.x = offset + bnode.width / 2
        bnode.y = CONDITION_SPACING + bnode.height / 2
        if bnode.graph is not None:
            bb = calculate_bounding_box(bnode.graph)
            offset_graph(bnode.graph, offset + BLOCK_MARGIN - bb.x, CONDITION_SPACING + BLOCK_MARGIN - bb.y)
        graph.add_node(bnode)
        offset += bnode.width

    bb = calculate_bounding_box(graph)
    graph.width = bb.width
    graph.height = bb.height
    return graph


def _layout_block(block: Block, cfg: ControlFlowRegion, ctx: LayoutContext) -> LayoutNode:
    lnode = LayoutNode(
        id=str(block.id),
        uuid=element_uuid(cfg.cfg_list_id, block.id),
        kind=block.kind,
        label=block.label,
        collapsed=block.is_collapsed,
        data=block,
    )
    if block.is_collapsed:
        size = collapsed_block_size(block, ctx.measurer)
        lnode.width, lnode.height = size.width, size.height
        return lnode

    if isinstance(block, ConditionalBlock):
        lnode.graph = layout_conditional_block(block, ctx)
        width = 0.0
        height = 0.0
        for branch in lnode.graph.nodes():
            width += max(branch.width, ctx.measurer.measure_text(condition_text(branch.condition)))
            height = max(height, branch.height)
        lnode.width = width
        lnode.height = height + CONDITION_SPACING
        return lnode

    if isinstance(block, ControlFlowRegion):
        lnode.graph = layout_control_flow_region(block, ctx)
    elif isinstance(block, State):
        lnode.graph = layout_state(block, cfg.cfg_list_id, ctx)
    else:
        lnode.graph = LayoutGraph(cfg_id=cfg.cfg_list_id)

    bb = calculate_bounding_box(lnode.graph)
    lnode.width = bb.width + 2 * BLOCK_MARGIN
    lnode.height = bb.height + 2 * BLOCK_MARGIN
    if isinstance(block, LoopRegion):
        lnode.height += loop_extra_height(block)
    return lnode


def _offset_interior(lnode: LayoutNode) -> None:
    if lnode.collapsed or lnode.graph is None:
        return
    topleft = lnode.topleft()
    if isinstance(lnode.data, ConditionalBlock):
        offset_graph(lnode.graph, topleft.x, topleft.y)
        return
    top = BLOCK_MARGIN
    if isinstance(lnode.data, LoopRegion):
        top += loop_header_height(lnode.data)
    bb = calculate_bounding_box(lnode.graph)
    offset_graph(lnode.graph, topleft.x + BLOCK_MARGIN - bb.x, topleft.y + top - bb.y)
