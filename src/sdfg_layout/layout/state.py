"""Dataflow layout of a single state.

Nodes are added by walking the scope tree from the top level; a collapsed
scope hides everything inside it, and edges touching hidden nodes are
redirected to the enclosing scope entry or dropped. When access nodes are
omitted, their producers and consumers are joined by synthesized shortcut
edges instead.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field

from sdfg_layout.constants import EMPTY_NESTED_SDFG_LABEL, LINEHEIGHT, NESTED_SDFG_INSET
from sdfg_layout.ir.graph import DataflowEdge, DataflowNode, State
from sdfg_layout.layout.bbox import calculate_bounding_box, update_edge_bounding_box
from sdfg_layout.layout.connectors import anchor_edge, place_connectors, reorder_in_connectors
from sdfg_layout.layout.offset import offset_graph
from sdfg_layout.layout.sizing import node_size, traits_for
from sdfg_layout.layout.sugiyama import SugiyamaLayout
from sdfg_layout.layout.types import (
    LayoutConnector,
    LayoutContext,
    LayoutEdge,
    LayoutGraph,
    LayoutNode,
    element_uuid,
)
from sdfg_layout.types import ConnectorDirection, Ranker

logger = logging.getLogger(__name__)


@dataclass
class HiddenNode:
    """An omitted access node with the edges that fed it and the edges it fed."""

    node: DataflowNode
    srcs: list[DataflowEdge] = field(default_factory=list)
    dsts: list[DataflowEdge] = field(default_factory=list)


def redirect_edge(edge: DataflowEdge, drawn: set[int], nodes: dict[int, DataflowNode]) -> DataflowEdge | None:
    """The edge as it should be drawn, or ``None`` when it cannot be drawn.

    An edge whose destination is not drawn is dropped. An edge whose source is
    hidden inside a collapsed scope is moved to that scope's entry, if drawn.
    """
    if edge.dst not in drawn:
        return None
    if edge.src in drawn:
        return edge
    src = nodes.get(edge.src)
    if src is None or src.scope_entry is None or src.scope_entry not in drawn:
        return None
    return dataclasses.replace(edge, src=src.scope_entry)


class StateLayouter:
    """Lays out one state's dataflow graph into a ``LayoutGraph``."""

    def __init__(self, state: State, cfg_id: int, ctx: LayoutContext) -> None:
        self.state = state
        self.cfg_id = cfg_id
        self.ctx = ctx
        self.nodes = state.node_index()
        self.graph = LayoutGraph(cfg_id=cfg_id)
        self.drawn: set[int] = set()
        self.hidden: dict[int, HiddenNode] = {}

    def layout(self) -> LayoutGraph:
        for node_id in self.state.top_level_nodes():
            node = self.nodes.get(node_id)
            if node is None:
                logger.debug("State %d lists unknown top-level node %d", self.state.id, node_id)
                continue
            self._add_node(node)

        self._add_edges()
        if self.ctx.config.omit_access_nodes:
            self._add_shortcut_edges()

        config = self.ctx.config
        ranker = Ranker.LongestPath if len(self.state.nodes) >= config.large_state_threshold else Ranker.TightTree
        SugiyamaLayout(config.ranksep, config.nodesep, ranker).layout(self.graph)

        for lnode in self.graph.nodes():
            if lnode.graph is not None and not lnode.collapsed:
                topleft = lnode.topleft()
                bb = calculate_bounding_box(lnode.graph)
                offset_graph(lnode.graph, topleft.x + NESTED_SDFG_INSET - bb.x, topleft.y + NESTED_SDFG_INSET - bb.y)
            place_connectors(lnode)

        reorder_in_connectors(self.graph)
        if config.summarize_edges:
            self._summarize_edges()
        for edge in self.graph.edges():
            anchor_edge(self.graph, edge)
            update_edge_bounding_box(edge)

        bb = calculate_bounding_box(self.graph)
        self.graph.width = bb.width
        self.graph.height = bb.height
        return self.graph

    # ─── Nodes ───────────────────────────────────────────────────────────────

    def _add_node(self, node: DataflowNode) -> None:
        if node.id in self.drawn or node.id in self.hidden:
            return
        traits = traits_for(node.kind)
        if self.ctx.config.omit_access_nodes and traits.omittable:
            self.hidden[node.id] = HiddenNode(node)
            return

        out_names = node.out_connectors
        if node.is_collapsed and traits.scope_entry:
            exit_node = self.state.exit_for_entry(node.id)
            if exit_node is None:
                logger.warning("No exit node found for collapsed scope entry %d", node.id)
            else:
                out_names = exit_node.out_connectors

        size = node_size(node.kind, node.label, len(node.in_connectors), len(out_names), self.ctx.measurer)
        lnode = LayoutNode(
            id=str(node.id),
            uuid=element_uuid(self.cfg_id, self.state.id, node.id),
            kind=node.kind,
            label=node.label,
            shape=traits.shape,
            width=size.width,
            height=size.height,
            collapsed=node.is_collapsed,
            data=node,
        )
        if traits.nested_program:
            self._size_nested_program(node, lnode)

        lnode.in_connectors = [
            LayoutConnector(name, ConnectorDirection.In, index, owner=lnode)
            for index, name in enumerate(node.in_connectors)
        ]
        lnode.out_connectors = [
            LayoutConnector(name, ConnectorDirection.Out, index, owner=lnode) for index, name in enumerate(out_names)
        ]
        self.graph.add_node(lnode)
        self.drawn.add(node.id)

        if node.is_collapsed or node.id not in self.state.scope_dict:
            return
        for child_id in self.state.scope_dict[node.id]:
            child = self.nodes.get(child_id)
            if child is None:
                logger.debug("Scope %d lists unknown node %d", node.id, child_id)
                continue
            self._add_node(child)

    def _size_nested_program(self, node: DataflowNode, lnode: LayoutNode) -> None:
        if node.sdfg is None:
            lnode.width = self.ctx.measurer.measure_text(EMPTY_NESTED_SDFG_LABEL) + 2 * NESTED_SDFG_INSET
            lnode.height = 4 * LINEHEIGHT
            return
        self.ctx.registry.owners[node.sdfg.cfg_list_id] = lnode
        if node.is_collapsed:
            return

        from sdfg_layout.layout.block import layout_control_flow_region

        nested = layout_control_flow_region(node.sdfg, self.ctx)
        bb = calculate_bounding_box(nested)
        lnode.graph = nested
        lnode.width = bb.width + 2 * NESTED_SDFG_INSET
        lnode.height = bb.height + 2 * NESTED_SDFG_INSET

    # ─── Edges ───────────────────────────────────────────────────────────────

    def _add_edges(self) -> None:
        omit = self.ctx.config.omit_access_nodes
        for edge_id, edge in enumerate(self.state.edges):
            hidden_src = self.hidden.get(edge.src)
            hidden_dst = self.hidden.get(edge.dst)
            if hidden_src is not None or hidden_dst is not None:
                if hidden_src is not None:
                    hidden_src.dsts.append(edge)
                if hidden_dst is not None:
                    hidden_dst.srcs.append(edge)
                continue
            # Shortcuts left over from an earlier pass only make sense while access nodes are hidden.
            if edge.shortcut and not omit:
                continue
            drawn_edge = redirect_edge(edge, self.drawn, self.nodes)
            if drawn_edge is None:
                continue
            self.graph.add_edge(self._layout_edge(drawn_edge, edge_id, edge))

    def _consumers(self, start: int) -> list[DataflowEdge]:
        """Edges leaving a chain of hidden nodes that begins at ``start``."""
        result: list[DataflowEdge] = []
        seen = {start}
        queue = [start]
        index = 0
        while index < len(queue):
            hidden = self.hidden[queue[index]]
            index += 1
            for edge in hidden.dsts:
                if edge.dst not in self.hidden:
                    result.append(edge)
                elif edge.dst not in seen:
                    seen.add(edge.dst)
                    queue.append(edge.dst)
        return result

    def _add_shortcut_edges(self) -> None:
        next_id = len(self.state.edges)
        for hidden_id, hidden in self.hidden.items():
            producers = [edge for edge in hidden.srcs if edge.src not in self.hidden]
            if not producers:
                continue
            consumers = self._consumers(hidden_id)
            for producer in producers:
                for consumer in consumers:
                    shortcut = DataflowEdge(
                        src=producer.src,
                        dst=consumer.dst,
                        src_connector=producer.src_connector,
                        dst_connector=consumer.dst_connector,
                        shortcut=True,
                    )
                    drawn_edge = redirect_edge(shortcut, self.drawn, self.nodes)
                    if drawn_edge is None or self._has_edge(drawn_edge):
                        continue
                    self.graph.add_edge(self._layout_edge(drawn_edge, next_id, None))
                    next_id += 1

    def _has_edge(self, edge: DataflowEdge) -> bool:
        for existing in self.graph.out_edges(str(edge.src)):
            if existing.dst == str(edge.dst) and existing.dst_connector == edge.dst_connector:
                return True
        return False

    def _layout_edge(self, edge: DataflowEdge, edge_id: int, original: DataflowEdge | None) -> LayoutEdge:
        return LayoutEdge(
            src=str(edge.src),
            dst=str(edge.dst),
            key=str(edge_id),
            uuid=element_uuid(self.cfg_id, self.state.id, edge_id=edge_id),
            src_connector=edge.src_connector,
            dst_connector=edge.dst_connector,
            shortcut=edge.shortcut,
            data=original,
        )

    def _summarize_edges(self) -> None:
        threshold = self.ctx.config.summarize_threshold
        for lnode in self.graph.nodes():
            traits = traits_for(lnode.kind)
            if not (traits.nested_program or traits.scope):
                continue
            if len(lnode.in_connectors) > threshold:
                lnode.summarize_in_edges = True
                for edge in self.graph.in_edges(lnode.id):
                    if edge.dst_connector is not None:
                        edge.summarized = True
            if len(lnode.out_connectors) > threshold:
                lnode.summarize_out_edges = True
                for edge in self.graph.out_edges(lnode.id):
                    if edge.src_connector is not None:
                        edge.summarized = True


def layout_state(state: State, cfg_id: int, ctx: LayoutContext) -> LayoutGraph:
    return StateLayouter(state, cfg_id, ctx).layout()
