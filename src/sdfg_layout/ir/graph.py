"""Input graph model: a nested control-flow / dataflow program.

A program (``SDFG``) is a control-flow region whose blocks are states, loop
regions, conditional blocks or further control-flow regions. States hold the
dataflow nodes and memlet edges; a nested-program node embeds another
``SDFG``. The layout engine only reads this model; geometry is kept in the
layout graphs and projected back onto ``source`` records on request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sdfg_layout.types import ElementType

# Scope-dictionary key for nodes that are not nested in any scope.
TOP_LEVEL_SCOPE: int = -1


@dataclass
class DataflowNode:
    id: int
    kind: ElementType
    label: str = ""
    in_connectors: list[str] = field(default_factory=list)
    out_connectors: list[str] = field(default_factory=list)
    scope_entry: int | None = None
    is_collapsed: bool = False
    sdfg: SDFG | None = None
    source: dict[str, Any] | None = field(default=None, repr=False, compare=False)


@dataclass
class DataflowEdge:
    """A memlet between two dataflow nodes, optionally via named connectors."""

    src: int
    dst: int
    src_connector: str | None = None
    dst_connector: str | None = None
    shortcut: bool = False
    source: dict[str, Any] | None = field(default=None, repr=False, compare=False)


@dataclass
class InterstateEdge:
    src: int
    dst: int
    label: str = ""
    source: dict[str, Any] | None = field(default=None, repr=False, compare=False)


@dataclass
class Block:
    """Common attributes of every control-flow block."""

    id: int = 0
    label: str = ""
    kind: ElementType = ElementType.Unknown
    is_collapsed: bool = False
    source: dict[str, Any] | None = field(default=None, repr=False, compare=False)


@dataclass
class State(Block):
    kind: ElementType = ElementType.SDFGState
    nodes: list[DataflowNode] = field(default_factory=list)
    edges: list[DataflowEdge] = field(default_factory=list)
    scope_dict: dict[int, list[int]] = field(default_factory=dict)

    def node_index(self) -> dict[int, DataflowNode]:
        return {node.id: node for node in self.nodes}

    def top_level_nodes(self) -> list[int]:
        """Ids of the nodes outside every scope; all nodes without a scope dict."""
        if TOP_LEVEL_SCOPE in self.scope_dict:
            return list(self.scope_dict[TOP_LEVEL_SCOPE])
        return [node.id for node in self.nodes]

    def exit_for_entry(self, entry_id: int) -> DataflowNode | None:
        for node in self.nodes:
            if node.kind.name.endswith("Exit") and node.scope_entry == entry_id:
                return node
        return None


@dataclass
class ControlFlowRegion(Block):
    kind: ElementType = ElementType.ControlFlowRegion
    cfg_list_id: int = 0
    nodes: list[Block] = field(default_factory=list)
    edges: list[InterstateEdge] = field(default_factory=list)
    start_block: int | None = None

    def block_index(self) -> dict[int, Block]:
        return {block.id: block for block in self.nodes}


@dataclass
class LoopRegion(ControlFlowRegion):
    kind: ElementType = ElementType.LoopRegion
    loop_condition: str | None = None
    init_statement: str | None = None
    update_statement: str | None = None
    inverted: bool = False


@dataclass
class ConditionalBlock(Block):
    """Branches are ``(condition, region)`` pairs; ``None`` is the else branch."""

    kind: ElementType = ElementType.ConditionalBlock
    branches: list[tuple[str | None, ControlFlowRegion]] = field(default_factory=list)


@dataclass
class SDFG(ControlFlowRegion):
    kind: ElementType = ElementType.SDFG
