"""Input graph model and record loader."""

from sdfg_layout.ir.graph import (
    SDFG,
    TOP_LEVEL_SCOPE,
    Block,
    ConditionalBlock,
    ControlFlowRegion,
    DataflowEdge,
    DataflowNode,
    InterstateEdge,
    LoopRegion,
    State,
)
from sdfg_layout.ir.loader import load_sdfg

__all__ = [
    "SDFG",
    "TOP_LEVEL_SCOPE",
    "Block",
    "ConditionalBlock",
    "ControlFlowRegion",
    "DataflowEdge",
    "DataflowNode",
    "InterstateEdge",
    "LoopRegion",
    "State",
    "load_sdfg",
]
