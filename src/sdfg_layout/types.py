"""Shared type definitions for sdfg-layout.

Enums used across the input model, the layout engine and the CLI.
"""

from __future__ import annotations

from enum import Enum, auto


class ElementType(Enum):
    """Kind of a graph element, resolved once when the input is loaded."""

    # Dataflow nodes
    AccessNode = "AccessNode"
    Tasklet = "Tasklet"
    LibraryNode = "LibraryNode"
    Reduce = "Reduce"
    NestedSDFG = "NestedSDFG"
    ExternalNestedSDFG = "ExternalNestedSDFG"
    MapEntry = "MapEntry"
    MapExit = "MapExit"
    ConsumeEntry = "ConsumeEntry"
    ConsumeExit = "ConsumeExit"
    PipelineEntry = "PipelineEntry"
    PipelineExit = "PipelineExit"

    # Control flow blocks
    SDFG = "SDFG"
    SDFGState = "SDFGState"
    ControlFlowRegion = "ControlFlowRegion"
    LoopRegion = "LoopRegion"
    ConditionalBlock = "ConditionalBlock"

    Unknown = "Unknown"

    @classmethod
    def from_name(cls, name: str | None) -> ElementType:
        """Resolve a type string; anything unrecognized becomes ``Unknown``."""
        if name is None:
            return cls.Unknown
        try:
            return cls(name)
        except ValueError:
            return cls.Unknown


class NodeShape(Enum):
    Rectangle = auto()  # nested programs, unknown kinds
    Ellipse = auto()  # access nodes
    Trapezoid = auto()  # scope entry / exit
    Octagon = auto()  # tasklets
    FoldedRectangle = auto()  # library nodes
    Triangle = auto()  # reductions

    @classmethod
    def default(cls) -> NodeShape:
        return cls.Rectangle


class ConnectorDirection(Enum):
    In = "in"
    Out = "out"


class Ranker(Enum):
    """Layer assignment strategy for the hierarchical layout."""

    TightTree = auto()  # longest path, then sources pulled toward successors
    LongestPath = auto()  # plain longest path, used for very large states
