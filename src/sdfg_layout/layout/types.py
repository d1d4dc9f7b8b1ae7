"""Layout types shared across the layouters, the engine and geometry export."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import networkx as nx

from sdfg_layout.types import ConnectorDirection, ElementType, NodeShape

if TYPE_CHECKING:
    from sdfg_layout.config import LayoutConfig
    from sdfg_layout.layout.measure import TextMeasurer


def element_uuid(cfg_id: int, state_id: int = -1, node_id: int = -1, edge_id: int = -1) -> str:
    """Stable identifier ``"cfg/state/node/edge"``; unused positions are ``-1``."""
    return f"{cfg_id}/{state_id}/{node_id}/{edge_id}"


@dataclass
class Point:
    x: float
    y: float


@dataclass
class BoundingBox:
    """Axis-aligned box; ``x``/``y`` is the top-left corner."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(eq=False)
class LayoutConnector:
    """A named attachment point on a dataflow node; x/y is its center."""

    name: str
    direction: ConnectorDirection
    index: int
    owner: LayoutNode = field(repr=False)
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass(eq=False)
class LayoutNode:
    """A positioned node or block. x/y is the center in absolute coordinates."""

    id: str
    uuid: str
    kind: ElementType
    label: str = ""
    shape: NodeShape = NodeShape.Rectangle
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    collapsed: bool = False
    in_connectors: list[LayoutConnector] = field(default_factory=list)
    out_connectors: list[LayoutConnector] = field(default_factory=list)
    graph: LayoutGraph | None = field(default=None, repr=False)
    condition: str | None = None  # branch nodes of a conditional block
    summarize_in_edges: bool = False
    summarize_out_edges: bool = False
    data: Any = field(default=None, repr=False)

    def topleft(self) -> Point:
        return Point(self.x - self.width / 2, self.y - self.height / 2)

    def bounds(self) -> BoundingBox:
        top = self.topleft()
        return BoundingBox(top.x, top.y, self.width, self.height)

    def connector(self, direction: ConnectorDirection, name: str) -> LayoutConnector | None:
        row = self.in_connectors if direction is ConnectorDirection.In else self.out_connectors
        for conn in row:
            if conn.name == name:
                return conn
        return None


@dataclass(eq=False)
class LayoutEdge:
    """A routed edge; x/y/width/height describe the polyline's bounding box."""

    src: str
    dst: str
    key: str
    uuid: str
    src_connector: str | None = None
    dst_connector: str | None = None
    points: list[Point] = field(default_factory=list)
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    shortcut: bool = False
    summarized: bool = False
    data: Any = field(default=None, repr=False)


class LayoutGraph:
    """A graph of ``LayoutNode``s and ``LayoutEdge``s backed by a networkx MultiDiGraph.

    Node attribute ``"data"`` holds the LayoutNode, edge attribute ``"data"``
    holds the LayoutEdge. Iteration follows insertion order.
    """

    def __init__(self, cfg_id: int | None = None) -> None:
        self.cfg_id = cfg_id
        self.digraph: nx.MultiDiGraph = nx.MultiDiGraph()
        self.width: float = 0.0
        self.height: float = 0.0

    def add_node(self, node: LayoutNode) -> None:
        self.digraph.add_node(node.id, data=node)

    def add_edge(self, edge: LayoutEdge) -> None:
        self.digraph.add_edge(edge.src, edge.dst, key=edge.key, data=edge)

    def has_node(self, node_id: str) -> bool:
        return node_id in self.digraph

    def node(self, node_id: str) -> LayoutNode | None:
        if node_id not in self.digraph:
            return None
        return self.digraph.nodes[node_id]["data"]

    def nodes(self) -> list[LayoutNode]:
        return [data for _, data in self.digraph.nodes(data="data")]

    def edges(self) -> list[LayoutEdge]:
        return [data for _, _, data in self.digraph.edges(data="data")]

    def in_edges(self, node_id: str) -> list[LayoutEdge]:
        return [data for _, _, data in self.digraph.in_edges(node_id, data="data")]

    def out_edges(self, node_id: str) -> list[LayoutEdge]:
        return [data for _, _, data in self.digraph.out_edges(node_id, data="data")]

    def node_count(self) -> int:
        return self.digraph.number_of_nodes()

    def edge_count(self) -> int:
        return self.digraph.number_of_edges()

    def __iter__(self) -> Iterator[LayoutNode]:
        return iter(self.nodes())

    def __len__(self) -> int:
        return self.node_count()


@dataclass
class LayoutRegistry:
    """Layout graphs by region id, and the nested-program node owning each sub-program."""

    graphs: dict[int, LayoutGraph] = field(default_factory=dict)
    owners: dict[int, LayoutNode] = field(default_factory=dict)

    def graph(self, cfg_id: int) -> LayoutGraph | None:
        return self.graphs.get(cfg_id)

    def owner(self, cfg_id: int) -> LayoutNode | None:
        return self.owners.get(cfg_id)

    def replace(self, other: LayoutRegistry) -> None:
        """Swap in the contents of ``other``; nothing from the previous pass survives."""
        self.graphs = dict(other.graphs)
        self.owners = dict(other.owners)

    def clear(self) -> None:
        self.graphs = {}
        self.owners = {}

    def __contains__(self, cfg_id: object) -> bool:
        return cfg_id in self.graphs

    def __len__(self) -> int:
        return len(self.graphs)


@dataclass
class LayoutContext:
    """Everything one layout pass threads through the recursion."""

    measurer: TextMeasurer
    config: LayoutConfig
    registry: LayoutRegistry = field(default_factory=LayoutRegistry)
