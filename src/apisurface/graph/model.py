from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


NodeType = Literal["endpoint", "cassette"]
EdgeType = Literal["DEPENDS_ON", "RECORDS"]


@dataclass(frozen=True)
class GraphNode:
    id: str
    type: NodeType
    label: str


@dataclass(frozen=True)
class GraphEdge:
    src: str
    dst: str
    type: EdgeType


@dataclass
class Graph:
    """Endpoint/cassette graph. Nodes keep the first label seen; edges are unique."""

    nodes: dict[str, GraphNode] = field(default_factory=dict)
    edges: list[GraphEdge] = field(default_factory=list)

    def add_node(self, node: GraphNode) -> None:
        self.nodes.setdefault(node.id, node)

    def add_edge(self, edge: GraphEdge) -> None:
        if edge not in self.edges:
            self.edges.append(edge)

    def sorted_nodes(self) -> list[GraphNode]:
        return sorted(self.nodes.values(), key=lambda n: (n.type, n.id))

    def sort_edges(self) -> None:
        # stable output for diffs
        self.edges.sort(key=lambda e: (e.type, e.src, e.dst))
