from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Iterable

from apisurface.domain.models import STATIC_CASSETTE, Endpoint
from apisurface.graph.model import Graph, GraphEdge, GraphNode


@dataclass(frozen=True)
class GraphBuildResult:
    graph: Graph
    generated_at: int


def endpoint_id(name: str) -> str:
    return f"endpoint:{name}"


def cassette_id(label: str) -> str:
    return f"cassette:{label}"


def build_endpoint_graph(endpoints: Iterable[Endpoint]) -> GraphBuildResult:
    """
    Build the recording graph of a set of endpoints.

    Nodes:
      - endpoint: endpoint name
      - cassette: cassette label (recorded endpoints only)

    Edges:
      - endpoint -> upstream endpoint (DEPENDS_ON)
      - cassette -> endpoint (RECORDS)

    A DEPENDS_ON edge may point at a name no endpoint declares; the node is
    still added so the dangling reference shows up in exports.
    """
    g = Graph()
    now = int(time.time())

    for ep in endpoints:
        eid = endpoint_id(ep.name)
        g.add_node(GraphNode(id=eid, type="endpoint", label=ep.name))

        if ep.cassette and ep.cassette != STATIC_CASSETTE:
            cid = cassette_id(ep.cassette)
            g.add_node(GraphNode(id=cid, type="cassette", label=ep.cassette))
            g.add_edge(GraphEdge(src=cid, dst=eid, type="RECORDS"))

        if ep.depends_on:
            did = endpoint_id(ep.depends_on)
            g.add_node(GraphNode(id=did, type="endpoint", label=ep.depends_on))
            g.add_edge(GraphEdge(src=eid, dst=did, type="DEPENDS_ON"))

    g.sort_edges()

    return GraphBuildResult(graph=g, generated_at=now)


def to_dot(g: Graph) -> str:
    lines = ["digraph apisurface {", '  rankdir="LR";', '  node [shape="box"];']

    for node in g.sorted_nodes():
        label = node.label.replace('"', '\\"')
        shape = "box" if node.type == "endpoint" else "folder"
        lines.append(f'  "{node.id}" [label="{label}", shape="{shape}"];')

    for e in g.edges:
        lines.append(f'  "{e.src}" -> "{e.dst}" [label="{e.type}"];')

    lines.append("}")
    return "\n".join(lines)
