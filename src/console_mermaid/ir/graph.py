"""Graph IR: converts a flowchart AST into a networkx MultiDiGraph.

This module owns the canonical graph used by all downstream phases (layering,
coordinate planning, routing, rendering). Subgraph blocks are flattened into
the main node/edge lists in source order, and each subgraph survives as a
cluster that records which nodes it encloses. Edges are keyed by their
declaration index so that parallel edges stay distinct.

The layout passes write their results into the per-node fields of
``NodeData``: ``rank`` (layering), ``order`` (crossing reduction) and the box
bounds (coordinate planner).
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

import networkx as nx

from console_mermaid.errors import DanglingReferenceError
from console_mermaid.ir import ast
from console_mermaid.types import Direction, EdgeKind, EdgeType, NodeShape

logger = logging.getLogger(__name__)


@dataclass
class NodeData:
    id: str
    label: str
    shape: NodeShape
    decl_index: int
    cluster: str | None = None
    rank: int = -1
    order: int = -1
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.x + self.width and self.y <= y < self.y + self.height


@dataclass
class EdgeData:
    index: int
    from_id: str
    to_id: str
    edge_type: EdgeType
    label: str | None
    parallel_index: int = 0
    is_back: bool = False
    kind: EdgeKind | None = None

    @property
    def is_self_loop(self) -> bool:
        return self.from_id == self.to_id


@dataclass
class ClusterData:
    """A subgraph block: a titled group of nodes, possibly nested."""

    id: str
    title: str
    parent: str | None
    depth: int
    decl_index: int
    nodes: list[str] = field(default_factory=list)


class GraphIR:
    """The validated flowchart model built from an AST Graph.

    Wraps a networkx MultiDiGraph and exposes helpers for topology and
    cluster queries.
    """

    def __init__(
        self,
        digraph: nx.MultiDiGraph,
        direction: Direction,
        padding_x: int | None = None,
        padding_y: int | None = None,
        clusters: dict[str, ClusterData] | None = None,
    ) -> None:
        self.digraph = digraph
        self.direction = direction
        self.padding_x = padding_x
        self.padding_y = padding_y
        self.clusters = clusters or {}

    @classmethod
    def from_ast(cls, ast_graph: ast.Graph, direction_override: Direction | None = None) -> GraphIR:
        """Build and validate a GraphIR from an AST Graph.

        Nodes and edges keep the order in which the source first mentions
        them, wherever the mention sits in the subgraph tree. A node belongs
        to the innermost subgraph of its first mention inside any subgraph.

        Raises:
            DanglingReferenceError: If an edge names a node that was never declared.
        """
        mentions = sorted(_walk_nodes(ast_graph, ()), key=lambda m: m[0].seq)
        declared: list[ast.Node] = []
        membership: dict[str, tuple[ast.Subgraph, ...]] = {}
        for node, path in mentions:
            ast.upsert_node(declared, node)
            if path and node.id not in membership:
                membership[node.id] = path

        clusters, keys = _build_clusters(ast_graph, membership, [n.id for n in declared])

        digraph: nx.MultiDiGraph = nx.MultiDiGraph()
        for i, node in enumerate(declared):
            path = membership.get(node.id)
            data = NodeData(id=node.id, label=node.label, shape=node.shape, decl_index=i)
            if path:
                data.cluster = keys[id(path[-1])]
            digraph.add_node(node.id, data=data)

        pair_counts: dict[tuple[str, str], int] = {}
        edges = sorted(_walk_edges(ast_graph), key=lambda e: e.seq)
        for index, edge in enumerate(edges):
            for endpoint in (edge.from_id, edge.to_id):
                if endpoint not in digraph:
                    raise DanglingReferenceError(
                        f"edge {index} ({edge.from_id} -> {edge.to_id}) references unknown node '{endpoint}'"
                    )
            pair = (edge.from_id, edge.to_id)
            data = EdgeData(
                index=index,
                from_id=edge.from_id,
                to_id=edge.to_id,
                edge_type=edge.edge_type,
                label=edge.label or None,
                parallel_index=pair_counts.get(pair, 0),
            )
            pair_counts[pair] = data.parallel_index + 1
            digraph.add_edge(edge.from_id, edge.to_id, key=index, data=data)

        direction = direction_override if direction_override is not None else ast_graph.direction
        logger.debug(
            "graph model: %d nodes, %d edges, %d clusters, direction %s",
            digraph.number_of_nodes(),
            digraph.number_of_edges(),
            len(clusters),
            direction.value,
        )
        return cls(
            digraph=digraph,
            direction=direction,
            padding_x=ast_graph.padding_x,
            padding_y=ast_graph.padding_y,
            clusters=clusters,
        )

    def node(self, node_id: str) -> NodeData:
        return self.digraph.nodes[node_id]["data"]

    def nodes(self) -> list[NodeData]:
        """All nodes in declaration order."""
        return [self.digraph.nodes[n]["data"] for n in self.digraph.nodes]

    def edges(self) -> list[EdgeData]:
        """All edges in declaration order."""
        found = [attrs["data"] for _, _, attrs in self.digraph.edges(data=True)]
        return sorted(found, key=lambda e: e.index)

    def out_edges(self, node_id: str) -> list[EdgeData]:
        found = [attrs["data"] for _, _, attrs in self.digraph.out_edges(node_id, data=True)]
        return sorted(found, key=lambda e: e.index)

    def node_count(self) -> int:
        return self.digraph.number_of_nodes()

    def edge_count(self) -> int:
        return self.digraph.number_of_edges()

    # ── clusters ──

    def cluster_path(self, node_id: str) -> list[str]:
        """Clusters enclosing a node, outermost first."""
        path: list[str] = []
        cid = self.node(node_id).cluster
        while cid is not None:
            path.append(cid)
            cid = self.clusters[cid].parent
        return path[::-1]

    def child_clusters(self, parent: str | None) -> list[ClusterData]:
        return [c for c in self.clusters.values() if c.parent == parent]

    def cluster_members(self, cluster_id: str) -> list[str]:
        """Every node inside the cluster or its descendants, in declaration order."""
        return [n.id for n in self.nodes() if cluster_id in self.cluster_path(n.id)]


def _walk_nodes(
    graph: ast.Graph | ast.Subgraph, path: tuple[ast.Subgraph, ...]
) -> Iterator[tuple[ast.Node, tuple[ast.Subgraph, ...]]]:
    for node in graph.nodes:
        yield (node, path)
    for sg in graph.subgraphs:
        yield from _walk_nodes(sg, path + (sg,))


def _walk_edges(graph: ast.Graph | ast.Subgraph) -> Iterator[ast.Edge]:
    yield from graph.edges
    for sg in graph.subgraphs:
        yield from _walk_edges(sg)


def _build_clusters(
    ast_graph: ast.Graph,
    membership: dict[str, tuple[ast.Subgraph, ...]],
    order: list[str],
) -> tuple[dict[str, ClusterData], dict[int, str]]:
    """Clusters in pre-order, plus the cluster id of each subgraph object.

    Subgraphs that end up enclosing no node are dropped.
    """
    clusters: dict[str, ClusterData] = {}
    keys: dict[int, str] = {}
    position = {node_id: i for i, node_id in enumerate(order)}

    def visit(sg: ast.Subgraph, parent: str | None, depth: int) -> bool:
        key = sg.name
        suffix = 2
        while key in clusters:
            key = f"{sg.name}_{suffix}"
            suffix += 1
        cluster = ClusterData(id=key, title=sg.display_title(), parent=parent, depth=depth, decl_index=len(keys))
        clusters[key] = cluster
        keys[id(sg)] = key
        cluster.nodes = sorted(
            (nid for nid, path in membership.items() if path[-1] is sg),
            key=position.__getitem__,
        )
        kept = [visit(child, key, depth + 1) for child in sg.subgraphs]
        if cluster.nodes or any(kept):
            return True
        logger.debug("subgraph '%s' encloses no nodes; dropped", sg.name)
        del clusters[key]
        return False

    for sg in ast_graph.subgraphs:
        visit(sg, None, 0)
    return clusters, keys
