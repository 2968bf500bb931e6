"""Layer assignment: edge classification, longest-path ranks, crossing reduction.

Phases (each one writes its result into the GraphIR node/edge data):
  1. Edge classification (depth-first, back edges tagged)
  2. Rank assignment (longest path over forward edges)
  3. Ordering within ranks (barycenter sweeps)
"""

from __future__ import annotations

import logging

import networkx as nx

from console_mermaid.ir.graph import EdgeData, GraphIR
from console_mermaid.types import EdgeKind

logger = logging.getLogger(__name__)

MAX_ORDERING_PASSES: int = 8

_UNVISITED, _ON_STACK, _DONE = 0, 1, 2


# ─── Edge Classification ─────────────────────────────────────────────────────


def classify_edges(gir: GraphIR) -> list[EdgeData]:
    """Tag every edge that closes a cycle as a back edge.

    Depth-first traversal from each unvisited node in declaration order,
    following out-edges in declaration order. An edge into a node that is
    still on the traversal stack is a back edge; self loops always are.
    """
    state: dict[str, int] = {n.id: _UNVISITED for n in gir.nodes()}
    for edge in gir.edges():
        edge.is_back = False

    for root in gir.nodes():
        if state[root.id] != _UNVISITED:
            continue
        state[root.id] = _ON_STACK
        stack: list[tuple[str, list[EdgeData], int]] = [(root.id, gir.out_edges(root.id), 0)]
        while stack:
            node_id, out, i = stack[-1]
            if i == len(out):
                state[node_id] = _DONE
                stack.pop()
                continue
            stack[-1] = (node_id, out, i + 1)
            edge = out[i]
            target_state = state[edge.to_id]
            if target_state == _ON_STACK:
                edge.is_back = True
            elif target_state == _UNVISITED:
                state[edge.to_id] = _ON_STACK
                stack.append((edge.to_id, gir.out_edges(edge.to_id), 0))

    edges = gir.edges()
    logger.debug("back edges: %s", [e.index for e in edges if e.is_back])
    return edges


# ─── Rank Assignment ─────────────────────────────────────────────────────────


def forward_dag(gir: GraphIR) -> nx.DiGraph:
    dag: nx.DiGraph = nx.DiGraph()
    for node in gir.nodes():
        dag.add_node(node.id)
    for edge in gir.edges():
        if not edge.is_back:
            dag.add_edge(edge.from_id, edge.to_id)
    return dag


def assign_ranks(gir: GraphIR) -> dict[str, int]:
    """Longest-path layering over forward edges; sources get rank 0.

    Also sets each edge's kind now that ranks are known.
    """
    dag = forward_dag(gir)
    decl = {n.id: n.decl_index for n in gir.nodes()}
    ranks: dict[str, int] = {}
    for node_id in nx.lexicographical_topological_sort(dag, key=lambda n: decl[n]):
        preds = [ranks[p] for p in dag.predecessors(node_id)]
        ranks[node_id] = max(preds) + 1 if preds else 0

    for node in gir.nodes():
        node.rank = ranks[node.id]

    for edge in gir.edges():
        if edge.is_self_loop:
            edge.kind = EdgeKind.SelfLoop
        elif edge.is_back:
            edge.kind = EdgeKind.Back
        elif ranks[edge.to_id] - ranks[edge.from_id] == 1:
            edge.kind = EdgeKind.Direct
        else:
            edge.kind = EdgeKind.RankSkip

    logger.debug("ranks: %s", ranks)
    return ranks


# ─── Crossing Minimization ───────────────────────────────────────────────────


def _adjacent_pairs(gir: GraphIR) -> list[tuple[str, str]]:
    """Forward edges joining two neighbouring ranks, parallel edges repeated."""
    return [
        (e.from_id, e.to_id)
        for e in gir.edges()
        if not e.is_back and gir.node(e.to_id).rank == gir.node(e.from_id).rank + 1
    ]


def initial_ordering(gir: GraphIR) -> list[list[str]]:
    """Order each rank by first appearance in the edge list, unconnected nodes last."""
    seen: list[str] = []
    for edge in gir.edges():
        for node_id in (edge.from_id, edge.to_id):
            if node_id not in seen:
                seen.append(node_id)
    for node in gir.nodes():
        if node.id not in seen:
            seen.append(node.id)

    rank_count = max((n.rank for n in gir.nodes()), default=-1) + 1
    ordering: list[list[str]] = [[] for _ in range(rank_count)]
    for node_id in seen:
        ordering[gir.node(node_id).rank].append(node_id)
    return ordering


def count_crossings(ordering: list[list[str]], gir: GraphIR) -> int:
    pairs = _adjacent_pairs(gir)
    pos: dict[str, int] = {nid: i for layer in ordering for i, nid in enumerate(layer)}
    total = 0
    for l_idx in range(len(ordering) - 1):
        layer = set(ordering[l_idx])
        edges = [(pos[s], pos[t]) for s, t in pairs if s in layer]
        for i in range(len(edges)):
            for j in range(i + 1, len(edges)):
                ei, ej = edges[i], edges[j]
                if (ei[0] < ej[0] and ei[1] > ej[1]) or (ei[0] > ej[0] and ei[1] < ej[1]):
                    total += 1
    return total


def _sweep(ordering: list[list[str]], gir: GraphIR, pairs: list[tuple[str, str]], downward: bool) -> None:
    layer_range = range(1, len(ordering)) if downward else range(len(ordering) - 2, -1, -1)
    for layer_idx in layer_range:
        fixed = ordering[layer_idx - 1] if downward else ordering[layer_idx + 1]
        fixed_pos = {nid: float(i) for i, nid in enumerate(fixed)}
        current = {nid: float(i) for i, nid in enumerate(ordering[layer_idx])}

        def key(node_id: str, fixed_pos=fixed_pos, current=current) -> tuple[float, int]:
            if downward:
                positions = [fixed_pos[s] for s, t in pairs if t == node_id and s in fixed_pos]
            else:
                positions = [fixed_pos[t] for s, t in pairs if s == node_id and t in fixed_pos]
            bary = sum(positions) / len(positions) if positions else current[node_id]
            return (bary, gir.node(node_id).decl_index)

        ordering[layer_idx].sort(key=key)


def order_ranks(gir: GraphIR) -> list[list[str]]:
    """Barycenter crossing reduction.

    Each pass sweeps down then up. Stops after MAX_ORDERING_PASSES passes or
    as soon as a pass fails to reduce the crossing count, keeping the best
    ordering seen.
    """
    ordering = initial_ordering(gir)
    pairs = _adjacent_pairs(gir)
    best = [list(layer) for layer in ordering]
    best_count = count_crossings(ordering, gir)

    for _pass in range(MAX_ORDERING_PASSES):
        if best_count == 0:
            break
        _sweep(ordering, gir, pairs, downward=True)
        _sweep(ordering, gir, pairs, downward=False)
        crossings = count_crossings(ordering, gir)
        if crossings >= best_count:
            break
        best_count = crossings
        best = [list(layer) for layer in ordering]

    for layer in best:
        for i, node_id in enumerate(layer):
            gir.node(node_id).order = i

    logger.debug("ordering (%d crossings): %s", best_count, best)
    return best
