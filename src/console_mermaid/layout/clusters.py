"""Subgraph clusters in the layered layout.

A cluster must come out as one rectangle holding exactly its members, so
each rank is rewritten as a chain of tokens: ``("node", id)`` for a box and
``("open", cid)`` / ``("close", cid)`` for the left and right border columns
of every cluster whose rank span covers that rank. Sibling clusters keep one
global left-to-right order in every rank. The border tokens are shared by
all ranks, so solving the spacing constraints of all chains at once lines
the borders up.
"""

from __future__ import annotations

import logging

import networkx as nx

from console_mermaid.ir.graph import GraphIR

logger = logging.getLogger(__name__)

Token = tuple[str, str]

# columns between a border and the first/last box inside it
CLUSTER_PAD_X: int = 2


def cluster_spans(gir: GraphIR) -> dict[str, tuple[int, int]]:
    """First and last rank holding a member of each cluster."""
    spans: dict[str, tuple[int, int]] = {}
    for cid in gir.clusters:
        ranks = [gir.node(m).rank for m in gir.cluster_members(cid)]
        spans[cid] = (min(ranks), max(ranks))
    return spans


def rank_chains(gir: GraphIR, ordering: list[list[str]]) -> list[list[Token]]:
    """Token chain of every rank; the node order inside each chain groups cluster members."""
    spans = cluster_spans(gir)
    pos = {nid: i for layer in ordering for i, nid in enumerate(layer)}
    members = {cid: gir.cluster_members(cid) for cid in gir.clusters}
    global_key = {
        cid: (sum(pos[m] for m in nodes) / len(nodes), gir.clusters[cid].decl_index) for cid, nodes in members.items()
    }

    def scope_chain(scope: str | None, rank: int, layer: list[str]) -> list[Token]:
        nodes = [nid for nid in layer if gir.node(nid).cluster == scope]
        children = [c.id for c in gir.child_clusters(scope) if spans[c.id][0] <= rank <= spans[c.id][1]]
        children.sort(key=global_key.__getitem__)

        anchors: list[float | None] = []
        for cid in children:
            here = [pos[m] for m in members[cid] if gir.node(m).rank == rank]
            anchors.append(sum(here) / len(here) if here else None)
        filled = _fill_anchors(anchors)

        items: list[tuple[float, int, int, str]] = [(float(pos[nid]), 0, i, nid) for i, nid in enumerate(nodes)]
        items += [(filled[j], 1, j, cid) for j, cid in enumerate(children)]
        chain: list[Token] = []
        for _, kind, _, ref in sorted(items):
            if kind == 0:
                chain.append(("node", ref))
            else:
                chain.append(("open", ref))
                chain.extend(scope_chain(ref, rank, layer))
                chain.append(("close", ref))
        return chain

    return [scope_chain(None, r, layer) for r, layer in enumerate(ordering)]


def _fill_anchors(anchors: list[float | None]) -> list[float]:
    """Give clusters with no member in this rank their neighbour's anchor, then make them non-decreasing."""
    known = [a for a in anchors if a is not None]
    if not known:
        return [float("inf")] * len(anchors)
    filled: list[float] = []
    last = known[0]
    for a in anchors:
        if a is not None:
            last = a
        filled.append(last)
    for i in range(1, len(filled)):
        filled[i] = max(filled[i], filled[i - 1])
    return filled


def solve_positions(
    chains: list[list[Token]],
    seps: dict[tuple[Token, Token], int],
    desired: dict[Token, int],
) -> dict[Token, int]:
    """Leftmost positions meeting every ``pos[b] - pos[a] >= seps[a, b]``.

    Boxes start no further left than ``desired``. Open borders are then
    pulled right against their contents.
    """
    dag: nx.DiGraph = nx.DiGraph()
    for chain in chains:
        dag.add_nodes_from(chain)
    for (a, b), weight in seps.items():
        dag.add_edge(a, b, weight=weight)

    pos: dict[Token, int] = {}
    order = list(nx.topological_sort(dag))
    for tok in order:
        reach = [pos[p] + dag.edges[p, tok]["weight"] for p in dag.predecessors(tok)]
        pos[tok] = max([desired.get(tok, 0), *reach])
    for tok in reversed(order):
        if tok[0] == "open":
            pos[tok] = min(pos[s] - dag.edges[tok, s]["weight"] for s in dag.successors(tok))
    return pos
