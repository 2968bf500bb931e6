"""Coordinate planning: turn (rank, order) into box bounds.

Everything here works in a top-down frame: ``x`` is the cross axis (position
within a rank) and ``y`` is the flow axis (rank). For LR diagrams the box
sizes are swapped into the frame and the engine transposes the finished
layout back.

Subgraph borders get rows of their own in the gaps between ranks: the bottom
borders of clusters ending at a rank right below it, the top borders of
clusters starting at the next rank right above the arrowhead row. Edge
tracks use the rows in between.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from console_mermaid.errors import LayoutOverflowError
from console_mermaid.ir.graph import GraphIR, NodeData
from console_mermaid.layout.clusters import CLUSTER_PAD_X, Token, cluster_spans, rank_chains, solve_positions
from console_mermaid.layout.types import LayoutCluster
from console_mermaid.text import display_width
from console_mermaid.types import Direction, EdgeKind

logger = logging.getLogger(__name__)

# ─── Geometry constants ──────────────────────────────────────────────────────

MIN_GAP: int = 3
MAX_CANVAS_SIDE: int = 4000
MAX_CANVAS_CELLS: int = 2_000_000
LR_LABEL_CLEARANCE: int = 4
# a title " name " starts two cells in from the corner and leaves two cells after it
TITLE_CLEARANCE: int = 5


@dataclass
class LayoutSettings:
    box_padding: int = 1
    padding_x: int = 5
    padding_y: int = 5

    def rank_gap(self, direction: Direction) -> int:
        return max(MIN_GAP, self.padding_x if direction.is_horizontal else self.padding_y)

    def node_gap(self, direction: Direction) -> int:
        return max(MIN_GAP, self.padding_y if direction.is_horizontal else self.padding_x)


@dataclass
class RankBand:
    rank: int
    top: int
    depth: int

    @property
    def bottom(self) -> int:
        return self.top + self.depth - 1


@dataclass
class CoordinatePlan:
    direction: Direction
    bands: list[RankBand]
    margin: int = 0
    top_margin: int = 0
    bottom_margin: int = 0
    lane_x: dict[int, int] = field(default_factory=dict)
    width: int = 0
    height: int = 0
    loops: dict[str, int] = field(default_factory=dict)
    close_rows: dict[int, int] = field(default_factory=dict)
    open_rows: dict[int, int] = field(default_factory=dict)
    clusters: list[LayoutCluster] = field(default_factory=list)

    def gap_rows(self, rank: int) -> list[int]:
        """Track rows below ``rank``, without border rows and the arrowhead row of the next rank."""
        band = self.bands[rank]
        start = band.bottom + 1 + self.close_rows.get(rank, 0)
        if rank + 1 < len(self.bands):
            end = self.bands[rank + 1].top - 1 - self.open_rows.get(rank + 1, 0)
        else:
            end = band.bottom + self.bottom_margin
        return list(range(start, end))

    def top_rows(self) -> list[int]:
        """Track rows in the margin band before rank 0."""
        return list(range(0, self.top_margin - 1 - self.open_rows.get(0, 0)))

    def protrusion(self, node_id: str) -> int:
        """Columns that self loops take beyond the right side of a box."""
        return 2 * self.loops.get(node_id, 0)


def label_dimensions(label: str) -> tuple[int, int]:
    if not label:
        return (0, 1)
    lines = label.split("\n")
    max_w = max(display_width(line) for line in lines)
    return (max_w, len(lines))


def box_size(node: NodeData, padding: int, direction: Direction, ports: int = 1, loops: int = 0) -> tuple[int, int]:
    """Box size in the frame: (cross extent, flow extent).

    ``ports`` is the largest number of parallel edges the box anchors; each
    needs its own column two cells from the next. ``loops`` self loops
    stacked on one side need two rows each.
    """
    text_w, text_h = label_dimensions(node.label)
    # at least one interior cell each way so anchors stay off the corners
    width = max(3, text_w + 2 * padding + 2)
    height = max(3, text_h + 2 * padding + 2)
    if direction.is_horizontal:
        width, height = height, width
    width = max(width, 4 * (ports // 2) + 3)
    if loops > 1:
        height = max(height, 2 * loops + 2)
    return (width, height)


def check_canvas_bounds(width: int, height: int) -> None:
    if width > MAX_CANVAS_SIDE or height > MAX_CANVAS_SIDE or width * height > MAX_CANVAS_CELLS:
        raise LayoutOverflowError(
            f"canvas of {width}x{height} cells exceeds the limit "
            f"({MAX_CANVAS_SIDE} per side, {MAX_CANVAS_CELLS} total)"
        )


def _depth_levels(gir: GraphIR, cids: list[str]) -> list[int]:
    """Distinct nesting depths, deepest first: the deepest border sits nearest the boxes."""
    return sorted({gir.clusters[c].depth for c in cids}, reverse=True)


def plan_coordinates(gir: GraphIR, ordering: list[list[str]], settings: LayoutSettings) -> CoordinatePlan:
    """Assign frame coordinates to every node box and cluster border.

    Writes x/y/width/height into each NodeData, regroups each rank so that
    cluster members sit together, and returns the plan with the rank bands,
    margins and reserved back-edge lanes the router needs.

    Raises:
        LayoutOverflowError: If the projected canvas exceeds the safety bound.
    """
    direction = gir.direction
    padding = settings.box_padding
    rank_gap = settings.rank_gap(direction)
    node_gap = settings.node_gap(direction)

    edges = gir.edges()
    back_edges = [e for e in edges if e.kind is EdgeKind.Back]
    loops: dict[str, int] = {}
    ports: dict[str, int] = {}
    for e in edges:
        if e.kind is EdgeKind.SelfLoop:
            loops[e.from_id] = loops.get(e.from_id, 0) + 1
            continue
        for nid in (e.from_id, e.to_id):
            ports[nid] = max(ports.get(nid, 1), e.parallel_index + 1)

    sizes = {n.id: box_size(n, padding, direction, ports.get(n.id, 1), loops.get(n.id, 0)) for n in gir.nodes()}

    # flow gaps; LR labels sit on the horizontal run across the gap
    gaps = [rank_gap] * max(0, len(ordering) - 1)
    if direction.is_horizontal:
        for e in edges:
            if e.kind is EdgeKind.Direct and e.label:
                r = gir.node(e.from_id).rank
                gaps[r] = max(gaps[r], label_dimensions(e.label)[0] + LR_LABEL_CLEARANCE)

    margin = 2 * len(back_edges) + 1 if back_edges else 0
    base_margin = rank_gap if back_edges else 0

    # ── cluster border rows ──

    spans = cluster_spans(gir)
    opens_at: dict[int, list[str]] = {}
    closes_at: dict[int, list[str]] = {}
    for cid, (lo, hi) in spans.items():
        opens_at.setdefault(lo, []).append(cid)
        closes_at.setdefault(hi, []).append(cid)
    open_rows = {r: len(_depth_levels(gir, cids)) for r, cids in opens_at.items()}
    flat_loop_ranks = {
        gir.node(nid).rank for nid in loops if sizes[nid][1] < 4
    }
    titles = {cid: display_width(c.title) for cid, c in gir.clusters.items()}

    top_margin = base_margin + open_rows.get(0, 0)
    if open_rows.get(0) and not back_edges:
        top_margin += 1

    bands: list[RankBand] = []
    open_row: dict[str, int] = {}
    close_row: dict[str, int] = {}
    close_rows: dict[int, int] = {}
    y = top_margin
    for r, layer in enumerate(ordering):
        band = RankBand(rank=r, top=y, depth=max((sizes[nid][1] for nid in layer), default=0))
        bands.append(band)
        levels = _depth_levels(gir, opens_at.get(r, []))
        for cid in opens_at.get(r, []):
            open_row[cid] = band.top - 2 - levels.index(gir.clusters[cid].depth)
        closers = closes_at.get(r, [])
        if closers:
            levels = _depth_levels(gir, closers)
            pad = 2 if r in flat_loop_ranks else 1
            rows = {cid: band.bottom + 1 + pad + levels.index(gir.clusters[cid].depth) for cid in closers}
            if direction.is_horizontal:
                # the title runs along the flow axis once transposed
                pad += max(0, *(open_row[c] + titles[c] + TITLE_CLEARANCE - rows[c] for c in closers))
            for cid in closers:
                close_row[cid] = band.bottom + 1 + pad + levels.index(gir.clusters[cid].depth)
            close_rows[r] = pad + len(levels)
        if r < len(gaps):
            y += band.depth + gaps[r] + close_rows.get(r, 0) + open_rows.get(r + 1, 0)

    bottom_margin = base_margin + (close_rows.get(len(bands) - 1, 0) if bands else 0)

    # ── cross-axis positions ──

    chains = rank_chains(gir, ordering)
    for r, chain in enumerate(chains):
        ordering[r] = [ref for kind, ref in chain if kind == "node"]
        for i, nid in enumerate(ordering[r]):
            gir.node(nid).order = i

    def gap_after(node_id: str) -> int:
        n = loops.get(node_id, 0)
        return max(node_gap, 2 * n + 2) if n else node_gap

    def sep(a: Token, b: Token) -> int:
        if a[0] == "node":
            w = sizes[a[1]][0]
            return w + 2 * loops.get(a[1], 0) + 1 if b[0] == "close" else w + gap_after(a[1])
        if a[0] == "open":
            return CLUSTER_PAD_X + 1 if b[0] == "close" else CLUSTER_PAD_X
        return CLUSTER_PAD_X if b[0] == "close" else node_gap + 1

    seps: dict[tuple[Token, Token], int] = {}
    totals: list[int] = []
    for chain in chains:
        total = 0
        for a, b in zip(chain, chain[1:]):
            s = sep(a, b)
            seps[(a, b)] = max(seps.get((a, b), 0), s)
            total += s
        if chain:
            total += sizes[chain[-1][1]][0] if chain[-1][0] == "node" else 1
        totals.append(total)
    if not direction.is_horizontal:
        for cid in gir.clusters:
            key = (("open", cid), ("close", cid))
            seps[key] = max(seps.get(key, 0), titles[cid] + TITLE_CLEARANCE)
        # an edge entering the first box of a cluster crosses the top border
        # inside that box's interior, which must start right of the title
        for r, chain in enumerate(chains):
            for a, b in zip(chain, chain[1:]):
                if a[0] != "open" or b[0] != "node" or spans[a[1]][0] != r:
                    continue
                members = set(gir.cluster_members(a[1]))
                entering = any(
                    e.to_id == b[1] and e.from_id not in members and not e.is_self_loop for e in edges
                )
                if entering:
                    seps[(a, b)] = max(seps[(a, b)], titles[a[1]] + TITLE_CLEARANCE - 1)

    widest = max(totals, default=0)
    desired: dict[Token, int] = {}
    for chain, total in zip(chains, totals):
        x = widest // 2 - total // 2
        for a, b in zip(chain, chain[1:] + [None]):
            desired[a] = x
            if b is not None:
                x += sep(a, b)
    for tok in list(desired):
        if tok[0] != "node":
            del desired[tok]
    pos = solve_positions(chains, seps, desired)

    tail = margin + widest
    for r, layer in enumerate(ordering):
        for nid in layer:
            node = gir.node(nid)
            node.width, node.height = sizes[nid]
            node.x, node.y = margin + pos[("node", nid)], bands[r].top
            tail = max(tail, node.x + node.width + 2 * loops.get(nid, 0) + 1)

    clusters: list[LayoutCluster] = []
    for cid, c in gir.clusters.items():
        left, right = margin + pos[("open", cid)], margin + pos[("close", cid)]
        clusters.append(
            LayoutCluster(
                id=cid,
                title=c.title,
                depth=c.depth,
                x=left,
                y=open_row[cid],
                width=right - left + 1,
                height=close_row[cid] - open_row[cid] + 1,
            )
        )
        tail = max(tail, right + 2)

    # lanes nest: the back edge leaving the deepest rank runs outermost
    lane_order = sorted(back_edges, key=lambda e: (gir.node(e.from_id).rank, -gir.node(e.to_id).rank, e.index))
    lane_x = {e.index: margin - 2 - 2 * k for k, e in enumerate(lane_order)}

    width = tail
    height = (bands[-1].bottom + 1 + bottom_margin) if bands else 0
    check_canvas_bounds(width, height)

    logger.debug(
        "planned %d ranks and %d clusters in a %dx%d frame (margin %d, back lanes %s)",
        len(bands),
        len(clusters),
        width,
        height,
        margin,
        lane_x,
    )
    return CoordinatePlan(
        direction=direction,
        bands=bands,
        margin=margin,
        top_margin=top_margin,
        bottom_margin=bottom_margin,
        lane_x=lane_x,
        width=width,
        height=height,
        loops=loops,
        close_rows=close_rows,
        open_rows=open_rows,
        clusters=clusters,
    )
