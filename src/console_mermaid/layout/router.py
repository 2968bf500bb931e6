"""Orthogonal edge routing.

Routes are computed in the top-down frame of the coordinate plan, one edge
at a time in declaration order so that track and lane assignment is
deterministic:

  - Direct: straight line, or one jog through a track in the gap below the source
  - RankSkip: gap track, a free vertical lane past the intervening ranks, gap track
  - Back: gap track, the edge's reserved outer lane, track above the destination
  - SelfLoop: a loop on the cross-positive side of the box

Any route that would still cross a box is replaced by an A* detour. Labels
are placed last, once every route is known, on cells no box, line, border or
earlier label uses.
"""

from __future__ import annotations

import logging

from console_mermaid.ir.graph import EdgeData, GraphIR, NodeData
from console_mermaid.layout.coords import CoordinatePlan, label_dimensions
from console_mermaid.layout.pathfinder import OccupancyGrid, a_star, simplify_path
from console_mermaid.layout.types import LayoutCluster, LayoutNode, Point, RoutedEdge
from console_mermaid.types import EdgeKind

logger = logging.getLogger(__name__)


# ─── Anchors ─────────────────────────────────────────────────────────────────


def fan_offset(parallel_index: int) -> int:
    """Cross-axis shift for the n-th parallel edge: 0, +2, -2, +4, -4, ..."""
    if parallel_index == 0:
        return 0
    step = 2 * ((parallel_index + 1) // 2)
    return step if parallel_index % 2 == 1 else -step


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


def _interior(node: NodeData) -> tuple[int, int]:
    return (node.x + 1, node.x + node.width - 2)


def _center(node: NodeData) -> int:
    return node.x + node.width // 2


def _anchor_columns(src: NodeData, dst: NodeData, offset: int, align: bool, spread: int = 0) -> tuple[int, int]:
    """Source and destination columns, shifted by ``offset``.

    With ``align`` both ends share one column when the whole fan of
    ``spread`` cells either side of it fits inside both boxes.
    """
    slo, shi = _interior(src)
    dlo, dhi = _interior(dst)
    cs, cd = _center(src), _center(dst)
    if align:
        for common in (cs, cd):
            if max(slo, dlo) <= common - spread and common + spread <= min(shi, dhi):
                cs = cd = common
                break
    return (_clamp(cs + offset, slo, shi), _clamp(cd + offset, dlo, dhi))


# ─── Track and lane allocation ───────────────────────────────────────────────


class TrackAllocator:
    """Hands out the rows of each gap in turn, cycling when a gap is full."""

    def __init__(self) -> None:
        self.used: dict[object, int] = {}

    def take(self, key: object, rows: list[int]) -> int:
        order = rows[1:] + rows[:1]
        n = self.used.get(key, 0)
        self.used[key] = n + 1
        return order[n % len(order)]


class LaneAllocator:
    """Vertical lanes for rank-skipping edges."""

    def __init__(self) -> None:
        self.lanes: list[tuple[int, int, int]] = []

    def _conflicts(self, x: int, lo: int, hi: int) -> bool:
        return any(abs(x - lx) <= 1 and lo <= lhi and llo <= hi for lx, llo, lhi in self.lanes)

    def choose(self, gir: GraphIR, plan: CoordinatePlan, src_rank: int, dst_rank: int, xs: int, xd: int) -> int:
        """Pick the cheapest free column.

        Boxes on the ranks in between (self loops included), cluster borders
        and lanes already taken over an overlapping span are off limits.
        """
        blocked: list[tuple[int, int]] = [
            (n.x - 1, n.x + n.width + plan.protrusion(n.id)) for n in gir.nodes() if src_rank < n.rank < dst_rank
        ]
        top, bottom = plan.bands[src_rank].bottom, plan.bands[dst_rank].top
        for c in plan.clusters:
            if c.y <= bottom and top <= c.bottom():
                blocked += [(c.x - 1, c.x + 1), (c.right() - 1, c.right() + 1)]
        gap_lo, gap_hi = src_rank, dst_rank - 1
        stop = max(plan.width, xs, xd) + 2 * gir.edge_count() + 4
        best: tuple[int, int] | None = None
        for x in range(plan.margin, stop):
            if any(lo <= x <= hi for lo, hi in blocked):
                continue
            if self._conflicts(x, gap_lo, gap_hi):
                continue
            cost = (abs(x - xs) + abs(x - xd), x)
            if best is None or cost < best:
                best = cost
        assert best is not None
        lane = best[1]
        self.lanes.append((lane, gap_lo, gap_hi))
        return lane


# ─── Per-kind routes ─────────────────────────────────────────────────────────


def _route_direct(
    edge: EdgeData, src: NodeData, dst: NodeData, plan: CoordinatePlan, tracks: TrackAllocator, spread: int
):
    xs, xd = _anchor_columns(src, dst, fan_offset(edge.parallel_index), align=True, spread=spread)
    ys, yd = src.y + src.height - 1, dst.y
    if xs == xd:
        return [Point(xs, ys), Point(xd, yd)]
    t = tracks.take(("gap", src.rank), plan.gap_rows(src.rank))
    return [Point(xs, ys), Point(xs, t), Point(xd, t), Point(xd, yd)]


def _route_rank_skip(
    edge: EdgeData,
    src: NodeData,
    dst: NodeData,
    gir: GraphIR,
    plan: CoordinatePlan,
    tracks: TrackAllocator,
    lanes: LaneAllocator,
):
    xs, xd = _anchor_columns(src, dst, fan_offset(edge.parallel_index), align=False)
    ys, yd = src.y + src.height - 1, dst.y
    t1 = tracks.take(("gap", src.rank), plan.gap_rows(src.rank))
    t2 = tracks.take(("gap", dst.rank - 1), plan.gap_rows(dst.rank - 1))
    lane = lanes.choose(gir, plan, src.rank, dst.rank, xs, xd)
    logger.debug("edge %d skips ranks %d..%d via lane x=%d", edge.index, src.rank, dst.rank, lane)
    return [Point(xs, ys), Point(xs, t1), Point(lane, t1), Point(lane, t2), Point(xd, t2), Point(xd, yd)]


def _route_back(edge: EdgeData, src: NodeData, dst: NodeData, plan: CoordinatePlan, tracks: TrackAllocator):
    xs, xd = _anchor_columns(src, dst, fan_offset(edge.parallel_index), align=False)
    ys, yd = src.y + src.height - 1, dst.y
    t1 = tracks.take(("gap", src.rank), plan.gap_rows(src.rank))
    if dst.rank == 0:
        t2 = tracks.take(("top",), plan.top_rows())
    else:
        t2 = tracks.take(("gap", dst.rank - 1), plan.gap_rows(dst.rank - 1))
    lane = plan.lane_x[edge.index]
    logger.debug("back edge %d uses reserved lane x=%d", edge.index, lane)
    return [Point(xs, ys), Point(xs, t1), Point(lane, t1), Point(lane, t2), Point(xd, t2), Point(xd, yd)]


def _route_self_loop(edge: EdgeData, node: NodeData):
    p = edge.parallel_index
    spread = 2 + 2 * p
    xr = node.x + node.width - 1
    yb = node.y + node.height - 1
    if node.height >= 4:
        top, bottom = node.y + 1 + p, yb - 1 - p
        if top >= bottom:
            top, bottom = node.y + 1, yb - 1
        return [Point(xr, top), Point(xr + spread, top), Point(xr + spread, bottom), Point(xr, bottom)]
    col = _clamp(xr - 1 - 2 * p, node.x + 1, xr - 1)
    row = node.y + 1
    return [Point(xr, row), Point(xr + spread, row), Point(xr + spread, yb + 2), Point(col, yb + 2), Point(col, yb)]


# ─── Collision handling ──────────────────────────────────────────────────────


def _segment_cells(a: Point, b: Point) -> list[tuple[int, int]]:
    if a.x == b.x:
        step = 1 if b.y >= a.y else -1
        return [(a.x, y) for y in range(a.y, b.y + step, step)]
    step = 1 if b.x >= a.x else -1
    return [(x, a.y) for x in range(a.x, b.x + step, step)]


def route_cells(points: list[Point]) -> list[tuple[int, int]]:
    """Every cell a route passes through, in order, without repeats at the joints."""
    cells: list[tuple[int, int]] = []
    for a, b in zip(points, points[1:]):
        seg = _segment_cells(a, b)
        cells.extend(seg if not cells else seg[1:])
    return cells


def hits_box(points: list[Point], nodes: list[NodeData]) -> bool:
    """True if any cell between the two anchors lies on or inside a box."""
    for x, y in route_cells(points)[1:-1]:
        if any(n.contains(x, y) for n in nodes):
            return True
    return False


def _step_toward(a: Point, b: Point) -> Point:
    dx = (b.x > a.x) - (b.x < a.x)
    dy = (b.y > a.y) - (b.y < a.y)
    return Point(a.x + dx, a.y + dy)


def deflect(points: list[Point], nodes: list[NodeData], width: int, height: int) -> list[Point]:
    """Replace a colliding route by an A* detour between the anchor stubs."""
    start = _step_toward(points[0], points[1])
    end = _step_toward(points[-1], points[-2])
    max_x = max([width] + [p.x for p in points])
    max_y = max([height] + [p.y for p in points])
    grid = OccupancyGrid.create(max_x + 3, max_y + 3)
    for n in nodes:
        grid.mark_rect_blocked(n.x, n.y, n.width, n.height)
    path = a_star(grid, start, end)
    if path is None:
        logger.warning("no detour found from (%d, %d) to (%d, %d)", start.x, start.y, end.x, end.y)
        return points
    return simplify_path([points[0], *path, points[-1]])


# ─── Public API ──────────────────────────────────────────────────────────────


def route_edges(gir: GraphIR, plan: CoordinatePlan) -> list[RoutedEdge]:
    """Route every edge in declaration order, in the frame of ``plan``."""
    tracks = TrackAllocator()
    lanes = LaneAllocator()
    nodes = gir.nodes()
    routes: list[RoutedEdge] = []
    fans: dict[tuple[str, str], int] = {}
    for edge in gir.edges():
        pair = (edge.from_id, edge.to_id)
        fans[pair] = fans.get(pair, 0) + 1

    for edge in gir.edges():
        src = gir.node(edge.from_id)
        dst = gir.node(edge.to_id)
        if edge.kind is EdgeKind.SelfLoop:
            points = _route_self_loop(edge, src)
        elif edge.kind is EdgeKind.Back:
            points = _route_back(edge, src, dst, plan, tracks)
        elif edge.kind is EdgeKind.RankSkip:
            points = _route_rank_skip(edge, src, dst, gir, plan, tracks, lanes)
        else:
            spread = abs(fan_offset(fans[(edge.from_id, edge.to_id)] - 1))
            points = _route_direct(edge, src, dst, plan, tracks, spread)

        points = simplify_path(points)
        if hits_box(points, nodes):
            logger.debug("edge %d collides with a box; detouring", edge.index)
            points = deflect(points, nodes, plan.width, plan.height)

        routes.append(
            RoutedEdge(
                index=edge.index,
                from_id=edge.from_id,
                to_id=edge.to_id,
                label=edge.label,
                edge_type=edge.edge_type,
                kind=edge.kind,
                waypoints=points,
            )
        )

    return routes


# ─── Label placement ─────────────────────────────────────────────────────────


def _longest_segment(points: list[Point]) -> tuple[Point, Point]:
    best = (points[0], points[-1])
    best_len = -1
    for a, b in zip(points, points[1:]):
        length = abs(a.x - b.x) + abs(a.y - b.y)
        if length > best_len:
            best, best_len = (a, b), length
    return best


def occupied_cells(
    nodes: list[LayoutNode], routes: list[RoutedEdge], clusters: list[LayoutCluster]
) -> set[tuple[int, int]]:
    """Cells a label may not cover: boxes, every routed line and cluster borders."""
    cells: set[tuple[int, int]] = set()
    for n in nodes:
        cells.update((x, y) for x in range(n.x, n.x + n.width) for y in range(n.y, n.y + n.height))
    for re in routes:
        if len(re.waypoints) >= 2:
            cells.update(route_cells(re.waypoints))
    for c in clusters:
        for x in range(c.x, c.x + c.width):
            cells.update(((x, c.y), (x, c.bottom())))
        for y in range(c.y, c.y + c.height):
            cells.update(((c.x, y), (c.right(), y)))
    return cells


def _shifts(length: int):
    yield 0
    for k in range(1, length // 2 + 1):
        yield k
        yield -k


def _label_candidates(points: list[Point], w: int, h: int):
    """Spots beside each segment, longest segment first, nearest its middle first.

    Horizontal segments offer the row above, then the row below; vertical
    segments the column one clear cell to the right, then to the left.
    """
    segments = sorted(zip(points, points[1:]), key=lambda s: -(abs(s[0].x - s[1].x) + abs(s[0].y - s[1].y)))
    for a, b in segments:
        if a.y == b.y:
            lo, hi = sorted((a.x, b.x))
            x = (lo + hi) // 2 - w // 2
            for shift in _shifts(hi - lo):
                yield Point(x + shift, a.y - h)
                yield Point(x + shift, a.y + 1)
        else:
            lo, hi = sorted((a.y, b.y))
            y = (lo + hi) // 2 - h // 2
            for shift in _shifts(hi - lo):
                yield Point(a.x + 2, y + shift)
                yield Point(a.x - 1 - w, y + shift)


def _label_cells(p: Point, w: int, h: int, clearance: int = 0) -> list[tuple[int, int]]:
    return [(x, y) for y in range(p.y, p.y + h) for x in range(p.x - clearance, p.x + w + clearance)]


def place_label(route: RoutedEdge, occupied: set[tuple[int, int]]) -> Point | None:
    """Top-left cell of the edge label, beside one of the route's segments.

    The label and one cell either side of each of its rows must be clear of
    ``occupied``. When no spot next to the route is clear the label goes past
    the right edge of everything drawn so far, growing the canvas. The
    chosen cells are added to ``occupied``.
    """
    if not route.label or len(route.waypoints) < 2:
        return None
    w, h = label_dimensions(route.label)
    for c in _label_candidates(route.waypoints, w, h):
        if c.x < 0 or c.y < 0:
            continue
        if not any(cell in occupied for cell in _label_cells(c, w, h, clearance=1)):
            occupied.update(_label_cells(c, w, h))
            return c

    a, b = _longest_segment(route.waypoints)
    right = max((x for x, _ in occupied), default=-2) + 2
    spot = Point(right, max(0, (a.y + b.y) // 2 - h // 2))
    logger.debug("edge %d label has no room beside its route; placed at x=%d", route.index, spot.x)
    occupied.update(_label_cells(spot, w, h))
    return spot
