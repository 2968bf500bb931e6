"""A* pathfinder used to detour edge segments around node boxes."""

from __future__ import annotations

import heapq
from dataclasses import dataclass

from console_mermaid.layout.types import Point

TURN_PENALTY: int = 2


@dataclass
class OccupancyGrid:
    """2D boolean grid tracking which cells are blocked by nodes."""

    width: int
    height: int
    blocked: list[list[bool]]

    @classmethod
    def create(cls, width: int, height: int) -> OccupancyGrid:
        blocked = [[False] * width for _ in range(height)]
        return cls(width=width, height=height, blocked=blocked)

    def mark_rect_blocked(self, x: int, y: int, w: int, h: int) -> None:
        """Mark all cells inside a rectangle as blocked."""
        for row in range(max(0, y), min(self.height, y + h)):
            for col in range(max(0, x), min(self.width, x + w)):
                self.blocked[row][col] = True

    def is_free(self, x: int, y: int) -> bool:
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            return False
        return not self.blocked[y][x]


def _heuristic(ax: int, ay: int, bx: int, by: int) -> int:
    """Manhattan distance, plus one if a corner is unavoidable."""
    dx = abs(ax - bx)
    dy = abs(ay - by)
    if dx == 0 or dy == 0:
        return dx + dy
    return dx + dy + 1


# 4-directional neighbors, in tie-break order
_DIRS = [(0, 1), (0, -1), (1, 0), (-1, 0)]
_NO_DIR = -1


def a_star(grid: OccupancyGrid, start: Point, end: Point) -> list[Point] | None:
    """Find the cheapest orthogonal path from start to end, avoiding blocked cells.

    Each step costs 1 and each change of direction costs TURN_PENALTY more,
    so the search prefers paths with few bends. Returns the list of Points
    from start to end, or None if the goal is unreachable.
    """
    sx, sy = start.x, start.y
    ex, ey = end.x, end.y
    if not grid.is_free(sx, sy) or not grid.is_free(ex, ey):
        return None

    State = tuple[int, int, int]
    begin: State = (sx, sy, _NO_DIR)

    # Priority queue: (priority, counter, state)
    counter = 0
    open_set: list[tuple[int, int, State]] = [(_heuristic(sx, sy, ex, ey), counter, begin)]
    cost_so_far: dict[State, int] = {begin: 0}
    came_from: dict[State, State | None] = {begin: None}

    while open_set:
        _, _, state = heapq.heappop(open_set)
        cx, cy, cdir = state

        if cx == ex and cy == ey:
            path: list[Point] = []
            cur: State | None = state
            while cur is not None:
                path.append(Point(x=cur[0], y=cur[1]))
                cur = came_from[cur]
            path.reverse()
            return path

        current_cost = cost_so_far[state]

        for d, (dx, dy) in enumerate(_DIRS):
            nx_, ny = cx + dx, cy + dy
            if not grid.is_free(nx_, ny):
                continue
            new_cost = current_cost + 1
            if cdir not in (_NO_DIR, d):
                new_cost += TURN_PENALTY
            key: State = (nx_, ny, d)
            if key not in cost_so_far or new_cost < cost_so_far[key]:
                cost_so_far[key] = new_cost
                priority = new_cost + _heuristic(nx_, ny, ex, ey)
                counter += 1
                heapq.heappush(open_set, (priority, counter, key))
                came_from[key] = state

    return None


def simplify_path(path: list[Point]) -> list[Point]:
    """Remove duplicate and collinear intermediate points, keeping only direction changes."""
    deduped: list[Point] = []
    for p in path:
        if not deduped or deduped[-1].as_tuple() != p.as_tuple():
            deduped.append(p)
    if len(deduped) <= 2:
        return deduped

    result = [deduped[0]]
    for i in range(1, len(deduped) - 1):
        prev = result[-1]
        curr = deduped[i]
        nxt = deduped[i + 1]
        same_col = prev.x == curr.x == nxt.x
        same_row = prev.y == curr.y == nxt.y
        if not (same_col or same_row):
            result.append(curr)
    result.append(deduped[-1])
    return result
