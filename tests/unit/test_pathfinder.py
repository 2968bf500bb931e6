"""Tests for the A* detour search and path simplification."""

from console_mermaid.layout.pathfinder import OccupancyGrid, a_star, simplify_path
from console_mermaid.layout.types import Point


def pts(*coords: tuple[int, int]) -> list[Point]:
    return [Point(x, y) for x, y in coords]


class TestOccupancyGrid:
    def test_mark_rect_blocked(self):
        grid = OccupancyGrid.create(6, 6)
        grid.mark_rect_blocked(1, 1, 2, 3)
        assert not grid.is_free(1, 1)
        assert not grid.is_free(2, 3)
        assert grid.is_free(3, 1)
        assert grid.is_free(1, 4)

    def test_rect_clipped_to_grid(self):
        grid = OccupancyGrid.create(3, 3)
        grid.mark_rect_blocked(-2, -2, 10, 3)
        assert not grid.is_free(0, 0)
        assert grid.is_free(0, 1)

    def test_out_of_bounds_is_not_free(self):
        grid = OccupancyGrid.create(3, 3)
        assert not grid.is_free(-1, 0)
        assert not grid.is_free(0, 3)


class TestAStar:
    def test_straight_line(self):
        path = a_star(OccupancyGrid.create(10, 10), Point(0, 0), Point(5, 0))
        assert path is not None
        assert [p.as_tuple() for p in path] == [(x, 0) for x in range(6)]

    def test_single_bend_preferred(self):
        path = a_star(OccupancyGrid.create(10, 10), Point(0, 0), Point(3, 3))
        assert path is not None
        assert len(path) == 7
        assert len(simplify_path(path)) == 3

    def test_around_obstacle(self):
        grid = OccupancyGrid.create(10, 10)
        grid.mark_rect_blocked(3, 0, 1, 8)
        path = a_star(grid, Point(0, 0), Point(6, 0))
        assert path is not None
        assert all(grid.is_free(p.x, p.y) for p in path)
        assert max(p.y for p in path) == 8

    def test_unreachable(self):
        grid = OccupancyGrid.create(10, 10)
        grid.mark_rect_blocked(5, 0, 1, 10)
        assert a_star(grid, Point(0, 0), Point(9, 9)) is None

    def test_blocked_endpoint(self):
        grid = OccupancyGrid.create(5, 5)
        grid.mark_rect_blocked(4, 4, 1, 1)
        assert a_star(grid, Point(0, 0), Point(4, 4)) is None


class TestSimplifyPath:
    def test_removes_collinear_points(self):
        path = pts((0, 0), (1, 0), (2, 0), (2, 1), (2, 2))
        assert simplify_path(path) == pts((0, 0), (2, 0), (2, 2))

    def test_removes_duplicates(self):
        path = pts((0, 0), (0, 0), (0, 3), (0, 3), (4, 3))
        assert simplify_path(path) == pts((0, 0), (0, 3), (4, 3))

    def test_short_paths_unchanged(self):
        assert simplify_path(pts((1, 1), (1, 5))) == pts((1, 1), (1, 5))
        assert simplify_path([]) == []
