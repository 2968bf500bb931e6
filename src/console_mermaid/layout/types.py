"""Layout types shared across layout passes and renderers."""

from __future__ import annotations

from dataclasses import dataclass, field

from console_mermaid.types import Direction, EdgeKind, EdgeType, NodeShape


@dataclass
class LayoutNode:
    """A positioned node in the layout."""

    id: str
    layer: int
    order: int
    x: int
    y: int
    width: int
    height: int
    label: str = ""
    shape: NodeShape = NodeShape.Rectangle

    def right(self) -> int:
        return self.x + self.width - 1

    def bottom(self) -> int:
        return self.y + self.height - 1

    def on_border(self, p: Point) -> bool:
        inside = self.x <= p.x <= self.right() and self.y <= p.y <= self.bottom()
        edge = p.x in (self.x, self.right()) or p.y in (self.y, self.bottom())
        return inside and edge


@dataclass
class LayoutCluster:
    """A positioned subgraph border; the title sits on the top border."""

    id: str
    title: str
    depth: int
    x: int
    y: int
    width: int
    height: int

    def right(self) -> int:
        return self.x + self.width - 1

    def bottom(self) -> int:
        return self.y + self.height - 1

    def on_border(self, x: int, y: int) -> bool:
        inside = self.x <= x <= self.right() and self.y <= y <= self.bottom()
        return inside and (x in (self.x, self.right()) or y in (self.y, self.bottom()))


@dataclass
class Point:
    """A 2D point in character coordinates (column, row)."""

    x: int
    y: int

    def as_tuple(self) -> tuple[int, int]:
        return (self.x, self.y)


@dataclass
class RoutedEdge:
    """A routed edge with orthogonal waypoints.

    The first waypoint sits on the source border and the last one on the
    destination border.
    """

    index: int
    from_id: str
    to_id: str
    label: str | None
    edge_type: EdgeType
    kind: EdgeKind
    waypoints: list[Point]
    label_pos: Point | None = None


@dataclass
class LayoutResult:
    """Self-contained layout output: everything renderers need."""

    nodes: list[LayoutNode]
    edges: list[RoutedEdge]
    direction: Direction
    width: int = 0
    height: int = 0
    ranks: dict[str, int] = field(default_factory=dict)
    clusters: list[LayoutCluster] = field(default_factory=list)
