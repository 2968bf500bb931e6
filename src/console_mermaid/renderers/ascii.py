"""ASCII/Unicode text renderer for flowchart layouts."""

from __future__ import annotations

from console_mermaid.layout.router import route_cells
from console_mermaid.layout.types import LayoutCluster, LayoutNode, LayoutResult, Point, RoutedEdge
from console_mermaid.renderers.canvas import Canvas, Rect
from console_mermaid.renderers.charset import Arms, BoxChars, CharSet
from console_mermaid.text import display_width
from console_mermaid.types import EdgeType, NodeShape

# ─── Node Rendering ──────────────────────────────────────────────────────────


def _box_chars_for_shape(shape: NodeShape, cs: CharSet) -> BoxChars:
    bc = BoxChars.for_charset(cs)
    if shape == NodeShape.Rounded:
        return bc.with_corners("╭╮╰╯") if cs == CharSet.Unicode else bc
    if shape == NodeShape.Diamond:
        return bc.with_corners("/\\\\/")
    if shape == NodeShape.Circle:
        return bc.with_corners("()()")
    return bc


def _paint_node(canvas: Canvas, ln: LayoutNode) -> None:
    bc = _box_chars_for_shape(ln.shape, canvas.charset)
    rect = Rect(ln.x, ln.y, ln.width, ln.height)
    canvas.draw_box(rect, bc)
    # the label block is centred; lines inside it stay left aligned
    lines = ln.label.split("\n")
    col = ln.x + (ln.width - max(display_width(line) for line in lines)) // 2
    row = ln.y + (ln.height - len(lines)) // 2
    for i, line in enumerate(lines):
        canvas.write_str(col, row + i, line)
    canvas.reserve(rect)


# ─── Cluster Rendering ───────────────────────────────────────────────────────


def _paint_cluster(canvas: Canvas, cluster: LayoutCluster) -> None:
    rect = Rect(cluster.x, cluster.y, cluster.width, cluster.height)
    canvas.draw_box(rect, BoxChars.for_charset(canvas.charset))


def _paint_cluster_title(canvas: Canvas, cluster: LayoutCluster, crossed: set[tuple[int, int]]) -> None:
    """Write the title into the top border, on the first run no edge crosses.

    Titles go down before the edges, so an edge that cannot be avoided
    still draws through.
    """
    if not cluster.title:
        return
    title = f" {cluster.title} "
    tw = display_width(title)
    first = cluster.x + 2
    col = first
    for start in range(first, cluster.right() - tw):
        if not any((c, cluster.y) in crossed for c in range(start - 1, start + tw + 1)):
            col = start
            break
    canvas.write_str(col, cluster.y, title)


# ─── Edge Rendering ──────────────────────────────────────────────────────────


def _direction(a: Point, b: Point) -> str:
    """Direction of travel from a to b as an arm name."""
    if b.y > a.y:
        return "down"
    if b.y < a.y:
        return "up"
    if b.x > a.x:
        return "right"
    return "left"


_OPPOSITE = {"up": "down", "down": "up", "left": "right", "right": "left"}


def _arrow_char(bc: BoxChars, direction: str) -> str:
    return {"up": bc.arrow_up, "down": bc.arrow_down, "left": bc.arrow_left, "right": bc.arrow_right}[direction]


def _step(p: Point, direction: str) -> Point:
    dx = {"left": -1, "right": 1}.get(direction, 0)
    dy = {"up": -1, "down": 1}.get(direction, 0)
    return Point(p.x + dx, p.y + dy)


def _paint_edge(canvas: Canvas, re: RoutedEdge) -> None:
    wps = re.waypoints
    if len(wps) < 2:
        return

    cs = canvas.charset
    bc = BoxChars.for_charset(cs)
    edge_type: EdgeType = re.edge_type
    h_ch, v_ch = bc.line_chars(dotted=edge_type.is_dotted, thick=edge_type.is_thick)

    # Draw interior cells of each segment (excluding waypoint endpoints)
    for p0, p1 in zip(wps, wps[1:]):
        if p0.y == p1.y:
            lo, hi = (min(p0.x, p1.x), max(p0.x, p1.x))
            for col in range(lo + 1, hi):
                canvas.set_merge(col, p0.y, h_ch)
        elif p0.x == p1.x:
            lo, hi = (min(p0.y, p1.y), max(p0.y, p1.y))
            for row in range(lo + 1, hi):
                canvas.set_merge(p0.x, row, v_ch)

    # Bends: exact arms from incoming/outgoing directions
    for i in range(1, len(wps) - 1):
        p = wps[i]
        arms = Arms.toward(_OPPOSITE[_direction(wps[i - 1], p)]).merge(Arms.toward(_direction(p, wps[i + 1])))
        if not canvas.is_reserved(p.x, p.y):
            canvas.merge_arms(p.x, p.y, arms)

    # Ends: an arrowhead in the cell next to the border, or a tee merged into it
    out_dir = _direction(wps[0], wps[1])
    in_dir = _direction(wps[-2], wps[-1])
    if edge_type.has_arrow:
        tip = _step(wps[-1], _OPPOSITE[in_dir])
        canvas.set(tip.x, tip.y, _arrow_char(bc, in_dir))
    else:
        canvas.merge_arms(wps[-1].x, wps[-1].y, Arms.toward(_OPPOSITE[in_dir]))
    if edge_type.is_bidirectional:
        tail = _step(wps[0], out_dir)
        canvas.set(tail.x, tail.y, _arrow_char(bc, _OPPOSITE[out_dir]))
    else:
        canvas.merge_arms(wps[0].x, wps[0].y, Arms.toward(out_dir))


def _paint_edge_label(canvas: Canvas, re: RoutedEdge) -> None:
    if not re.label or re.label_pos is None:
        return
    for i, line in enumerate(re.label.split("\n")):
        canvas.write_str(re.label_pos.x, re.label_pos.y + i, line, protect=True)


# ─── Public Renderer ─────────────────────────────────────────────────────────


class AsciiRenderer:
    """ASCII/Unicode text renderer.

    Paint order is subgraph borders, boxes, subgraph titles, edges, then
    edge labels. Box cells are reserved as soon as a box is drawn, so later
    strokes never overwrite them (only the anchor junctions are merged into
    the border). Subgraph borders are not reserved: an edge crossing one
    merges into a junction.
    """

    def __init__(self, unicode: bool = True) -> None:
        self.unicode = unicode

    def paint(self, result: LayoutResult) -> Canvas:
        cs = CharSet.Unicode if self.unicode else CharSet.Ascii
        canvas = Canvas(result.width, result.height, cs)

        for cluster in result.clusters:
            _paint_cluster(canvas, cluster)
        for ln in result.nodes:
            _paint_node(canvas, ln)
        crossed = {cell for re in result.edges if len(re.waypoints) >= 2 for cell in route_cells(re.waypoints)}
        for cluster in result.clusters:
            _paint_cluster_title(canvas, cluster, crossed)
        for re in result.edges:
            _paint_edge(canvas, re)
        for re in result.edges:
            _paint_edge_label(canvas, re)
        return canvas
