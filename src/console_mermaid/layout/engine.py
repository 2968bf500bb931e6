"""Flowchart layout engine: runs the layout passes in order."""

from __future__ import annotations

import logging

from console_mermaid.ir.graph import GraphIR
from console_mermaid.layout.coords import LayoutSettings, check_canvas_bounds, label_dimensions, plan_coordinates
from console_mermaid.layout.layering import assign_ranks, classify_edges, order_ranks
from console_mermaid.layout.router import occupied_cells, place_label, route_edges
from console_mermaid.layout.types import LayoutCluster, LayoutNode, LayoutResult, RoutedEdge

logger = logging.getLogger(__name__)


def _transpose_layout(nodes: list[LayoutNode], edges: list[RoutedEdge], clusters: list[LayoutCluster]) -> None:
    for box in [*nodes, *clusters]:
        box.x, box.y = box.y, box.x
        box.width, box.height = box.height, box.width
    for re in edges:
        for p in re.waypoints:
            p.x, p.y = p.y, p.x


def _extent(nodes: list[LayoutNode], edges: list[RoutedEdge], clusters: list[LayoutCluster]) -> tuple[int, int]:
    max_col = 0
    max_row = 0
    for box in [*nodes, *clusters]:
        max_col = max(max_col, box.x + box.width)
        max_row = max(max_row, box.y + box.height)
    for re in edges:
        for p in re.waypoints:
            max_col = max(max_col, p.x + 1)
            max_row = max(max_row, p.y + 1)
        if re.label_pos is not None and re.label:
            w, h = label_dimensions(re.label)
            max_col = max(max_col, re.label_pos.x + w)
            max_row = max(max_row, re.label_pos.y + h)
    return (max_col, max_row)


class FlowchartLayout:
    """Layered layout: classify, rank, order, place, route, label."""

    def __init__(self, settings: LayoutSettings | None = None) -> None:
        self.settings = settings or LayoutSettings()

    def layout(self, gir: GraphIR) -> LayoutResult:
        if gir.node_count() == 0:
            return LayoutResult(nodes=[], edges=[], direction=gir.direction)

        classify_edges(gir)
        ranks = assign_ranks(gir)
        ordering = order_ranks(gir)
        plan = plan_coordinates(gir, ordering, self.settings)
        routed = route_edges(gir, plan)

        nodes = [
            LayoutNode(
                id=n.id,
                layer=n.rank,
                order=n.order,
                x=n.x,
                y=n.y,
                width=n.width,
                height=n.height,
                label=n.label,
                shape=n.shape,
            )
            for n in gir.nodes()
        ]
        clusters = plan.clusters
        if gir.direction.is_horizontal:
            _transpose_layout(nodes, routed, clusters)

        occupied = occupied_cells(nodes, routed, clusters)
        for re in routed:
            re.label_pos = place_label(re, occupied)

        width, height = _extent(nodes, routed, clusters)
        check_canvas_bounds(width, height)
        logger.debug("layout finished: %dx%d cells", width, height)
        return LayoutResult(
            nodes=nodes,
            edges=routed,
            direction=gir.direction,
            width=width,
            height=height,
            ranks=dict(ranks),
            clusters=clusters,
        )
