"""Layout passes for flowcharts and the sequence layout variant."""

from console_mermaid.layout.coords import (
    MAX_CANVAS_CELLS,
    MAX_CANVAS_SIDE,
    CoordinatePlan,
    LayoutSettings,
    RankBand,
    label_dimensions,
    plan_coordinates,
)
from console_mermaid.layout.engine import FlowchartLayout
from console_mermaid.layout.layering import (
    MAX_ORDERING_PASSES,
    assign_ranks,
    classify_edges,
    count_crossings,
    order_ranks,
)
from console_mermaid.layout.router import occupied_cells, place_label, route_edges
from console_mermaid.layout.sequence import SequenceLayout, SequenceSettings, layout_sequence
from console_mermaid.layout.types import LayoutCluster, LayoutNode, LayoutResult, Point, RoutedEdge

__all__ = [
    "MAX_CANVAS_CELLS",
    "MAX_CANVAS_SIDE",
    "MAX_ORDERING_PASSES",
    "CoordinatePlan",
    "FlowchartLayout",
    "LayoutCluster",
    "LayoutNode",
    "LayoutResult",
    "LayoutSettings",
    "Point",
    "RankBand",
    "RoutedEdge",
    "SequenceLayout",
    "SequenceSettings",
    "assign_ranks",
    "classify_edges",
    "count_crossings",
    "label_dimensions",
    "layout_sequence",
    "occupied_cells",
    "order_ranks",
    "place_label",
    "plan_coordinates",
    "route_edges",
]
