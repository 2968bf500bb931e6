"""Tests for coordinate planning and the flowchart layout engine."""

from __future__ import annotations

import pytest

from console_mermaid.errors import LayoutOverflowError
from console_mermaid.ir.graph import GraphIR, NodeData
from console_mermaid.layout.clusters import _fill_anchors, cluster_spans, rank_chains, solve_positions
from console_mermaid.layout.coords import (
    MAX_CANVAS_CELLS,
    MAX_CANVAS_SIDE,
    LayoutSettings,
    box_size,
    check_canvas_bounds,
    label_dimensions,
    plan_coordinates,
)
from console_mermaid.layout.engine import FlowchartLayout
from console_mermaid.layout.layering import assign_ranks, classify_edges, order_ranks
from console_mermaid.layout.types import LayoutNode, LayoutResult, Point
from console_mermaid.parsers.registry import parse
from console_mermaid.types import Direction, EdgeKind, NodeShape

# ─── Helpers ──────────────────────────────────────────────────────────────────


def gir_from(src: str) -> GraphIR:
    return GraphIR.from_ast(parse(src))


def planned(src: str, settings: LayoutSettings | None = None):
    gir = gir_from(src)
    classify_edges(gir)
    assign_ranks(gir)
    ordering = order_ranks(gir)
    plan = plan_coordinates(gir, ordering, settings or LayoutSettings())
    return gir, plan


def laid_out(src: str, settings: LayoutSettings | None = None) -> LayoutResult:
    return FlowchartLayout(settings).layout(gir_from(src))


def make_node(label: str) -> NodeData:
    return NodeData(id="n", label=label, shape=NodeShape.Rectangle, decl_index=0)


def overlaps(a: LayoutNode, b: LayoutNode) -> bool:
    return a.x <= b.right() and b.x <= a.right() and a.y <= b.bottom() and b.y <= a.bottom()


# ─── Sizes ────────────────────────────────────────────────────────────────────


class TestSizes:
    def test_label_dimensions(self):
        assert label_dimensions("Start") == (5, 1)
        assert label_dimensions("a\nbcd") == (3, 2)
        assert label_dimensions("") == (0, 1)

    def test_box_size_td(self):
        assert box_size(make_node("Start"), 1, Direction.TD) == (9, 5)

    def test_box_size_lr_is_swapped_into_frame(self):
        assert box_size(make_node("Start"), 1, Direction.LR) == (5, 9)

    def test_multiline_box(self):
        assert box_size(make_node("a\nbcd"), 1, Direction.TD) == (7, 6)

    def test_box_never_below_three(self):
        assert box_size(make_node(""), 0, Direction.TD) == (3, 3)

    def test_parallel_ports_widen_box(self):
        assert box_size(make_node("A"), 1, Direction.TD, ports=5) == (11, 5)
        assert box_size(make_node("A"), 1, Direction.TD, ports=2) == (7, 5)

    def test_stacked_self_loops_heighten_box(self):
        assert box_size(make_node("A"), 1, Direction.TD, loops=3) == (5, 8)
        assert box_size(make_node("A"), 1, Direction.TD, loops=1) == (5, 5)

    def test_wide_label_measured_in_cells(self):
        assert label_dimensions("中文") == (4, 1)
        assert box_size(make_node("中文标签"), 1, Direction.TD) == (12, 5)

    def test_gaps_have_a_floor(self):
        settings = LayoutSettings(padding_x=1, padding_y=0)
        assert settings.rank_gap(Direction.TD) == 3
        assert settings.node_gap(Direction.TD) == 3

    def test_gap_axes_follow_direction(self):
        settings = LayoutSettings(padding_x=7, padding_y=4)
        assert settings.rank_gap(Direction.TD) == 4
        assert settings.rank_gap(Direction.LR) == 7
        assert settings.node_gap(Direction.LR) == 4


# ─── Canvas Bounds ────────────────────────────────────────────────────────────


class TestCanvasBounds:
    def test_within_bounds(self):
        check_canvas_bounds(MAX_CANVAS_SIDE, 500)

    def test_side_too_long(self):
        with pytest.raises(LayoutOverflowError):
            check_canvas_bounds(MAX_CANVAS_SIDE + 1, 1)

    def test_too_many_cells(self):
        with pytest.raises(LayoutOverflowError, match="exceeds the limit"):
            check_canvas_bounds(2000, MAX_CANVAS_CELLS // 2000 + 1)

    def test_absurd_padding_overflows(self):
        with pytest.raises(LayoutOverflowError):
            planned("graph TD\nA --> B\n", LayoutSettings(padding_y=5000))


# ─── Coordinate Planning ──────────────────────────────────────────────────────


class TestPlanCoordinates:
    def test_two_ranks_stacked(self):
        gir, plan = planned('flowchart TD\nA["Start"] --> B["End"]\n')
        a, b = gir.node("A"), gir.node("B")
        assert (a.x, a.y, a.width, a.height) == (0, 0, 9, 5)
        assert (b.x, b.y, b.width, b.height) == (1, 10, 7, 5)
        assert plan.margin == 0
        assert plan.height == 15

    def test_rank_bands_separated_by_padding(self):
        gir, plan = planned("graph TD\nA --> B --> C\n", LayoutSettings(padding_y=3))
        assert [band.top for band in plan.bands] == [0, 8, 16]

    def test_gap_rows_skip_arrowhead_row(self):
        _, plan = planned("graph TD\nA --> B\n")
        assert plan.gap_rows(0) == [5, 6, 7, 8]

    def test_nodes_in_rank_separated(self):
        gir, _ = planned("graph TD\nA --> B & C & D\n", LayoutSettings(padding_x=4))
        b, c, d = gir.node("B"), gir.node("C"), gir.node("D")
        assert c.x == b.x + b.width + 4
        assert d.x == c.x + c.width + 4
        assert b.y == c.y == d.y

    def test_ranks_centred_on_widest(self):
        gir, _ = planned("graph TD\nA --> B & C\n")
        a, b, c = gir.node("A"), gir.node("B"), gir.node("C")
        assert a.x + a.width // 2 == (b.x + c.x + c.width) // 2

    def test_back_edge_reserves_lane_and_margin(self):
        gir, plan = planned("graph TD\nA --> B --> C --> A\n")
        assert plan.margin == 3
        assert plan.top_margin == 5
        assert plan.lane_x == {2: 1}
        assert gir.node("A").y == 5
        assert all(n.x >= plan.margin for n in gir.nodes())

    def test_one_lane_per_back_edge(self):
        _, plan = planned("graph TD\nA --> B --> C\nC --> A\nC --> B\n")
        assert sorted(plan.lane_x.values()) == [1, 3]
        assert plan.margin == 5

    def test_self_loops_widen_gap(self):
        gir, _ = planned("graph TD\nA --> A\nA --> A\nB\n", LayoutSettings(padding_x=3))
        a, b = gir.node("A"), gir.node("B")
        assert b.x == a.x + a.width + 6

    def test_self_loop_protrusion(self):
        _, plan = planned("graph TD\nA --> A\nA --> A\nB\n")
        assert plan.protrusion("A") == 4
        assert plan.protrusion("B") == 0

    def test_back_edge_lanes_ordered_by_source_rank(self):
        gir, plan = planned("graph TD\nA-->B\nA-->C\nC-->D\nB-->E\nE-->D\nD-->A\nE-->A\n")
        assert plan.lane_x == {5: 1, 6: 3}


# ─── Layout Engine ────────────────────────────────────────────────────────────


class TestFlowchartLayout:
    def test_empty_graph(self):
        result = FlowchartLayout().layout(GraphIR.from_ast(parse("graph TD\n")))
        assert result.nodes == []
        assert (result.width, result.height) == (0, 0)

    def test_extent_covers_everything(self):
        result = laid_out("graph TD\nA --> B --> C --> A\nB -->|label| D\n")
        for n in result.nodes:
            assert n.x >= 0 and n.y >= 0
            assert n.x + n.width <= result.width
            assert n.y + n.height <= result.height
        for e in result.edges:
            for p in e.waypoints:
                assert 0 <= p.x < result.width
                assert 0 <= p.y < result.height

    def test_lr_is_transposed(self):
        result = laid_out("graph LR\nA --> B\n")
        a, b = result.nodes
        assert a.y == b.y
        assert b.x > a.right()
        assert [p.as_tuple() for p in result.edges[0].waypoints] == [(4, 2), (10, 2)]

    def test_lr_gap_fits_label(self):
        result = laid_out("graph LR\nA -->|a long label| B\n")
        a, b = result.nodes
        assert b.x == a.x + a.width + len("a long label") + 4

    def test_no_overlap(self):
        result = laid_out("graph TD\nA --> B & C & D\nB --> E\nC --> E\nD --> A\nE --> E\n")
        for i, a in enumerate(result.nodes):
            for b in result.nodes[i + 1 :]:
                assert not overlaps(a, b), f"{a.id} overlaps {b.id}"

    def test_ranks_reported(self):
        result = laid_out("graph TD\nA --> B --> C\n")
        assert result.ranks == {"A": 0, "B": 1, "C": 2}
        assert [n.layer for n in result.nodes] == [0, 1, 2]

    def test_edge_kinds_reported(self):
        result = laid_out("graph TD\nA --> B --> C\nA --> C\nC --> A\nB --> B\n")
        assert [e.kind for e in result.edges] == [
            EdgeKind.Direct,
            EdgeKind.Direct,
            EdgeKind.RankSkip,
            EdgeKind.Back,
            EdgeKind.SelfLoop,
        ]

    def test_on_border(self):
        n = LayoutNode(id="A", layer=0, order=0, x=2, y=2, width=5, height=3)
        assert n.on_border(Point(2, 3))
        assert n.on_border(Point(4, 4))
        assert not n.on_border(Point(4, 3))
        assert not n.on_border(Point(8, 2))


# ─── Clusters ─────────────────────────────────────────────────────────────────


def open_(cid: str) -> tuple[str, str]:
    return ("open", cid)


def close(cid: str) -> tuple[str, str]:
    return ("close", cid)


def node_tok(nid: str) -> tuple[str, str]:
    return ("node", nid)


class TestClusterChains:
    def test_members_grouped_between_borders(self):
        gir = gir_from("graph TD\nA --> B & C & D\nsubgraph S\nB\nD\nend\n")
        classify_edges(gir)
        assign_ranks(gir)
        chains = rank_chains(gir, order_ranks(gir))
        assert chains[0] == [node_tok("A")]
        assert chains[1] == [node_tok("C"), open_("S"), node_tok("B"), node_tok("D"), close("S")]

    def test_cluster_spans(self):
        gir = gir_from("graph TD\nX --> A\nsubgraph S\nA --> B\nend\n")
        classify_edges(gir)
        assign_ranks(gir)
        assert cluster_spans(gir) == {"S": (1, 2)}

    def test_fill_anchors(self):
        assert _fill_anchors([None, 2.0, None, 1.0]) == [2.0, 2.0, 2.0, 2.0]
        assert _fill_anchors([0.5, None, 3.0]) == [0.5, 0.5, 3.0]
        assert _fill_anchors([None]) == [float("inf")]

    def test_solve_respects_separation_and_desire(self):
        a, b = node_tok("a"), node_tok("b")
        pos = solve_positions([[a, b]], {(a, b): 6}, {a: 3, b: 0})
        assert (pos[a], pos[b]) == (3, 9)

    def test_open_border_pulled_against_contents(self):
        a = node_tok("a")
        chain = [open_("S"), a, close("S")]
        pos = solve_positions([chain], {(open_("S"), a): 2, (a, close("S")): 6}, {a: 5})
        assert (pos[open_("S")], pos[a], pos[close("S")]) == (3, 5, 11)


class TestClusterPlan:
    def test_border_rows_td(self):
        gir, plan = planned("graph TD\nsubgraph S[Group]\nA --> B\nend\n")
        (cluster,) = plan.clusters
        assert plan.open_rows == {0: 1}
        assert plan.close_rows == {1: 2}
        assert [band.top for band in plan.bands] == [2, 12]
        assert (cluster.x, cluster.y, cluster.width, cluster.height) == (0, 0, 11, 19)
        assert plan.height == 19

    def test_gap_rows_leave_border_row_free(self):
        _, plan = planned("graph TD\nC --> A\nsubgraph S\nA --> B\nend\n")
        (cluster,) = plan.clusters
        assert cluster.y == 9
        assert plan.gap_rows(0) == [5, 6, 7, 8]

    def test_title_widens_border(self):
        _, plan = planned("graph TD\nsubgraph S[A rather long title]\nA\nend\n")
        (cluster,) = plan.clusters
        assert cluster.width >= len(" A rather long title ") + 4

    def test_entering_edge_lands_right_of_title(self):
        gir, plan = planned("graph TD\nC --> A\nsubgraph S[Group]\nA --> B\nend\n")
        (cluster,) = plan.clusters
        assert gir.node("A").x + 1 > cluster.x + 2 + len(" Group ")

    def test_lr_border_long_enough_for_title(self):
        result = laid_out("graph LR\nsubgraph S[A rather long title]\nA\nend\n")
        (cluster,) = result.clusters
        assert cluster.width >= len(" A rather long title ") + 4
        assert cluster.height == 9

    def test_sibling_borders_do_not_overlap(self):
        result = laid_out("graph TD\nsubgraph L\nA --> B\nend\nsubgraph R\nC --> D\nend\n")
        left, right = result.clusters
        assert left.right() < right.x

    def test_without_subgraphs_nothing_changes(self):
        result = laid_out("graph TD\nA --> B --> C\n")
        assert result.clusters == []
        assert [n.x for n in result.nodes] == [0, 0, 0]
