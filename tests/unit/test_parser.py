"""Tests for the flowchart parser and diagram type detection."""

import pytest

from console_mermaid.errors import ParseError, UnsupportedDirectionError
from console_mermaid.ir.ast import Graph, SequenceDiagram
from console_mermaid.parsers.flowchart import FlowchartParser
from console_mermaid.parsers.registry import detect_type, parse
from console_mermaid.types import Direction, EdgeType, NodeShape

# ─── Helpers ──────────────────────────────────────────────────────────────────


def parse_flowchart(src: str) -> Graph:
    graph = parse(src)
    assert isinstance(graph, Graph)
    return graph


def node(graph: Graph, node_id: str):
    return next(n for n in graph.nodes if n.id == node_id)


# ─── Headers and Directions ───────────────────────────────────────────────────


class TestHeader:
    def test_parse_simple_chain(self):
        graph = parse_flowchart("graph TD\n    A --> B --> C\n")
        assert graph.direction == Direction.TD
        assert [n.id for n in graph.nodes] == ["A", "B", "C"]
        assert [(e.from_id, e.to_id) for e in graph.edges] == [("A", "B"), ("B", "C")]
        assert graph.nodes[0].label == "A"

    def test_flowchart_keyword_lr(self):
        graph = parse_flowchart("flowchart LR\n    A --> B\n")
        assert graph.direction == Direction.LR

    def test_tb_is_td(self):
        graph = parse_flowchart("flowchart TB\nA --> B\n")
        assert graph.direction == Direction.TD

    def test_no_header_defaults_to_td(self):
        graph = parse_flowchart("A --> B\n")
        assert graph.direction == Direction.TD
        assert len(graph.nodes) == 2

    def test_header_without_direction(self):
        graph = parse_flowchart("graph\nA --> B\n")
        assert graph.direction == Direction.TD

    @pytest.mark.parametrize("direction", ["RL", "BT"])
    def test_unsupported_directions_raise(self, direction):
        with pytest.raises(UnsupportedDirectionError):
            parse(f"graph {direction}\nA --> B\n")

    def test_semicolons_end_statements(self):
        graph = parse_flowchart("graph TD;\nA --> B;\nB --> C;\n")
        assert len(graph.edges) == 2

    def test_padding_directives(self):
        graph = parse_flowchart("paddingX=3\npaddingY=2\ngraph LR\nA --> B\n")
        assert graph.padding_x == 3
        assert graph.padding_y == 2
        assert graph.direction == Direction.LR

    def test_padding_defaults_to_none(self):
        graph = parse_flowchart("graph TD\nA --> B\n")
        assert graph.padding_x is None
        assert graph.padding_y is None


# ─── Nodes ────────────────────────────────────────────────────────────────────


class TestNodes:
    def test_node_with_label(self):
        graph = parse_flowchart("graph TD\n    A[Start] --> B[End]\n")
        assert node(graph, "A").label == "Start"
        assert node(graph, "A").shape == NodeShape.Rectangle
        assert node(graph, "B").label == "End"

    def test_shapes(self):
        graph = parse_flowchart("graph TD\n    A[Rect] --> B(Round) --> C{Diamond} --> D((Circle))\n")
        assert [n.shape for n in graph.nodes] == [
            NodeShape.Rectangle,
            NodeShape.Rounded,
            NodeShape.Diamond,
            NodeShape.Circle,
        ]
        assert node(graph, "D").label == "Circle"

    def test_quoted_label(self):
        graph = parse_flowchart('flowchart TD\nA["Start here"] --> B["End (done)"]\n')
        assert node(graph, "A").label == "Start here"
        assert node(graph, "B").label == "End (done)"

    def test_br_tag_becomes_line_break(self):
        graph = parse_flowchart('graph TD\nA["Line one<br>Line two"] --> B[x<br/>y]\n')
        assert node(graph, "A").label == "Line one\nLine two"
        assert node(graph, "B").label == "x\ny"

    def test_escaped_newline_in_quoted_label(self):
        graph = parse_flowchart('graph TD\nA["top\\nbottom"]\n')
        assert node(graph, "A").label == "top\nbottom"

    def test_last_explicit_label_wins(self):
        graph = parse_flowchart("graph TD\n    A[Hello] --> B\n    A[World] --> C\n")
        assert node(graph, "A").label == "World"
        assert len(graph.nodes) == 3

    def test_bare_reference_keeps_label(self):
        graph = parse_flowchart("graph TD\n    A[Hello] --> B\n    A --> C\n")
        assert node(graph, "A").label == "Hello"

    def test_standalone_node(self):
        graph = parse_flowchart("graph TD\nA[Alone]\n")
        assert len(graph.nodes) == 1
        assert graph.edges == []

    def test_hyphenated_ids(self):
        graph = parse_flowchart("graph TD\nmy-node-->other_node\n")
        assert [n.id for n in graph.nodes] == ["my-node", "other_node"]

    def test_class_suffix_is_ignored(self):
        graph = parse_flowchart("graph TD\nA:::important --> B[Box]:::muted\n")
        assert [n.id for n in graph.nodes] == ["A", "B"]
        assert node(graph, "B").label == "Box"

    def test_styling_lines_are_ignored(self):
        src = "graph TD\nA --> B\nclassDef red fill:#f00\nstyle A fill:#fff\nclass A red\nlinkStyle 0 stroke:#000\n"
        graph = parse_flowchart(src)
        assert len(graph.nodes) == 2
        assert len(graph.edges) == 1

    def test_comments_are_ignored(self):
        graph = parse_flowchart("%% leading\ngraph TD\n%% own line\nA --> B %% trailing\n")
        assert len(graph.nodes) == 2
        assert len(graph.edges) == 1


# ─── Edges ────────────────────────────────────────────────────────────────────


class TestEdges:
    def test_edge_label(self):
        graph = parse_flowchart("graph TD\n    A -->|yes| B\n")
        assert graph.edges[0].label == "yes"

    def test_edge_without_label(self):
        graph = parse_flowchart("graph TD\n    A --> B\n")
        assert graph.edges[0].label is None

    def test_edge_types(self):
        src = "graph TD\nA -.-> B\nA ==> C\nA --- D\nA <--> E\nA -.- F\nA === G\nA <-.-> H\nA <==> I\n"
        graph = parse_flowchart(src)
        assert [e.edge_type for e in graph.edges] == [
            EdgeType.DottedArrow,
            EdgeType.ThickArrow,
            EdgeType.Line,
            EdgeType.BidirArrow,
            EdgeType.DottedLine,
            EdgeType.ThickLine,
            EdgeType.BidirDotted,
            EdgeType.BidirThick,
        ]

    def test_ampersand_groups_expand(self):
        graph = parse_flowchart("graph TD\nA & B --> C & D\n")
        assert [(e.from_id, e.to_id) for e in graph.edges] == [
            ("A", "C"),
            ("A", "D"),
            ("B", "C"),
            ("B", "D"),
        ]

    def test_label_applies_to_whole_group(self):
        graph = parse_flowchart("graph TD\nA -->|go| B & C\n")
        assert [e.label for e in graph.edges] == ["go", "go"]

    def test_chain_keeps_declaration_order(self):
        graph = parse_flowchart("graph TD\nA --> B --> C --> A\n")
        assert [(e.from_id, e.to_id) for e in graph.edges] == [("A", "B"), ("B", "C"), ("C", "A")]


# ─── Subgraphs ────────────────────────────────────────────────────────────────


class TestSubgraphs:
    def test_parse_subgraph(self):
        graph = parse_flowchart("graph TD\n    subgraph Group\n        A --> B\n    end\n")
        assert len(graph.subgraphs) == 1
        assert graph.subgraphs[0].name == "Group"
        assert len(graph.subgraphs[0].nodes) == 2
        assert len(graph.subgraphs[0].edges) == 1

    def test_nested_subgraph_with_direction(self):
        src = 'graph TD\nsubgraph outer["Outer"]\ndirection LR\nsubgraph inner\nA --> B\nend\nend\nB --> C\n'
        graph = parse_flowchart(src)
        outer = graph.subgraphs[0]
        assert (outer.name, outer.title) == ("outer", "Outer")
        assert outer.direction == Direction.LR
        assert outer.subgraphs[0].name == "inner"
        assert len(graph.edges) == 1

    @pytest.mark.parametrize(
        ("header", "name", "title"),
        [
            ("api", "api", "api"),
            ("api [Public API]", "api", "Public API"),
            ('api["Public API"]', "api", "Public API"),
            ('"Public API"', "Public API", "Public API"),
        ],
    )
    def test_subgraph_header_forms(self, header, name, title):
        graph = parse_flowchart(f"graph TD\nsubgraph {header}\nA\nend\n")
        sg = graph.subgraphs[0]
        assert (sg.name, sg.display_title()) == (name, title)

    def test_inline_subgraph_statements(self):
        graph = parse_flowchart("graph TD; subgraph S; X-->Y; end; Y-->Z; Z-->X")
        assert [n.id for n in graph.subgraphs[0].nodes] == ["X", "Y"]
        assert [(e.from_id, e.to_id) for e in graph.edges] == [("Y", "Z"), ("Z", "X")]

    def test_mentions_are_numbered_in_source_order(self):
        graph = parse_flowchart("graph TD\nsubgraph S\nX --> Y\nend\nY --> Z\n")
        inner = graph.subgraphs[0]
        assert [n.seq for n in inner.nodes] < [n.seq for n in graph.nodes]
        assert inner.edges[0].seq < graph.edges[0].seq

    def test_missing_end_raises(self):
        with pytest.raises(ParseError, match="missing 'end'"):
            parse("graph TD\nsubgraph Group\nA --> B\n")


# ─── Errors ───────────────────────────────────────────────────────────────────


class TestParseErrors:
    def test_error_reports_line_number(self):
        with pytest.raises(ParseError, match="line 3"):
            parse("graph TD\nA --> B\n-->\n")

    def test_unclosed_bracket(self):
        with pytest.raises(ParseError, match=r"expected '\]'"):
            parse("graph TD\nA[Unclosed --> B\n")

    def test_unterminated_string(self):
        with pytest.raises(ParseError, match="unterminated string"):
            parse('graph TD\nA["oops] --> B\n')

    def test_dangling_connector(self):
        with pytest.raises(ParseError, match="expected a node"):
            parse("graph TD\nA -->\n")

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse("graph TD\nA --> B C\n")

    def test_direct_parser_use(self):
        graph = FlowchartParser().parse("graph LR\nA --> B\n")
        assert graph.direction == Direction.LR


# ─── Type Detection ───────────────────────────────────────────────────────────


class TestDetectType:
    def test_flowchart(self):
        assert detect_type("graph TD\nA --> B\n") == "flowchart"

    def test_sequence(self):
        assert detect_type("sequenceDiagram\nA->>B: hi\n") == "sequence"

    def test_sequence_after_comment(self):
        assert detect_type("%% note\n\nsequenceDiagram\nA->>B: hi\n") == "sequence"

    def test_parse_dispatches_to_sequence_parser(self):
        assert isinstance(parse("sequenceDiagram\nA->>B: hi\n"), SequenceDiagram)
