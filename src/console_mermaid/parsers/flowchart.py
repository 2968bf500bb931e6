"""Flowchart parser: hand-rolled recursive descent.

Parses Mermaid flowchart/graph DSL into the AST types from ir.ast. Every node
mention and edge gets a ``seq`` number in source order so that the graph model
can rebuild declaration order across subgraph blocks.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from console_mermaid.errors import ParseError
from console_mermaid.ir.ast import Edge, Graph, Node, Subgraph, upsert_node
from console_mermaid.types import Direction, EdgeType, NodeShape

logger = logging.getLogger(__name__)

# ─── Tokens ──────────────────────────────────────────────────────────────────

_INLINE_BLANK_RE = re.compile(r"(?:[ \t]+|%%[^\n]*)+")
_ANY_BLANK_RE = re.compile(r"(?:[ \t\r\n]+|%%[^\n]*)+")
_NEWLINE_RE = re.compile(r"\r\n|\n|\r")

# longest connectors first so "-->" never shadows "-.->" or "<-->"
_CONNECTORS: tuple[tuple[str, EdgeType], ...] = (
    ("<-.->", EdgeType.BidirDotted),
    ("<==>", EdgeType.BidirThick),
    ("<-->", EdgeType.BidirArrow),
    ("-.->", EdgeType.DottedArrow),
    ("==>", EdgeType.ThickArrow),
    ("-->", EdgeType.Arrow),
    ("-.-", EdgeType.DottedLine),
    ("===", EdgeType.ThickLine),
    ("---", EdgeType.Line),
)

# (opener, closer, shape, what) tried in order; "((" must precede "("
_SHAPE_DELIMITERS: tuple[tuple[str, str, NodeShape, str], ...] = (
    ("((", "))", NodeShape.Circle, "circle node"),
    ("(", ")", NodeShape.Rounded, "rounded node"),
    ("{", "}", NodeShape.Diamond, "diamond node"),
    ("[", "]", NodeShape.Rectangle, "node label"),
)

_NODE_ID_RE = re.compile(r"[a-zA-Z0-9_](?:[a-zA-Z0-9_]|-(?![-.>]))*")
_HEADER_RE = re.compile(r"(?:flowchart|graph)\b")
_SUBGRAPH_RE = re.compile(r"subgraph\b")
_DIRECTION_KEYWORD_RE = re.compile(r"direction\b")
_WORD_RE = re.compile(r"[A-Za-z]+")
_PADDING_RE = re.compile(r"(?i)padding([xy])\s*=\s*(\d+)[ \t]*(?=\r|\n|$)")
_STYLE_LINE_RE = re.compile(r"(?:classDef|class|style|linkStyle|click)[ \t]+[^\n;]*")
_CLASS_SUFFIX_RE = re.compile(r":::[a-zA-Z0-9_-]+")
_QUOTED_RE = re.compile(r'"((?:[^"\\\n]|\\.)*)"')
_ESCAPE_RE = re.compile(r"\\(.)")
_BARE_LABEL_RE = re.compile(r"[^\]\)\}\n]+")
_EDGE_TEXT_RE = re.compile(r"[^|\n]+")
_SUBGRAPH_TEXT_RE = re.compile(r"[^\n%;]+")
_SUBGRAPH_ID_TITLE_RE = re.compile(r"([^\s\[\]]+)\s*\[\s*(?:\"((?:[^\"\\]|\\.)*)\"|([^\]]*))\s*\]")
_LINE_BREAK_RE = re.compile(r"<br\s*/?>|\\n", re.IGNORECASE)


def _normalize_label(text: str) -> str:
    return _LINE_BREAK_RE.sub("\n", text)


def _unescape(text: str) -> str:
    return _ESCAPE_RE.sub(lambda m: "\n" if m.group(1) == "n" else m.group(1), text)


@dataclass
class _Cursor:
    """Stateful parser cursor over the input string."""

    src: str
    pos: int = 0
    seq: int = 0

    # ── low-level scanning ──

    def eof(self) -> bool:
        return self.pos >= len(self.src)

    def line_no(self) -> int:
        return self.src.count("\n", 0, self.pos) + 1

    def error(self, message: str) -> ParseError:
        return ParseError(f"line {self.line_no()}: {message}")

    def current_line(self) -> str:
        end = self.src.find("\n", self.pos)
        return self.src[self.pos : end if end >= 0 else len(self.src)].strip()

    def next_seq(self) -> int:
        self.seq += 1
        return self.seq

    def peek(self, s: str) -> bool:
        return self.src.startswith(s, self.pos)

    def consume(self, s: str) -> bool:
        if self.peek(s):
            self.pos += len(s)
            return True
        return False

    def expect(self, s: str, what: str) -> None:
        if not self.consume(s):
            raise self.error(f"expected '{s}' to close {what}")

    def match_re(self, pattern: re.Pattern[str]) -> str | None:
        m = pattern.match(self.src, self.pos)
        if m is None:
            return None
        self.pos = m.end()
        return m.group(0)

    def skip_ws(self) -> None:
        self.match_re(_INLINE_BLANK_RE)

    def skip_ws_and_newlines(self) -> None:
        self.match_re(_ANY_BLANK_RE)

    def end_statement(self) -> None:
        """Accept ';' (another statement may follow on the same line) or the end of the line."""
        self.skip_ws()
        if self.consume(";") or self.eof() or self.match_re(_NEWLINE_RE):
            return
        raise self.error(f"unexpected input '{self.current_line()}'")

    # ── header ──

    def parse_direction_value(self) -> Direction:
        word = self.match_re(_WORD_RE)
        return Direction.parse(word) if word else Direction.default()

    def parse_padding_directives(self, graph: Graph) -> None:
        while True:
            self.skip_ws_and_newlines()
            m = _PADDING_RE.match(self.src, self.pos)
            if m is None:
                return
            self.pos = m.end()
            setattr(graph, f"padding_{m.group(1).lower()}", int(m.group(2)))

    def try_parse_header(self) -> Direction | None:
        saved = self.pos
        self.skip_ws_and_newlines()
        if not self.match_re(_HEADER_RE):
            self.pos = saved
            return None
        self.skip_ws()
        direction = self.parse_direction_value()
        self.end_statement()
        return direction

    # ── nodes ──

    def parse_quoted_string(self) -> str:
        m = _QUOTED_RE.match(self.src, self.pos)
        if m is None:
            raise self.error("unterminated string")
        self.pos = m.end()
        return _unescape(m.group(1))

    def parse_node_label(self) -> str:
        self.skip_ws()
        if self.peek('"'):
            text = self.parse_quoted_string()
            self.skip_ws()
        else:
            text = (self.match_re(_BARE_LABEL_RE) or "").strip()
        return _normalize_label(text)

    def parse_node_shape(self) -> tuple[NodeShape, str] | None:
        for opener, closer, shape, what in _SHAPE_DELIMITERS:
            if self.consume(opener):
                label = self.parse_node_label()
                self.expect(closer, what)
                return (shape, label)
        return None

    def parse_node_ref(self) -> Node | None:
        self.skip_ws()
        node_id = self.match_re(_NODE_ID_RE)
        if not node_id:
            return None
        shaped = self.parse_node_shape()
        # styling classes are accepted and dropped
        self.match_re(_CLASS_SUFFIX_RE)
        node = Node.new(node_id, shaped[1], shaped[0]) if shaped else Node.bare(node_id)
        node.seq = self.next_seq()
        return node

    def parse_node_group(self) -> list[Node] | None:
        """Parse ``A & B & C``."""
        group: list[Node] = []
        while True:
            node = self.parse_node_ref()
            if node is None:
                if group:
                    raise self.error("expected a node after '&'")
                return None
            group.append(node)
            saved = self.pos
            self.skip_ws()
            if not self.consume("&"):
                self.pos = saved
                return group

    # ── edges ──

    def parse_connector(self) -> tuple[EdgeType, str | None] | None:
        """A connector and its optional ``|label|``."""
        self.skip_ws()
        for token, edge_type in _CONNECTORS:
            if self.consume(token):
                break
        else:
            return None
        self.skip_ws()
        if not self.consume("|"):
            return (edge_type, None)
        text = self.match_re(_EDGE_TEXT_RE) or ""
        self.expect("|", "edge label")
        return (edge_type, _normalize_label(text.strip()))

    def try_parse_node_or_edge_stmt(self) -> tuple[list[Node], list[Edge]] | None:
        """A node group followed by any number of ``connector group`` hops."""
        sources = self.parse_node_group()
        if sources is None:
            return None
        nodes: list[Node] = list(sources)
        edges: list[Edge] = []
        while True:
            connector = self.parse_connector()
            if connector is None:
                break
            edge_type, label = connector
            targets = self.parse_node_group()
            if targets is None:
                raise self.error("expected a node after the edge connector")
            for src in sources:
                for tgt in targets:
                    edge = Edge.new(src.id, tgt.id, edge_type)
                    edge.label = label
                    edge.seq = self.next_seq()
                    edges.append(edge)
            nodes.extend(targets)
            sources = targets
        return (nodes, edges)

    # ── subgraphs ──

    def parse_subgraph_header(self) -> Subgraph:
        """``subgraph id``, ``subgraph id [Title]`` or ``subgraph "Title"``."""
        self.skip_ws()
        if self.peek('"'):
            title = self.parse_quoted_string()
            return Subgraph.new(title, title)
        text = (self.match_re(_SUBGRAPH_TEXT_RE) or "").strip()
        if not text:
            raise self.error("subgraph needs a name")
        m = _SUBGRAPH_ID_TITLE_RE.fullmatch(text)
        if m is None:
            return Subgraph.new(text)
        title = _unescape(m.group(2)) if m.group(2) is not None else m.group(3).strip()
        return Subgraph.new(m.group(1), title)

    def try_parse_subgraph_direction(self) -> Direction | None:
        saved = self.pos
        self.skip_ws_and_newlines()
        if not self.match_re(_DIRECTION_KEYWORD_RE):
            self.pos = saved
            return None
        self.skip_ws()
        direction = self.parse_direction_value()
        self.end_statement()
        return direction

    def at_end_keyword(self) -> bool:
        if not self.peek("end"):
            return False
        after = self.pos + 3
        return after >= len(self.src) or not (self.src[after].isalnum() or self.src[after] in "_-")

    def parse_subgraph_block(self) -> Subgraph | None:
        if not self.match_re(_SUBGRAPH_RE):
            return None
        start_line = self.line_no()
        sg = self.parse_subgraph_header()
        self.end_statement()
        sg.direction = self.try_parse_subgraph_direction()
        while True:
            self.skip_ws_and_newlines()
            if self.eof():
                raise ParseError(f"line {start_line}: subgraph '{sg.name}' is missing 'end'")
            if self.at_end_keyword():
                self.pos += 3
                self.end_statement()
                return sg
            self.parse_statement_into(sg.nodes, sg.edges, sg.subgraphs)

    # ── statements ──

    def parse_statement_into(self, nodes: list[Node], edges: list[Edge], subgraphs: list[Subgraph]) -> None:
        self.skip_ws()
        if self.match_re(_STYLE_LINE_RE):
            self.end_statement()
            return

        sg = self.parse_subgraph_block()
        if sg is not None:
            subgraphs.append(sg)
            return

        parsed = self.try_parse_node_or_edge_stmt()
        if parsed is None:
            raise self.error(f"cannot parse statement '{self.current_line()}'")
        for node in parsed[0]:
            upsert_node(nodes, node)
        edges.extend(parsed[1])
        self.end_statement()

    def parse_graph(self) -> Graph:
        graph = Graph.new()
        self.parse_padding_directives(graph)
        direction = self.try_parse_header()
        if direction is not None:
            graph.direction = direction

        while True:
            self.skip_ws_and_newlines()
            if self.eof():
                break
            self.parse_statement_into(graph.nodes, graph.edges, graph.subgraphs)

        logger.debug(
            "parsed flowchart: %d nodes, %d edges, %d subgraphs",
            len(graph.nodes),
            len(graph.edges),
            len(graph.subgraphs),
        )
        return graph


class FlowchartParser:
    """Flowchart/graph diagram parser."""

    def parse(self, src: str) -> Graph:
        return _Cursor(src=src).parse_graph()
