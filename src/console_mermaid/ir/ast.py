"""AST data structures for Mermaid flowcharts and sequence diagrams.

These types are the normalized description handed from the parsers (or from a
caller building diagrams by hand) to the diagram model.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from console_mermaid.errors import ParseError
from console_mermaid.types import Direction, EdgeType, EventKind, MessageStyle, NodeShape

# ─── Flowchart ───────────────────────────────────────────────────────────────


@dataclass
class Node:
    id: str
    label: str
    shape: NodeShape = field(default_factory=NodeShape.default)
    explicit: bool = True
    seq: int = 0

    @classmethod
    def new(cls, id: str, label: str, shape: NodeShape) -> Node:
        return cls(id=id, label=label, shape=shape)

    @classmethod
    def bare(cls, id: str) -> Node:
        """Create a bare reference (id = label, default Rectangle shape)."""
        return cls(id=id, label=id, shape=NodeShape.Rectangle, explicit=False)


@dataclass
class Edge:
    from_id: str
    to_id: str
    edge_type: EdgeType = EdgeType.Arrow
    label: str | None = None
    seq: int = 0

    @classmethod
    def new(cls, from_id: str, to_id: str, edge_type: EdgeType) -> Edge:
        return cls(from_id=from_id, to_id=to_id, edge_type=edge_type)


@dataclass
class Subgraph:
    name: str
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    subgraphs: list[Subgraph] = field(default_factory=list)
    direction: Direction | None = None
    title: str | None = None

    @classmethod
    def new(cls, name: str, title: str | None = None) -> Subgraph:
        return cls(name=name, title=title)

    def display_title(self) -> str:
        return self.title if self.title is not None else self.name


@dataclass
class Graph:
    direction: Direction = field(default_factory=Direction.default)
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    subgraphs: list[Subgraph] = field(default_factory=list)
    padding_x: int | None = None
    padding_y: int | None = None

    @classmethod
    def new(cls) -> Graph:
        return cls()

    @classmethod
    def from_description(cls, data: Mapping[str, Any]) -> Graph:
        """Build a graph from ``{"nodes": [...], "edges": [...], "direction": "TD"}``.

        Nodes are ``{"id", "label"?, "shape"?}`` mappings or plain id strings;
        edges are ``{"from", "to", "label"?, "type"?}`` mappings.
        """
        graph = cls.new()
        if data.get("direction") is not None:
            graph.direction = Direction.parse(str(data["direction"]))
        for raw in data.get("nodes", []):
            if isinstance(raw, str):
                graph.nodes.append(Node.bare(raw))
                continue
            node_id = _require(raw, "id", "node")
            shape = _enum_member(NodeShape, raw.get("shape", "Rectangle"), "node shape")
            graph.nodes.append(Node.new(node_id, str(raw.get("label", node_id)), shape))
        for raw in data.get("edges", []):
            edge_type = _enum_member(EdgeType, raw.get("type", "Arrow"), "edge type")
            edge = Edge.new(_require(raw, "from", "edge"), _require(raw, "to", "edge"), edge_type)
            if raw.get("label") is not None:
                edge.label = str(raw["label"])
            graph.edges.append(edge)
        return graph


def upsert_node(nodes: list[Node], node: Node) -> None:
    """Merge a declaration by id: the last explicit label wins, bare references only create.

    A merged node keeps the position (``seq``) of its first mention.
    """
    for i, existing in enumerate(nodes):
        if existing.id == node.id:
            if node.explicit:
                nodes[i] = replace(node, seq=existing.seq)
            return
    nodes.append(node)


# ─── Sequence diagrams ───────────────────────────────────────────────────────


@dataclass
class Participant:
    id: str
    label: str


@dataclass
class Event:
    kind: EventKind
    source: str
    target: str
    label: str = ""
    style: MessageStyle = MessageStyle.SolidArrow

    @classmethod
    def message(cls, source: str, target: str, label: str = "", style: MessageStyle = MessageStyle.SolidArrow) -> Event:
        return cls(kind=EventKind.Message, source=source, target=target, label=label, style=style)

    @classmethod
    def activate(cls, participant: str) -> Event:
        return cls(kind=EventKind.ActivationStart, source=participant, target=participant)

    @classmethod
    def deactivate(cls, participant: str) -> Event:
        return cls(kind=EventKind.ActivationEnd, source=participant, target=participant)


@dataclass
class SequenceDiagram:
    participants: list[Participant] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    autonumber: bool = False

    @classmethod
    def from_description(cls, data: Mapping[str, Any]) -> SequenceDiagram:
        """Build a diagram from ``{"participants": [...], "events": [...]}``.

        Events are ``{"kind": "message", "from", "to", "label"?, "style"?}``,
        ``{"kind": "activate", "participant"}`` or ``{"kind": "deactivate", ...}``.
        """
        diagram = cls(autonumber=bool(data.get("autonumber", False)))
        for raw in data.get("participants", []):
            if isinstance(raw, str):
                diagram.participants.append(Participant(id=raw, label=raw))
                continue
            pid = _require(raw, "id", "participant")
            diagram.participants.append(Participant(id=pid, label=str(raw.get("label", pid))))
        for raw in data.get("events", []):
            kind = str(raw.get("kind", "message")).lower()
            if kind == "message":
                style = _style_from(raw.get("style", MessageStyle.SolidArrow.value))
                diagram.events.append(
                    Event.message(
                        _require(raw, "from", "message"),
                        _require(raw, "to", "message"),
                        str(raw.get("label", "")),
                        style,
                    )
                )
            elif kind == "activate":
                diagram.events.append(Event.activate(_require(raw, "participant", "activation")))
            elif kind == "deactivate":
                diagram.events.append(Event.deactivate(_require(raw, "participant", "activation")))
            else:
                raise ParseError(f"unknown event kind '{kind}'")
        return diagram


def _require(raw: Mapping[str, Any], key: str, what: str) -> str:
    if key not in raw:
        raise ParseError(f"{what} description is missing '{key}'")
    return str(raw[key])


def _enum_member(enum_cls, value: Any, what: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls[str(value)]
    except KeyError:
        raise ParseError(f"unknown {what} '{value}'") from None


def _style_from(value: Any) -> MessageStyle:
    if isinstance(value, MessageStyle):
        return value
    try:
        return MessageStyle(str(value))
    except ValueError:
        raise ParseError(f"unknown message style '{value}'") from None
