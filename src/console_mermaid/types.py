"""Shared type definitions for console-mermaid.

Enums used across parsers, IR, layout, and renderers.
"""

from __future__ import annotations

from enum import Enum, auto

from console_mermaid.errors import UnsupportedDirectionError


class Direction(Enum):
    LR = "LR"
    TD = "TD"

    @classmethod
    def default(cls) -> Direction:
        return cls.TD

    @classmethod
    def parse(cls, value: str) -> Direction:
        """Parse a direction keyword; TB is accepted as an alias of TD."""
        key = value.strip().upper()
        if key == "TB":
            key = "TD"
        for member in cls:
            if member.value == key:
                return member
        raise UnsupportedDirectionError(f"unsupported graph direction '{value}'; use LR or TD")

    @property
    def is_horizontal(self) -> bool:
        return self is Direction.LR


class NodeShape(Enum):
    Rectangle = auto()  # id[Label]
    Rounded = auto()  # id(Label)
    Diamond = auto()  # id{Label}
    Circle = auto()  # id((Label))

    @classmethod
    def default(cls) -> NodeShape:
        return cls.Rectangle


class EdgeType(Enum):
    Arrow = auto()  # -->
    Line = auto()  # ---
    DottedArrow = auto()  # -.->
    DottedLine = auto()  # -.-
    ThickArrow = auto()  # ==>
    ThickLine = auto()  # ===
    BidirArrow = auto()  # <-->
    BidirDotted = auto()  # <-.->
    BidirThick = auto()  # <==>

    @property
    def has_arrow(self) -> bool:
        return self not in (EdgeType.Line, EdgeType.DottedLine, EdgeType.ThickLine)

    @property
    def is_bidirectional(self) -> bool:
        return self in (EdgeType.BidirArrow, EdgeType.BidirDotted, EdgeType.BidirThick)

    @property
    def is_dotted(self) -> bool:
        return self in (EdgeType.DottedArrow, EdgeType.DottedLine, EdgeType.BidirDotted)

    @property
    def is_thick(self) -> bool:
        return self in (EdgeType.ThickArrow, EdgeType.ThickLine, EdgeType.BidirThick)


class EdgeKind(Enum):
    """How the router treats an edge once ranks are known."""

    Direct = auto()  # destination one rank after the source
    RankSkip = auto()  # destination two or more ranks after the source
    Back = auto()  # closes a cycle; routed in a reserved outer lane
    SelfLoop = auto()  # source == destination


class MessageStyle(Enum):
    SolidArrow = "->>"
    DottedArrow = "-->>"
    SolidLine = "->"
    DottedLine = "-->"

    @property
    def is_dotted(self) -> bool:
        return self in (MessageStyle.DottedArrow, MessageStyle.DottedLine)

    @property
    def has_arrow(self) -> bool:
        return self in (MessageStyle.SolidArrow, MessageStyle.DottedArrow)


class EventKind(Enum):
    Message = auto()
    ActivationStart = auto()
    ActivationEnd = auto()
