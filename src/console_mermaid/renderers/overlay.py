"""Coordinate overlay: structured coordinates, a text listing, and grid rulers."""

from __future__ import annotations

from typing import Any

from console_mermaid.layout.sequence import SequenceLayout
from console_mermaid.layout.types import LayoutResult
from console_mermaid.text import display_width


def _box(x: int, y: int, width: int, height: int) -> dict[str, int]:
    return {"x": x, "y": y, "width": width, "height": height}


def flowchart_coordinates(result: LayoutResult) -> dict[str, Any]:
    return {
        "nodes": {n.id: _box(n.x, n.y, n.width, n.height) for n in result.nodes},
        "edges": [
            {
                "index": re.index,
                "from": re.from_id,
                "to": re.to_id,
                "kind": re.kind.name,
                "points": [[p.x, p.y] for p in re.waypoints],
            }
            for re in result.edges
        ],
        "clusters": {c.id: _box(c.x, c.y, c.width, c.height) for c in result.clusters},
    }


def sequence_coordinates(layout: SequenceLayout) -> dict[str, Any]:
    return {
        "participants": {p.id: _box(p.x, 0, p.width, p.height) for p in layout.participants},
        "messages": [
            {
                "step": m.step,
                "from": layout.participants[m.source].id,
                "to": layout.participants[m.target].id,
                "row": m.row,
                "points": [
                    [layout.participants[m.source].center, m.row],
                    [layout.participants[m.target].center, m.last_row],
                ],
            }
            for m in layout.messages
        ],
    }


def describe(coordinates: dict[str, Any]) -> str:
    """One line per box and per connector."""
    lines: list[str] = []
    boxes = coordinates.get("nodes", coordinates.get("participants", {}))
    for name, b in boxes.items():
        lines.append(f"{name}: x={b['x']} y={b['y']} w={b['width']} h={b['height']}")
    for name, b in coordinates.get("clusters", {}).items():
        lines.append(f"subgraph {name}: x={b['x']} y={b['y']} w={b['width']} h={b['height']}")
    for item in coordinates.get("edges", coordinates.get("messages", [])):
        pts = " ".join(f"({x},{y})" for x, y in item["points"])
        lines.append(f"{item['from']} -> {item['to']}: {pts}")
    return "\n".join(lines) + "\n"


def add_rulers(text: str) -> str:
    """Frame a rendered grid with a column ruler on top and row numbers on the left."""
    rows = text.rstrip("\n").split("\n") if text else []
    width = max((display_width(r) for r in rows), default=0)
    gutter = len(str(max(len(rows) - 1, 0)))
    header = " " * (gutter + 1) + "".join(str(x % 10) for x in range(width))
    body = [f"{y:>{gutter}} {row}".rstrip() for y, row in enumerate(rows)]
    return "\n".join([header, *body]) + "\n"
