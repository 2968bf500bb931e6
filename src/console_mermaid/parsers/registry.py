"""Parser registry: auto-detect diagram type and dispatch to the right parser."""

from __future__ import annotations

from console_mermaid.ir.ast import Graph, SequenceDiagram
from console_mermaid.parsers.flowchart import FlowchartParser
from console_mermaid.parsers.sequence import SEQUENCE_KEYWORD, SequenceParser


def detect_type(src: str) -> str:
    """Detect the diagram type from source text. Returns 'flowchart' or 'sequence'."""
    for line in src.splitlines():
        line = line.strip()
        if not line or line.startswith("%%"):
            continue
        if line.startswith(SEQUENCE_KEYWORD):
            return "sequence"
        break
    return "flowchart"


_PARSERS = {
    "flowchart": FlowchartParser,
    "sequence": SequenceParser,
}


def parse(src: str) -> Graph | SequenceDiagram:
    """Auto-detect diagram type and parse to AST."""
    parser_cls = _PARSERS[detect_type(src)]
    return parser_cls().parse(src)
