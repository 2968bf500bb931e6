"""Mermaid text front-end."""

from console_mermaid.parsers.base import Parser
from console_mermaid.parsers.flowchart import FlowchartParser
from console_mermaid.parsers.registry import detect_type, parse
from console_mermaid.parsers.sequence import SequenceParser

__all__ = ["FlowchartParser", "Parser", "SequenceParser", "detect_type", "parse"]
