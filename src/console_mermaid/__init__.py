"""console-mermaid: Mermaid flowcharts and sequence diagrams as ASCII/Unicode text."""

from console_mermaid.api import render, render_description, render_dsl, render_flowchart, render_sequence
from console_mermaid.config import RenderConfig
from console_mermaid.errors import (
    ConfigError,
    DanglingReferenceError,
    DiagramError,
    LayoutOverflowError,
    ParseError,
    UnsupportedDirectionError,
)
from console_mermaid.renderers.base import RenderResult
from console_mermaid.types import Direction

__all__ = [
    "ConfigError",
    "DanglingReferenceError",
    "DiagramError",
    "Direction",
    "LayoutOverflowError",
    "ParseError",
    "RenderConfig",
    "RenderResult",
    "UnsupportedDirectionError",
    "render",
    "render_description",
    "render_dsl",
    "render_flowchart",
    "render_sequence",
]
