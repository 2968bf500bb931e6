"""Grid renderers: canvas, glyph sets, flowchart and sequence painters."""

from console_mermaid.renderers.ascii import AsciiRenderer
from console_mermaid.renderers.base import RenderResult
from console_mermaid.renderers.canvas import Canvas, Rect
from console_mermaid.renderers.charset import Arms, BoxChars, CharSet
from console_mermaid.renderers.sequence import SequenceRenderer

__all__ = [
    "Arms",
    "AsciiRenderer",
    "BoxChars",
    "Canvas",
    "CharSet",
    "Rect",
    "RenderResult",
    "SequenceRenderer",
]
