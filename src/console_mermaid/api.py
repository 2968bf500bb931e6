"""Library entry points: Mermaid text or a normalized description in, a RenderResult out."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from console_mermaid.config import RenderConfig
from console_mermaid.ir.ast import Graph, SequenceDiagram
from console_mermaid.ir.graph import GraphIR
from console_mermaid.ir.sequence import SequenceIR
from console_mermaid.layout.coords import LayoutSettings
from console_mermaid.layout.engine import FlowchartLayout
from console_mermaid.layout.sequence import SequenceSettings, layout_sequence
from console_mermaid.parsers.registry import parse
from console_mermaid.renderers.ascii import AsciiRenderer
from console_mermaid.renderers.base import RenderResult
from console_mermaid.renderers.overlay import add_rulers, describe, flowchart_coordinates, sequence_coordinates
from console_mermaid.renderers.sequence import SequenceRenderer

ConfigLike = RenderConfig | Mapping[str, Any] | None


def _resolve_config(config: ConfigLike) -> RenderConfig:
    if config is None:
        config = RenderConfig()
    elif not isinstance(config, RenderConfig):
        return RenderConfig.from_mapping(config)
    config.validate()
    return config


def _finish(text: str, width: int, height: int, coordinates: dict[str, Any], config: RenderConfig) -> RenderResult:
    result = RenderResult(text=text, width=width, height=height)
    if config.show_coordinates:
        result.coordinates = coordinates
        result.overlay = describe(coordinates)
        result.rulers = add_rulers(text)
    return result


def render_flowchart(graph: Graph, config: ConfigLike = None) -> RenderResult:
    """Lay out and paint a parsed flowchart.

    Raises:
        DanglingReferenceError: If an edge names an undeclared node.
        UnsupportedDirectionError: If the configured direction is not LR or TD.
        LayoutOverflowError: If the canvas would exceed the safety bound.
    """
    config = _resolve_config(config)
    gir = GraphIR.from_ast(graph, config.direction_override())
    if gir.node_count() == 0:
        return RenderResult.empty()

    settings = LayoutSettings(
        box_padding=config.box_padding,
        padding_x=gir.padding_x if gir.padding_x is not None else config.padding_x,
        padding_y=gir.padding_y if gir.padding_y is not None else config.padding_y,
    )
    result = FlowchartLayout(settings).layout(gir)
    canvas = AsciiRenderer(unicode=not config.ascii_only).paint(result)
    return _finish(canvas.to_string(), canvas.width, canvas.height, flowchart_coordinates(result), config)


def render_sequence(diagram: SequenceDiagram, config: ConfigLike = None) -> RenderResult:
    """Lay out and paint a parsed sequence diagram."""
    config = _resolve_config(config)
    sir = SequenceIR.from_ast(diagram)
    settings = SequenceSettings(
        box_padding=config.box_padding,
        participant_spacing=config.sequence_participant_spacing,
        message_spacing=config.sequence_message_spacing,
        self_message_width=config.sequence_self_message_width,
    )
    layout = layout_sequence(sir, settings)
    canvas = SequenceRenderer(unicode=not config.ascii_only).paint(layout)
    return _finish(canvas.to_string(), canvas.width, canvas.height, sequence_coordinates(layout), config)


def render_description(description: Mapping[str, Any], config: ConfigLike = None) -> RenderResult:
    """Render a normalized ``{nodes, edges, direction}`` or ``{participants, events}`` mapping."""
    if "participants" in description or "events" in description:
        return render_sequence(SequenceDiagram.from_description(description), config)
    return render_flowchart(Graph.from_description(description), config)


def render(src: str, config: ConfigLike = None) -> RenderResult:
    """Parse Mermaid source (flowchart or sequence diagram) and render it.

    Raises:
        DiagramError: Any parse, validation or layout failure; nothing partial is returned.
    """
    config = _resolve_config(config)
    diagram = parse(src)
    if isinstance(diagram, SequenceDiagram):
        return render_sequence(diagram, config)
    return render_flowchart(diagram, config)


def render_dsl(src: str, config: ConfigLike = None) -> str:
    """Parse and render Mermaid source, returning the text to print."""
    return render(src, config).to_text()
