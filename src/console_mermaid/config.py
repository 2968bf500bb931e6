"""Centralized configuration for console-mermaid."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from console_mermaid.errors import ConfigError
from console_mermaid.types import Direction

# camelCase option names accepted from external callers
_ALIASES: dict[str, str] = {
    "asciiOnly": "ascii_only",
    "showCoordinates": "show_coordinates",
    "boxPadding": "box_padding",
    "paddingX": "padding_x",
    "paddingY": "padding_y",
    "graphDirection": "graph_direction",
    "sequenceParticipantSpacing": "sequence_participant_spacing",
    "sequenceMessageSpacing": "sequence_message_spacing",
    "sequenceSelfMessageWidth": "sequence_self_message_width",
}


@dataclass
class RenderConfig:
    """Configuration for the rendering pipeline."""

    ascii_only: bool = False
    show_coordinates: bool = False
    box_padding: int = 1
    padding_x: int = 5
    padding_y: int = 5
    graph_direction: str | None = None
    sequence_participant_spacing: int = 5
    sequence_message_spacing: int = 1
    sequence_self_message_width: int = 4

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> RenderConfig:
        """Build a config from field names or their camelCase aliases."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ConfigError(f"unknown option '{key}'")
            kwargs[name] = value
        config = cls(**kwargs)
        config.validate()
        return config

    def validate(self) -> None:
        for name in ("box_padding", "padding_x", "padding_y", "sequence_participant_spacing", "sequence_message_spacing"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigError(f"invalid config: {name} = {value!r} (must be a non-negative integer)")
        width = self.sequence_self_message_width
        if not isinstance(width, int) or isinstance(width, bool) or width < 2:
            raise ConfigError(f"invalid config: sequence_self_message_width = {width!r} (must be at least 2)")
        self.direction_override()

    def direction_override(self) -> Direction | None:
        """The configured direction, or None to keep the diagram's own."""
        if self.graph_direction is None:
            return None
        return Direction.parse(self.graph_direction)
