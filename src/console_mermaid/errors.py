"""Error types raised by the rendering pipeline.

Every failure is fatal to the current render: the caller gets one of these
exceptions and no output.
"""

from __future__ import annotations


class DiagramError(Exception):
    """Base class for all structured render errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class ParseError(DiagramError, ValueError):
    """The diagram source could not be parsed."""


class ConfigError(DiagramError, ValueError):
    """A configuration value is out of range or unknown."""


class DanglingReferenceError(DiagramError):
    """An edge or event references an unknown node or participant."""


class UnsupportedDirectionError(DiagramError, ValueError):
    """A graph direction other than LR or TD was requested."""


class LayoutOverflowError(DiagramError):
    """The laid-out diagram would exceed the canvas safety bound."""
