"""The finished render result."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RenderResult:
    """A complete rendering: the character grid and, optionally, its coordinates.

    ``text`` holds the rows joined with ``\\n`` (trailing spaces stripped,
    one final newline). When coordinates were requested, ``coordinates``
    maps every node/participant to its box and every edge/message to its
    points and ``overlay`` is the same information as a text listing.
    """

    text: str
    width: int
    height: int
    coordinates: dict[str, Any] | None = None
    overlay: str | None = None
    rulers: str | None = field(default=None, repr=False)

    @classmethod
    def empty(cls) -> RenderResult:
        return cls(text="", width=0, height=0)

    def to_text(self) -> str:
        """The text to print: the grid, or the ruled grid plus overlay in coordinate mode."""
        if self.overlay is None:
            return self.text
        grid = self.rulers if self.rulers is not None else self.text
        return grid + "\n" + self.overlay
