"""Glyph tables for box drawing and junction merging.

A junction cell is described by the set of arms that leave it, spelled with
the letters ``u``, ``d``, ``l`` and ``r`` in that order. Every line glyph is
looked up from that spelling, so a cell can be read back into arms, merged
with another stroke and written out again in either character set.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class CharSet(Enum):
    Unicode = "unicode"
    Ascii = "ascii"


_ASCII_CORNERS = ("dr", "dl", "ur", "ul", "udr", "udl", "dlr", "ulr", "udlr")

_JUNCTIONS: dict[CharSet, dict[str, str]] = {
    CharSet.Unicode: {
        "lr": "─",
        "ud": "│",
        "dr": "┌",
        "dl": "┐",
        "ur": "└",
        "ul": "┘",
        "udr": "├",
        "udl": "┤",
        "dlr": "┬",
        "ulr": "┴",
        "udlr": "┼",
    },
    CharSet.Ascii: {"lr": "-", "ud": "|", **dict.fromkeys(_ASCII_CORNERS, "+")},
}

# arrowheads pointing up, down, left, right
_ARROWS: dict[CharSet, str] = {CharSet.Unicode: "▲▼◄►", CharSet.Ascii: "^v<>"}

# dotted h/v, thick h/v, activation bar
_STROKES: dict[CharSet, str] = {CharSet.Unicode: "╌╎═║┃", CharSet.Ascii: ".:=|#"}

_READ_BACK: dict[str, str] = {
    **{glyph: arms for arms, glyph in _JUNCTIONS[CharSet.Unicode].items()},
    "╭": "dr",
    "╮": "dl",
    "╰": "ur",
    "╯": "ul",
    "-": "lr",
    "|": "ud",
    "+": "udlr",
}


@dataclass(frozen=True)
class BoxChars:
    top_left: str
    top_right: str
    bottom_left: str
    bottom_right: str
    horizontal: str
    vertical: str
    tee_right: str
    tee_left: str
    tee_down: str
    arrow_up: str
    arrow_down: str
    arrow_left: str
    arrow_right: str
    dotted: tuple[str, str]
    thick: tuple[str, str]
    activation: str

    @classmethod
    def for_charset(cls, cs: CharSet) -> BoxChars:
        glyph = _JUNCTIONS[cs]
        up, down, left, right = _ARROWS[cs]
        dotted_h, dotted_v, thick_h, thick_v, activation = _STROKES[cs]
        return cls(
            top_left=glyph["dr"],
            top_right=glyph["dl"],
            bottom_left=glyph["ur"],
            bottom_right=glyph["ul"],
            horizontal=glyph["lr"],
            vertical=glyph["ud"],
            tee_right=glyph["udr"],
            tee_left=glyph["udl"],
            tee_down=glyph["dlr"],
            arrow_up=up,
            arrow_down=down,
            arrow_left=left,
            arrow_right=right,
            dotted=(dotted_h, dotted_v),
            thick=(thick_h, thick_v),
            activation=activation,
        )

    @classmethod
    def unicode(cls) -> BoxChars:
        return cls.for_charset(CharSet.Unicode)

    @classmethod
    def ascii(cls) -> BoxChars:
        return cls.for_charset(CharSet.Ascii)

    def with_corners(self, corners: str) -> BoxChars:
        """Copy with the four corners replaced, given top-left, top-right, bottom-left, bottom-right."""
        top_left, top_right, bottom_left, bottom_right = corners
        return replace(
            self, top_left=top_left, top_right=top_right, bottom_left=bottom_left, bottom_right=bottom_right
        )

    def line_chars(self, dotted: bool = False, thick: bool = False) -> tuple[str, str]:
        """(horizontal, vertical) glyphs for a line style."""
        if thick:
            return self.thick
        if dotted:
            return self.dotted
        return (self.horizontal, self.vertical)


@dataclass(frozen=True)
class Arms:
    """Which arms of a junction cell are active."""

    up: bool = False
    down: bool = False
    left: bool = False
    right: bool = False

    @property
    def spelling(self) -> str:
        flags = (self.up, self.down, self.left, self.right)
        return "".join(letter for letter, on in zip("udlr", flags) if on)

    @classmethod
    def spelled(cls, letters: str) -> Arms:
        return cls(up="u" in letters, down="d" in letters, left="l" in letters, right="r" in letters)

    @classmethod
    def from_char(cls, c: str) -> Arms | None:
        letters = _READ_BACK.get(c)
        return None if letters is None else cls.spelled(letters)

    @classmethod
    def toward(cls, direction: str) -> Arms:
        return cls(**{direction: True})

    def merge(self, other: Arms) -> Arms:
        return Arms.spelled(self.spelling + other.spelling)

    def to_char(self, cs: CharSet) -> str:
        letters = self.spelling
        # a lone arm is drawn as a full stroke along its axis
        if letters in ("u", "d"):
            letters = "ud"
        elif letters in ("l", "r"):
            letters = "lr"
        return _JUNCTIONS[cs].get(letters, " ")
