"""Terminal display width of label text.

East Asian wide characters and most emoji take two terminal cells. Control
and combining characters are counted as one cell so that every character
still owns at least one grid cell.
"""

from __future__ import annotations

from wcwidth import wcwidth


def char_width(ch: str) -> int:
    return max(wcwidth(ch), 1)


def display_width(text: str) -> int:
    return sum(char_width(ch) for ch in text)
