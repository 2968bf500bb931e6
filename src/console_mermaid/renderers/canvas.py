"""Canvas: 2D character grid for rendering.

Cells covered by a node box can be reserved; ordinary writes skip reserved
cells so box glyphs always win over edge lines and labels.

A wide character (two terminal columns) occupies its own cell plus an empty
placeholder cell to its right, so every row keeps one cell per column.
"""

from __future__ import annotations

from dataclasses import dataclass

from console_mermaid.renderers.charset import Arms, BoxChars, CharSet
from console_mermaid.text import char_width

# second half of a wide character
WIDE_TAIL = ""


@dataclass
class Rect:
    x: int
    y: int
    width: int
    height: int

    def right(self) -> int:
        return self.x + self.width

    def bottom(self) -> int:
        return self.y + self.height


class Canvas:
    """A 2D character grid onto which graph elements are painted."""

    def __init__(self, width: int, height: int, charset: CharSet) -> None:
        self.width = width
        self.height = height
        self.charset = charset
        self.cells: list[list[str]] = [[" "] * width for _ in range(height)]
        self.reserved: set[tuple[int, int]] = set()

    def in_bounds(self, col: int, row: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def get(self, col: int, row: int) -> str:
        if self.in_bounds(col, row):
            return self.cells[row][col]
        return " "

    def reserve(self, rect: Rect) -> None:
        for row in range(rect.y, rect.bottom()):
            for col in range(rect.x, rect.right()):
                self.reserved.add((col, row))

    def is_reserved(self, col: int, row: int) -> bool:
        return (col, row) in self.reserved

    def _put(self, col: int, row: int, c: str) -> None:
        """Store one cell, blanking the other half of any wide character it splits."""
        cells = self.cells[row]
        if cells[col] == WIDE_TAIL and col > 0:
            cells[col - 1] = " "
        elif col + 1 < self.width and cells[col + 1] == WIDE_TAIL:
            cells[col + 1] = " "
        cells[col] = c

    def set(self, col: int, row: int, c: str) -> None:
        if self.in_bounds(col, row) and (col, row) not in self.reserved:
            self._put(col, row, c)

    def set_merge(self, col: int, row: int, c: str) -> None:
        if not self.in_bounds(col, row) or (col, row) in self.reserved:
            return
        self.merge_arms(col, row, Arms.from_char(c), fallback=c)

    def merge_arms(self, col: int, row: int, arms: Arms | None, fallback: str = " ") -> None:
        """Merge junction arms into a cell, reserved or not."""
        if not self.in_bounds(col, row):
            return
        existing = Arms.from_char(self.cells[row][col])
        if existing is not None and arms is not None:
            self._put(col, row, existing.merge(arms).to_char(self.charset))
        elif arms is not None and fallback == " ":
            self._put(col, row, arms.to_char(self.charset))
        else:
            self._put(col, row, fallback)

    def hline(self, y: int, x1: int, x2: int, c: str) -> None:
        lo, hi = (x1, x2) if x1 <= x2 else (x2, x1)
        for col in range(lo, hi + 1):
            self.set_merge(col, y, c)

    def vline(self, x: int, y1: int, y2: int, c: str) -> None:
        lo, hi = (y1, y2) if y1 <= y2 else (y2, y1)
        for row in range(lo, hi + 1):
            self.set_merge(x, row, c)

    def draw_box(self, rect: Rect, bc: BoxChars) -> None:
        if rect.width < 2 or rect.height < 2:
            return
        x0 = rect.x
        y0 = rect.y
        x1 = rect.x + rect.width - 1
        y1 = rect.y + rect.height - 1
        self.set(x0, y0, bc.top_left)
        self.set(x1, y0, bc.top_right)
        self.set(x0, y1, bc.bottom_left)
        self.set(x1, y1, bc.bottom_right)
        for col in range(x0 + 1, x1):
            self.set(col, y0, bc.horizontal)
            self.set(col, y1, bc.horizontal)
        for row in range(y0 + 1, y1):
            self.set(x0, row, bc.vertical)
            self.set(x1, row, bc.vertical)

    def write_str(self, col: int, row: int, s: str, protect: bool = False) -> None:
        """Write text left to right by display width; with ``protect`` reserved cells are skipped."""
        c = col
        for ch in s:
            w = char_width(ch)
            cells = [(c + i, row) for i in range(w)]
            c += w
            if not all(self.in_bounds(*cell) for cell in cells):
                continue
            if protect and any(cell in self.reserved for cell in cells):
                continue
            self._put(cells[0][0], row, ch)
            for tail_col, _ in cells[1:]:
                if tail_col + 1 < self.width and self.cells[row][tail_col + 1] == WIDE_TAIL:
                    self.cells[row][tail_col + 1] = " "
                self.cells[row][tail_col] = WIDE_TAIL

    def to_string(self) -> str:
        lines = []
        for row in self.cells:
            line = "".join(row).rstrip()
            lines.append(line)
        out = "\n".join(lines)
        trimmed = out.rstrip("\n")
        return trimmed + "\n"
