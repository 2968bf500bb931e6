"""Sequence diagram renderer: header boxes, lifelines, messages, activation bars."""

from __future__ import annotations

from console_mermaid.layout.sequence import MessageRow, ParticipantBox, SequenceLayout
from console_mermaid.renderers.canvas import Canvas, Rect
from console_mermaid.renderers.charset import BoxChars, CharSet
from console_mermaid.text import display_width


def _paint_header(canvas: Canvas, box: ParticipantBox, bc: BoxChars) -> None:
    rect = Rect(box.x, 0, box.width, box.height)
    canvas.draw_box(rect, bc)
    inner_w = box.width - 2
    for i, line in enumerate(box.label.split("\n")):
        pad = max(0, inner_w - display_width(line)) // 2
        canvas.write_str(box.x + 1 + pad, 1 + i, line)
    canvas.set(box.center, box.height - 1, bc.tee_down)
    canvas.reserve(rect)


def _paint_message(canvas: Canvas, msg: MessageRow, layout: SequenceLayout, bc: BoxChars) -> None:
    h_ch, v_ch = bc.line_chars(dotted=msg.style.is_dotted)
    src = layout.participants[msg.source].center
    dst = layout.participants[msg.target].center
    if msg.label_row is not None:
        canvas.write_str(msg.label_x, msg.label_row, msg.label)

    row = msg.row
    if msg.is_self:
        right = src + msg.loop_width - 1
        canvas.set(src, row, bc.tee_right)
        for col in range(src + 1, right):
            canvas.set(col, row, h_ch)
        canvas.set(right, row, bc.top_right)
        canvas.set(right, row + 1, v_ch)
        for col in range(src + 1, right):
            canvas.set(col, row + 2, h_ch)
        if msg.style.has_arrow:
            canvas.set(src + 1, row + 2, bc.arrow_left)
        canvas.set(right, row + 2, bc.bottom_right)
        return

    if src < dst:
        canvas.set(src, row, bc.tee_right)
        for col in range(src + 1, dst):
            canvas.set(col, row, h_ch)
        if msg.style.has_arrow:
            canvas.set(dst - 1, row, bc.arrow_right)
    else:
        for col in range(dst + 1, src):
            canvas.set(col, row, h_ch)
        if msg.style.has_arrow:
            canvas.set(dst + 1, row, bc.arrow_left)
        canvas.set(src, row, bc.tee_left)


class SequenceRenderer:
    """Paints a SequenceLayout. Lifelines go down first so messages draw over them."""

    def __init__(self, unicode: bool = True) -> None:
        self.unicode = unicode

    def paint(self, layout: SequenceLayout) -> Canvas:
        cs = CharSet.Unicode if self.unicode else CharSet.Ascii
        bc = BoxChars.for_charset(cs)
        canvas = Canvas(layout.width, layout.height, cs)

        for box in layout.participants:
            _paint_header(canvas, box, bc)
            for row in range(layout.header_height, layout.lifeline_end + 1):
                canvas.set(box.center, row, bc.vertical)

        for msg in layout.messages:
            _paint_message(canvas, msg, layout, bc)

        for span in layout.activations:
            for row in range(span.start_row, span.end_row + 1):
                if canvas.get(span.center, row) == bc.vertical:
                    canvas.set(span.center, row, bc.activation)
        return canvas
