"""Sequence diagram layout: participant columns and one row band per event.

Participants sit left to right in first-appearance order; events run top to
bottom strictly in declaration order. Every message is a horizontal
connector, so there is no ranking or routing search here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from console_mermaid.ir.sequence import SequenceIR
from console_mermaid.layout.coords import check_canvas_bounds, label_dimensions
from console_mermaid.types import EventKind, MessageStyle

logger = logging.getLogger(__name__)

MIN_BOX_INNER_WIDTH: int = 3
LABEL_LEFT_MARGIN: int = 2
# label start margin plus the arrowhead and one clear cell before it
LABEL_CLEARANCE: int = 4
SELF_MESSAGE_ROWS: int = 3


@dataclass
class SequenceSettings:
    box_padding: int = 1
    participant_spacing: int = 5
    message_spacing: int = 1
    self_message_width: int = 4


@dataclass
class ParticipantBox:
    id: str
    label: str
    x: int
    width: int
    height: int
    center: int


@dataclass
class MessageRow:
    step: int
    source: int
    target: int
    label: str
    style: MessageStyle
    row: int
    label_row: int | None = None
    label_x: int = 0
    loop_width: int = 0

    @property
    def is_self(self) -> bool:
        return self.source == self.target

    @property
    def last_row(self) -> int:
        return self.row + SELF_MESSAGE_ROWS - 1 if self.is_self else self.row


@dataclass
class ActivationSpan:
    participant: int
    center: int
    start_row: int
    end_row: int


@dataclass
class SequenceLayout:
    participants: list[ParticipantBox]
    messages: list[MessageRow] = field(default_factory=list)
    activations: list[ActivationSpan] = field(default_factory=list)
    event_rows: list[int] = field(default_factory=list)
    header_height: int = 0
    lifeline_end: int = 0
    width: int = 0
    height: int = 0


def _participant_centers(widths: list[int], spacing: int) -> list[int]:
    centers: list[int] = []
    current_x = 0
    for box_width in widths:
        if centers:
            current_x += spacing
        centers.append(current_x + box_width // 2)
        current_x += box_width
    return centers


def _widen(centers: list[int], lo: int, hi: int, needed: int) -> None:
    """Shift participants from ``hi`` onward until ``lo`` and ``hi`` are ``needed`` apart."""
    deficit = needed - (centers[hi] - centers[lo])
    if deficit > 0:
        for i in range(hi, len(centers)):
            centers[i] += deficit


def layout_sequence(sir: SequenceIR, settings: SequenceSettings) -> SequenceLayout:
    """Place header boxes, lifelines, message rows and activation spans.

    Raises:
        LayoutOverflowError: If the diagram would exceed the canvas safety bound.
    """
    dims = [label_dimensions(p.label) for p in sir.participants]
    inner = [max(MIN_BOX_INNER_WIDTH, w + 2 * settings.box_padding) for w, _ in dims]
    box_widths = [w + 2 for w in inner]
    header_height = max(h for _, h in dims) + 2

    centers = _participant_centers(box_widths, settings.participant_spacing)
    count = len(centers)
    for ev in sir.messages():
        label_w = label_dimensions(ev.display_label())[0]
        if ev.is_self:
            if ev.source + 1 < count:
                reach = max(settings.self_message_width + 1, label_w + LABEL_CLEARANCE if label_w else 0)
                _widen(centers, ev.source, ev.source + 1, reach)
        elif label_w:
            lo, hi = sorted((ev.source, ev.target))
            _widen(centers, lo, hi, label_w + LABEL_CLEARANCE)

    participants = [
        ParticipantBox(
            id=p.id,
            label=p.label,
            x=centers[i] - box_widths[i] // 2,
            width=box_widths[i],
            height=header_height,
            center=centers[i],
        )
        for i, p in enumerate(sir.participants)
    ]
    for p, box in zip(sir.participants, participants):
        p.center = box.center

    layout = SequenceLayout(participants=participants, header_height=header_height)
    cursor = header_height
    last_message_row: int | None = None
    open_spans: dict[int, list[int]] = {}
    closed: list[ActivationSpan] = []

    for ev in sir.events:
        if ev.kind is EventKind.Message:
            cursor += settings.message_spacing
            label = ev.display_label()
            msg = MessageRow(
                step=ev.step,
                source=ev.source,
                target=ev.target,
                label=label,
                style=ev.style,
                row=cursor,
            )
            if label:
                msg.label_row = cursor
                msg.label_x = min(centers[ev.source], centers[ev.target]) + LABEL_LEFT_MARGIN
                cursor += 1
                msg.row = cursor
            if msg.is_self:
                msg.loop_width = settings.self_message_width
                cursor += SELF_MESSAGE_ROWS
            else:
                cursor += 1
            layout.messages.append(msg)
            layout.event_rows.append(msg.row)
            last_message_row = msg.last_row
            continue

        marker = last_message_row if last_message_row is not None else cursor
        layout.event_rows.append(marker)
        if ev.kind is EventKind.ActivationStart:
            open_spans.setdefault(ev.source, []).append(marker)
        else:
            start = open_spans[ev.source].pop()
            closed.append(ActivationSpan(ev.source, centers[ev.source], start, marker))

    layout.lifeline_end = cursor
    for participant, starts in sorted(open_spans.items()):
        for start in starts:
            closed.append(ActivationSpan(participant, centers[participant], start, cursor))
    layout.activations = sorted(closed, key=lambda s: (s.start_row, s.participant))

    width = max(b.x + b.width for b in participants)
    for msg in layout.messages:
        if msg.label:
            width = max(width, msg.label_x + label_dimensions(msg.label)[0])
        if msg.is_self:
            width = max(width, centers[msg.source] + msg.loop_width)
    layout.width = width
    layout.height = cursor + 1
    check_canvas_bounds(layout.width, layout.height)

    logger.debug(
        "sequence layout: centers %s, %d rows, %d activations",
        centers,
        layout.height,
        len(layout.activations),
    )
    return layout
