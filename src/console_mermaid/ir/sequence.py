"""Sequence IR: the validated participant/event model of a sequence diagram."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from console_mermaid.errors import DanglingReferenceError, ParseError
from console_mermaid.ir import ast
from console_mermaid.types import EventKind, MessageStyle

logger = logging.getLogger(__name__)


@dataclass
class ParticipantData:
    id: str
    label: str
    index: int
    center: int = 0


@dataclass
class EventData:
    step: int
    kind: EventKind
    source: int
    target: int
    label: str = ""
    style: MessageStyle = MessageStyle.SolidArrow
    number: int = 0

    @property
    def is_self(self) -> bool:
        return self.source == self.target

    def display_label(self) -> str:
        if self.number > 0:
            return f"{self.number}. {self.label}"
        return self.label


class SequenceIR:
    """Participants in first-appearance order and events in declaration order."""

    def __init__(self, participants: list[ParticipantData], events: list[EventData], autonumber: bool = False) -> None:
        self.participants = participants
        self.events = events
        self.autonumber = autonumber

    @classmethod
    def from_ast(cls, diagram: ast.SequenceDiagram) -> SequenceIR:
        """Build and validate the model.

        Raises:
            ParseError: If there are no participants, or a deactivation has no open activation.
            DanglingReferenceError: If an event names an undeclared participant.
        """
        participants: list[ParticipantData] = []
        index_of: dict[str, int] = {}
        for p in diagram.participants:
            if p.id in index_of:
                participants[index_of[p.id]].label = p.label
                continue
            index_of[p.id] = len(participants)
            participants.append(ParticipantData(id=p.id, label=p.label, index=len(participants)))

        if not participants:
            raise ParseError("sequence diagram has no participants")

        def resolve(pid: str, step: int) -> int:
            if pid not in index_of:
                raise DanglingReferenceError(f"event {step} references unknown participant '{pid}'")
            return index_of[pid]

        events: list[EventData] = []
        open_spans = [0] * len(participants)
        message_count = 0
        for step, ev in enumerate(diagram.events):
            source = resolve(ev.source, step)
            target = resolve(ev.target, step)
            data = EventData(step=step, kind=ev.kind, source=source, target=target, label=ev.label, style=ev.style)
            if ev.kind is EventKind.Message:
                message_count += 1
                if diagram.autonumber:
                    data.number = message_count
            elif ev.kind is EventKind.ActivationStart:
                open_spans[source] += 1
            else:
                if open_spans[source] == 0:
                    raise ParseError(f"deactivate '{ev.source}' without a matching activation")
                open_spans[source] -= 1
            events.append(data)

        logger.debug("sequence model: %d participants, %d events", len(participants), len(events))
        return cls(participants=participants, events=events, autonumber=diagram.autonumber)

    def messages(self) -> list[EventData]:
        return [e for e in self.events if e.kind is EventKind.Message]
