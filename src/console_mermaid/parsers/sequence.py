"""Sequence diagram parser: line oriented, one regex per statement kind."""

from __future__ import annotations

import logging
import re

from console_mermaid.errors import ParseError
from console_mermaid.ir.ast import Event, Participant, SequenceDiagram
from console_mermaid.types import MessageStyle

logger = logging.getLogger(__name__)

SEQUENCE_KEYWORD = "sequenceDiagram"

_COMMENT_RE = re.compile(r"%%.*$")
_ID = r'(?:"([^"]+)"|([^\s\-+>:"]+))'
_PARTICIPANT_RE = re.compile(r'^(participant|actor)\s+(?:"([^"]+)"|(\S+))(?:\s+as\s+(.+))?$')
_MESSAGE_RE = re.compile(rf"^{_ID}\s*(-->>|->>|-->|->)\s*([+-]?)\s*{_ID}\s*(?::\s*(.*))?$")
_ACTIVATION_RE = re.compile(r"^(activate|deactivate)\s+(\S+)$")
_AUTONUMBER_RE = re.compile(r"^autonumber$")


class SequenceParser:
    """Sequence diagram parser."""

    def parse(self, src: str) -> SequenceDiagram:
        lines = [_COMMENT_RE.sub("", line).strip() for line in src.splitlines()]
        numbered = [(i + 1, line) for i, line in enumerate(lines) if line]
        if not numbered:
            raise ParseError("empty input")
        header_no, header = numbered[0]
        if header != SEQUENCE_KEYWORD:
            raise ParseError(f'line {header_no}: expected "{SEQUENCE_KEYWORD}" keyword')

        diagram = SequenceDiagram()
        seen: set[str] = set()

        def touch(pid: str) -> None:
            if pid not in seen:
                seen.add(pid)
                diagram.participants.append(Participant(id=pid, label=pid))

        for line_no, line in numbered[1:]:
            if _AUTONUMBER_RE.match(line):
                diagram.autonumber = True
                continue

            m = _PARTICIPANT_RE.match(line)
            if m:
                pid = m.group(2) or m.group(3)
                label = (m.group(4) or pid).strip().strip('"')
                seen.add(pid)
                diagram.participants.append(Participant(id=pid, label=label))
                continue

            m = _ACTIVATION_RE.match(line)
            if m:
                pid = m.group(2)
                if m.group(1) == "activate":
                    diagram.events.append(Event.activate(pid))
                else:
                    diagram.events.append(Event.deactivate(pid))
                continue

            m = _MESSAGE_RE.match(line)
            if m:
                source = m.group(1) or m.group(2)
                arrow, marker = m.group(3), m.group(4)
                target = m.group(5) or m.group(6)
                label = (m.group(7) or "").strip()
                touch(source)
                touch(target)
                diagram.events.append(Event.message(source, target, label, MessageStyle(arrow)))
                if marker == "+":
                    diagram.events.append(Event.activate(target))
                elif marker == "-":
                    diagram.events.append(Event.deactivate(source))
                continue

            raise ParseError(f'line {line_no}: invalid syntax: "{line}"')

        if not diagram.participants:
            raise ParseError("no participants found")

        logger.debug(
            "parsed sequence diagram: %d participants, %d events",
            len(diagram.participants),
            len(diagram.events),
        )
        return diagram
