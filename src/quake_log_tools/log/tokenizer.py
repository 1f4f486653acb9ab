"""
Quake III games.log tokenizer.

Parsing happens in two stages. ``tokenize_line`` checks the line shape
``<mm:ss> <Event>: <payload>`` and the payload parsers check the shape of
the events the match engine cares about. Every function is pure and returns
either a structured record or a ``ParseError``.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Union

WORLD = "<world>"

LINE_PATTERN = re.compile(r'^\s*(?P<timestamp>\d+:\d+)\s+(?P<event>[^:]+):(?P<payload>.*)$')
SEPARATOR_PATTERN = re.compile(r'^\s*(?:\d+:\d+\s+)?-+\s*$')
KILL_PATTERN = re.compile(
    r'^(?P<killer_id>\S+)\s+(?P<victim_id>\S+)\s+(?P<cause_id>[^\s:]+)\s*:\s*'
    r'(?P<text>.+)$'
)
KILL_TEXT_PATTERN = re.compile(r'^(?P<killer>.+?)\s+killed\s+(?P<victim>.+)\s+by\s+(?P<cause>\S+)$')
USERINFO_PATTERN = re.compile(r'^(?P<client_id>\S+)\s+n\\(?P<name>[^\\]+)(?:\\|$)')


class ParseErrorKind(Enum):
    """Recoverable per-line failures."""
    MALFORMED_LINE = "malformed_line"
    INVALID_NUMERIC_FIELD = "invalid_numeric_field"


@dataclass(frozen=True)
class ParseError:
    """A line (or payload) that could not be parsed."""
    kind: ParseErrorKind
    message: str
    raw: str = ""

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


@dataclass(frozen=True)
class LogLine:
    """One tokenized log line."""
    timestamp: str
    event_name: str
    payload: str


@dataclass(frozen=True)
class KillEvent:
    """Payload of a ``Kill`` line."""
    killer_id: int
    victim_id: int
    cause_id: int
    killer_name: str
    victim_name: str
    cause_name: str

    @property
    def is_world_kill(self) -> bool:
        return self.killer_name == WORLD


@dataclass(frozen=True)
class UserinfoChange:
    """Payload of a ``ClientUserinfoChanged`` line."""
    client_id: int
    raw_name: str


def is_skippable(raw: str) -> bool:
    """Blank lines and dash separator lines carry no event."""
    if not raw.strip():
        return True
    return SEPARATOR_PATTERN.match(raw) is not None


def tokenize_line(raw: str) -> Union[LogLine, ParseError]:
    """
    Split a raw line into timestamp, event name and payload.

    Args:
        raw: The line as read from the file (trailing newline allowed)

    Returns:
        LogLine on success, ParseError(MALFORMED_LINE) otherwise
    """
    line = raw.rstrip("\r\n")
    match = LINE_PATTERN.match(line)
    if not match:
        return ParseError(ParseErrorKind.MALFORMED_LINE, "invalid log line format", line)

    event_name = match.group('event').strip()
    if not event_name:
        return ParseError(ParseErrorKind.MALFORMED_LINE, "missing event name", line)

    return LogLine(
        timestamp=match.group('timestamp'),
        event_name=event_name,
        payload=match.group('payload').strip(),
    )


def _parse_int(value: str, field_name: str, raw: str) -> Union[int, ParseError]:
    try:
        return int(value)
    except ValueError:
        return ParseError(ParseErrorKind.INVALID_NUMERIC_FIELD, f"invalid {field_name}: {value!r}", raw)


def parse_kill_payload(payload: str) -> Union[KillEvent, ParseError]:
    """
    Parse ``<killerId> <victimId> <causeId>: <killer> killed <victim> by <cause>``.

    The cause label is the last whitespace-free token, so victim names that
    contain the word "by" are kept whole.
    """
    match = KILL_PATTERN.match(payload)
    if not match:
        return ParseError(ParseErrorKind.MALFORMED_LINE, "could not parse kill event", payload)

    text_match = KILL_TEXT_PATTERN.match(match.group('text').strip())
    if not text_match:
        return ParseError(ParseErrorKind.MALFORMED_LINE, "could not parse kill description", payload)

    ids = []
    for field_name in ('killer_id', 'victim_id', 'cause_id'):
        value = _parse_int(match.group(field_name), field_name.replace('_', ' '), payload)
        if isinstance(value, ParseError):
            return value
        ids.append(value)

    killer_id, victim_id, cause_id = ids
    return KillEvent(
        killer_id=killer_id,
        victim_id=victim_id,
        cause_id=cause_id,
        killer_name=text_match.group('killer').strip(),
        victim_name=text_match.group('victim').strip(),
        cause_name=text_match.group('cause').strip(),
    )


def parse_userinfo_payload(payload: str) -> Union[UserinfoChange, ParseError]:
    r"""Parse ``<clientId> n\<name>\t\0\model\...`` into client id and raw name."""
    match = USERINFO_PATTERN.match(payload)
    if not match:
        return ParseError(ParseErrorKind.MALFORMED_LINE, "could not parse client info", payload)

    client_id = _parse_int(match.group('client_id'), 'client id', payload)
    if isinstance(client_id, ParseError):
        return client_id

    return UserinfoChange(client_id=client_id, raw_name=match.group('name'))
