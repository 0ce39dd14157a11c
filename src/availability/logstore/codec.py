"""
Text codec for the log file.

Each entry is a block of lines:

    2026-10-19T08:15:02.118204+00:00 [INFO] Updated availability for JAN: 4981932123457
    Data: {
        "jan": "4981932123457",
        "status": "SUCCESS"
      }
    Response: {
        "status": 200,
        ...
      }

followed by one empty line. The header and section labels start in column 0;
every continuation line of a multi-line value is indented by two spaces, so a
label-like string inside a value can never end a section and blank lines
inside a value never end an entry.
"""

import json
import re
from datetime import datetime, timezone
from typing import Iterator, List, Optional

import structlog

from availability.logstore.entry import (
    NO_PAYLOAD,
    PAYLOAD_FIELDS,
    LogEntry,
    LogLevel,
    Payload,
    StructuredPayload,
    TextPayload,
)

logger = structlog.get_logger(__name__)

INDENT = "  "
BLOCK_TERMINATOR = "\n\n"

HEADER_RE = re.compile(r"^(?P<timestamp>\S+) \[(?P<level>[A-Za-z]+)\](?: (?P<message>.*))?$")
LABEL_RE = re.compile(
    r"^(?P<label>" + "|".join(label for _, label in PAYLOAD_FIELDS) + r"):(?: (?P<value>.*))?$"
)
_FIELD_BY_LABEL = {label: name for name, label in PAYLOAD_FIELDS}


class _State:
    IN_HEADER = "in-header"
    IN_SECTION = "in-section"


def _parses_as_json(text: str) -> bool:
    try:
        json.loads(text)
    except (ValueError, RecursionError):
        return False
    return True


def encode_payload(payload: Payload) -> Optional[str]:
    """
    Render a payload value as text.

    Text that would itself read back as JSON is written as a JSON string
    literal so it cannot come back as a structured value.
    """
    if isinstance(payload, TextPayload):
        if _parses_as_json(payload.text):
            return json.dumps(payload.text, ensure_ascii=False)
        return payload.text
    if isinstance(payload, StructuredPayload):
        return json.dumps(payload.data, indent=2, ensure_ascii=False)
    return None


def decode_payload(raw: str) -> Payload:
    """Reconstruct a payload from its text; unparseable text stays text."""
    if not raw:
        return NO_PAYLOAD
    try:
        value = json.loads(raw)
    except (ValueError, RecursionError):
        return TextPayload(raw)
    if isinstance(value, str):
        return TextPayload(value)
    return StructuredPayload(value)


def _fold(first_prefix: str, text: str) -> List[str]:
    lines = text.split("\n")
    return [first_prefix + lines[0]] + [INDENT + line for line in lines[1:]]


def format_timestamp(timestamp: datetime) -> str:
    return timestamp.isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    # Older files carry JavaScript style "Z" suffixes
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    timestamp = datetime.fromisoformat(value)
    # Timestamps without an offset are read as UTC
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def format_entry(entry: LogEntry) -> str:
    """
    Serialize a stamped entry into one block, terminator included.

    Raises:
        ValueError: If the entry has no timestamp yet
    """
    if entry.timestamp is None:
        raise ValueError("Log entry must be stamped before it is formatted")

    header = f"{format_timestamp(entry.timestamp)} [{entry.level.value.upper()}] "
    lines = _fold(header, entry.message)
    for _, label, payload in entry.present_payloads():
        lines.extend(_fold(f"{label}: ", encode_payload(payload)))
    return "\n".join(lines) + BLOCK_TERMINATOR


def iter_blocks(text: str) -> Iterator[List[str]]:
    """Split file content into entry blocks (lists of lines)."""
    block: List[str] = []
    for line in text.split("\n"):
        if line in ("", "\r"):
            if block:
                yield block
                block = []
            continue
        block.append(line)
    if block:
        yield block


def parse_block(lines: List[str]) -> Optional[LogEntry]:
    """
    Parse one block into an entry.

    Two states: while in-header, indented lines continue the message; a
    column-0 label switches to in-section, after which indented lines
    continue the current section. Unindented lines that are not labels
    (hand-edited or legacy files) continue whatever is current.

    Returns:
        The entry, or None if the header cannot be parsed
    """
    match = HEADER_RE.match(lines[0])
    if not match:
        logger.warning("log_block_unparseable", line=lines[0][:80])
        return None

    try:
        timestamp = parse_timestamp(match.group("timestamp"))
        level = LogLevel(match.group("level").lower())
    except ValueError:
        logger.warning("log_header_invalid", line=lines[0][:80])
        return None

    state = _State.IN_HEADER
    message_lines = [match.group("message") or ""]
    sections = {}
    current_field = None
    current_lines: List[str] = []

    for line in lines[1:]:
        label_match = None if line.startswith(INDENT) else LABEL_RE.match(line)

        if label_match:
            if state == _State.IN_SECTION:
                sections[current_field] = current_lines
            state = _State.IN_SECTION
            current_field = _FIELD_BY_LABEL[label_match.group("label")]
            current_lines = [label_match.group("value") or ""]
            continue

        content = line[len(INDENT):] if line.startswith(INDENT) else line
        if state == _State.IN_HEADER:
            message_lines.append(content)
        else:
            current_lines.append(content)

    if state == _State.IN_SECTION:
        sections[current_field] = current_lines

    payloads = {name: decode_payload("\n".join(value)) for name, value in sections.items()}
    return LogEntry(
        level=level,
        message="\n".join(message_lines),
        timestamp=timestamp,
        **payloads,
    )


def parse_recent(text: str, limit: int) -> List[LogEntry]:
    """
    Parse the most recent entries of a log file.

    Returns:
        Up to `limit` entries, newest first
    """
    if limit <= 0:
        return []

    entries = []
    for block in reversed(list(iter_blocks(text))):
        entry = parse_block(block)
        if entry is None:
            continue
        entries.append(entry)
        if len(entries) >= limit:
            break
    return entries


def parse_entries(text: str) -> List[LogEntry]:
    """Parse every entry of a log file, oldest first."""
    entries = []
    for block in iter_blocks(text):
        entry = parse_block(block)
        if entry is not None:
            entries.append(entry)
    return entries
