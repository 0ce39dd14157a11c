"""
Log entry model.

A log entry is an immutable, timestamped audit record. Its optional
payloads are a closed set of variants so that serialization and
reconstruction handle every case explicitly.
"""

import json
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Iterator, Optional, Tuple


class LogLevel(str, Enum):
    """Severity of a log entry."""
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class Payload:
    """Base class of the payload variants."""

    @property
    def is_present(self) -> bool:
        return True

    @property
    def value(self) -> Any:
        raise NotImplementedError

    @staticmethod
    def of(value: Any) -> "Payload":
        """
        Normalize any value into a payload variant.

        None and empty strings become NoPayload, strings become TextPayload,
        everything else becomes StructuredPayload holding its JSON form.
        Values that cannot be represented as JSON are coerced to text.
        """
        if isinstance(value, Payload):
            return value
        if value is None:
            return NO_PAYLOAD
        if isinstance(value, str):
            return TextPayload(value) if value else NO_PAYLOAD

        try:
            normalized = json.loads(json.dumps(value, default=str))
        except (TypeError, ValueError, RecursionError):
            return TextPayload(str(value))

        # A top-level object that only serializes through str()
        if isinstance(normalized, str):
            return TextPayload(normalized) if normalized else NO_PAYLOAD
        return StructuredPayload(normalized)


@dataclass(frozen=True)
class NoPayload(Payload):
    """Absent payload; never written to storage."""

    @property
    def is_present(self) -> bool:
        return False

    @property
    def value(self) -> None:
        return None


@dataclass(frozen=True)
class TextPayload(Payload):
    """Plain text payload."""
    text: str

    @property
    def value(self) -> str:
        return self.text


@dataclass(frozen=True, eq=True)
class StructuredPayload(Payload):
    """JSON-compatible structured payload (object, array, number, boolean)."""
    data: Any

    @property
    def value(self) -> Any:
        return self.data

    def __hash__(self) -> int:
        return hash(json.dumps(self.data, sort_keys=True))


NO_PAYLOAD = NoPayload()

# Field name -> label used in the text format, in write order
PAYLOAD_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("details", "Details"),
    ("data", "Data"),
    ("request", "Request"),
    ("response", "Response"),
)


@dataclass(frozen=True)
class LogEntry:
    """
    One immutable audit record.

    Attributes:
        level: Severity
        message: Human-readable message
        timestamp: Assigned by the store at write time (None before that)
        details: Free-form details (e.g. a stack trace)
        data: Event data (e.g. item fields and outcome)
        request: Outbound request (method, url, headers, body)
        response: Vendor response (status, body)
    """

    level: LogLevel
    message: str
    timestamp: Optional[datetime] = None
    details: Payload = NO_PAYLOAD
    data: Payload = NO_PAYLOAD
    request: Payload = NO_PAYLOAD
    response: Payload = NO_PAYLOAD

    def __post_init__(self):
        """Normalize level, message and payloads."""
        if not isinstance(self.level, LogLevel):
            object.__setattr__(self, "level", LogLevel(str(self.level).lower()))
        if not isinstance(self.message, str):
            object.__setattr__(self, "message", str(self.message))
        for name, _ in PAYLOAD_FIELDS:
            object.__setattr__(self, name, Payload.of(getattr(self, name)))

    @classmethod
    def info(cls, message: str, **payloads: Any) -> "LogEntry":
        return cls(level=LogLevel.INFO, message=message, **payloads)

    @classmethod
    def warn(cls, message: str, **payloads: Any) -> "LogEntry":
        return cls(level=LogLevel.WARN, message=message, **payloads)

    @classmethod
    def error(cls, message: str, **payloads: Any) -> "LogEntry":
        return cls(level=LogLevel.ERROR, message=message, **payloads)

    def with_timestamp(self, timestamp: datetime) -> "LogEntry":
        """Return a copy stamped with the given write time."""
        return replace(self, timestamp=timestamp)

    def present_payloads(self) -> Iterator[Tuple[str, str, Payload]]:
        """Yield (field, label, payload) for every present payload, in write order."""
        for name, label in PAYLOAD_FIELDS:
            payload = getattr(self, name)
            if payload.is_present:
                yield name, label, payload

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        result = {
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "level": self.level.value,
            "message": self.message,
        }
        for name, _, payload in self.present_payloads():
            result[name] = payload.value
        return result
