"""
Log Store module.

Append-only audit log of requests, responses and events, persisted as a
human-readable text file and read back with structured payloads intact.
"""

from availability.logstore.entry import (
    LogEntry,
    LogLevel,
    NoPayload,
    Payload,
    StructuredPayload,
    TextPayload,
)
from availability.logstore.interface import LogStore, LogStoreError
from availability.logstore.file_store import FileLogStore
from availability.logstore.memory_store import MemoryLogStore

__all__ = [
    "LogEntry",
    "LogLevel",
    "Payload",
    "NoPayload",
    "TextPayload",
    "StructuredPayload",
    "LogStore",
    "LogStoreError",
    "FileLogStore",
    "MemoryLogStore",
]
