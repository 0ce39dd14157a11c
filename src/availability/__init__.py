"""
MFC Availability Updater

Bulk-updates product availability on MyFigureCollection. Items are signed
and submitted one at a time, and every attempt is recorded in an
append-only, human-readable audit log.
"""

__version__ = "0.1.0"

from availability.core.submitter import BatchSubmitter
from availability.core.item import Item
from availability.core.outcome import BatchOutcome, BatchResult
from availability.logstore.entry import LogEntry, LogLevel
from availability.logstore.file_store import FileLogStore

__all__ = [
    "BatchSubmitter",
    "Item",
    "BatchOutcome",
    "BatchResult",
    "LogEntry",
    "LogLevel",
    "FileLogStore",
]
