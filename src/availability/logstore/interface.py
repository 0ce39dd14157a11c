"""
Abstract log store.

Defines the append-only contract shared by the file-backed and in-memory
stores: stamp and append one entry at a time, read back the most recent
entries newest first.
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

import structlog

from availability.logstore.codec import format_entry, parse_recent
from availability.logstore.entry import LogEntry, LogLevel

logger = structlog.get_logger(__name__)

DEFAULT_READ_LIMIT = 100


class LogStoreError(Exception):
    """Raised when the backing storage cannot be written or read."""
    pass


class LogStore(ABC):
    """
    Append-only store of LogEntry records.

    Each append and each read runs inside a short exclusive section, so a
    reader polling while a batch is running never sees a torn entry.
    Blocking storage access is moved off the event loop.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._last_timestamp: Optional[datetime] = None
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self) -> None:
        """Open the store. Safe to call more than once."""
        if self._open:
            return
        await asyncio.to_thread(self._open_sync)

    async def close(self) -> None:
        """Close the store."""
        if not self._open:
            return
        await asyncio.to_thread(self._close_sync)

    def _open_sync(self) -> None:
        with self._lock:
            self._open_storage()
            latest = parse_recent(self._load_text(), 1)
            if latest:
                self._last_timestamp = latest[0].timestamp
            self._open = True

    def _close_sync(self) -> None:
        with self._lock:
            self._close_storage()
            self._open = False

    async def write(self, entry: LogEntry) -> LogEntry:
        """
        Stamp and append one entry.

        Returns:
            The entry as written, with its timestamp

        Raises:
            LogStoreError: If the store is closed or storage fails
        """
        return await asyncio.to_thread(self._write_sync, entry)

    async def log(self, level: LogLevel, message: str, **payloads: Any) -> LogEntry:
        """Build and write an entry in one call."""
        return await self.write(LogEntry(level=level, message=message, **payloads))

    async def read(self, limit: int = DEFAULT_READ_LIMIT) -> List[LogEntry]:
        """
        Read the most recent entries.

        Args:
            limit: Maximum number of entries to return

        Returns:
            Up to `limit` entries, newest first

        Raises:
            LogStoreError: If the store is closed or storage fails
        """
        if limit <= 0:
            return []
        return await asyncio.to_thread(self._read_sync, limit)

    async def read_or_empty(
        self,
        limit: int = DEFAULT_READ_LIMIT,
    ) -> Tuple[List[LogEntry], Optional[str]]:
        """
        Read the most recent entries, falling back to an empty result.

        Returns:
            Tuple of (entries, error message or None)
        """
        try:
            return await self.read(limit), None
        except LogStoreError as e:
            logger.error("log_read_failed", error=str(e))
            return [], str(e)

    def _next_timestamp(self) -> datetime:
        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now < self._last_timestamp:
            now = self._last_timestamp
        self._last_timestamp = now
        return now

    def _write_sync(self, entry: LogEntry) -> LogEntry:
        with self._lock:
            if not self._open:
                raise LogStoreError("Log store is not open")
            stamped = entry.with_timestamp(self._next_timestamp())
            self._append(format_entry(stamped))
            return stamped

    def _read_sync(self, limit: int) -> List[LogEntry]:
        with self._lock:
            if not self._open:
                raise LogStoreError("Log store is not open")
            text = self._load_text()
        return parse_recent(text, limit)

    @abstractmethod
    def _open_storage(self) -> None:
        """Prepare the backing storage."""
        pass

    @abstractmethod
    def _close_storage(self) -> None:
        """Release the backing storage."""
        pass

    @abstractmethod
    def _append(self, block: str) -> None:
        """Append one formatted block as a single unit."""
        pass

    @abstractmethod
    def _load_text(self) -> str:
        """Return the full stored text."""
        pass

    async def __aenter__(self) -> "LogStore":
        await self.open()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()
