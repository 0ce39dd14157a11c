"""
File-backed log store.

The durable audit log: a plain text file that can be tailed or opened
directly, appended to one block at a time.
"""

import os
from pathlib import Path
from typing import Optional, Union

import structlog

from availability.config import AvailabilityConfig, get_config
from availability.logstore.codec import BLOCK_TERMINATOR
from availability.logstore.interface import LogStore, LogStoreError

logger = structlog.get_logger(__name__)


class FileLogStore(LogStore):
    """
    Append-only text file store.

    Files are opened with newline="" so stored values keep their exact
    line endings.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize the file store.

        Args:
            path: Log file path (created on open if missing)
        """
        super().__init__()
        self.path = Path(path)
        # Prefix needed before the next block if the file ends mid-entry
        self._pending_separator = ""

    @classmethod
    def from_config(cls, config: Optional[AvailabilityConfig] = None) -> "FileLogStore":
        config = config or get_config()
        return cls(config.log_file_path)

    def _open_storage(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.touch(exist_ok=True)
            self._pending_separator = self._separator_for_tail()
        except OSError as e:
            raise LogStoreError(f"Cannot open log file {self.path}: {e}") from e

        logger.info("log_store_opened", path=str(self.path))

    def _close_storage(self) -> None:
        logger.info("log_store_closed", path=str(self.path))

    def _separator_for_tail(self) -> str:
        """Work out what must precede the next block given the file tail."""
        size = self.path.stat().st_size
        if size == 0:
            return ""
        with self.path.open("rb") as f:
            f.seek(max(0, size - 2), os.SEEK_SET)
            tail = f.read()
        if tail.endswith(b"\n\n") or tail == b"\n":
            return ""
        if tail.endswith(b"\n"):
            return "\n"
        logger.warning("log_file_truncated_entry", path=str(self.path))
        return BLOCK_TERMINATOR

    def _append(self, block: str) -> None:
        try:
            with self.path.open("a", encoding="utf-8", newline="") as f:
                f.write(self._pending_separator + block)
                f.flush()
        except OSError as e:
            raise LogStoreError(f"Cannot write log file {self.path}: {e}") from e
        self._pending_separator = ""

    def _load_text(self) -> str:
        try:
            with self.path.open("r", encoding="utf-8", errors="replace", newline="") as f:
                return f.read()
        except FileNotFoundError:
            return ""
        except OSError as e:
            raise LogStoreError(f"Cannot read log file {self.path}: {e}") from e
