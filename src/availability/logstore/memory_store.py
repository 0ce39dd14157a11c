"""
In-memory log store.

Keeps formatted blocks in a list; entries go through the same codec as
the file store, so what is read back is exactly what a file would give.
"""

from typing import List

from availability.logstore.interface import LogStore


class MemoryLogStore(LogStore):
    """Log store for tests and runs that do not need an audit file."""

    def __init__(self):
        super().__init__()
        self._blocks: List[str] = []

    def _open_storage(self) -> None:
        pass

    def _close_storage(self) -> None:
        pass

    def _append(self, block: str) -> None:
        self._blocks.append(block)

    def _load_text(self) -> str:
        return "".join(self._blocks)

    @property
    def entry_count(self) -> int:
        return len(self._blocks)
