"""
CSV export of item log entries.

A flat projection of the entries written for item outcomes, with every
field double-quoted.
"""

import csv
import io
from pathlib import Path
from typing import Iterable, List, Optional, TextIO, Union

from availability.logstore.entry import LogEntry, StructuredPayload

EXPORT_COLUMNS = ("Title", "JAN", "Price", "Vendor", "URL", "Status", "Message")


def _cell(value) -> str:
    return "" if value is None else str(value)


def entry_to_row(entry: LogEntry) -> Optional[List[str]]:
    """
    Project an item outcome entry onto the export columns.

    Returns:
        The row, or None if the entry does not describe an item
    """
    if not isinstance(entry.data, StructuredPayload):
        return None
    data = entry.data.data
    if not isinstance(data, dict) or "jan" not in data:
        return None

    message = data.get("message")
    return [
        _cell(data.get("title")),
        _cell(data.get("jan")),
        _cell(data.get("price")),
        _cell(data.get("vendor")),
        _cell(data.get("url")),
        _cell(data.get("status")),
        _cell(message if message is not None else entry.message),
    ]


def write_csv(entries: Iterable[LogEntry], stream: TextIO) -> int:
    """
    Write item entries as CSV to a text stream, header included.

    Returns:
        Number of rows written (header excluded)
    """
    writer = csv.writer(stream, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    count = 0
    for entry in entries:
        row = entry_to_row(entry)
        if row is not None:
            writer.writerow(row)
            count += 1
    return count


def entries_to_csv(entries: Iterable[LogEntry]) -> str:
    """Render item entries as CSV text."""
    buffer = io.StringIO()
    write_csv(entries, buffer)
    return buffer.getvalue()


def export_entries(entries: Iterable[LogEntry], path: Union[str, Path]) -> int:
    """
    Write item entries to a CSV file.

    Returns:
        Number of rows written (header excluded)
    """
    with Path(path).open("w", encoding="utf-8", newline="") as f:
        return write_csv(entries, f)
