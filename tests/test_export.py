"""
Test suite for CSV export of item log entries.
"""

import csv

from availability.logstore.entry import LogEntry
from availability.logstore.export import (
    EXPORT_COLUMNS,
    entries_to_csv,
    entry_to_row,
    export_entries,
)


def item_entry(jan: str = "4981932123457", **data) -> LogEntry:
    fields = {
        "title": "Nendoroid Hatsune Miku",
        "jan": jan,
        "price": 4800,
        "vendor": "Good Smile Company",
        "url": "https://shop.example/1",
        "available": True,
        "status": "SUCCESS",
        "message": None,
        "failure": None,
    }
    fields.update(data)
    return LogEntry.info(f"Updated availability for JAN: {jan}", data=fields)


class TestExport:
    """Tests for the CSV export."""

    def test_header_row(self):
        text = entries_to_csv([])
        assert text == '"Title","JAN","Price","Vendor","URL","Status","Message"\n'

    def test_row_projection(self):
        row = entry_to_row(item_entry())

        assert row == [
            "Nendoroid Hatsune Miku",
            "4981932123457",
            "4800",
            "Good Smile Company",
            "https://shop.example/1",
            "SUCCESS",
            "Updated availability for JAN: 4981932123457",
        ]

    def test_vendor_message_preferred(self):
        row = entry_to_row(item_entry(status="FAILED", message="Unknown JAN"))
        assert row[5:] == ["FAILED", "Unknown JAN"]

    def test_non_item_entries_skipped(self):
        entries = [
            LogEntry.error("MFC API keys are not set"),
            LogEntry.info("note", data={"unrelated": True}),
            LogEntry.info("text data", data="plain"),
            item_entry(),
        ]

        rows = list(csv.reader(entries_to_csv(entries).splitlines()))

        assert rows[0] == list(EXPORT_COLUMNS)
        assert len(rows) == 2

    def test_quotes_are_escaped(self):
        text = entries_to_csv([item_entry(title='Figure "Deluxe", 1/7')])

        line = text.splitlines()[1]
        assert line.startswith('"Figure ""Deluxe"", 1/7","4981932123457"')

    def test_export_to_file(self, tmp_path):
        path = tmp_path / "export.csv"

        count = export_entries([item_entry(), item_entry("EZ12345678")], path)

        assert count == 2
        with path.open(newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert [row[1] for row in rows[1:]] == ["4981932123457", "EZ12345678"]
