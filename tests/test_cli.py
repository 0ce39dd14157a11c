"""
Test suite for the command-line interface.
"""

import argparse
import json

import pytest

from availability.cli import create_parser, load_items, run_export, run_logs, run_submit
from availability.logstore.entry import LogEntry
from availability.logstore.file_store import FileLogStore


@pytest.fixture
def log_file(tmp_path):
    return tmp_path / "logs" / "availability.log"


def parse(*argv) -> argparse.Namespace:
    return create_parser().parse_args(list(argv))


class TestLoadItems:
    """Tests for reading item files."""

    def test_list(self, tmp_path):
        path = tmp_path / "items.json"
        path.write_text(json.dumps([{"jan": "4981932123457"}]))

        items, skipped = load_items(path)

        assert items == [{"jan": "4981932123457"}]
        assert skipped == 0

    def test_object_with_skipped_count(self, tmp_path):
        path = tmp_path / "items.json"
        path.write_text(json.dumps({"items": [{"jan": "EZ12345678"}], "skipped_count": 4}))

        items, skipped = load_items(path)

        assert len(items) == 1
        assert skipped == 4

    def test_null_skipped_count(self, tmp_path):
        path = tmp_path / "items.json"
        path.write_text(json.dumps({"items": [{"jan": "EZ12345678"}], "skipped_count": None}))

        items, skipped = load_items(path)

        assert len(items) == 1
        assert skipped == 0

    @pytest.mark.asyncio
    async def test_unusable_skipped_count_reported(self, tmp_path, capsys):
        path = tmp_path / "items.json"
        path.write_text(json.dumps({"items": [], "skipped_count": [1, 2]}))

        code = await run_submit(parse("submit", str(path), "--log-file", str(tmp_path / "a.log")))

        assert code == 1
        assert "cannot load items" in capsys.readouterr().err

    def test_invalid_shape(self, tmp_path):
        path = tmp_path / "items.json"
        path.write_text('"just a string"')

        with pytest.raises(ValueError):
            load_items(path)


class TestParser:
    """Tests for argument parsing."""

    def test_submit_arguments(self):
        args = parse("submit", "items.json", "--timeout", "5", "--log-file", "audit.log")

        assert args.command == "submit"
        assert args.items_file == "items.json"
        assert args.timeout == 5.0
        assert args.log_file == "audit.log"

    def test_logs_arguments(self):
        args = parse("logs", "--limit", "10", "--json")

        assert args.limit == 10
        assert args.json is True

    @pytest.mark.parametrize("timeout", ["0", "-1", "soon", "nan"])
    def test_invalid_timeout_rejected(self, timeout, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse("submit", "items.json", "--timeout", timeout)

        assert exc_info.value.code == 2
        assert "--timeout" in capsys.readouterr().err


class TestCommands:
    """Tests for the logs and export commands."""

    @pytest.mark.asyncio
    async def test_logs_json(self, log_file, capsys):
        async with FileLogStore(log_file) as store:
            await store.write(LogEntry.info("first"))
            await store.write(LogEntry.warn("second", data={"jan": "4981932123457"}))

        code = await run_logs(parse("logs", "--json", "--log-file", str(log_file)))

        assert code == 0
        printed = json.loads(capsys.readouterr().out)
        assert [e["message"] for e in printed] == ["second", "first"]
        assert printed[0]["data"] == {"jan": "4981932123457"}

    @pytest.mark.asyncio
    async def test_logs_empty_file(self, log_file, capsys):
        code = await run_logs(parse("logs", "--log-file", str(log_file)))

        assert code == 0
        assert capsys.readouterr().out == ""

    @pytest.mark.asyncio
    async def test_export_to_file(self, log_file, tmp_path):
        async with FileLogStore(log_file) as store:
            await store.write(LogEntry.info(
                "Updated availability for JAN: 4981932123457",
                data={"jan": "4981932123457", "status": "SUCCESS"},
            ))

        output = tmp_path / "out.csv"
        code = await run_export(parse("export", "--output", str(output), "--log-file", str(log_file)))

        assert code == 0
        lines = output.read_text(encoding="utf-8").splitlines()
        assert lines[0] == '"Title","JAN","Price","Vendor","URL","Status","Message"'
        assert '"4981932123457"' in lines[1]

    @pytest.mark.asyncio
    async def test_invalid_configuration_reported(self, log_file, monkeypatch, capsys):
        monkeypatch.setenv("MFC_LOG_READ_LIMIT", "0")

        code = await run_logs(parse("logs", "--log-file", str(log_file)))

        assert code == 2
        assert "invalid configuration" in capsys.readouterr().err
