"""
Command-line interface for the availability updater.

Provides commands for submitting availability updates and inspecting the
audit log.
"""

import argparse
import asyncio
import json
import signal
import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple

import structlog
from pydantic import ValidationError

from availability import __version__
from availability.config import AvailabilityConfig, set_config
from availability.core.outcome import BatchResult
from availability.core.submitter import BatchSubmitter
from availability.logstore.entry import LogEntry, LogLevel
from availability.logstore.export import export_entries, write_csv
from availability.logstore.file_store import FileLogStore
from availability.logstore.interface import LogStoreError
from availability.signing.signer import ConfigurationError
from availability.vendor.mfc import MFCClient

logger = structlog.get_logger(__name__)


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    import logging
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def positive_float(value: str) -> float:
    """Argparse type for strictly positive numbers."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if not number > 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {value!r}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mfc-availability",
        description="Bulk availability updates for MyFigureCollection",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Submit command
    submit_parser = subparsers.add_parser("submit", help="Submit availability updates")
    submit_parser.add_argument(
        "items_file",
        help='JSON file: a list of items or {"items": [...], "skipped_count": N}',
    )
    submit_parser.add_argument(
        "--timeout",
        type=positive_float,
        help="Per-item request timeout in seconds (default: 30)",
    )
    submit_parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )

    # Logs command
    logs_parser = subparsers.add_parser("logs", help="Show recent audit log entries")
    logs_parser.add_argument(
        "--limit",
        type=int,
        help="Number of entries to show (default: 100)",
    )
    logs_parser.add_argument(
        "--json",
        action="store_true",
        help="Print entries as JSON",
    )

    # Export command
    export_parser = subparsers.add_parser("export", help="Export item log entries as CSV")
    export_parser.add_argument(
        "--limit",
        type=int,
        help="Number of entries to export (default: 100)",
    )
    export_parser.add_argument(
        "--output",
        help="Output CSV path (default: stdout)",
    )

    for sub in (submit_parser, logs_parser, export_parser):
        sub.add_argument(
            "--log-file",
            help="Audit log file (default: logs/availability.log)",
        )
        sub.add_argument(
            "--log-level",
            choices=["DEBUG", "INFO", "WARNING", "ERROR"],
            default="INFO",
            help="Logging level (default: INFO)",
        )

    return parser


def build_config(args: argparse.Namespace) -> AvailabilityConfig:
    """Create configuration from environment plus command-line overrides."""
    overrides = {}
    if getattr(args, "log_file", None):
        overrides["log_file_path"] = args.log_file
    if getattr(args, "timeout", None):
        overrides["request_timeout_seconds"] = args.timeout
    overrides["log_level"] = getattr(args, "log_level", "INFO")
    overrides["log_json"] = getattr(args, "log_json", False)

    config = AvailabilityConfig(**overrides)
    set_config(config)
    return config


def _load_config(args: argparse.Namespace) -> Optional[AvailabilityConfig]:
    """Build configuration, printing validation problems instead of raising."""
    try:
        return build_config(args)
    except ValidationError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return None


def load_items(path: Path) -> Tuple[List[Any], int]:
    """
    Load items from a JSON file.

    Returns:
        Tuple of (raw items, number of rows skipped upstream)
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        return list(data.get("items") or []), int(data.get("skipped_count") or 0)
    if isinstance(data, list):
        return data, 0
    raise ValueError("Items file must contain a list or an object with an 'items' list")


def _print_progress(current: int, total: int, code: str) -> None:
    print(f"[{current}/{total}] {code}")


async def _submit_items(config: AvailabilityConfig, items: List[Any], skipped_rows: int) -> BatchResult:
    """Run one batch with the audit log and vendor client open."""
    async with FileLogStore.from_config(config) as store, MFCClient(config) as vendor:
        submitter = BatchSubmitter(vendor, store, config, progress=_print_progress)

        # Set up signal handlers
        loop = asyncio.get_running_loop()
        try:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, submitter.cancel)
        except NotImplementedError:
            pass  # Signals not available on Windows

        try:
            return await submitter.submit(items, skipped_count=skipped_rows)
        except ConfigurationError as e:
            try:
                await store.write(LogEntry.error(str(e)))
            except LogStoreError as write_error:
                logger.error("log_write_failed", error=str(write_error))
            raise


async def run_submit(args: argparse.Namespace) -> int:
    """Submit availability updates."""
    config = _load_config(args)
    if config is None:
        return 2

    try:
        items, skipped_rows = load_items(Path(args.items_file))
    except (OSError, TypeError, ValueError) as e:
        print(f"Error: cannot load items: {e}", file=sys.stderr)
        return 1

    if skipped_rows:
        print(f"{skipped_rows} row(s) were skipped before submission")

    try:
        result = await _submit_items(config, items, skipped_rows)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except LogStoreError as e:
        print(f"Error: audit log unavailable: {e}", file=sys.stderr)
        return 1

    print()
    for outcome in result.outcomes:
        line = f"  {outcome.code or '(no code)'}: {outcome.status}"
        if outcome.message:
            line += f" - {outcome.message}"
        print(line)
    print()
    print(
        f"Processed {result.processed_count}/{result.total}: "
        f"{result.success_count} succeeded, {result.failure_count} failed"
    )
    if result.skipped:
        print(f"Cancelled: {len(result.skipped)} item(s) not processed")

    return 0 if result.all_succeeded else 1


def _format_entry(entry: LogEntry) -> str:
    lines = [f"{entry.timestamp.isoformat()} [{entry.level.value.upper()}] {entry.message}"]
    if entry.level != LogLevel.INFO:
        for name, label, payload in entry.present_payloads():
            if name in ("data", "details"):
                lines.append(f"  {label}: {json.dumps(payload.value, ensure_ascii=False)}")
    return "\n".join(lines)


async def _read_entries(config: AvailabilityConfig, limit: int) -> Tuple[List[LogEntry], Optional[str]]:
    """Read recent entries, reporting storage problems instead of raising."""
    store = FileLogStore.from_config(config)
    try:
        await store.open()
    except LogStoreError as e:
        logger.error("log_store_unavailable", error=str(e))
        return [], str(e)

    try:
        return await store.read_or_empty(limit)
    finally:
        await store.close()


async def run_logs(args: argparse.Namespace) -> int:
    """Show recent log entries, newest first."""
    config = _load_config(args)
    if config is None:
        return 2
    limit = args.limit if args.limit is not None else config.log_read_limit

    entries, error = await _read_entries(config, limit)
    if error:
        print(f"Error: {error}", file=sys.stderr)

    if args.json:
        print(json.dumps([e.to_dict() for e in entries], indent=2, ensure_ascii=False))
    else:
        for entry in entries:
            print(_format_entry(entry))

    return 1 if error else 0


async def run_export(args: argparse.Namespace) -> int:
    """Export item entries as CSV."""
    config = _load_config(args)
    if config is None:
        return 2
    limit = args.limit if args.limit is not None else config.log_read_limit

    entries, error = await _read_entries(config, limit)
    if error:
        print(f"Error: {error}", file=sys.stderr)
        return 1

    if args.output:
        count = export_entries(entries, args.output)
        print(f"Exported {count} row(s) to {args.output}")
    else:
        write_csv(entries, sys.stdout)

    return 0


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Setup logging
    log_level = getattr(args, "log_level", "INFO")
    log_json = getattr(args, "log_json", False)
    setup_logging(log_level, log_json)

    # Run appropriate command
    if args.command == "submit":
        sys.exit(asyncio.run(run_submit(args)))
    elif args.command == "logs":
        sys.exit(asyncio.run(run_logs(args)))
    elif args.command == "export":
        sys.exit(asyncio.run(run_export(args)))


if __name__ == "__main__":
    main()
