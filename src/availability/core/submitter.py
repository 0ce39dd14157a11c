"""
Batch Submitter.

Sends availability updates for a list of items, one at a time, and turns
every attempt into an outcome and exactly one audit log entry.
"""

import asyncio
import json
import traceback
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Iterable, Mapping, Optional, Tuple

import structlog

from availability.config import AvailabilityConfig, get_config
from availability.core.item import Item, validate_item
from availability.core.outcome import (
    STATUS_SUCCESS,
    BatchOutcome,
    BatchResult,
    FailureKind,
)
from availability.logstore.entry import LogEntry, LogLevel
from availability.logstore.interface import LogStore
from availability.signing.signer import Credentials, RequestSigner
from availability.vendor.interface import (
    VendorConnectionError,
    VendorInterface,
    VendorResponse,
    VendorTimeoutError,
)

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[int, int, str], None]


def _coerce_item(raw: Any) -> Item:
    if isinstance(raw, Item):
        return raw
    if isinstance(raw, Mapping):
        return Item.from_dict(raw)
    # Not an item at all; every field fails validation
    return Item(code="", available=None, price=None, url="")


def _parse_body(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None


class BatchSubmitter:
    """
    Sequential availability update pipeline.

    For each item, in input order:
    - report progress
    - validate the item
    - sign and post the update
    - classify the response
    - write one log entry
    - yield the outcome

    A failing item never stops the batch. Only a configuration error
    (missing keys) propagates, and it does so before any item is touched.

    Usage:
        ```python
        async with MemoryLogStore() as store, MFCClient(config) as vendor:
            submitter = BatchSubmitter(vendor, store, config)
            result = await submitter.submit(items)
        ```
    """

    def __init__(
        self,
        vendor: VendorInterface,
        log_store: LogStore,
        config: Optional[AvailabilityConfig] = None,
        progress: Optional[ProgressCallback] = None,
    ):
        """
        Initialize the submitter.

        Args:
            vendor: Vendor API adapter
            log_store: Opened log store receiving one entry per item
            config: Updater configuration
            progress: Callback receiving (current, total, code) before each item
        """
        self.config = config or get_config()
        self.vendor = vendor
        self.log_store = log_store
        self._on_progress = progress

        # State
        self._running = False
        self._cancel_requested = False

    @property
    def is_running(self) -> bool:
        return self._running

    def on_progress(self, callback: ProgressCallback) -> None:
        """Register callback for progress events."""
        self._on_progress = callback

    def cancel(self) -> None:
        """
        Request cancellation.

        The item in flight completes; remaining items are left unprocessed.
        Ignored when no batch is running.
        """
        if not self._running:
            logger.info("batch_cancel_ignored", reason="no batch running")
            return
        self._cancel_requested = True
        logger.info("batch_cancel_requested")

    def _resolve_signer(self, credentials: Optional[Credentials]) -> RequestSigner:
        if credentials is None:
            return RequestSigner.from_config(self.config)
        return RequestSigner.from_credentials(credentials)

    async def submit_iter(
        self,
        items: Iterable[Any],
        credentials: Optional[Credentials] = None,
    ) -> AsyncIterator[Tuple[int, BatchOutcome]]:
        """
        Submit items one at a time.

        Args:
            items: Items (or item mappings) in submission order
            credentials: Key pair; taken from configuration if omitted

        Yields:
            (index, outcome) for each processed item, in input order

        Raises:
            ConfigurationError: If the keys are missing, before any item
        """
        signer = self._resolve_signer(credentials)
        prepared = [_coerce_item(raw) for raw in items]
        total = len(prepared)

        self._running = True
        logger.info("batch_started", total=total)

        try:
            for index, item in enumerate(prepared):
                if self._cancel_requested:
                    logger.info("batch_cancelled", processed=index, remaining=total - index)
                    break

                outcome = await self._process_item(signer, index, total, item)
                yield index, outcome
        finally:
            self._running = False
            self._cancel_requested = False

    async def submit(
        self,
        items: Iterable[Any],
        credentials: Optional[Credentials] = None,
        skipped_count: int = 0,
    ) -> BatchResult:
        """
        Submit items and collect the outcomes.

        Args:
            items: Items (or item mappings) in submission order
            credentials: Key pair; taken from configuration if omitted
            skipped_count: Rows the caller filtered out before submission

        Returns:
            Batch result with one outcome per processed item
        """
        items = list(items)
        result = BatchResult(total=len(items), skipped_rows=skipped_count)

        async for _, outcome in self.submit_iter(items, credentials):
            result.outcomes.append(outcome)

        if result.processed_count < result.total:
            result.cancelled = True
            result.skipped = [_coerce_item(raw) for raw in items[result.processed_count:]]

        result.finished_at = datetime.now(timezone.utc)
        logger.info(
            "batch_finished",
            total=result.total,
            succeeded=result.success_count,
            failed=result.failure_count,
            skipped=len(result.skipped),
        )
        return result

    def _notify_progress(self, current: int, total: int, code: str) -> None:
        if not self._on_progress:
            return
        try:
            self._on_progress(current, total, code)
        except Exception as e:
            logger.warning("progress_callback_failed", error=str(e))

    async def _process_item(
        self,
        signer: RequestSigner,
        index: int,
        total: int,
        item: Item,
    ) -> BatchOutcome:
        """
        Process a single item.

        Returns:
            The outcome; never raises
        """
        code = str(item.code) if item.code else ""
        self._notify_progress(index + 1, total, code)

        problems = validate_item(item)
        if problems:
            outcome = BatchOutcome.failed(
                index, code, FailureKind.VALIDATION,
                "Invalid item data: " + "; ".join(problems),
            )
            await self._record(item, outcome)
            return outcome

        request_log = None
        response_log = None
        details = None

        try:
            signed = signer.sign(item)
            request_log = self.vendor.describe_request(signed)
            response = await asyncio.wait_for(
                self.vendor.post_update(signed),
                timeout=self.config.request_timeout_seconds,
            )
            outcome, response_log = self._classify(index, code, response)

        except (VendorTimeoutError, asyncio.TimeoutError):
            outcome = BatchOutcome.failed(
                index, code, FailureKind.TIMEOUT,
                f"Request timed out after {self.config.request_timeout_seconds}s",
            )

        except VendorConnectionError as e:
            outcome = BatchOutcome.failed(index, code, FailureKind.TRANSPORT, str(e))

        except Exception as e:
            outcome = BatchOutcome.failed(index, code, FailureKind.UNEXPECTED, str(e) or type(e).__name__)
            details = traceback.format_exc()
            logger.error("item_processing_failed", jan=code, error=str(e))

        await self._record(item, outcome, request=request_log, response=response_log, details=details)
        return outcome

    def _classify(
        self,
        index: int,
        code: str,
        response: VendorResponse,
    ) -> Tuple[BatchOutcome, dict]:
        """
        Classify a vendor response.

        Returns:
            Tuple of (outcome, response payload for the log)
        """
        body = _parse_body(response.text)
        response_log = {
            "status": response.status_code,
            "body": body if body is not None else response.text,
        }

        if not response.is_success:
            response_log["statusText"] = response.reason
            return BatchOutcome.failed(
                index, code, FailureKind.HTTP_STATUS,
                f"HTTP error! status: {response.status_code}",
                http_status=response.status_code,
            ), response_log

        if not isinstance(body, dict) or body.get("status") in (None, ""):
            return BatchOutcome.failed(
                index, code, FailureKind.VENDOR_RESPONSE,
                "Unparseable vendor response",
                http_status=response.status_code,
            ), response_log

        status = str(body["status"])
        message = body.get("message")
        outcome = BatchOutcome(
            index=index,
            code=code,
            status=status,
            message=str(message) if message is not None else None,
            http_status=response.status_code,
            failure=None if status == STATUS_SUCCESS else FailureKind.VENDOR_REJECTED,
        )
        return outcome, response_log

    async def _record(
        self,
        item: Item,
        outcome: BatchOutcome,
        request: Optional[dict] = None,
        response: Optional[dict] = None,
        details: Optional[str] = None,
    ) -> None:
        """Write the single log entry for an item attempt."""
        if outcome.succeeded:
            level = LogLevel.INFO
            message = f"Updated availability for JAN: {outcome.code}"
            logger.info("item_submitted", jan=outcome.code, status=outcome.status)
        else:
            level = LogLevel.WARN if outcome.failure == FailureKind.VENDOR_REJECTED else LogLevel.ERROR
            message = f"Failed to update availability for JAN: {outcome.code}"
            logger.warning(
                "item_failed",
                jan=outcome.code,
                status=outcome.status,
                failure=outcome.failure.value if outcome.failure else None,
                message=outcome.message,
            )

        data = item.to_dict()
        data.update({
            "status": outcome.status,
            "message": outcome.message,
            "failure": outcome.failure.value if outcome.failure else None,
        })

        entry = LogEntry(
            level=level,
            message=message,
            details=details,
            data=data,
            request=request,
            response=response,
        )

        try:
            await self.log_store.write(entry)
        except Exception as e:
            # The outcome is still returned when the audit write fails
            logger.error("log_write_failed", jan=outcome.code, error=str(e))
