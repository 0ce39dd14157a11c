"""
Batch outcome models.

An outcome is the transient result of one item submission attempt; the
durable record of it is the log entry written by the submitter.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from availability.core.item import Item


STATUS_SUCCESS = "SUCCESS"
STATUS_FAILED = "FAILED"


class FailureKind(str, Enum):
    """Why an item did not succeed."""
    VALIDATION = "validation"             # Rejected before any network call
    TIMEOUT = "timeout"                   # Vendor did not answer in time
    TRANSPORT = "transport"               # Connection failure
    HTTP_STATUS = "http_status"           # Non-2xx response
    VENDOR_REJECTED = "vendor_rejected"   # 2xx with a non-SUCCESS vendor status
    VENDOR_RESPONSE = "vendor_response"   # 2xx with an unusable body
    UNEXPECTED = "unexpected"             # Anything else raised while processing


@dataclass(frozen=True)
class BatchOutcome:
    """
    Result of one item submission attempt.

    Attributes:
        index: Position of the item in the submitted list
        code: Item code
        status: SUCCESS, FAILED or a vendor-defined status string
        message: Vendor message or failure description
        http_status: HTTP status code if the vendor was reached
        failure: Failure classification, None on success
    """

    index: int
    code: str
    status: str
    message: Optional[str] = None
    http_status: Optional[int] = None
    failure: Optional[FailureKind] = None

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_SUCCESS

    @classmethod
    def failed(
        cls,
        index: int,
        code: str,
        failure: FailureKind,
        message: str,
        http_status: Optional[int] = None,
    ) -> "BatchOutcome":
        """Create a FAILED outcome."""
        return cls(
            index=index,
            code=code,
            status=STATUS_FAILED,
            message=message,
            http_status=http_status,
            failure=failure,
        )

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "jan": self.code,
            "status": self.status,
            "message": self.message,
            "http_status": self.http_status,
            "failure": self.failure.value if self.failure else None,
        }


@dataclass
class BatchResult:
    """
    Collected outcomes of one batch run.

    Attributes:
        total: Number of items handed to the submitter
        outcomes: One outcome per processed item, in input order
        skipped: Items left unprocessed because the batch was cancelled
        skipped_rows: Rows the caller filtered out before submission
        cancelled: Whether cancellation was requested
    """

    total: int
    outcomes: List[BatchOutcome] = field(default_factory=list)
    skipped: List[Item] = field(default_factory=list)
    skipped_rows: int = 0
    cancelled: bool = False
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    @property
    def processed_count(self) -> int:
        return len(self.outcomes)

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def failure_count(self) -> int:
        return self.processed_count - self.success_count

    @property
    def all_succeeded(self) -> bool:
        return not self.skipped and self.failure_count == 0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "total": self.total,
            "processed": self.processed_count,
            "succeeded": self.success_count,
            "failed": self.failure_count,
            "skipped": [item.code for item in self.skipped],
            "skipped_rows": self.skipped_rows,
            "cancelled": self.cancelled,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
