"""
Core updater components.

This module contains the item and outcome models and the batch submitter
that drives signing, delivery and audit logging.
"""

from availability.core.item import Item, validate_item
from availability.core.outcome import BatchOutcome, BatchResult, FailureKind
from availability.core.submitter import BatchSubmitter

__all__ = [
    "Item",
    "validate_item",
    "BatchOutcome",
    "BatchResult",
    "FailureKind",
    "BatchSubmitter",
]
