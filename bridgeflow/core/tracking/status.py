"""
Canonical bridge status.

The aggregator reports heterogeneous status strings with optional numeric
progress. Everything downstream only sees the four canonical states below,
produced by ``canonicalize`` from one explicit mapping table.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from ...types.gateway import BridgeStatusResponse


class CanonicalStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (CanonicalStatus.COMPLETE, CanonicalStatus.FAILED)


COMPLETE_STATUSES = frozenset({"completed", "complete", "success", "finished", "executed"})
FAILED_STATUSES = frozenset({"failed", "error"})

# Raw status -> (canonical status, derived progress) for non-terminal states.
STATUS_TABLE: Dict[str, tuple] = {
    "pending": (CanonicalStatus.PENDING, 25),
    "accepted": (CanonicalStatus.PROCESSING, 60),
    "processing": (CanonicalStatus.PROCESSING, 50),
    "confirming": (CanonicalStatus.PROCESSING, 75),
}
UNKNOWN_STATUS = (CanonicalStatus.PROCESSING, 50)


@dataclass(frozen=True)
class StatusUpdate:
    canonical: CanonicalStatus
    progress: int
    raw_status: str
    source_transaction_hash: Optional[str] = None
    destination_transaction_hash: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def terminal(self) -> bool:
        return self.canonical.terminal

    @property
    def failure_message(self) -> str:
        return self.error or self.message or "Bridge transaction failed"


RawStatus = Union[BridgeStatusResponse, Mapping[str, Any]]


def canonicalize(raw: RawStatus) -> StatusUpdate:
    """Map one raw status report onto the canonical lifecycle.

    Precedence: progress >= 100 or a completion status wins, then a failure
    status or any error field, then the table (or its unknown default).
    """
    if not isinstance(raw, BridgeStatusResponse):
        raw = BridgeStatusResponse.model_validate(dict(raw))

    status = (raw.status or "").strip().lower()
    numeric = raw.progress

    common = dict(
        raw_status=raw.status,
        source_transaction_hash=raw.source_transaction_hash,
        destination_transaction_hash=raw.destination_transaction_hash,
        message=raw.message,
        error=raw.error,
    )

    if (numeric is not None and numeric >= 100) or status in COMPLETE_STATUSES:
        return StatusUpdate(canonical=CanonicalStatus.COMPLETE, progress=100, **common)

    if status in FAILED_STATUSES or raw.error:
        return StatusUpdate(canonical=CanonicalStatus.FAILED, progress=0, **common)

    canonical, derived = STATUS_TABLE.get(status, UNKNOWN_STATUS)
    progress = int(numeric) if numeric is not None else derived
    return StatusUpdate(canonical=canonical, progress=max(0, min(progress, 99)), **common)
