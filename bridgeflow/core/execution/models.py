"""
Execution Models

Data models for one transfer execution attempt: the state machine's states,
the two execution plans and the TransferRecord the executor mutates.
"""

from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Union

from ..errors import ClassifiedError
from ..quote.models import Quote, TransferIntent
from ..tracking.status import CanonicalStatus, StatusUpdate
from .wallet import SmartAccountHandler, WalletChannel


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TransferState(str, Enum):
    """Execution steps, in the order the user sees them."""

    CONFIRM = "confirm"
    SIGNING = "signing"
    BROADCASTING = "broadcasting"
    BRIDGING = "bridging"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def progress(self) -> int:
        return STATE_PROGRESS[self]

    @property
    def terminal(self) -> bool:
        return self in (TransferState.COMPLETE, TransferState.ERROR)


STATE_PROGRESS: Dict[TransferState, int] = {
    TransferState.CONFIRM: 0,
    TransferState.SIGNING: 10,
    TransferState.BROADCASTING: 30,
    TransferState.BRIDGING: 50,
    TransferState.COMPLETE: 100,
    TransferState.ERROR: 0,
}


class ExecutionPlanKind(str, Enum):
    SPONSORED_SMART_ACCOUNT = "sponsored_smart_account"
    STANDARD_WALLET = "standard_wallet"


@dataclass(frozen=True)
class SponsoredSmartAccountPlan:
    """Fees covered by a paymaster; the handler builds and sends the operation."""

    handler: SmartAccountHandler
    smart_account_address: str
    destination_chain: str
    source_chain: str

    kind: ClassVar[ExecutionPlanKind] = ExecutionPlanKind.SPONSORED_SMART_ACCOUNT

    @property
    def sponsored(self) -> bool:
        return True


@dataclass(frozen=True)
class StandardWalletPlan:
    """User signs and pays network fees through the wallet channel."""

    channel: Optional[WalletChannel]
    source_chain: str
    requires_network_switch: bool = False
    target_network_id: Optional[int] = None

    kind: ClassVar[ExecutionPlanKind] = ExecutionPlanKind.STANDARD_WALLET

    @property
    def sponsored(self) -> bool:
        return False


ExecutionPlan = Union[SponsoredSmartAccountPlan, StandardWalletPlan]


@dataclass(frozen=True)
class WalletContext:
    """Wallet/network state handed to the selector and executor explicitly."""

    address: Optional[str] = None
    channel: Optional[WalletChannel] = None
    smart_account: Optional[SmartAccountHandler] = None
    smart_account_address: Optional[str] = None
    active_network_id: Optional[int] = None

    @property
    def has_smart_account(self) -> bool:
        return self.smart_account is not None and bool(self.smart_account_address)

    @property
    def connected(self) -> bool:
        return bool(self.address) or self.has_smart_account


@dataclass(frozen=True)
class StateTransition:
    from_state: TransferState
    to_state: TransferState
    at: datetime
    reason: Optional[str] = None


@dataclass
class TransferRecord:
    """One execution attempt. Owned by the session that created it."""

    intent: TransferIntent
    quote: Quote
    plan: ExecutionPlan
    attempt_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: TransferState = TransferState.CONFIRM
    progress: int = 0
    transaction_hash: Optional[str] = None
    bridge_id: Optional[str] = None
    canonical_status: Optional[CanonicalStatus] = None
    raw_provider_status: Optional[str] = None
    source_transaction_hash: Optional[str] = None
    destination_transaction_hash: Optional[str] = None
    signature: Optional[str] = None
    error: Optional[ClassifiedError] = None
    history: List[StateTransition] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    @property
    def terminal(self) -> bool:
        return self.state.terminal

    @property
    def plan_kind(self) -> ExecutionPlanKind:
        return self.plan.kind

    def snapshot(self) -> "TransferRecord":
        """Independent copy; later mutations of this record do not show through."""
        return dataclasses.replace(self, history=list(self.history))

    def apply_status(self, update: StatusUpdate) -> None:
        self.canonical_status = update.canonical
        self.raw_provider_status = update.raw_status
        self.source_transaction_hash = update.source_transaction_hash or self.source_transaction_hash
        self.destination_transaction_hash = (
            update.destination_transaction_hash or self.destination_transaction_hash
        )
        if not update.terminal:
            self.progress = update.progress
        self.updated_at = _utc_now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attemptId": self.attempt_id,
            "state": self.state.value,
            "progress": self.progress,
            "plan": self.plan.kind.value,
            "intent": self.intent.to_dict(),
            "quote": self.quote.to_dict(),
            "transactionHash": self.transaction_hash,
            "bridgeId": self.bridge_id,
            "canonicalStatus": self.canonical_status.value if self.canonical_status else None,
            "rawProviderStatus": self.raw_provider_status,
            "sourceTransactionHash": self.source_transaction_hash,
            "destinationTransactionHash": self.destination_transaction_hash,
            "error": self.error.to_dict() if self.error else None,
            "history": [
                {"from": t.from_state.value, "to": t.to_state.value, "at": t.at.isoformat(), "reason": t.reason}
                for t in self.history
            ],
        }
