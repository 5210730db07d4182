"""
Transaction Executor

Drives one transfer attempt through the execution state machine:

    Confirm -> Signing -> Broadcasting -> Bridging -> {Complete, Error}

Transitions are validated against an explicit table. Failures are
classified and end the attempt at Error; there is no automatic retry,
callers start a new attempt from Confirm.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Union

from ...config import settings
from ..errors import (
    ExecutionPreparationError,
    InvalidTransitionError,
    classify,
)
from ..quote.engine import QuoteEngine
from ..quote.models import Quote, TransferIntent
from ..tracking.status import CanonicalStatus
from ..tracking.tracker import StatusTracker
from .models import (
    ExecutionPlan,
    StandardWalletPlan,
    StateTransition,
    TransferRecord,
    TransferState,
)
from .selector import ExecutionPathSelector
from .wallet import EvmChainAdapter

StateChangeCallback = Callable[[TransferRecord], Union[None, Awaitable[None]]]
Sleep = Callable[[float], Awaitable[Any]]


class TransactionExecutor:
    """
    Owns the transfer state machine.

    Features:
    - Refuses expired or mismatched quotes before entering the state machine
    - Completes direct quotes without any network interaction
    - Best-effort network switch with a bounded grace period
    - Hands the submitted transfer to StatusTracker and applies its updates
    - Emits a snapshot of the record after every change
    """

    TRANSITIONS: Dict[TransferState, Set[TransferState]] = {
        TransferState.CONFIRM: {
            TransferState.SIGNING,
            TransferState.COMPLETE,  # Direct quote, nothing to move
            TransferState.ERROR,
        },
        TransferState.SIGNING: {
            TransferState.BROADCASTING,
            TransferState.ERROR,
        },
        TransferState.BROADCASTING: {
            TransferState.BRIDGING,
            TransferState.ERROR,
        },
        TransferState.BRIDGING: {
            TransferState.COMPLETE,
            TransferState.ERROR,
        },
        TransferState.COMPLETE: set(),
        TransferState.ERROR: set(),
    }

    def __init__(
        self,
        engine: QuoteEngine,
        selector: ExecutionPathSelector,
        *,
        network_switch_grace_seconds: Optional[float] = None,
        sleep: Optional[Sleep] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._engine = engine
        self._selector = selector
        self.network_switch_grace_seconds = (
            settings.network_switch_grace_seconds
            if network_switch_grace_seconds is None
            else network_switch_grace_seconds
        )
        self._sleep = sleep or asyncio.sleep
        self.logger = logger or logging.getLogger(__name__)

    # ─────────────────────────────────────────────────────────────────────────
    # State machine
    # ─────────────────────────────────────────────────────────────────────────

    def can_transition(self, record: TransferRecord, to_state: TransferState) -> bool:
        return to_state in self.TRANSITIONS.get(record.state, set())

    def transition(
        self,
        record: TransferRecord,
        to_state: TransferState,
        reason: Optional[str] = None,
    ) -> StateTransition:
        from_state = record.state
        if not self.can_transition(record, to_state):
            raise InvalidTransitionError(
                from_state.value,
                to_state.value,
                f"Invalid transition from {from_state.value} to {to_state.value}. "
                f"Allowed: {sorted(s.value for s in self.TRANSITIONS.get(from_state, set()))}",
            )

        now = datetime.now(timezone.utc)
        transition = StateTransition(from_state=from_state, to_state=to_state, at=now, reason=reason)
        record.history.append(transition)
        record.state = to_state
        record.progress = to_state.progress
        record.updated_at = now

        self.logger.info(
            "Transfer %s: %s -> %s%s",
            record.attempt_id,
            from_state.value,
            to_state.value,
            f" ({reason})" if reason else "",
        )
        return transition

    # ─────────────────────────────────────────────────────────────────────────
    # Execution
    # ─────────────────────────────────────────────────────────────────────────

    def begin(self, intent: TransferIntent, quote: Quote, plan: ExecutionPlan) -> TransferRecord:
        """Create the record for a new attempt; raises before the state machine on a stale quote."""
        self._engine.ensure_executable(quote, intent)
        return TransferRecord(intent=intent, quote=quote, plan=plan)

    async def execute(
        self,
        record: TransferRecord,
        tracker: StatusTracker,
        on_change: Optional[StateChangeCallback] = None,
    ) -> TransferRecord:
        """Run ``record`` from Confirm until a terminal state or until tracking stops."""
        if record.state != TransferState.CONFIRM:
            raise InvalidTransitionError(record.state.value, TransferState.SIGNING.value)
        self._engine.ensure_executable(record.quote, record.intent)

        if record.quote.is_direct:
            self.transition(record, TransferState.COMPLETE, record.quote.message or "No conversion needed")
            record.canonical_status = CanonicalStatus.COMPLETE
            await self._emit(record, on_change)
            return record

        try:
            self.transition(record, TransferState.SIGNING)
            await self._emit(record, on_change)
            signature = await self._signing_step(record)
            record.signature = signature

            self.transition(record, TransferState.BROADCASTING)
            await self._emit(record, on_change)
            path = self._selector.path_for(record.plan)
            prepared = await path.prepare(record.intent, record.quote, signature)
            tracked_hash = await path.submit(prepared)

            record.transaction_hash = tracked_hash
            record.bridge_id = (
                prepared.execution_payload.get("bridgeId") or record.quote.quote_id or None
            )
            record.canonical_status = CanonicalStatus.PENDING
            self.transition(record, TransferState.BRIDGING)
            await self._emit(record, on_change)

            await self._track(record, tracker, on_change)
        except asyncio.CancelledError:
            tracker.stop()
            raise
        except Exception as exc:
            tracker.stop()
            self._fail(record, exc)
            await self._emit(record, on_change)
        return record

    async def _signing_step(self, record: TransferRecord) -> Optional[str]:
        plan = record.plan
        if not isinstance(plan, StandardWalletPlan):
            return None
        if plan.channel is None:
            raise ExecutionPreparationError("Wallet not connected")

        adapter = EvmChainAdapter(plan.channel, logger=self.logger)
        if plan.requires_network_switch and plan.target_network_id is not None:
            try:
                await adapter.switch_network(plan.target_network_id)
            except Exception as exc:
                # The provider surfaces a real mismatch later.
                self.logger.warning(
                    "Network switch to %s failed, continuing: %s", record.intent.source_chain, exc
                )
            else:
                await self._sleep(self.network_switch_grace_seconds)

        quote = record.quote
        if not quote.requires_signature:
            return None
        try:
            if not quote.message_to_sign:
                raise ExecutionPreparationError("Quote requires a signature but carries no message to sign")
            return await adapter.sign_message(quote.message_to_sign, record.intent.depositor)
        except Exception as exc:
            if quote.signature_optional:
                self.logger.warning("Optional signature skipped: %s", exc)
                return None
            raise

    async def _track(
        self,
        record: TransferRecord,
        tracker: StatusTracker,
        on_change: Optional[StateChangeCallback],
    ) -> None:
        async for update in tracker.track(record.bridge_id, record.transaction_hash):
            record.apply_status(update)
            if update.canonical == CanonicalStatus.COMPLETE:
                self.transition(record, TransferState.COMPLETE, update.raw_status)
            elif update.canonical == CanonicalStatus.FAILED:
                record.error = classify(update.failure_message, intent=record.intent)
                self.transition(record, TransferState.ERROR, record.error.message)
            await self._emit(record, on_change)
            if record.terminal:
                break

    def _fail(self, record: TransferRecord, exc: BaseException) -> None:
        if record.terminal:
            self.logger.error("Error after transfer %s reached %s: %s", record.attempt_id, record.state.value, exc)
            return
        record.error = classify(exc, intent=record.intent)
        self.logger.warning(
            "Transfer %s failed in %s: [%s] %s",
            record.attempt_id,
            record.state.value,
            record.error.kind.value,
            record.error.raw_message or record.error.message,
        )
        self.transition(record, TransferState.ERROR, record.error.message)

    @staticmethod
    async def _emit(record: TransferRecord, on_change: Optional[StateChangeCallback]) -> None:
        if on_change is None:
            return
        result = on_change(record.snapshot())
        if inspect.isawaitable(result):
            await result
