"""
Transfer Session

Composes catalog, quoting, path selection, execution and tracking into the
flow the Selection UI drives: pick tokens and chains, enter an amount, confirm,
and follow the attempt through a stream of record snapshots.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, List, Optional

from ...config import settings
from ...logging_config import transfer_context
from ...providers.base import StatusProvider
from ..catalog import ChainEntry, ChainTokenCatalog, TokenEntry
from ..errors import TransferError, TransferValidationError
from ..execution import (
    ExecutionPathSelector,
    ExecutionPlan,
    SponsoredSmartAccountPlan,
    TransactionExecutor,
    TransferRecord,
    WalletContext,
)
from ..quote import QuoteDebouncer, QuoteEngine, QuoteOutcome, TransferIntent
from ..quote.models import Quote
from ..tracking import StatusTracker


class Direction(str, Enum):
    SOURCE = "from"
    DESTINATION = "to"


@dataclass
class Selection:
    source_token: Optional[str] = None
    source_chain: Optional[str] = None
    destination_token: Optional[str] = None
    destination_chain: Optional[str] = None
    amount: str = ""


_STREAM_DONE = object()


class TransferSession:
    """
    End-to-end transfer flow for one user session.

    Features:
    - Destination preselected from settings (GNOSIS/USDC by default)
    - Every selection is checked against the catalog, and any change drops the quote
    - Debounced quoting on amount edits
    - One active attempt at a time; each confirmation is a new attempt
    - Snapshot stream per attempt, closed on terminal state, cancel or background
    """

    def __init__(
        self,
        *,
        catalog: ChainTokenCatalog,
        engine: QuoteEngine,
        selector: ExecutionPathSelector,
        executor: TransactionExecutor,
        status_provider: StatusProvider,
        wallet: WalletContext,
        recipient: Optional[str] = None,
        debouncer: Optional[QuoteDebouncer] = None,
        poll_interval_seconds: Optional[float] = None,
        destination_chain: Optional[str] = None,
        destination_token: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.catalog = catalog
        self.engine = engine
        self.selector = selector
        self.executor = executor
        self._status_provider = status_provider
        self.wallet = wallet
        self.recipient = recipient
        self.debouncer = debouncer or QuoteDebouncer(engine, logger=logger)
        self.poll_interval_seconds = poll_interval_seconds
        self.logger = logger or logging.getLogger(__name__)

        self.selection = Selection(
            destination_chain=destination_chain or settings.default_destination_chain,
            destination_token=destination_token or settings.default_destination_token,
        )
        self.quote: Optional[Quote] = None
        self.attempts: List[TransferRecord] = []

        self._task: Optional[asyncio.Task] = None
        self._tracker: Optional[StatusTracker] = None

    # ─────────────────────────────────────────────────────────────────────────
    # Selection
    # ─────────────────────────────────────────────────────────────────────────

    async def load(self) -> None:
        await self.catalog.load()

    def token_options(self, direction: Direction = Direction.SOURCE) -> List[TokenEntry]:
        chain = self.selection.source_chain if direction == Direction.SOURCE else self.selection.destination_chain
        return self.catalog.filter_tokens_for_chain(chain)

    def chain_options(self, direction: Direction = Direction.SOURCE) -> List[ChainEntry]:
        token = self.selection.source_token if direction == Direction.SOURCE else self.selection.destination_token
        return self.catalog.filter_chains_for_token(token)

    def select_token(self, direction: Direction, token: str) -> None:
        chain = self.selection.source_chain if direction == Direction.SOURCE else self.selection.destination_chain
        if chain:
            self.catalog.check_selection(token, chain)
        else:
            self.catalog.check_token(token)

        if direction == Direction.SOURCE:
            self.selection.source_token = token
        else:
            self.selection.destination_token = token
        self._invalidate_quote()

    def select_chain(self, direction: Direction, chain: str) -> None:
        entry = self.catalog.check_chain(chain)
        token = self.selection.source_token if direction == Direction.SOURCE else self.selection.destination_token
        if token:
            self.catalog.check_selection(token, entry.id)

        if direction == Direction.SOURCE:
            self.selection.source_chain = entry.id
        else:
            self.selection.destination_chain = entry.id
        self._invalidate_quote()

    @property
    def same_chain_swap(self) -> bool:
        """Same chain on both sides with different tokens; the UI shows a warning."""
        s = self.selection
        return bool(s.source_chain) and s.source_chain == s.destination_chain and s.source_token != s.destination_token

    def plan(self) -> ExecutionPlan:
        s = self.selection
        return self.selector.choose_path(self.wallet, s.destination_chain or "", s.source_chain)

    def depositor(self, plan: Optional[ExecutionPlan] = None) -> Optional[str]:
        """Smart account on the sponsored path, the connected address otherwise."""
        plan = plan or self.plan()
        if isinstance(plan, SponsoredSmartAccountPlan):
            return plan.smart_account_address
        return self.wallet.address

    @property
    def is_sponsored(self) -> bool:
        return self.selector.is_sponsored(self.selection.destination_chain or "")

    def intent(self, amount: Optional[str] = None, plan: Optional[ExecutionPlan] = None) -> TransferIntent:
        s = self.selection
        depositor = self.depositor(plan)
        return TransferIntent(
            source_token=s.source_token or "",
            destination_token=s.destination_token or "",
            source_chain=s.source_chain or "",
            destination_chain=s.destination_chain or "",
            amount=s.amount if amount is None else amount,
            depositor=depositor or "",
            recipient=self.recipient or depositor or "",
        )

    def _invalidate_quote(self) -> None:
        if self.quote is not None:
            self.logger.debug("Selection changed, discarding quote %s", self.quote.quote_id)
        self.quote = None
        self.debouncer.cancel()

    # ─────────────────────────────────────────────────────────────────────────
    # Quoting
    # ─────────────────────────────────────────────────────────────────────────

    async def enter_amount(self, value: str) -> QuoteOutcome:
        """Record an amount edit; resolves once this edit is quoted, rejected or superseded."""
        self.selection.amount = value
        self.quote = None
        outcome = await self.debouncer.submit(self.intent(value))
        if outcome.ok and outcome.request_id == self.debouncer.latest_request_id:
            self.quote = outcome.quote
        return outcome

    # ─────────────────────────────────────────────────────────────────────────
    # Execution
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def current_attempt(self) -> Optional[TransferRecord]:
        return self.attempts[-1] if self.attempts else None

    async def confirm_execution(self) -> AsyncIterator[TransferRecord]:
        """Start a new attempt and stream its record snapshots.

        Raises before any state change when a transfer is already running,
        when there is no quote, or when the quote is expired or stale.
        """
        if self.active:
            raise TransferError("A transfer is already in progress")
        if self.quote is None:
            raise TransferValidationError(["Request a quote before confirming the transfer"])

        plan = self.plan()
        intent = self.intent(plan=plan)
        record = self.executor.begin(intent, self.quote, plan)
        self.attempts.append(record)

        tracker = StatusTracker(
            self._status_provider,
            interval_seconds=self.poll_interval_seconds,
            logger=self.logger,
        )
        self._tracker = tracker
        queue: asyncio.Queue = asyncio.Queue()

        self.logger.info(
            "Attempt %s: %s %s %s -> %s %s via %s",
            record.attempt_id,
            intent.amount,
            intent.source_token,
            intent.source_chain,
            intent.destination_token,
            intent.destination_chain,
            plan.kind.value,
        )
        task = asyncio.create_task(self._run(record, tracker, queue))
        self._task = task
        task.add_done_callback(lambda _: queue.put_nowait(_STREAM_DONE))
        try:
            yield record.snapshot()
            while True:
                item = await queue.get()
                if item is _STREAM_DONE:
                    break
                yield item
            if not task.cancelled():
                await task
        finally:
            if not task.done():
                tracker.stop()
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

    async def _run(self, record: TransferRecord, tracker: StatusTracker, queue: asyncio.Queue) -> None:
        with transfer_context(
            attempt_id=record.attempt_id,
            source_chain=record.intent.source_chain,
            destination_chain=record.intent.destination_chain,
            plan=record.plan_kind.value,
        ):
            await self.executor.execute(record, tracker, queue.put_nowait)

    def cancel(self) -> None:
        """Stop the active attempt (and any pending quote); the stream closes."""
        self.debouncer.cancel()
        if self._tracker is not None:
            self._tracker.stop()
        if self.active:
            self.logger.info("Cancelling active transfer attempt")
            self._task.cancel()

    def continue_in_background(self) -> None:
        """Stop following the attempt; the submitted transfer itself is unaffected."""
        if self._tracker is not None:
            self._tracker.stop()
