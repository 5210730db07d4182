"""Debounced re-quoting for amount edits (last-started-wins)."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from ...config import settings
from ..errors import ClassifiedError, TransferValidationError, classify
from .engine import QuoteEngine
from .models import Quote, TransferIntent


@dataclass(frozen=True)
class QuoteOutcome:
    """Result of one amount edit: a quote, a classified error, or superseded."""

    request_id: int
    intent: TransferIntent
    quote: Optional[Quote] = None
    error: Optional[ClassifiedError] = None
    superseded: bool = False

    @property
    def ok(self) -> bool:
        return self.quote is not None and not self.superseded


class QuoteDebouncer:
    """Collapses bursts of amount edits into a single quote request.

    Each ``submit`` gets a monotonically increasing request id. A request
    only reaches the engine if no newer one was submitted during the quiet
    period, and its result is discarded if a newer request started while it
    was in flight. Invalid intents (e.g. below the minimum amount) are
    answered immediately and still supersede anything pending.
    """

    def __init__(
        self,
        engine: QuoteEngine,
        *,
        delay_seconds: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._engine = engine
        self.delay_seconds = settings.quote_debounce_seconds if delay_seconds is None else delay_seconds
        self._logger = logger or logging.getLogger(__name__)
        self._latest = 0

    @property
    def latest_request_id(self) -> int:
        return self._latest

    def _is_current(self, request_id: int) -> bool:
        return request_id == self._latest

    def cancel(self) -> None:
        """Supersede every pending or in-flight request."""
        self._latest += 1

    async def submit(self, intent: TransferIntent) -> QuoteOutcome:
        self._latest += 1
        request_id = self._latest

        violations = self._engine.validate(intent)
        if violations:
            return QuoteOutcome(
                request_id=request_id,
                intent=intent,
                error=classify(TransferValidationError(violations), intent=intent),
            )

        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        if not self._is_current(request_id):
            self._logger.debug("Quote request %d superseded before sending", request_id)
            return QuoteOutcome(request_id=request_id, intent=intent, superseded=True)

        try:
            quote = await self._engine.request_quote(intent)
        except Exception as exc:
            if not self._is_current(request_id):
                self._logger.debug("Dropping error for superseded quote request %d: %s", request_id, exc)
                return QuoteOutcome(request_id=request_id, intent=intent, superseded=True)
            return QuoteOutcome(request_id=request_id, intent=intent, error=classify(exc, intent=intent))

        if not self._is_current(request_id):
            self._logger.debug("Discarding quote for superseded request %d", request_id)
            return QuoteOutcome(request_id=request_id, intent=intent, superseded=True)
        return QuoteOutcome(request_id=request_id, intent=intent, quote=quote)
