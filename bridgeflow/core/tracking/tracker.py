"""Fixed-interval bridge status polling."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Optional

from ...config import settings
from ...providers.base import StatusProvider
from .status import StatusUpdate, canonicalize


class StatusTracker:
    """Polls the status provider until a terminal status or ``stop()``.

    A failed poll is logged and skipped; it never produces a Failed update.
    ``stop()`` interrupts the inter-poll wait immediately, so no poll is
    issued after teardown. A tracker is single-use: once stopped it stays
    stopped.
    """

    def __init__(
        self,
        provider: StatusProvider,
        *,
        interval_seconds: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._provider = provider
        self.interval_seconds = (
            settings.status_poll_interval_seconds if interval_seconds is None else interval_seconds
        )
        self._logger = logger or logging.getLogger(__name__)
        self._stopped = asyncio.Event()
        self.polls = 0
        self.failed_polls = 0

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def stop(self) -> None:
        self._stopped.set()

    async def _wait_interval(self) -> bool:
        """Sleep one interval; True if stopped meanwhile."""
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=self.interval_seconds)
        except asyncio.TimeoutError:
            return self.stopped
        return True

    async def track(
        self,
        bridge_id: Optional[str],
        transaction_hash: Optional[str] = None,
    ) -> AsyncIterator[StatusUpdate]:
        if not bridge_id and not transaction_hash:
            raise ValueError("bridge_id or transaction_hash is required to track a transfer")

        self._logger.info("Tracking bridge %s (tx %s)", bridge_id, transaction_hash)
        while not self.stopped:
            if await self._wait_interval():
                break

            self.polls += 1
            try:
                raw = await self._provider.bridge_status(bridge_id, transaction_hash)
            except Exception as exc:
                self.failed_polls += 1
                self._logger.warning("Status poll %d for %s failed: %s", self.polls, bridge_id, exc)
                continue

            update = canonicalize(raw)
            self._logger.debug(
                "Bridge %s status %s -> %s (%d%%)",
                bridge_id,
                update.raw_status,
                update.canonical.value,
                update.progress,
            )
            yield update
            if update.terminal:
                self._logger.info("Bridge %s reached %s", bridge_id, update.canonical.value)
                self.stop()
                break
