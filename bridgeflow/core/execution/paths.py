"""
Execution paths.

Each plan kind has one small ``{prepare, submit}`` implementation:
``prepare`` asks the execution provider for the payload, ``submit`` hands it
to the smart-account handler or to the wallet bridge routine and returns the
identifier StatusTracker follows.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

from ...providers.base import ExecutionProvider, PreparedExecution
from ..errors import ExecutionPreparationError
from ..quote.models import Quote, TransferIntent
from .models import SponsoredSmartAccountPlan, StandardWalletPlan
from .wallet import EvmChainAdapter


class ExecutionPath(Protocol):
    async def prepare(
        self,
        intent: TransferIntent,
        quote: Quote,
        signature: Optional[str] = None,
    ) -> PreparedExecution:
        ...

    async def submit(self, prepared: PreparedExecution) -> str:
        ...


class BridgeRoutine(Protocol):
    """Runs a prepared execution payload with a chain adapter; returns the transaction hash."""

    async def __call__(self, prepared: PreparedExecution, adapter: EvmChainAdapter) -> str:
        ...


class WalletBridgeRoutine:
    """Sends the payload's transactions through the wallet, in order.

    The payload carries either ``transactions`` (deposit after approval, ...)
    or a single ``tx``. The hash of the last transaction is the tracked one.
    """

    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    @staticmethod
    def _transactions(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        transactions = payload.get("transactions")
        if transactions:
            return list(transactions)
        single = payload.get("tx") or payload.get("transaction")
        return [single] if single else []

    async def __call__(self, prepared: PreparedExecution, adapter: EvmChainAdapter) -> str:
        payload = prepared.execution_payload
        transactions = self._transactions(payload)
        if not transactions:
            raise ExecutionPreparationError("Execution payload carries no transaction for the wallet to send")

        chain = payload.get("chainIn")
        if chain:
            await adapter.ensure_network(chain)

        tx_hash = ""
        for index, transaction in enumerate(transactions, start=1):
            tx_hash = await adapter.send_transaction(transaction)
            self._logger.info("Sent transaction %d/%d: %s", index, len(transactions), tx_hash)
        return tx_hash


class SponsoredSmartAccountPath:
    def __init__(self, plan: SponsoredSmartAccountPlan, provider: ExecutionProvider) -> None:
        self.plan = plan
        self._provider = provider

    async def prepare(
        self,
        intent: TransferIntent,
        quote: Quote,
        signature: Optional[str] = None,
    ) -> PreparedExecution:
        return await self._provider.prepare_execution(intent, quote, signature)

    async def submit(self, prepared: PreparedExecution) -> str:
        payload = dict(prepared.execution_payload)
        payload.setdefault("chainIn", self.plan.source_chain)
        return await self.plan.handler(payload)


class StandardWalletPath:
    def __init__(
        self,
        plan: StandardWalletPlan,
        provider: ExecutionProvider,
        *,
        routine: Optional[BridgeRoutine] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.plan = plan
        self._provider = provider
        self._routine = routine or WalletBridgeRoutine(logger=logger)
        self._logger = logger or logging.getLogger(__name__)

    async def prepare(
        self,
        intent: TransferIntent,
        quote: Quote,
        signature: Optional[str] = None,
    ) -> PreparedExecution:
        return await self._provider.prepare_execution(intent, quote, signature)

    async def submit(self, prepared: PreparedExecution) -> str:
        if self.plan.channel is None:
            raise ExecutionPreparationError("Wallet not connected")
        adapter = EvmChainAdapter(self.plan.channel, logger=self._logger)
        return await self._routine(prepared, adapter)
