"""Chooses between sponsored smart-account and standard wallet execution."""

from __future__ import annotations

import logging
from typing import FrozenSet, Iterable, Optional

from ...config import settings
from ...providers.base import ExecutionProvider
from ..catalog.constants import network_id_for
from .models import ExecutionPlan, SponsoredSmartAccountPlan, StandardWalletPlan, WalletContext
from .paths import BridgeRoutine, ExecutionPath, SponsoredSmartAccountPath, StandardWalletPath


class ExecutionPathSelector:
    """Total, deterministic choice of execution plan.

    Smart-account capability and a destination chain on the sponsorship
    allow-list give a sponsored plan; anything else gets the standard wallet
    plan.
    """

    def __init__(
        self,
        provider: ExecutionProvider,
        *,
        sponsored_chains: Optional[Iterable[str]] = None,
        routine: Optional[BridgeRoutine] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._provider = provider
        self._sponsored: FrozenSet[str] = (
            frozenset(chain.strip().upper() for chain in sponsored_chains)
            if sponsored_chains is not None
            else settings.sponsored_chain_set()
        )
        self._routine = routine
        self._logger = logger or logging.getLogger(__name__)

    @property
    def sponsored_chains(self) -> FrozenSet[str]:
        return self._sponsored

    def is_sponsored(self, destination_chain: str) -> bool:
        return (destination_chain or "").strip().upper() in self._sponsored

    def choose_path(
        self,
        wallet: WalletContext,
        destination_chain: str,
        source_chain: Optional[str] = None,
    ) -> ExecutionPlan:
        source = source_chain or destination_chain
        if wallet.has_smart_account and self.is_sponsored(destination_chain):
            return SponsoredSmartAccountPlan(
                handler=wallet.smart_account,
                smart_account_address=wallet.smart_account_address,
                destination_chain=destination_chain,
                source_chain=source,
            )

        target = network_id_for(source)
        requires_switch = target is not None and wallet.active_network_id != target
        return StandardWalletPlan(
            channel=wallet.channel,
            source_chain=source,
            requires_network_switch=requires_switch,
            target_network_id=target,
        )

    def path_for(self, plan: ExecutionPlan) -> ExecutionPath:
        if isinstance(plan, SponsoredSmartAccountPlan):
            return SponsoredSmartAccountPath(plan, self._provider)
        return StandardWalletPath(plan, self._provider, routine=self._routine, logger=self._logger)
