"""Selection step order on top of a TransferSession."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from ...config import settings
from ..quote import QuoteOutcome
from .session import Direction, TransferSession


class WizardStep(str, Enum):
    TOKEN_FROM = "token-from"
    NETWORK_FROM = "network-from"
    TOKEN_TO = "token-to"
    NETWORK_TO = "network-to"
    AMOUNT = "amount"
    EXECUTE = "execute"


class TransferWizard:
    """Walks the user through token/network selection, amount and execution.

    With ``skip_destination_selection`` the destination defaults of the
    session are kept and the wizard goes straight from the source network to
    the amount step.
    """

    def __init__(
        self,
        session: TransferSession,
        *,
        skip_destination_selection: Optional[bool] = None,
    ) -> None:
        self.session = session
        self.skip_destination_selection = (
            settings.skip_destination_selection
            if skip_destination_selection is None
            else skip_destination_selection
        )
        self.step = WizardStep.TOKEN_FROM
        self.closed = False

    def _back_map(self) -> Dict[WizardStep, WizardStep]:
        return {
            WizardStep.NETWORK_FROM: WizardStep.TOKEN_FROM,
            WizardStep.TOKEN_TO: WizardStep.NETWORK_FROM,
            WizardStep.NETWORK_TO: WizardStep.TOKEN_TO,
            WizardStep.AMOUNT: (
                WizardStep.NETWORK_FROM if self.skip_destination_selection else WizardStep.NETWORK_TO
            ),
            WizardStep.EXECUTE: WizardStep.AMOUNT,
        }

    def _expect(self, *steps: WizardStep) -> None:
        if self.step not in steps:
            raise ValueError(f"Not available at step {self.step.value}")

    def choose_token(self, token: str) -> WizardStep:
        self._expect(WizardStep.TOKEN_FROM, WizardStep.TOKEN_TO)
        if self.step == WizardStep.TOKEN_FROM:
            self.session.select_token(Direction.SOURCE, token)
            self.step = WizardStep.NETWORK_FROM
        else:
            self.session.select_token(Direction.DESTINATION, token)
            self.step = WizardStep.NETWORK_TO
        return self.step

    def choose_network(self, chain: str) -> WizardStep:
        self._expect(WizardStep.NETWORK_FROM, WizardStep.NETWORK_TO)
        if self.step == WizardStep.NETWORK_FROM:
            self.session.select_chain(Direction.SOURCE, chain)
            self.step = WizardStep.AMOUNT if self.skip_destination_selection else WizardStep.TOKEN_TO
        else:
            self.session.select_chain(Direction.DESTINATION, chain)
            self.step = WizardStep.AMOUNT
        return self.step

    async def enter_amount(self, value: str) -> QuoteOutcome:
        self._expect(WizardStep.AMOUNT)
        return await self.session.enter_amount(value)

    def proceed(self) -> WizardStep:
        """Move from the amount step to execution once a quote is held."""
        self._expect(WizardStep.AMOUNT)
        if self.session.quote is None:
            raise ValueError("A quote is required before continuing")
        self.step = WizardStep.EXECUTE
        return self.step

    def back(self) -> Optional[WizardStep]:
        """Previous step, or None (wizard closed) when already at the first one."""
        previous = self._back_map().get(self.step)
        if previous is None:
            self.closed = True
            return None
        if self.step == WizardStep.EXECUTE and self.session.active:
            self.session.continue_in_background()
        self.step = previous
        return self.step
