"""Validates transfer intents and turns provider responses into time-bound quotes."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional

from eth_utils import is_address

from ...config import settings
from ...providers.base import QuoteProvider
from ...types.gateway import QuoteResponse
from ..catalog import ChainTokenCatalog
from ..catalog.constants import NON_EVM_CHAINS
from ..errors import (
    CatalogUnavailableError,
    QuoteExpiredError,
    TransferError,
    TransferValidationError,
)
from .models import Quote, TransferIntent

_TRON_ADDRESS = re.compile(r"^T[1-9A-HJ-NP-Za-km-z]{33}$")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_valid_address(address: str, chain: str) -> bool:
    """EVM hex addresses everywhere except on non-EVM chains (TRON base58)."""
    if not address:
        return False
    if (chain or "").upper() in NON_EVM_CHAINS:
        return bool(_TRON_ADDRESS.match(address))
    return is_address(address)


class QuoteEngine:
    """Obtains priced quotes for transfer intents.

    Every request is validated locally first (all violations are reported at
    once), same-chain same-token intents are answered locally with a zero-fee
    direct quote, and everything else costs exactly one provider call. There
    is no automatic retry: a newer edit supersedes a failed request.
    """

    def __init__(
        self,
        provider: QuoteProvider,
        catalog: ChainTokenCatalog,
        *,
        min_amount: Optional[Decimal] = None,
        ttl_seconds: Optional[int] = None,
        clock: Optional[Clock] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._provider = provider
        self._catalog = catalog
        self.min_amount = Decimal(str(min_amount)) if min_amount is not None else settings.min_transfer_amount
        self.ttl = timedelta(seconds=ttl_seconds if ttl_seconds is not None else settings.quote_ttl_seconds)
        self._clock = clock or utc_now
        self._logger = logger or logging.getLogger(__name__)

    def now(self) -> datetime:
        return self._clock()

    def validate(self, intent: TransferIntent) -> List[str]:
        """Collect every violation of the intent, in field order."""
        violations: List[str] = []

        if not intent.source_token:
            violations.append("Source token is required")
        if not intent.destination_token:
            violations.append("Destination token is required")
        if not intent.source_chain:
            violations.append("Source chain is required")
        if not intent.destination_chain:
            violations.append("Destination chain is required")

        raw_amount = (intent.amount or "").strip()
        if not raw_amount:
            violations.append("Amount is required")
        else:
            amount = _parse_amount(raw_amount)
            if amount is None:
                violations.append("Amount must be a number")
            elif amount < self.min_amount:
                violations.append(f"Minimum amount is {self.min_amount}")

        if not intent.depositor:
            violations.append("Depositor address is required")
        elif intent.source_chain and not is_valid_address(intent.depositor, intent.source_chain):
            violations.append(f"Depositor address is not a valid {intent.source_chain} address")
        if not intent.recipient:
            violations.append("Recipient address is required")
        elif intent.destination_chain and not is_valid_address(intent.recipient, intent.destination_chain):
            violations.append(f"Recipient address is not a valid {intent.destination_chain} address")

        if self._catalog.loaded:
            if intent.source_chain and not self._catalog.has_chain(intent.source_chain):
                violations.append(f"Source chain {intent.source_chain} is not available")
            if intent.destination_chain and not self._catalog.has_chain(intent.destination_chain):
                violations.append(f"Destination chain {intent.destination_chain} is not available")

        return violations

    async def request_quote(self, intent: TransferIntent) -> Quote:
        violations = self.validate(intent)
        if violations:
            raise TransferValidationError(violations)
        if not self._catalog.loaded:
            raise CatalogUnavailableError()

        if intent.is_direct:
            self._logger.info(
                "Direct quote for %s on %s, no conversion needed",
                intent.destination_token,
                intent.destination_chain,
            )
            return self.direct_quote(intent)

        self._catalog.check_route(intent)

        self._logger.info(
            "Requesting %s quote: %s %s on %s -> %s on %s",
            "bridge-swap" if intent.is_bridge_swap else "bridge",
            intent.amount,
            intent.source_token,
            intent.source_chain,
            intent.destination_token,
            intent.destination_chain,
        )
        try:
            response = await self._provider.request_quote(intent)
        except Exception as exc:
            self._logger.warning("Quote request failed: %s", exc)
            raise

        quote = self._build_quote(intent, response)
        self._logger.info(
            "Quote %s: pay %s, receive %s, expires %s",
            quote.quote_id or "<direct>",
            quote.pay_amount,
            quote.receive_amount,
            quote.expires_at.isoformat(),
        )
        return quote

    def direct_quote(self, intent: TransferIntent) -> Quote:
        return Quote(
            is_direct=True,
            pay_amount=intent.amount,
            receive_amount=intent.amount,
            aggregator_fee=Decimal("0"),
            platform_fee=Decimal("0"),
            expires_at=self.now() + self.ttl,
            issued_for=intent.quote_key,
            message=f"No conversion needed - already {intent.destination_token} on {intent.destination_chain}",
        )

    def _build_quote(self, intent: TransferIntent, response: QuoteResponse) -> Quote:
        pay = _parse_amount(response.pay_amount)
        receive = _parse_amount(response.receive_amount)
        if pay is None or receive is None or pay <= 0 or receive <= 0:
            raise TransferError(
                f"Quote provider returned non-positive amounts (pay={response.pay_amount}, "
                f"receive={response.receive_amount})"
            )

        expires_at = response.expires_at
        if expires_at is None:
            expires_at = self.now() + self.ttl
        elif expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)

        return Quote(
            is_direct=response.direct,
            pay_amount=response.pay_amount,
            receive_amount=response.receive_amount,
            aggregator_fee=response.fees,
            platform_fee=response.platform_fee,
            expires_at=expires_at,
            issued_for=intent.quote_key,
            quote_id=response.quote_id,
            estimated_duration_seconds=response.estimated_duration,
            provider_payload=dict(response.provider_data or {}),
            message=response.message,
        )

    def is_expired(self, quote: Quote, at: Optional[datetime] = None) -> bool:
        """True once ``at`` (default: now) is past the quote's expiry; never flips back."""
        moment = at or self.now()
        return moment > quote.expires_at

    def ensure_executable(self, quote: Quote, intent: TransferIntent) -> None:
        """Raise unless ``quote`` may still be executed for exactly this ``intent``."""
        if self.is_expired(quote):
            raise QuoteExpiredError()
        if not quote.is_for(intent):
            raise TransferValidationError(
                ["Quote was issued for a different token, chain or amount; request a new quote"]
            )


def _parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    try:
        value = Decimal((raw or "").strip())
    except (InvalidOperation, ValueError):
        return None
    return value if value.is_finite() else None
