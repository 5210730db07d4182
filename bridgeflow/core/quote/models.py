"""Typed models used by the quoting subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

QuoteKey = Tuple[str, str, str, str, str]


@dataclass(frozen=True)
class TransferIntent:
    """What the user asked for: move ``amount`` of a token from one chain to another."""

    source_token: str
    destination_token: str
    source_chain: str
    destination_chain: str
    amount: str
    depositor: str
    recipient: str

    @property
    def quote_key(self) -> QuoteKey:
        return (
            self.source_token,
            self.destination_token,
            self.source_chain,
            self.destination_chain,
            self.normalized_amount,
        )

    @property
    def normalized_amount(self) -> str:
        """Amount with insignificant zeros stripped, so "50" and "50.0" share a quote."""
        value = self.amount_decimal
        if value is None:
            return (self.amount or "").strip()
        normalized = value.normalize()
        return format(normalized, "f")

    @property
    def amount_decimal(self) -> Optional[Decimal]:
        try:
            value = Decimal((self.amount or "").strip())
        except (InvalidOperation, ValueError):
            return None
        return value if value.is_finite() else None

    @property
    def is_bridge_swap(self) -> bool:
        return self.source_token != self.destination_token

    @property
    def is_same_chain(self) -> bool:
        return self.source_chain == self.destination_chain

    @property
    def is_direct(self) -> bool:
        return self.is_same_chain and not self.is_bridge_swap

    def with_amount(self, amount: str) -> "TransferIntent":
        return TransferIntent(
            source_token=self.source_token,
            destination_token=self.destination_token,
            source_chain=self.source_chain,
            destination_chain=self.destination_chain,
            amount=amount,
            depositor=self.depositor,
            recipient=self.recipient,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceToken": self.source_token,
            "destinationToken": self.destination_token,
            "sourceChain": self.source_chain,
            "destinationChain": self.destination_chain,
            "amount": self.amount,
            "depositor": self.depositor,
            "recipient": self.recipient,
        }


@dataclass(frozen=True)
class Quote:
    """A priced, time-bound offer valid only for the intent tuple it was issued for."""

    is_direct: bool
    pay_amount: str
    receive_amount: str
    aggregator_fee: Decimal
    platform_fee: Decimal
    expires_at: datetime
    issued_for: QuoteKey
    quote_id: Optional[str] = None
    estimated_duration_seconds: Optional[int] = None
    provider_payload: Dict[str, Any] = field(default_factory=dict)
    message: Optional[str] = None

    @property
    def requires_signature(self) -> bool:
        return bool(self.provider_payload.get("requiresSignature"))

    @property
    def message_to_sign(self) -> Optional[str]:
        value = self.provider_payload.get("messageToSign")
        return str(value) if value is not None else None

    @property
    def signature_optional(self) -> bool:
        return bool(self.provider_payload.get("signatureOptional"))

    def is_for(self, intent: TransferIntent) -> bool:
        return self.issued_for == intent.quote_key

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quoteId": self.quote_id,
            "direct": self.is_direct,
            "payAmount": self.pay_amount,
            "receiveAmount": self.receive_amount,
            "fees": str(self.aggregator_fee),
            "platformFee": str(self.platform_fee),
            "expiresAt": self.expires_at.isoformat(),
            "estimatedDuration": self.estimated_duration_seconds,
            "message": self.message,
        }
