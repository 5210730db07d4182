"""
Error taxonomy for transfer orchestration.

Every failure the orchestration surfaces is reduced to one ``ErrorKind`` plus
a remediation text the Selection UI can show verbatim.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Stable classification of transfer failures."""

    VALIDATION = "validation_error"            # Never reaches the network
    QUOTE_EXPIRED = "quote_expired"            # Must re-quote
    NETWORK_MISMATCH = "network_mismatch"      # Wallet on the wrong network
    NETWORK_LIMITATION = "network_limitation"  # Combination disallowed by catalog config
    ROUTE_UNAVAILABLE = "route_unavailable"    # Aggregator has no route / fee config
    UNSUPPORTED_TOKEN = "unsupported_token"
    UNSUPPORTED_CHAIN = "unsupported_chain"
    AMOUNT_TOO_SMALL = "amount_too_small"
    PROVIDER_UNAVAILABLE = "provider_unavailable"  # Transient, retry affordance
    SIGNING_REJECTED = "signing_rejected"      # User declined, not a fault
    UNKNOWN = "unknown"


DEFAULT_REMEDIATION: Dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "Check the highlighted fields and try again.",
    ErrorKind.QUOTE_EXPIRED: "The quote expired. Request a new quote before confirming.",
    ErrorKind.NETWORK_MISMATCH: "Switch your wallet to the source network and retry.",
    ErrorKind.NETWORK_LIMITATION: "Pick a different token or network for this transfer.",
    ErrorKind.ROUTE_UNAVAILABLE: "Try using ETH or USDT, or bridge from Ethereum/Arbitrum instead.",
    ErrorKind.UNSUPPORTED_TOKEN: "Try using a supported token like ETH, USDT or USDC.",
    ErrorKind.UNSUPPORTED_CHAIN: "Choose a supported EVM network such as Ethereum, Arbitrum or Base.",
    ErrorKind.AMOUNT_TOO_SMALL: "Increase the amount and request a new quote.",
    ErrorKind.PROVIDER_UNAVAILABLE: "The bridge service is temporarily unreachable. Retry in a moment.",
    ErrorKind.SIGNING_REJECTED: "The request was declined in your wallet. Retry when you are ready.",
    ErrorKind.UNKNOWN: "Retry the transfer. If it keeps failing, contact support with the error details.",
}

RETRYABLE_KINDS = frozenset(
    {
        ErrorKind.QUOTE_EXPIRED,
        ErrorKind.NETWORK_MISMATCH,
        ErrorKind.PROVIDER_UNAVAILABLE,
        ErrorKind.SIGNING_REJECTED,
        ErrorKind.UNKNOWN,
    }
)


@dataclass(frozen=True)
class ClassifiedError:
    """A failure reduced to the taxonomy, with remediation text."""

    kind: ErrorKind
    message: str
    remediation: str
    raw_message: str = ""
    token_in: Optional[str] = None
    chain_in: Optional[str] = None

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
            "remediation": self.remediation,
            "retryable": self.retryable,
        }
        if self.raw_message:
            payload["raw_message"] = self.raw_message
        if self.token_in:
            payload["token_in"] = self.token_in
        if self.chain_in:
            payload["chain_in"] = self.chain_in
        return payload
