"""
Transfer Exceptions

Exceptions raised by the orchestration core. Each carries the ErrorKind it
classifies to, so the classifier never has to guess about our own errors.
"""

from typing import List, Optional, Sequence

from .taxonomy import DEFAULT_REMEDIATION, ErrorKind


class TransferError(Exception):
    """Base class for every error raised by the orchestration core."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        remediation: Optional[str] = None,
        token: Optional[str] = None,
        chain: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.remediation = remediation or DEFAULT_REMEDIATION[self.kind]
        self.token = token
        self.chain = chain


class TransferValidationError(TransferError):
    """
    Intent failed local validation.

    All violations are collected, not just the first one, so the UI can
    highlight every offending field at once.
    """

    kind = ErrorKind.VALIDATION

    def __init__(self, violations: Sequence[str]):
        self.violations: List[str] = list(violations)
        super().__init__("; ".join(self.violations) or "Invalid transfer request")


class QuoteExpiredError(TransferError):
    """Quote is past its expiry and must be re-requested."""

    kind = ErrorKind.QUOTE_EXPIRED

    def __init__(self, message: str = "Quote has expired"):
        super().__init__(message)


class CatalogUnavailableError(TransferError):
    """Chain/token matrix could not be loaded; nothing is selectable."""

    kind = ErrorKind.PROVIDER_UNAVAILABLE

    def __init__(self, message: str = "Chain and token configuration is unavailable"):
        super().__init__(message)


class NetworkLimitationError(TransferError):
    """Combination is disallowed by catalog configuration (e.g. same-chain swap)."""

    kind = ErrorKind.NETWORK_LIMITATION


class UnsupportedTokenError(TransferError):
    kind = ErrorKind.UNSUPPORTED_TOKEN


class UnsupportedChainError(TransferError):
    kind = ErrorKind.UNSUPPORTED_CHAIN


class SigningRejectedError(TransferError):
    """User declined a signature, transaction, or operation in the wallet."""

    kind = ErrorKind.SIGNING_REJECTED


class WrongNetworkError(TransferError):
    """
    Wallet is connected to another network than the one the chain adapter expects.

    The message keeps the aggregator's ``WrongNetworkOnChainAdapter`` marker so
    errors raised locally and errors relayed by the aggregator read the same.
    """

    kind = ErrorKind.NETWORK_MISMATCH

    def __init__(self, expected_chain: str, active_network_id: Optional[int] = None):
        detail = f" (wallet is on network {active_network_id})" if active_network_id is not None else ""
        super().__init__(
            f"WrongNetworkOnChainAdapter: expected {expected_chain}{detail}",
            chain=expected_chain,
        )
        self.expected_chain = expected_chain
        self.active_network_id = active_network_id


class ExecutionPreparationError(TransferError):
    """The execution payload cannot be turned into a submission."""

    kind = ErrorKind.UNKNOWN


class InvalidTransitionError(TransferError):
    """Requested state transition is not allowed from the current state."""

    kind = ErrorKind.UNKNOWN

    def __init__(self, from_state: str, to_state: str, message: Optional[str] = None):
        super().__init__(message or f"Invalid transition from {from_state} to {to_state}")
        self.from_state = from_state
        self.to_state = to_state
