"""
Transfer Error Handling

Provides the error taxonomy, the exceptions raised by the orchestration core,
and the classifier that reduces provider error shapes to the taxonomy.
"""

from .classifier import classify
from .exceptions import (
    CatalogUnavailableError,
    ExecutionPreparationError,
    InvalidTransitionError,
    NetworkLimitationError,
    QuoteExpiredError,
    SigningRejectedError,
    TransferError,
    TransferValidationError,
    UnsupportedChainError,
    UnsupportedTokenError,
    WrongNetworkError,
)
from .taxonomy import DEFAULT_REMEDIATION, ClassifiedError, ErrorKind

__all__ = [
    "classify",
    "ClassifiedError",
    "ErrorKind",
    "DEFAULT_REMEDIATION",
    "TransferError",
    "TransferValidationError",
    "QuoteExpiredError",
    "CatalogUnavailableError",
    "NetworkLimitationError",
    "UnsupportedTokenError",
    "UnsupportedChainError",
    "SigningRejectedError",
    "WrongNetworkError",
    "ExecutionPreparationError",
    "InvalidTransitionError",
]
