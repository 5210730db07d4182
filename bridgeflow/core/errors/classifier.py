"""
Error Classification

Maps aggregator, gateway, wallet and transport error shapes onto the stable
ErrorKind taxonomy. Classification is a pure function of its input: the same
raw error always yields the same ClassifiedError.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple, Union

import httpx

from .exceptions import TransferError
from .taxonomy import DEFAULT_REMEDIATION, ClassifiedError, ErrorKind

RawError = Union[BaseException, str, Mapping[str, Any]]

# Checked in order; the first kind with a matching marker wins.
_PATTERNS: Tuple[Tuple[ErrorKind, Tuple[str, ...]], ...] = (
    (
        ErrorKind.SIGNING_REJECTED,
        (
            "user rejected",
            "user denied",
            "rejected by user",
            "user cancelled",
            "user canceled",
            "action_rejected",
            "request rejected",
        ),
    ),
    (
        ErrorKind.NETWORK_MISMATCH,
        (
            "wrongnetworkonchainadapter",
            "wrong network",
            "network mismatch",
            "chain mismatch",
            "chainid mismatch",
        ),
    ),
    (
        ErrorKind.QUOTE_EXPIRED,
        ("quote expired", "quote has expired", "quoteexpired", "quote is expired"),
    ),
    (
        ErrorKind.ROUTE_UNAVAILABLE,
        ("fee config", "route not available", "route unavailable", "no route", "routenotfound"),
    ),
    (
        ErrorKind.UNSUPPORTED_CHAIN,
        (
            "chainnotsupported",
            "chain not supported",
            "unsupported source chain",
            "unsupported destination chain",
            "unsupported chain",
        ),
    ),
    (
        ErrorKind.UNSUPPORTED_TOKEN,
        (
            "token not supported",
            "not supported for bridging",
            "not currently supported for bridging",
            "unsupported token",
        ),
    ),
    (
        ErrorKind.AMOUNT_TOO_SMALL,
        ("amount too small", "minimum amount", "below minimum", "amount is too low"),
    ),
    (
        ErrorKind.PROVIDER_UNAVAILABLE,
        (
            "failed to fetch",
            "timed out",
            "timeout",
            "connection refused",
            "connection reset",
            "service unavailable",
            "bad gateway",
            "temporarily unavailable",
            "rate limit",
            "too many requests",
        ),
    ),
)

# Kinds whose remediation may come from the provider's suggestedAction.
_PROVIDER_REMEDIATION_KINDS = frozenset(
    {
        ErrorKind.ROUTE_UNAVAILABLE,
        ErrorKind.UNSUPPORTED_TOKEN,
        ErrorKind.UNSUPPORTED_CHAIN,
        ErrorKind.AMOUNT_TOO_SMALL,
    }
)

_UNAVAILABLE_STATUS_CODES = frozenset({429, 502, 503, 504})
_USER_REJECTED_RPC_CODE = 4001


def _attr(raw: RawError, name: str) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(name)
    return getattr(raw, name, None)


def _message_of(raw: RawError) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, Mapping):
        for key in ("message", "error", "details", "detail"):
            value = raw.get(key)
            if value:
                return str(value)
        return ""
    message = getattr(raw, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(raw) or type(raw).__name__


def _search_text(raw: RawError, message: str) -> str:
    parts = [message]
    for name in ("error", "details", "detail"):
        value = _attr(raw, name)
        if value and str(value) not in parts:
            parts.append(str(value))
    if isinstance(raw, BaseException):
        parts.append(type(raw).__name__)
        cause = raw.__cause__
        if cause is not None:
            parts.append(str(cause))
    return " ".join(parts).lower()


def _match_kind(raw: RawError, text: str) -> ErrorKind:
    if _attr(raw, "code") == _USER_REJECTED_RPC_CODE:
        return ErrorKind.SIGNING_REJECTED

    for kind, markers in _PATTERNS:
        if any(marker in text for marker in markers):
            return kind

    if isinstance(raw, (httpx.TimeoutException, httpx.TransportError)):
        return ErrorKind.PROVIDER_UNAVAILABLE
    status_code = _attr(raw, "status_code")
    if isinstance(status_code, int) and status_code in _UNAVAILABLE_STATUS_CODES:
        return ErrorKind.PROVIDER_UNAVAILABLE
    if _attr(raw, "unavailable") is True:
        return ErrorKind.PROVIDER_UNAVAILABLE
    return ErrorKind.UNKNOWN


def _display_message(
    kind: ErrorKind,
    message: str,
    token_in: Optional[str],
    chain_in: Optional[str],
) -> str:
    if kind == ErrorKind.NETWORK_MISMATCH and chain_in:
        return f"Network mismatch. Please ensure your wallet is on {chain_in} network."
    if kind == ErrorKind.ROUTE_UNAVAILABLE and token_in and chain_in and "route" not in message.lower():
        return f"This bridge route ({token_in} from {chain_in}) is not currently available."
    return message or kind.value.replace("_", " ").capitalize()


def classify(raw_error: RawError, *, intent: Any = None) -> ClassifiedError:
    """
    Classify any raised error (or error body) into the transfer taxonomy.

    ``intent`` is optional context used to fill route details
    (source token and chain) and network-mismatch wording.
    """
    token_in = getattr(intent, "source_token", None) if intent is not None else None
    chain_in = getattr(intent, "source_chain", None) if intent is not None else None

    if isinstance(raw_error, TransferError):
        return ClassifiedError(
            kind=raw_error.kind,
            message=_display_message(
                raw_error.kind,
                raw_error.message,
                raw_error.token or token_in,
                raw_error.chain or chain_in,
            ),
            remediation=raw_error.remediation,
            raw_message=raw_error.message,
            token_in=raw_error.token or token_in,
            chain_in=raw_error.chain or chain_in,
        )

    message = _message_of(raw_error)
    kind = _match_kind(raw_error, _search_text(raw_error, message))

    remediation = DEFAULT_REMEDIATION[kind]
    suggested = _attr(raw_error, "suggested_action") or _attr(raw_error, "suggestedAction")
    if kind in _PROVIDER_REMEDIATION_KINDS and isinstance(suggested, str) and suggested.strip():
        remediation = suggested.strip()

    return ClassifiedError(
        kind=kind,
        message=_display_message(kind, message, token_in, chain_in),
        remediation=remediation,
        raw_message=message,
        token_in=token_in if kind == ErrorKind.ROUTE_UNAVAILABLE else None,
        chain_in=chain_in if kind in (ErrorKind.ROUTE_UNAVAILABLE, ErrorKind.NETWORK_MISMATCH) else None,
    )
