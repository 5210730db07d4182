"""Display helpers for amounts, durations, addresses and explorer links."""

from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from eth_utils import is_address, to_checksum_address

from ..core.catalog.constants import explorer_url

Number = Union[str, int, float, Decimal]


def format_amount(value: Number, *, min_decimals: int = 2, max_decimals: int = 6) -> str:
    """Thousands separators, 2 to 6 fraction digits ("1,234.50", "0.000123")."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return str(value)
    if not amount.is_finite():
        return str(value)

    text = f"{amount:,.{max_decimals}f}"
    whole, _, fraction = text.partition(".")
    fraction = fraction.rstrip("0")
    if len(fraction) < min_decimals:
        fraction = fraction.ljust(min_decimals, "0")
    return f"{whole}.{fraction}" if fraction else whole


def format_duration(seconds: Optional[float]) -> str:
    if not seconds:
        return "Unknown"
    if seconds < 60:
        return f"{int(seconds)}s"
    if seconds < 3600:
        return f"{round(seconds / 60)}m"
    return f"{round(seconds / 3600)}h"


def format_address(address: Optional[str]) -> str:
    """Shortened address (0x1234...abcd); checksummed first when it is an EVM address."""
    if not address or len(address) < 10:
        return address or ""
    if is_address(address):
        address = to_checksum_address(address)
    return f"{address[:6]}...{address[-4:]}"


def transaction_link(chain: str, transaction_hash: Optional[str]) -> Optional[str]:
    if not transaction_hash:
        return None
    return explorer_url(chain, transaction_hash)
