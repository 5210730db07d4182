"""
Quoting

Validates transfer intents, prices them through the quote provider and
debounces amount-driven re-quoting.
"""

from .debounce import QuoteDebouncer, QuoteOutcome
from .engine import QuoteEngine, is_valid_address, utc_now
from .models import Quote, QuoteKey, TransferIntent

__all__ = [
    "QuoteEngine",
    "QuoteDebouncer",
    "QuoteOutcome",
    "Quote",
    "QuoteKey",
    "TransferIntent",
    "is_valid_address",
    "utc_now",
]
