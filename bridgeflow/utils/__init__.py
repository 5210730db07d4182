from .formatters import format_address, format_amount, format_duration, transaction_link

__all__ = [
    "format_address",
    "format_amount",
    "format_duration",
    "transaction_link",
]
