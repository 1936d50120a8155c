from .privacy import obfuscate_title, obfuscate_transactions
from .timestamp import parse_timestamp, parse_month, shift_month, MONTH_LABELS

__all__ = [
    "obfuscate_title",
    "obfuscate_transactions",
    "parse_timestamp",
    "parse_month",
    "shift_month",
    "MONTH_LABELS",
]
