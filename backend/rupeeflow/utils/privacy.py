"""Privacy utilities for obfuscating sensitive data in logs."""
import re
from typing import Iterable, List


def obfuscate_title(title: str) -> str:
    """
    Obfuscate free-text titles before logging.
    Replaces alphanumeric characters with asterisks, preserves structure.
    """
    return re.sub(r"[A-Za-z0-9]", "*", title or "")


def obfuscate_transactions(transactions: Iterable) -> List[dict]:
    """
    Obfuscate transaction data for logging.
    Returns a list of dictionaries with obfuscated titles and no notes.
    """
    return [
        {
            "id": tx.id,
            "date": str(tx.date),
            "amount": tx.amount,
            "type": tx.type.value,
            "category": tx.category.value,
            "title": obfuscate_title(tx.title),
        }
        for tx in transactions
    ]
