"""Free-text / type / category / date-range filtering of transactions."""
from datetime import date
from typing import Iterable, List, Literal, Optional, Union
from pydantic import BaseModel, Field
from rupeeflow.models.category import Category
from rupeeflow.models.transaction import Transaction, TransactionType


class TransactionFilter(BaseModel):
    """Filter set; every criterion defaults to "match everything"."""

    query: str = Field("", description="Case-insensitive substring of the title")
    type: Union[Literal["all"], TransactionType] = "all"
    category: Union[Literal["all"], Category] = "all"
    start: Optional[date] = Field(None, description="Inclusive lower bound (calendar day)")
    end: Optional[date] = Field(None, description="Inclusive upper bound (calendar day)")

    @property
    def has_date_range(self) -> bool:
        return self.start is not None or self.end is not None

    @property
    def is_active(self) -> bool:
        return bool(self.query) or self.type != "all" or self.category != "all" or self.has_date_range


def matches(tx: Transaction, criteria: TransactionFilter) -> bool:
    """True iff the transaction satisfies all four criteria; an inverted range matches nothing."""
    match_search = criteria.query.lower() in tx.title.lower()
    match_type = criteria.type == "all" or tx.type == criteria.type
    match_cat = criteria.category == "all" or tx.category == criteria.category

    match_date = True
    day = tx.date.date()
    if criteria.start and day < criteria.start:
        match_date = False
    if criteria.end and day > criteria.end:
        match_date = False

    return match_search and match_type and match_cat and match_date


def apply_filter(transactions: Iterable[Transaction], criteria: TransactionFilter) -> List[Transaction]:
    """Filtered transactions in input order."""
    return [tx for tx in transactions if matches(tx, criteria)]
