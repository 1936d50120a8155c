"""Tests for the transaction filter predicate."""
from datetime import date

import pytest
from pydantic import ValidationError

from conftest import make_tx
from rupeeflow.models.category import Category
from rupeeflow.models.transaction import TransactionType
from rupeeflow.services.filters import TransactionFilter, apply_filter, matches


@pytest.fixture
def transactions():
    return [
        make_tx(850, Category.FOOD, title="Zomato Dinner", date="2024-01-15T19:30:00Z"),
        make_tx(120, Category.TRANSPORT, title="Uber to office", date="2024-01-16T08:00:00Z"),
        make_tx(85000, Category.SALARY, TransactionType.INCOME, title="January Salary", date="2024-01-01T09:00:00Z"),
        make_tx(400, Category.FOOD, title="Swiggy lunch", date="2024-02-02T13:00:00Z"),
        make_tx(250, Category.OTHERS, TransactionType.INCOME, title="Cashback", date="2024-02-05T10:00:00Z"),
    ]


def test_default_filter_matches_everything(transactions):
    criteria = TransactionFilter()
    assert not criteria.is_active
    assert apply_filter(transactions, criteria) == transactions


def test_query_is_case_insensitive(transactions):
    result = apply_filter(transactions, TransactionFilter(query="zOMATO"))
    assert [tx.title for tx in result] == ["Zomato Dinner"]


def test_type_and_category_order_independent(transactions):
    """Applying type then category equals category then type equals both at once."""
    by_type = TransactionFilter(type="expense")
    by_category = TransactionFilter(category="Food & Drinks")
    combined = TransactionFilter(type="expense", category="Food & Drinks")

    type_first = apply_filter(apply_filter(transactions, by_type), by_category)
    category_first = apply_filter(apply_filter(transactions, by_category), by_type)

    assert type_first == category_first == apply_filter(transactions, combined)
    assert [tx.title for tx in type_first] == ["Zomato Dinner", "Swiggy lunch"]


def test_date_range_is_inclusive(transactions):
    criteria = TransactionFilter(start=date(2024, 1, 15), end=date(2024, 1, 16))
    result = apply_filter(transactions, criteria)
    assert [tx.title for tx in result] == ["Zomato Dinner", "Uber to office"]


def test_open_ended_ranges(transactions):
    since_february = apply_filter(transactions, TransactionFilter(start=date(2024, 2, 1)))
    until_january = apply_filter(transactions, TransactionFilter(end=date(2024, 1, 31)))
    assert len(since_february) == 2
    assert len(until_january) == 3


def test_all_criteria_are_anded(transactions):
    criteria = TransactionFilter(
        query="s",
        type=TransactionType.INCOME,
        category=Category.OTHERS,
        start=date(2024, 2, 1),
    )
    assert criteria.is_active
    assert [tx.title for tx in apply_filter(transactions, criteria)] == ["Cashback"]
    assert not matches(transactions[2], criteria)


def test_inverted_range_matches_nothing(transactions):
    criteria = TransactionFilter(start=date(2024, 2, 1), end=date(2024, 1, 1))
    assert criteria.is_active
    assert apply_filter(transactions, criteria) == []


def test_unknown_category_rejected():
    with pytest.raises(ValidationError):
        TransactionFilter(category="Crypto")
