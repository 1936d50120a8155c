"""
Transaction aggregation for reports and budgets.

Pure functions over a snapshot list of transactions:
- category totals (with display colour and share),
- weekly buckets by day-of-month,
- monthly trend for a calendar year or the trailing 12 months,
- budget utilization against a limit,
- cash-flow totals.

Every function degrades to zero/empty output on empty input.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Iterable, Optional, Sequence

from rupeeflow.models.analytics import (
    BudgetOverview,
    BudgetUtilization,
    CashflowTotals,
    CategoryTotal,
    MonthlyTrendPoint,
    WeeklyBucket,
)
from rupeeflow.models.budget import Budget
from rupeeflow.models.category import CATEGORIES_CONFIG, TOTAL, get_category_config
from rupeeflow.models.transaction import Transaction, TransactionType
from rupeeflow.utils.timestamp import MONTH_LABELS, shift_month

NEAR_LIMIT_PERCENT = 90.0

WEEK_BUCKETS = ("Week 1", "Week 2", "Week 3", "Week 4", "Week 5+")


def _type_value(tx_type) -> str:
    return tx_type.value if isinstance(tx_type, TransactionType) else str(tx_type)


def _category_value(category) -> str:
    return getattr(category, "value", category)


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------

def in_month(tx: Transaction, year: int, month: int) -> bool:
    return tx.date.year == year and tx.date.month == month


def in_year(tx: Transaction, year: int) -> bool:
    return tx.date.year == year


def filter_month(transactions: Iterable[Transaction], year: int, month: int) -> list[Transaction]:
    return [tx for tx in transactions if in_month(tx, year, month)]


def filter_year(transactions: Iterable[Transaction], year: int) -> list[Transaction]:
    return [tx for tx in transactions if in_year(tx, year)]


def _sum(transactions: Iterable[Transaction], tx_type: TransactionType) -> float:
    return sum(tx.amount for tx in transactions if tx.type == tx_type)


# ---------------------------------------------------------------------------
# Category / weekly breakdowns
# ---------------------------------------------------------------------------

def category_totals(
    transactions: Sequence[Transaction],
    tx_type: Optional[TransactionType | str] = TransactionType.EXPENSE,
) -> list[CategoryTotal]:
    """
    Sum amounts per category, largest first.

    Args:
        transactions: Snapshot to aggregate
        tx_type: Restrict to one type (expense for spending breakdowns);
            None aggregates every transaction for a general category share.

    Ties keep first-seen input order (sorting is stable).
    """
    wanted = _type_value(tx_type) if tx_type is not None else None
    grouped: dict[str, float] = {}
    for tx in transactions:
        if wanted is not None and tx.type.value != wanted:
            continue
        key = _category_value(tx.category)
        grouped[key] = grouped.get(key, 0.0) + tx.amount

    total = sum(grouped.values())
    items = [
        CategoryTotal(
            category=name,
            value=value,
            color=get_category_config(name).color,
            share=round(value / total * 100) if total > 0 else 0,
        )
        for name, value in grouped.items()
    ]
    items.sort(key=lambda item: item.value, reverse=True)
    return items


def week_bucket(day: int) -> str:
    """Map a day-of-month to its bucket name."""
    if day <= 7:
        return "Week 1"
    if day <= 14:
        return "Week 2"
    if day <= 21:
        return "Week 3"
    if day <= 28:
        return "Week 4"
    return "Week 5+"


def weekly_buckets(transactions: Iterable[Transaction]) -> list[WeeklyBucket]:
    """Expense totals per day-of-month bucket; empty buckets report zero."""
    weeks = {name: 0.0 for name in WEEK_BUCKETS}
    for tx in transactions:
        if tx.type != TransactionType.EXPENSE:
            continue
        weeks[week_bucket(tx.date.day)] += tx.amount
    return [WeeklyBucket(name=name, amount=amount) for name, amount in weeks.items()]


# ---------------------------------------------------------------------------
# Monthly / annual trend
# ---------------------------------------------------------------------------

def _trend_for_months(transactions: Sequence[Transaction], months: list[tuple[int, int]]) -> list[MonthlyTrendPoint]:
    totals = {key: [0.0, 0.0] for key in months}
    for tx in transactions:
        key = (tx.date.year, tx.date.month)
        if key not in totals:
            continue
        if tx.type == TransactionType.INCOME:
            totals[key][0] += tx.amount
        else:
            totals[key][1] += tx.amount
    return [
        MonthlyTrendPoint(
            label=MONTH_LABELS[month - 1],
            year=year,
            month=month,
            income=totals[(year, month)][0],
            expense=totals[(year, month)][1],
        )
        for year, month in months
    ]


def monthly_trend(transactions: Sequence[Transaction], year: int) -> list[MonthlyTrendPoint]:
    """Income/expense totals for January..December of ``year``."""
    return _trend_for_months(transactions, [(year, m) for m in range(1, 13)])


def trailing_trend(transactions: Sequence[Transaction], today: Optional[date] = None) -> list[MonthlyTrendPoint]:
    """Income/expense totals for the 12 calendar months ending with today's month, oldest first."""
    today = today or datetime.now(timezone.utc).date()
    months = [shift_month(today.year, today.month, -offset) for offset in range(11, -1, -1)]
    return _trend_for_months(transactions, months)


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------

def spent_in_month(transactions: Iterable[Transaction], category: str, year: int, month: int) -> float:
    """Expense total for ``category`` (or every category for Total) within a month."""
    category = _category_value(category)
    return sum(
        tx.amount
        for tx in transactions
        if tx.type == TransactionType.EXPENSE
        and in_month(tx, year, month)
        and (category == TOTAL or tx.category.value == category)
    )


def utilization(category: str, spent: float, limit: float) -> BudgetUtilization:
    """
    Compare spent against limit.

    A zero (or negative) limit yields 0 percent and no warning.
    """
    ratio = spent / limit * 100 if limit > 0 else 0.0
    return BudgetUtilization(
        category=_category_value(category),
        spent=spent,
        limit=limit,
        percent=min(100.0, max(0.0, ratio)),
        ratio=ratio,
        near_limit=ratio > NEAR_LIMIT_PERCENT,
    )


def budget_utilization(
    transactions: Iterable[Transaction],
    category: str,
    limit: float,
    year: int,
    month: int,
) -> BudgetUtilization:
    return utilization(category, spent_in_month(transactions, category, year, month), limit)


def budget_overview(
    transactions: Sequence[Transaction],
    budgets: Iterable[Budget],
    year: int,
    month: int,
) -> BudgetOverview:
    """Utilization for Total followed by every category; categories without a budget use limit 0."""
    limits = {_category_value(b.category): b.limit for b in budgets}
    monthly = filter_month(transactions, year, month)
    names = [TOTAL] + [c.value for c in CATEGORIES_CONFIG]
    items = [
        budget_utilization(monthly, name, limits.get(name, 0.0), year, month)
        for name in names
    ]
    return BudgetOverview(year=year, month=month, items=items)


# ---------------------------------------------------------------------------
# Cash flow
# ---------------------------------------------------------------------------

def cashflow_totals(transactions: Sequence[Transaction]) -> CashflowTotals:
    income = _sum(transactions, TransactionType.INCOME)
    expense = _sum(transactions, TransactionType.EXPENSE)
    return CashflowTotals(income=income, expense=expense, balance=income - expense, count=len(transactions))
