from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from rupeeflow.dependencies import category_filter, get_current_user, get_state
from rupeeflow.errors import ValidationError
from rupeeflow.models.analytics import CashflowTotals, CategoryTotal, MonthlyTrendPoint, WeeklyBucket
from rupeeflow.models.auth import User
from rupeeflow.models.category import CategoryConfig, categories_for_type
from rupeeflow.models.transaction import Transaction, TransactionType
from rupeeflow.services.aggregation import (
    cashflow_totals,
    category_totals,
    filter_month,
    filter_year,
    monthly_trend,
    trailing_trend,
    weekly_buckets,
)
from rupeeflow.services.filters import TransactionFilter, apply_filter
from rupeeflow.state import AppState
from rupeeflow.utils.timestamp import parse_month


router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
)

categories_router = APIRouter(
    prefix="/categories",
    tags=["categories"],
)


def _window(
    transactions: List[Transaction],
    month: Optional[str],
    year: Optional[int],
) -> List[Transaction]:
    # A year without a month selects the whole year
    if year is not None and month is None:
        return filter_year(transactions, year)
    try:
        y, m = parse_month(month)
    except ValueError as e:
        raise ValidationError(str(e))
    return filter_month(transactions, y, m)


@router.get(
    "/categories",
    response_model=List[CategoryTotal],
    status_code=status.HTTP_200_OK,
)
def category_breakdown(
    month: Optional[str] = Query(None, description="YYYY-MM; defaults to the current month"),
    year: Optional[int] = Query(None, ge=1970, le=9999),
    type: Literal["expense", "income", "all"] = Query("expense"),
    criteria: TransactionFilter = Depends(category_filter),
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    """Per-category totals, largest first."""
    window = apply_filter(_window(state.transactions.list(current_user.id), month, year), criteria)
    tx_type = None if type == "all" else TransactionType(type)
    return category_totals(window, tx_type)


@router.get(
    "/weekly",
    response_model=List[WeeklyBucket],
    status_code=status.HTTP_200_OK,
)
def weekly(
    month: Optional[str] = Query(None, description="YYYY-MM; defaults to the current month"),
    criteria: TransactionFilter = Depends(category_filter),
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    """Expense per week of the month, optionally for one category."""
    window = _window(state.transactions.list(current_user.id), month, None)
    return weekly_buckets(apply_filter(window, criteria))


@router.get(
    "/trend",
    response_model=List[MonthlyTrendPoint],
    status_code=status.HTTP_200_OK,
)
def trend(
    mode: Literal["annual", "trailing"] = Query("trailing"),
    year: Optional[int] = Query(None, ge=1970, le=9999),
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    """
    Monthly income/expense series.

    ``annual`` covers January..December of ``year`` (current year by default);
    ``trailing`` covers the last 12 calendar months ending this month.
    """
    transactions = state.transactions.list(current_user.id)
    if mode == "annual":
        if year is None:
            year, _ = parse_month(None)
        return monthly_trend(transactions, year)
    return trailing_trend(transactions)


@router.get(
    "/cashflow",
    response_model=CashflowTotals,
    status_code=status.HTTP_200_OK,
)
def cashflow(
    month: Optional[str] = Query(None, description="YYYY-MM; defaults to the current month"),
    year: Optional[int] = Query(None, ge=1970, le=9999),
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    return cashflow_totals(_window(state.transactions.list(current_user.id), month, year))


@categories_router.get(
    "",
    response_model=List[CategoryConfig],
    status_code=status.HTTP_200_OK,
)
def list_categories(type: Optional[Literal["expense", "income"]] = Query(None)):
    """Category display table, optionally narrowed to one transaction type."""
    return categories_for_type(type)
