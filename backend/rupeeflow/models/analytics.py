"""Derived aggregate views (never persisted)."""
from typing import List
from pydantic import BaseModel, Field


class CategoryTotal(BaseModel):
    """Summed amount for one category."""

    category: str
    value: float
    color: str
    share: int = Field(0, description="Rounded percent of the listed total")


class WeeklyBucket(BaseModel):
    """Expense total for a day-of-month bucket."""

    name: str
    amount: float = 0.0


class MonthlyTrendPoint(BaseModel):
    """Income and expense totals for one calendar month."""

    label: str
    year: int
    month: int
    income: float = 0.0
    expense: float = 0.0


class BudgetUtilization(BaseModel):
    """Spent amount against a limit for one month."""

    category: str
    spent: float
    limit: float
    percent: float = Field(..., ge=0, le=100, description="Clamped to [0, 100] for display")
    ratio: float = Field(..., description="Unclamped spent/limit percentage")
    near_limit: bool


class CashflowTotals(BaseModel):
    """Income, expense and balance for a set of transactions."""

    income: float = 0.0
    expense: float = 0.0
    balance: float = 0.0
    count: int = 0


class BudgetOverview(BaseModel):
    """Utilization for Total and every category."""

    year: int
    month: int
    items: List[BudgetUtilization] = Field(default_factory=list)
