from .category import (
    Category,
    CategoryConfig,
    CATEGORIES_CONFIG,
    TOTAL,
    get_category_config,
    categories_for_type,
)
from .transaction import Transaction, TransactionCreate, TransactionUpdate, TransactionType
from .budget import Budget, BudgetUpsert
from .analytics import (
    CategoryTotal,
    WeeklyBucket,
    MonthlyTrendPoint,
    BudgetUtilization,
    BudgetOverview,
    CashflowTotals,
)
from .advisory import ChatTurn, AdviceRequest, ChatRequest, AdvisoryResponse

__all__ = [
    "Category",
    "CategoryConfig",
    "CATEGORIES_CONFIG",
    "TOTAL",
    "get_category_config",
    "categories_for_type",
    "Transaction",
    "TransactionCreate",
    "TransactionUpdate",
    "TransactionType",
    "Budget",
    "BudgetUpsert",
    "CategoryTotal",
    "WeeklyBucket",
    "MonthlyTrendPoint",
    "BudgetUtilization",
    "BudgetOverview",
    "CashflowTotals",
    "ChatTurn",
    "AdviceRequest",
    "ChatRequest",
    "AdvisoryResponse",
]
