from typing import List, Tuple

from fastapi import APIRouter, Depends, status

from rupeeflow.dependencies import get_current_user, get_state, month_window
from rupeeflow.errors import ValidationError
from rupeeflow.models.analytics import BudgetOverview
from rupeeflow.models.auth import User
from rupeeflow.models.budget import Budget, BudgetUpsert
from rupeeflow.models.category import TOTAL, Category
from rupeeflow.services.aggregation import budget_overview
from rupeeflow.state import AppState


router = APIRouter(
    prefix="/budgets",
    tags=["budgets"],
)


def _budget_key(category: str) -> str:
    if category == TOTAL:
        return TOTAL
    try:
        return Category(category).value
    except ValueError:
        raise ValidationError(f"Unknown category: {category}")


@router.get(
    "",
    response_model=List[Budget],
    status_code=status.HTTP_200_OK,
)
def list_budgets(
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    return state.budgets.list(current_user.id)


@router.get(
    "/utilization",
    response_model=BudgetOverview,
    status_code=status.HTTP_200_OK,
)
def utilization(
    window: Tuple[int, int] = Depends(month_window),
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    """Spent vs limit for Total and every category in a month."""
    year, month = window
    return budget_overview(
        state.transactions.list(current_user.id),
        state.budgets.list(current_user.id),
        year,
        month,
    )


@router.put(
    "/{category}",
    response_model=Budget,
    status_code=status.HTTP_200_OK,
)
def upsert_budget(
    category: str,
    payload: BudgetUpsert,
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    key = _budget_key(category)
    state.budgets.upsert(current_user.id, key, payload.limit)
    return Budget(user_id=current_user.id, category=key, limit=payload.limit)
