import logging

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool

from rupeeflow.dependencies import get_current_user, get_state
from rupeeflow.errors import ValidationError
from rupeeflow.models.advisory import AdviceRequest, AdvisoryResponse, ChatRequest
from rupeeflow.models.auth import User
from rupeeflow.services.aggregation import filter_month
from rupeeflow.state import AppState
from rupeeflow.utils.timestamp import parse_month

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/advisor",
    tags=["advisor"],
)


async def _month_transactions(state: AppState, user: User, month):
    try:
        year, month_num = parse_month(month)
    except ValueError as e:
        raise ValidationError(str(e))
    transactions = await run_in_threadpool(state.transactions.list, user.id)
    return filter_month(transactions, year, month_num)


@router.post(
    "/advice",
    response_model=AdvisoryResponse,
    status_code=status.HTTP_200_OK,
)
async def advice(
    request: AdviceRequest,
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    """
    Financial tips for the month's transactions.

    Provider failures come back as a canned message with status 200.
    """
    transactions = await _month_transactions(state, current_user, request.month)
    budgets = await run_in_threadpool(state.budgets.list, current_user.id)
    logger.info("Advice requested", extra={"user_id": current_user.id, "transactions": len(transactions)})
    text = await state.advisor.get_advice(transactions, budgets)
    return AdvisoryResponse(text=text)


@router.post(
    "/chat",
    response_model=AdvisoryResponse,
    status_code=status.HTTP_200_OK,
)
async def chat(
    request: ChatRequest,
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    transactions = await _month_transactions(state, current_user, request.month)
    text = await state.advisor.chat(request.query, transactions, request.history)
    return AdvisoryResponse(text=text)
