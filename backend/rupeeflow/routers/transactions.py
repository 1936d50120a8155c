from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from rupeeflow.dependencies import get_current_user, get_state, transaction_filter
from rupeeflow.errors import ValidationError
from rupeeflow.models.auth import User
from rupeeflow.models.transaction import Transaction, TransactionCreate, TransactionUpdate
from rupeeflow.services.aggregation import filter_month
from rupeeflow.services.filters import TransactionFilter, apply_filter
from rupeeflow.services.transfer import export_csv, parse_upload
from rupeeflow.state import AppState
from rupeeflow.utils.timestamp import parse_month


router = APIRouter(
    prefix="/transactions",
    tags=["transactions"],
)


class UploadResponse(BaseModel):
    """Response from transaction upload."""

    transaction_count: int
    skipped: int
    message: str


def _select(
    state: AppState,
    user: User,
    criteria: TransactionFilter,
    month: Optional[str],
) -> List[Transaction]:
    """
    Filtered view of a user's transactions.

    A date range searches the whole history; otherwise an optional month
    narrows the source before the other criteria apply.
    """
    transactions = state.transactions.list(user.id)
    if month and not criteria.has_date_range:
        try:
            year, month_num = parse_month(month)
        except ValueError as e:
            raise ValidationError(str(e))
        transactions = filter_month(transactions, year, month_num)
    return apply_filter(transactions, criteria)


@router.get(
    "",
    response_model=List[Transaction],
    status_code=status.HTTP_200_OK,
)
def list_transactions(
    month: Optional[str] = Query(None, description="YYYY-MM source window"),
    criteria: TransactionFilter = Depends(transaction_filter),
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    """List transactions, most recent first."""
    return _select(state, current_user, criteria, month)


@router.post(
    "",
    response_model=Transaction,
    status_code=status.HTTP_201_CREATED,
)
def create_transaction(
    payload: TransactionCreate,
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    return state.transactions.create(current_user.id, payload)


@router.put(
    "/{tx_id}",
    response_model=Transaction,
    status_code=status.HTTP_200_OK,
)
def update_transaction(
    tx_id: str,
    payload: TransactionCreate,
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    state.transactions.update(current_user.id, TransactionUpdate(id=tx_id, **payload.model_dump()))
    return state.transactions.get(current_user.id, tx_id)


@router.delete(
    "/{tx_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_transaction(
    tx_id: str,
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    state.transactions.delete(current_user.id, tx_id)
    return None


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_200_OK,
)
async def upload_transactions(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    """
    Import transactions from CSV or JSON file.

    Expected CSV format (the export format is accepted too):
    title,amount,category,type,date,notes

    Expected JSON format:
    [{"title": "...", "amount": ..., "category": "...", "type": "expense", "date": "..."}, ...]
    """
    content = await file.read()
    transactions, skipped = parse_upload(file.filename or "", content)
    if not transactions:
        raise ValidationError("No valid transactions found in file")

    count = await run_in_threadpool(state.transactions.bulk_create, current_user.id, transactions)
    return UploadResponse(
        transaction_count=count,
        skipped=skipped,
        message=f"Successfully uploaded {count} transactions",
    )


@router.get(
    "/export",
    status_code=status.HTTP_200_OK,
    response_class=Response,
)
def export_transactions(
    month: Optional[str] = Query(None, description="YYYY-MM source window"),
    criteria: TransactionFilter = Depends(transaction_filter),
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    """Download the filtered transactions as CSV."""
    content = export_csv(_select(state, current_user, criteria, month))
    filename = f"RupeeFlow_Export_{datetime.now().strftime('%Y-%m-%d')}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
