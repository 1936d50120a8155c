"""FastAPI dependencies shared by the routers."""
from datetime import date
from typing import Optional, Tuple

from fastapi import Depends, Query, Request
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError as PydanticValidationError

from rupeeflow.errors import InvalidTokenError, ValidationError
from rupeeflow.models.auth import User
from rupeeflow.services.filters import TransactionFilter
from rupeeflow.state import AppState
from rupeeflow.utils.timestamp import parse_month

ACCESS_COOKIE = "access_token"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def get_state(request: Request) -> AppState:
    return request.app.state.rupeeflow


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    state: AppState = Depends(get_state),
) -> User:
    """Bearer header first, then the HttpOnly cookie set at login."""
    token = token or request.cookies.get(ACCESS_COOKIE)
    if not token:
        raise InvalidTokenError("Not authenticated")
    return state.identity.authenticate(token)


def first_error_message(error: PydanticValidationError) -> str:
    """Field and message of the first pydantic error, without the docs link."""
    first = error.errors()[0]
    field = first["loc"][0] if first["loc"] else None
    return f"{field}: {first['msg']}" if field else first["msg"]


def month_window(month: Optional[str] = Query(None, description="YYYY-MM; defaults to the current month")) -> Tuple[int, int]:
    try:
        return parse_month(month)
    except ValueError as e:
        raise ValidationError(str(e))


def transaction_filter(
    query: str = Query("", description="Case-insensitive title search"),
    type: str = Query("all", description="all, income or expense"),
    category: str = Query("all", description="all or a category name"),
    start: Optional[date] = Query(None, description="Inclusive start date"),
    end: Optional[date] = Query(None, description="Inclusive end date"),
) -> TransactionFilter:
    try:
        return TransactionFilter(query=query, type=type, category=category, start=start, end=end)
    except PydanticValidationError as e:
        raise ValidationError(first_error_message(e))


def category_filter(
    category: str = Query("all", description="all or a category name"),
) -> TransactionFilter:
    try:
        return TransactionFilter(category=category)
    except PydanticValidationError as e:
        raise ValidationError(first_error_message(e))
