"""Transaction data models."""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from rupeeflow.models.category import Category
from rupeeflow.utils.timestamp import parse_timestamp


class TransactionType(str, Enum):
    """Direction of a transaction."""

    INCOME = "income"
    EXPENSE = "expense"


class TransactionBase(BaseModel):
    """Fields shared by every transaction shape."""

    title: str = Field(..., min_length=1, max_length=255, description="Free-text description")
    amount: float = Field(..., ge=0, description="Non-negative magnitude; direction comes from type")
    category: Category = Field(..., description="Transaction category")
    type: TransactionType = Field(..., description="income or expense")
    date: datetime = Field(..., description="Transaction timestamp (ISO8601)")
    notes: Optional[str] = Field(None, max_length=1000, description="Optional notes")

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v):
        """Accept ISO strings with or without a Z suffix or time part."""
        if isinstance(v, str):
            return parse_timestamp(v)
        return v

    @field_validator("date")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        """Naive timestamps are treated as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v


class TransactionCreate(TransactionBase):
    """Create shape: no identifier, no owner."""


class TransactionUpdate(TransactionBase):
    """Update shape: identifies the record being replaced."""

    id: str = Field(..., min_length=1, description="Identifier of the record to update")


class Transaction(TransactionBase):
    """Stored transaction."""

    id: str
    user_id: str

    class Config:
        json_schema_extra = {
            "example": {
                "id": "5d7f0e1c-0b3c-4b1e-9a59-4f2f5d6c1a10",
                "user_id": "user_1",
                "title": "Zomato Dinner",
                "amount": 850,
                "category": "Food & Drinks",
                "type": "expense",
                "date": "2024-01-15T19:30:00Z",
                "notes": None,
            }
        }
