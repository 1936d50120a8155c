"""Budget data models."""
from typing import Literal, Union
from pydantic import BaseModel, Field
from rupeeflow.models.category import Category

BudgetCategory = Union[Literal["Total"], Category]


class BudgetUpsert(BaseModel):
    """Payload for setting a spending limit."""

    limit: float = Field(..., ge=0, description="Spending limit for the category")


class Budget(BaseModel):
    """Per-category (or aggregate Total) spending limit."""

    user_id: str
    category: BudgetCategory = Field(..., description="Category name or 'Total'")
    limit: float = Field(..., ge=0)
