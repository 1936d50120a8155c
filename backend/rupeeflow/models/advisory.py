"""Advisory request/response models."""
from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class ChatTurn(BaseModel):
    """One message of the advisor conversation."""

    role: Literal["user", "model"]
    text: str


class AdviceRequest(BaseModel):
    """Request for financial tips over a month window."""

    month: Optional[str] = Field(None, description="YYYY-MM; defaults to the current month")


class ChatRequest(BaseModel):
    """Chat message with recent conversation history."""

    query: str = Field(..., min_length=1, max_length=2000)
    history: List[ChatTurn] = Field(default_factory=list)
    month: Optional[str] = Field(None, description="YYYY-MM; defaults to the current month")


class AdvisoryResponse(BaseModel):
    """Free-text advisor output (bold/italic/bullet markup)."""

    text: str
