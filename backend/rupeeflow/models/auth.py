"""Identity models."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class User(BaseModel):
    """Stored account."""

    id: str
    name: str
    email: str
    email_verified: bool = False
    provider: str = "password"
    created_at: datetime


class RegisterIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class GoogleLoginIn(BaseModel):
    id_token: str = Field(..., min_length=1)


class PasswordResetRequestIn(BaseModel):
    email: EmailStr


class PasswordResetConfirmIn(BaseModel):
    token: str
    password: str = Field(..., min_length=6)


class VerifyEmailIn(BaseModel):
    token: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: "UserRead"


class UserRead(BaseModel):
    id: str
    name: str
    email: str
    email_verified: bool
    provider: str


class MessageOut(BaseModel):
    success: bool = True
    message: str
    needs_verification: Optional[bool] = None


TokenOut.model_rebuild()
