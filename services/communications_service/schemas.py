"""Pydantic schemas for communications service."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class NotifyRequest(BaseModel):
    phone: Optional[str] = None
    # Relay-side formatting, may contain *bold* markup
    message: Optional[str] = None


class NotifyResponse(BaseModel):
    success: bool
    provider: str


class CustomOrderEmailRequest(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: EmailStr
    customer_phone: Optional[str] = Field(None, max_length=50)
    technology: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    timestamp: Optional[str] = None


class EmailSentResponse(BaseModel):
    success: bool
    message: str
