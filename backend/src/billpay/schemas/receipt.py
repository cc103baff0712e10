"""Pydantic schemas for Receipt model."""
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from billpay.schemas.biller import BillerSummary
from billpay.schemas.customer import CustomerSummary
from billpay.schemas.payment_method import OptionalText


class ReceiptCreate(BaseModel):
    """Schema for recording a completed payment."""

    model_config = ConfigDict(str_strip_whitespace=True)

    biller_id: UUID = Field(..., description="Biller that was paid")
    amount: int = Field(..., gt=0, description="Amount paid in cents")
    paid_on: date = Field(..., description="Date the payment settled")
    confirmation: OptionalText = Field(default=None, description="Confirmation code; generated when omitted")
    notes: OptionalText = None


class Receipt(BaseModel):
    """Schema for returning receipt data."""

    id: UUID
    amount: int
    paid_on: date
    confirmation: str
    notes: str | None
    created_at: datetime
    biller: BillerSummary

    model_config = ConfigDict(from_attributes=True)


class Transaction(Receipt):
    """Receipt row in the admin transaction audit, with its customer."""

    user: CustomerSummary
