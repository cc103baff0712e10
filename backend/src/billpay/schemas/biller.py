"""Pydantic schemas for Biller model."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from billpay.models.biller import BillerCategory
from billpay.schemas.customer import CustomerSummary
from billpay.schemas.payment_method import OptionalText


class BillerCreate(BaseModel):
    """Schema for adding a biller to a customer."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255, description="Biller name")
    category: BillerCategory = Field(default=BillerCategory.OTHER, description="Biller category")
    account_id: str = Field(..., min_length=1, description="Customer's account number with the biller")
    contact_info: OptionalText = Field(default=None, description="Phone, email or notes")


class BillerUpdate(BaseModel):
    """Schema for updating a biller (all fields optional, contact_info may be cleared)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=255)
    category: BillerCategory | None = None
    account_id: str | None = Field(default=None, min_length=1)
    contact_info: OptionalText = None


class Biller(BaseModel):
    """Schema for returning biller data."""

    id: UUID
    name: str
    category: BillerCategory
    account_id: str
    contact_info: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BillerWithCustomer(Biller):
    """Biller row in the admin console, with its owner."""

    user: CustomerSummary


class BillerSummary(BaseModel):
    """Biller fields embedded in receipts."""

    id: UUID
    name: str
    category: BillerCategory

    model_config = ConfigDict(from_attributes=True)
