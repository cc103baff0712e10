"""Pydantic schemas for customer (User) model."""
from datetime import date, datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints

from billpay.schemas.payment_method import OptionalText

MIN_CUSTOMER_PASSWORD_LENGTH = 12

# Passwords are taken exactly as typed
CustomerPassword = Annotated[str, StringConstraints(strip_whitespace=False, min_length=MIN_CUSTOMER_PASSWORD_LENGTH)]


class CustomerBase(BaseModel):
    """Base customer schema with profile fields."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr = Field(..., description="Customer email address")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: OptionalText = Field(default=None, description="Contact phone number")
    date_of_birth: date = Field(..., description="Date of birth")
    ssn_last4: str = Field(..., pattern=r"^\d{4}$", description="Last four digits of the SSN")
    address_line1: str = Field(..., min_length=1)
    address_line2: OptionalText = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=2)
    postal_code: str = Field(..., min_length=3)


class CustomerCreate(CustomerBase):
    """Schema for registering a customer from the signup form."""

    password: CustomerPassword = Field(..., description="Plaintext password; only its hash is stored")


class CustomerUpdate(BaseModel):
    """Schema for updating a customer profile (all fields optional).

    Name and customer number cannot be changed.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr | None = None
    phone: OptionalText = None
    address_line1: str | None = Field(default=None, min_length=1)
    address_line2: OptionalText = None
    city: str | None = Field(default=None, min_length=1)
    state: str | None = Field(default=None, min_length=2)
    postal_code: str | None = Field(default=None, min_length=3)


class Customer(CustomerBase):
    """Schema for returning customer data."""

    id: UUID
    customer_number: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CustomerSummary(BaseModel):
    """Customer fields shown in agent and admin search results."""

    id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str | None
    customer_number: str

    model_config = ConfigDict(from_attributes=True)


class PasswordChange(BaseModel):
    """Schema for a signed-in customer changing their password."""

    current_password: str = Field(..., min_length=1)
    new_password: CustomerPassword


class PasswordResetRequest(BaseModel):
    """Identity details a customer supplies to get a reset token."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    ssn_last4: str = Field(..., pattern=r"^\d{4}$")
    date_of_birth: date


class PasswordReset(BaseModel):
    """Schema for completing a password reset."""

    token: str = Field(..., min_length=1)
    new_password: CustomerPassword
