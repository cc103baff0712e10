"""Pydantic schemas for PaymentMethod model."""
from datetime import date, datetime
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field

from billpay.models.payment_method import PaymentMethodType

# Expiration years accepted from the current year onwards
EXPIRATION_YEAR_WINDOW = 15


def blank_to_none(value: object) -> object:
    """Treat empty or whitespace-only strings as absent values."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


def _check_exp_year(value: int | None) -> int | None:
    if value is None:
        return value
    current_year = date.today().year
    if not current_year <= value <= current_year + EXPIRATION_YEAR_WINDOW:
        raise ValueError(f"Expiration year must be between {current_year} and {current_year + EXPIRATION_YEAR_WINDOW}")
    return value


OptionalText = Annotated[str | None, BeforeValidator(blank_to_none)]
ExpirationMonth = Annotated[int, Field(ge=1, le=12)] | None
ExpirationYear = Annotated[int | None, AfterValidator(_check_exp_year)]


class BillingAddress(BaseModel):
    """Billing address supplied explicitly or copied from the customer profile."""

    model_config = ConfigDict(str_strip_whitespace=True)

    line1: str = Field(..., min_length=1, description="Address line 1")
    line2: OptionalText = Field(default=None, description="Address line 2")
    city: str = Field(..., min_length=1, description="City")
    state: str = Field(..., min_length=2, description="State")
    postal_code: str = Field(..., min_length=3, description="Postal code")


class PaymentMethodCreate(BaseModel):
    """Schema for creating a new payment method.

    Examples:
        Credit card billed to the profile address:
            ```json
            {
                "type": "CREDIT_CARD",
                "provider": "Chase",
                "account_number": "4111 1111 1111 1111",
                "cardholder_name": "Jane Doe",
                "exp_month": 8,
                "exp_year": 2029,
                "security_code": "123",
                "use_profile_address": true
            }
            ```

        Checking account:
            ```json
            {
                "type": "BANK_ACCOUNT",
                "provider": "Wells Fargo",
                "account_number": "000123456789",
                "cardholder_name": "Jane Doe",
                "is_default": true
            }
            ```
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    type: PaymentMethodType = Field(..., description="CREDIT_CARD, DEBIT_CARD or BANK_ACCOUNT")
    provider: str = Field(..., min_length=1, description="Issuing bank or provider name")
    account_number: str = Field(..., min_length=4, description="Card or bank account number")
    cardholder_name: OptionalText = Field(default=None, description="Card holder or account owner name")
    nickname: OptionalText = Field(default=None, description="Customer-facing label")
    exp_month: ExpirationMonth = Field(default=None, description="Expiration month (cards only)")
    exp_year: ExpirationYear = Field(default=None, description="Expiration year (cards only)")
    brand: OptionalText = Field(default=None, description="Card brand")
    security_code: OptionalText = Field(default=None, description="CVV (cards only)")
    billing_address: BillingAddress | None = Field(default=None, description="Explicit billing address")
    use_profile_address: bool = Field(default=False, description="Copy the billing address from the profile")
    is_default: bool = Field(default=False, description="Set as default payment method")


class PaymentMethodUpdate(BaseModel):
    """Schema for updating a payment method.

    Fields left out are not changed; fields sent as ``null`` are cleared.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    provider: OptionalText = None
    nickname: OptionalText = None
    cardholder_name: OptionalText = None
    exp_month: ExpirationMonth = None
    exp_year: ExpirationYear = None
    brand: OptionalText = None
    account_number: OptionalText = None
    security_code: OptionalText = None
    billing_address: BillingAddress | None = None
    use_profile_address: bool | None = None
    is_default: bool | None = None

    def provided(self, field: str) -> bool:
        """Whether the caller sent ``field``, including as an explicit null."""
        return field in self.model_fields_set


class PaymentMethod(BaseModel):
    """Schema for returning payment method data.

    Never carries the account number or security code.
    """

    id: UUID
    type: PaymentMethodType
    provider: str
    cardholder_name: str | None
    nickname: str | None
    exp_month: int | None
    exp_year: int | None
    brand: str | None
    last4: str
    billing_address_line1: str | None
    billing_address_line2: str | None
    billing_city: str | None
    billing_state: str | None
    billing_postal_code: str | None
    is_default: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
