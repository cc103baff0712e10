"""Pydantic schemas for service input and output."""

from billpay.schemas.agent import (
    Agent,
    AgentCreate,
    AgentUpdate,
    AgentWithCustomers,
)
from billpay.schemas.biller import (
    Biller,
    BillerCreate,
    BillerSummary,
    BillerUpdate,
    BillerWithCustomer,
)
from billpay.schemas.customer import (
    Customer,
    CustomerCreate,
    CustomerSummary,
    CustomerUpdate,
    PasswordChange,
    PasswordReset,
    PasswordResetRequest,
)
from billpay.schemas.payment_method import (
    BillingAddress,
    PaymentMethod,
    PaymentMethodCreate,
    PaymentMethodUpdate,
)
from billpay.schemas.receipt import (
    Receipt,
    ReceiptCreate,
    Transaction,
)

__all__ = [
    "Agent",
    "AgentCreate",
    "AgentUpdate",
    "AgentWithCustomers",
    "Biller",
    "BillerCreate",
    "BillerSummary",
    "BillerUpdate",
    "BillerWithCustomer",
    "BillingAddress",
    "Customer",
    "CustomerCreate",
    "CustomerSummary",
    "CustomerUpdate",
    "PasswordChange",
    "PasswordReset",
    "PasswordResetRequest",
    "PaymentMethod",
    "PaymentMethodCreate",
    "PaymentMethodUpdate",
    "Receipt",
    "ReceiptCreate",
    "Transaction",
]
