"""SQLAlchemy ORM models for the bill-payment platform."""
# Import all models here to ensure they are registered on the metadata

from billpay.models.base import Base
from billpay.models.user import User
from billpay.models.payment_method import PaymentMethod, PaymentMethodType
from billpay.models.biller import Biller, BillerCategory
from billpay.models.receipt import Receipt
from billpay.models.audit_log import AuditLog
from billpay.models.agent import Agent, agent_customers
from billpay.models.password_reset_token import PasswordResetToken

__all__ = [
    "Base",
    "User",
    "PaymentMethod",
    "PaymentMethodType",
    "Biller",
    "BillerCategory",
    "Receipt",
    "AuditLog",
    "Agent",
    "agent_customers",
    "PasswordResetToken",
]
