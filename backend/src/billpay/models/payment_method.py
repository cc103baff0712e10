"""Payment method model for storing customer payment information."""
import enum

from sqlalchemy import Boolean, Column, Enum as SQLEnum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from billpay.models.base import Base


class PaymentMethodType(enum.Enum):
    """Kinds of payment method a customer can register."""

    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    BANK_ACCOUNT = "BANK_ACCOUNT"

    @property
    def is_card(self) -> bool:
        return self is not PaymentMethodType.BANK_ACCOUNT


class PaymentMethod(Base):
    """
    Customer payment method (credit card, debit card or bank account).

    Account number and security code hold encryption tokens only; last4 is
    kept in plaintext for display.
    """

    __tablename__ = "payment_methods"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SQLEnum(PaymentMethodType), nullable=False)
    provider = Column(String, nullable=False)
    nickname = Column(String, nullable=True)
    cardholder_name = Column(String, nullable=True)  # Owner name for bank accounts
    brand = Column(String, nullable=True)  # visa, mastercard, amex
    account_number = Column(Text, nullable=False)  # Encrypted token
    last4 = Column(String(4), nullable=False)
    exp_month = Column(Integer, nullable=True)
    exp_year = Column(Integer, nullable=True)
    security_code = Column(Text, nullable=True)  # Encrypted token, cards only

    # Billing address snapshot
    billing_address_line1 = Column(String, nullable=True)
    billing_address_line2 = Column(String, nullable=True)
    billing_city = Column(String, nullable=True)
    billing_state = Column(String, nullable=True)
    billing_postal_code = Column(String, nullable=True)

    is_default = Column(Boolean, nullable=False, default=False)

    # Relationships
    user = relationship("User", back_populates="payment_methods")

    def __repr__(self) -> str:
        """String representation."""
        return f"<PaymentMethod(id={self.id}, type={self.type}, last4={self.last4}, default={self.is_default})>"
