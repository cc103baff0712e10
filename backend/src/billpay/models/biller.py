"""Biller model for the companies a customer pays."""
import enum

from sqlalchemy import Column, Enum as SQLEnum, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from billpay.models.base import Base


class BillerCategory(enum.Enum):
    """Biller categories shown in the portals."""

    UTILITIES = "UTILITIES"
    TELECOM = "TELECOM"
    INSURANCE = "INSURANCE"
    CREDIT_CARD = "CREDIT_CARD"
    LOAN = "LOAN"
    SUBSCRIPTION = "SUBSCRIPTION"
    OTHER = "OTHER"


class Biller(Base):
    """Biller owned by exactly one customer."""

    __tablename__ = "billers"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    category = Column(SQLEnum(BillerCategory), nullable=False, default=BillerCategory.OTHER)
    account_id = Column(String, nullable=False)  # Customer's account number with the biller
    contact_info = Column(String, nullable=True)

    # Relationships
    user = relationship("User", back_populates="billers")
    receipts = relationship("Receipt", back_populates="biller", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        """String representation."""
        return f"<Biller(id={self.id}, name={self.name}, category={self.category.value})>"
