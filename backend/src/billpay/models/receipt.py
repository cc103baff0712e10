"""Receipt model for completed bill payments."""
from sqlalchemy import Column, Date, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from billpay.models.base import Base


class Receipt(Base):
    """
    Immutable payment record linking a customer and a biller.

    Amounts are stored in cents.
    """

    __tablename__ = "receipts"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    biller_id = Column(Uuid, ForeignKey("billers.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # Amount in cents
    paid_on = Column(Date, nullable=False, index=True)
    confirmation = Column(String, nullable=False, unique=True, index=True)
    notes = Column(String, nullable=True)

    # Relationships
    user = relationship("User", back_populates="receipts")
    biller = relationship("Biller", back_populates="receipts")

    def __repr__(self) -> str:
        """String representation."""
        return f"<Receipt(id={self.id}, confirmation={self.confirmation}, amount={self.amount})>"
