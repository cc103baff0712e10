"""Customer model for portal users."""
from sqlalchemy import Column, Date, String
from sqlalchemy.orm import relationship

from billpay.models.base import Base


class User(Base):
    """
    Customer who signs up through the customer portal.

    Profile address fields are the fallback billing address for payment methods.
    """

    __tablename__ = "users"

    email = Column(String, nullable=False, unique=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    customer_number = Column(String, nullable=False, unique=True, index=True)  # CUST-NNNNN
    password_hash = Column(String, nullable=False)

    # Identity details checked at signup and password reset
    date_of_birth = Column(Date, nullable=False, index=True)
    ssn_last4 = Column(String(4), nullable=False, index=True)

    # Profile address
    address_line1 = Column(String, nullable=False)
    address_line2 = Column(String, nullable=True)
    city = Column(String, nullable=False)
    state = Column(String, nullable=False)
    postal_code = Column(String, nullable=False)

    # Relationships
    payment_methods = relationship("PaymentMethod", back_populates="user", cascade="all, delete-orphan")
    billers = relationship("Biller", back_populates="user", cascade="all, delete-orphan")
    receipts = relationship("Receipt", back_populates="user", cascade="all, delete-orphan")
    password_reset_tokens = relationship(
        "PasswordResetToken", back_populates="user", cascade="all, delete-orphan"
    )
    agents = relationship("Agent", secondary="agent_customers", back_populates="customers")

    def __repr__(self) -> str:
        """String representation."""
        return f"<User(id={self.id}, customer_number={self.customer_number})>"
