"""Agent model for support staff provisioned through the admin console."""
from sqlalchemy import Column, DateTime, ForeignKey, String, Table, Uuid
from sqlalchemy.orm import relationship

from billpay.database import Base as DeclarativeBase
from billpay.models.base import Base, utcnow

# Customers an agent is responsible for
agent_customers = Table(
    "agent_customers",
    DeclarativeBase.metadata,
    Column("agent_id", Uuid, ForeignKey("agents.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), default=utcnow, nullable=False),
)


class Agent(Base):
    """
    Agent who signs in to the agent console with a username and password.

    Only the bcrypt hash of the password is stored.
    """

    __tablename__ = "agents"

    username = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)

    # Relationships
    customers = relationship(
        "User", secondary=agent_customers, back_populates="agents", order_by="User.last_name"
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Agent(id={self.id}, username={self.username})>"
