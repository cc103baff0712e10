"""Audit log model for tracking all changes."""
from sqlalchemy import JSON, Column, String, Uuid

from billpay.models.base import Base


class AuditLog(Base):
    """
    Audit log for the agent and admin consoles.

    Tracks create/update/delete operations with actor context.
    """

    __tablename__ = "audit_logs"

    entity_type = Column(String, nullable=False, index=True)  # payment_method, biller, receipt, customer
    entity_id = Column(Uuid, nullable=False, index=True)
    action = Column(String, nullable=False)  # create, update, delete
    user_id = Column(String, nullable=True)  # Actor who performed the action
    changes = Column(JSON, nullable=False, default=dict)  # {field: {old: X, new: Y}}
    request_id = Column(String, nullable=True)  # Correlation ID from request

    def __repr__(self) -> str:
        """String representation."""
        return f"<AuditLog(entity_type={self.entity_type}, entity_id={self.entity_id}, action={self.action})>"
