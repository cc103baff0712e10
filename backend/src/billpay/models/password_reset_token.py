"""Password reset token model."""
from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from billpay.models.base import Base


class PasswordResetToken(Base):
    """
    Single-use token emailed to a customer who forgot their password.

    A token is usable while ``used_at`` is null and ``expires_at`` is in the future.
    """

    __tablename__ = "password_reset_tokens"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String, nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    user = relationship("User", back_populates="password_reset_tokens")

    def __repr__(self) -> str:
        """String representation."""
        return f"<PasswordResetToken(id={self.id}, user_id={self.user_id}, used={self.used_at is not None})>"
