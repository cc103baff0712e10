"""Receipt service for payment records and the admin transaction audit."""
import secrets
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from billpay.models.receipt import Receipt
from billpay.models.user import User
from billpay.schemas.receipt import ReceiptCreate
from billpay.services.biller_service import BillerService
from billpay.utils.audit import log_audit, resolve_actor

logger = structlog.get_logger(__name__)

CONFIRMATION_PREFIX = "CONF"


def generate_confirmation_code() -> str:
    """Confirmation code such as ``CONF-3FA85F6457``."""
    return f"{CONFIRMATION_PREFIX}-{secrets.token_hex(5).upper()}"


class ReceiptService:
    """Service layer for receipt operations."""

    def __init__(self, db: AsyncSession, billers: BillerService | None = None):
        """Initialize receipt service with database session."""
        self.db = db
        self.billers = billers or BillerService(db)

    async def record_receipt(
        self, customer_id: UUID, receipt_data: ReceiptCreate, current_user: Optional[dict] = None
    ) -> Receipt:
        """
        Record a completed payment to one of the customer's billers.

        Args:
            customer_id: Paying customer UUID
            receipt_data: Payment details
            current_user: Agent or customer context for audit logging

        Returns:
            Created receipt with its biller loaded

        Raises:
            NotFoundError: If the biller does not exist or belongs to another customer
        """
        biller = await self.billers.get_biller(customer_id, receipt_data.biller_id)

        receipt = Receipt(
            user_id=customer_id,
            biller_id=biller.id,
            amount=receipt_data.amount,
            paid_on=receipt_data.paid_on,
            confirmation=receipt_data.confirmation or generate_confirmation_code(),
            notes=receipt_data.notes,
        )

        self.db.add(receipt)
        await self.db.flush()
        await self.db.refresh(receipt, attribute_names=["biller", "created_at", "updated_at"])

        await log_audit(self.db, "receipt", receipt.id, "create", user_id=resolve_actor(current_user, customer_id))
        logger.info(
            "receipt_recorded",
            customer_id=str(customer_id),
            biller_id=str(biller.id),
            amount=receipt.amount,
            confirmation=receipt.confirmation,
        )

        return receipt

    async def list_receipts(self, customer_id: UUID) -> list[Receipt]:
        """
        List a customer's receipts.

        Returns:
            Receipts newest paid-on first, with billers loaded
        """
        result = await self.db.execute(
            select(Receipt)
            .where(Receipt.user_id == customer_id)
            .options(selectinload(Receipt.biller))
            .order_by(Receipt.paid_on.desc(), Receipt.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_transactions(self, query: str | None = None) -> list[Receipt]:
        """
        List receipts across customers for the admin transaction audit.

        Args:
            query: Case-insensitive fragment of the confirmation code or the
                customer's name, email, phone or customer number

        Returns:
            Receipts newest paid-on first, with billers and customers loaded
        """
        stmt = (
            select(Receipt)
            .join(Receipt.user)
            .options(selectinload(Receipt.biller), selectinload(Receipt.user))
        )
        if query:
            pattern = f"%{query.strip()}%"
            stmt = stmt.where(
                or_(
                    Receipt.confirmation.ilike(pattern),
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                    User.email.ilike(pattern),
                    User.phone.ilike(pattern),
                    User.customer_number.ilike(pattern),
                )
            )

        result = await self.db.execute(stmt.order_by(Receipt.paid_on.desc(), Receipt.created_at.desc()))
        return list(result.scalars().all())
