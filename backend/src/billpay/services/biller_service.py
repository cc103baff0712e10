"""Biller service for business logic."""
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from billpay.exceptions import ErrorCode, NotFoundError
from billpay.models.biller import Biller
from billpay.schemas.biller import BillerCreate, BillerUpdate
from billpay.services.customer_service import CustomerService
from billpay.utils.audit import diff_changes, log_audit, resolve_actor

logger = structlog.get_logger(__name__)


class BillerService:
    """Service layer for biller operations."""

    def __init__(self, db: AsyncSession, customers: CustomerService | None = None):
        """Initialize biller service with database session."""
        self.db = db
        self.customers = customers or CustomerService(db)

    async def list_billers(self, customer_id: UUID) -> list[Biller]:
        """
        List a customer's billers.

        Args:
            customer_id: Customer UUID

        Returns:
            Billers ordered by name
        """
        result = await self.db.execute(
            select(Biller).where(Biller.user_id == customer_id).order_by(Biller.name.asc())
        )
        return list(result.scalars().all())

    async def get_biller(self, customer_id: UUID, biller_id: UUID) -> Biller:
        """
        Get a biller owned by the customer.

        Raises:
            NotFoundError: If the biller does not exist or belongs to another customer
        """
        result = await self.db.execute(
            select(Biller).where(Biller.id == biller_id, Biller.user_id == customer_id)
        )
        biller = result.scalar_one_or_none()
        if biller is None:
            raise NotFoundError("Biller not found", code=ErrorCode.BILLER_NOT_FOUND)
        return biller

    async def create_biller(
        self, customer_id: UUID, biller_data: BillerCreate, current_user: Optional[dict] = None
    ) -> Biller:
        """
        Add a biller for a customer.

        Raises:
            NotFoundError: If the customer does not exist
        """
        await self.customers.get_customer(customer_id)

        biller = Biller(
            user_id=customer_id,
            name=biller_data.name,
            category=biller_data.category,
            account_id=biller_data.account_id,
            contact_info=biller_data.contact_info,
        )

        self.db.add(biller)
        await self.db.flush()
        await self.db.refresh(biller)

        await log_audit(self.db, "biller", biller.id, "create", user_id=resolve_actor(current_user, customer_id))
        return biller

    async def update_biller(
        self,
        customer_id: UUID,
        biller_id: UUID,
        update_data: BillerUpdate,
        current_user: Optional[dict] = None,
    ) -> Biller:
        """
        Update a biller.

        Only provided fields are changed; ``contact_info`` may be cleared with null.

        Raises:
            NotFoundError: If the biller does not exist or belongs to another customer
        """
        biller = await self.get_biller(customer_id, biller_id)

        update_dict = update_data.model_dump(exclude_unset=True)
        update_dict = {k: v for k, v in update_dict.items() if v is not None or k == "contact_info"}

        old_values = {field: getattr(biller, field) for field in update_dict}
        for field, value in update_dict.items():
            setattr(biller, field, value)

        await self.db.flush()
        await self.db.refresh(biller)

        changes = diff_changes(old_values, biller)
        if changes:
            await log_audit(
                self.db,
                "biller",
                biller.id,
                "update",
                user_id=resolve_actor(current_user, customer_id),
                changes=changes,
            )

        return biller

    async def delete_biller(self, customer_id: UUID, biller_id: UUID, current_user: Optional[dict] = None) -> None:
        """
        Delete a biller and its receipts.

        Raises:
            NotFoundError: If the biller does not exist or belongs to another customer
        """
        biller = await self.get_biller(customer_id, biller_id)

        await self.db.delete(biller)
        await self.db.flush()

        await log_audit(self.db, "biller", biller_id, "delete", user_id=resolve_actor(current_user, customer_id))
        logger.info("biller_deleted", customer_id=str(customer_id), biller_id=str(biller_id))

    async def search_billers(self, query: str | None = None) -> list[Biller]:
        """
        Search billers across customers for the admin console.

        Args:
            query: Case-insensitive fragment of biller name or account ID

        Returns:
            Billers ordered by name, with their owners loaded
        """
        stmt = select(Biller).options(selectinload(Biller.user))
        if query:
            pattern = f"%{query.strip()}%"
            stmt = stmt.where(or_(Biller.name.ilike(pattern), Biller.account_id.ilike(pattern)))

        result = await self.db.execute(stmt.order_by(Biller.name.asc()))
        return list(result.scalars().all())
