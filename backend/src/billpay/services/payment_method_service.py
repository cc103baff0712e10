"""Payment method service for business logic.

A customer with at least one payment method always has exactly one default.
Every operation below keeps that true within the caller's unit of work, which
commits or rolls back the whole change as one transaction.
"""
import re
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from billpay.exceptions import ErrorCode, NotFoundError, ValidationError
from billpay.models.payment_method import PaymentMethod, PaymentMethodType
from billpay.schemas.payment_method import BillingAddress, PaymentMethod as PaymentMethodView
from billpay.schemas.payment_method import PaymentMethodCreate, PaymentMethodUpdate
from billpay.services.customer_service import CustomerService
from billpay.utils.audit import diff_changes, log_audit, resolve_actor
from billpay.utils.encryption import DataEncryptor

logger = structlog.get_logger(__name__)

WHITESPACE = re.compile(r"\s+")
NON_DIGITS = re.compile(r"\D")
SECURITY_CODE_PATTERN = re.compile(r"\d{3,4}")

MIN_CARD_DIGITS = 12
MIN_BANK_DIGITS = 4

AUDITED_FIELDS = (
    "provider",
    "nickname",
    "cardholder_name",
    "brand",
    "exp_month",
    "exp_year",
    "account_number",
    "security_code",
    "last4",
    "billing_address_line1",
    "billing_address_line2",
    "billing_city",
    "billing_state",
    "billing_postal_code",
    "is_default",
)


def strip_whitespace(value: str) -> str:
    """Remove all whitespace, including inside the value."""
    return WHITESPACE.sub("", value)


def last_four_digits(account_number: str) -> str:
    """Last four digits of the numeric-only account number."""
    return NON_DIGITS.sub("", account_number)[-4:]


def requirement_errors(
    method_type: PaymentMethodType,
    *,
    cardholder_name: str | None,
    exp_month: int | None,
    exp_year: int | None,
    security_code: str | None,
    security_code_on_file: bool = False,
    account_number: str | None = None,
) -> dict[str, list[str]]:
    """
    Check the fields each payment method type requires.

    Args:
        method_type: Type being created or updated
        cardholder_name: Holder (cards) or owner (bank accounts) name
        exp_month: Expiration month
        exp_year: Expiration year
        security_code: Newly supplied security code, whitespace stripped
        security_code_on_file: Whether an encrypted code is already stored
        account_number: Newly supplied account number, whitespace stripped

    Returns:
        Field name to error messages; empty when valid
    """
    errors: dict[str, list[str]] = {}

    def add(field: str, message: str) -> None:
        errors.setdefault(field, []).append(message)

    if account_number is not None:
        digits = NON_DIGITS.sub("", account_number)
        if method_type.is_card and len(digits) < MIN_CARD_DIGITS:
            add("account_number", f"Card numbers must include at least {MIN_CARD_DIGITS} digits.")
        elif not method_type.is_card and len(digits) < MIN_BANK_DIGITS:
            add("account_number", f"Account numbers must include at least {MIN_BANK_DIGITS} digits.")

    if method_type.is_card:
        if not cardholder_name:
            add("cardholder_name", "Card holder name is required.")
        if exp_month is None:
            add("exp_month", "Expiration month is required for cards.")
        if exp_year is None:
            add("exp_year", "Expiration year is required for cards.")
        if security_code is not None:
            if not SECURITY_CODE_PATTERN.fullmatch(security_code):
                add("security_code", "CVV must be 3 or 4 digits.")
        elif not security_code_on_file:
            add("security_code", "CVV must be 3 or 4 digits.")
    else:
        if not cardholder_name:
            add("cardholder_name", "Account owner name is required.")
        if exp_month is not None or exp_year is not None:
            add("exp_month", "Expiration dates apply to cards only.")
        if security_code is not None or security_code_on_file:
            add("security_code", "Security codes apply to cards only.")

    return errors


def apply_billing_address(payment_method: PaymentMethod, address: BillingAddress | None) -> None:
    """Copy an address snapshot onto a payment method, or clear it."""
    payment_method.billing_address_line1 = address.line1 if address else None
    payment_method.billing_address_line2 = address.line2 if address else None
    payment_method.billing_city = address.city if address else None
    payment_method.billing_state = address.state if address else None
    payment_method.billing_postal_code = address.postal_code if address else None


class PaymentMethodService:
    """Service layer for payment method operations."""

    def __init__(self, db: AsyncSession, encryptor: DataEncryptor, customers: CustomerService | None = None):
        """Initialize payment method service."""
        self.db = db
        self.encryptor = encryptor
        self.customers = customers or CustomerService(db)

    async def create_payment_method(
        self, customer_id: UUID, payment_data: PaymentMethodCreate, current_user: Optional[dict] = None
    ) -> PaymentMethodView:
        """
        Create a payment method for a customer.

        The first payment method a customer adds becomes the default even if
        ``is_default`` was not requested.

        Args:
            customer_id: Owning customer UUID
            payment_data: Payment method creation data
            current_user: Agent or customer context for audit logging

        Returns:
            Created payment method (without account number or security code)

        Raises:
            ValidationError: If type-specific required fields are missing or malformed
            NotFoundError: If the customer does not exist
        """
        account_number = strip_whitespace(payment_data.account_number)
        security_code = strip_whitespace(payment_data.security_code) if payment_data.security_code else None

        errors = requirement_errors(
            payment_data.type,
            cardholder_name=payment_data.cardholder_name,
            exp_month=payment_data.exp_month,
            exp_year=payment_data.exp_year,
            security_code=security_code,
            account_number=account_number,
        )
        if errors:
            raise ValidationError(errors)

        if payment_data.use_profile_address or payment_data.billing_address is None:
            billing_address = await self.customers.get_profile_address(customer_id)
        else:
            await self.customers.get_customer(customer_id)
            billing_address = payment_data.billing_address

        if payment_data.is_default:
            await self._clear_default(customer_id)
            is_default = True
        else:
            is_default = await self._find_default(customer_id) is None

        payment_method = PaymentMethod(
            user_id=customer_id,
            type=payment_data.type,
            provider=payment_data.provider,
            nickname=payment_data.nickname,
            cardholder_name=payment_data.cardholder_name,
            brand=payment_data.brand,
            account_number=self.encryptor.encrypt(account_number),
            last4=last_four_digits(account_number),
            exp_month=payment_data.exp_month,
            exp_year=payment_data.exp_year,
            security_code=self.encryptor.encrypt(security_code) if security_code else None,
            is_default=is_default,
        )
        apply_billing_address(payment_method, billing_address)

        self.db.add(payment_method)
        await self.db.flush()
        await self.db.refresh(payment_method)

        await log_audit(
            self.db,
            "payment_method",
            payment_method.id,
            "create",
            user_id=resolve_actor(current_user, customer_id),
        )
        logger.info(
            "payment_method_created",
            customer_id=str(customer_id),
            payment_method_id=str(payment_method.id),
            type=payment_method.type.value,
            is_default=payment_method.is_default,
            default_forced=is_default and not payment_data.is_default,
        )

        return PaymentMethodView.model_validate(payment_method)

    async def update_payment_method(
        self,
        customer_id: UUID,
        payment_method_id: UUID,
        update_data: PaymentMethodUpdate,
        current_user: Optional[dict] = None,
    ) -> PaymentMethodView:
        """
        Update a payment method.

        Fields absent from ``update_data`` are preserved; optional fields sent
        as null are cleared.

        Args:
            customer_id: Owning customer UUID
            payment_method_id: Payment method UUID
            update_data: Partial update
            current_user: Agent or customer context for audit logging

        Returns:
            Updated payment method

        Raises:
            NotFoundError: If the method does not exist or belongs to another customer
            ValidationError: If the update would leave required fields missing
        """
        payment_method = await self._get_owned(customer_id, payment_method_id)

        for field in ("provider", "account_number"):
            if update_data.provided(field) and getattr(update_data, field) is None:
                raise ValidationError.single(field, f"{field.replace('_', ' ').capitalize()} cannot be cleared.")

        # Merge the patch over the stored values before validating
        merged = {
            field: getattr(update_data, field) if update_data.provided(field) else getattr(payment_method, field)
            for field in ("cardholder_name", "exp_month", "exp_year")
        }
        account_number = strip_whitespace(update_data.account_number) if update_data.account_number else None
        security_code = strip_whitespace(update_data.security_code) if update_data.security_code else None
        clears_security_code = update_data.provided("security_code") and update_data.security_code is None

        errors = requirement_errors(
            payment_method.type,
            cardholder_name=merged["cardholder_name"],
            exp_month=merged["exp_month"],
            exp_year=merged["exp_year"],
            security_code=security_code,
            security_code_on_file=payment_method.security_code is not None and not clears_security_code,
            account_number=account_number,
        )
        if errors:
            raise ValidationError(errors)

        old_values = {field: getattr(payment_method, field) for field in AUDITED_FIELDS}

        for field in ("provider", "nickname", "cardholder_name", "brand", "exp_month", "exp_year"):
            if update_data.provided(field):
                setattr(payment_method, field, getattr(update_data, field))

        if account_number:
            payment_method.account_number = self.encryptor.encrypt(account_number)
            payment_method.last4 = last_four_digits(account_number)

        if security_code:
            payment_method.security_code = self.encryptor.encrypt(security_code)
        elif clears_security_code:
            payment_method.security_code = None

        if update_data.use_profile_address is True:
            apply_billing_address(payment_method, await self.customers.get_profile_address(customer_id))
        elif update_data.billing_address is not None:
            apply_billing_address(payment_method, update_data.billing_address)
        elif update_data.use_profile_address is False or update_data.provided("billing_address"):
            apply_billing_address(payment_method, None)

        if update_data.is_default is True:
            await self._clear_default(customer_id, keep_id=payment_method.id)
            if not payment_method.is_default:
                payment_method.is_default = True
        elif update_data.is_default is False and payment_method.is_default:
            await self._demote_default(customer_id, payment_method)

        await self.db.flush()
        await self.db.refresh(payment_method)

        changes = diff_changes(old_values, payment_method)
        if changes:
            await log_audit(
                self.db,
                "payment_method",
                payment_method.id,
                "update",
                user_id=resolve_actor(current_user, customer_id),
                changes=changes,
            )

        return PaymentMethodView.model_validate(payment_method)

    async def delete_payment_method(
        self, customer_id: UUID, payment_method_id: UUID, current_user: Optional[dict] = None
    ) -> None:
        """
        Delete a payment method.

        If it was the default, the customer's earliest-created remaining
        method becomes the default.

        Raises:
            NotFoundError: If the method does not exist or belongs to another customer
        """
        payment_method = await self._get_owned(customer_id, payment_method_id)
        was_default = payment_method.is_default

        await self.db.delete(payment_method)
        await self.db.flush()

        if was_default:
            replacement = await self._earliest_method(customer_id)
            if replacement is not None:
                replacement.is_default = True
                await self.db.flush()
                logger.info(
                    "default_reassigned",
                    customer_id=str(customer_id),
                    from_payment_method_id=str(payment_method_id),
                    to_payment_method_id=str(replacement.id),
                    reason="deleted",
                )

        await log_audit(
            self.db,
            "payment_method",
            payment_method_id,
            "delete",
            user_id=resolve_actor(current_user, customer_id),
        )
        logger.info("payment_method_deleted", customer_id=str(customer_id), payment_method_id=str(payment_method_id))

    async def list_payment_methods(self, customer_id: UUID) -> list[PaymentMethodView]:
        """
        List all payment methods for a customer.

        Args:
            customer_id: Customer UUID

        Returns:
            Default method first, then newest first
        """
        result = await self.db.execute(
            select(PaymentMethod)
            .where(PaymentMethod.user_id == customer_id)
            .order_by(PaymentMethod.is_default.desc(), PaymentMethod.created_at.desc())
        )
        return [PaymentMethodView.model_validate(pm) for pm in result.scalars().all()]

    async def get_default_payment_method(self, customer_id: UUID) -> PaymentMethodView | None:
        """Get the customer's default payment method, or None if they have none."""
        payment_method = await self._find_default(customer_id)
        return PaymentMethodView.model_validate(payment_method) if payment_method else None

    async def reveal_account_number(self, customer_id: UUID, payment_method_id: UUID) -> str:
        """
        Decrypt the full account number for payment processing.

        Never exposed through the portals.

        Raises:
            NotFoundError: If the method does not exist or belongs to another customer
            EncryptionError: If the stored token fails authentication
        """
        payment_method = await self._get_owned(customer_id, payment_method_id)
        return self.encryptor.decrypt(payment_method.account_number)

    async def _get_owned(self, customer_id: UUID, payment_method_id: UUID) -> PaymentMethod:
        result = await self.db.execute(
            select(PaymentMethod).where(
                PaymentMethod.id == payment_method_id,
                PaymentMethod.user_id == customer_id,
            )
        )
        payment_method = result.scalar_one_or_none()
        if payment_method is None:
            raise NotFoundError("Payment method not found", code=ErrorCode.PAYMENT_METHOD_NOT_FOUND)
        return payment_method

    async def _find_default(self, customer_id: UUID) -> PaymentMethod | None:
        result = await self.db.execute(
            select(PaymentMethod).where(
                PaymentMethod.user_id == customer_id, PaymentMethod.is_default == True  # noqa: E712
            )
        )
        return result.scalars().first()

    async def _earliest_method(self, customer_id: UUID, exclude_id: UUID | None = None) -> PaymentMethod | None:
        stmt = select(PaymentMethod).where(PaymentMethod.user_id == customer_id)
        if exclude_id is not None:
            stmt = stmt.where(PaymentMethod.id != exclude_id)
        result = await self.db.execute(stmt.order_by(PaymentMethod.created_at.asc(), PaymentMethod.id.asc()).limit(1))
        return result.scalar_one_or_none()

    async def _clear_default(self, customer_id: UUID, keep_id: UUID | None = None) -> None:
        """Unset the default flag on the customer's methods, except ``keep_id``."""
        stmt = update(PaymentMethod).where(
            PaymentMethod.user_id == customer_id,
            PaymentMethod.is_default == True,  # noqa: E712
        )
        if keep_id is not None:
            stmt = stmt.where(PaymentMethod.id != keep_id)
        await self.db.execute(stmt.values(is_default=False).execution_options(synchronize_session="fetch"))

    async def _demote_default(self, customer_id: UUID, payment_method: PaymentMethod) -> None:
        """Hand the default flag to another method, if the customer has one."""
        replacement = await self._earliest_method(customer_id, exclude_id=payment_method.id)
        if replacement is None:
            # The only method stays default
            logger.warning(
                "default_demotion_without_replacement",
                customer_id=str(customer_id),
                payment_method_id=str(payment_method.id),
            )
            return

        payment_method.is_default = False
        replacement.is_default = True
        logger.info(
            "default_reassigned",
            customer_id=str(customer_id),
            from_payment_method_id=str(payment_method.id),
            to_payment_method_id=str(replacement.id),
            reason="demoted",
        )
