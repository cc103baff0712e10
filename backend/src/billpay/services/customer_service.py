"""Customer service for registration, profiles and agent lookups."""
import secrets
from datetime import timedelta
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from billpay.config import settings
from billpay.exceptions import AuthenticationError, ConflictError, ErrorCode, NotFoundError, ValidationError
from billpay.models.base import utcnow
from billpay.models.password_reset_token import PasswordResetToken
from billpay.models.user import User
from billpay.schemas.customer import CustomerCreate, CustomerUpdate, PasswordChange, PasswordReset, PasswordResetRequest
from billpay.schemas.payment_method import BillingAddress
from billpay.utils.audit import diff_changes, log_audit, resolve_actor
from billpay.utils.security import generate_reset_token, hash_password, verify_password

logger = structlog.get_logger(__name__)

MIN_CUSTOMER_NUMBER = 10000
MAX_CUSTOMER_NUMBER = 99999
MAX_NUMBER_ATTEMPTS = 20


class CustomerService:
    """Service layer for customer operations."""

    def __init__(
        self,
        db: AsyncSession,
        customer_number_prefix: str | None = None,
        password_reset_ttl_minutes: int | None = None,
    ):
        """Initialize customer service with database session."""
        self.db = db
        self.customer_number_prefix = customer_number_prefix or settings.customer_number_prefix
        if password_reset_ttl_minutes is None:
            password_reset_ttl_minutes = settings.password_reset_ttl_minutes
        self.password_reset_ttl = timedelta(minutes=password_reset_ttl_minutes)

    async def register_customer(self, customer_data: CustomerCreate) -> User:
        """
        Register a new customer.

        Args:
            customer_data: Signup form data

        Returns:
            Created customer

        Raises:
            ConflictError: If the email, SSN last four or date of birth is already registered
        """
        conflicts: dict[str, list[str]] = {}
        if await self.get_customer_by_email(customer_data.email):
            conflicts["email"] = [
                "An account already exists with this email address. Use a different email or sign in."
            ]
        if await self._exists(User.ssn_last4 == customer_data.ssn_last4):
            conflicts["ssn_last4"] = ["This Social Security number is already connected to an existing profile."]
        if await self._exists(User.date_of_birth == customer_data.date_of_birth):
            conflicts["date_of_birth"] = ["This date of birth is already connected to an existing profile."]
        if conflicts:
            raise ConflictError("Registration blocked by duplicate identity details.", field_errors=conflicts)

        customer = User(
            email=customer_data.email,
            first_name=customer_data.first_name,
            last_name=customer_data.last_name,
            phone=customer_data.phone,
            customer_number=await self.generate_customer_number(),
            password_hash=hash_password(customer_data.password),
            date_of_birth=customer_data.date_of_birth,
            ssn_last4=customer_data.ssn_last4,
            address_line1=customer_data.address_line1,
            address_line2=customer_data.address_line2,
            city=customer_data.city,
            state=customer_data.state,
            postal_code=customer_data.postal_code,
        )

        self.db.add(customer)
        await self.db.flush()
        await self.db.refresh(customer)

        await log_audit(self.db, "customer", customer.id, "create", user_id=str(customer.id))
        logger.info("customer_registered", customer_id=str(customer.id), customer_number=customer.customer_number)

        return customer

    async def generate_customer_number(self) -> str:
        """
        Allocate an unused customer number.

        Returns:
            Customer number such as ``CUST-48213``

        Raises:
            ConflictError: If no free number was found
        """
        for _ in range(MAX_NUMBER_ATTEMPTS):
            number = MIN_CUSTOMER_NUMBER + secrets.randbelow(MAX_CUSTOMER_NUMBER - MIN_CUSTOMER_NUMBER + 1)
            candidate = f"{self.customer_number_prefix}-{number}"
            result = await self.db.execute(select(User.id).where(User.customer_number == candidate))
            if result.scalar_one_or_none() is None:
                return candidate

        raise ConflictError(
            "Unable to allocate a unique customer number",
            code=ErrorCode.CUSTOMER_NUMBER_EXHAUSTED,
        )

    async def get_customer(self, customer_id: UUID) -> User:
        """
        Get customer by ID.

        Raises:
            NotFoundError: If the customer does not exist
        """
        customer = await self.db.get(User, customer_id)
        if customer is None:
            raise NotFoundError(f"Customer {customer_id} not found", code=ErrorCode.CUSTOMER_NOT_FOUND)
        return customer

    async def get_customer_by_email(self, email: str) -> User | None:
        """Get customer by email, or None."""
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_profile_address(self, customer_id: UUID) -> BillingAddress:
        """
        Get the customer's current profile address as a billing address.

        Raises:
            NotFoundError: If the customer does not exist
        """
        customer = await self.get_customer(customer_id)
        return BillingAddress(
            line1=customer.address_line1,
            line2=customer.address_line2,
            city=customer.city,
            state=customer.state,
            postal_code=customer.postal_code,
        )

    async def update_profile(
        self, customer_id: UUID, update_data: CustomerUpdate, current_user: Optional[dict] = None
    ) -> User:
        """
        Update a customer profile.

        Only fields present in ``update_data`` are changed. Required profile
        fields sent as null are left unchanged.

        Raises:
            NotFoundError: If the customer does not exist
            ConflictError: If the new email belongs to another customer
        """
        customer = await self.get_customer(customer_id)

        update_dict = update_data.model_dump(exclude_unset=True)
        nullable = {"phone", "address_line2"}
        update_dict = {k: v for k, v in update_dict.items() if v is not None or k in nullable}

        new_email = update_dict.get("email")
        if new_email and new_email != customer.email:
            if await self.get_customer_by_email(new_email):
                raise ConflictError(
                    "Unable to update profile due to duplicate information.",
                    field_errors={"email": ["This email is already connected to another account."]},
                )

        old_values = {field: getattr(customer, field) for field in update_dict}
        for field, value in update_dict.items():
            setattr(customer, field, value)

        await self.db.flush()
        await self.db.refresh(customer)

        changes = diff_changes(old_values, customer)
        if changes:
            await log_audit(
                self.db,
                "customer",
                customer.id,
                "update",
                user_id=resolve_actor(current_user, customer_id),
                changes=changes,
            )

        return customer

    async def search_customers(self, query: str | None = None) -> list[User]:
        """
        Search customers for the agent console.

        Args:
            query: Case-insensitive fragment of name, email, phone or customer number

        Returns:
            Matching customers, newest first
        """
        stmt = select(User)
        if query:
            pattern = f"%{query.strip()}%"
            stmt = stmt.where(
                or_(
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                    User.email.ilike(pattern),
                    User.phone.ilike(pattern),
                    User.customer_number.ilike(pattern),
                )
            )

        result = await self.db.execute(stmt.order_by(User.created_at.desc()))
        return list(result.scalars().all())

    async def authenticate_customer(self, email: str, password: str) -> User:
        """
        Check a customer's email and password.

        Raises:
            AuthenticationError: If no customer matches or the password is wrong
        """
        customer = await self.get_customer_by_email(email.strip())
        if customer is None or not verify_password(password, customer.password_hash):
            logger.warning("customer_authentication_failed", email=email)
            raise AuthenticationError("Invalid email or password.")
        return customer

    async def change_password(
        self, customer_id: UUID, password_data: PasswordChange, current_user: Optional[dict] = None
    ) -> User:
        """
        Change a signed-in customer's password.

        Raises:
            NotFoundError: If the customer does not exist
            ValidationError: If the current password does not match
        """
        customer = await self.get_customer(customer_id)
        if not verify_password(password_data.current_password, customer.password_hash):
            raise ValidationError.single("current_password", "Current password is incorrect.")

        customer.password_hash = hash_password(password_data.new_password)
        await self.db.flush()

        await log_audit(
            self.db, "customer", customer.id, "password_change", user_id=resolve_actor(current_user, customer_id)
        )
        logger.info("customer_password_changed", customer_id=str(customer.id))
        return customer

    async def request_password_reset(self, request_data: PasswordResetRequest) -> PasswordResetToken:
        """
        Issue a reset token for the customer matching email, SSN last four and date of birth.

        Earlier unused tokens for the customer are discarded.

        Returns:
            The new token row

        Raises:
            NotFoundError: If no customer matches all three details
        """
        result = await self.db.execute(
            select(User).where(
                User.email == request_data.email,
                User.ssn_last4 == request_data.ssn_last4,
                User.date_of_birth == request_data.date_of_birth,
            )
        )
        customer = result.scalar_one_or_none()
        if customer is None:
            raise NotFoundError(
                "We could not find a profile that matches those details.",
                code=ErrorCode.PROFILE_NOT_MATCHED,
            )

        await self.db.execute(
            delete(PasswordResetToken).where(
                PasswordResetToken.user_id == customer.id,
                PasswordResetToken.used_at.is_(None),
            )
        )

        reset_token = PasswordResetToken(
            user_id=customer.id,
            token=generate_reset_token(),
            expires_at=utcnow() + self.password_reset_ttl,
        )
        self.db.add(reset_token)
        await self.db.flush()

        logger.info("password_reset_requested", customer_id=str(customer.id))
        return reset_token

    async def reset_password(self, reset_data: PasswordReset) -> User:
        """
        Set a new password using an emailed reset token.

        Raises:
            ValidationError: If the token is unknown, used or expired
        """
        result = await self.db.execute(
            select(PasswordResetToken).where(
                PasswordResetToken.token == reset_data.token,
                PasswordResetToken.used_at.is_(None),
                PasswordResetToken.expires_at > utcnow(),
            )
        )
        reset_token = result.scalar_one_or_none()
        if reset_token is None:
            raise ValidationError.single(
                "token",
                "This password reset link is invalid or has expired.",
                code=ErrorCode.INVALID_RESET_TOKEN,
            )

        customer = await self.get_customer(reset_token.user_id)
        customer.password_hash = hash_password(reset_data.new_password)
        reset_token.used_at = utcnow()
        await self.db.flush()

        await log_audit(self.db, "customer", customer.id, "password_reset", user_id=str(customer.id))
        logger.info("customer_password_reset", customer_id=str(customer.id))
        return customer

    async def _exists(self, condition) -> bool:
        result = await self.db.execute(select(User.id).where(condition).limit(1))
        return result.scalar_one_or_none() is not None
