"""Application entry point wiring settings, database and services together."""
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator
from uuid import uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

import billpay.models  # noqa: F401  registers tables on Base.metadata
from billpay.config import Settings, settings as default_settings
from billpay.database import Base, create_engine, create_session_factory, session_scope
from billpay.logging_setup import bind_request_context, setup_logging
from billpay.services.agent_service import AgentService
from billpay.services.biller_service import BillerService
from billpay.services.customer_service import CustomerService
from billpay.services.payment_method_service import PaymentMethodService
from billpay.services.receipt_service import ReceiptService
from billpay.utils.encryption import DataEncryptor

logger = structlog.get_logger(__name__)


@dataclass
class Services:
    """Services sharing one session, and therefore one transaction."""

    session: AsyncSession
    customers: CustomerService
    agents: AgentService
    billers: BillerService
    receipts: ReceiptService
    payment_methods: PaymentMethodService


class Application:
    """
    Process-wide resources for the portal backends.

    Holds the pooled engine and the encryptor; everything else is built per
    unit of work.
    """

    def __init__(self, settings: Settings | None = None, encryptor: DataEncryptor | None = None):
        """
        Initialize the application.

        Args:
            settings: Settings to use instead of the environment-loaded defaults
            encryptor: Encryptor to use instead of one built from settings

        Raises:
            ConfigurationError: If no encryptor is given and the configured key is invalid
        """
        self.settings = settings or default_settings
        setup_logging(self.settings)

        self.encryptor = encryptor or DataEncryptor.from_settings(self.settings)
        self.engine = create_engine(self.settings)
        self.session_factory = create_session_factory(self.engine)

        logger.info("application_starting", env=self.settings.app_env)

    async def create_all(self) -> None:
        """Create database tables for all registered models."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def unit_of_work(
        self, request_id: str | None = None, actor_id: str | None = None
    ) -> AsyncGenerator[Services, None]:
        """
        Run service calls as one transaction.

        Commits when the block exits normally and rolls back on any error.

        Args:
            request_id: Correlation ID bound to every log entry
            actor_id: Customer or agent performing the work

        Yields:
            Services: Service bundle bound to a single session
        """
        bind_request_context(request_id or str(uuid4()), actor_id)

        async with session_scope(self.session_factory) as session:
            customers = CustomerService(
                session,
                self.settings.customer_number_prefix,
                password_reset_ttl_minutes=self.settings.password_reset_ttl_minutes,
            )
            billers = BillerService(session, customers)
            yield Services(
                session=session,
                customers=customers,
                agents=AgentService(session, customers),
                billers=billers,
                receipts=ReceiptService(session, billers),
                payment_methods=PaymentMethodService(session, self.encryptor, customers),
            )

    async def dispose(self) -> None:
        """Release pooled connections."""
        logger.info("application_shutting_down")
        await self.engine.dispose()
