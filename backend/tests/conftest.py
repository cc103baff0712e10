"""Pytest configuration and fixtures for async testing."""
import os
from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio
import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import billpay.models  # noqa: F401
from billpay.database import Base
from billpay.models.user import User
from billpay.schemas.customer import CustomerCreate
from billpay.services.customer_service import CustomerService
from billpay.services.payment_method_service import PaymentMethodService
from billpay.utils.encryption import DataEncryptor
from billpay.utils.security import pwd_context
from tests.utils.factories import CustomerFactory

# In-memory database shared by every connection of the test engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="session", autouse=True)
def fast_password_hashing() -> None:
    """Use the minimum bcrypt cost so hashing does not dominate test time."""
    pwd_context.update(bcrypt__rounds=4)


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Restore structlog defaults after tests that configure logging."""
    yield
    structlog.reset_defaults()


@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create a test database engine with all tables.

    Yields:
        AsyncEngine: Engine bound to a fresh in-memory database
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.

    Yields:
        AsyncSession: Database session for testing
    """
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture(scope="function")
def encryption_key() -> bytes:
    """Random 32-byte key for each test."""
    return os.urandom(32)


@pytest.fixture(scope="function")
def encryptor(encryption_key: bytes) -> DataEncryptor:
    """Encryptor keyed with the per-test key."""
    return DataEncryptor(encryption_key)


@pytest.fixture(scope="function")
def payment_method_service(db_session: AsyncSession, encryptor: DataEncryptor) -> PaymentMethodService:
    """Payment method service bound to the test session."""
    return PaymentMethodService(db_session, encryptor)


@pytest_asyncio.fixture(scope="function")
async def test_customer(db_session: AsyncSession) -> User:
    """
    Create a test customer with a profile address.

    Returns:
        User: Registered customer
    """
    customer = await CustomerService(db_session).register_customer(
        CustomerCreate(
            **CustomerFactory.create(
                {
                    "address_line1": "100 Main St",
                    "address_line2": "Apt 4",
                    "city": "Springfield",
                    "state": "IL",
                    "postal_code": "62701",
                }
            )
        )
    )
    await db_session.commit()
    return customer


@pytest_asyncio.fixture(scope="function")
async def other_customer(db_session: AsyncSession) -> User:
    """Create a second customer for ownership checks."""
    customer = await CustomerService(db_session).register_customer(CustomerCreate(**CustomerFactory.create()))
    await db_session.commit()
    return customer
