"""Integration tests for application wiring and unit-of-work transactions."""
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
import structlog
from sqlalchemy import select

from billpay.config import Settings
from billpay.exceptions import ConfigurationError, ValidationError
from billpay.logging_setup import setup_logging
from billpay.main import Application
from billpay.models.audit_log import AuditLog
from billpay.schemas.customer import CustomerCreate
from billpay.schemas.payment_method import PaymentMethodCreate
from billpay.utils.encryption import DataEncryptor
from tests.utils.factories import BankAccountFactory, CardFactory, CustomerFactory


@pytest_asyncio.fixture(scope="function")
async def app(tmp_path: Path) -> AsyncGenerator[Application, None]:
    """Application backed by a throwaway SQLite file."""
    settings = Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'billpay.db'}",
        data_encryption_key=DataEncryptor.generate_key(),
        app_env="test",
    )
    application = Application(settings)
    await application.create_all()

    yield application

    await application.dispose()


@pytest.mark.asyncio
async def test_unit_of_work_commits(app: Application) -> None:
    """Test that work done in a unit of work is visible afterwards."""
    async with app.unit_of_work(request_id="req-1") as services:
        customer = await services.customers.register_customer(CustomerCreate(**CustomerFactory.create()))
        method = await services.payment_methods.create_payment_method(
            customer.id, PaymentMethodCreate(**CardFactory.create())
        )

    async with app.unit_of_work() as services:
        methods = await services.payment_methods.list_payment_methods(customer.id)
        account_number = await services.payment_methods.reveal_account_number(customer.id, method.id)
        audit = (await services.session.execute(select(AuditLog).where(AuditLog.entity_id == method.id))).scalar_one()

    assert [m.id for m in methods] == [method.id]
    assert methods[0].is_default is True
    assert account_number == "4111111111111111"
    assert audit.request_id == "req-1"


@pytest.mark.asyncio
async def test_unit_of_work_rolls_back_on_error(app: Application) -> None:
    """Test that a failed operation leaves no partial state behind."""
    async with app.unit_of_work() as services:
        customer = await services.customers.register_customer(CustomerCreate(**CustomerFactory.create()))
        first = await services.payment_methods.create_payment_method(
            customer.id, PaymentMethodCreate(**CardFactory.create())
        )

    with pytest.raises(ValidationError):
        async with app.unit_of_work() as services:
            await services.payment_methods.create_payment_method(
                customer.id, PaymentMethodCreate(**BankAccountFactory.create({"is_default": True}))
            )
            await services.payment_methods.create_payment_method(
                customer.id, PaymentMethodCreate(**CardFactory.create({"security_code": None}))
            )

    async with app.unit_of_work() as services:
        methods = await services.payment_methods.list_payment_methods(customer.id)

    assert [m.id for m in methods] == [first.id]
    assert methods[0].is_default is True


def test_missing_encryption_key(tmp_path: Path) -> None:
    """Test that the application refuses to start without an encryption key."""
    settings = Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'billpay.db'}",
        data_encryption_key="",
    )

    with pytest.raises(ConfigurationError):
        Application(settings)


@pytest.mark.asyncio
async def test_log_capture_works_after_application_setup(app: Application) -> None:
    """Test that configuring logging for the app does not pin module loggers."""
    async with app.unit_of_work() as services:
        customer = await services.customers.register_customer(CustomerCreate(**CustomerFactory.create()))

    with structlog.testing.capture_logs() as logs:
        async with app.unit_of_work() as services:
            await services.payment_methods.create_payment_method(
                customer.id, PaymentMethodCreate(**CardFactory.create())
            )

    assert "payment_method_created" in [entry["event"] for entry in logs]


def test_logger_caching_only_in_production() -> None:
    """Test that loggers are cached on first use in production only."""
    setup_logging(Settings(app_env="production"))
    assert structlog.get_config()["cache_logger_on_first_use"] is True

    setup_logging(Settings(app_env="development"))
    assert structlog.get_config()["cache_logger_on_first_use"] is False
