"""Test data factories using Faker for generating realistic test data."""
from datetime import date, timedelta
from typing import Any
from uuid import UUID

from faker import Faker

fake = Faker()


class CustomerFactory:
    """Factory for creating customer signup data."""

    @staticmethod
    def create(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Create customer test data.

        Args:
            overrides: Optional field overrides

        Returns:
            dict: Customer data
        """
        data = {
            "email": fake.unique.email(),
            "first_name": fake.first_name(),
            "last_name": fake.last_name(),
            "phone": fake.numerify("555-###-####"),
            "password": "correct horse battery",
            "date_of_birth": fake.unique.date_of_birth(minimum_age=18, maximum_age=90),
            "ssn_last4": fake.unique.numerify("####"),
            "address_line1": fake.street_address(),
            "address_line2": None,
            "city": fake.city(),
            "state": fake.state_abbr(),
            "postal_code": fake.numerify("#####"),
        }
        if overrides:
            data.update(overrides)
        return data


class CardFactory:
    """Factory for creating card payment method data."""

    @staticmethod
    def create(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Create credit card test data billed to the profile address.

        Args:
            overrides: Optional field overrides

        Returns:
            dict: Payment method data
        """
        data = {
            "type": "CREDIT_CARD",
            "provider": fake.company(),
            "account_number": "4111 1111 1111 1111",
            "cardholder_name": fake.name(),
            "nickname": None,
            "exp_month": fake.random_int(min=1, max=12),
            "exp_year": date.today().year + fake.random_int(min=1, max=5),
            "brand": "visa",
            "security_code": "123",
            "use_profile_address": True,
            "is_default": False,
        }
        if overrides:
            data.update(overrides)
        return data


class BankAccountFactory:
    """Factory for creating bank account payment method data."""

    @staticmethod
    def create(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Create bank account test data.

        Args:
            overrides: Optional field overrides

        Returns:
            dict: Payment method data
        """
        data = {
            "type": "BANK_ACCOUNT",
            "provider": fake.company(),
            "account_number": fake.numerify("0000########"),
            "cardholder_name": fake.name(),
            "nickname": "Checking",
            "is_default": False,
        }
        if overrides:
            data.update(overrides)
        return data


class BillerFactory:
    """Factory for creating biller data."""

    @staticmethod
    def create(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Create biller test data.

        Args:
            overrides: Optional field overrides

        Returns:
            dict: Biller data
        """
        data = {
            "name": f"{fake.last_name()} {fake.random_element(['Power', 'Water', 'Wireless', 'Mutual'])}",
            "category": fake.random_element(["UTILITIES", "TELECOM", "INSURANCE"]),
            "account_id": fake.bothify("ACCT-#####-??").upper(),
            "contact_info": fake.phone_number(),
        }
        if overrides:
            data.update(overrides)
        return data


class ReceiptFactory:
    """Factory for creating receipt data."""

    @staticmethod
    def create(biller_id: UUID, overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Create receipt test data for a biller.

        Args:
            biller_id: Biller that was paid
            overrides: Optional field overrides

        Returns:
            dict: Receipt data
        """
        data = {
            "biller_id": biller_id,
            "amount": fake.random_int(min=500, max=50000),  # cents
            "paid_on": date.today() - timedelta(days=fake.random_int(min=0, max=60)),
            "notes": None,
        }
        if overrides:
            data.update(overrides)
        return data


class AgentFactory:
    """Factory for creating agent data."""

    @staticmethod
    def create(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Create agent test data.

        Args:
            overrides: Optional field overrides

        Returns:
            dict: Agent data
        """
        data = {
            "username": fake.unique.user_name(),
            "password": "agent-pass-1",
            "full_name": fake.name(),
            "email": fake.unique.email(),
            "phone": fake.numerify("555-###-####"),
        }
        if overrides:
            data.update(overrides)
        return data
