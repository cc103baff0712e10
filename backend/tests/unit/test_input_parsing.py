"""Tests for converting raw portal payloads into input schemas."""
import pytest

from billpay.exceptions import ErrorCode, ValidationError
from billpay.schemas.customer import PasswordResetRequest
from billpay.schemas.payment_method import PaymentMethodCreate
from billpay.utils.validation import parse_input
from tests.utils.factories import BankAccountFactory, CardFactory


def test_parse_input_returns_schema() -> None:
    payment_data = parse_input(PaymentMethodCreate, BankAccountFactory.create({"nickname": "Savings"}))

    assert isinstance(payment_data, PaymentMethodCreate)
    assert payment_data.nickname == "Savings"


@pytest.mark.parametrize("exp_month", [0, 13])
def test_out_of_range_expiry_month_is_service_error(exp_month: int) -> None:
    """Test that schema range checks surface as service validation errors."""
    with pytest.raises(ValidationError) as exc_info:
        parse_input(PaymentMethodCreate, CardFactory.create({"exp_month": exp_month}))

    assert list(exc_info.value.field_errors) == ["exp_month"]
    assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
    assert exc_info.value.message == "Invalid PaymentMethodCreate payload"


def test_nested_field_errors_use_dotted_paths() -> None:
    payload = CardFactory.create(
        {
            "use_profile_address": False,
            "billing_address": {"line1": "1 Elm St", "city": "Dayton", "state": "OH", "postal_code": "1"},
        }
    )

    with pytest.raises(ValidationError) as exc_info:
        parse_input(PaymentMethodCreate, payload)

    assert "billing_address.postal_code" in exc_info.value.field_errors


def test_errors_collected_per_field() -> None:
    with pytest.raises(ValidationError) as exc_info:
        parse_input(PasswordResetRequest, {"email": "not-an-email", "ssn_last4": "12a4"})

    assert set(exc_info.value.field_errors) == {"email", "ssn_last4", "date_of_birth"}


def test_original_pydantic_error_is_chained() -> None:
    import pydantic

    with pytest.raises(ValidationError) as exc_info:
        parse_input(PaymentMethodCreate, CardFactory.create({"exp_year": "soon"}))

    assert isinstance(exc_info.value.__cause__, pydantic.ValidationError)
