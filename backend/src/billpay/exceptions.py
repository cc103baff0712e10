"""Typed errors raised at the service boundary.

Each error carries a machine-readable ``code`` so that the portal layers can
map it onto their own transport responses without parsing messages.
"""
from pydantic import ValidationError as PydanticValidationError


class ErrorCode:
    """Standard error codes used across the services."""

    # Validation errors
    VALIDATION_ERROR = "validation_error"

    # Not found errors
    CUSTOMER_NOT_FOUND = "customer_not_found"
    PAYMENT_METHOD_NOT_FOUND = "payment_method_not_found"
    BILLER_NOT_FOUND = "biller_not_found"
    AGENT_NOT_FOUND = "agent_not_found"
    PROFILE_NOT_MATCHED = "profile_not_matched"

    # Conflicts
    DUPLICATE_RESOURCE = "duplicate_resource"
    CUSTOMER_NUMBER_EXHAUSTED = "customer_number_exhausted"

    # Credentials
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_RESET_TOKEN = "invalid_reset_token"

    # Internal errors
    ENCRYPTION_ERROR = "encryption_error"
    CONFIGURATION_ERROR = "configuration_error"


class BillPayError(Exception):
    """Base class for all service errors."""

    code = "internal_error"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return self.message


class ValidationError(BillPayError, ValueError):
    """Malformed or missing input, with per-field messages."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, field_errors: dict[str, list[str]], message: str = "Invalid input", code: str | None = None):
        super().__init__(message, code=code)
        self.field_errors = field_errors

    @classmethod
    def single(cls, field: str, message: str, code: str | None = None) -> "ValidationError":
        return cls({field: [message]}, message=message, code=code)

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationError":
        """Convert schema validation failures into per-field errors."""
        field_errors: dict[str, list[str]] = {}
        for error in exc.errors():
            field_path = ".".join(str(loc) for loc in error["loc"]) or "__root__"
            field_errors.setdefault(field_path, []).append(error["msg"])
        return cls(field_errors, message=f"Invalid {exc.title} payload")

    def __str__(self) -> str:
        fields = ", ".join(f"{name}: {'; '.join(msgs)}" for name, msgs in self.field_errors.items())
        return f"{self.message} ({fields})" if fields else self.message


class NotFoundError(BillPayError, LookupError):
    """Resource is missing or owned by someone else; the two are indistinguishable."""

    code = "not_found"


class AuthenticationError(BillPayError):
    """Username, email or password did not match."""

    code = ErrorCode.INVALID_CREDENTIALS


class ConflictError(BillPayError):
    """Duplicate unique identity fields."""

    code = ErrorCode.DUPLICATE_RESOURCE

    def __init__(self, message: str, field_errors: dict[str, list[str]] | None = None, code: str | None = None):
        super().__init__(message, code=code)
        self.field_errors = field_errors or {}


class EncryptionError(BillPayError):
    """Ciphertext failed authentication or could not be decoded."""

    code = ErrorCode.ENCRYPTION_ERROR


class ConfigurationError(BillPayError):
    """Process configuration is invalid."""

    code = ErrorCode.CONFIGURATION_ERROR
