"""Parsing raw portal payloads into service input schemas."""
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from billpay.exceptions import ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def parse_input(schema: type[SchemaT], payload: Any) -> SchemaT:
    """
    Validate a raw payload against an input schema.

    Args:
        schema: Pydantic input schema, e.g. ``PaymentMethodCreate``
        payload: Decoded request body

    Returns:
        Validated schema instance

    Raises:
        ValidationError: With one entry per failing field path
    """
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e
