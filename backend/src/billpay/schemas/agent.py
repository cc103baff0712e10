"""Pydantic schemas for Agent model."""
from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints

from billpay.schemas.customer import CustomerSummary
from billpay.schemas.payment_method import OptionalText

MIN_AGENT_PASSWORD_LENGTH = 8

AgentPassword = Annotated[str, StringConstraints(strip_whitespace=False, min_length=MIN_AGENT_PASSWORD_LENGTH)]


class AgentCreate(BaseModel):
    """Schema for provisioning an agent from the admin console."""

    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(..., min_length=3, max_length=64, description="Sign-in name, unique across agents")
    password: AgentPassword = Field(..., description="Plaintext password; only its hash is stored")
    full_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr | None = None
    phone: OptionalText = None


class AgentUpdate(BaseModel):
    """Schema for updating an agent.

    The username cannot be changed. Email and phone may be cleared with null.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    password: AgentPassword | None = None
    full_name: str | None = Field(default=None, min_length=1, max_length=200)
    email: EmailStr | None = None
    phone: OptionalText = None


class Agent(BaseModel):
    """Schema for returning agent data (never the password hash)."""

    id: UUID
    username: str
    full_name: str
    email: str | None
    phone: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AgentWithCustomers(Agent):
    """Agent row in the admin console, with assigned customers."""

    customers: list[CustomerSummary]
