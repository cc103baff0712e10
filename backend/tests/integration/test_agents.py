"""Integration tests for agent administration and sign-in."""
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from billpay.exceptions import AuthenticationError, ConflictError, ErrorCode, NotFoundError
from billpay.models.agent import agent_customers
from billpay.models.audit_log import AuditLog
from billpay.models.user import User
from billpay.schemas.agent import AgentCreate, AgentUpdate, AgentWithCustomers
from tests.utils.factories import AgentFactory


@pytest.mark.asyncio
async def test_create_agent(db_session: AsyncSession) -> None:
    """Test provisioning an agent stores a password hash."""
    from billpay.services.agent_service import AgentService

    agent = await AgentService(db_session).create_agent(
        AgentCreate(**AgentFactory.create({"username": "jdoe", "password": "agent-pass-1"}))
    )
    await db_session.commit()

    assert agent.id is not None
    assert agent.username == "jdoe"
    assert agent.password_hash != "agent-pass-1"
    assert agent.password_hash.startswith("$2")

    result = await db_session.execute(select(AuditLog).where(AuditLog.entity_id == agent.id))
    assert result.scalar_one().action == "create"


@pytest.mark.asyncio
async def test_duplicate_username_rejected(db_session: AsyncSession) -> None:
    """Test that agent usernames are unique."""
    from billpay.services.agent_service import AgentService

    service = AgentService(db_session)
    await service.create_agent(AgentCreate(**AgentFactory.create({"username": "jdoe"})))
    await db_session.commit()

    with pytest.raises(ConflictError) as exc_info:
        await service.create_agent(AgentCreate(**AgentFactory.create({"username": "jdoe"})))

    assert "username" in exc_info.value.field_errors
    assert exc_info.value.code == ErrorCode.DUPLICATE_RESOURCE


@pytest.mark.asyncio
async def test_authenticate_agent(db_session: AsyncSession) -> None:
    """Test agent sign-in with username and password."""
    from billpay.services.agent_service import AgentService

    service = AgentService(db_session)
    agent = await service.create_agent(AgentCreate(**AgentFactory.create({"username": "jdoe"})))
    await db_session.commit()

    assert (await service.authenticate_agent("jdoe", "agent-pass-1")).id == agent.id

    with pytest.raises(AuthenticationError) as exc_info:
        await service.authenticate_agent("jdoe", "agent-pass-2")
    assert exc_info.value.code == ErrorCode.INVALID_CREDENTIALS

    with pytest.raises(AuthenticationError):
        await service.authenticate_agent("nobody", "agent-pass-1")


@pytest.mark.asyncio
async def test_update_agent(db_session: AsyncSession) -> None:
    """Test partial updates, clearing contact fields and rehashing the password."""
    from billpay.services.agent_service import AgentService

    service = AgentService(db_session)
    agent = await service.create_agent(AgentCreate(**AgentFactory.create({"username": "jdoe"})))
    await db_session.commit()
    original_name = agent.full_name

    agent = await service.update_agent(
        agent.id, AgentUpdate.model_validate({"phone": None, "full_name": None, "password": "rotated-pass"})
    )
    await db_session.commit()

    assert agent.phone is None
    assert agent.full_name == original_name
    assert (await service.authenticate_agent("jdoe", "rotated-pass")).id == agent.id

    result = await db_session.execute(
        select(AuditLog).where(AuditLog.entity_id == agent.id, AuditLog.action == "update")
    )
    changes = result.scalar_one().changes
    assert changes["password_hash"] == {"old": "[redacted]", "new": "[redacted]"}
    assert changes["phone"]["new"] is None


@pytest.mark.asyncio
async def test_get_agent_not_found(db_session: AsyncSession) -> None:
    """Test that an unknown agent ID raises NotFoundError."""
    from billpay.services.agent_service import AgentService

    with pytest.raises(NotFoundError) as exc_info:
        await AgentService(db_session).get_agent(uuid4())

    assert exc_info.value.code == ErrorCode.AGENT_NOT_FOUND


@pytest.mark.asyncio
async def test_assign_and_unassign_customers(
    db_session: AsyncSession, test_customer: User, other_customer: User
) -> None:
    """Test linking customers to an agent."""
    from billpay.services.agent_service import AgentService

    service = AgentService(db_session)
    agent = await service.create_agent(AgentCreate(**AgentFactory.create()))
    await db_session.commit()

    await service.assign_customer(agent.id, test_customer.id)
    await service.assign_customer(agent.id, other_customer.id)
    await service.assign_customer(agent.id, test_customer.id)
    await db_session.commit()

    assigned = await service.list_agent_customers(agent.id)
    assert {c.id for c in assigned} == {test_customer.id, other_customer.id}

    listed = await service.list_agents()
    row = AgentWithCustomers.model_validate(listed[0])
    assert len(row.customers) == 2

    await service.unassign_customer(agent.id, other_customer.id)
    await service.unassign_customer(agent.id, other_customer.id)
    await db_session.commit()

    assert [c.id for c in await service.list_agent_customers(agent.id)] == [test_customer.id]

    result = await db_session.execute(
        select(AuditLog.action).where(AuditLog.entity_id == agent.id)
    )
    assert sorted(result.scalars().all()) == ["assign_customer", "assign_customer", "create", "unassign_customer"]


@pytest.mark.asyncio
async def test_assign_unknown_customer(db_session: AsyncSession) -> None:
    """Test that assigning a missing customer raises NotFoundError."""
    from billpay.services.agent_service import AgentService

    service = AgentService(db_session)
    agent = await service.create_agent(AgentCreate(**AgentFactory.create()))

    with pytest.raises(NotFoundError) as exc_info:
        await service.assign_customer(agent.id, uuid4())

    assert exc_info.value.code == ErrorCode.CUSTOMER_NOT_FOUND


@pytest.mark.asyncio
async def test_delete_agent_keeps_customers(db_session: AsyncSession, test_customer: User) -> None:
    """Test that deleting an agent removes its links but not its customers."""
    from billpay.services.agent_service import AgentService
    from billpay.services.customer_service import CustomerService

    service = AgentService(db_session)
    agent = await service.create_agent(AgentCreate(**AgentFactory.create()))
    await service.assign_customer(agent.id, test_customer.id)
    await db_session.commit()

    await service.delete_agent(agent.id)
    await db_session.commit()

    with pytest.raises(NotFoundError):
        await service.get_agent(agent.id)

    links = await db_session.execute(select(agent_customers))
    assert links.all() == []
    assert (await CustomerService(db_session).get_customer(test_customer.id)).id == test_customer.id
