"""Agent service for the admin console and agent sign-in."""
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from billpay.exceptions import AuthenticationError, ConflictError, ErrorCode, NotFoundError
from billpay.models.agent import Agent
from billpay.models.user import User
from billpay.schemas.agent import AgentCreate, AgentUpdate
from billpay.services.customer_service import CustomerService
from billpay.utils.audit import diff_changes, log_audit, resolve_actor
from billpay.utils.security import hash_password, verify_password

logger = structlog.get_logger(__name__)


class AgentService:
    """Service layer for agent operations."""

    def __init__(self, db: AsyncSession, customers: CustomerService | None = None):
        """Initialize agent service with database session."""
        self.db = db
        self.customers = customers or CustomerService(db)

    async def list_agents(self) -> list[Agent]:
        """
        List agents with their assigned customers.

        Returns:
            Agents, newest first
        """
        result = await self.db.execute(
            select(Agent).options(selectinload(Agent.customers)).order_by(Agent.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_agent(self, agent_id: UUID) -> Agent:
        """
        Get agent by ID, with assigned customers loaded.

        Raises:
            NotFoundError: If the agent does not exist
        """
        result = await self.db.execute(
            select(Agent).where(Agent.id == agent_id).options(selectinload(Agent.customers))
        )
        agent = result.scalar_one_or_none()
        if agent is None:
            raise NotFoundError(f"Agent {agent_id} not found", code=ErrorCode.AGENT_NOT_FOUND)
        return agent

    async def get_agent_by_username(self, username: str) -> Agent | None:
        result = await self.db.execute(select(Agent).where(Agent.username == username))
        return result.scalar_one_or_none()

    async def create_agent(self, agent_data: AgentCreate, current_user: Optional[dict] = None) -> Agent:
        """
        Provision a new agent.

        Args:
            agent_data: Agent details including the plaintext password
            current_user: Admin performing the change

        Returns:
            Created agent

        Raises:
            ConflictError: If the username is taken
        """
        if await self.get_agent_by_username(agent_data.username):
            raise ConflictError(
                "Agent username already in use",
                field_errors={"username": ["This username is already taken."]},
            )

        agent = Agent(
            username=agent_data.username,
            password_hash=hash_password(agent_data.password),
            full_name=agent_data.full_name,
            email=agent_data.email,
            phone=agent_data.phone,
        )

        self.db.add(agent)
        await self.db.flush()
        await self.db.refresh(agent)

        await log_audit(self.db, "agent", agent.id, "create", user_id=resolve_actor(current_user, agent.id))
        logger.info("agent_created", agent_id=str(agent.id), username=agent.username)

        return agent

    async def update_agent(
        self, agent_id: UUID, update_data: AgentUpdate, current_user: Optional[dict] = None
    ) -> Agent:
        """
        Update an agent.

        Only fields present in ``update_data`` are changed. A new password is
        hashed before it is stored; ``full_name`` sent as null is ignored.

        Raises:
            NotFoundError: If the agent does not exist
        """
        agent = await self.get_agent(agent_id)

        update_dict = update_data.model_dump(exclude_unset=True)
        password = update_dict.pop("password", None)
        if update_dict.get("full_name", "") is None:
            del update_dict["full_name"]
        if password is not None:
            update_dict["password_hash"] = hash_password(password)

        old_values = {field: getattr(agent, field) for field in update_dict}
        for field, value in update_dict.items():
            setattr(agent, field, value)

        await self.db.flush()

        changes = diff_changes(old_values, agent)
        if changes:
            await log_audit(
                self.db,
                "agent",
                agent.id,
                "update",
                user_id=resolve_actor(current_user, agent.id),
                changes=changes,
            )

        return agent

    async def delete_agent(self, agent_id: UUID, current_user: Optional[dict] = None) -> None:
        """
        Delete an agent. Customer links are removed; customers are kept.

        Raises:
            NotFoundError: If the agent does not exist
        """
        agent = await self.get_agent(agent_id)

        await self.db.delete(agent)
        await self.db.flush()

        await log_audit(self.db, "agent", agent_id, "delete", user_id=resolve_actor(current_user, agent_id))
        logger.info("agent_deleted", agent_id=str(agent_id))

    async def authenticate_agent(self, username: str, password: str) -> Agent:
        """
        Check an agent's username and password.

        Raises:
            AuthenticationError: If no agent matches or the password is wrong
        """
        agent = await self.get_agent_by_username(username.strip())
        if agent is None or not verify_password(password, agent.password_hash):
            logger.warning("agent_authentication_failed", username=username)
            raise AuthenticationError("Invalid agent credentials")
        return agent

    async def assign_customer(
        self, agent_id: UUID, customer_id: UUID, current_user: Optional[dict] = None
    ) -> Agent:
        """
        Link a customer to an agent. Linking twice is a no-op.

        Raises:
            NotFoundError: If the agent or customer does not exist
        """
        agent = await self.get_agent(agent_id)
        customer = await self.customers.get_customer(customer_id)

        if customer not in agent.customers:
            agent.customers.append(customer)
            await self.db.flush()
            await log_audit(
                self.db,
                "agent",
                agent.id,
                "assign_customer",
                user_id=resolve_actor(current_user, agent.id),
                changes={"customer_id": {"old": None, "new": str(customer.id)}},
            )

        return agent

    async def unassign_customer(
        self, agent_id: UUID, customer_id: UUID, current_user: Optional[dict] = None
    ) -> Agent:
        """
        Remove a customer from an agent. Unlinked customers are ignored.

        Raises:
            NotFoundError: If the agent does not exist
        """
        agent = await self.get_agent(agent_id)

        linked = [customer for customer in agent.customers if customer.id == customer_id]
        for customer in linked:
            agent.customers.remove(customer)
        if linked:
            await self.db.flush()
            await log_audit(
                self.db,
                "agent",
                agent.id,
                "unassign_customer",
                user_id=resolve_actor(current_user, agent.id),
                changes={"customer_id": {"old": str(customer_id), "new": None}},
            )

        return agent

    async def list_agent_customers(self, agent_id: UUID) -> list[User]:
        """
        Customers assigned to an agent, ordered by last name.

        Raises:
            NotFoundError: If the agent does not exist
        """
        agent = await self.get_agent(agent_id)
        return list(agent.customers)
