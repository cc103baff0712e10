"""Audit logging helpers for tracking changes.

Services call ``log_audit`` inside the same unit of work as the change, so the
audit row commits or rolls back together with it.
"""
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from billpay.models.audit_log import AuditLog

logger = structlog.get_logger(__name__)

# Never copied into audit changes
REDACTED_FIELDS = frozenset({"account_number", "security_code", "password_hash"})


async def log_audit(
    db: AsyncSession,
    entity_type: str,
    entity_id: UUID,
    action: str,
    user_id: Optional[str] = None,
    changes: Optional[dict] = None,
    request_id: Optional[str] = None,
) -> AuditLog:
    """
    Log an audit entry.

    Args:
        db: Database session
        entity_type: Type of entity (payment_method, biller, receipt, customer)
        entity_id: Entity UUID
        action: Action performed (create, update, delete)
        user_id: Actor who performed the action
        changes: Dictionary of changes {field: {old: X, new: Y}}
        request_id: Request correlation ID; defaults to the bound log context

    Returns:
        The pending audit row
    """
    audit_log = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        user_id=user_id,
        changes=changes or {},
        request_id=request_id or structlog.contextvars.get_contextvars().get("request_id") or str(uuid4()),
    )

    db.add(audit_log)
    await db.flush()

    logger.info(
        "audit_log_created",
        entity_type=entity_type,
        entity_id=str(entity_id),
        action=action,
        user_id=user_id,
        change_count=len(changes) if changes else 0,
    )
    return audit_log


def diff_changes(old_values: dict[str, Any], entity: Any) -> dict[str, dict[str, Optional[str]]]:
    """
    Build the changes dict for an update.

    Sensitive fields are reported as changed without their values.

    Args:
        old_values: Field values captured before the update
        entity: Entity after the update

    Returns:
        {field: {"old": X, "new": Y}} for fields whose value changed
    """
    changes = {}
    for field, old_value in old_values.items():
        new_value = getattr(entity, field, None)
        if old_value == new_value:
            continue
        if field in REDACTED_FIELDS:
            changes[field] = {"old": "[redacted]", "new": "[redacted]"}
            continue
        changes[field] = {
            "old": _stringify(old_value),
            "new": _stringify(new_value),
        }
    return changes


def _stringify(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(getattr(value, "value", value))


def resolve_actor(current_user: Optional[dict], fallback: UUID) -> str:
    """
    Actor ID recorded on audit rows.

    Args:
        current_user: Authenticated agent or customer context, if any
        fallback: Customer the operation was performed for

    Returns:
        The ``sub`` of ``current_user`` when present, else the customer ID
    """
    if current_user and current_user.get("sub"):
        return str(current_user["sub"])
    return str(fallback)
