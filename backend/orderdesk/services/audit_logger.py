"""
Audit Logging Service
=====================

Append-only audit trail for order changes.

Entries are added to the caller's session and flushed, never committed here,
so an audit row is persisted in the same transaction as the change it records.

Usage:
    from orderdesk.services.audit_logger import AuditLogger, AuditAction

    await AuditLogger.log(
        session,
        action=AuditAction.UPDATE_ORDER_STATUS,
        target_id=order.id,
        user_id=actor_id,
        previous={"status": "PENDING", "net_profit": "250.00"},
        new={"status": "DISPATCHED", "net_profit": "250.00"},
    )
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.models import AuditLog, Order

logger = logging.getLogger(__name__)

ORDER_SNAPSHOT_FIELDS = (
    "id",
    "customer_name",
    "mobile_number",
    "address",
    "shipping_method",
    "shipping_cost",
    "total_selling_price",
    "total_cost_price",
    "net_profit",
    "status",
    "notes",
    "created_at",
    "created_by_id",
)

ITEM_SNAPSHOT_FIELDS = (
    "product_id",
    "product_name",
    "quantity",
    "cost_price",
    "selling_price",
    "total_item_value",
)


class AuditAction(str, Enum):
    """Standardized audit actions."""
    UPDATE_ORDER_STATUS = "UPDATE_ORDER_STATUS"
    EDIT_ORDER = "EDIT_ORDER"
    DELETE_ORDER = "DELETE_ORDER"


class ActorType(str, Enum):
    HUMAN = "human"
    SYSTEM = "system"


def to_jsonable(value: Any) -> Any:
    """Convert model values into JSON column friendly primitives."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def snapshot_order(order: Order, include_items: bool = True) -> dict:
    """Capture the audit-relevant state of an order (items must already be loaded)."""
    snapshot = {name: to_jsonable(getattr(order, name)) for name in ORDER_SNAPSHOT_FIELDS}
    if include_items:
        snapshot["items"] = [
            {name: to_jsonable(getattr(item, name)) for name in ITEM_SNAPSHOT_FIELDS}
            for item in order.items
        ]
    return snapshot


class AuditLogger:
    """
    Centralized audit logging for the order engine.
    """

    @staticmethod
    async def log(
        session: AsyncSession,
        action: AuditAction | str,
        target_id: str,
        user_id: Optional[str] = None,
        previous: Optional[dict] = None,
        new: Optional[dict] = None,
        actor_type: ActorType | str = ActorType.HUMAN,
    ) -> AuditLog:
        """
        Add an audit entry to the session's current transaction.

        Args:
            session: Session carrying the change being audited
            action: The action that was performed
            target_id: The order the action applies to
            user_id: Acting user, None for system actions
            previous: Relevant state before the action
            new: Relevant state after the action
            actor_type: "human" or "system"

        Returns:
            The pending AuditLog entry
        """
        audit_entry = AuditLog(
            action=action.value if isinstance(action, Enum) else action,
            target_id=target_id,
            user_id=user_id,
            actor_type=actor_type.value if isinstance(actor_type, Enum) else actor_type,
            previous_value=to_jsonable(previous) if previous is not None else None,
            new_value=to_jsonable(new) if new is not None else None,
        )
        session.add(audit_entry)
        await session.flush()

        logger.debug(f"Audit logged: {audit_entry.action} on Order:{target_id} by {audit_entry.actor_type} {user_id}")
        return audit_entry

    @staticmethod
    async def get_audit_trail(
        session: AsyncSession,
        target_id: Optional[str] = None,
        action: Optional[str] = None,
        user_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditLog]:
        """
        Query audit logs with filters, newest first.
        """
        query = select(AuditLog)

        if target_id:
            query = query.where(AuditLog.target_id == target_id)
        if action:
            query = query.where(AuditLog.action == action)
        if user_id:
            query = query.where(AuditLog.user_id == user_id)

        query = query.order_by(AuditLog.created_at.desc()).offset(offset).limit(limit)

        result = await session.execute(query)
        return list(result.scalars().all())
