"""
Audit models - append-only trail of order changes.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, DateTime, Index, JSON
from sqlalchemy.orm import Mapped, mapped_column

from orderdesk.models.base import Base, UUIDMixin


class AuditLog(Base, UUIDMixin):
    """
    One row per status change, edit or delete of an order.
    Rows are written in the same transaction as the change and never updated.
    """
    __tablename__ = "audit_logs"

    # No foreign key: entries must outlive deleted users and orders
    user_id: Mapped[Optional[str]] = mapped_column(String(36))
    actor_type: Mapped[str] = mapped_column(String(20), default="human")  # human, system

    action: Mapped[str] = mapped_column(String(50), nullable=False)  # UPDATE_ORDER_STATUS, EDIT_ORDER, DELETE_ORDER
    target_id: Mapped[str] = mapped_column(String(36), nullable=False)

    previous_value: Mapped[Optional[dict]] = mapped_column(JSON)
    new_value: Mapped[Optional[dict]] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_audit_target", "target_id", "created_at"),
        Index("idx_audit_action", "action"),
        Index("idx_audit_user", "user_id"),
    )
