"""
User model - staff accounts that create and manage orders.
"""

from enum import Enum
from typing import List

from sqlalchemy import String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from orderdesk.models.base import Base, UUIDMixin, TimestampMixin


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"


class User(Base, UUIDMixin, TimestampMixin):
    """An authenticated operator. Admins may delete orders; staff may not."""
    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, native_enum=False, length=10),
        default=UserRole.STAFF,
        nullable=False,
    )

    orders: Mapped[List["Order"]] = relationship("Order", back_populates="created_by")
