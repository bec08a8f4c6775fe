"""
SQLAlchemy Models for Order Desk.

This package is organized by domain:
- base.py: Base class and mixins
- user.py: Staff and admin accounts
- product.py: Product catalog
- order.py: Order, line item, status and shipping method
- audit.py: Append-only audit trail
"""

# Base
from orderdesk.models.base import Base, UUIDMixin, TimestampMixin

# Core domain models
from orderdesk.models.user import User, UserRole
from orderdesk.models.product import Product
from orderdesk.models.order import Order, OrderItem, OrderStatus, ShippingMethod, TERMINAL_STATUSES

# Audit
from orderdesk.models.audit import AuditLog


__all__ = [
    # Base
    "Base",
    "UUIDMixin",
    "TimestampMixin",

    # Core domain
    "User",
    "UserRole",
    "Product",
    "Order",
    "OrderItem",
    "OrderStatus",
    "ShippingMethod",
    "TERMINAL_STATUSES",

    # Audit
    "AuditLog",
]
