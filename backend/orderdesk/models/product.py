"""
Product models - the catalog orders pick items from.
"""

from decimal import Decimal
from typing import Optional, List

from sqlalchemy import String, Numeric, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from orderdesk.models.base import Base, UUIDMixin, TimestampMixin


class Product(Base, UUIDMixin, TimestampMixin):
    """
    A catalog entry. Orders copy name and prices into their items,
    so editing a product never changes an existing order.
    """
    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    cost_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    selling_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))

    order_items: Mapped[List["OrderItem"]] = relationship("OrderItem", back_populates="product")

    __table_args__ = (
        Index("idx_product_name", "name"),
    )
