"""
SQLAlchemy Database Models for the orders service.
"""

import enum

from sqlalchemy import Column, Integer, String, Numeric, DateTime, JSON, Enum
from sqlalchemy.sql import func

from restaurant_services.orders.database import Base


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"


class Order(Base):
    """
    A customer order.

    `items` is stored verbatim as a JSON array; the service does not
    check it against a menu. `user_id` is the identity provider's uid
    and is not enforced as a foreign key.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, index=True)
    items = Column(JSON, nullable=False)
    total = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    status = Column(
        Enum(
            OrderStatus,
            name="order_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        default=OrderStatus.PENDING,
        server_default=OrderStatus.PENDING.value,
        nullable=False,
        index=True
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self):
        return f"<Order #{self.id} - {self.user_id} - {self.status.value}>"
