# backend/models/order.py
import enum
from sqlalchemy import (
    Column, Integer, String, Numeric, ForeignKey, DateTime, Enum, CheckConstraint,
    UniqueConstraint, Index, func
)
from sqlalchemy.orm import relationship
from database import Base

# Order lifecycle. COMPLETED and CANCELLED are terminal.
class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    # Nullable: guest orders carry contact details instead of a user
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    total_amount = Column(Numeric(10, 2), CheckConstraint("total_amount > 0"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Guest contact details
    guest_email = Column(String, nullable=True)
    guest_name = Column(String, nullable=True)

    user = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )

    __table_args__ = (
        Index("ix_orders_user_created", "user_id", "created_at"),
    )

class OrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    furniture_id = Column(Integer, ForeignKey("furniture.id"), nullable=False, index=True)
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False, default=1)
    # Price at the moment of ordering, independent of later catalog changes
    unit_price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")
    furniture = relationship("Furniture", back_populates="order_items")

    __table_args__ = (
        UniqueConstraint("order_id", "furniture_id", name="uq_orderitem_order_furniture"),
    )
