# backend/models/cart.py
from sqlalchemy import Column, Integer, ForeignKey, DateTime, CheckConstraint, UniqueConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# Represents the user's persistent shopping cart (exactly one per user)
class Cart(Base):
    __tablename__ = "carts" # Table name

    id = Column(Integer, primary_key=True, index=True) # Primary key
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now()) # Creation timestamp

    user = relationship("User", back_populates="cart")
    # One-to-many relationship with cart items
    items = relationship(
        "CartItem", back_populates="cart", cascade="all, delete-orphan", order_by="CartItem.id"
    )


# Represents a single item (furniture + quantity) within a cart
class CartItem(Base):
    __tablename__ = "cart_items" # Table name

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), index=True, nullable=False) # Foreign key to parent cart
    furniture_id = Column(Integer, ForeignKey("furniture.id"), index=True, nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False, default=1)

    cart = relationship("Cart", back_populates="items") # Relationship back to Cart
    furniture = relationship("Furniture", back_populates="cart_items")

    __table_args__ = (
        # Unique constraint to prevent duplicate furniture entries in the same cart
        UniqueConstraint("cart_id", "furniture_id", name="uq_cartitem_cart_furniture"),
    )
