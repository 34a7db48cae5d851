# backend/models/furniture.py
from sqlalchemy import (
    Column, Integer, String, Text, Numeric, ForeignKey, DateTime, CheckConstraint, Index, func
)
from sqlalchemy.orm import relationship
from database import Base

# Model Furniture
# A single catalog item. Price and dimensions are fixed-point decimals
# guarded by check constraints; reviews and order lines hang off it.
class Furniture(Base):
    __tablename__ = "furniture"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), CheckConstraint("price > 0"), nullable=False, index=True)
    sku = Column(String(50), unique=True, nullable=False, index=True)

    width_cm = Column(Numeric(8, 2), CheckConstraint("width_cm > 0"), nullable=False)
    height_cm = Column(Numeric(8, 2), CheckConstraint("height_cm > 0"), nullable=False)
    depth_cm = Column(Numeric(8, 2), CheckConstraint("depth_cm > 0"), nullable=False)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    category = relationship("Category", back_populates="furniture")
    images = relationship(
        "Image", back_populates="furniture", cascade="all, delete-orphan", order_by="Image.id"
    )
    reviews = relationship("Review", back_populates="furniture", cascade="all, delete-orphan")
    order_items = relationship("OrderItem", back_populates="furniture")
    cart_items = relationship("CartItem", back_populates="furniture", cascade="all, delete-orphan")

    __table_args__ = (
        # Used by the content-based recommendation (same category, price band)
        Index("ix_furniture_category_price", "category_id", "price"),
    )


# Image URL attached to a furniture item; removed together with it
class Image(Base):
    __tablename__ = "images"

    id = Column(Integer, primary_key=True, index=True)
    url = Column(String, nullable=False)
    furniture_id = Column(
        Integer, ForeignKey("furniture.id", ondelete="CASCADE"), nullable=False, index=True
    )

    furniture = relationship("Furniture", back_populates="images")
