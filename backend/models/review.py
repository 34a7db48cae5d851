# backend/models/review.py
from sqlalchemy import (
    Column, Integer, Text, ForeignKey, DateTime, CheckConstraint, UniqueConstraint, Index, func
)
from sqlalchemy.orm import relationship
from database import Base

# A 1-5 star rating left by a user who bought the furniture item
class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    rating = Column(Integer, CheckConstraint("rating >= 1 AND rating <= 5"), nullable=False, index=True)
    comment = Column(Text, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    furniture_id = Column(Integer, ForeignKey("furniture.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="reviews")
    furniture = relationship("Furniture", back_populates="reviews")

    __table_args__ = (
        # One review per user and furniture item
        UniqueConstraint("user_id", "furniture_id", name="uq_review_user_furniture"),
        Index("ix_reviews_furniture_rating", "furniture_id", "rating"),
    )
