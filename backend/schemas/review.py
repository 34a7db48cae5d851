from datetime import datetime
from pydantic import Field, model_validator
from typing import List, Literal, Optional

from schemas.common import ORMBase, Pagination
from schemas.furniture import ImageOut
from schemas.user import UserSummary


class ReviewCreate(ORMBase):
    furniture_id: int = Field(gt=0)
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class ReviewUpdate(ORMBase):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def _at_least_one(self):
        if self.rating is None and self.comment is None:
            raise ValueError("At least one field (rating or comment) must be provided")
        # rating is NOT NULL; an explicit null cannot be stored
        if "rating" in self.model_fields_set and self.rating is None:
            raise ValueError("Rating cannot be null")
        return self


class ReviewedFurniture(ORMBase):
    id: int
    name: str
    images: List[ImageOut] = []


class ReviewOut(ORMBase):
    id: int
    rating: int
    comment: Optional[str] = None
    user_id: int
    furniture_id: int
    created_at: Optional[datetime] = None
    user: Optional[UserSummary] = None
    furniture: Optional[ReviewedFurniture] = None


class FurnitureReviewsPage(ORMBase):
    reviews: List[ReviewOut]
    average_rating: Optional[float] = None
    total_reviews: int
    pagination: Pagination


class UserReviewsPage(ORMBase):
    reviews: List[ReviewOut]
    pagination: Pagination


class ReviewEligibility(ORMBase):
    can_review: bool
    has_purchased: bool
    has_reviewed: bool


ReviewSortField = Literal["createdAt", "rating"]
