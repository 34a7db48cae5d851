# backend/schemas/furniture.py
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import Field, HttpUrl

from schemas.common import ORMBase, Pagination


class ImageIn(ORMBase):
    url: HttpUrl


class ImageOut(ORMBase):
    id: int
    url: str


class CategoryRef(ORMBase):
    id: int
    name: str


class CategoryOut(ORMBase):
    id: int
    name: str
    description: Optional[str] = None
    furniture_count: int = 0


# Shared base attributes for furniture entities
class FurnitureBase(ORMBase):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    sku: str = Field(min_length=1, max_length=50)
    width_cm: Decimal = Field(gt=0, max_digits=8, decimal_places=2)
    height_cm: Decimal = Field(gt=0, max_digits=8, decimal_places=2)
    depth_cm: Decimal = Field(gt=0, max_digits=8, decimal_places=2)
    category_id: int = Field(gt=0)


# Schema for creating a new furniture item
class FurnitureCreate(FurnitureBase):
    images: Optional[List[ImageIn]] = None


# Schema for partial updates - all fields optional
class FurnitureUpdate(ORMBase):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    sku: Optional[str] = Field(None, min_length=1, max_length=50)
    width_cm: Optional[Decimal] = Field(None, gt=0, max_digits=8, decimal_places=2)
    height_cm: Optional[Decimal] = Field(None, gt=0, max_digits=8, decimal_places=2)
    depth_cm: Optional[Decimal] = Field(None, gt=0, max_digits=8, decimal_places=2)
    category_id: Optional[int] = Field(None, gt=0)
    # When present, replaces the full image set
    images: Optional[List[ImageIn]] = None


# Catalog representation, always carrying the rating aggregate instead of raw reviews
class FurnitureOut(ORMBase):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    sku: str
    width_cm: Decimal
    height_cm: Decimal
    depth_cm: Decimal
    category_id: int
    category: Optional[CategoryRef] = None
    images: List[ImageOut] = []
    created_at: Optional[datetime] = None
    average_rating: Optional[float] = None
    review_count: int = 0


class ReviewerOut(ORMBase):
    name: Optional[str] = None
    email: Optional[str] = None


class FurnitureReviewOut(ORMBase):
    id: int
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    user: Optional[ReviewerOut] = None


class CategoryDetail(CategoryRef):
    description: Optional[str] = None


# Detail view also lists the individual reviews, newest first
class FurnitureDetail(FurnitureOut):
    category: Optional[CategoryDetail] = None
    reviews: List[FurnitureReviewOut] = []


class FurnitureListPage(ORMBase):
    items: List[FurnitureOut]
    pagination: Pagination


SortField = Literal["name", "price", "createdAt"]
SortOrder = Literal["asc", "desc"]
