# backend/routes/reviews.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from database import get_db
from models.furniture import Furniture
from models.order import Order, OrderItem, OrderStatus
from models.review import Review
from models.users import User
from schemas.common import Envelope, MessageOut, Pagination
from schemas.furniture import ImageOut, SortOrder
from schemas.review import (
    FurnitureReviewsPage, ReviewCreate, ReviewedFurniture, ReviewEligibility,
    ReviewOut, ReviewSortField, ReviewUpdate, UserReviewsPage,
)
from schemas.user import UserSummary
from utils.errors import ConflictError, ForbiddenError, NotFoundError
from utils.response import ok
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/reviews", tags=["Reviews"])
logger = logging.getLogger(__name__)

SORT_COLUMNS = {"createdAt": Review.created_at, "rating": Review.rating}


# A user may review furniture that appears in one of their COMPLETED orders
def _has_purchased(db: Session, user_id: int, furniture_id: int) -> bool:
    return bool(db.query(
        db.query(OrderItem.id)
        .join(Order, OrderItem.order_id == Order.id)
        .filter(
            OrderItem.furniture_id == furniture_id,
            Order.user_id == user_id,
            Order.status == OrderStatus.COMPLETED,
        )
        .exists()
    ).scalar())


def _find_review(db: Session, user_id: int, furniture_id: int) -> Optional[Review]:
    return db.query(Review).filter(Review.user_id == user_id, Review.furniture_id == furniture_id).first()


def _review_to_out(review: Review, with_furniture: bool = True) -> ReviewOut:
    furniture = review.furniture if with_furniture else None
    return ReviewOut(
        id=review.id,
        rating=review.rating,
        comment=review.comment,
        user_id=review.user_id,
        furniture_id=review.furniture_id,
        created_at=review.created_at,
        user=UserSummary(id=review.user.id, name=review.user.name) if review.user else None,
        furniture=ReviewedFurniture(
            id=furniture.id,
            name=furniture.name,
            images=[ImageOut(id=img.id, url=img.url) for img in furniture.images[:1]],
        ) if furniture else None,
    )


def _ordered(q, sort_by: str, sort_order: str):
    column = SORT_COLUMNS[sort_by]
    primary = column.asc() if sort_order == "asc" else column.desc()
    return q.order_by(primary, Review.id.desc())


def _owned_review(db: Session, review_id: int, user: User) -> Review:
    review = db.get(Review, review_id)
    if not review:
        raise NotFoundError("Review not found")
    if review.user_id != user.id:
        raise ForbiddenError("You can only modify your own reviews")
    return review


@router.post("", response_model=Envelope[ReviewOut], status_code=status.HTTP_201_CREATED)
def create_review(
    payload: ReviewCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if db.get(Furniture, payload.furniture_id) is None:
        raise NotFoundError("Furniture not found")

    if not _has_purchased(db, current_user.id, payload.furniture_id):
        raise ForbiddenError("You can only review furniture items you have purchased")

    if _find_review(db, current_user.id, payload.furniture_id):
        raise ConflictError("You have already reviewed this furniture item", field="furnitureId")

    review = Review(
        user_id=current_user.id,
        furniture_id=payload.furniture_id,
        rating=payload.rating,
        comment=payload.comment,
    )
    db.add(review)
    db.commit()
    db.refresh(review)

    logger.info("User %s reviewed furniture %s (%d stars)", current_user.id, review.furniture_id, review.rating)
    return ok(_review_to_out(review))


@router.put("/{review_id}", response_model=Envelope[ReviewOut])
def update_review(
    review_id: int,
    payload: ReviewUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    review = _owned_review(db, review_id, current_user)

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(review, field, value)

    db.commit()
    db.refresh(review)
    return ok(_review_to_out(review))


@router.delete("/{review_id}", response_model=Envelope[MessageOut])
def delete_review(
    review_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    review = _owned_review(db, review_id, current_user)
    db.delete(review)
    db.commit()
    return ok(MessageOut(message="Review deleted successfully"))


@router.get("/furniture/{furniture_id}", response_model=Envelope[FurnitureReviewsPage])
def list_furniture_reviews(
    furniture_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    rating: Optional[int] = Query(None, ge=1, le=5),
    sort_by: ReviewSortField = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    db: Session = Depends(get_db),
):
    if db.get(Furniture, furniture_id) is None:
        raise NotFoundError("Furniture not found")

    q = db.query(Review).options(selectinload(Review.user)).filter(Review.furniture_id == furniture_id)
    if rating is not None:
        q = q.filter(Review.rating == rating)

    total = q.count()
    rows = _ordered(q, sort_by, sort_order).offset((page - 1) * limit).limit(limit).all()

    # Aggregate over every review of the item, independent of the rating filter
    average = (
        db.query(func.avg(Review.rating)).filter(Review.furniture_id == furniture_id).scalar()
    )

    return ok(FurnitureReviewsPage(
        reviews=[_review_to_out(r, with_furniture=False) for r in rows],
        average_rating=float(average) if average is not None else None,
        total_reviews=total,
        pagination=Pagination.build(page, limit, total),
    ))


@router.get("/user/{user_id}", response_model=Envelope[UserReviewsPage])
def list_user_reviews(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    rating: Optional[int] = Query(None, ge=1, le=5),
    sort_by: ReviewSortField = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    db: Session = Depends(get_db),
):
    if db.get(User, user_id) is None:
        raise NotFoundError("User not found")

    q = db.query(Review).options(
        selectinload(Review.user),
        selectinload(Review.furniture).selectinload(Furniture.images),
    ).filter(Review.user_id == user_id)
    if rating is not None:
        q = q.filter(Review.rating == rating)

    total = q.count()
    rows = _ordered(q, sort_by, sort_order).offset((page - 1) * limit).limit(limit).all()
    return ok(UserReviewsPage(
        reviews=[_review_to_out(r) for r in rows],
        pagination=Pagination.build(page, limit, total),
    ))


@router.get("/can-review/{user_id}/{furniture_id}", response_model=Envelope[ReviewEligibility])
def can_review(user_id: int, furniture_id: int, db: Session = Depends(get_db)):
    has_purchased = _has_purchased(db, user_id, furniture_id)
    has_reviewed = _find_review(db, user_id, furniture_id) is not None
    return ok(ReviewEligibility(
        can_review=has_purchased and not has_reviewed,
        has_purchased=has_purchased,
        has_reviewed=has_reviewed,
    ))
