# backend/utils/ratings.py
"""Read-side rating aggregate for furniture items.

Nothing is cached or persisted: the aggregate is computed on every request
from the reviews that were fetched together with the furniture.
"""
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class RatingSummary:
    average_rating: Optional[float]
    review_count: int


def summarize(ratings: Iterable[int]) -> RatingSummary:
    """Mean rating (None when there are no ratings) and the number of ratings."""
    values = list(ratings)
    if not values:
        return RatingSummary(average_rating=None, review_count=0)
    return RatingSummary(average_rating=sum(values) / len(values), review_count=len(values))


def summarize_reviews(reviews) -> RatingSummary:
    return summarize(r.rating for r in reviews)


def enrich(furniture, schema=None, **extra):
    """Build the outgoing DTO for a furniture row with its rating aggregate.

    ``furniture.reviews`` must already be loaded; the raw reviews themselves
    are not copied into the result unless ``schema`` declares them and the
    caller passes them in ``extra``. Keys in ``extra`` override the defaults.
    """
    from schemas.furniture import CategoryRef, FurnitureOut, ImageOut

    schema = schema or FurnitureOut
    summary = summarize_reviews(furniture.reviews)
    category = furniture.category
    fields = dict(
        id=furniture.id,
        name=furniture.name,
        description=furniture.description,
        price=furniture.price,
        sku=furniture.sku,
        width_cm=furniture.width_cm,
        height_cm=furniture.height_cm,
        depth_cm=furniture.depth_cm,
        category_id=furniture.category_id,
        category=CategoryRef(id=category.id, name=category.name) if category else None,
        images=[ImageOut(id=img.id, url=img.url) for img in furniture.images],
        created_at=furniture.created_at,
        average_rating=summary.average_rating,
        review_count=summary.review_count,
    )
    fields.update(extra)
    return schema(**fields)
