# backend/utils/recommender.py
"""Recommendation composer.

Four strategies share one candidate query and one rank-and-enrich step:

* user       - purchase history driven; collaborative -> category-based ->
               popularity tiers (``hybrid``), or plain popularity for users
               without completed purchases
* popular    - most ordered, then most reviewed, then newest
* category   - one category, most reviewed then newest
* similar    - same category, price within +/-30% of the reference item

Nothing is cached; every call re-runs its queries.
"""
import enum
import logging
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from models.category import Category
from models.furniture import Furniture
from models.order import Order, OrderItem, OrderStatus
from models.review import Review
from models.users import User
from schemas.recommendation import Algorithm, RecommendationResult, RecommendedFurniture
from utils.errors import BadRequestError, NotFoundError
from utils.ratings import enrich

logger = logging.getLogger(__name__)

MIN_LIMIT = 1
MAX_LIMIT = 50
DEFAULT_LIMIT = 10
PRICE_BAND = Decimal("0.3")


class Strategy(str, enum.Enum):
    USER = "user"
    POPULAR = "popular"
    CATEGORY = "category"
    SIMILAR = "similar"


class Ranking(enum.Enum):
    # review count desc, created_at desc
    REVIEWS = "reviews"
    # order line count desc, review count desc, created_at desc
    POPULARITY = "popularity"


@dataclass(frozen=True)
class CandidateFilter:
    category_ids: Optional[Tuple[int, ...]] = None
    exclude_ids: FrozenSet[int] = field(default_factory=frozenset)
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None


# (furniture, order count) - the count is only known for popularity ranking
Candidate = Tuple[Furniture, Optional[int]]


def validate_limit(limit: int) -> int:
    if limit is None or not MIN_LIMIT <= limit <= MAX_LIMIT:
        raise BadRequestError(f"Limit must be between {MIN_LIMIT} and {MAX_LIMIT}")
    return limit


def _ids(*values: Optional[int]) -> FrozenSet[int]:
    return frozenset(v for v in values if v is not None)


def _review_count():
    return (
        select(func.count(Review.id))
        .where(Review.furniture_id == Furniture.id)
        .correlate(Furniture)
        .scalar_subquery()
    )


def _order_count():
    return (
        select(func.count(OrderItem.id))
        .where(OrderItem.furniture_id == Furniture.id)
        .correlate(Furniture)
        .scalar_subquery()
    )


class RecommendationComposer:
    def __init__(self, db: Session):
        self.db = db

    # ---- public strategies ----

    def recommend(
        self,
        strategy: Strategy,
        subject_id: Optional[int] = None,
        limit: int = DEFAULT_LIMIT,
        exclude_id: Optional[int] = None,
    ) -> RecommendationResult:
        if strategy is Strategy.USER:
            return self.for_user(subject_id, limit, exclude_id)
        if strategy is Strategy.POPULAR:
            return self.popular(limit, exclude_id)
        if strategy is Strategy.CATEGORY:
            return self.for_category(subject_id, limit, exclude_id)
        if strategy is Strategy.SIMILAR:
            return self.similar(subject_id, limit)
        raise BadRequestError(f"Unknown recommendation strategy: {strategy}")

    def for_user(self, user_id: int, limit: int = DEFAULT_LIMIT, exclude_id: Optional[int] = None) -> RecommendationResult:
        validate_limit(limit)
        if self.db.get(User, user_id) is None:
            raise NotFoundError("User not found")

        history = self._purchase_history(user_id)
        if not history:
            rows = self._popular(limit, _ids(exclude_id))
            return self._result(rows, Algorithm.POPULAR)

        purchased = frozenset(furniture_id for furniture_id, _ in history)
        blocked = purchased | _ids(exclude_id)

        rows = self._collaborative(history, blocked, limit)
        if len(rows) < limit:
            # Only the collaborative tier skips purchases; later tiers may bring them back
            rows += self._category_based(history, self._selected(rows) | _ids(exclude_id), limit - len(rows))
        if len(rows) < limit:
            rows += self._popular(limit - len(rows), self._selected(rows) | _ids(exclude_id))

        logger.debug("Hybrid recommendations for user %s: %d items", user_id, len(rows))
        return self._result(rows[:limit], Algorithm.HYBRID)

    def popular(self, limit: int = DEFAULT_LIMIT, exclude_id: Optional[int] = None,
                selected_ids: Iterable[int] = ()) -> RecommendationResult:
        validate_limit(limit)
        rows = self._popular(limit, frozenset(selected_ids) | _ids(exclude_id))
        return self._result(rows, Algorithm.POPULAR)

    def for_category(self, category_id: int, limit: int = DEFAULT_LIMIT,
                     exclude_id: Optional[int] = None) -> RecommendationResult:
        validate_limit(limit)
        if self.db.get(Category, category_id) is None:
            raise NotFoundError("Category not found")
        rows = self._candidates(
            CandidateFilter(category_ids=(category_id,), exclude_ids=_ids(exclude_id)),
            Ranking.REVIEWS, limit,
        )
        return self._result(rows, Algorithm.CATEGORY_BASED)

    def similar(self, furniture_id: int, limit: int = DEFAULT_LIMIT) -> RecommendationResult:
        validate_limit(limit)
        reference = self.db.get(Furniture, furniture_id)
        if reference is None:
            raise NotFoundError("Furniture not found")

        band = reference.price * PRICE_BAND
        rows = self._candidates(
            CandidateFilter(
                category_ids=(reference.category_id,),
                exclude_ids=_ids(reference.id),
                min_price=reference.price - band,
                max_price=reference.price + band,
            ),
            Ranking.REVIEWS, limit,
        )
        return self._result(rows, Algorithm.CONTENT_BASED)

    # ---- tiers ----

    def _purchase_history(self, user_id: int) -> List[Tuple[int, int]]:
        """(furniture_id, category_id) for every line of the user's completed orders."""
        rows = (
            self.db.query(OrderItem.furniture_id, Furniture.category_id)
            .join(Order, OrderItem.order_id == Order.id)
            .join(Furniture, OrderItem.furniture_id == Furniture.id)
            .filter(Order.user_id == user_id, Order.status == OrderStatus.COMPLETED)
            .order_by(OrderItem.id)
            .all()
        )
        return [(furniture_id, category_id) for furniture_id, category_id in rows]

    def _collaborative(self, history, blocked: FrozenSet[int], limit: int) -> List[Candidate]:
        # dict.fromkeys keeps first-seen order while de-duplicating
        category_ids = tuple(dict.fromkeys(category_id for _, category_id in history))
        return self._candidates(
            CandidateFilter(category_ids=category_ids, exclude_ids=blocked), Ranking.REVIEWS, limit
        )

    def _category_based(self, history, blocked: FrozenSet[int], limit: int) -> List[Candidate]:
        # Most purchased categories first; ties keep first-seen order
        preferred = [category_id for category_id, _ in Counter(c for _, c in history).most_common()]

        rows: List[Candidate] = []
        for category_id in preferred:
            remaining = limit - len(rows)
            if remaining <= 0:
                break
            rows += self._candidates(
                CandidateFilter(category_ids=(category_id,), exclude_ids=blocked | self._selected(rows)),
                Ranking.REVIEWS, remaining,
            )
        return rows

    def _popular(self, limit: int, exclude_ids: FrozenSet[int]) -> List[Candidate]:
        return self._candidates(CandidateFilter(exclude_ids=exclude_ids), Ranking.POPULARITY, limit)

    # ---- shared rank and enrich ----

    def _candidates(self, flt: CandidateFilter, ranking: Ranking, limit: int) -> List[Candidate]:
        if limit <= 0 or (flt.category_ids is not None and not flt.category_ids):
            return []

        review_count = _review_count()
        order_count = _order_count().label("order_count") if ranking is Ranking.POPULARITY else None

        query = self.db.query(Furniture) if order_count is None else self.db.query(Furniture, order_count)
        query = query.options(
            selectinload(Furniture.images),
            selectinload(Furniture.reviews),
            selectinload(Furniture.category),
        )

        if flt.category_ids is not None:
            query = query.filter(Furniture.category_id.in_(flt.category_ids))
        if flt.exclude_ids:
            query = query.filter(Furniture.id.notin_(flt.exclude_ids))
        if flt.min_price is not None:
            query = query.filter(Furniture.price >= flt.min_price)
        if flt.max_price is not None:
            query = query.filter(Furniture.price <= flt.max_price)

        ordering = [review_count.desc(), Furniture.created_at.desc()]
        if order_count is not None:
            ordering.insert(0, order_count.desc())
        # Final key only makes equal candidates come back in a stable order
        ordering.append(Furniture.id.desc())

        rows = query.order_by(*ordering).limit(limit).all()
        if order_count is None:
            return [(furniture, None) for furniture in rows]
        return [(furniture, count) for furniture, count in rows]

    @staticmethod
    def _selected(rows: Sequence[Candidate]) -> FrozenSet[int]:
        return frozenset(furniture.id for furniture, _ in rows)

    @staticmethod
    def _result(rows: Sequence[Candidate], algorithm: Algorithm) -> RecommendationResult:
        items = [
            enrich(furniture, RecommendedFurniture, order_count=count)
            for furniture, count in rows
        ]
        return RecommendationResult(recommendations=items, algorithm=algorithm)
