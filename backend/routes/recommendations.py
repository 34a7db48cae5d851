# backend/routes/recommendations.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from schemas.common import Envelope
from schemas.recommendation import RecommendationResult
from utils.recommender import DEFAULT_LIMIT, RecommendationComposer, Strategy
from utils.response import ok

router = APIRouter(prefix="/recommendations", tags=["Recommendations"])


def get_composer(db: Session = Depends(get_db)) -> RecommendationComposer:
    return RecommendationComposer(db)


# limit is range-checked by the composer so every caller gets the same error
@router.get("/user/{user_id}", response_model=Envelope[RecommendationResult])
def user_recommendations(
    user_id: int,
    limit: int = Query(DEFAULT_LIMIT),
    exclude_id: Optional[int] = Query(None, alias="excludeId"),
    composer: RecommendationComposer = Depends(get_composer),
):
    return ok(composer.recommend(Strategy.USER, user_id, limit=limit, exclude_id=exclude_id))


@router.get("/popular", response_model=Envelope[RecommendationResult])
def popular_recommendations(
    limit: int = Query(DEFAULT_LIMIT),
    exclude_id: Optional[int] = Query(None, alias="excludeId"),
    composer: RecommendationComposer = Depends(get_composer),
):
    return ok(composer.recommend(Strategy.POPULAR, limit=limit, exclude_id=exclude_id))


@router.get("/category/{category_id}", response_model=Envelope[RecommendationResult])
def category_recommendations(
    category_id: int,
    limit: int = Query(DEFAULT_LIMIT),
    exclude_id: Optional[int] = Query(None, alias="excludeId"),
    composer: RecommendationComposer = Depends(get_composer),
):
    return ok(composer.recommend(Strategy.CATEGORY, category_id, limit=limit, exclude_id=exclude_id))


@router.get("/similar/{furniture_id}", response_model=Envelope[RecommendationResult])
def similar_recommendations(
    furniture_id: int,
    limit: int = Query(DEFAULT_LIMIT),
    composer: RecommendationComposer = Depends(get_composer),
):
    return ok(composer.recommend(Strategy.SIMILAR, furniture_id, limit=limit))
