# backend/schemas/recommendation.py
import enum
from typing import List, Optional

from schemas.common import ORMBase
from schemas.furniture import FurnitureOut


# Label describing which strategy produced a recommendation list
class Algorithm(str, enum.Enum):
    HYBRID = "hybrid"
    POPULAR = "popular"
    CATEGORY_BASED = "category-based"
    CONTENT_BASED = "content-based"


class RecommendedFurniture(FurnitureOut):
    # Only populated by the popularity ranking
    order_count: Optional[int] = None


class RecommendationResult(ORMBase):
    recommendations: List[RecommendedFurniture]
    algorithm: Algorithm
