# backend/routes/furniture.py
import logging
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from database import get_db
from models.category import Category
from models.furniture import Furniture, Image
from models.order import OrderItem
from models.review import Review
from models.users import User
from schemas.common import Envelope, MessageOut, Pagination
from schemas.furniture import (
    CategoryDetail, CategoryOut, FurnitureCreate, FurnitureDetail, FurnitureListPage,
    FurnitureOut, FurnitureReviewOut, FurnitureUpdate, ReviewerOut, SortField, SortOrder,
)
from utils.errors import BadRequestError, ConflictError, NotFoundError
from utils.ratings import enrich
from utils.recommender import RecommendationComposer
from utils.response import ok
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/furnitures", tags=["Furniture"])
logger = logging.getLogger(__name__)

SORT_COLUMNS = {"name": Furniture.name, "price": Furniture.price, "createdAt": Furniture.created_at}
RELATED_LIMIT = 4


# ---- HELPERS ----

def _with_relations(q):
    return q.options(
        selectinload(Furniture.images),
        selectinload(Furniture.category),
        selectinload(Furniture.reviews).selectinload(Review.user),
    )


def _get_furniture(db: Session, furniture_id: int) -> Furniture:
    furniture = _with_relations(db.query(Furniture)).filter(Furniture.id == furniture_id).first()
    if not furniture:
        raise NotFoundError("Furniture not found")
    return furniture


def _ensure_category(db: Session, category_id: int) -> None:
    if db.get(Category, category_id) is None:
        raise BadRequestError("Category not found")


def _ensure_unique_sku(db: Session, sku: str, own_id: Optional[int] = None) -> None:
    q = db.query(Furniture.id).filter(Furniture.sku == sku)
    if own_id is not None:
        q = q.filter(Furniture.id != own_id)
    if q.first():
        raise ConflictError("SKU already exists", field="sku")


def _to_detail(furniture: Furniture) -> FurnitureDetail:
    category = furniture.category
    reviews = sorted(furniture.reviews, key=lambda r: (r.created_at, r.id), reverse=True)
    return enrich(
        furniture,
        FurnitureDetail,
        category=CategoryDetail(id=category.id, name=category.name, description=category.description),
        reviews=[
            FurnitureReviewOut(
                id=r.id,
                rating=r.rating,
                comment=r.comment,
                created_at=r.created_at,
                user=ReviewerOut(name=r.user.name, email=r.user.email) if r.user else None,
            )
            for r in reviews
        ],
    )


# ==========================================
#  CATALOG
# ==========================================

@router.get("", response_model=Envelope[FurnitureListPage])
def list_furniture(
    search: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[Decimal] = Query(None, gt=0, alias="minPrice"),
    max_price: Optional[Decimal] = Query(None, gt=0, alias="maxPrice"),
    sort_by: SortField = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    q = db.query(Furniture)

    if category:
        q = q.join(Category, Furniture.category_id == Category.id).filter(
            Category.name.ilike(f"%{category.strip()}%")
        )
    if min_price is not None:
        q = q.filter(Furniture.price >= min_price)
    if max_price is not None:
        q = q.filter(Furniture.price <= max_price)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(Furniture.name.ilike(pattern), Furniture.description.ilike(pattern)))

    total = q.count()

    column = SORT_COLUMNS[sort_by]
    q = q.order_by(column.asc() if sort_order == "asc" else column.desc(), Furniture.id.desc())
    rows = _with_relations(q).offset((page - 1) * limit).limit(limit).all()

    return ok(FurnitureListPage(
        items=[enrich(f) for f in rows],
        pagination=Pagination.build(page, limit, total),
    ))


@router.get("/categories", response_model=Envelope[List[CategoryOut]])
def list_categories(db: Session = Depends(get_db)):
    rows = (
        db.query(Category, func.count(Furniture.id))
        .outerjoin(Furniture, Furniture.category_id == Category.id)
        .group_by(Category.id)
        .order_by(Category.name.asc())
        .all()
    )
    return ok([
        CategoryOut(id=c.id, name=c.name, description=c.description, furniture_count=count)
        for c, count in rows
    ])


@router.get("/{furniture_id}", response_model=Envelope[FurnitureDetail])
def get_furniture(furniture_id: int, db: Session = Depends(get_db)):
    return ok(_to_detail(_get_furniture(db, furniture_id)))


# Other items from the same category, for the product page
@router.get("/recommendations/{furniture_id}", response_model=Envelope[List[FurnitureOut]])
def related_furniture(furniture_id: int, db: Session = Depends(get_db)):
    furniture = db.get(Furniture, furniture_id)
    if furniture is None:
        raise NotFoundError("Furniture not found")
    result = RecommendationComposer(db).for_category(
        furniture.category_id, limit=RELATED_LIMIT, exclude_id=furniture.id
    )
    return ok(result.recommendations)


# ==========================================
#  MANAGEMENT
# ==========================================

@router.post("", response_model=Envelope[FurnitureDetail], status_code=status.HTTP_201_CREATED)
def create_furniture(
    payload: FurnitureCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _ensure_category(db, payload.category_id)
    _ensure_unique_sku(db, payload.sku)

    data = payload.model_dump(exclude={"images"})
    furniture = Furniture(**data)
    furniture.images = [Image(url=str(img.url)) for img in payload.images or []]
    db.add(furniture)
    db.commit()

    logger.info("Furniture %s (%s) created by user %s", furniture.id, furniture.sku, current_user.id)
    return ok(_to_detail(_get_furniture(db, furniture.id)))


@router.put("/{furniture_id}", response_model=Envelope[FurnitureDetail])
def update_furniture(
    furniture_id: int,
    payload: FurnitureUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    furniture = _get_furniture(db, furniture_id)
    changes = payload.model_dump(exclude_unset=True, exclude={"images"})

    if changes.get("category_id") is not None:
        _ensure_category(db, changes["category_id"])
    if changes.get("sku") is not None:
        _ensure_unique_sku(db, changes["sku"], own_id=furniture.id)

    for field, value in changes.items():
        if value is not None:
            setattr(furniture, field, value)
    if payload.images is not None:
        furniture.images = [Image(url=str(img.url)) for img in payload.images]

    db.commit()
    db.expire_all()
    return ok(_to_detail(_get_furniture(db, furniture_id)))


@router.delete("/{furniture_id}", response_model=Envelope[MessageOut])
def delete_furniture(
    furniture_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    furniture = db.get(Furniture, furniture_id)
    if not furniture:
        raise NotFoundError("Furniture not found")

    if db.query(OrderItem.id).filter(OrderItem.furniture_id == furniture_id).first():
        raise BadRequestError("Cannot delete furniture that has been ordered")

    db.delete(furniture)
    db.commit()
    logger.info("Furniture %s deleted by user %s", furniture_id, current_user.id)
    return ok(MessageOut(message="Furniture deleted successfully"))
