# backend/routes/orders.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Query as OrmQuery, Session, selectinload

from database import get_db
from models.furniture import Furniture
from models.order import Order, OrderItem, OrderStatus
from models.users import User
from schemas.common import Envelope, Pagination
from schemas.order import OrderCreatePayload, OrderResponse, OrdersPage, OrderStatusPatch
from utils import ordering
from utils.errors import ForbiddenError, NotFoundError
from utils.response import ok
from utils.tokenJWT import get_current_user, get_optional_user

router = APIRouter(prefix="/orders", tags=["Orders"])


# Orders with everything order_to_out touches
def _orders_query(db: Session) -> OrmQuery:
    return db.query(Order).options(
        selectinload(Order.user),
        selectinload(Order.items).selectinload(OrderItem.furniture).selectinload(Furniture.images),
        selectinload(Order.items).selectinload(OrderItem.furniture).selectinload(Furniture.category),
    )


def _load_order(db: Session, order_id: int) -> Order:
    order = _orders_query(db).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def _page(q: OrmQuery, page: int, limit: int, status_filter: Optional[OrderStatus]) -> OrdersPage:
    if status_filter is not None:
        q = q.filter(Order.status == status_filter)
    total = q.count()
    rows = q.order_by(Order.created_at.desc(), Order.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return OrdersPage(
        orders=[ordering.order_to_out(o) for o in rows],
        pagination=Pagination.build(page, limit, total),
    )


# Create a PENDING order for the signed-in user or a guest
@router.post("", response_model=Envelope[OrderResponse], status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreatePayload,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    order = ordering.create_order(db, payload.items, user=current_user, guest=payload.guest_info)
    return ok(ordering.order_to_out(_load_order(db, order.id)))


@router.get("", response_model=Envelope[OrdersPage])
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ok(_page(_orders_query(db), page, limit, status_filter))


@router.get("/my-orders", response_model=Envelope[OrdersPage])
def list_my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = _orders_query(db).filter(Order.user_id == current_user.id)
    return ok(_page(q, page, limit, status_filter))


@router.get("/user/{user_id}", response_model=Envelope[OrdersPage])
def list_user_orders(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if current_user.id != user_id:
        raise ForbiddenError("Access denied")
    q = _orders_query(db).filter(Order.user_id == user_id)
    return ok(_page(q, page, limit, status_filter))


# Anyone holding the id may read a guest order; user orders only by their owner
@router.get("/{order_id}", response_model=Envelope[OrderResponse])
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    order = _load_order(db, order_id)
    if current_user and order.user_id and order.user_id != current_user.id:
        raise ForbiddenError("Access denied")
    return ok(ordering.order_to_out(order))


@router.patch("/{order_id}/status", response_model=Envelope[OrderResponse])
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = ordering.change_status(db, order_id, payload.status)
    return ok(ordering.order_to_out(_load_order(db, order.id)))
