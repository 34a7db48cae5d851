# backend/utils/ordering.py
"""Order transaction manager.

Both entry points validate every requested furniture id before any write,
snapshot the current unit prices, and persist the order, its lines and (for
cart based checkout) the cart clear in a single commit.
"""
import logging
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from models.cart import Cart
from models.furniture import Furniture
from models.order import Order, OrderItem, OrderStatus
from models.users import User
from schemas.cart import FurnitureBrief
from schemas.furniture import CategoryRef, ImageOut
from schemas.order import GuestInfo, OrderItemOut, OrderResponse
from schemas.user import UserSummary
from utils.errors import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


# Collapse requested lines into {furniture_id: quantity}; repeated ids add up
def merge_lines(lines: Iterable) -> Dict[int, int]:
    merged: Dict[int, int] = OrderedDict()
    for line in lines:
        merged[line.furniture_id] = merged.get(line.furniture_id, 0) + line.quantity
    return merged


def resolve_lines(db: Session, wanted: Dict[int, int]) -> List[Tuple[Furniture, int]]:
    found = {
        f.id: f
        for f in db.query(Furniture).filter(Furniture.id.in_(list(wanted))).all()
    }
    missing = [furniture_id for furniture_id in wanted if furniture_id not in found]
    if missing:
        raise NotFoundError(
            f"Furniture items not found: {', '.join(str(i) for i in missing)}",
            details={"missingIds": missing},
        )
    return [(found[furniture_id], quantity) for furniture_id, quantity in wanted.items()]


def _persist(
    db: Session,
    lines: List[Tuple[Furniture, int]],
    *,
    status: OrderStatus,
    user_id: Optional[int] = None,
    guest: Optional[GuestInfo] = None,
    cart: Optional[Cart] = None,
) -> Order:
    total = sum((furniture.price * quantity for furniture, quantity in lines), Decimal("0"))
    order = Order(
        user_id=user_id,
        status=status,
        total_amount=total.quantize(CENT),
        guest_email=guest.email if guest else None,
        guest_name=guest.name if guest else None,
        items=[
            OrderItem(furniture_id=furniture.id, quantity=quantity, unit_price=furniture.price)
            for furniture, quantity in lines
        ],
    )
    try:
        db.add(order)
        if cart is not None:
            # delete-orphan cascade removes the rows in the same flush
            cart.items.clear()
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Order transaction rolled back (user=%s)", user_id)
        raise

    db.refresh(order)
    logger.info(
        "Order %s created: user=%s status=%s lines=%d total=%s",
        order.id, user_id, status.value, len(lines), order.total_amount,
    )
    return order


def checkout(db: Session, user: User, items: Optional[Iterable] = None) -> Order:
    """Purchase explicit items or, when none are given, the user's cart.

    The order is created COMPLETED. A cart sourced checkout empties the cart
    in the same transaction; an explicit-items checkout leaves it alone.
    """
    items = list(items or [])
    cart = None
    if items:
        wanted = merge_lines(items)
    else:
        cart = (
            db.query(Cart)
            .options(selectinload(Cart.items))
            .filter(Cart.user_id == user.id)
            .first()
        )
        if cart is None or not cart.items:
            raise BadRequestError("Cart is empty and no items provided")
        wanted = merge_lines(cart.items)

    lines = resolve_lines(db, wanted)
    return _persist(db, lines, status=OrderStatus.COMPLETED, user_id=user.id, cart=cart)


def create_order(
    db: Session,
    items: Iterable,
    user: Optional[User] = None,
    guest: Optional[GuestInfo] = None,
) -> Order:
    """Create a PENDING order for a user or a guest; the cart is not touched."""
    items = list(items or [])
    if not items:
        raise BadRequestError("Order must contain at least one item")
    if user is None and guest is None:
        raise BadRequestError("Either authentication or guest information must be provided")

    lines = resolve_lines(db, merge_lines(items))
    return _persist(
        db, lines,
        status=OrderStatus.PENDING,
        user_id=user.id if user else None,
        guest=None if user else guest,
    )


def change_status(db: Session, order_id: int, status: OrderStatus) -> Order:
    order = db.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")

    if order.status == status:
        return order
    if order.status.is_terminal:
        raise BadRequestError(f"Cannot change status of {order.status.value.lower()} order")

    previous = order.status
    order.status = status
    db.commit()
    db.refresh(order)
    logger.info("Order %s status %s -> %s", order.id, previous.value, status.value)
    return order


# ---- serialization ----

def furniture_brief(furniture: Optional[Furniture]) -> Optional[FurnitureBrief]:
    if furniture is None:
        return None
    return FurnitureBrief(
        id=furniture.id,
        name=furniture.name,
        price=furniture.price,
        sku=furniture.sku,
        category=CategoryRef(id=furniture.category.id, name=furniture.category.name)
        if furniture.category else None,
        # Embeds only carry the cover image
        images=[ImageOut(id=img.id, url=img.url) for img in furniture.images[:1]],
    )


def order_to_out(order: Order) -> OrderResponse:
    items = [
        OrderItemOut(
            id=it.id,
            furniture_id=it.furniture_id,
            quantity=it.quantity,
            unit_price=it.unit_price,
            line_total=(it.unit_price * it.quantity).quantize(CENT),
            furniture=furniture_brief(it.furniture),
        )
        for it in order.items
    ]
    user = order.user
    return OrderResponse(
        id=order.id,
        user_id=order.user_id,
        status=order.status,
        total_amount=order.total_amount,
        created_at=order.created_at,
        guest_email=order.guest_email,
        guest_name=order.guest_name,
        user=UserSummary(id=user.id, name=user.name, email=user.email) if user else None,
        items=items,
    )
