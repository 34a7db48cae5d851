# backend/routes/checkout.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from models.order import Order
from models.users import User
from schemas.common import Envelope
from schemas.order import CheckoutPayload, OrderResponse
from utils import ordering
from utils.errors import UnauthorizedError
from utils.response import ok
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/checkout", tags=["Checkout"])
logger = logging.getLogger(__name__)


# Buy the given items, or the whole cart when the body carries none.
# Orders placed here skip payment and are COMPLETED immediately.
@router.post("/place", response_model=Envelope[OrderResponse], status_code=status.HTTP_201_CREATED)
def place_order(
    payload: Optional[CheckoutPayload] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = ordering.checkout(db, current_user, payload.items if payload else None)
    order = db.get(Order, order.id)
    return ok(ordering.order_to_out(order))


# Guest checkout is disabled; customers must sign in to purchase
@router.post("/guest", status_code=status.HTTP_401_UNAUTHORIZED)
def guest_checkout():
    raise UnauthorizedError(
        "Authentication required. Please create an account or login to make a purchase."
    )
