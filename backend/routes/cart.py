# backend/routes/cart.py
from decimal import Decimal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models.cart import Cart, CartItem
from models.furniture import Furniture
from models.users import User
from schemas.cart import CartAddItem, CartCleared, CartItemOut, CartOut, CartUpdateItem
from schemas.common import Envelope
from utils.errors import NotFoundError
from utils.ordering import CENT, furniture_brief
from utils.response import ok
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/cart", tags=["Cart"])


def _get_cart(db: Session, user_id: int) -> Cart:
    # Retrieve the user's cart or create it on first use
    cart = db.query(Cart).filter(Cart.user_id == user_id).first()
    if not cart:
        cart = Cart(user_id=user_id)
        db.add(cart)
        db.commit()
        db.refresh(cart)
    return cart


def _own_item(db: Session, cart: Cart, cart_item_id: int) -> CartItem:
    item = db.query(CartItem).filter(CartItem.id == cart_item_id, CartItem.cart_id == cart.id).first()
    if not item:
        raise NotFoundError("Cart item not found")
    return item


def _cart_to_out(cart: Cart) -> CartOut:
    items_out = []
    total = Decimal("0")

    for it in cart.items:
        line_total = (it.furniture.price * it.quantity).quantize(CENT)
        total += line_total
        items_out.append(CartItemOut(
            id=it.id,
            cart_id=it.cart_id,
            furniture_id=it.furniture_id,
            quantity=it.quantity,
            line_total=line_total,
            furniture=furniture_brief(it.furniture),
        ))

    return CartOut(id=cart.id, user_id=cart.user_id, items=items_out, total=total.quantize(CENT))


@router.get("", response_model=Envelope[CartOut])
def get_cart(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    cart = _get_cart(db, current_user.id)
    return ok(_cart_to_out(cart))


# Adding furniture that is already in the cart increases its quantity
@router.post("/add", response_model=Envelope[CartOut])
def add_to_cart(
    payload: CartAddItem,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    cart = _get_cart(db, current_user.id)

    if db.get(Furniture, payload.furniture_id) is None:
        raise NotFoundError("Furniture not found")

    item = db.query(CartItem).filter(
        CartItem.cart_id == cart.id, CartItem.furniture_id == payload.furniture_id
    ).first()

    if item:
        item.quantity += payload.quantity
    else:
        db.add(CartItem(cart_id=cart.id, furniture_id=payload.furniture_id, quantity=payload.quantity))

    db.commit()
    db.refresh(cart)
    return ok(_cart_to_out(cart))


@router.post("/update", response_model=Envelope[CartOut])
def update_cart_item(
    payload: CartUpdateItem,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    cart = _get_cart(db, current_user.id)
    item = _own_item(db, cart, payload.cart_item_id)

    item.quantity = payload.quantity
    db.commit()
    db.refresh(cart)
    return ok(_cart_to_out(cart))


@router.delete("/remove/{cart_item_id}", response_model=Envelope[CartOut])
def remove_cart_item(
    cart_item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    cart = _get_cart(db, current_user.id)
    item = _own_item(db, cart, cart_item_id)

    db.delete(item)
    db.commit()
    db.refresh(cart)
    return ok(_cart_to_out(cart))


@router.post("/clear", response_model=Envelope[CartCleared])
def clear_cart(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    cart = db.query(Cart).filter(Cart.user_id == current_user.id).first()
    if not cart:
        raise NotFoundError("Cart not found")

    deleted = db.query(CartItem).filter(CartItem.cart_id == cart.id).delete(synchronize_session=False)
    db.commit()
    return ok(CartCleared(message="Cart cleared successfully", deleted_count=deleted))
