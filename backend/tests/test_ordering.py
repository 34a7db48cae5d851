from decimal import Decimal

import pytest

from models.cart import Cart, CartItem
from models.order import Order, OrderItem, OrderStatus
from schemas.order import GuestInfo, OrderLineIn
from utils import ordering
from utils.errors import BadRequestError, NotFoundError


def line(furniture, quantity=1):
    return OrderLineIn(furniture_id=furniture.id, quantity=quantity)


def cart_items(db, user):
    db.expire_all()
    cart = db.query(Cart).filter(Cart.user_id == user.id).one()
    return cart.items


def test_checkout_from_cart_completes_and_clears_cart(
    db, make_user, make_category, make_furniture, add_to_cart
):
    category = make_category()
    sofa = make_furniture(category, price="1299.99")
    lamp = make_furniture(category, price="79.99")
    user = make_user()
    add_to_cart(user, sofa, 1)
    add_to_cart(user, lamp, 2)

    order = ordering.checkout(db, user)

    assert order.status == OrderStatus.COMPLETED
    assert order.user_id == user.id
    assert order.total_amount == Decimal("1459.97")
    assert {(i.furniture_id, i.quantity) for i in order.items} == {(sofa.id, 1), (lamp.id, 2)}
    assert cart_items(db, user) == []


def test_checkout_with_explicit_items_keeps_cart(
    db, make_user, make_category, make_furniture, add_to_cart
):
    category = make_category()
    desk = make_furniture(category, price="599.99")
    user = make_user()
    add_to_cart(user, desk, 1)

    order = ordering.checkout(db, user, [line(desk, 2)])

    assert order.total_amount == Decimal("1199.98")
    assert len(cart_items(db, user)) == 1


def test_checkout_empty_cart(db, make_user):
    with pytest.raises(BadRequestError) as exc:
        ordering.checkout(db, make_user())
    assert exc.value.message == "Cart is empty and no items provided"
    assert db.query(Order).count() == 0


def test_unit_price_is_a_snapshot(db, make_user, make_category, make_furniture):
    chair = make_furniture(make_category(), price="100.00")
    order = ordering.checkout(db, make_user(), [line(chair)])

    chair.price = Decimal("150.00")
    db.commit()
    db.expire_all()

    stored = db.query(OrderItem).filter(OrderItem.order_id == order.id).one()
    assert stored.unit_price == Decimal("100.00")


def test_missing_furniture_aborts_without_writes(
    db, make_user, make_category, make_furniture, add_to_cart
):
    chair = make_furniture(make_category())
    user = make_user()
    add_to_cart(user, chair)

    with pytest.raises(NotFoundError) as exc:
        ordering.checkout(db, user, [line(chair), OrderLineIn(furniture_id=777, quantity=1)])

    assert exc.value.message == "Furniture items not found: 777"
    assert db.query(Order).count() == 0
    assert len(cart_items(db, user)) == 1


def test_duplicate_lines_are_merged(db, make_user, make_category, make_furniture):
    chair = make_furniture(make_category(), price="10.00")

    order = ordering.checkout(db, make_user(), [line(chair, 1), line(chair, 2)])

    assert [(i.furniture_id, i.quantity) for i in order.items] == [(chair.id, 3)]
    assert order.total_amount == Decimal("30.00")


def test_create_order_for_user_is_pending_and_leaves_cart(
    db, make_user, make_category, make_furniture, add_to_cart
):
    chair = make_furniture(make_category())
    user = make_user()
    add_to_cart(user, chair)

    order = ordering.create_order(db, [line(chair)], user=user)

    assert order.status == OrderStatus.PENDING
    assert order.guest_email is None
    assert len(cart_items(db, user)) == 1


def test_create_order_for_guest(db, make_category, make_furniture):
    chair = make_furniture(make_category(), price="49.50")
    guest = GuestInfo(email="guest@example.com", name="Guest")

    order = ordering.create_order(db, [line(chair, 2)], guest=guest)

    assert order.user_id is None
    assert order.guest_email == "guest@example.com"
    assert order.total_amount == Decimal("99.00")


def test_create_order_requires_user_or_guest(db, make_category, make_furniture):
    chair = make_furniture(make_category())
    with pytest.raises(BadRequestError):
        ordering.create_order(db, [line(chair)])


def test_create_order_requires_items(db, make_user):
    with pytest.raises(BadRequestError):
        ordering.create_order(db, [], user=make_user())


def test_failed_commit_rolls_back(db, make_user, make_category, make_furniture, add_to_cart, monkeypatch):
    chair = make_furniture(make_category())
    user = make_user()
    add_to_cart(user, chair)

    def broken_commit():
        raise RuntimeError("disk full")

    monkeypatch.setattr(db, "commit", broken_commit)
    with pytest.raises(RuntimeError):
        ordering.checkout(db, user)
    monkeypatch.undo()

    assert db.query(Order).count() == 0
    assert db.query(CartItem).count() == 1


# ---- status transitions ----

@pytest.mark.parametrize("target", [OrderStatus.COMPLETED, OrderStatus.CANCELLED])
def test_pending_order_can_move_on(db, make_user, make_category, make_furniture, make_order, target):
    order = make_order(make_user(), [(make_furniture(make_category()), 1)], status=OrderStatus.PENDING)

    assert ordering.change_status(db, order.id, target).status == target


@pytest.mark.parametrize("current,message", [
    (OrderStatus.COMPLETED, "Cannot change status of completed order"),
    (OrderStatus.CANCELLED, "Cannot change status of cancelled order"),
])
def test_terminal_status_is_final(db, make_user, make_category, make_furniture, make_order, current, message):
    order = make_order(make_user(), [(make_furniture(make_category()), 1)], status=current)

    with pytest.raises(BadRequestError) as exc:
        ordering.change_status(db, order.id, OrderStatus.PENDING)
    assert exc.value.message == message


def test_same_status_is_a_no_op(db, make_user, make_category, make_furniture, make_order):
    order = make_order(make_user(), [(make_furniture(make_category()), 1)], status=OrderStatus.COMPLETED)

    assert ordering.change_status(db, order.id, OrderStatus.COMPLETED).status == OrderStatus.COMPLETED


def test_change_status_unknown_order(db):
    with pytest.raises(NotFoundError):
        ordering.change_status(db, 99, OrderStatus.CANCELLED)
