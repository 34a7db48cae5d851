import itertools
import os
from datetime import datetime, timedelta
from decimal import Decimal

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from main import app
from models.cart import Cart, CartItem
from models.category import Category
from models.furniture import Furniture, Image
from models.order import Order, OrderItem, OrderStatus
from models.review import Review
from models.users import User
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token

PASSWORD = "secret123"
BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    app.state.monitor.reset()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(email=None, name=None, password=PASSWORD):
        n = next(counter)
        user = User(
            email=email or f"user{n}@example.com",
            name=name or f"User {n}",
            password_hash=get_password_hash(password),
        )
        user.cart = Cart()
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_category(db):
    counter = itertools.count(1)

    def _make(name=None, description=None):
        category = Category(name=name or f"Category {next(counter)}", description=description)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category

    return _make


@pytest.fixture
def make_furniture(db):
    """Each new item is one minute newer than the previous one."""
    counter = itertools.count(1)

    def _make(category, price="100.00", name=None, sku=None, images=1):
        n = next(counter)
        furniture = Furniture(
            name=name or f"Item {n}",
            description=f"Description of item {n}",
            price=Decimal(price),
            sku=sku or f"SKU-{n:03d}",
            width_cm=Decimal("50.00"),
            height_cm=Decimal("60.00"),
            depth_cm=Decimal("70.00"),
            category_id=category.id,
            created_at=BASE_TIME + timedelta(minutes=n),
            images=[Image(url=f"https://example.com/{n}/{i}.jpg") for i in range(images)],
        )
        db.add(furniture)
        db.commit()
        db.refresh(furniture)
        return furniture

    return _make


@pytest.fixture
def make_order(db):
    def _make(user, lines, status=OrderStatus.COMPLETED):
        order = Order(
            user_id=user.id if user else None,
            status=status,
            total_amount=sum(f.price * qty for f, qty in lines),
            items=[OrderItem(furniture_id=f.id, quantity=qty, unit_price=f.price) for f, qty in lines],
        )
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    return _make


@pytest.fixture
def make_review(db):
    def _make(user, furniture, rating=5, comment=None):
        review = Review(user_id=user.id, furniture_id=furniture.id, rating=rating, comment=comment)
        db.add(review)
        db.commit()
        db.refresh(review)
        return review

    return _make


@pytest.fixture
def add_to_cart(db):
    def _add(user, furniture, quantity=1):
        cart = db.query(Cart).filter(Cart.user_id == user.id).one()
        item = CartItem(cart_id=cart.id, furniture_id=furniture.id, quantity=quantity)
        db.add(item)
        db.commit()
        return item

    return _add


def auth_headers(user):
    token = create_access_token({"sub": user.email, "id": user.id})
    return {"Authorization": f"Bearer {token}"}
