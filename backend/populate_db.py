import os
import random
import sys
from decimal import Decimal

import pandas as pd

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

# Database models and setup
from database import SessionLocal, init_db
from models.cart import Cart, CartItem
from models.category import Category
from models.furniture import Furniture, Image
from models.order import Order, OrderItem, OrderStatus
from models.review import Review
from models.users import User
from utils.hashing import get_password_hash

# Configuration
DEFAULT_PASSWORD = "password123"

USERS = [
    ("john.doe@example.com", "John Doe"),
    ("jane.smith@example.com", "Jane Smith"),
    ("mike.wilson@example.com", "Mike Wilson"),
]

CATEGORIES = [
    ("Living Room", "Comfortable furniture for living spaces"),
    ("Bedroom", "Furniture for restful bedrooms"),
    ("Dining Room", "Elegant dining furniture"),
    ("Office", "Professional office furniture"),
    ("Lighting", "Decorative and functional lighting"),
]

CATALOG = pd.DataFrame(
    [
        ("Ergonomic Office Chair", "Professional ergonomic chair with lumbar support, perfect for long work sessions",
         "249.99", "CH-001", "Office", "70.00", "110.00", "70.00",
         ["https://example.com/images/chair-front.png", "https://example.com/images/chair-side.jpg"]),
        ("Premium Leather Sofa Set", "Luxurious 3-piece leather sofa set with premium Italian leather upholstery",
         "1299.99", "SS-001", "Living Room", "280.00", "85.00", "95.00",
         ["https://example.com/images/leather-sofa.jpg"]),
        ("Modern Glass Dining Table", "Contemporary glass-top dining table with chrome legs, seats 6 people comfortably",
         "699.99", "DT-001", "Dining Room", "210.00", "75.00", "100.00",
         ["https://example.com/images/glass-table.jpg"]),
        ("Velvet Accent Chair", "Elegant single-seater velvet chair with gold-finished legs, perfect accent piece",
         "349.99", "AC-001", "Living Room", "90.00", "85.00", "80.00",
         ["https://example.com/images/velvet-chair.jpg"]),
        ("Solid Oak Platform Bed", "Handcrafted solid oak platform bed with minimalist design and built-in nightstands",
         "999.99", "BD-001", "Bedroom", "210.00", "110.00", "200.00",
         ["https://example.com/images/oak-bed.jpg"]),
        ("Memory Foam Mattress Bed", "Complete bed set with premium memory foam mattress and adjustable base",
         "1299.00", "BD-002", "Bedroom", "220.00", "120.00", "210.00",
         ["https://example.com/images/foam-bed.jpeg"]),
        ("Walnut Bedside Table", "Elegant walnut bedside table with soft-close drawers and wireless charging pad",
         "199.99", "NT-001", "Bedroom", "60.00", "70.00", "45.00",
         ["https://example.com/images/bedside-table.jpg"]),
        ("Sectional Sofa with Ottoman", "Large sectional sofa with matching ottoman, perfect for family gatherings",
         "1499.99", "SS-002", "Living Room", "300.00", "90.00", "100.00",
         ["https://example.com/images/sectional-sofa.jpg"]),
        ("Vintage Table Lamp", "Classic brass table lamp with fabric shade, perfect for reading nooks",
         "79.99", "LP-001", "Lighting", "25.00", "50.00", "25.00",
         ["https://example.com/images/table-lamp.jpg"]),
        ("Designer Floor Lamp", "Modern arc floor lamp with marble base and adjustable LED lighting",
         "149.99", "LP-002", "Lighting", "30.00", "60.00", "30.00",
         ["https://example.com/images/floor-lamp.jpg"]),
        ("Executive Desk", "Large executive desk with built-in cable management and file drawers",
         "599.99", "DK-001", "Office", "180.00", "75.00", "90.00",
         ["https://example.com/images/executive-desk.jpg"]),
        ("Dining Chair Set", "Set of 4 upholstered dining chairs with solid wood frames",
         "399.99", "DC-001", "Dining Room", "45.00", "85.00", "50.00",
         ["https://example.com/images/dining-chairs.jpg"]),
    ],
    columns=["name", "description", "price", "sku", "category", "width_cm", "height_cm", "depth_cm", "images"],
)

# (user index, [(catalog index, quantity)], status)
ORDERS = [
    (0, [(0, 1), (2, 1)], OrderStatus.COMPLETED),
    (1, [(1, 1)], OrderStatus.COMPLETED),
    (2, [(4, 1), (6, 2)], OrderStatus.PENDING),
    (2, [(8, 1)], OrderStatus.COMPLETED),
]

# (user index, catalog index, rating, comment); only for completed purchases
REVIEWS = [
    (0, 0, 5, "Excellent chair! Very comfortable for long work sessions. Highly recommended!"),
    (0, 2, 4, "Beautiful dining table, great quality glass and sturdy construction."),
    (1, 1, 5, "Amazing sofa set! The leather quality is outstanding and very comfortable."),
    (2, 8, 4, "Nice lamp with good lighting. Perfect for reading corner."),
]
# End Configuration


def clear_database(session) -> None:
    """Remove all rows, children before parents."""
    for model in (CartItem, Cart, Review, OrderItem, Order, Image, Furniture, Category, User):
        session.query(model).delete()
    session.commit()
    print("Cleared existing data")


def load_all_data(session) -> None:
    password_hash = get_password_hash(DEFAULT_PASSWORD)
    users = [User(email=email, name=name, password_hash=password_hash) for email, name in USERS]
    session.add_all(users)

    categories = {name: Category(name=name, description=desc) for name, desc in CATEGORIES}
    session.add_all(categories.values())
    session.flush()
    print(f"Created {len(users)} users and {len(categories)} categories")

    furniture = []
    for _, row in CATALOG.iterrows():
        item = Furniture(
            name=row["name"],
            description=row["description"],
            price=Decimal(row["price"]),
            sku=row["sku"],
            width_cm=Decimal(row["width_cm"]),
            height_cm=Decimal(row["height_cm"]),
            depth_cm=Decimal(row["depth_cm"]),
            category=categories[row["category"]],
            images=[Image(url=url) for url in row["images"]],
        )
        session.add(item)
        furniture.append(item)
    session.flush()
    print(f"Created {len(furniture)} furniture items")

    for user_idx, lines, status in ORDERS:
        order = Order(
            user_id=users[user_idx].id,
            status=status,
            total_amount=sum(furniture[i].price * qty for i, qty in lines),
            items=[
                OrderItem(furniture_id=furniture[i].id, quantity=qty, unit_price=furniture[i].price)
                for i, qty in lines
            ],
        )
        session.add(order)
    print(f"Created {len(ORDERS)} orders")

    for user_idx, item_idx, rating, comment in REVIEWS:
        session.add(Review(
            user_id=users[user_idx].id,
            furniture_id=furniture[item_idx].id,
            rating=rating,
            comment=comment,
        ))
    print(f"Created {len(REVIEWS)} reviews")

    # Every user starts with one random item in the cart
    for user in users:
        session.add(Cart(
            user_id=user.id,
            items=[CartItem(furniture_id=random.choice(furniture).id, quantity=random.randint(1, 3))],
        ))
    print(f"Created {len(users)} carts")

    session.commit()


def populate_database():
    """Main execution function to populate database."""
    init_db()
    session = SessionLocal()
    try:
        clear_database(session)
        load_all_data(session)
        print("Database seeding completed successfully!")
    finally:
        session.close()


if __name__ == "__main__":
    populate_database()
