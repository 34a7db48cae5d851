from decimal import Decimal

import pytest

from conftest import auth_headers
from models.furniture import Furniture, Image


NEW_ITEM = {
    "name": "Oak Bookshelf",
    "description": "Five shelves of solid oak",
    "price": "349.00",
    "sku": "BS-001",
    "widthCm": "80.00",
    "heightCm": "180.00",
    "depthCm": "35.00",
    "images": [{"url": "https://example.com/bookshelf.jpg"}],
}


@pytest.fixture
def catalog(make_category, make_furniture):
    office = make_category(name="Office")
    living = make_category(name="Living Room")
    return {
        "desk": make_furniture(office, price="599.99", name="Executive Desk"),
        "chair": make_furniture(office, price="249.99", name="Ergonomic Office Chair"),
        "sofa": make_furniture(living, price="1299.99", name="Leather Sofa"),
        "office": office,
        "living": living,
    }


def test_list_defaults_to_newest_first(client, catalog):
    res = client.get("/api/furnitures")

    assert res.status_code == 200
    data = res.json()["data"]
    assert [i["name"] for i in data["items"]] == ["Leather Sofa", "Ergonomic Office Chair", "Executive Desk"]
    assert data["pagination"] == {
        "page": 1, "limit": 10, "totalCount": 3, "totalPages": 1, "hasNext": False, "hasPrev": False,
    }


def test_list_filters(client, catalog):
    by_category = client.get("/api/furnitures", params={"category": "office"}).json()["data"]
    assert {i["name"] for i in by_category["items"]} == {"Executive Desk", "Ergonomic Office Chair"}

    by_search = client.get("/api/furnitures", params={"search": "sofa"}).json()["data"]
    assert [i["name"] for i in by_search["items"]] == ["Leather Sofa"]

    by_price = client.get("/api/furnitures", params={"minPrice": 300, "maxPrice": 1000}).json()["data"]
    assert [i["name"] for i in by_price["items"]] == ["Executive Desk"]


def test_list_sort_and_paginate(client, catalog):
    res = client.get("/api/furnitures", params={"sortBy": "price", "sortOrder": "asc", "limit": 2, "page": 1})

    data = res.json()["data"]
    assert [Decimal(i["price"]) for i in data["items"]] == [Decimal("249.99"), Decimal("599.99")]
    assert data["pagination"]["hasNext"] is True
    assert data["pagination"]["totalPages"] == 2


def test_list_rejects_large_limit(client):
    res = client.get("/api/furnitures", params={"limit": 101})

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


def test_categories_with_counts(client, catalog, make_category):
    make_category(name="Bedroom")

    data = client.get("/api/furnitures/categories").json()["data"]

    assert [(c["name"], c["furnitureCount"]) for c in data] == [
        ("Bedroom", 0), ("Living Room", 1), ("Office", 2),
    ]


def test_detail_includes_reviews_and_aggregate(client, catalog, make_user, make_review):
    desk = catalog["desk"]
    make_review(make_user(name="Ann"), desk, rating=5, comment="Sturdy and roomy desk")
    make_review(make_user(name="Bob"), desk, rating=3)

    res = client.get(f"/api/furnitures/{desk.id}")

    data = res.json()["data"]
    assert data["averageRating"] == pytest.approx(4.0)
    assert data["reviewCount"] == 2
    assert {r["user"]["name"] for r in data["reviews"]} == {"Ann", "Bob"}
    assert data["category"]["name"] == "Office"


def test_detail_not_found(client):
    res = client.get("/api/furnitures/999")

    assert res.status_code == 404
    assert res.json() == {"success": False, "error": {"message": "Furniture not found", "code": "NOT_FOUND"}}


def test_related_items_share_category(client, catalog):
    res = client.get(f"/api/furnitures/recommendations/{catalog['desk'].id}")

    assert [i["id"] for i in res.json()["data"]] == [catalog["chair"].id]


def test_create_requires_auth(client, catalog):
    res = client.post("/api/furnitures", json={**NEW_ITEM, "categoryId": catalog["office"].id})

    assert res.status_code == 401


def test_create(client, db, catalog, make_user):
    res = client.post(
        "/api/furnitures",
        json={**NEW_ITEM, "categoryId": catalog["living"].id},
        headers=auth_headers(make_user()),
    )

    assert res.status_code == 201
    data = res.json()["data"]
    assert data["sku"] == "BS-001"
    assert data["images"][0]["url"] == "https://example.com/bookshelf.jpg"
    assert data["averageRating"] is None
    assert db.query(Furniture).filter(Furniture.sku == "BS-001").count() == 1


def test_create_unknown_category(client, make_user):
    res = client.post("/api/furnitures", json={**NEW_ITEM, "categoryId": 42}, headers=auth_headers(make_user()))

    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Category not found"


def test_create_duplicate_sku(client, catalog, make_user):
    payload = {**NEW_ITEM, "categoryId": catalog["office"].id, "sku": catalog["desk"].sku}

    res = client.post("/api/furnitures", json=payload, headers=auth_headers(make_user()))

    assert res.status_code == 409


def test_create_rejects_non_positive_price(client, catalog, make_user):
    payload = {**NEW_ITEM, "categoryId": catalog["office"].id, "price": "0"}

    res = client.post("/api/furnitures", json=payload, headers=auth_headers(make_user()))

    assert res.status_code == 400


def test_update_replaces_images(client, db, catalog, make_user):
    desk = catalog["desk"]

    res = client.put(
        f"/api/furnitures/{desk.id}",
        json={"price": "549.99", "images": [{"url": "https://example.com/new.jpg"}]},
        headers=auth_headers(make_user()),
    )

    assert res.status_code == 200
    data = res.json()["data"]
    assert Decimal(data["price"]) == Decimal("549.99")
    assert [i["url"] for i in data["images"]] == ["https://example.com/new.jpg"]
    assert db.query(Image).filter(Image.furniture_id == desk.id).count() == 1


def test_delete(client, db, catalog, make_user):
    sofa_id = catalog["sofa"].id
    headers = auth_headers(make_user())

    res = client.delete(f"/api/furnitures/{sofa_id}", headers=headers)

    assert res.status_code == 200
    assert db.query(Furniture).filter(Furniture.id == sofa_id).count() == 0


def test_delete_ordered_furniture_is_refused(client, catalog, make_user, make_order):
    user = make_user()
    make_order(user, [(catalog["sofa"], 1)])

    res = client.delete(f"/api/furnitures/{catalog['sofa'].id}", headers=auth_headers(user))

    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Cannot delete furniture that has been ordered"
