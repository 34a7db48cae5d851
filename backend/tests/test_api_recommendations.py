import pytest

from models.order import OrderStatus


@pytest.fixture
def store(make_user, make_category, make_furniture, make_order, make_review):
    living, office = make_category(name="Living Room"), make_category(name="Office")
    sofa = make_furniture(living, price="1000.00")
    armchair = make_furniture(living, price="800.00")
    ottoman = make_furniture(living, price="200.00")
    desk = make_furniture(office, price="600.00")

    regular = make_user()
    make_order(regular, [(sofa, 1)])
    make_review(regular, sofa, rating=5)
    make_order(make_user(), [(desk, 1)], status=OrderStatus.PENDING)
    return {
        "living": living, "office": office, "regular": regular,
        "sofa": sofa, "armchair": armchair, "ottoman": ottoman, "desk": desk,
    }


def ids(res):
    return [item["id"] for item in res.json()["data"]["recommendations"]]


def test_user_recommendations_hybrid(client, store):
    res = client.get(f"/api/recommendations/user/{store['regular'].id}", params={"limit": 2})

    assert res.status_code == 200
    assert res.json()["data"]["algorithm"] == "hybrid"
    assert ids(res) == [store["ottoman"].id, store["armchair"].id]


def test_new_user_gets_popular(client, store, make_user):
    res = client.get(f"/api/recommendations/user/{make_user().id}")

    assert res.json()["data"]["algorithm"] == "popular"
    # Both were ordered once; the sofa wins on reviews
    assert ids(res)[:2] == [store["sofa"].id, store["desk"].id]


def test_unknown_user(client):
    res = client.get("/api/recommendations/user/999")

    assert res.status_code == 404
    assert res.json()["error"]["message"] == "User not found"


def test_popular_with_exclusion(client, store):
    res = client.get("/api/recommendations/popular", params={"excludeId": store["desk"].id, "limit": 1})

    item = res.json()["data"]["recommendations"][0]
    assert item["id"] == store["sofa"].id
    assert item["orderCount"] == 1
    assert item["averageRating"] == 5
    assert item["reviewCount"] == 1
    assert "reviews" not in item


def test_category_recommendations(client, store):
    res = client.get(f"/api/recommendations/category/{store['office'].id}")

    assert res.json()["data"]["algorithm"] == "category-based"
    assert ids(res) == [store["desk"].id]


def test_similar_recommendations(client, store):
    res = client.get(f"/api/recommendations/similar/{store['sofa'].id}")

    assert res.json()["data"]["algorithm"] == "content-based"
    assert ids(res) == [store["armchair"].id]


@pytest.mark.parametrize("limit", ["0", "51"])
def test_limit_is_validated(client, limit):
    res = client.get("/api/recommendations/popular", params={"limit": limit})

    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Limit must be between 1 and 50"


def test_missing_targets(client):
    assert client.get("/api/recommendations/category/999").status_code == 404
    assert client.get("/api/recommendations/similar/999").status_code == 404
