from decimal import Decimal

import pytest

from models.order import OrderStatus
from schemas.recommendation import Algorithm
from utils.errors import BadRequestError, NotFoundError
from utils.recommender import RecommendationComposer, Strategy


def ids(result):
    return [item.id for item in result.recommendations]


@pytest.fixture
def composer(db):
    return RecommendationComposer(db)


@pytest.mark.parametrize("limit", [0, 51, -3])
def test_limit_out_of_range(composer, limit):
    with pytest.raises(BadRequestError) as exc:
        composer.popular(limit=limit)
    assert exc.value.message == "Limit must be between 1 and 50"


def test_limit_bounds_are_inclusive(composer, make_category, make_furniture):
    make_furniture(make_category())
    assert len(composer.popular(limit=1).recommendations) == 1
    assert len(composer.popular(limit=50).recommendations) == 1


# ---- popularity ----

def test_popular_ranks_by_orders_then_reviews_then_recency(
    composer, make_user, make_category, make_furniture, make_order, make_review
):
    category = make_category()
    best_seller = make_furniture(category)
    reviewed = make_furniture(category)
    newest = make_furniture(category)
    runner_up = make_furniture(category)

    buyer = make_user()
    make_order(buyer, [(best_seller, 1)])
    make_order(make_user(), [(best_seller, 3), (runner_up, 1)], status=OrderStatus.PENDING)
    make_review(buyer, reviewed, rating=4)

    result = composer.popular(limit=10)

    assert result.algorithm == Algorithm.POPULAR
    assert ids(result) == [best_seller.id, runner_up.id, reviewed.id, newest.id]
    assert [item.order_count for item in result.recommendations] == [2, 1, 0, 0]


def test_popular_honours_exclude_id(composer, make_category, make_furniture):
    category = make_category()
    first, second = make_furniture(category), make_furniture(category)

    assert ids(composer.popular(limit=10, exclude_id=second.id)) == [first.id]


# ---- category / similar ----

def test_category_strategy(composer, make_user, make_category, make_furniture, make_review):
    office, bedroom = make_category(name="Office"), make_category(name="Bedroom")
    desk = make_furniture(office)
    chair = make_furniture(office)
    make_furniture(bedroom)
    make_review(make_user(), desk)

    result = composer.for_category(office.id, limit=10)

    assert result.algorithm == Algorithm.CATEGORY_BASED
    assert ids(result) == [desk.id, chair.id]
    assert ids(composer.for_category(office.id, exclude_id=desk.id)) == [chair.id]


def test_category_strategy_unknown_category(composer):
    with pytest.raises(NotFoundError):
        composer.for_category(999)


def test_similar_uses_inclusive_price_band(composer, make_category, make_furniture):
    living, office = make_category(), make_category()
    reference = make_furniture(living, price="100.00")
    low_edge = make_furniture(living, price="70.00")
    high_edge = make_furniture(living, price="130.00")
    make_furniture(living, price="69.99")
    make_furniture(living, price="130.01")
    make_furniture(office, price="100.00")

    result = composer.similar(reference.id, limit=10)

    assert result.algorithm == Algorithm.CONTENT_BASED
    assert set(ids(result)) == {low_edge.id, high_edge.id}
    assert reference.id not in ids(result)


def test_similar_unknown_furniture(composer):
    with pytest.raises(NotFoundError):
        composer.similar(12345)


def test_recommend_dispatches_by_strategy(composer, make_category, make_furniture):
    category = make_category()
    item = make_furniture(category)

    assert composer.recommend(Strategy.POPULAR).algorithm == Algorithm.POPULAR
    assert composer.recommend(Strategy.CATEGORY, category.id).algorithm == Algorithm.CATEGORY_BASED
    assert composer.recommend(Strategy.SIMILAR, item.id).algorithm == Algorithm.CONTENT_BASED


# ---- user / hybrid ----

def test_user_strategy_unknown_user(composer):
    with pytest.raises(NotFoundError):
        composer.for_user(404)


def test_user_without_completed_orders_gets_popular(
    composer, make_user, make_category, make_furniture, make_order
):
    category = make_category()
    first, second = make_furniture(category), make_furniture(category)
    user = make_user()
    make_order(user, [(first, 1)], status=OrderStatus.PENDING)

    result = composer.for_user(user.id, limit=10, exclude_id=first.id)

    assert result.algorithm == Algorithm.POPULAR
    assert ids(result) == [second.id]


def test_hybrid_prefers_purchased_categories_and_skips_purchases(
    composer, make_user, make_category, make_furniture, make_order, make_review
):
    living, office = make_category(), make_category()
    bought = make_furniture(living)
    sofa = make_furniture(living)
    armchair = make_furniture(living)
    desk = make_furniture(office)

    user = make_user()
    make_order(user, [(bought, 1)])
    make_review(make_user(), sofa)

    result = composer.for_user(user.id, limit=2)

    assert result.algorithm == Algorithm.HYBRID
    assert ids(result) == [sofa.id, armchair.id]
    assert desk.id not in ids(result)


def test_hybrid_pads_with_popular_items_without_duplicates(
    composer, make_user, make_category, make_furniture, make_order
):
    living, office = make_category(), make_category()
    bought = make_furniture(living)
    sofa = make_furniture(living)
    desk = make_furniture(office)
    chair = make_furniture(office)

    user = make_user()
    make_order(user, [(bought, 1)])
    make_order(make_user(), [(chair, 1)])

    result = composer.for_user(user.id, limit=10, exclude_id=desk.id)
    recommended = ids(result)

    assert result.algorithm == Algorithm.HYBRID
    assert len(recommended) == len(set(recommended))
    assert desk.id not in recommended
    # sofa from the purchased category, bought back through the category tier, chair by popularity
    assert recommended == [sofa.id, bought.id, chair.id]
    assert result.recommendations[1].order_count is None
    assert result.recommendations[2].order_count == 1


def test_hybrid_category_tier_comes_before_popular_items(
    composer, make_user, make_category, make_furniture, make_order
):
    living, office = make_category(), make_category()
    bought = make_furniture(living)
    sofa = make_furniture(living)
    desk = make_furniture(office)

    user = make_user()
    make_order(user, [(bought, 1)])
    make_order(make_user(), [(desk, 1)])
    make_order(make_user(), [(desk, 1)])

    result = composer.for_user(user.id, limit=2)

    assert ids(result) == [sofa.id, bought.id]
    assert [item.order_count for item in result.recommendations] == [None, None]


def test_hybrid_category_tier_fills_most_purchased_category_first(
    composer, make_user, make_category, make_furniture, make_order
):
    living, office, garden = make_category(), make_category(), make_category()
    armchair = make_furniture(living)
    ottoman = make_furniture(living)
    desk = make_furniture(office)
    lamp = make_furniture(garden)

    user = make_user()
    make_order(user, [(desk, 1)])
    make_order(user, [(armchair, 1), (ottoman, 1)])
    make_order(make_user(), [(lamp, 1)])

    result = composer.for_user(user.id, limit=4)

    # Everything in the purchased categories was bought, so the collaborative tier is empty
    assert ids(result) == [ottoman.id, armchair.id, desk.id, lamp.id]
    assert result.recommendations[3].order_count == 1


def test_hybrid_counts_only_completed_history(
    composer, make_user, make_category, make_furniture, make_order
):
    living, office = make_category(), make_category()
    completed = make_furniture(living)
    pending = make_furniture(office)
    sofa = make_furniture(living)
    desk = make_furniture(office)

    user = make_user()
    make_order(user, [(completed, 1)])
    make_order(user, [(pending, 1)], status=OrderStatus.PENDING)

    result = composer.for_user(user.id, limit=1)

    assert ids(result) == [sofa.id]
    assert desk.id not in ids(result)


def test_hybrid_never_exceeds_limit(composer, make_user, make_category, make_furniture, make_order):
    category = make_category()
    bought = make_furniture(category)
    for _ in range(5):
        make_furniture(category)
    user = make_user()
    make_order(user, [(bought, 1)])

    result = composer.for_user(user.id, limit=3)

    assert len(result.recommendations) == 3
    assert bought.id not in ids(result)


def test_recommendations_carry_rating_aggregate(
    composer, make_user, make_category, make_furniture, make_review
):
    item = make_furniture(make_category(), price="199.99")
    make_review(make_user(), item, rating=4)
    make_review(make_user(), item, rating=5)

    [out] = composer.popular().recommendations

    assert out.average_rating == pytest.approx(4.5)
    assert out.review_count == 2
    assert out.price == Decimal("199.99")
