import pytest
from bson import ObjectId

import catalog
from errors import NotFound, ValidationFailure
from geo import distance_miles, round_miles


@pytest.fixture
def two_sellers(make_seller, make_product):
    near = make_seller(name="The Candle Nook", latitude=40.94, longitude=-123.63)
    far = make_seller(name="Sarah's Kitchen", latitude=41.5, longitude=-124.0)
    ids = {
        "candle": make_product(near, title="Candle", category="body"),
        "soap": make_product(far, title="Soap", category="Body"),
        "jam": make_product(far, title="Jam", category="food"),
    }
    return near, far, ids


def titles(views):
    return sorted(v.title for v in views)


def test_all_category_matches_no_filter(store, two_sellers):
    unfiltered = catalog.list_nearby(store, 40.94, -123.63)
    for value in ("ALL", "all", "All"):
        assert titles(catalog.list_nearby(store, 40.94, -123.63, category=value)) == titles(unfiltered)
    assert titles(unfiltered) == ["Candle", "Jam", "Soap"]


def test_category_match_is_case_insensitive(store, two_sellers):
    views = catalog.list_nearby(store, 40.94, -123.63, category="body")
    assert titles(views) == ["Candle", "Soap"]
    assert all(v.category.lower() == "body" for v in views)
    assert titles(catalog.list_nearby(store, 40.94, -123.63, category="BODY")) == ["Candle", "Soap"]


def test_category_is_not_a_pattern(store, two_sellers):
    assert catalog.list_nearby(store, 40.94, -123.63, category="b.*") == []


def test_radius_boundary_is_inclusive(store, two_sellers):
    boundary = round_miles(distance_miles(40.94, -123.63, 41.5, -124.0))
    included = catalog.list_nearby(store, 40.94, -123.63, radius_miles=boundary)
    assert titles(included) == ["Candle", "Jam", "Soap"]

    excluded = catalog.list_nearby(store, 40.94, -123.63, radius_miles=boundary - 0.1)
    assert titles(excluded) == ["Candle"]


def test_absent_radius_uses_sentinel(store, make_seller, make_product):
    london = make_seller(latitude=51.5074, longitude=-0.1278)
    make_product(london, title="Far away")
    assert titles(catalog.list_nearby(store, 40.94, -123.63)) == ["Far away"]
    assert catalog.list_nearby(store, 40.94, -123.63, default_radius_miles=100) == []


def test_view_shape(store, make_seller, make_product):
    seller_id = make_seller()
    product_id = make_product(seller_id, image_url="https://cdn.example/candle.jpg")
    view = catalog.list_nearby(store, 40.9401, -123.6305)[0]

    assert view.id == product_id
    assert view.maker_id == seller_id
    assert view.seller.id == seller_id
    assert view.images == ["https://cdn.example/candle.jpg"]
    assert view.primary_image == "https://cdn.example/candle.jpg"
    assert view.is_favorite is False
    assert view.distance_miles == view.seller.distance_miles == 0.0
    assert view.created_at.endswith("Z")
    assert view.pickup_windows[0].formatted == "Mon-Fri 17:00 - 19:00"
    assert view.pickup_location.is_exact is False


def test_explicit_images_are_kept(store, make_seller, make_product):
    seller_id = make_seller()
    make_product(seller_id, images=["a.jpg", "b.jpg"], primary_image="main.jpg", image_url="legacy.jpg")
    view = catalog.list_nearby(store, 40.94, -123.63)[0]
    assert view.images == ["a.jpg", "b.jpg"]
    assert view.primary_image == "main.jpg"


def test_product_without_images(store, make_seller, make_product):
    make_product(make_seller())
    view = catalog.list_nearby(store, 40.94, -123.63)[0]
    assert view.images == []
    assert view.primary_image is None


def test_get_product_defaults_to_seller_location(store, make_seller, make_product):
    product_id = make_product(make_seller(latitude=45.0, longitude=-120.0))
    view = catalog.get_product(store, product_id)
    assert view.distance_miles == 0.0
    assert view.pickup_location.distance_miles == 0.0

    located = catalog.get_product(store, product_id, latitude=40.94, longitude=-123.63)
    assert located.distance_miles > 0


def test_get_missing_product_returns_none(store):
    assert catalog.get_product(store, str(ObjectId())) is None


def test_get_product_rejects_malformed_id(store):
    with pytest.raises(ValidationFailure):
        catalog.get_product(store, "not-an-id")


def test_update_product(store, make_seller, make_product):
    product_id = make_product(make_seller(), quantity_available=12, quantity_left=10)
    view = catalog.update_product(store, product_id, {
        "title": "Rosemary Candle",
        "price": 18.5,
        "quantity_available": 4,
        "tags": ["new"],
    })
    assert view.title == "Rosemary Candle"
    assert view.price == 18.5
    assert view.quantity_available == 4
    assert view.quantity_left == 4
    assert view.tags == ["new"]
    assert catalog.get_product(store, product_id).title == "Rosemary Candle"


def test_update_product_not_found(store):
    with pytest.raises(NotFound):
        catalog.update_product(store, str(ObjectId()), {"title": "x"})


@pytest.mark.parametrize("changes", [
    {"price": -1},
    {"quantity_available": -3},
    {"title": None},
    {"seller_id": "someone-else"},
])
def test_update_product_validation(store, make_seller, make_product, changes):
    product_id = make_product(make_seller())
    with pytest.raises(ValidationFailure):
        catalog.update_product(store, product_id, changes)


def test_create_category_defaults(store):
    created = catalog.create_category(store, "Bakery", "croissant")
    assert created.is_active is True
    assert created.count == 0
    listed = catalog.list_categories(store)
    assert [(c.id, c.label) for c in listed] == [(created.id, "Bakery")]


def test_create_category_rejects_negative_count(store):
    with pytest.raises(ValidationFailure):
        catalog.create_category(store, "Bakery", "croissant", count=-1)


def test_list_users(store, make_user):
    user_id = make_user()
    users = catalog.list_users(store)
    assert [(u.id, u.name) for u in users] == [(user_id, "Ada Lovelace")]
