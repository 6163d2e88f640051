import pytest

from geo import distance_miles
from pickup import (
    FALLBACK_ADDRESS,
    PLACEHOLDER_ADDRESS,
    city_from_address,
    resolve_pickup,
    snapshot_pickup,
)
from schemas import PickupLocation, PickupWindow, Product, Seller


def seller(**overrides):
    data = {
        "id": "seller-1",
        "name": "The Candle Nook",
        "latitude": 40.94,
        "longitude": -123.63,
        "pickup_days": "Mon-Fri",
        "pickup_start_time": "17:00",
        "pickup_end_time": "19:00",
    }
    data.update(overrides)
    return Seller(**data)


def product(**overrides):
    data = {"id": "product-1", "seller_id": "seller-1", "title": "Candle", "price": 15.0}
    data.update(overrides)
    return Product(**data)


def test_explicit_windows_are_used_verbatim():
    windows = [PickupWindow(days="Sat", start_time="09:00", end_time="11:00", formatted="Sat 9-11 AM")]
    info = resolve_pickup(product(pickup_windows=windows), seller(), 40.94, -123.63)
    assert info.windows == windows


def test_window_synthesized_from_seller_schedule():
    info = resolve_pickup(product(), seller(), 40.94, -123.63)
    assert len(info.windows) == 1
    window = info.windows[0]
    assert window.days == "Mon-Fri"
    assert window.start_time == "17:00"
    assert window.end_time == "19:00"
    assert window.formatted == "Mon-Fri 17:00 - 19:00"


@pytest.mark.parametrize("days", [None, ""])
def test_no_windows_without_schedule(days):
    info = resolve_pickup(product(), seller(pickup_days=days), 40.94, -123.63)
    assert info.windows == []


def test_explicit_location_wins():
    location = PickupLocation(address="1 Elm St, Arcata", latitude=40.86, longitude=-124.08,
                              distance_miles=5.5, is_exact=True)
    info = resolve_pickup(product(pickup_location=location), seller(), 0.0, 0.0)
    assert info.location == location


def test_location_synthesized_from_seller():
    info = resolve_pickup(product(), seller(), 40.9, -123.6)
    location = info.location
    assert location.address == PLACEHOLDER_ADDRESS
    assert location.latitude == 40.94
    assert location.longitude == -123.63
    assert location.is_exact is False
    assert location.distance_miles == round(distance_miles(40.9, -123.6, 40.94, -123.63), 1)


def test_snapshot_uses_fallbacks_without_product_data():
    snapshot = snapshot_pickup(product(), seller(pickup_days=None))
    assert snapshot.location.address == FALLBACK_ADDRESS
    assert snapshot.location.city == "Willow Creek"
    assert snapshot.location.distance_miles == 0.7
    assert snapshot.location.coordinates.lat == 40.94
    assert snapshot.location.coordinates.lng == -123.63
    assert snapshot.window.day == "Sat"
    assert snapshot.window.formatted == "Sat 2:00 PM - 4:00 PM"


def test_snapshot_prefers_seller_schedule_over_fallback_window():
    snapshot = snapshot_pickup(product(), seller())
    assert snapshot.window.day == "Mon-Fri"
    assert snapshot.window.formatted == "Mon-Fri 17:00 - 19:00"


def test_snapshot_copies_explicit_product_data():
    p = product(
        pickup_windows=[PickupWindow(days="Tue", start_time="08:00", end_time="09:00", formatted="Tue 8-9 AM")],
        pickup_location=PickupLocation(address="88 Oak Ave, Willow Creek", latitude=40.9382,
                                       longitude=-123.6321, distance_miles=1.2, is_exact=False),
    )
    snapshot = snapshot_pickup(p, seller())
    assert snapshot.location.address == "88 Oak Ave, Willow Creek"
    assert snapshot.location.distance_miles == 1.2
    assert snapshot.location.coordinates.lat == 40.9382
    assert snapshot.window.day == "Tue"
    assert snapshot.window.formatted == "Tue 8-9 AM"


@pytest.mark.parametrize("address,city", [
    ("88 Oak Ave, Willow Creek", "Willow Creek"),
    ("1 Main St, Suite 2, Arcata", "Arcata"),
    ("No comma here", "Willow Creek"),
    (None, "Willow Creek"),
])
def test_city_from_address(address, city):
    assert city_from_address(address) == city
