"""
Pickup resolution.

A product may carry its own pickup windows and location. When it does not,
the seller's recurring schedule and coordinate stand in, and failing that a
fixed placeholder is used.
"""

from typing import List, NamedTuple, Optional

from geo import distance_miles, round_miles
from schemas import (
    Coordinates,
    PickupLocation,
    PickupSnapshot,
    PickupWindow,
    Product,
    Seller,
    SnapshotLocation,
    SnapshotWindow,
)

PLACEHOLDER_ADDRESS = "88 Oak Ave, Willow Creek"
FALLBACK_ADDRESS = "124 Maple St, Willow Creek"
FALLBACK_CITY = "Willow Creek"
FALLBACK_DISTANCE_MILES = 0.7
FALLBACK_WINDOW = SnapshotWindow(
    day="Sat",
    start_time="14:00",
    end_time="16:00",
    formatted="Sat 2:00 PM - 4:00 PM",
)


class PickupInfo(NamedTuple):
    windows: List[PickupWindow]
    location: PickupLocation


def seller_window(seller: Seller) -> Optional[PickupWindow]:
    if not seller.pickup_days:
        return None
    return PickupWindow(
        days=seller.pickup_days,
        start_time=seller.pickup_start_time,
        end_time=seller.pickup_end_time,
        formatted=f"{seller.pickup_days} {seller.pickup_start_time} - {seller.pickup_end_time}",
    )


def resolve_windows(product: Product, seller: Seller) -> List[PickupWindow]:
    if product.pickup_windows:
        return list(product.pickup_windows)
    window = seller_window(seller)
    return [window] if window else []


def resolve_location(product: Product, seller: Seller, ref_lat: float, ref_lon: float) -> PickupLocation:
    if product.pickup_location:
        return product.pickup_location
    miles = distance_miles(ref_lat, ref_lon, seller.latitude, seller.longitude)
    return PickupLocation(
        address=PLACEHOLDER_ADDRESS,
        latitude=seller.latitude,
        longitude=seller.longitude,
        distance_miles=round_miles(miles),
        is_exact=False,
    )


def resolve_pickup(product: Product, seller: Seller, ref_lat: float, ref_lon: float) -> PickupInfo:
    return PickupInfo(
        windows=resolve_windows(product, seller),
        location=resolve_location(product, seller, ref_lat, ref_lon),
    )


def city_from_address(address: Optional[str]) -> str:
    if address and "," in address:
        city = address.rsplit(",", 1)[1].strip()
        if city:
            return city
    return FALLBACK_CITY


def snapshot_pickup(product: Product, seller: Seller) -> PickupSnapshot:
    """Build the pickup data frozen into an order item."""
    explicit = product.pickup_location
    if explicit:
        location = SnapshotLocation(
            address=explicit.address or FALLBACK_ADDRESS,
            city=city_from_address(explicit.address),
            distance_miles=explicit.distance_miles if explicit.distance_miles is not None else FALLBACK_DISTANCE_MILES,
            coordinates=Coordinates(
                lat=explicit.latitude if explicit.latitude is not None else seller.latitude,
                lng=explicit.longitude if explicit.longitude is not None else seller.longitude,
            ),
        )
    else:
        location = SnapshotLocation(
            address=FALLBACK_ADDRESS,
            city=FALLBACK_CITY,
            distance_miles=FALLBACK_DISTANCE_MILES,
            coordinates=Coordinates(lat=seller.latitude, lng=seller.longitude),
        )

    windows = resolve_windows(product, seller)
    if windows:
        first = windows[0]
        window = SnapshotWindow(
            day=first.days or FALLBACK_WINDOW.day,
            start_time=first.start_time or FALLBACK_WINDOW.start_time,
            end_time=first.end_time or FALLBACK_WINDOW.end_time,
            formatted=first.formatted or FALLBACK_WINDOW.formatted,
        )
    else:
        window = FALLBACK_WINDOW.model_copy()

    return PickupSnapshot(location=location, window=window)
