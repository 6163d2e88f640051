from datetime import datetime, timezone
from typing import List, Optional

from geo import distance_miles, round_miles
from pickup import resolve_pickup
from schemas import CamelModel, PickupLocation, PickupWindow, Product, Seller


def iso_timestamp(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 in UTC with millisecond precision, e.g. 2025-01-31T09:15:00.000Z"""
    if value is None:
        return None
    if value.tzinfo is None:
        # mongo hands back naive datetimes that are already UTC
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SellerView(CamelModel):
    id: str
    name: str
    description: str
    latitude: float
    longitude: float
    distance_miles: float


class ProductView(CamelModel):
    id: str
    title: str
    description: str
    price: float
    currency: str
    quantity_available: int
    quantity_left: int
    images: List[str]
    primary_image: Optional[str] = None
    image_url: Optional[str] = None
    is_favorite: bool = False
    category: Optional[str] = None
    tags: List[str] = []
    badges: List[str] = []
    is_active: bool = True
    pickup_windows: List[PickupWindow]
    pickup_location: PickupLocation
    seller: SellerView
    maker_id: str
    distance_miles: float
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


def normalize_images(product: Product) -> List[str]:
    if product.images is not None:
        return list(product.images)
    return [product.image_url] if product.image_url else []


def present_product(product: Product, seller: Seller, ref_lat: float, ref_lon: float) -> ProductView:
    miles = round_miles(distance_miles(ref_lat, ref_lon, seller.latitude, seller.longitude))
    pickup = resolve_pickup(product, seller, ref_lat, ref_lon)

    return ProductView(
        id=product.id,
        title=product.title,
        description=product.description,
        price=product.price,
        currency=product.currency,
        quantity_available=product.quantity_available,
        quantity_left=product.quantity_left,
        images=normalize_images(product),
        primary_image=product.primary_image or product.image_url,
        image_url=product.image_url,
        # favorites need per-user preferences, which do not exist yet
        is_favorite=False,
        category=product.category,
        tags=product.tags,
        badges=product.badges,
        is_active=product.is_active,
        pickup_windows=pickup.windows,
        pickup_location=pickup.location,
        seller=SellerView(
            id=seller.id,
            name=seller.name,
            description=seller.description,
            latitude=seller.latitude,
            longitude=seller.longitude,
            distance_miles=miles,
        ),
        maker_id=seller.id,
        distance_miles=miles,
        created_at=iso_timestamp(product.created_at),
        updated_at=iso_timestamp(product.updated_at),
    )
