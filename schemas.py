"""
Database Schemas for the Loopa marketplace

Each Pydantic model maps to a MongoDB collection (lowercase of class name).
Documents are stored with snake_case keys; the camelCase aliases are the
field names clients see on the wire.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SAMPLE_AVAILABLE = "available"
SAMPLE_CLAIMED = "claimed"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Document(CamelModel):
    """Base for stored records. id and timestamps are owned by the store."""
    id: Optional[str] = Field(None, exclude=True)
    created_at: Optional[datetime] = Field(None, exclude=True)
    updated_at: Optional[datetime] = Field(None, exclude=True)

    @classmethod
    def from_document(cls, doc: dict):
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)


class PickupWindow(CamelModel):
    days: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    formatted: Optional[str] = None


class PickupLocation(CamelModel):
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_miles: Optional[float] = None
    is_exact: Optional[bool] = None


class User(Document):
    email: str = Field(..., description="Email address")
    name: Optional[str] = Field(None, description="Display name")


class Seller(Document):
    """Local maker with a fixed location and a recurring pickup schedule"""
    user_id: Optional[str] = Field(None, description="Owning user id")
    name: str = Field(..., description="Display name")
    description: str = Field("", description="Short blurb")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    pickup_days: Optional[str] = Field(None, description="Days spec e.g. 'Mon-Fri'")
    pickup_start_time: Optional[str] = Field(None, description="e.g. '17:00'")
    pickup_end_time: Optional[str] = Field(None, description="e.g. '19:00'")


class Product(Document):
    seller_id: str = Field(..., description="Seller id as string")
    title: str = Field(..., description="Product title")
    description: str = Field("", description="Product description")
    price: float = Field(..., ge=0, description="Unit price")
    currency: str = Field("USD")
    quantity_available: int = Field(0, ge=0)
    quantity_left: int = Field(0, ge=0)
    images: Optional[List[str]] = Field(None, description="Image URLs")
    primary_image: Optional[str] = None
    image_url: Optional[str] = Field(None, description="Legacy single image URL")
    category: Optional[str] = Field(None, description="Free-form category e.g. 'body'")
    tags: List[str] = Field(default_factory=list)
    badges: List[str] = Field(default_factory=list)
    is_active: bool = Field(True)
    pickup_windows: Optional[List[PickupWindow]] = Field(None, description="Overrides the seller schedule")
    pickup_location: Optional[PickupLocation] = Field(None, description="Overrides the seller location")


class Category(Document):
    label: str = Field(...)
    icon: str = Field(..., description="Icon token e.g. 'croissant'")
    is_active: bool = Field(True)
    count: int = Field(0, ge=0, description="Display only, not recomputed")


class Coordinates(CamelModel):
    lat: float
    lng: float


class SnapshotLocation(CamelModel):
    address: str
    city: str
    distance_miles: float
    coordinates: Coordinates


class SnapshotWindow(CamelModel):
    day: str
    start_time: str
    end_time: str
    formatted: str


class PickupSnapshot(CamelModel):
    """Pickup data frozen into an order item at creation time"""
    location: SnapshotLocation
    window: SnapshotWindow


class OrderItem(CamelModel):
    product_id: str = Field(..., description="Product id as string")
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0, description="Unit price captured at order time")
    pickup: Optional[PickupSnapshot] = None


class Order(Document):
    order_number: str = Field(..., description="Human readable number e.g. 'LPA-4821'")
    status: str = Field("confirmed")
    customer_id: str = Field(...)
    total_amount: float = Field(..., ge=0)
    currency: str = Field("USD")
    items: List[OrderItem] = Field(default_factory=list)


class SampleWindow(CamelModel):
    id: str
    day: str
    start_time: str
    end_time: str
    formatted: str
    available: bool = True


class Sample(Document):
    """Free trial item; moves from available to claimed exactly once"""
    seller_id: str = Field(...)
    product_id: Optional[str] = None
    status: str = Field(SAMPLE_AVAILABLE, description="available | claimed")
    pickup_windows: Optional[List[SampleWindow]] = None
    claimed_by_user_id: Optional[str] = None
    claimed_at: Optional[datetime] = None
    pickup_window_id: Optional[str] = None
    expires_at: Optional[datetime] = None
