import logging
from datetime import timedelta

from database import Store, utcnow
from schemas import (
    Category,
    PickupLocation,
    PickupWindow,
    Product,
    Sample,
    SampleWindow,
    Seller,
    User,
)

logger = logging.getLogger(__name__)

CATEGORIES = [
    {"label": "All", "icon": "home", "is_active": True, "count": 0},
    {"label": "Bakery", "icon": "croissant", "count": 14},
    {"label": "Sweets", "icon": "cookie", "count": 9},
    {"label": "Body", "icon": "soap", "count": 11},
]


def seed_demo_data(store: Store) -> bool:
    """Seed the demo marketplace (idempotent: skipped when users already exist)."""
    if store.count_documents("user") > 0:
        return False

    user_id = store.create_document("user", User(
        email="seller@loopa.app",
        name="The Candle Nook Owner",
    ))

    candle_seller_id = store.create_document("seller", Seller(
        user_id=user_id,
        name="The Candle Nook",
        description="Handcrafted candles for your home.",
        latitude=40.94,
        longitude=-123.63,
        pickup_days="Mon-Fri",
        pickup_start_time="17:00",
        pickup_end_time="19:00",
    ))

    store.create_document("product", Product(
        seller_id=candle_seller_id,
        title="Lavender & Sage Candle",
        description="Calming scent.",
        price=15.00,
        quantity_available=12,
        quantity_left=12,
        images=[
            "https://cdn.loopa.app/products/candle-1.jpg",
            "https://cdn.loopa.app/products/candle-2.jpg",
        ],
        primary_image="https://cdn.loopa.app/products/candle-main.jpg",
        image_url="https://cdn.loopa.app/products/candle-main.jpg",
        category="body",
        tags=["soy", "handmade", "sustainable", "aromatherapy"],
        badges=["Handmade", "Organic"],
        pickup_windows=[PickupWindow(
            days="Mon-Fri",
            start_time="17:00",
            end_time="19:00",
            formatted="Mon-Fri 5:00 PM - 7:00 PM",
        )],
        pickup_location=PickupLocation(
            address="88 Oak Ave, Willow Creek",
            latitude=40.9382,
            longitude=-123.6321,
            distance_miles=1.2,
            is_exact=False,
        ),
    ))

    for category in CATEGORIES:
        store.create_document("category", Category(**category))

    jam_seller_id = store.create_document("seller", Seller(
        user_id=user_id,
        name="Sarah's Kitchen",
        description="Small-batch artisan jams and preserves.",
        latitude=40.9401,
        longitude=-123.6305,
        pickup_days="Sat-Sun",
        pickup_start_time="10:00",
        pickup_end_time="16:00",
    ))

    jam_id = store.create_document("product", Product(
        seller_id=jam_seller_id,
        title="Spiced Peach & Honey Jam",
        description="Testing a new small-batch recipe using local orchard peaches.",
        price=0,
        quantity_available=5,
        quantity_left=5,
        images=["https://cdn.loopa.app/products/peach-jam.jpg"],
        primary_image="https://cdn.loopa.app/products/peach-jam.jpg",
        category="food",
        tags=["sample", "jam", "local"],
        badges=["Free Sample"],
    ))

    store.create_document("sample", Sample(
        seller_id=jam_seller_id,
        product_id=jam_id,
        pickup_windows=[
            SampleWindow(id="win_1", day="Tomorrow", start_time="15:00", end_time="17:00",
                         formatted="Tomorrow 3:00–5:00 PM"),
            SampleWindow(id="win_2", day="Sat", start_time="10:00", end_time="12:00",
                         formatted="Sat 10:00 AM–12:00 PM"),
        ],
        expires_at=utcnow() + timedelta(hours=48),
    ))

    logger.info("Seeded demo marketplace data")
    return True
