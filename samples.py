"""
Sample claiming.

A sample starts ``available`` and can be claimed exactly once. The claim is a
conditional write on ``status == available``, so of two concurrent claims on
the same sample only one can match.
"""

import logging
from typing import List, Optional

from database import Store, utcnow
from errors import InvalidState, NotFound, OwnershipMismatch, ValidationFailure
from geo import distance_miles, round_miles
from presenter import iso_timestamp
from schemas import (
    SAMPLE_AVAILABLE,
    SAMPLE_CLAIMED,
    CamelModel,
    Order,
    Product,
    Sample,
    SampleWindow,
    Seller,
)

logger = logging.getLogger(__name__)

FALLBACK_LATITUDE = 40.94
FALLBACK_LONGITUDE = -123.63
AVATAR_BASE_URL = "https://cdn.loopa.app/avatars"
CLAIM_LIMIT = 1
ELIGIBILITY_WINDOW = "48 hours"
PLACEHOLDER_RATING = 4.9
PLACEHOLDER_REVIEW_COUNT = 124
DISCLAIMER = (
    "This is a complimentary sample. Loopa does not take responsibility for "
    "product quality, ingredients, allergens, or safety. Please review details "
    "carefully before claiming."
)

DEFAULT_SAMPLE_WINDOWS = [
    SampleWindow(id="win_1", day="Tomorrow", start_time="15:00", end_time="17:00",
                 formatted="Tomorrow 3:00–5:00 PM"),
    SampleWindow(id="win_2", day="Sat", start_time="10:00", end_time="12:00",
                 formatted="Sat 10:00 AM–12:00 PM"),
    SampleWindow(id="win_3", day="Sun", start_time="16:00", end_time="18:00",
                 formatted="Sun 4:00–6:00 PM"),
]


class ClaimedSample(CamelModel):
    id: str
    seller_id: str
    product_id: Optional[str] = None
    status: str
    claimed_at: Optional[str] = None
    pickup_window_id: Optional[str] = None


class ClaimResult(CamelModel):
    success: bool
    message: str
    claimed_sample: Optional[ClaimedSample] = None


class SampleSeller(CamelModel):
    id: str
    sample_id: str
    product_id: Optional[str] = None
    name: str
    avatar_url: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    distance_miles: float
    disclaimer: str
    pickup_windows: List[SampleWindow]


class SampleEligibility(CamelModel):
    order_id: str
    claim_limit: int
    expires_in: str


class SampleOffer(CamelModel):
    status: str
    eligibility: SampleEligibility
    sellers: List[SampleSeller]


def sample_windows(sample: Sample) -> List[SampleWindow]:
    if sample.pickup_windows:
        return list(sample.pickup_windows)
    return [w.model_copy() for w in DEFAULT_SAMPLE_WINDOWS]


def avatar_url(name: str, base_url: str = AVATAR_BASE_URL) -> str:
    return f"{base_url}/{''.join(name.lower().split())}.jpg"


def _load_order(store: Store, order_id: str) -> Order:
    doc = store.get_document("order", order_id)
    if not doc:
        raise NotFound("Order not found")
    return Order.from_document(doc)


def claim_sample(store: Store, order_id: str, sample_id: str, seller_id: str,
                 pickup_window_id: str) -> ClaimResult:
    order = _load_order(store, order_id)

    doc = store.get_document("sample", sample_id)
    if not doc:
        raise NotFound("Sample not found")
    sample = Sample.from_document(doc)

    if sample.status != SAMPLE_AVAILABLE:
        raise InvalidState("Sample is no longer available")
    if sample.seller_id != seller_id:
        raise OwnershipMismatch("Sample does not belong to the specified seller")
    if pickup_window_id not in {w.id for w in sample_windows(sample)}:
        raise ValidationFailure(f"Unknown pickup window: {pickup_window_id}")

    claimed_doc = store.update_where(
        "sample",
        sample_id,
        {"status": SAMPLE_AVAILABLE, "seller_id": seller_id},
        {
            "status": SAMPLE_CLAIMED,
            "claimed_by_user_id": order.customer_id,
            "claimed_at": utcnow(),
            "pickup_window_id": pickup_window_id,
        },
    )
    if claimed_doc is None:
        logger.info("Sample %s was claimed concurrently, rejecting order %s", sample_id, order_id)
        raise InvalidState("Sample is no longer available")

    claimed = Sample.from_document(claimed_doc)
    logger.info("Sample %s claimed by %s (order %s)", claimed.id, order.customer_id, order.id)
    return ClaimResult(
        success=True,
        message="Sample claimed successfully!",
        claimed_sample=ClaimedSample(
            id=claimed.id,
            seller_id=claimed.seller_id,
            product_id=claimed.product_id,
            status=claimed.status,
            claimed_at=iso_timestamp(claimed.claimed_at),
            pickup_window_id=pickup_window_id,
        ),
    )


def list_eligible_samples(store: Store, order_id: str,
                          fallback_latitude: float = FALLBACK_LATITUDE,
                          fallback_longitude: float = FALLBACK_LONGITUDE,
                          avatar_base_url: str = AVATAR_BASE_URL) -> SampleOffer:
    order = _load_order(store, order_id)

    product_docs = store.get_documents_by_ids("product", [item.product_id for item in order.items])
    products = {pid: Product.from_document(d) for pid, d in product_docs.items()}
    order_seller_ids = {p.seller_id for p in products.values()}

    samples = [
        Sample.from_document(d)
        for d in store.get_documents("sample", {
            "status": SAMPLE_AVAILABLE,
            "seller_id": {"$nin": sorted(order_seller_ids)},
        })
    ]

    seller_docs = store.get_documents_by_ids(
        "seller", list(order_seller_ids) + [s.seller_id for s in samples]
    )
    sellers = {sid: Seller.from_document(d) for sid, d in seller_docs.items()}

    ref_lat, ref_lon = fallback_latitude, fallback_longitude
    first_product = products.get(order.items[0].product_id) if order.items else None
    first_seller = sellers.get(first_product.seller_id) if first_product else None
    if first_seller is not None:
        ref_lat, ref_lon = first_seller.latitude, first_seller.longitude

    offers = []
    for sample in samples:
        seller = sellers.get(sample.seller_id)
        if seller is None:
            logger.warning("Sample %s references missing seller %s", sample.id, sample.seller_id)
            continue
        miles = distance_miles(ref_lat, ref_lon, seller.latitude, seller.longitude)
        offers.append(SampleSeller(
            id=seller.id,
            sample_id=sample.id,
            product_id=sample.product_id,
            name=seller.name,
            avatar_url=avatar_url(seller.name, avatar_base_url),
            rating=PLACEHOLDER_RATING,
            review_count=PLACEHOLDER_REVIEW_COUNT,
            distance_miles=round_miles(miles),
            disclaimer=DISCLAIMER,
            pickup_windows=sample_windows(sample),
        ))

    return SampleOffer(
        status=SAMPLE_AVAILABLE,
        eligibility=SampleEligibility(order_id=order.id, claim_limit=CLAIM_LIMIT, expires_in=ELIGIBILITY_WINDOW),
        sellers=offers,
    )
