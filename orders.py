"""
Order workflow.

Orders embed their items. Each item captures the unit price and a pickup
snapshot when the order is created, so later edits to the product or seller
never reach an existing order.
"""

import logging
import random
from typing import Dict, List, Optional

from pydantic import Field
from pymongo.errors import DuplicateKeyError

from database import Store
from errors import InvalidState, NotFound
from pickup import FALLBACK_ADDRESS, FALLBACK_WINDOW, snapshot_pickup
from presenter import iso_timestamp
from schemas import CamelModel, Order, OrderItem, PickupSnapshot, Product, Seller, User

logger = logging.getLogger(__name__)

DEGRADE = "degrade"
STRICT = "strict"

FREE_SAMPLE_TITLE = "A gift for you..."
FREE_SAMPLE_DESCRIPTION = (
    "Because you supported a local maker today, someone else in the "
    "neighborhood wants to share a little goodness with you."
)


class OrderLine(CamelModel):
    product_id: str
    quantity: int = Field(..., ge=1)


class OrderCustomer(CamelModel):
    first_name: str
    greeting_name: str


class OrderSeller(CamelModel):
    id: str
    name: str
    first_name: str
    personal_message: Optional[str] = None


class OrderItemView(CamelModel):
    product_id: str
    title: Optional[str] = None
    seller: Optional[OrderSeller] = None
    price: float
    quantity: int
    pickup: Optional[PickupSnapshot] = None


class PickupSummary(CamelModel):
    location: str
    time: str


class OrderView(CamelModel):
    id: str
    order_number: str
    status: str
    created_at: Optional[str] = None
    total_amount: float
    currency: str
    customer: OrderCustomer
    items: List[OrderItemView]
    pickup_summary: PickupSummary


class Celebration(CamelModel):
    title: str = "Success!"


class FreeSampleOffer(CamelModel):
    enabled: bool = True
    title: str = FREE_SAMPLE_TITLE
    description: str = FREE_SAMPLE_DESCRIPTION


class OrderResult(CamelModel):
    status: str = "success"
    message: str = "Order placed successfully"
    order: OrderView
    celebration: Celebration = Celebration()
    free_sample_offer: FreeSampleOffer = FreeSampleOffer()


def first_name(name: Optional[str], default: str) -> str:
    parts = (name or "").split()
    return parts[0] if parts else default


def generate_order_number(rng=random) -> str:
    return f"LPA-{rng.randint(1000, 9999)}"


def load_products(store: Store, product_ids: List[str]):
    """Batch load products and their sellers, keyed by id."""
    products = {pid: Product.from_document(d) for pid, d in store.get_documents_by_ids("product", product_ids).items()}
    seller_docs = store.get_documents_by_ids("seller", [p.seller_id for p in products.values()])
    sellers = {sid: Seller.from_document(d) for sid, d in seller_docs.items()}
    return products, sellers


def build_items(lines: List[OrderLine], products: Dict[str, Product], sellers: Dict[str, Seller],
                missing_product_policy: str) -> List[OrderItem]:
    items = []
    for line in lines:
        product = products.get(line.product_id)
        if product is None:
            if missing_product_policy == STRICT:
                raise NotFound(f"Product not found: {line.product_id}")
            logger.warning("Order line for unknown product %s priced at 0", line.product_id)
            items.append(OrderItem(product_id=line.product_id, quantity=line.quantity, price=0, pickup=None))
            continue
        seller = sellers.get(product.seller_id)
        if seller is None:
            logger.warning("Product %s has no seller %s, no pickup snapshot", product.id, product.seller_id)
        items.append(OrderItem(
            product_id=line.product_id,
            quantity=line.quantity,
            price=product.price,
            pickup=snapshot_pickup(product, seller) if seller else None,
        ))
    return items


def create_order(store: Store, customer_id: str, lines: List[OrderLine],
                 missing_product_policy: str = DEGRADE, order_number_attempts: int = 5,
                 rng=random) -> OrderResult:
    customer_doc = store.get_document("user", customer_id)
    if not customer_doc:
        raise NotFound("Customer not found")
    customer = User.from_document(customer_doc)

    products, sellers = load_products(store, [line.product_id for line in lines])
    items = build_items(lines, products, sellers, missing_product_policy)
    total = round(sum(item.price * item.quantity for item in items), 2)

    order_id = None
    for _ in range(max(order_number_attempts, 1)):
        order = Order(
            order_number=generate_order_number(rng),
            customer_id=customer.id,
            total_amount=total,
            items=items,
        )
        try:
            order_id = store.create_document("order", order)
            break
        except DuplicateKeyError:
            logger.info("Order number %s already taken, retrying", order.order_number)
    if order_id is None:
        raise InvalidState("Could not allocate a unique order number")

    logger.info("Created order %s (%s) for customer %s, total %.2f",
                order.order_number, order_id, customer.id, total)
    view = get_order(store, order_id)
    return OrderResult(order=view)


def format_order(order: Order, customer: Optional[User], products: Dict[str, Product],
                 sellers: Dict[str, Seller]) -> OrderView:
    greeting = first_name(customer.name if customer else None, "Customer")

    items = []
    for item in order.items:
        product = products.get(item.product_id)
        seller = sellers.get(product.seller_id) if product else None
        seller_view = None
        if seller is not None:
            seller_first = first_name(seller.name, "Seller")
            seller_view = OrderSeller(
                id=seller.id,
                name=seller.name,
                first_name=seller_first,
                personal_message=f"{seller_first} is already preparing your {product.title}.",
            )
        items.append(OrderItemView(
            product_id=item.product_id,
            title=product.title if product else None,
            seller=seller_view,
            price=item.price,
            quantity=item.quantity,
            pickup=item.pickup,
        ))

    first_pickup = order.items[0].pickup if order.items else None
    summary = PickupSummary(
        location=first_pickup.location.address if first_pickup else FALLBACK_ADDRESS,
        time=first_pickup.window.formatted if first_pickup else FALLBACK_WINDOW.formatted,
    )

    return OrderView(
        id=order.id,
        order_number=order.order_number,
        status=order.status,
        created_at=iso_timestamp(order.created_at),
        total_amount=order.total_amount,
        currency=order.currency,
        customer=OrderCustomer(first_name=greeting, greeting_name=greeting),
        items=items,
        pickup_summary=summary,
    )


def get_order(store: Store, order_id: str) -> Optional[OrderView]:
    doc = store.get_document("order", order_id)
    if not doc:
        return None
    order = Order.from_document(doc)
    customer_doc = store.get_document("user", order.customer_id)
    customer = User.from_document(customer_doc) if customer_doc else None
    products, sellers = load_products(store, [item.product_id for item in order.items])
    return format_order(order, customer, products, sellers)
