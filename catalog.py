import logging
import re
from typing import Any, Dict, List, Optional

from errors import NotFound, ValidationFailure
from database import Store
from presenter import ProductView, present_product
from schemas import CamelModel, Category, Product, Seller, User

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_MILES = 10000.0

UPDATABLE_PRODUCT_FIELDS = {
    "title",
    "description",
    "price",
    "currency",
    "quantity_available",
    "category",
    "primary_image",
    "images",
    "tags",
    "is_active",
}
REQUIRED_PRODUCT_FIELDS = {"title", "description", "price", "currency", "quantity_available", "tags", "is_active"}


class UserView(CamelModel):
    id: str
    email: str
    name: Optional[str] = None


class CategoryView(CamelModel):
    id: str
    label: str
    icon: str
    is_active: bool
    count: int


def category_filter(category: Optional[str]) -> Dict[str, Any]:
    """Case-insensitive exact match; 'all' (any case) means no filter."""
    if not category or category.lower() == "all":
        return {}
    return {"category": {"$regex": f"^{re.escape(category)}$", "$options": "i"}}


def load_sellers(store: Store, products: List[Product]) -> Dict[str, Seller]:
    docs = store.get_documents_by_ids("seller", [p.seller_id for p in products])
    return {seller_id: Seller.from_document(doc) for seller_id, doc in docs.items()}


def list_nearby(store: Store, latitude: float, longitude: float, radius_miles: Optional[float] = None,
                category: Optional[str] = None,
                default_radius_miles: float = DEFAULT_RADIUS_MILES) -> List[ProductView]:
    # Full scan: every matching product is loaded, distance is filtered here.
    products = [Product.from_document(d) for d in store.get_documents("product", category_filter(category))]
    sellers = load_sellers(store, products)
    radius = radius_miles if radius_miles is not None else default_radius_miles

    views = []
    for product in products:
        seller = sellers.get(product.seller_id)
        if seller is None:
            logger.warning("Product %s references missing seller %s", product.id, product.seller_id)
            continue
        view = present_product(product, seller, latitude, longitude)
        if view.seller.distance_miles <= radius:
            views.append(view)
    return views


def _load_product_with_seller(store: Store, product_id: str):
    doc = store.get_document("product", product_id)
    if not doc:
        return None, None
    product = Product.from_document(doc)
    seller_doc = store.get_document("seller", product.seller_id)
    if not seller_doc:
        raise NotFound(f"Seller not found: {product.seller_id}")
    return product, Seller.from_document(seller_doc)


def get_product(store: Store, product_id: str, latitude: Optional[float] = None,
                longitude: Optional[float] = None) -> Optional[ProductView]:
    product, seller = _load_product_with_seller(store, product_id)
    if product is None:
        return None
    if latitude is None or longitude is None:
        # no caller location: measure from the seller itself, so distance is 0
        latitude, longitude = seller.latitude, seller.longitude
    return present_product(product, seller, latitude, longitude)


def update_product(store: Store, product_id: str, changes: Dict[str, Any]) -> ProductView:
    unknown = set(changes) - UPDATABLE_PRODUCT_FIELDS
    if unknown:
        raise ValidationFailure(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    cleared = {k for k, v in changes.items() if v is None} & REQUIRED_PRODUCT_FIELDS
    if cleared:
        raise ValidationFailure(f"Fields cannot be null: {', '.join(sorted(cleared))}")
    if changes.get("price") is not None and changes["price"] < 0:
        raise ValidationFailure("Price must be non-negative")
    if changes.get("quantity_available") is not None and changes["quantity_available"] < 0:
        raise ValidationFailure("Quantity must be non-negative")

    product, seller = _load_product_with_seller(store, product_id)
    if product is None:
        raise NotFound("Product not found")

    values = dict(changes)
    new_available = values.get("quantity_available")
    if new_available is not None and product.quantity_left > new_available:
        values["quantity_left"] = new_available

    doc = store.update_document("product", product_id, values)
    if not doc:
        raise NotFound("Product not found")
    updated = Product.from_document(doc)
    return present_product(updated, seller, seller.latitude, seller.longitude)


def list_categories(store: Store) -> List[CategoryView]:
    categories = [Category.from_document(d) for d in store.get_documents("category")]
    return [CategoryView(id=c.id, label=c.label, icon=c.icon, is_active=c.is_active, count=c.count)
            for c in categories]


def create_category(store: Store, label: str, icon: str, is_active: Optional[bool] = None,
                    count: Optional[int] = None) -> CategoryView:
    if count is not None and count < 0:
        raise ValidationFailure("Count must be non-negative")
    category = Category(
        label=label,
        icon=icon,
        is_active=True if is_active is None else is_active,
        count=0 if count is None else count,
    )
    category_id = store.create_document("category", category)
    logger.info("Created category %s (%s)", label, category_id)
    return CategoryView(id=category_id, label=category.label, icon=category.icon,
                        is_active=category.is_active, count=category.count)


def list_users(store: Store) -> List[UserView]:
    users = [User.from_document(d) for d in store.get_documents("user")]
    return [UserView(id=u.id, email=u.email, name=u.name) for u in users]
