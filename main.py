import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import Field

import catalog
import orders
import samples
from config import Settings, configure_logging, get_settings
from database import Store, connect
from errors import MarketplaceError, ValidationFailure
from presenter import ProductView
from schemas import CamelModel
from seed import seed_demo_data

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings)
    client = connect(settings)
    app.state.store = None
    if client is not None:
        app.state.store = Store(client[settings.database_name])
        app.state.store.ensure_indexes()
        logger.info("Connected to database %s", settings.database_name)
    yield
    if client is not None:
        client.close()
        logger.info("Database connection closed")


settings = get_settings()
app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Utilities

def get_store(request: Request) -> Store:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=500, detail="Database not available")
    return store


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.tag, "detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": ValidationFailure.tag, "detail": jsonable_encoder(exc.errors())},
    )


# Seed demo data (idempotent)
@app.post("/seed")
def seed(store: Store = Depends(get_store)):
    if not seed_demo_data(store):
        return {"message": "Already seeded"}
    return {"message": "Seed complete"}


# Catalog

@app.get("/users", response_model=List[catalog.UserView])
def list_users(store: Store = Depends(get_store)):
    return catalog.list_users(store)


@app.get("/products", response_model=List[ProductView])
def nearby_products(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius_miles: Optional[float] = Query(None, ge=0),
    category: Optional[str] = None,
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    return catalog.list_nearby(
        store, latitude, longitude, radius_miles, category,
        default_radius_miles=settings.default_radius_miles,
    )


@app.get("/products/{product_id}", response_model=Optional[ProductView])
def get_product(
    product_id: str,
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    store: Store = Depends(get_store),
):
    return catalog.get_product(store, product_id, latitude, longitude)


class ProductUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None
    quantity_available: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None
    primary_image: Optional[str] = None
    images: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    is_active: Optional[bool] = None


@app.patch("/products/{product_id}", response_model=ProductView)
def update_product(product_id: str, payload: ProductUpdate, store: Store = Depends(get_store)):
    return catalog.update_product(store, product_id, payload.model_dump(exclude_unset=True))


@app.get("/categories", response_model=List[catalog.CategoryView])
def list_categories(store: Store = Depends(get_store)):
    return catalog.list_categories(store)


class CategoryCreate(CamelModel):
    label: str
    icon: str
    is_active: Optional[bool] = None
    count: Optional[int] = Field(None, ge=0)


@app.post("/categories", response_model=catalog.CategoryView)
def create_category(payload: CategoryCreate, store: Store = Depends(get_store)):
    return catalog.create_category(store, payload.label, payload.icon, payload.is_active, payload.count)


# Orders

class CreateOrderRequest(CamelModel):
    customer_id: str
    items: List[orders.OrderLine]


@app.post("/orders", response_model=orders.OrderResult)
def create_order(
    payload: CreateOrderRequest,
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    return orders.create_order(
        store,
        payload.customer_id,
        payload.items,
        missing_product_policy=settings.missing_product_policy,
        order_number_attempts=settings.order_number_attempts,
    )


@app.get("/orders/{order_id}", response_model=Optional[orders.OrderView])
def get_order(order_id: str, store: Store = Depends(get_store)):
    return orders.get_order(store, order_id)


# Samples

@app.get("/orders/{order_id}/sample-offer", response_model=samples.SampleOffer)
def available_sample_sellers(
    order_id: str,
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    return samples.list_eligible_samples(
        store,
        order_id,
        fallback_latitude=settings.sample_fallback_latitude,
        fallback_longitude=settings.sample_fallback_longitude,
        avatar_base_url=settings.avatar_base_url,
    )


class ClaimSampleRequest(CamelModel):
    order_id: str
    sample_id: str
    seller_id: str
    pickup_window_id: str


@app.post("/samples/claim", response_model=samples.ClaimResult)
def claim_sample(payload: ClaimSampleRequest, store: Store = Depends(get_store)):
    return samples.claim_sample(
        store, payload.order_id, payload.sample_id, payload.seller_id, payload.pickup_window_id
    )


@app.get("/test")
def test_database(request: Request, settings: Settings = Depends(get_settings)):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if settings.database_url else "❌ Not Set",
        "database_name": "✅ Set" if settings.database_name else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": []
    }
    store = getattr(request.app.state, "store", None)
    if store is not None:
        response["database"] = "✅ Available"
        response["connection_status"] = "Connected"
        try:
            response["collections"] = store.collection_names()[:10]
            response["database"] = "✅ Connected & Working"
        except Exception as e:
            response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
    return response


@app.get("/")
def root():
    return {"message": "Loopa Marketplace API running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
