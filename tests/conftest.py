import mongomock
import pytest
from fastapi.testclient import TestClient

import main
from database import Store
from schemas import Product, Sample, Seller, User


@pytest.fixture
def store():
    s = Store(mongomock.MongoClient().db)
    s.ensure_indexes()
    return s


@pytest.fixture
def client(store):
    main.app.dependency_overrides[main.get_store] = lambda: store
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture
def make_user(store):
    def _make(**overrides):
        data = {"email": "ada@example.com", "name": "Ada Lovelace"}
        data.update(overrides)
        return store.create_document("user", User(**data))
    return _make


@pytest.fixture
def make_seller(store):
    def _make(**overrides):
        data = {
            "name": "The Candle Nook",
            "description": "Handcrafted candles for your home.",
            "latitude": 40.94,
            "longitude": -123.63,
            "pickup_days": "Mon-Fri",
            "pickup_start_time": "17:00",
            "pickup_end_time": "19:00",
        }
        data.update(overrides)
        return store.create_document("seller", Seller(**data))
    return _make


@pytest.fixture
def make_product(store):
    def _make(seller_id, **overrides):
        data = {
            "seller_id": seller_id,
            "title": "Lavender & Sage Candle",
            "description": "Calming scent.",
            "price": 15.0,
            "quantity_available": 12,
            "quantity_left": 12,
            "category": "body",
        }
        data.update(overrides)
        return store.create_document("product", Product(**data))
    return _make


@pytest.fixture
def make_sample(store):
    def _make(seller_id, **overrides):
        data = {"seller_id": seller_id}
        data.update(overrides)
        return store.create_document("sample", Sample(**data))
    return _make
