import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from database import Store, get_store
from main import app

SERVICE_OID = "507f1f77bcf86cd799439011"


@pytest.fixture
def store():
    """In-memory store shared by a single test"""
    return Store(mongomock.MongoClient()["smartHomeTest"])


@pytest.fixture
def client(store):
    """TestClient wired to the in-memory store; lifespan is not started"""
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def services(store):
    """One string-keyed service and one ObjectId-keyed service"""
    store.services.insert_many([
        {"_id": "svc-1", "service_name": "Home Cleaning", "cost": 100, "category": "cleaning", "unit": "hour"},
        {"_id": ObjectId(SERVICE_OID), "service_name": "Wedding Stage Decoration", "cost": 2500,
         "category": "decoration", "unit": "event"},
    ])
    return store.services


@pytest.fixture
def booking_payload():
    def _factory(**overrides):
        payload = {
            "serviceId": "svc-1",
            "userId": "u1",
            "date": "2024-01-01",
            "location": "X",
            "contactNumber": "555",
        }
        payload.update(overrides)
        return payload

    return _factory
