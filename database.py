"""
MongoDB access for the Smart Home backend.

One MongoClient is opened when the application starts and kept for the
process lifetime. Request handlers get the collection handles through the
Store dependency instead of module globals.
"""
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bson import Decimal128, ObjectId
from dotenv import load_dotenv
from fastapi import Request
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from errors import StoreError

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_NAME = "smartHomeDB"


def database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    user = os.getenv("DB_USER")
    password = os.getenv("DB_PASS")
    if user and password:
        host = os.getenv("DB_HOST", "smart-home.zmw9aso.mongodb.net")
        return f"mongodb+srv://{user}:{password}@{host}/?appName=Smart-Home"
    return "mongodb://localhost:27017"


def database_name() -> str:
    return os.getenv("DATABASE_NAME", DEFAULT_DATABASE_NAME)


class Store:
    """Fixed set of collection handles, read-only after construction."""

    def __init__(self, db: Database):
        self.db = db
        self.users: Collection = db["users"]
        self.services: Collection = db["services"]
        self.decorators: Collection = db["decorators"]
        self.bookings: Collection = db["bookings"]

    @property
    def name(self) -> str:
        return self.db.name

    def ping(self) -> None:
        self.db.client.admin.command("ping")

    def sample_services(self, limit: int = 5) -> List[Dict[str, Any]]:
        cursor = self.services.find({}, {"service_name": 1}).limit(limit)
        return [serialize(doc) for doc in cursor]


def connect(url: Optional[str] = None, name: Optional[str] = None) -> Tuple[MongoClient, Store]:
    """Open the client and confirm the deployment answers before returning."""
    client = MongoClient(url or database_url(), server_api=ServerApi("1"))
    try:
        client.admin.command("ping")
    except PyMongoError as e:
        client.close()
        raise StoreError("Could not connect to MongoDB", details=str(e)) from e
    store = Store(client[name or database_name()])
    logger.info("Pinged your deployment. Connected to MongoDB database '%s'", store.name)
    return client, store


def get_store(request: Request) -> Store:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise StoreError("Database not initialized")
    return store


# ---------------------------
# Document helpers
# ---------------------------

def create_document(collection: Collection, data: Dict[str, Any]) -> str:
    now = datetime.now(timezone.utc)
    doc = dict(data)
    doc["createdAt"] = now
    doc["updatedAt"] = now
    result = collection.insert_one(doc)
    return str(result.inserted_id)


def get_documents(collection: Collection, filter_dict: Optional[Dict[str, Any]] = None,
                  sort: Optional[List[Tuple[str, int]]] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    cursor = collection.find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def _plain(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, Decimal128):
        return float(value.to_decimal())
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def serialize(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Render a stored document as JSON-safe values, nested fields included."""
    if not doc:
        return doc
    return _plain(doc)
