"""Users, services and decorators: thin reads and the user upsert."""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bookings import find_or_raise
from database import Store, get_documents, serialize
from errors import ValidationError

logger = logging.getLogger(__name__)

TOP_DECORATORS_LIMIT = 6


def upsert_user(store: Store, payload: Dict[str, Any]) -> Tuple[str, bool]:
    """Create or overwrite the user with this email. Returns (user_id, created)."""
    email = payload.get("email")
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("email is required")
    email = email.strip().lower()

    now = datetime.now(timezone.utc)
    fields = {k: v for k, v in payload.items() if k not in ("_id", "createdAt", "updatedAt")}
    fields["email"] = email
    fields["updatedAt"] = now

    # Older documents may carry the email in its original casing.
    existing = store.users.find_one({"email": {"$regex": f"^{re.escape(email)}$", "$options": "i"}}, {"_id": 1})
    if existing is not None:
        store.users.update_one({"_id": existing["_id"]}, {"$set": fields})
        return str(existing["_id"]), False

    result = store.users.update_one(
        {"email": email},
        {"$set": fields, "$setOnInsert": {"createdAt": now}},
        upsert=True,
    )
    if result.upserted_id is not None:
        logger.info("Created user %s", email)
        return str(result.upserted_id), True

    existing = store.users.find_one({"email": email}, {"_id": 1})
    return str(existing["_id"]), False


def list_services(store: Store, category: Optional[str] = None) -> List[Dict[str, Any]]:
    filt = {"category": category} if category else {}
    return [serialize(s) for s in get_documents(store.services, filt)]


def list_categories(store: Store) -> List[str]:
    return sorted((c for c in store.services.distinct("category") if c), key=str)


def get_service(store: Store, service_id: str) -> Dict[str, Any]:
    return serialize(find_or_raise(store.services, service_id, "Service"))


def top_decorators(store: Store, limit: int = TOP_DECORATORS_LIMIT) -> List[Dict[str, Any]]:
    docs = get_documents(store.decorators, sort=[("rating", -1)], limit=limit)
    return [serialize(d) for d in docs]
