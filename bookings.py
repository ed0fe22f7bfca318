"""
Booking identifier resolution and status/payment transitions.

Older documents were written with plain string identifiers while newer ones
carry a generated ObjectId. resolve() is the only place that knows about
both forms; everything else works on the document it returns.
"""
import logging
import random
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.collection import Collection

from database import Store, create_document, serialize
from errors import NotFoundError, ValidationError
from schemas import BOOKING_STATUSES, PAYMENT_STATUSES, BookingStatus, PaymentStatus

logger = logging.getLogger(__name__)

REQUIRED_BOOKING_FIELDS = ("serviceId", "userId", "date", "location", "contactNumber")
DEFAULT_PAYMENT_METHOD = "online"


# ---------------------------
# Identifier resolution
# ---------------------------

def resolve(collection: Collection, id_str: str) -> Optional[Dict[str, Any]]:
    """Find a document by its identifier, trying the literal string first.

    Falls back to the ObjectId form only when id_str is 24 hex characters.
    Returns None when neither lookup matches.
    """
    doc = collection.find_one({"_id": id_str})
    if doc is None and ObjectId.is_valid(id_str):
        doc = collection.find_one({"_id": ObjectId(id_str)})
    return doc


def find_or_raise(collection: Collection, id_str: str, label: str) -> Dict[str, Any]:
    doc = resolve(collection, id_str)
    if doc is None:
        logger.warning("%s not found for id %r", label, id_str)
        raise NotFoundError(f"{label} not found")
    return doc


def generate_booking_code() -> str:
    return f"BK{int(time.time() * 1000)}{random.randint(0, 999)}"


def generate_transaction_id() -> str:
    return f"TXN{int(time.time() * 1000)}{random.randint(0, 999999):06d}"


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# ---------------------------
# Creation and reads
# ---------------------------

def create_booking(store: Store, payload: Dict[str, Any]) -> Dict[str, Any]:
    for field in REQUIRED_BOOKING_FIELDS:
        if _is_missing(payload.get(field)):
            raise ValidationError(f"{field} is required")

    service_id = str(payload["serviceId"])
    service = find_or_raise(store.services, service_id, "Service")

    doc = {k: v for k, v in payload.items() if k != "_id"}
    doc.update({
        "serviceId": service_id,
        "userId": str(payload["userId"]),
        "serviceName": service.get("service_name"),
        "serviceCost": service.get("cost"),
        "serviceCategory": service.get("category"),
        "serviceUnit": service.get("unit"),
        "status": BookingStatus.PENDING.value,
        "paymentStatus": PaymentStatus.UNPAID.value,
        "bookingCode": generate_booking_code(),
    })
    booking_id = create_document(store.bookings, doc)
    logger.info("Created booking %s (%s) for user %s", booking_id, doc["bookingCode"], doc["userId"])

    created = store.bookings.find_one({"_id": ObjectId(booking_id)})
    return serialize(created)


def get_booking(store: Store, booking_id: str) -> Dict[str, Any]:
    return serialize(find_or_raise(store.bookings, booking_id, "Booking"))


def list_user_bookings(store: Store, user_id: str) -> List[Dict[str, Any]]:
    cursor = store.bookings.find({"userId": user_id}).sort("createdAt", -1)
    return [serialize(b) for b in cursor]


# ---------------------------
# Transitions
# ---------------------------

def _apply(store: Store, booking_id: str, changes: Dict[str, Any]) -> None:
    """Resolve the booking first, then update it by its stored identifier.

    Resolving up front means a NotFoundError always means the booking does
    not exist, even when the update leaves every field as it was.
    """
    booking = find_or_raise(store.bookings, booking_id, "Booking")
    changes = dict(changes)
    changes["updatedAt"] = datetime.now(timezone.utc)
    store.bookings.update_one({"_id": booking["_id"]}, {"$set": changes})


def update_status(store: Store, booking_id: str, status: Optional[str]) -> None:
    if status not in BOOKING_STATUSES:
        logger.warning("Rejected status %r for booking %s", status, booking_id)
        raise ValidationError("Invalid status")
    _apply(store, booking_id, {"status": status})
    logger.info("Booking %s status -> %s", booking_id, status)


def update_payment(store: Store, booking_id: str, payment_status: Optional[str],
                   payment_method: Optional[str] = None, transaction_id: Optional[str] = None) -> None:
    if payment_status not in PAYMENT_STATUSES:
        logger.warning("Rejected payment status %r for booking %s", payment_status, booking_id)
        raise ValidationError("Invalid payment status")
    changes: Dict[str, Any] = {"paymentStatus": payment_status}
    if payment_method:
        changes["paymentMethod"] = payment_method
    if transaction_id:
        changes["transactionId"] = transaction_id
    _apply(store, booking_id, changes)
    logger.info("Booking %s payment -> %s", booking_id, payment_status)


def complete_payment(store: Store, booking_id: str, payment_method: Optional[str] = None,
                     transaction_id: Optional[str] = None) -> str:
    """Simulated checkout: mark paid and confirmed in a single update.

    Repeat calls succeed and leave the booking paid and confirmed.
    """
    transaction_id = transaction_id or generate_transaction_id()
    _apply(store, booking_id, {
        "paymentStatus": PaymentStatus.PAID.value,
        "status": BookingStatus.CONFIRMED.value,
        "paymentMethod": payment_method or DEFAULT_PAYMENT_METHOD,
        "transactionId": transaction_id,
        "paidAt": datetime.now(timezone.utc),
    })
    logger.info("Booking %s paid, transaction %s", booking_id, transaction_id)
    return transaction_id


def cancel_booking(store: Store, booking_id: str) -> None:
    _apply(store, booking_id, {
        "status": BookingStatus.CANCELLED.value,
        "cancelledAt": datetime.now(timezone.utc),
    })
    logger.info("Booking %s cancelled", booking_id)
