"""
Database Schemas for the Smart Home services backend

Each Pydantic model documents a MongoDB collection. Documents are stored
freeform; these models describe the fields the API reads and writes.
"""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, EmailStr
from datetime import datetime


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


BOOKING_STATUSES = [s.value for s in BookingStatus]
PAYMENT_STATUSES = [s.value for s in PaymentStatus]


class User(BaseModel):
    """
    Users of the app, upserted by email on every sign-in.
    Collection: "users"
    """
    model_config = ConfigDict(extra="allow")

    email: EmailStr = Field(..., description="Unique email address, upsert key")
    name: Optional[str] = Field(None, description="Display name")
    photoURL: Optional[str] = Field(None, description="Profile image URL")
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class Service(BaseModel):
    """
    Bookable home services. Read-only for this API.
    Collection: "services"
    """
    model_config = ConfigDict(extra="allow")

    service_name: str
    cost: float = Field(..., ge=0)
    category: str
    unit: Optional[str] = Field(None, description="Pricing unit, e.g. hour | sqft | room")
    description: Optional[str] = None


class Decorator(BaseModel):
    """
    Decorators listed on the home page, ordered by rating.
    Collection: "decorators"
    """
    model_config = ConfigDict(extra="allow")

    name: str
    rating: float = Field(0, ge=0, le=5)
    specialties: List[str] = Field(default_factory=list)


class Booking(BaseModel):
    """
    Service bookings. Service fields are a snapshot taken at booking time.
    Collection: "bookings"
    """
    model_config = ConfigDict(extra="allow")

    serviceId: str
    userId: str
    date: str
    location: str
    contactNumber: str
    serviceName: Optional[str] = None
    serviceCost: Optional[float] = None
    serviceCategory: Optional[str] = None
    serviceUnit: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING
    paymentStatus: PaymentStatus = PaymentStatus.UNPAID
    paymentMethod: Optional[str] = None
    transactionId: Optional[str] = None
    bookingCode: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


# ---------------------------
# Request bodies
# ---------------------------

class StatusUpdateRequest(BaseModel):
    status: Optional[str] = None


class PaymentUpdateRequest(BaseModel):
    paymentStatus: Optional[str] = None
    paymentMethod: Optional[str] = None
    transactionId: Optional[str] = None


class CompletePaymentRequest(BaseModel):
    paymentMethod: Optional[str] = None
    transactionId: Optional[str] = None
