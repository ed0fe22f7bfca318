import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

import bookings
import catalog
from database import Store, connect, get_store
from errors import ApiError, NotFoundError
from schemas import CompletePaymentRequest, PaymentUpdateRequest, StatusUpdateRequest

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Traffic is only accepted once the store answers a ping.
    client, store = await run_in_threadpool(connect)
    app.state.store = store
    try:
        yield
    finally:
        app.state.store = None
        client.close()
        logger.info("MongoDB connection closed")


app = FastAPI(title="Smart Home Services API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------
# Error envelopes
# ---------------------------

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(PyMongoError)
async def store_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": "Database error", "details": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"success": False, "error": "Invalid request body", "details": jsonable_encoder(exc.errors())})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    error = "Route not found" if exc.status_code == 404 else exc.detail
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": error})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error", "details": str(exc)})


# ---------------------------
# Health & Utility
# ---------------------------

@app.get("/")
def read_root():
    return {"message": "Smart Server is Running !"}


@app.get("/test")
def test_database(store: Store = Depends(get_store)):
    response = {
        "backend": "Running",
        "database": store.name,
        "connection_status": "Connected",
        "collections": [],
    }
    try:
        store.ping()
        response["collections"] = store.db.list_collection_names()[:10]
    except PyMongoError as e:
        response["connection_status"] = f"Error: {str(e)[:50]}"
    return response


@app.get("/schema")
def get_schema_models():
    from schemas import User, Service, Decorator, Booking
    return {
        "models": [
            {"name": "User", "collection": "users", "fields": list(User.model_fields.keys())},
            {"name": "Service", "collection": "services", "fields": list(Service.model_fields.keys())},
            {"name": "Decorator", "collection": "decorators", "fields": list(Decorator.model_fields.keys())},
            {"name": "Booking", "collection": "bookings", "fields": list(Booking.model_fields.keys())},
        ]
    }


# ---------------------------
# Users
# ---------------------------

@app.post("/users")
def upsert_user(payload: Dict[str, Any] = Body(...), store: Store = Depends(get_store)):
    user_id, created = catalog.upsert_user(store, payload)
    message = "User created successfully" if created else "User updated successfully"
    return {"success": True, "message": message, "userId": user_id}


# ---------------------------
# Services & Decorators
# ---------------------------

@app.get("/api/services")
def list_services(category: Optional[str] = None, store: Store = Depends(get_store)):
    items = catalog.list_services(store, category)
    return {"success": True, "count": len(items), "data": items}


@app.get("/api/categories")
def list_categories(store: Store = Depends(get_store)):
    return {"success": True, "data": catalog.list_categories(store)}


@app.get("/api/services/{service_id}")
def get_service(service_id: str, store: Store = Depends(get_store)):
    try:
        return catalog.get_service(store, service_id)
    except NotFoundError as e:
        e.details = {"requestedId": service_id, "availableServices": store.sample_services()}
        raise


@app.get("/api/decorators/top")
def top_decorators(limit: int = catalog.TOP_DECORATORS_LIMIT, store: Store = Depends(get_store)):
    items = catalog.top_decorators(store, max(1, min(limit, 50)))
    return {"success": True, "count": len(items), "data": items}


# ---------------------------
# Bookings
# ---------------------------

@app.post("/api/bookings")
def create_booking(payload: Dict[str, Any] = Body(...), store: Store = Depends(get_store)):
    booking = bookings.create_booking(store, payload)
    return {
        "success": True,
        "bookingId": booking["_id"],
        "bookingCode": booking["bookingCode"],
        "data": booking,
    }


@app.get("/api/bookings/user/{user_id}")
def list_user_bookings(user_id: str, store: Store = Depends(get_store)):
    items = bookings.list_user_bookings(store, user_id)
    return {"success": True, "count": len(items), "data": items}


@app.get("/api/bookings/{booking_id}")
def get_booking(booking_id: str, store: Store = Depends(get_store)):
    return {"success": True, "data": bookings.get_booking(store, booking_id)}


@app.patch("/api/bookings/{booking_id}/status")
def update_booking_status(booking_id: str, req: StatusUpdateRequest, store: Store = Depends(get_store)):
    bookings.update_status(store, booking_id, req.status)
    return {"success": True, "message": f"Booking status updated to {req.status}"}


@app.patch("/api/bookings/{booking_id}/payment")
def update_booking_payment(booking_id: str, req: PaymentUpdateRequest, store: Store = Depends(get_store)):
    bookings.update_payment(store, booking_id, req.paymentStatus, req.paymentMethod, req.transactionId)
    return {"success": True, "message": f"Payment status updated to {req.paymentStatus}"}


@app.post("/api/bookings/{booking_id}/complete-payment")
def complete_booking_payment(booking_id: str, req: Optional[CompletePaymentRequest] = None,
                             store: Store = Depends(get_store)):
    req = req or CompletePaymentRequest()
    transaction_id = bookings.complete_payment(store, booking_id, req.paymentMethod, req.transactionId)
    return {"success": True, "message": "Payment completed successfully", "transactionId": transaction_id}


@app.delete("/api/bookings/{booking_id}")
def cancel_booking(booking_id: str, store: Store = Depends(get_store)):
    bookings.cancel_booking(store, booking_id)
    return {"success": True, "message": "Booking cancelled successfully"}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
