"""
API errors raised by the booking and catalog layers.

Each error carries the HTTP status it maps to; main.py turns them into the
JSON envelope {success: false, error, details?}.
"""
from typing import Any, Optional


class ApiError(Exception):
    """Base exception for errors surfaced to API clients"""

    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(ApiError):
    """Missing or invalid field in the request"""

    status_code = 400


class NotFoundError(ApiError):
    """No document matched after identifier resolution"""

    status_code = 404


class StoreError(ApiError):
    """Database connectivity or driver failure"""

    status_code = 500
