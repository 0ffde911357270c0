"""
Application exceptions. Each one carries the HTTP status it maps to;
error_handlers turns them into JSON responses.
"""
from __future__ import annotations


class PlantShopError(Exception):
    """Base exception for all app errors; never raised directly."""
    status_code = 500
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, **payload):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.payload = payload


class ValidationError(PlantShopError):
    status_code = 400
    message = "Invalid input"

    def __init__(self, message: str | None = None, errors: dict[str, str] | None = None, **payload):
        super().__init__(message, **payload)
        self.errors = errors or {}


class AuthenticationError(PlantShopError):
    status_code = 401
    message = "Authentication required"


class PaymentError(PlantShopError):
    status_code = 402
    message = "Payment failed"


class AuthorizationError(PlantShopError):
    status_code = 403
    message = "You do not have permission to perform this action"


class NotFoundError(PlantShopError):
    status_code = 404
    message = "The requested resource was not found"


class ConflictError(PlantShopError):
    status_code = 409
    message = "The request conflicts with the current state"
