"""
Domain exceptions for the order pipeline.

Each exception carries the HTTP status and a stable error code so the
exception handlers can render it without the service layer knowing about HTTP.
"""
from typing import Any, Dict, Optional


class OrderDeskError(Exception):
    """Base class for errors that map to a client-visible response."""
    status_code = 500
    code = "server_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ----------- Validation (400) -----------

class OrderValidationError(OrderDeskError):
    status_code = 400
    code = "validation_error"

    def __init__(self, field: str, message: str):
        super().__init__(message, {"field": field})
        self.field = field


class InvalidStatusTransition(OrderDeskError):
    status_code = 400
    code = "invalid_status"


class PaymentReferenceRequired(OrderDeskError):
    status_code = 400
    code = "payment_reference_required"


# ----------- Payment rejection -----------

class PaymentNotCompleted(OrderDeskError):
    status_code = 402
    code = "payment_not_completed"


class PaymentAmountMismatch(OrderDeskError):
    status_code = 400
    code = "payment_amount_mismatch"


# ----------- Lookup / authorization -----------

class OrderNotFound(OrderDeskError):
    status_code = 404
    code = "not_found"


class AuthenticationRequired(OrderDeskError):
    status_code = 401
    code = "unauthorized"


class StaffOnly(OrderDeskError):
    status_code = 403
    code = "forbidden"


class NotOrderOwner(OrderDeskError):
    status_code = 403
    code = "forbidden"


class OrderConflict(OrderDeskError):
    status_code = 409
    code = "conflict"


class LoginBlocked(OrderDeskError):
    status_code = 429
    code = "too_many_attempts"


class RateLimited(OrderDeskError):
    status_code = 429
    code = "rate_limited"


# ----------- Upstream / server -----------

class PaymentGatewayNotConfigured(OrderDeskError):
    status_code = 503
    code = "payment_gateway_not_configured"


class PaymentGatewayUnavailable(OrderDeskError):
    status_code = 502
    code = "payment_gateway_unavailable"


class OrderPersistenceError(OrderDeskError):
    status_code = 500
    code = "order_insertion_failed"
