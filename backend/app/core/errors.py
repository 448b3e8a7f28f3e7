"""
Error taxonomy for the payment and booking flows.

Each error carries the HTTP status it maps to and a message that is safe to
show to a client. ``details`` is optional extra context for the response body;
never put store internals or secrets in it.
"""
from typing import Optional


class ConfigurationError(RuntimeError):
    """Raised at startup when the selected backends are missing settings."""


class BookingFlowError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_body(self) -> dict:
        body = {"success": False, "error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(BookingFlowError):
    status_code = 400
    default_message = "Invalid request"


class MissingFields(ValidationError):
    default_message = "Missing required fields"


class AuthenticityError(BookingFlowError):
    status_code = 400
    default_message = "Payment could not be authenticated"


class InvalidSignature(AuthenticityError):
    default_message = "Invalid payment signature"


class NotFoundError(BookingFlowError):
    status_code = 404
    default_message = "Not found"


class PaymentNotFound(NotFoundError):
    default_message = "Payment not found"


class BookingNotFound(NotFoundError):
    default_message = "Booking not found"


class NotConfirmedError(BookingFlowError):
    status_code = 400
    default_message = "Not confirmed"


class PaymentNotConfirmed(NotConfirmedError):
    default_message = "Payment not confirmed"


class BookingNotConfirmed(NotConfirmedError):
    default_message = "Booking not confirmed"


class StoreError(BookingFlowError):
    status_code = 500
    default_message = "Internal server error"


class UpdateFailed(StoreError):
    default_message = "Failed to update record"


class GatewayError(BookingFlowError):
    status_code = 502
    default_message = "Payment gateway unavailable"
