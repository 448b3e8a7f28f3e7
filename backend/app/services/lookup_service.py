import logging
import re
from typing import Optional

from app.core.errors import (
    BookingNotConfirmed,
    BookingNotFound,
    PaymentNotConfirmed,
    PaymentNotFound,
    ValidationError,
)
from app.models.domain import BookingRecord, PaymentRecord
from app.models.schemas import BookingDetailsSchema
from app.storage.repository import BookingRepository

logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)


class BookingLookupService:
    """Read paths used by the payment-success page to show a booking."""

    def __init__(self, repository: BookingRepository):
        self.repository = repository

    def find_by_payment_id(self, payment_id: str) -> BookingDetailsSchema:
        """
        Resolve a confirmed booking from a gateway payment id alone.

        Payment and booking are written separately, so each status is checked
        on its own: a captured payment does not imply a confirmed booking.
        """
        payment = self.repository.get_payment_by_gateway_payment_id(payment_id)
        if payment is None:
            logger.error("Payment not found for gateway payment %s", payment_id)
            raise PaymentNotFound(details="Payment not found")

        if not payment.is_captured:
            logger.warning(
                "Lookup for payment %s refused: status %s",
                payment_id,
                payment.payment_status.value,
            )
            raise PaymentNotConfirmed(details="Payment not confirmed")

        booking = self.repository.get_booking(payment.booking_id)
        if booking is None:
            logger.error("Booking %s not found for payment %s", payment.booking_id, payment_id)
            raise BookingNotFound(details="Booking not found")

        if not booking.is_confirmed:
            logger.warning(
                "Lookup for payment %s refused: booking %s is %s",
                payment_id,
                booking.id,
                booking.booking_status.value,
            )
            raise BookingNotConfirmed(details="Booking not confirmed")

        logger.info("Returning booking %s for payment %s", booking.booking_reference, payment_id)
        return self._project(booking, payment, fallback_payment_id=payment_id)

    def get_booking_details(
        self, booking_id: str, payment_id: Optional[str] = None
    ) -> BookingDetailsSchema:
        if not UUID_PATTERN.fullmatch(booking_id):
            logger.error("Invalid booking ID format: %s", booking_id)
            raise ValidationError("Invalid booking ID format")

        booking = self.repository.get_booking(booking_id)
        if booking is None:
            logger.error("Booking %s not found", booking_id)
            raise BookingNotFound()

        payment = self.repository.get_payment_by_booking_id(booking.id)
        if payment_id and (payment is None or payment.razorpay_payment_id != payment_id):
            logger.error(
                "Payment ID mismatch for booking %s: expected %s, got %s",
                booking_id,
                payment_id,
                payment.razorpay_payment_id if payment else None,
            )
            raise ValidationError("Payment ID does not match booking")

        if not booking.is_confirmed:
            logger.error("Booking %s not confirmed: %s", booking_id, booking.booking_status.value)
            raise BookingNotConfirmed()

        return self._project(booking, payment)

    def _project(
        self,
        booking: BookingRecord,
        payment: Optional[PaymentRecord],
        fallback_payment_id: str = "Unknown",
    ) -> BookingDetailsSchema:
        destination = self.repository.get_destination(booking.destination_id)
        return BookingDetailsSchema.from_domain(
            booking,
            destination=destination,
            payment=payment,
            fallback_payment_id=fallback_payment_id,
        )
