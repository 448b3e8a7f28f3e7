import logging
from datetime import datetime, timezone
from typing import Optional

from app.core.errors import (
    InvalidSignature,
    MissingFields,
    PaymentNotFound,
    StoreError,
    UpdateFailed,
)
from app.models.domain import PaymentRecord
from app.models.schemas import VerifyPaymentResponse
from app.services.signature import SignatureVerifier
from app.storage.repository import BookingRepository

logger = logging.getLogger(__name__)


class PaymentConfirmationService:
    """
    Turns a verified gateway callback into a captured payment and a confirmed
    booking.

    The payment row is always written before the booking row. If the booking
    write fails after the capture succeeded, the payment stays captured and the
    booking stays pending; nothing here rolls the capture back.
    """

    def __init__(self, repository: BookingRepository, verifier: SignatureVerifier):
        self.repository = repository
        self.verifier = verifier

    def verify_and_confirm(
        self,
        order_id: Optional[str],
        payment_id: Optional[str],
        signature: Optional[str],
    ) -> VerifyPaymentResponse:
        if not order_id or not payment_id or not signature:
            raise MissingFields()

        if not self.verifier.verify(order_id, payment_id, signature):
            logger.warning("Invalid signature for order %s, payment %s", order_id, payment_id)
            raise InvalidSignature()

        payment = self.repository.get_payment_by_order_id(order_id)
        if payment is None:
            logger.error("Payment record not found for order %s", order_id)
            raise PaymentNotFound("Payment record not found")

        if payment.is_captured:
            logger.info("Payment %s for order %s already captured", payment.id, order_id)
            return self._already_processed(payment, payment_id)

        try:
            captured = self.repository.capture_payment(
                record_id=payment.id,
                gateway_payment_id=payment_id,
                signature=signature,
                captured_at=datetime.now(timezone.utc),
            )
        except StoreError as exc:
            logger.error("Failed to capture payment %s for order %s", payment.id, order_id)
            raise UpdateFailed("Failed to update payment") from exc

        if captured is None:
            # another request won the conditional update
            current = self.repository.get_payment_by_order_id(order_id)
            if current is None or not current.is_captured:
                logger.error("Capture of payment %s changed no row", payment.id)
                raise UpdateFailed("Failed to update payment")
            return self._already_processed(current, payment_id)

        logger.info("Payment %s captured (gateway id %s)", captured.id, payment_id)

        try:
            booking = self.repository.confirm_booking(captured.booking_id, captured.id)
        except StoreError as exc:
            logger.error(
                "Payment %s captured but booking %s could not be confirmed",
                captured.id,
                captured.booking_id,
            )
            raise UpdateFailed("Failed to update booking") from exc
        if booking is None:
            logger.error(
                "Payment %s captured but booking %s does not exist",
                captured.id,
                captured.booking_id,
            )
            raise UpdateFailed("Failed to update booking")

        logger.info("Booking %s (%s) confirmed", booking.id, booking.booking_reference)
        return VerifyPaymentResponse(
            booking_id=booking.id,
            booking_reference=booking.booking_reference,
            payment_id=payment_id,
            message="Payment verified successfully",
        )

    def _already_processed(self, payment: PaymentRecord, payment_id: str) -> VerifyPaymentResponse:
        booking = self.repository.get_booking(payment.booking_id)
        if booking is not None and not booking.is_confirmed:
            logger.warning(
                "Payment %s is captured but booking %s is %s; needs manual reconciliation",
                payment.id,
                booking.id,
                booking.booking_status.value,
            )
        return VerifyPaymentResponse(
            booking_id=payment.booking_id,
            booking_reference=booking.booking_reference if booking else None,
            payment_id=payment.razorpay_payment_id or payment_id,
            message="Payment already processed",
        )
