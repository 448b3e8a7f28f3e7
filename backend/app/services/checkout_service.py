from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from app.core.config import Settings
from app.core.errors import BookingFlowError, MissingFields, StoreError, ValidationError
from app.gateway.client import PaymentGateway
from app.models.domain import (
    AuditEvent,
    AuditEventType,
    BookingRecord,
    BookingStatus,
    PaymentRecord,
    PaymentStatus,
    PaymentType,
)
from app.models.schemas import CreateOrderRequest, CreateOrderResponse
from app.storage.repository import BookingRepository

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"[a-zA-Z\s.'-]+")
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_PATTERN = re.compile(r"[+]?[1-9][\d\s\-\(\)]{8,15}")
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100


@dataclass
class ClientInfo:
    ip_address: str = "unknown"
    user_agent: str = "unknown"


def validate_name(name: str) -> Optional[str]:
    if not name:
        return "This field is required"
    if len(name) < NAME_MIN_LENGTH:
        return f"Name must be at least {NAME_MIN_LENGTH} characters"
    if len(name) > NAME_MAX_LENGTH:
        return f"Name must be less than {NAME_MAX_LENGTH} characters"
    if not NAME_PATTERN.fullmatch(name):
        return "Please enter a valid name"
    return None


def validate_email(email: str) -> Optional[str]:
    if not email:
        return "This field is required"
    if not EMAIL_PATTERN.fullmatch(email):
        return "Please enter a valid email address"
    return None


def validate_phone(phone: str) -> Optional[str]:
    if not phone:
        return "This field is required"
    if not PHONE_PATTERN.fullmatch(phone):
        return "Please enter a valid phone number"
    return None


def validate_amount(amount: Optional[float], minimum: float, maximum: float) -> Optional[str]:
    if not amount:
        return "Please enter a valid amount"
    if amount < minimum:
        return f"Minimum payment amount is ₹{minimum:,.0f}"
    if amount > maximum:
        return f"Maximum payment amount is ₹{maximum:,.0f}"
    return None


def generate_booking_reference(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"PAY{now:%Y%m%d}{random.randint(0, 9999):04d}"


class CheckoutService:
    """
    Opens a checkout: creates the gateway order plus the pending booking and
    the ``created`` payment row that verification later settles.
    """

    def __init__(self, repository: BookingRepository, gateway: PaymentGateway, settings: Settings):
        self.repository = repository
        self.gateway = gateway
        self.settings = settings

    def create_order(self, form: CreateOrderRequest, client: ClientInfo) -> CreateOrderResponse:
        order_id: Optional[str] = None
        try:
            self._validate(form)

            destination = self.repository.get_destination(form.destination_id)
            if destination is None:
                logger.error("Destination %s not found", form.destination_id)
                raise ValidationError(
                    "Invalid destination selected",
                    details=f"Destination ID {form.destination_id} not found",
                )

            reference = self._unique_booking_reference()
            currency = self.settings.default_currency
            order = self.gateway.create_order(
                amount_paise=round(form.amount * 100),
                currency=currency,
                receipt=reference,
                notes={
                    "customer_name": form.customer_name,
                    "customer_email": form.customer_email,
                    "destination": destination.name,
                    "payment_type": form.payment_type,
                },
            )
            order_id = order.id
            logger.info("Gateway order %s created for %s", order.id, reference)

            notes = form.notes.strip() if form.notes else ""
            booking = self._create_booking(form, reference, currency, notes)
            self._create_payment(form, booking, order.id, currency)
        except BookingFlowError as exc:
            self._audit(form, client, error_message=exc.message, order_id=order_id)
            raise
        except Exception as exc:
            self._audit(form, client, error_message=str(exc) or type(exc).__name__, order_id=order_id)
            raise

        self._audit(form, client, order_id=order.id)
        logger.info(
            "Checkout opened: order %s, booking %s (%s)",
            order.id,
            booking.id,
            booking.booking_reference,
        )
        return CreateOrderResponse(
            razorpay_order_id=order.id,
            amount=order.amount,
            currency=order.currency,
            booking_id=booking.id,
            booking_reference=booking.booking_reference,
        )

    def _validate(self, form: CreateOrderRequest) -> None:
        required = [
            form.customer_name,
            form.customer_email,
            form.customer_phone,
            form.destination_id,
            form.amount,
            form.payment_type,
        ]
        if any(not value for value in required):
            raise MissingFields()

        problems: List[Optional[str]] = [
            validate_name(form.customer_name),
            validate_email(form.customer_email),
            validate_phone(form.customer_phone),
            validate_amount(
                form.amount, self.settings.payment_min_amount, self.settings.payment_max_amount
            ),
        ]
        if form.payment_type not in {t.value for t in PaymentType}:
            problems.append("Please select a valid payment type")
        errors = [p for p in problems if p]
        if errors:
            raise ValidationError("Invalid form data: " + ", ".join(errors))

    def _unique_booking_reference(self) -> str:
        reference = generate_booking_reference()
        for _ in range(self.settings.booking_reference_attempts):
            if not self.repository.booking_reference_exists(reference):
                break
            reference = generate_booking_reference()
        return reference

    def _create_booking(
        self, form: CreateOrderRequest, reference: str, currency: str, notes: str
    ) -> BookingRecord:
        try:
            return self.repository.create_booking(
                BookingRecord(
                    id=str(uuid4()),
                    booking_reference=reference,
                    customer_name=form.customer_name,
                    customer_email=form.customer_email,
                    customer_phone=form.customer_phone,
                    destination_id=form.destination_id,
                    total_amount=form.amount,
                    currency=currency,
                    booking_status=BookingStatus.pending,
                    payment_type=form.payment_type,
                    quick_payment_notes=notes or None,
                )
            )
        except StoreError as exc:
            raise StoreError("Failed to create booking record") from exc

    def _create_payment(
        self, form: CreateOrderRequest, booking: BookingRecord, order_id: str, currency: str
    ) -> PaymentRecord:
        try:
            return self.repository.create_payment(
                PaymentRecord(
                    id=str(uuid4()),
                    razorpay_order_id=order_id,
                    booking_id=booking.id,
                    amount=form.amount,
                    currency=currency,
                    payment_status=PaymentStatus.created,
                    customer_email=form.customer_email,
                    customer_phone=form.customer_phone,
                )
            )
        except StoreError as exc:
            raise StoreError("Failed to create payment record") from exc

    def _audit(
        self,
        form: CreateOrderRequest,
        client: ClientInfo,
        error_message: Optional[str] = None,
        order_id: Optional[str] = None,
    ) -> None:
        event = AuditEvent(
            event_type=AuditEventType.payment_attempt,
            ip_address=client.ip_address,
            user_agent=client.user_agent,
            customer_email=form.customer_email,
            customer_phone=form.customer_phone,
            amount=form.amount,
            razorpay_order_id=order_id,
            error_message=error_message,
            metadata={
                "destination_id": form.destination_id,
                "payment_type": form.payment_type,
            },
        )
        try:
            self.repository.log_audit_event(event)
        except StoreError as exc:
            logger.warning("Failed to log payment attempt: %s", exc)
