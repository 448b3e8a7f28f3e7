from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol

from app.models.domain import (
    AuditEvent,
    BookingRecord,
    BookingStatus,
    Destination,
    FeatureControl,
    PaymentRecord,
    PaymentStatus,
)


class BookingRepository(Protocol):
    """
    Store handle shared by the payment and booking services.

    Implementations raise ``StoreError`` when the backing store cannot be
    reached or answers with an error. Lookups return ``None`` for absent rows.
    """

    def get_payment_by_order_id(self, order_id: str) -> Optional[PaymentRecord]:
        ...

    def get_payment_by_gateway_payment_id(self, payment_id: str) -> Optional[PaymentRecord]:
        ...

    def get_payment_by_booking_id(self, booking_id: str) -> Optional[PaymentRecord]:
        ...

    def capture_payment(
        self,
        record_id: str,
        gateway_payment_id: str,
        signature: str,
        captured_at: datetime,
    ) -> Optional[PaymentRecord]:
        """Mark the payment captured unless it already is; ``None`` when no row changed."""
        ...

    def confirm_booking(self, booking_id: str, payment_record_id: str) -> Optional[BookingRecord]:
        ...

    def get_booking(self, booking_id: str) -> Optional[BookingRecord]:
        ...

    def booking_reference_exists(self, reference: str) -> bool:
        ...

    def create_booking(self, booking: BookingRecord) -> BookingRecord:
        ...

    def create_payment(self, payment: PaymentRecord) -> PaymentRecord:
        ...

    def get_destination(self, destination_id: int) -> Optional[Destination]:
        ...

    def list_published_destinations(self) -> List[Destination]:
        ...

    def get_feature_control(self, feature_name: str) -> Optional[FeatureControl]:
        ...

    def log_audit_event(self, event: AuditEvent) -> None:
        ...


class InMemoryRepository:
    """Thread-safe store for tests and local runs; every access holds ``_lock``."""

    def __init__(self) -> None:
        self.payments: Dict[str, PaymentRecord] = {}
        self.bookings: Dict[str, BookingRecord] = {}
        self.destinations: Dict[int, Destination] = {}
        self.feature_controls: Dict[str, FeatureControl] = {}
        self.audit_log: List[AuditEvent] = []
        self._lock = threading.Lock()

    def save_destination(self, destination: Destination) -> Destination:
        with self._lock:
            self.destinations[destination.id] = destination
        return destination

    def save_feature_control(self, control: FeatureControl) -> FeatureControl:
        with self._lock:
            self.feature_controls[control.feature_name] = control
        return control

    def _find_payment(self, **match) -> Optional[PaymentRecord]:
        with self._lock:
            for payment in self.payments.values():
                if all(getattr(payment, field) == value for field, value in match.items()):
                    return replace(payment)
        return None

    def get_payment_by_order_id(self, order_id: str) -> Optional[PaymentRecord]:
        return self._find_payment(razorpay_order_id=order_id)

    def get_payment_by_gateway_payment_id(self, payment_id: str) -> Optional[PaymentRecord]:
        return self._find_payment(razorpay_payment_id=payment_id)

    def get_payment_by_booking_id(self, booking_id: str) -> Optional[PaymentRecord]:
        return self._find_payment(booking_id=booking_id)

    def capture_payment(
        self,
        record_id: str,
        gateway_payment_id: str,
        signature: str,
        captured_at: datetime,
    ) -> Optional[PaymentRecord]:
        with self._lock:
            payment = self.payments.get(record_id)
            if payment is None or payment.is_captured:
                return None
            payment.razorpay_payment_id = gateway_payment_id
            payment.razorpay_signature = signature
            payment.payment_status = PaymentStatus.captured
            payment.payment_captured_at = captured_at
            return replace(payment)

    def confirm_booking(self, booking_id: str, payment_record_id: str) -> Optional[BookingRecord]:
        with self._lock:
            booking = self.bookings.get(booking_id)
            if booking is None:
                return None
            booking.booking_status = BookingStatus.confirmed
            booking.payment_id = payment_record_id
            return replace(booking)

    def get_booking(self, booking_id: str) -> Optional[BookingRecord]:
        with self._lock:
            booking = self.bookings.get(booking_id)
            return replace(booking) if booking else None

    def booking_reference_exists(self, reference: str) -> bool:
        with self._lock:
            return any(b.booking_reference == reference for b in self.bookings.values())

    def create_booking(self, booking: BookingRecord) -> BookingRecord:
        if booking.created_at is None:
            booking.created_at = datetime.now(timezone.utc)
        with self._lock:
            self.bookings[booking.id] = replace(booking)
        return replace(booking)

    def create_payment(self, payment: PaymentRecord) -> PaymentRecord:
        if payment.created_at is None:
            payment.created_at = datetime.now(timezone.utc)
        with self._lock:
            self.payments[payment.id] = replace(payment)
        return replace(payment)

    def get_destination(self, destination_id: int) -> Optional[Destination]:
        with self._lock:
            return self.destinations.get(destination_id)

    def list_published_destinations(self) -> List[Destination]:
        with self._lock:
            published = [d for d in self.destinations.values() if d.status == "published"]
        return sorted(published, key=lambda d: d.name)

    def get_feature_control(self, feature_name: str) -> Optional[FeatureControl]:
        with self._lock:
            return self.feature_controls.get(feature_name)

    def log_audit_event(self, event: AuditEvent) -> None:
        with self._lock:
            self.audit_log.append(event)
