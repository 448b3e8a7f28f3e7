import hashlib
import hmac

import pytest

from app.models.domain import (
    BookingRecord,
    BookingStatus,
    Destination,
    PaymentRecord,
    PaymentStatus,
)
from app.services.signature import SignatureVerifier
from app.storage.repository import InMemoryRepository

SECRET = "s3cr3t"
BOOKING_ID = "3f1c2a9e-8b7d-4c6e-9a5f-0d1e2f3a4b5c"


@pytest.fixture
def repository():
    repo = InMemoryRepository()
    repo.save_destination(Destination(id=7, name="Bali", country="Indonesia", slug="bali"))
    repo.save_destination(
        Destination(id=8, name="Ladakh", country="India", slug="ladakh", status="draft")
    )
    return repo


@pytest.fixture
def verifier():
    return SignatureVerifier(SECRET, key_id="rzp_test_key")


@pytest.fixture
def sign():
    """Signs callbacks the way the gateway does."""

    def _sign(order_id, payment_id, secret=SECRET):
        message = f"{order_id}|{payment_id}".encode("utf-8")
        return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()

    return _sign


@pytest.fixture
def booking(repository):
    return repository.create_booking(
        BookingRecord(
            id=BOOKING_ID,
            booking_reference="PAY202601150042",
            customer_name="Asha Menon",
            customer_email="asha@example.com",
            customer_phone="+91 98765 43210",
            destination_id=7,
            total_amount=15000.0,
            currency="INR",
            booking_status=BookingStatus.pending,
            payment_type="Booking Deposit",
            quick_payment_notes="Honeymoon package",
        )
    )


@pytest.fixture
def payment(repository, booking):
    return repository.create_payment(
        PaymentRecord(
            id="payrow-1",
            razorpay_order_id="order_ABC",
            booking_id=booking.id,
            amount=15000.0,
            currency="INR",
            payment_status=PaymentStatus.created,
            customer_email=booking.customer_email,
            customer_phone=booking.customer_phone,
        )
    )
