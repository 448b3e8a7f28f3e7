import re

import pytest

from app.core.config import Settings
from app.core.errors import GatewayError, MissingFields, StoreError, ValidationError
from app.gateway.client import MockPaymentGateway
from app.models.domain import AuditEventType, BookingStatus, PaymentStatus
from app.models.schemas import CreateOrderRequest
from app.services import checkout_service
from app.services.checkout_service import CheckoutService, ClientInfo


@pytest.fixture
def gateway():
    return MockPaymentGateway()


@pytest.fixture
def service(repository, gateway):
    settings = Settings(payment_min_amount=500, payment_max_amount=500000)
    return CheckoutService(repository=repository, gateway=gateway, settings=settings)


@pytest.fixture
def client():
    return ClientInfo(ip_address="203.0.113.9", user_agent="pytest")


def _form(**overrides):
    data = dict(
        customer_name="Asha Menon",
        customer_email="asha@example.com",
        customer_phone="+91 98765 43210",
        destination_id=7,
        amount=12500.5,
        payment_type="Booking Deposit",
        notes="  Window seats please ",
    )
    data.update(overrides)
    return CreateOrderRequest(**data)


def test_create_order_opens_pending_booking_and_payment(service, repository, gateway, client):
    response = service.create_order(_form(), client)

    assert response.success
    assert re.fullmatch(r"PAY\d{12}", response.booking_reference)
    assert response.amount == 1250050
    assert response.currency == "INR"

    order = gateway.orders[response.razorpay_order_id]
    assert order.receipt == response.booking_reference
    assert order.notes["destination"] == "Bali"

    booking = repository.get_booking(response.booking_id)
    assert booking.booking_status == BookingStatus.pending
    assert booking.quick_payment_notes == "Window seats please"
    assert booking.source == "pay_now_modal"

    payment = repository.get_payment_by_order_id(response.razorpay_order_id)
    assert payment.payment_status == PaymentStatus.created
    assert payment.booking_id == booking.id

    [event] = repository.audit_log
    assert event.event_type == AuditEventType.payment_attempt
    assert event.razorpay_order_id == response.razorpay_order_id
    assert event.error_message is None
    assert event.ip_address == "203.0.113.9"


def test_missing_fields_are_rejected_and_audited(service, repository, client):
    with pytest.raises(MissingFields):
        service.create_order(_form(customer_phone=None), client)

    assert repository.bookings == {}
    assert repository.audit_log[0].error_message == "Missing required fields"


def test_invalid_form_values_are_reported_together(service, client):
    with pytest.raises(ValidationError) as exc_info:
        service.create_order(_form(customer_email="not-an-email", customer_name="R2D2"), client)

    message = exc_info.value.message
    assert message.startswith("Invalid form data: ")
    assert "valid name" in message
    assert "valid email" in message


@pytest.mark.parametrize(
    "amount, fragment",
    [(100, "Minimum payment amount is ₹500"), (900000, "Maximum payment amount is ₹500,000")],
)
def test_amount_limits(service, client, amount, fragment):
    with pytest.raises(ValidationError) as exc_info:
        service.create_order(_form(amount=amount), client)

    assert fragment in exc_info.value.message


def test_unknown_payment_type_is_rejected(service, client):
    with pytest.raises(ValidationError):
        service.create_order(_form(payment_type="Tip"), client)


def test_unknown_destination_is_rejected(service, repository, client):
    with pytest.raises(ValidationError) as exc_info:
        service.create_order(_form(destination_id=999), client)

    assert exc_info.value.message == "Invalid destination selected"
    assert repository.bookings == {}


def test_booking_reference_is_regenerated_on_collision(monkeypatch, service, repository, client):
    first = service.create_order(_form(), client)
    references = iter([first.booking_reference, "PAY202601019999"])
    monkeypatch.setattr(checkout_service, "generate_booking_reference", lambda: next(references))

    second = service.create_order(_form(), client)

    assert second.booking_reference == "PAY202601019999"


def test_gateway_failure_creates_nothing(monkeypatch, service, repository, gateway, client):
    def broken_create_order(**kwargs):
        raise GatewayError()

    monkeypatch.setattr(gateway, "create_order", broken_create_order)

    with pytest.raises(GatewayError):
        service.create_order(_form(), client)

    assert repository.bookings == {}
    assert repository.payments == {}
    assert repository.audit_log[0].error_message == "Payment gateway unavailable"


def test_unexpected_failure_is_still_audited(monkeypatch, service, repository, gateway, client):
    def broken_create_order(**kwargs):
        raise RuntimeError("connection reset by peer")

    monkeypatch.setattr(gateway, "create_order", broken_create_order)

    with pytest.raises(RuntimeError):
        service.create_order(_form(), client)

    assert len(repository.audit_log) == 1
    assert repository.audit_log[0].error_message == "connection reset by peer"
    assert repository.audit_log[0].event_type == AuditEventType.payment_attempt


def test_payment_insert_failure_surfaces_store_error(monkeypatch, service, repository, client):
    def broken_create_payment(payment):
        raise StoreError()

    monkeypatch.setattr(repository, "create_payment", broken_create_payment)

    with pytest.raises(StoreError) as exc_info:
        service.create_order(_form(), client)

    assert exc_info.value.message == "Failed to create payment record"
    assert repository.audit_log[0].razorpay_order_id is not None


def test_audit_log_failure_does_not_fail_checkout(monkeypatch, service, repository, client):
    def broken_audit(event):
        raise StoreError()

    monkeypatch.setattr(repository, "log_audit_event", broken_audit)

    response = service.create_order(_form(), client)

    assert response.success


def test_email_with_trailing_newline_is_rejected():
    assert checkout_service.validate_email("asha@example.com") is None
    assert checkout_service.validate_email("asha@example.com\n") == "Please enter a valid email address"
