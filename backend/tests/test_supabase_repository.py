import json
from datetime import datetime, timezone

import pytest
import requests

from app.core.errors import StoreError
from app.models.domain import BookingStatus, PaymentStatus
from app.storage.supabase import SupabaseRepository

PAYMENT_ROW = {
    "id": "payrow-1",
    "razorpay_order_id": "order_ABC",
    "razorpay_payment_id": None,
    "booking_id": "3f1c2a9e-8b7d-4c6e-9a5f-0d1e2f3a4b5c",
    "amount": 15000,
    "currency": "INR",
    "payment_status": "created",
    "customer_email": "asha@example.com",
    "created_at": "2026-01-15T10:00:00+00:00",
}


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body
        self.content = json.dumps(body).encode() if body is not None else b""

    def json(self):
        return self._body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, responses):
        self.headers = {}
        self.calls = []
        self._responses = list(responses)

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        self.calls.append(
            {"method": method, "url": url, "params": params, "json": json, "headers": headers}
        )
        return self._responses.pop(0)


def _repo(*responses):
    session = FakeSession(responses)
    repo = SupabaseRepository("https://proj.supabase.co/", "service-key", session=session)
    return repo, session


def test_auth_headers_use_service_role_key():
    _, session = _repo()

    assert session.headers["apikey"] == "service-key"
    assert session.headers["Authorization"] == "Bearer service-key"


def test_get_payment_by_order_id_filters_on_equality():
    repo, session = _repo(FakeResponse(body=[PAYMENT_ROW]))

    payment = repo.get_payment_by_order_id("order_ABC")

    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://proj.supabase.co/rest/v1/payments"
    assert call["params"]["razorpay_order_id"] == "eq.order_ABC"
    assert payment.payment_status == PaymentStatus.created
    assert payment.created_at == datetime(2026, 1, 15, 10, tzinfo=timezone.utc)


def test_missing_row_returns_none():
    repo, _ = _repo(FakeResponse(body=[]))

    assert repo.get_payment_by_gateway_payment_id("pay_NOPE") is None


def test_capture_is_conditional_on_status():
    captured_row = dict(PAYMENT_ROW, payment_status="captured", razorpay_payment_id="pay_XYZ")
    repo, session = _repo(FakeResponse(body=[captured_row]))

    payment = repo.capture_payment(
        record_id="payrow-1",
        gateway_payment_id="pay_XYZ",
        signature="sig",
        captured_at=datetime(2026, 1, 15, 10, 5, tzinfo=timezone.utc),
    )

    call = session.calls[0]
    assert call["method"] == "PATCH"
    assert call["params"] == {"id": "eq.payrow-1", "payment_status": "neq.captured"}
    assert call["headers"] == {"Prefer": "return=representation"}
    assert call["json"]["payment_status"] == "captured"
    assert call["json"]["payment_captured_at"] == "2026-01-15T10:05:00+00:00"
    assert payment.is_captured


def test_capture_that_changes_no_row_returns_none():
    repo, _ = _repo(FakeResponse(body=[]))

    result = repo.capture_payment(
        record_id="payrow-1",
        gateway_payment_id="pay_XYZ",
        signature="sig",
        captured_at=datetime.now(timezone.utc),
    )

    assert result is None


def test_confirm_booking_returns_updated_row():
    row = {
        "id": "3f1c2a9e-8b7d-4c6e-9a5f-0d1e2f3a4b5c",
        "booking_reference": "PAY202601150042",
        "customer_name": "Asha Menon",
        "destination_id": 7,
        "total_amount": "15000.00",
        "booking_status": "confirmed",
        "payment_id": "payrow-1",
    }
    repo, session = _repo(FakeResponse(body=[row]))

    booking = repo.confirm_booking(row["id"], "payrow-1")

    assert session.calls[0]["json"] == {"booking_status": "confirmed", "payment_id": "payrow-1"}
    assert booking.booking_status == BookingStatus.confirmed
    assert booking.total_amount == 15000.0


def test_http_error_becomes_store_error():
    repo, _ = _repo(FakeResponse(status_code=503, body={"message": "upstream down"}))

    with pytest.raises(StoreError):
        repo.get_payment_by_order_id("order_ABC")


class HtmlResponse(FakeResponse):
    def __init__(self):
        super().__init__(status_code=200)
        self.content = b"<html>gateway timeout</html>"

    def json(self):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


def test_non_json_success_body_becomes_store_error():
    repo, _ = _repo(HtmlResponse())

    with pytest.raises(StoreError):
        repo.capture_payment(
            record_id="payrow-1",
            gateway_payment_id="pay_XYZ",
            signature="sig",
            captured_at=datetime(2026, 1, 15, tzinfo=timezone.utc),
        )


def test_malformed_row_becomes_store_error():
    repo, _ = _repo(FakeResponse(body=[dict(PAYMENT_ROW, payment_status="teleported")]))

    with pytest.raises(StoreError):
        repo.get_payment_by_order_id("order_ABC")


def test_published_destinations_are_filtered_and_ordered():
    rows = [{"id": 1, "name": "Bali", "slug": "bali", "country": "Indonesia", "status": "published"}]
    repo, session = _repo(FakeResponse(body=rows))

    destinations = repo.list_published_destinations()

    params = session.calls[0]["params"]
    assert params["status"] == "eq.published"
    assert params["order"] == "name"
    assert destinations[0].name == "Bali"
