import types

import pytest

from app.core.errors import GatewayError
from app.gateway.client import MockPaymentGateway
from app.gateway.razorpay_gateway import RazorpayGateway


def test_mock_gateway_returns_order_shaped_ids():
    gateway = MockPaymentGateway()

    order = gateway.create_order(
        amount_paise=50000, currency="INR", receipt="PAY202601010001", notes={}
    )

    assert order.id.startswith("order_")
    assert gateway.orders[order.id].amount == 50000


def test_razorpay_gateway_sends_order_payload():
    captured = {}

    def fake_create(data):
        captured["data"] = data
        return {"id": "order_real_123", "amount": data["amount"], "currency": "INR", "notes": []}

    client = types.SimpleNamespace(order=types.SimpleNamespace(create=fake_create))
    gateway = RazorpayGateway(key_id="rzp_test", key_secret="secret", client=client)

    order = gateway.create_order(
        amount_paise=125000,
        currency="INR",
        receipt="PAY202601010001",
        notes={"destination": "Bali"},
    )

    assert order.id == "order_real_123"
    assert order.amount == 125000
    assert order.notes == {"destination": "Bali"}
    assert captured["data"]["receipt"] == "PAY202601010001"


def test_razorpay_gateway_wraps_sdk_errors():
    def fake_create(data):
        raise RuntimeError("BAD_REQUEST_ERROR")

    client = types.SimpleNamespace(order=types.SimpleNamespace(create=fake_create))
    gateway = RazorpayGateway(key_id="rzp_test", key_secret="secret", client=client)

    with pytest.raises(GatewayError):
        gateway.create_order(amount_paise=100, currency="INR", receipt="r", notes={})
