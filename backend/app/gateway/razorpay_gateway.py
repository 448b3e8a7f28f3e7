import logging
from typing import Any, Dict, Optional

from app.core.errors import GatewayError
from app.gateway.client import GatewayOrder

logger = logging.getLogger(__name__)


class RazorpayGateway:
    """PaymentGateway backed by the Razorpay Orders API."""

    def __init__(self, key_id: str, key_secret: str, client: Optional[Any] = None):
        if client is None:
            import razorpay

            client = razorpay.Client(auth=(key_id, key_secret))
        self.client = client

    def create_order(
        self, amount_paise: int, currency: str, receipt: str, notes: Dict[str, str]
    ) -> GatewayOrder:
        try:
            order = self.client.order.create(
                data={
                    "amount": amount_paise,
                    "currency": currency,
                    "receipt": receipt,
                    "notes": notes,
                }
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("Razorpay order creation failed for receipt %s: %s", receipt, exc)
            raise GatewayError() from exc

        return GatewayOrder(
            id=order["id"],
            amount=int(order.get("amount", amount_paise)),
            currency=order.get("currency", currency),
            receipt=order.get("receipt", receipt),
            notes=order.get("notes") or dict(notes),
        )
