from dataclasses import dataclass, field
from typing import Dict, Protocol
from uuid import uuid4


@dataclass
class GatewayOrder:
    id: str
    amount: int
    currency: str
    receipt: str
    notes: Dict[str, str] = field(default_factory=dict)


class PaymentGateway(Protocol):
    """Order creation abstraction so the checkout flow can swap providers."""

    def create_order(
        self, amount_paise: int, currency: str, receipt: str, notes: Dict[str, str]
    ) -> GatewayOrder:
        ...


class MockPaymentGateway:
    """
    Offline stand-in for the hosted gateway. Local development and tests get
    order ids shaped like real ones without any network traffic.
    """

    def __init__(self) -> None:
        self.orders: Dict[str, GatewayOrder] = {}

    def create_order(
        self, amount_paise: int, currency: str, receipt: str, notes: Dict[str, str]
    ) -> GatewayOrder:
        order = GatewayOrder(
            id=f"order_{uuid4().hex[:14]}",
            amount=amount_paise,
            currency=currency,
            receipt=receipt,
            notes=dict(notes),
        )
        self.orders[order.id] = order
        return order
