from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class PaymentStatus(str, Enum):
    created = "created"
    pending = "pending"
    captured = "captured"
    failed = "failed"
    cancelled = "cancelled"
    refunded = "refunded"


class BookingStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    completed = "completed"


class PaymentType(str, Enum):
    booking_deposit = "Booking Deposit"
    balance_payment = "Balance Payment"
    full_package_payment = "Full Package Payment"
    advance_payment = "Advance Payment"
    other = "Other"


class AuditEventType(str, Enum):
    payment_attempt = "payment_attempt"
    payment_success = "payment_success"
    payment_failure = "payment_failure"
    invalid_signature = "invalid_signature"


@dataclass
class Destination:
    id: int
    name: str
    country: str
    slug: str = ""
    status: str = "published"


@dataclass
class PaymentRecord:
    id: str
    razorpay_order_id: str
    booking_id: str
    amount: float
    currency: str
    payment_status: PaymentStatus
    customer_email: str
    customer_phone: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    payment_captured_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_captured(self) -> bool:
        return self.payment_status == PaymentStatus.captured


@dataclass
class BookingRecord:
    id: str
    booking_reference: str
    customer_name: str
    customer_email: str
    customer_phone: str
    destination_id: int
    total_amount: float
    currency: str
    booking_status: BookingStatus
    payment_type: str
    payment_id: Optional[str] = None
    quick_payment_notes: Optional[str] = None
    is_quick_payment: bool = True
    source: str = "pay_now_modal"
    created_at: Optional[datetime] = None

    @property
    def is_confirmed(self) -> bool:
        return self.booking_status == BookingStatus.confirmed


@dataclass
class FeatureControl:
    feature_name: str
    is_enabled: bool
    disabled_reason: Optional[str] = None


@dataclass
class AuditEvent:
    event_type: AuditEventType
    ip_address: str
    user_agent: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    amount: Optional[float] = None
    razorpay_order_id: Optional[str] = None
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
