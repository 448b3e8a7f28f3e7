from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.domain import BookingRecord, Destination, PaymentRecord


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class VerifyPaymentRequest(BaseModel):
    """Callback payload posted by the checkout widget after a payment."""

    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None


class VerifyPaymentResponse(CamelModel):
    success: bool = True
    booking_id: str = Field(alias="bookingId")
    booking_reference: Optional[str] = Field(None, alias="bookingReference")
    payment_id: str = Field(alias="paymentId")
    message: str


class BookingDetailsSchema(BaseModel):
    id: str
    booking_reference: str
    customer_name: str
    customer_email: str
    customer_phone: str
    total_amount: float
    currency: str
    payment_type: str
    quick_payment_notes: str
    destination_name: str
    destination_country: str
    payment_id: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(
        cls,
        booking: BookingRecord,
        destination: Optional[Destination],
        payment: Optional[PaymentRecord],
        fallback_payment_id: str = "Unknown",
    ) -> "BookingDetailsSchema":
        return cls(
            id=booking.id,
            booking_reference=booking.booking_reference or "N/A",
            customer_name=booking.customer_name or "Unknown",
            customer_email=booking.customer_email or "N/A",
            customer_phone=booking.customer_phone or "N/A",
            total_amount=booking.total_amount or 0,
            currency=booking.currency or "INR",
            payment_type=booking.payment_type or "unknown",
            quick_payment_notes=booking.quick_payment_notes or "",
            destination_name=destination.name if destination else "Unknown",
            destination_country=destination.country if destination else "Unknown",
            payment_id=(payment.razorpay_payment_id if payment else None)
            or fallback_payment_id,
            created_at=booking.created_at,
        )


class FindBookingRequest(CamelModel):
    payment_id: Optional[str] = Field(None, alias="paymentId")
    razorpay_payment_id: Optional[str] = None

    def resolved_payment_id(self) -> Optional[str]:
        return self.payment_id or self.razorpay_payment_id


class FindBookingResponse(CamelModel):
    success: bool = True
    booking: BookingDetailsSchema
    found_by: str = Field("payment_id", alias="foundBy")


class BookingDetailsResponse(BaseModel):
    success: bool = True
    booking: BookingDetailsSchema


class CreateOrderRequest(CamelModel):
    customer_name: Optional[str] = Field(None, alias="customerName")
    customer_email: Optional[str] = Field(None, alias="customerEmail")
    customer_phone: Optional[str] = Field(None, alias="customerPhone")
    destination_id: Optional[int] = Field(None, alias="destinationId")
    amount: Optional[float] = None
    payment_type: Optional[str] = Field(None, alias="paymentType")
    notes: Optional[str] = None


class CreateOrderResponse(BaseModel):
    success: bool = True
    razorpay_order_id: str
    amount: int
    currency: str
    booking_id: str
    booking_reference: str


class DestinationSchema(BaseModel):
    id: int
    name: str
    slug: str
    country: str

    @classmethod
    def from_domain(cls, obj: Destination) -> "DestinationSchema":
        return cls(id=obj.id, name=obj.name, slug=obj.slug, country=obj.country)


class DestinationListResponse(BaseModel):
    success: bool = True
    destinations: List[DestinationSchema]


class FeatureStatusResponse(CamelModel):
    success: bool = True
    is_enabled: bool = Field(alias="isEnabled")
    disabled_reason: Optional[str] = Field(None, alias="disabledReason")
