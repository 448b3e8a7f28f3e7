from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api import get_lookup_service
from app.core.errors import MissingFields
from app.models.schemas import BookingDetailsResponse, FindBookingRequest, FindBookingResponse
from app.services.lookup_service import BookingLookupService

router = APIRouter()


@router.get("/find-by-payment", response_model=FindBookingResponse)
def find_booking_by_payment(
    payment_id: Optional[str] = Query(None, alias="paymentId"),
    service: BookingLookupService = Depends(get_lookup_service),
) -> FindBookingResponse:
    if not payment_id:
        raise MissingFields("Missing payment ID")
    return FindBookingResponse(booking=service.find_by_payment_id(payment_id))


@router.post("/find-by-payment", response_model=FindBookingResponse)
def find_booking_by_payment_body(
    payload: FindBookingRequest,
    service: BookingLookupService = Depends(get_lookup_service),
) -> FindBookingResponse:
    payment_id = payload.resolved_payment_id()
    if not payment_id:
        raise MissingFields("Missing payment ID in request body")
    return FindBookingResponse(booking=service.find_by_payment_id(payment_id))


@router.get("/{booking_id}", response_model=BookingDetailsResponse)
def get_booking(
    booking_id: str,
    payment: Optional[str] = None,
    service: BookingLookupService = Depends(get_lookup_service),
) -> BookingDetailsResponse:
    return BookingDetailsResponse(
        booking=service.get_booking_details(booking_id=booking_id, payment_id=payment)
    )
