from fastapi import APIRouter, Depends

from app.api import get_checkout_service, get_client_info, get_confirmation_service
from app.models.schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from app.services.checkout_service import CheckoutService, ClientInfo
from app.services.confirmation_service import PaymentConfirmationService

router = APIRouter()


@router.post("/create-order", response_model=CreateOrderResponse)
def create_order(
    form: CreateOrderRequest,
    client: ClientInfo = Depends(get_client_info),
    service: CheckoutService = Depends(get_checkout_service),
) -> CreateOrderResponse:
    return service.create_order(form=form, client=client)


@router.post("/verify-payment", response_model=VerifyPaymentResponse)
def verify_payment(
    payload: VerifyPaymentRequest,
    service: PaymentConfirmationService = Depends(get_confirmation_service),
) -> VerifyPaymentResponse:
    return service.verify_and_confirm(
        order_id=payload.razorpay_order_id,
        payment_id=payload.razorpay_payment_id,
        signature=payload.razorpay_signature,
    )


@router.get("/verify-payment")
def verify_payment_info() -> dict:
    return {"message": "Verify payment API - use POST method"}
