from fastapi import Depends, HTTPException
from starlette.requests import Request

from app.core.config import Settings
from app.gateway.client import PaymentGateway
from app.services.checkout_service import CheckoutService, ClientInfo
from app.services.confirmation_service import PaymentConfirmationService
from app.services.lookup_service import BookingLookupService
from app.services.signature import SignatureVerifier
from app.storage.repository import BookingRepository


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=500, detail=f"{name.capitalize()} not initialized")
    return value


def get_repository(request: Request) -> BookingRepository:
    return _state(request, "repository")


def get_settings(request: Request) -> Settings:
    return _state(request, "settings")


def get_gateway(request: Request) -> PaymentGateway:
    return _state(request, "gateway")


def get_verifier(request: Request) -> SignatureVerifier:
    return _state(request, "verifier")


def get_client_info(request: Request) -> ClientInfo:
    headers = request.headers
    return ClientInfo(
        ip_address=headers.get("x-forwarded-for") or headers.get("x-real-ip") or "unknown",
        user_agent=headers.get("user-agent") or "unknown",
    )


def get_confirmation_service(
    repository: BookingRepository = Depends(get_repository),
    verifier: SignatureVerifier = Depends(get_verifier),
) -> PaymentConfirmationService:
    return PaymentConfirmationService(repository=repository, verifier=verifier)


def get_lookup_service(
    repository: BookingRepository = Depends(get_repository),
) -> BookingLookupService:
    return BookingLookupService(repository=repository)


def get_checkout_service(
    repository: BookingRepository = Depends(get_repository),
    gateway: PaymentGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> CheckoutService:
    return CheckoutService(repository=repository, gateway=gateway, settings=settings)
