import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import routes_admin, routes_bookings, routes_destinations, routes_health, routes_payments
from app.core.config import Settings, get_settings
from app.core.errors import BookingFlowError, ConfigurationError
from app.core.logging import configure_logging
from app.gateway.client import MockPaymentGateway, PaymentGateway
from app.gateway.razorpay_gateway import RazorpayGateway
from app.services.signature import SignatureVerifier
from app.storage.repository import BookingRepository, InMemoryRepository
from app.storage.seed import seed_destinations
from app.storage.supabase import SupabaseRepository

logger = logging.getLogger(__name__)

MOCK_KEY_SECRET = "mock_key_secret"


def build_repository(settings: Settings) -> BookingRepository:
    backend = settings.storage_backend.lower()
    if backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise ConfigurationError(
                "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required for the supabase backend"
            )
        return SupabaseRepository(
            url=settings.supabase_url,
            service_role_key=settings.supabase_service_role_key,
            timeout=settings.store_timeout_seconds,
        )
    if backend == "memory":
        return seed_destinations(InMemoryRepository())
    raise ConfigurationError(f"Unknown storage backend: {settings.storage_backend}")


def build_gateway(settings: Settings) -> PaymentGateway:
    provider = settings.payment_gateway.lower()
    if provider == "razorpay":
        if not settings.razorpay_key_id or not settings.razorpay_key_secret:
            raise ConfigurationError(
                "RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET are required for the razorpay gateway"
            )
        return RazorpayGateway(
            key_id=settings.razorpay_key_id, key_secret=settings.razorpay_key_secret
        )
    if provider == "mock":
        return MockPaymentGateway()
    raise ConfigurationError(f"Unknown payment gateway: {settings.payment_gateway}")


def build_verifier(settings: Settings) -> SignatureVerifier:
    if settings.razorpay_key_secret:
        return SignatureVerifier(
            settings.razorpay_key_secret, key_id=settings.razorpay_key_id or ""
        )
    if settings.payment_gateway.lower() == "mock" and settings.storage_backend.lower() == "memory":
        logger.warning("RAZORPAY_KEY_SECRET not set; verifying signatures with the mock secret")
        return SignatureVerifier(MOCK_KEY_SECRET)
    raise ConfigurationError("RAZORPAY_KEY_SECRET is required to verify payments")


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BookingFlowError)
    async def booking_flow_error_handler(request: Request, exc: BookingFlowError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning("Rejected malformed body for %s: %s", request.url.path, exc.errors())
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Invalid request body",
                "details": ", ".join(fields),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500, content={"success": False, "error": "Internal server error"}
        )


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[BookingRepository] = None,
    gateway: Optional[PaymentGateway] = None,
) -> FastAPI:
    if settings is None:
        settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(title=settings.app_name, version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(routes_payments.router, prefix="/api/payments", tags=["payments"])
    app.include_router(routes_bookings.router, prefix="/api/bookings", tags=["bookings"])
    app.include_router(
        routes_destinations.router, prefix="/api/destinations", tags=["destinations"]
    )
    app.include_router(routes_admin.router, prefix="/api/admin", tags=["admin"])

    # Inject collaborators into state for dependencies
    app.state.settings = settings
    app.state.repository = repository if repository is not None else build_repository(settings)
    app.state.gateway = gateway if gateway is not None else build_gateway(settings)
    app.state.verifier = build_verifier(settings)
    logger.info(
        "Started %s (%s): storage=%s gateway=%s",
        settings.app_name,
        settings.environment,
        settings.storage_backend,
        settings.payment_gateway,
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
