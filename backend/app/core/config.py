from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=False, extra="ignore", populate_by_name=True
    )

    app_name: str = "Travel Booking Payments"
    environment: str = "local"
    log_level: str = "INFO"
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])

    storage_backend: str = "memory"
    supabase_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL")
    )
    supabase_service_role_key: Optional[str] = None
    store_timeout_seconds: float = 10.0

    payment_gateway: str = "mock"
    razorpay_key_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("RAZORPAY_KEY_ID", "NEXT_PUBLIC_RAZORPAY_KEY_ID")
    )
    razorpay_key_secret: Optional[str] = None

    payment_min_amount: float = 500.0
    payment_max_amount: float = 500000.0
    default_currency: str = "INR"
    booking_reference_attempts: int = 5


@lru_cache()
def get_settings() -> Settings:
    load_dotenv(".env")
    return Settings()
