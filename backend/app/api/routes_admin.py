import logging
from typing import Optional

from fastapi import APIRouter, Depends

from app.api import get_repository
from app.core.errors import MissingFields, StoreError
from app.models.schemas import FeatureStatusResponse
from app.storage.repository import BookingRepository

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/feature-status", response_model=FeatureStatusResponse)
def feature_status(
    feature: Optional[str] = None,
    repository: BookingRepository = Depends(get_repository),
) -> FeatureStatusResponse:
    if not feature:
        raise MissingFields("Feature name is required")
    try:
        control = repository.get_feature_control(feature)
    except StoreError as exc:
        # an unreadable control reads as enabled
        logger.warning("Feature status check for %s failed: %s", feature, exc)
        control = None
    if control is None:
        return FeatureStatusResponse(is_enabled=True)
    return FeatureStatusResponse(
        is_enabled=control.is_enabled, disabled_reason=control.disabled_reason
    )
