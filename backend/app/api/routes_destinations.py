from fastapi import APIRouter, Depends

from app.api import get_repository
from app.models.schemas import DestinationListResponse, DestinationSchema
from app.storage.repository import BookingRepository

router = APIRouter()


@router.get("/published", response_model=DestinationListResponse)
def list_published_destinations(
    repository: BookingRepository = Depends(get_repository),
) -> DestinationListResponse:
    destinations = repository.list_published_destinations()
    return DestinationListResponse(
        destinations=[DestinationSchema.from_domain(d) for d in destinations]
    )
