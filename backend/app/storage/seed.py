from typing import List

from app.models.domain import Destination
from app.storage.repository import InMemoryRepository

SAMPLE_DESTINATIONS: List[Destination] = [
    Destination(id=1, name="Bali", country="Indonesia", slug="bali"),
    Destination(id=2, name="Kerala", country="India", slug="kerala"),
    Destination(id=3, name="Lisbon", country="Portugal", slug="lisbon"),
    Destination(id=4, name="Swiss Alps", country="Switzerland", slug="swiss-alps"),
    Destination(id=5, name="Ladakh", country="India", slug="ladakh", status="draft"),
]


def seed_destinations(repository: InMemoryRepository) -> InMemoryRepository:
    for destination in SAMPLE_DESTINATIONS:
        repository.save_destination(destination)
    return repository
