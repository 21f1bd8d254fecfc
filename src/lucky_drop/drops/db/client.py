"""Drop store factory."""

from google.cloud import firestore
from loguru import logger

from lucky_drop.drops.db.repository_base import DropRepository
from lucky_drop.drops.db.repository_firestore import FirestoreDropRepository
from lucky_drop.drops.db.repository_memory import InMemoryDropRepository
from lucky_drop.settings import Settings


def create_drop_repository(settings: Settings) -> DropRepository:
    """Build the drop store selected by ``settings.store_backend``."""
    if settings.store_backend == "firestore":
        logger.info(
            "Using Firestore drop store",
            project=settings.gcp_project_id,
            collection=settings.firestore_collection,
        )
        client = firestore.Client(project=settings.gcp_project_id)
        return FirestoreDropRepository(client, collection=settings.firestore_collection)

    logger.warning("Using in-memory drop store; drops are lost on restart")
    return InMemoryDropRepository()
