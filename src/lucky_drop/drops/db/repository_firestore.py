"""
Firestore Drop Repository

Drop store backed by a Firestore collection. Every mutation runs inside a
transaction: the document is read, checked and written atomically, and
Firestore retries the whole function on contention.
"""

from typing import Any
from typing import Dict
from typing import List
from typing import Optional

from google.api_core.exceptions import GoogleAPICallError
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from loguru import logger

from lucky_drop.drops.db.repository_base import DropRepository
from lucky_drop.drops.db.repository_base import Mutation
from lucky_drop.drops.models import GiftDrop
from lucky_drop.errors import DropNotFoundError
from lucky_drop.errors import StoreError


class FirestoreDropRepository(DropRepository):
    """Drop store using the google-cloud-firestore client."""

    def __init__(self, client: firestore.Client, collection: str = "drops", **kwargs):
        """
        Initialize Firestore repository.

        Args:
            client: Firestore client
            collection: Collection holding drop documents
        """
        super().__init__(**kwargs)
        self.client = client
        self.collection = client.collection(collection)

    def _new_id(self) -> str:
        return self.collection.document().id

    def _insert(self, drop_id: str, document: Dict[str, Any]) -> None:
        try:
            self.collection.document(drop_id).create(document)
        except GoogleAPICallError as e:
            logger.error("Failed to create drop document", drop_id=drop_id, error=str(e))
            raise StoreError(f"Failed to create gift drop: {e.message}") from e

    def _update(self, drop_id: str, mutate: Mutation) -> GiftDrop:
        doc_ref = self.collection.document(drop_id)

        @firestore.transactional
        def read_check_write(transaction: firestore.Transaction) -> GiftDrop:
            snapshot = doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise DropNotFoundError(drop_id)

            document = snapshot.to_dict()
            changes = mutate(GiftDrop.from_document(drop_id, document))
            if changes:
                transaction.update(doc_ref, changes)
                document = {**document, **changes}
            return GiftDrop.from_document(drop_id, document)

        try:
            return read_check_write(self.client.transaction())
        except GoogleAPICallError as e:
            logger.error("Drop transaction failed", drop_id=drop_id, error=str(e))
            raise StoreError(f"Failed to update gift drop: {e.message}") from e

    def get_drop(self, drop_id: str) -> Optional[GiftDrop]:
        try:
            snapshot = self.collection.document(drop_id).get()
        except GoogleAPICallError as e:
            logger.error("Failed to read drop document", drop_id=drop_id, error=str(e))
            raise StoreError(f"Failed to read gift drop: {e.message}") from e

        if not snapshot.exists:
            return None
        return GiftDrop.from_document(snapshot.id, snapshot.to_dict())

    def get_drops_by_owner(self, owner_id: str) -> List[GiftDrop]:
        # Sorted here rather than with order_by so no composite index is required
        query = self.collection.where(filter=FieldFilter("userId", "==", owner_id))
        try:
            drops = [GiftDrop.from_document(doc.id, doc.to_dict()) for doc in query.stream()]
        except GoogleAPICallError as e:
            logger.error("Failed to list drops", owner_id=owner_id, error=str(e))
            raise StoreError(f"Failed to list gift drops: {e.message}") from e
        return sorted(drops, key=lambda drop: drop.created_at, reverse=True)

    def close(self) -> None:
        self.client.close()
