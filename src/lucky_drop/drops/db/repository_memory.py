"""
In-Memory Drop Repository

Process-local drop store for local development and tests. Documents are kept
as camelCase dicts, exactly as the Firestore repository stores them.
"""

import copy
import threading
import uuid
from typing import Any
from typing import Dict
from typing import List
from typing import Optional

from lucky_drop.drops.db.repository_base import DropRepository
from lucky_drop.drops.db.repository_base import Mutation
from lucky_drop.drops.models import GiftDrop
from lucky_drop.errors import DropNotFoundError


class InMemoryDropRepository(DropRepository):
    """Drop store backed by a dict guarded by a single lock."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def _new_id(self) -> str:
        return uuid.uuid4().hex[:20]

    def _insert(self, drop_id: str, document: Dict[str, Any]) -> None:
        with self._lock:
            self._documents[drop_id] = copy.deepcopy(document)

    def _update(self, drop_id: str, mutate: Mutation) -> GiftDrop:
        with self._lock:
            document = self._documents.get(drop_id)
            if document is None:
                raise DropNotFoundError(drop_id)

            changes = mutate(GiftDrop.from_document(drop_id, document))
            if changes:
                document = {**document, **copy.deepcopy(changes)}
                self._documents[drop_id] = document
            return GiftDrop.from_document(drop_id, document)

    def get_drop(self, drop_id: str) -> Optional[GiftDrop]:
        with self._lock:
            document = self._documents.get(drop_id)
            if document is None:
                return None
            return GiftDrop.from_document(drop_id, copy.deepcopy(document))

    def get_drops_by_owner(self, owner_id: str) -> List[GiftDrop]:
        with self._lock:
            owned = [
                GiftDrop.from_document(drop_id, copy.deepcopy(document))
                for drop_id, document in self._documents.items()
                if document.get("userId") == owner_id
            ]
        return sorted(owned, key=lambda drop: drop.created_at, reverse=True)

    def close(self) -> None:
        with self._lock:
            self._documents.clear()
