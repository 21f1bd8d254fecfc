"""
Drop Store Module

Repositories persisting gift-drop documents.
"""

from lucky_drop.drops.db.client import create_drop_repository
from lucky_drop.drops.db.repository_base import DropRepository
from lucky_drop.drops.db.repository_firestore import FirestoreDropRepository
from lucky_drop.drops.db.repository_memory import InMemoryDropRepository

__all__ = [
    "DropRepository",
    "FirestoreDropRepository",
    "InMemoryDropRepository",
    "create_drop_repository",
]
