"""Unit tests for FirestoreDropRepository with a mocked Firestore client."""

from unittest.mock import MagicMock
from unittest.mock import patch

import pytest
from google.api_core.exceptions import ServiceUnavailable

from lucky_drop.drops.db.repository_firestore import FirestoreDropRepository
from lucky_drop.drops.enums import DistributionMode
from lucky_drop.errors import DropNotFoundError
from lucky_drop.errors import GiftAlreadySelectedError
from lucky_drop.errors import StoreError
from tests.consts import ALICE_UID
from tests.consts import CLOCK_START_MS


def _stored_document(**overrides) -> dict:
    document = {
        "userId": ALICE_UID,
        "title": "Happy Birthday!",
        "message": "",
        "gifts": [
            {"id": "d1-gift-0", "name": "Mug", "image": "https://img.example.com/mug.jpg"},
            {"id": "d1-gift-1", "name": "Socks", "image": "https://img.example.com/socks.jpg"},
        ],
        "distributionMode": "manual",
        "gifterMedia": [],
        "selectedGiftId": None,
        "recipientDetails": None,
        "createdAt": CLOCK_START_MS,
        "status": "live",
        "recipientOpenedAt": None,
    }
    document.update(overrides)
    return document


def _snapshot(doc_id: str, document):
    snapshot = MagicMock()
    snapshot.id = doc_id
    snapshot.exists = document is not None
    snapshot.to_dict.return_value = document
    return snapshot


@pytest.fixture
def mock_firestore_client():
    """Firestore client whose collection().document() returns one shared document reference."""
    client = MagicMock()
    collection = client.collection.return_value
    collection.document.return_value.id = "d1"
    return client


@pytest.fixture
def firestore_store(mock_firestore_client, fake_clock):
    """Firestore repository with transactions running the wrapped function directly."""
    with patch("google.cloud.firestore.transactional", new=lambda fn: fn):
        yield FirestoreDropRepository(mock_firestore_client, collection="drops", clock=fake_clock)


class TestFirestoreRepository:
    """Storage primitives against a mocked client."""

    def test_uses_collection(self, firestore_store, mock_firestore_client):
        mock_firestore_client.collection.assert_called_once_with("drops")

    def test_create_drop(self, firestore_store, mock_firestore_client, sample_gifts):
        doc_ref = mock_firestore_client.collection.return_value.document.return_value

        drop_id = firestore_store.create_drop(ALICE_UID, "Happy Birthday!", "", sample_gifts, DistributionMode.RANDOM)

        assert drop_id == "d1"
        document = doc_ref.create.call_args[0][0]
        assert "id" not in document
        assert document["userId"] == ALICE_UID
        assert document["createdAt"] == CLOCK_START_MS
        assert [g["id"] for g in document["gifts"]] == ["d1-gift-0", "d1-gift-1"]

    def test_create_failure_maps_to_store_error(self, firestore_store, mock_firestore_client, sample_gifts):
        doc_ref = mock_firestore_client.collection.return_value.document.return_value
        doc_ref.create.side_effect = ServiceUnavailable("firestore down")

        with pytest.raises(StoreError, match="firestore down"):
            firestore_store.create_drop(ALICE_UID, "Happy Birthday!", "", sample_gifts, DistributionMode.RANDOM)

    def test_get_drop(self, firestore_store, mock_firestore_client):
        doc_ref = mock_firestore_client.collection.return_value.document.return_value
        doc_ref.get.return_value = _snapshot("d1", _stored_document())

        drop = firestore_store.get_drop("d1")

        assert drop.id == "d1"
        assert drop.title == "Happy Birthday!"

    def test_get_missing_drop(self, firestore_store, mock_firestore_client):
        doc_ref = mock_firestore_client.collection.return_value.document.return_value
        doc_ref.get.return_value = _snapshot("d1", None)

        assert firestore_store.get_drop("d1") is None

    def test_get_drops_by_owner_sorted(self, firestore_store, mock_firestore_client):
        query = mock_firestore_client.collection.return_value.where.return_value
        query.stream.return_value = [
            _snapshot("old", _stored_document(createdAt=CLOCK_START_MS)),
            _snapshot("new", _stored_document(createdAt=CLOCK_START_MS + 5000)),
        ]

        drops = firestore_store.get_drops_by_owner(ALICE_UID)

        assert [d.id for d in drops] == ["new", "old"]
        field_filter = mock_firestore_client.collection.return_value.where.call_args.kwargs["filter"]
        assert field_filter.field_path == "userId"
        assert field_filter.value == ALICE_UID

    def test_select_gift_writes_in_transaction(self, firestore_store, mock_firestore_client):
        doc_ref = mock_firestore_client.collection.return_value.document.return_value
        doc_ref.get.return_value = _snapshot("d1", _stored_document())
        transaction = mock_firestore_client.transaction.return_value

        drop = firestore_store.select_gift("d1", "d1-gift-1")

        assert drop.selected_gift_id == "d1-gift-1"
        doc_ref.get.assert_called_with(transaction=transaction)
        transaction.update.assert_called_once_with(doc_ref, {"selectedGiftId": "d1-gift-1"})

    def test_select_gift_conflict_writes_nothing(self, firestore_store, mock_firestore_client):
        doc_ref = mock_firestore_client.collection.return_value.document.return_value
        doc_ref.get.return_value = _snapshot("d1", _stored_document(selectedGiftId="d1-gift-0"))
        transaction = mock_firestore_client.transaction.return_value

        with pytest.raises(GiftAlreadySelectedError):
            firestore_store.select_gift("d1", "d1-gift-1")

        transaction.update.assert_not_called()

    def test_mark_opened_twice_writes_once(self, firestore_store, mock_firestore_client):
        doc_ref = mock_firestore_client.collection.return_value.document.return_value
        doc_ref.get.return_value = _snapshot("d1", _stored_document(recipientOpenedAt=CLOCK_START_MS))
        transaction = mock_firestore_client.transaction.return_value

        drop = firestore_store.mark_opened("d1")

        assert drop.recipient_opened_at == CLOCK_START_MS
        transaction.update.assert_not_called()

    def test_update_missing_drop(self, firestore_store, mock_firestore_client):
        doc_ref = mock_firestore_client.collection.return_value.document.return_value
        doc_ref.get.return_value = _snapshot("d1", None)

        with pytest.raises(DropNotFoundError):
            firestore_store.mark_opened("d1")

    def test_transaction_failure_maps_to_store_error(self, firestore_store, mock_firestore_client):
        doc_ref = mock_firestore_client.collection.return_value.document.return_value
        doc_ref.get.side_effect = ServiceUnavailable("contention")

        with pytest.raises(StoreError):
            firestore_store.mark_opened("d1")

    def test_close(self, firestore_store, mock_firestore_client):
        firestore_store.close()
        mock_firestore_client.close.assert_called_once()
