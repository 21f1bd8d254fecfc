"""Unit tests for the drop repository domain operations (in-memory backend)."""

from concurrent.futures import ThreadPoolExecutor

import pydantic
import pytest

from lucky_drop.drops.db.repository_base import assign_gift_ids
from lucky_drop.drops.enums import DistributionMode
from lucky_drop.drops.models import GiftDraft
from lucky_drop.drops.models import RecipientDetails
from lucky_drop.errors import DropAlreadyOpenedError
from lucky_drop.errors import DropNotFoundError
from lucky_drop.errors import GiftAlreadySelectedError
from lucky_drop.errors import GiftNotSelectedError
from lucky_drop.errors import RecipientDetailsAlreadySavedError
from lucky_drop.errors import UnknownGiftError
from tests.consts import ALICE_UID
from tests.consts import BOB_UID
from tests.consts import CLOCK_START_MS

DETAILS = RecipientDetails(name="Ann", address="123 Main St, City")


class TestAssignGiftIds:
    """Stable gift id assignment."""

    def test_new_drop(self, sample_gifts):
        gifts = assign_gift_ids("d1", sample_gifts)
        assert [g["id"] for g in gifts] == ["d1-gift-0", "d1-gift-1"]

    def test_existing_ids_kept_and_never_reused(self):
        drafts = [
            GiftDraft(id="d1-gift-1", name="Socks", image="https://img.example.com/socks.jpg"),
            GiftDraft(name="Book", image="https://img.example.com/book.jpg"),
        ]
        gifts = assign_gift_ids("d1", drafts, ["d1-gift-0", "d1-gift-1"])

        # d1-gift-0 was removed but stays reserved
        assert [g["id"] for g in gifts] == ["d1-gift-1", "d1-gift-2"]

    def test_foreign_id_is_replaced(self):
        drafts = [GiftDraft(id="other-gift-0", name="Mug", image="https://img.example.com/mug.jpg")]
        assert assign_gift_ids("d1", drafts, [])[0]["id"] == "d1-gift-0"


class TestCreateAndRead:
    """create_drop, get_drop and get_drops_by_owner."""

    def test_create_drop(self, memory_store, sample_gifts, mock_logger):
        drop_id = memory_store.create_drop(ALICE_UID, "Happy Birthday!", "Enjoy", sample_gifts, DistributionMode.RANDOM)
        drop = memory_store.get_drop(drop_id)

        assert drop.user_id == ALICE_UID
        assert drop.created_at == CLOCK_START_MS
        assert drop.selected_gift_id is None
        assert drop.recipient_opened_at is None
        assert [g.name for g in drop.gifts] == ["Mug", "Socks"]
        mock_logger["store"].info.assert_called_once()

    def test_get_missing_drop(self, memory_store):
        assert memory_store.get_drop("missing") is None

    def test_drops_by_owner_newest_first(self, memory_store, sample_gifts):
        first = memory_store.create_drop(ALICE_UID, "First", "", sample_gifts, DistributionMode.RANDOM)
        memory_store.create_drop(BOB_UID, "Bob's", "", sample_gifts, DistributionMode.RANDOM)
        second = memory_store.create_drop(ALICE_UID, "Second", "", sample_gifts, DistributionMode.MANUAL)

        drops = memory_store.get_drops_by_owner(ALICE_UID)

        assert [d.id for d in drops] == [second, first]

    def test_returned_drops_are_copies(self, memory_store, random_drop):
        random_drop.gifts[0].name = "Changed"
        assert memory_store.get_drop(random_drop.id).gifts[0].name == "Mug"


class TestMarkOpened:
    """mark_opened keeps the first timestamp."""

    def test_first_open_wins(self, memory_store, random_drop):
        first = memory_store.mark_opened(random_drop.id)
        second = memory_store.mark_opened(random_drop.id)

        assert first.recipient_opened_at is not None
        assert second.recipient_opened_at == first.recipient_opened_at
        assert second.selected_gift_id is None

    def test_missing_drop(self, memory_store):
        with pytest.raises(DropNotFoundError):
            memory_store.mark_opened("missing")


class TestSelectGift:
    """select_gift commits at most one gift."""

    def test_select(self, memory_store, manual_drop):
        drop = memory_store.select_gift(manual_drop.id, manual_drop.gifts[1].id)
        assert drop.selected_gift.name == "Socks"

    def test_same_gift_again_is_noop(self, memory_store, manual_drop):
        gift_id = manual_drop.gifts[0].id
        memory_store.select_gift(manual_drop.id, gift_id)
        assert memory_store.select_gift(manual_drop.id, gift_id).selected_gift_id == gift_id

    def test_different_gift_conflicts(self, memory_store, manual_drop):
        memory_store.select_gift(manual_drop.id, manual_drop.gifts[0].id)

        with pytest.raises(GiftAlreadySelectedError) as exc_info:
            memory_store.select_gift(manual_drop.id, manual_drop.gifts[1].id)

        assert exc_info.value.selected_gift_id == manual_drop.gifts[0].id
        assert memory_store.get_drop(manual_drop.id).selected_gift_id == manual_drop.gifts[0].id

    def test_unknown_gift(self, memory_store, manual_drop):
        with pytest.raises(UnknownGiftError):
            memory_store.select_gift(manual_drop.id, "nope")

    def test_concurrent_selections_commit_exactly_one(self, memory_store, manual_drop):
        """Two recipients racing on different gifts: one wins, the other sees the winner."""
        gift_ids = [g.id for g in manual_drop.gifts] * 10

        def attempt(gift_id):
            try:
                return memory_store.select_gift(manual_drop.id, gift_id).selected_gift_id
            except GiftAlreadySelectedError as e:
                return e.selected_gift_id

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = set(pool.map(attempt, gift_ids))

        committed = memory_store.get_drop(manual_drop.id).selected_gift_id
        assert outcomes == {committed}


class TestSaveRecipientDetails:
    """save_recipient_details requires a selection and is write-once."""

    def test_requires_selection(self, memory_store, manual_drop):
        with pytest.raises(GiftNotSelectedError):
            memory_store.save_recipient_details(manual_drop.id, DETAILS)

    def test_save(self, memory_store, manual_drop):
        memory_store.select_gift(manual_drop.id, manual_drop.gifts[0].id)
        drop = memory_store.save_recipient_details(manual_drop.id, DETAILS)

        assert drop.recipient_details.name == "Ann"
        assert drop.recipient_details.address == "123 Main St, City"

    def test_second_save_rejected(self, memory_store, manual_drop):
        memory_store.select_gift(manual_drop.id, manual_drop.gifts[0].id)
        memory_store.save_recipient_details(manual_drop.id, DETAILS)

        with pytest.raises(RecipientDetailsAlreadySavedError):
            memory_store.save_recipient_details(manual_drop.id, RecipientDetails(name="Bo", address="9 Other Road, Town"))


class TestUpdateDrop:
    """update_drop edits unopened drops only."""

    def test_update_title_and_message(self, memory_store, random_drop):
        drop = memory_store.update_drop(random_drop.id, {"title": "New title", "message": None})

        assert drop.title == "New title"
        assert drop.message == ""

    def test_update_gifts_keeps_existing_ids(self, memory_store, random_drop):
        kept = random_drop.gifts[1]
        drafts = [
            GiftDraft(id=kept.id, name="Wool socks", image=kept.image),
            GiftDraft(name="Book", image="https://img.example.com/book.jpg"),
        ]

        drop = memory_store.update_drop(random_drop.id, {"gifts": drafts})

        assert drop.gifts[0].id == kept.id
        assert drop.gifts[0].name == "Wool socks"
        assert drop.gifts[1].id == f"{random_drop.id}-gift-2"

    def test_clear_media(self, memory_store, media_drop):
        drop = memory_store.update_drop(media_drop.id, {"gifter_media": []})
        assert drop.has_media is False

    def test_rejected_after_open(self, memory_store, random_drop):
        memory_store.mark_opened(random_drop.id)

        with pytest.raises(DropAlreadyOpenedError):
            memory_store.update_drop(random_drop.id, {"title": "Too late"})

        assert memory_store.get_drop(random_drop.id).title == "Happy Birthday!"

    def test_unknown_field(self, memory_store, random_drop):
        with pytest.raises(ValueError, match="cannot be updated"):
            memory_store.update_drop(random_drop.id, {"selected_gift_id": "x"})

    def test_invalid_result_not_written(self, memory_store, random_drop):
        too_many = [GiftDraft(name=f"Gift {i}", image="https://img.example.com/g.jpg") for i in range(6)]

        with pytest.raises(pydantic.ValidationError):
            memory_store.update_drop(random_drop.id, {"gifts": too_many})

        assert len(memory_store.get_drop(random_drop.id).gifts) == 2

    def test_missing_drop(self, memory_store):
        with pytest.raises(DropNotFoundError):
            memory_store.update_drop("missing", {"title": "x"})
