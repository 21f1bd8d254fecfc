"""
Base Drop Repository

Base class providing the drop store contract. Concrete repositories supply
storage primitives (insert, read, and an atomic read-check-write) and inherit
every domain mutation from here, so both backends enforce the same rules.
"""

import time
from abc import ABC
from abc import abstractmethod
from typing import Any
from typing import Callable
from typing import Dict
from typing import List
from typing import Optional

from loguru import logger

from lucky_drop.drops.enums import DistributionMode
from lucky_drop.drops.enums import DropStatus
from lucky_drop.drops.models import GiftDraft
from lucky_drop.drops.models import GiftDrop
from lucky_drop.drops.models import GifterMedia
from lucky_drop.drops.models import RecipientDetails
from lucky_drop.drops.models import gift_id_for
from lucky_drop.errors import DropAlreadyOpenedError
from lucky_drop.errors import GiftAlreadySelectedError
from lucky_drop.errors import GiftNotSelectedError
from lucky_drop.errors import RecipientDetailsAlreadySavedError
from lucky_drop.errors import UnknownGiftError

# A mutation receives the current drop and returns the fields to write
# (camelCase document keys), or None when nothing needs to change.
Mutation = Callable[[GiftDrop], Optional[Dict[str, Any]]]

UPDATABLE_FIELDS = {"title", "message", "gifts", "gifter_media"}


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def assign_gift_ids(drop_id: str, drafts: List[GiftDraft], existing_ids: Optional[List[str]] = None) -> List[dict]:
    """
    Give every gift draft a stable id.

    Drafts that carry one of ``existing_ids`` keep it. Every other draft gets the
    next free ``{drop_id}-gift-{n}`` id, so ids are never reused within a drop.
    """
    known = set(existing_ids or [])
    taken = set(known)
    next_index = 0
    gifts = []
    for draft in drafts:
        if draft.id and draft.id in known:
            gift_id = draft.id
        else:
            while gift_id_for(drop_id, next_index) in taken:
                next_index += 1
            gift_id = gift_id_for(drop_id, next_index)
        taken.add(gift_id)
        gifts.append(draft.with_id(gift_id).model_dump(by_alias=True, mode="json"))
    return gifts


class DropRepository(ABC):
    """
    Drop store contract.

    Every method addresses a single document. Mutations go through ``_update``,
    which concrete repositories implement as an atomic read-check-write.
    """

    def __init__(self, clock: Callable[[], int] = now_ms):
        """
        Initialize the repository.

        Args:
            clock: Returns the current time in epoch milliseconds
        """
        self.clock = clock

    # ── storage primitives ──────────────────────────────────────────────────

    @abstractmethod
    def _new_id(self) -> str:
        """Generate an opaque, unused drop id."""

    @abstractmethod
    def _insert(self, drop_id: str, document: Dict[str, Any]) -> None:
        """Persist a new document."""

    @abstractmethod
    def _update(self, drop_id: str, mutate: Mutation) -> GiftDrop:
        """
        Atomically apply ``mutate`` to the current drop.

        Raises DropNotFoundError when the drop does not exist. Errors raised by
        ``mutate`` abort the write and propagate unchanged.

        Returns:
            The drop after the write (or unchanged when ``mutate`` returned None)
        """

    @abstractmethod
    def get_drop(self, drop_id: str) -> Optional[GiftDrop]:
        """Fetch a drop by id, or None."""

    @abstractmethod
    def get_drops_by_owner(self, owner_id: str) -> List[GiftDrop]:
        """All drops of ``owner_id``, newest first."""

    def close(self) -> None:
        """Release backend resources."""

    # ── domain operations ───────────────────────────────────────────────────

    def create_drop(
        self,
        owner_id: str,
        title: str,
        message: str,
        gifts: List[GiftDraft],
        distribution_mode: DistributionMode,
        media: Optional[List[GifterMedia]] = None,
    ) -> str:
        """
        Create a live drop.

        Args:
            owner_id: Account creating the drop
            title: Drop title
            message: Personal message (may be empty)
            gifts: 1 to 5 gift drafts; ids are assigned here
            distribution_mode: random or manual, fixed for the drop's lifetime
            media: Optional gifter media

        Returns:
            The new drop id
        """
        drop_id = self._new_id()
        drop = GiftDrop(
            id=drop_id,
            user_id=owner_id,
            title=title,
            message=message or "",
            gifts=assign_gift_ids(drop_id, gifts),
            distribution_mode=distribution_mode,
            gifter_media=media or [],
            created_at=self.clock(),
            status=DropStatus.LIVE,
        )
        self._insert(drop_id, drop.to_document())
        logger.info(
            "Created gift drop",
            drop_id=drop_id,
            owner_id=owner_id,
            gift_count=len(drop.gifts),
            distribution_mode=drop.distribution_mode.value,
        )
        return drop_id

    def mark_opened(self, drop_id: str) -> GiftDrop:
        """Record the first recipient open. Later calls keep the original timestamp."""

        def mutate(drop: GiftDrop) -> Optional[Dict[str, Any]]:
            if drop.is_opened:
                return None
            return {"recipientOpenedAt": self.clock()}

        drop = self._update(drop_id, mutate)
        logger.debug("Drop opened", drop_id=drop_id, recipient_opened_at=drop.recipient_opened_at)
        return drop

    def select_gift(self, drop_id: str, gift_id: str) -> GiftDrop:
        """
        Commit the recipient's gift, only if none is committed yet.

        Re-selecting the committed gift succeeds without writing.

        Raises:
            DropNotFoundError: unknown drop
            UnknownGiftError: ``gift_id`` is not part of the drop
            GiftAlreadySelectedError: a different gift is already committed
        """

        def mutate(drop: GiftDrop) -> Optional[Dict[str, Any]]:
            if drop.gift(gift_id) is None:
                raise UnknownGiftError(drop_id, gift_id)
            if drop.selected_gift_id == gift_id:
                return None
            if drop.selected_gift_id is not None:
                raise GiftAlreadySelectedError(drop_id, drop.selected_gift_id)
            return {"selectedGiftId": gift_id}

        drop = self._update(drop_id, mutate)
        logger.info("Gift selected", drop_id=drop_id, gift_id=gift_id)
        return drop

    def save_recipient_details(self, drop_id: str, details: RecipientDetails) -> GiftDrop:
        """
        Store the recipient's shipping details once a gift is selected.

        Raises:
            DropNotFoundError: unknown drop
            GiftNotSelectedError: no gift committed yet
            RecipientDetailsAlreadySavedError: details were saved before
        """

        def mutate(drop: GiftDrop) -> Optional[Dict[str, Any]]:
            if drop.selected_gift_id is None:
                raise GiftNotSelectedError(drop_id)
            if drop.recipient_details is not None:
                raise RecipientDetailsAlreadySavedError(drop_id)
            return {"recipientDetails": details.model_dump(by_alias=True, mode="json")}

        drop = self._update(drop_id, mutate)
        logger.info("Recipient details saved", drop_id=drop_id)
        return drop

    def update_drop(self, drop_id: str, fields: Dict[str, Any]) -> GiftDrop:
        """
        Edit a drop that the recipient has not opened yet.

        Args:
            drop_id: Drop to edit
            fields: Any of ``title``, ``message``, ``gifts`` (list of GiftDraft),
                ``gifter_media`` (list of GifterMedia)

        Raises:
            DropNotFoundError: unknown drop
            DropAlreadyOpenedError: the recipient opened the drop
            ValueError: unsupported field names
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")

        def mutate(drop: GiftDrop) -> Optional[Dict[str, Any]]:
            if drop.is_opened:
                raise DropAlreadyOpenedError(drop_id)

            changes: Dict[str, Any] = {}
            if "title" in fields:
                changes["title"] = fields["title"]
            if "message" in fields:
                changes["message"] = fields["message"] or ""
            if "gifts" in fields:
                changes["gifts"] = assign_gift_ids(drop_id, fields["gifts"], [g.id for g in drop.gifts])
            if "gifter_media" in fields:
                changes["gifterMedia"] = [
                    media.model_dump(by_alias=True, mode="json") for media in fields["gifter_media"]
                ]

            # Validate the result before anything is written
            GiftDrop.from_document(drop_id, {**drop.to_document(), **changes})
            return changes or None

        drop = self._update(drop_id, mutate)
        logger.info("Gift drop updated", drop_id=drop_id, fields=sorted(fields))
        return drop
