"""
Recipient reveal flow.

The recipient walks a drop through these stages:

    initial -> media? -> selecting -> revealing -> revealed -> details -> thanking -> done

Only three facts are persisted on the drop (``recipientOpenedAt``,
``selectedGiftId``, ``recipientDetails``). Every request rebuilds a
``GiftOpener`` from the stored drop plus the stage the client claims to be
in, and the claim is accepted only when it agrees with the stored facts.
"""

import random
from typing import Optional

import pydantic
from loguru import logger

from lucky_drop.drops.db.repository_base import DropRepository
from lucky_drop.drops.enums import DistributionMode
from lucky_drop.drops.enums import Stage
from lucky_drop.drops.models import GiftDrop
from lucky_drop.drops.models import RecipientDetails
from lucky_drop.errors import GiftAlreadySelectedError
from lucky_drop.errors import InvalidRecipientDetailsError
from lucky_drop.errors import InvalidTransitionError
from lucky_drop.suggestions.models import ThankYouNote

REVEAL_DELAY_SECONDS = 2.0

# Stages a client may claim for each stored stage
_COMPATIBLE_STAGES = {
    Stage.INITIAL: {Stage.INITIAL},
    Stage.MEDIA: {Stage.MEDIA, Stage.SELECTING},
    Stage.SELECTING: {Stage.SELECTING},
    Stage.REVEALED: {Stage.REVEALING, Stage.REVEALED, Stage.DETAILS},
    Stage.THANKING: {Stage.THANKING, Stage.DONE},
}


def resolve_stage(drop: GiftDrop) -> Stage:
    """Stage a returning recipient lands on, derived from persisted state only."""
    if drop.selected_gift_id is not None:
        if drop.recipient_details is not None:
            return Stage.THANKING
        return Stage.REVEALED
    if drop.is_opened:
        return Stage.MEDIA if drop.has_media else Stage.SELECTING
    return Stage.INITIAL


def reconcile_stage(drop: GiftDrop, claimed: Optional[Stage]) -> Stage:
    """
    Combine the client's claimed stage with the persisted one.

    Client-only stages (media, revealing, details, done) cannot be derived from
    the document, so a claim is kept when it is one of the stages compatible
    with the stored facts. Anything else falls back to the persisted stage.
    """
    persisted = resolve_stage(drop)
    if claimed is None:
        return persisted
    if claimed in _COMPATIBLE_STAGES[persisted]:
        return claimed
    logger.debug(
        "Ignoring inconsistent claimed stage",
        drop_id=drop.id,
        claimed_stage=claimed.value,
        persisted_stage=persisted.value,
    )
    return persisted


class GiftOpener:
    """
    One recipient's session on one drop.

    Each action either advances ``stage`` or raises; a failed action leaves
    ``stage`` where it was. Persisting actions write through the store before
    the stage moves.
    """

    def __init__(
        self,
        store: DropRepository,
        drop: GiftDrop,
        stage: Optional[Stage] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.drop = drop
        self.stage = reconcile_stage(drop, stage)
        self.rng = rng or random.SystemRandom()
        self.thank_you: Optional[ThankYouNote] = None

    def _require(self, action: str, *stages: Stage) -> None:
        if self.stage not in stages:
            raise InvalidTransitionError(self.stage.value, action)

    def _move(self, stage: Stage) -> None:
        logger.debug("Stage change", drop_id=self.drop.id, from_stage=self.stage.value, to_stage=stage.value)
        self.stage = stage

    def _after_open(self) -> Stage:
        return Stage.MEDIA if self.drop.has_media else Stage.SELECTING

    def open(self) -> None:
        """Mark the drop opened. Opening an already opened session changes nothing."""
        if self.stage != Stage.INITIAL:
            return
        self.drop = self.store.mark_opened(self.drop.id)
        self._move(self._after_open())

    def media_complete(self) -> None:
        self._require("media_complete", Stage.MEDIA)
        self._move(Stage.SELECTING)

    def pick(self, gift_id: str) -> None:
        """Manual mode: persist the recipient's choice, then start the reveal."""
        if self.drop.distribution_mode != DistributionMode.MANUAL:
            raise InvalidTransitionError(self.stage.value, "pick")

        # Repeating the committed choice (e.g. a retried request) is not an error
        if self.stage in (Stage.REVEALING, Stage.REVEALED) and gift_id == self.drop.selected_gift_id:
            self._move(Stage.REVEALING)
            return

        self._require("pick", Stage.SELECTING)
        self.drop = self.store.select_gift(self.drop.id, gift_id)
        self._move(Stage.REVEALING)

    def reveal_random(self) -> None:
        """
        Random mode: draw one gift uniformly and persist it.

        A selection that already exists is reused, never re-rolled. When another
        request commits first, its gift is adopted.
        """
        if self.drop.distribution_mode != DistributionMode.RANDOM:
            raise InvalidTransitionError(self.stage.value, "reveal")

        if self.drop.selected_gift_id is not None and self.stage in (
            Stage.SELECTING,
            Stage.REVEALING,
            Stage.REVEALED,
        ):
            self._move(Stage.REVEALING)
            return

        self._require("reveal", Stage.SELECTING)
        gift = self.rng.choice(self.drop.gifts)
        try:
            self.drop = self.store.select_gift(self.drop.id, gift.id)
        except GiftAlreadySelectedError as e:
            logger.info(
                "Random reveal lost the race, adopting committed gift",
                drop_id=self.drop.id,
                drawn_gift_id=gift.id,
                selected_gift_id=e.selected_gift_id,
            )
            self.drop = self.store.get_drop(self.drop.id) or self.drop
        self._move(Stage.REVEALING)

    def complete_reveal(self) -> None:
        self._require("complete_reveal", Stage.REVEALING)
        self._move(Stage.REVEALED)

    def claim(self) -> None:
        self._require("claim", Stage.REVEALED)
        self._move(Stage.DETAILS)

    def submit_details(self, name: str, address: str) -> None:
        """Validate and persist shipping details. Nothing is written on failure."""
        self._require("submit_details", Stage.DETAILS)
        try:
            details = RecipientDetails(name=name, address=address)
        except pydantic.ValidationError as e:
            messages = "; ".join(error["msg"] for error in e.errors())
            raise InvalidRecipientDetailsError(messages) from e

        self.drop = self.store.save_recipient_details(self.drop.id, details)
        self._move(Stage.THANKING)

    async def thank_you_note(self, generator) -> ThankYouNote:
        """
        Draft a thank-you note for the selected gift.

        Args:
            generator: Object with an async ``generate_thank_you(gift_description, recipient_name)``

        Returns:
            The generated note, also kept on ``self.thank_you``
        """
        self._require("thank_you", Stage.THANKING)
        gift = self.drop.selected_gift
        description = gift.name if not gift.description else f"{gift.name}: {gift.description}"
        recipient_name = self.drop.recipient_details.name if self.drop.recipient_details else None
        self.thank_you = await generator.generate_thank_you(description, recipient_name)
        return self.thank_you

    def dismiss(self) -> None:
        self._require("dismiss", Stage.THANKING)
        self._move(Stage.DONE)
