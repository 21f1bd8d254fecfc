####################################
# --- Request/response schemas --- #
####################################

from typing import List
from typing import Optional

from pydantic import Field
from pydantic import model_validator
from pydantic.alias_generators import to_camel

from lucky_drop.drops.enums import DistributionMode
from lucky_drop.drops.enums import Stage
from lucky_drop.drops.models import MAX_GIFTS
from lucky_drop.drops.models import MIN_GIFTS
from lucky_drop.drops.models import DropModel
from lucky_drop.drops.models import Gift
from lucky_drop.drops.models import GiftDraft
from lucky_drop.drops.models import GiftDrop
from lucky_drop.drops.models import GifterMedia
from lucky_drop.suggestions.models import MAX_SUGGESTIONS
from lucky_drop.suggestions.models import ThankYouNote

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 50
MESSAGE_MAX_LENGTH = 300

# A null message clears it; these fields cannot be cleared
NON_NULLABLE_UPDATE_FIELDS = ("title", "gifts", "gifter_media")


# create (Crud)
class CreateDropRequest(DropModel):
    """Request body for creating a drop."""

    title: str = Field(min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    message: str = Field(default="", max_length=MESSAGE_MAX_LENGTH)
    gifts: List[GiftDraft] = Field(min_length=MIN_GIFTS, max_length=MAX_GIFTS)
    distribution_mode: DistributionMode = DistributionMode.RANDOM
    gifter_media: List[GifterMedia] = Field(default_factory=list)


class CreateDropResponse(DropModel):
    id: str
    share_url: str


# update (crUd)
class UpdateDropRequest(DropModel):
    """Request body for editing an unopened drop. Omitted fields are left unchanged."""

    title: Optional[str] = Field(default=None, min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    message: Optional[str] = Field(default=None, max_length=MESSAGE_MAX_LENGTH)
    gifts: Optional[List[GiftDraft]] = Field(default=None, min_length=MIN_GIFTS, max_length=MAX_GIFTS)
    gifter_media: Optional[List[GifterMedia]] = None

    @model_validator(mode="after")
    def at_least_one_field(self) -> "UpdateDropRequest":
        if not self.model_fields_set:
            raise ValueError("Provide at least one of title, message, gifts, gifterMedia")
        nulled = [
            to_camel(name)
            for name in NON_NULLABLE_UPDATE_FIELDS
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if nulled:
            raise ValueError(f"{', '.join(nulled)} cannot be null")
        return self

    def to_fields(self) -> dict:
        """Fields explicitly sent by the client, as expected by the drop store."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# read (cRud)
class SenderDropView(DropModel):
    """A drop as its owner sees it."""

    drop: GiftDrop
    opened: bool
    share_url: str

    @classmethod
    def build(cls, drop: GiftDrop, share_url: str) -> "SenderDropView":
        return cls(drop=drop, opened=drop.is_opened, share_url=share_url)


class DropSummary(DropModel):
    """One row of the owner dashboard."""

    id: str
    title: str
    distribution_mode: DistributionMode
    gift_count: int
    created_at: int
    opened: bool
    recipient_opened_at: Optional[int] = None
    selected_gift_id: Optional[str] = None
    share_url: str

    @classmethod
    def build(cls, drop: GiftDrop, share_url: str) -> "DropSummary":
        return cls(
            id=drop.id,
            title=drop.title,
            distribution_mode=drop.distribution_mode,
            gift_count=len(drop.gifts),
            created_at=drop.created_at,
            opened=drop.is_opened,
            recipient_opened_at=drop.recipient_opened_at,
            selected_gift_id=drop.selected_gift_id,
            share_url=share_url,
        )


class PublicDropView(DropModel):
    """What anyone holding the link may see. Owner id and shipping address are withheld."""

    id: str
    title: str
    message: str
    gifts: List[Gift]
    distribution_mode: DistributionMode
    gifter_media: List[GifterMedia]
    selected_gift_id: Optional[str] = None
    details_submitted: bool
    created_at: int
    recipient_opened_at: Optional[int] = None

    @classmethod
    def build(cls, drop: GiftDrop) -> "PublicDropView":
        return cls(
            id=drop.id,
            title=drop.title,
            message=drop.message,
            gifts=drop.gifts,
            distribution_mode=drop.distribution_mode,
            gifter_media=drop.gifter_media,
            selected_gift_id=drop.selected_gift_id,
            details_submitted=drop.recipient_details is not None,
            created_at=drop.created_at,
            recipient_opened_at=drop.recipient_opened_at,
        )


# reveal flow
class OpenerActionRequest(DropModel):
    """Optional body of reveal-flow actions: the stage the client believes it is in."""

    stage: Optional[Stage] = None


class SelectGiftRequest(OpenerActionRequest):
    gift_id: str = Field(min_length=1)


class RecipientDetailsRequest(OpenerActionRequest):
    """Shipping details; validated by the reveal flow so a rejected submission keeps the stage."""

    name: str = ""
    address: str = ""


class OpenerStateResponse(DropModel):
    """State of the reveal flow after an action."""

    stage: Stage
    drop: PublicDropView
    selected_gift: Optional[Gift] = None
    reveal_delay_seconds: float
    thank_you: Optional[ThankYouNote] = None


# suggestions
class SuggestionRequest(DropModel):
    """Request body for gift ideas."""

    prompt: str = Field(min_length=1, max_length=500)
    exclude_names: List[str] = Field(default_factory=list)
    max_results: int = Field(default=MAX_SUGGESTIONS, ge=1, le=MAX_SUGGESTIONS)


# share
class ShareLinksResponse(DropModel):
    share_url: str
    qr_code_url: str


# media
class DeleteMediaResponse(DropModel):
    deleted: bool
