"""
Drop Models

Pydantic models for gift-drop documents. Field names are snake_case in Python
and camelCase in stored documents and JSON responses.
"""

from datetime import datetime
from typing import Any
from typing import List
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator
from pydantic.alias_generators import to_camel

from lucky_drop.drops.enums import DistributionMode
from lucky_drop.drops.enums import DropStatus
from lucky_drop.drops.enums import MediaType

MIN_GIFTS = 1
MAX_GIFTS = 5
MIN_ADDRESS_LENGTH = 10


def gift_id_for(drop_id: str, index: int) -> str:
    """Stable gift id for the gift at ``index`` of ``drop_id``."""
    return f"{drop_id}-gift-{index}"


def validate_http_url(value: Optional[str]) -> Optional[str]:
    """Accept absent/empty values and absolute http(s) URLs only."""
    if not value:
        return None
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"'{value}' is not a valid http(s) URL")
    return value


class DropModel(BaseModel):
    """Base model: camelCase aliases, populated by either name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Gift(DropModel):
    """One candidate gift inside a drop."""

    id: str
    name: str = Field(min_length=1)
    image: str = Field(min_length=1)
    platform: Optional[str] = None
    url: Optional[str] = None
    price: Optional[str] = None
    description: Optional[str] = None

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: Optional[str]) -> Optional[str]:
        return validate_http_url(value)


class GiftDraft(DropModel):
    """A gift as submitted by the sender. ``id`` is present only for gifts that already exist."""

    id: Optional[str] = None
    name: str = Field(min_length=1)
    image: str = Field(min_length=1)
    platform: Optional[str] = None
    url: Optional[str] = None
    price: Optional[str] = None
    description: Optional[str] = None

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: Optional[str]) -> Optional[str]:
        return validate_http_url(value)

    def with_id(self, gift_id: str) -> Gift:
        return Gift(**self.model_dump(exclude={"id"}), id=gift_id)


class GifterMedia(DropModel):
    """Personal media attached by the sender, shown before gift selection."""

    type: MediaType
    url: str = Field(min_length=1)
    title: Optional[str] = None
    public_id: Optional[str] = None


class RecipientDetails(DropModel):
    """Shipping details entered by the recipient after claiming a gift."""

    name: str
    address: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value

    @field_validator("address")
    @classmethod
    def address_long_enough(cls, value: str) -> str:
        value = value.strip()
        if len(value) < MIN_ADDRESS_LENGTH:
            raise ValueError(f"Address must be at least {MIN_ADDRESS_LENGTH} characters")
        return value


def normalize_gifter_media(value: Any) -> List[Any]:
    """
    Read adapter for the ``gifterMedia`` field.

    Older documents store a single media object (or nothing) instead of a list.
    A single object without ``url`` or ``type`` is treated as no media.
    """
    if value is None:
        return []
    if isinstance(value, dict):
        if not value.get("url") or not value.get("type"):
            return []
        return [value]
    return list(value)


class GiftDrop(DropModel):
    """
    A gift drop document.

    Invariants:
    - 1 to 5 gifts
    - ``selected_gift_id`` references one of ``gifts``
    - ``recipient_details`` requires ``selected_gift_id``
    """

    id: str
    user_id: str
    title: str
    message: str = ""
    gifts: List[Gift] = Field(min_length=MIN_GIFTS, max_length=MAX_GIFTS)
    distribution_mode: DistributionMode
    gifter_media: List[GifterMedia] = Field(default_factory=list)
    selected_gift_id: Optional[str] = None
    recipient_details: Optional[RecipientDetails] = None
    created_at: int
    """Epoch milliseconds."""
    status: DropStatus = DropStatus.LIVE
    recipient_opened_at: Optional[int] = None
    """Epoch milliseconds of the first recipient open."""

    @field_validator("gifter_media", mode="before")
    @classmethod
    def _normalize_media(cls, value: Any) -> List[Any]:
        return normalize_gifter_media(value)

    @field_validator("created_at", "recipient_opened_at", mode="before")
    @classmethod
    def _timestamp_to_millis(cls, value: Any) -> Any:
        # Older documents hold Firestore server timestamps
        if isinstance(value, datetime):
            return int(value.timestamp() * 1000)
        return value

    @field_validator("selected_gift_id", mode="before")
    @classmethod
    def _empty_selection_is_none(cls, value: Any) -> Any:
        # Older documents used "" to mean "opened, nothing selected"
        return value or None

    @model_validator(mode="after")
    def _check_invariants(self) -> "GiftDrop":
        if self.selected_gift_id is not None and self.gift(self.selected_gift_id) is None:
            raise ValueError(f"Selected gift '{self.selected_gift_id}' is not part of the drop")
        if self.recipient_details is not None and self.selected_gift_id is None:
            raise ValueError("Recipient details require a selected gift")
        return self

    @classmethod
    def from_document(cls, drop_id: str, document: dict) -> "GiftDrop":
        """Build a drop from a stored document (which does not carry its own id)."""
        return cls.model_validate({**document, "id": drop_id})

    def to_document(self) -> dict:
        """Serialize to the stored camelCase document, without the id."""
        return self.model_dump(by_alias=True, mode="json", exclude={"id"})

    def gift(self, gift_id: str) -> Optional[Gift]:
        return next((g for g in self.gifts if g.id == gift_id), None)

    @property
    def is_opened(self) -> bool:
        return self.recipient_opened_at is not None

    @property
    def has_media(self) -> bool:
        return len(self.gifter_media) > 0

    @property
    def selected_gift(self) -> Optional[Gift]:
        if self.selected_gift_id is None:
            return None
        return self.gift(self.selected_gift_id)
