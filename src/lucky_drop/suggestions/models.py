"""
Suggestion Models

Models exchanged with the search API and the language model.
"""

from typing import List
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic.alias_generators import to_camel

from lucky_drop.drops.enums import ReactionMediaType

MAX_SUGGESTIONS = 10


class SearchResult(BaseModel):
    """One raw product hit from the search API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = ""
    link: str = ""
    snippet: str = ""
    image_url: Optional[str] = None


class GiftSuggestion(BaseModel):
    """A product the language model picked out of the search results."""

    name: str = Field(description="Exact product name taken from the search result title.")
    image: str = Field(description="Image URL copied from the search result.")
    platform: str = Field(description="Store name derived from the product URL domain, e.g. Amazon or Etsy.")
    url: str = Field(description="Product URL copied from the search result.")
    price: Optional[str] = Field(default=None, description="Price if the snippet mentions one.")
    description: Optional[str] = Field(default=None, description="Why this gift suits the recipient.")


class GiftIdeasOutput(BaseModel):
    """Structured output requested from the language model."""

    gifts: List[GiftSuggestion] = Field(max_length=MAX_SUGGESTIONS)


class GiftSuggestionResult(BaseModel):
    """Suggestions returned to the sender."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    gifts: List[GiftSuggestion]
    query: str
    total_results: int


class ThankYouNote(BaseModel):
    """A drafted thank-you message plus a suggested reaction format."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str = Field(description="Short thank-you message.")
    media_type: ReactionMediaType = Field(description="Suggested reaction: audio, video or selfie.")
    media_content: Optional[str] = Field(default=None, description="Leave empty.")
