"""Thank-you notes for revealed gifts."""

from typing import Optional

from loguru import logger

from lucky_drop.suggestions import prompts
from lucky_drop.suggestions.llm import GeminiClient
from lucky_drop.suggestions.models import ThankYouNote

DEFAULT_RECIPIENT_NAME = "there"


class ThankYouService:
    """Draft a thank-you message and suggest a reaction format."""

    def __init__(self, llm: GeminiClient):
        self.llm = llm

    async def generate_thank_you(self, gift_description: str, recipient_name: Optional[str] = None) -> ThankYouNote:
        name = (recipient_name or "").strip() or DEFAULT_RECIPIENT_NAME
        prompt = prompts.THANK_YOU.format(recipient_name=name, gift_description=gift_description)
        note = await self.llm.generate_json(prompt, ThankYouNote)

        # Media is recorded by the recipient, never generated
        note = note.model_copy(update={"media_content": None})
        logger.info("Thank-you note generated", media_type=note.media_type.value)
        return note
