"""Google Gen AI client wrapper returning validated pydantic models."""

from typing import Optional
from typing import Type
from typing import TypeVar

import pydantic
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from loguru import logger
from pydantic import BaseModel

from lucky_drop.errors import LLMError
from lucky_drop.errors import SuggestionFormatError

ModelT = TypeVar("ModelT", bound=BaseModel)


def strip_additional_properties(schema: dict) -> dict:
    """Recursively remove ``additionalProperties``, which the Gemini schema format rejects."""
    if isinstance(schema, dict):
        schema.pop("additionalProperties", None)
        for value in schema.values():
            if isinstance(value, dict):
                strip_additional_properties(value)
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, dict):
                        strip_additional_properties(item)
    return schema


class GeminiClient:
    """JSON-mode calls to a Gemini model."""

    def __init__(self, api_key: Optional[str], model: str, client: Optional[genai.Client] = None):
        self.api_key = api_key
        self.model = model
        self._client = client

    @property
    def client(self) -> genai.Client:
        """Create the SDK client on first use so the app starts without credentials."""
        if self._client is None:
            if not self.api_key:
                raise LLMError("Generative AI API key is not configured")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate_json(
        self,
        prompt: str,
        schema: Type[ModelT],
        temperature: Optional[float] = None,
    ) -> ModelT:
        """
        Ask the model for JSON matching ``schema`` and validate it.

        Args:
            prompt: Full prompt text
            schema: Pydantic model describing the expected output
            temperature: Optional sampling temperature

        Returns:
            Validated instance of ``schema``

        Raises:
            LLMError: The API call failed
            SuggestionFormatError: The output does not match ``schema``
        """
        config_kwargs: dict = {
            "response_mime_type": "application/json",
            "response_schema": strip_additional_properties(schema.model_json_schema()),
        }
        if temperature is not None:
            config_kwargs["temperature"] = temperature

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(**config_kwargs),
            )
        except genai_errors.APIError as e:
            logger.error("Generative AI request failed", model=self.model, code=e.code, error=str(e))
            raise LLMError(f"Generative AI request failed: {e.message}") from e

        if not response.text:
            logger.warning("Generative AI returned no content", model=self.model, schema=schema.__name__)
            raise SuggestionFormatError("The model returned no content")

        try:
            return schema.model_validate_json(response.text)
        except pydantic.ValidationError as e:
            logger.warning(
                "Generative AI output failed validation",
                model=self.model,
                schema=schema.__name__,
                error_count=e.error_count(),
            )
            raise SuggestionFormatError(f"The model returned an invalid {schema.__name__}") from e
