"""Settings for the Lucky Drop API."""

from typing import Literal
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings for the Lucky Drop API.

    [pydantic.BaseSettings](https://docs.pydantic.dev/latest/concepts/pydantic_settings/) is a popular
    framework for organizing, validating, and reading configuration values from a variety of sources
    including environment variables.

    This class automatically reads from:
    1. Environment variables (production)
    2. .env file (local development)

    Environment variable names are treated case-insensitively.
    """

    # Drop persistence
    store_backend: Literal["memory", "firestore"] = "memory"
    """Where gift drops are persisted. "memory" keeps drops in process (local development only)."""

    gcp_project_id: Optional[str] = None
    """Google Cloud project hosting Firestore and the media bucket."""

    firestore_collection: str = "drops"
    """Firestore collection holding gift-drop documents."""

    # Google Custom Search (gift suggestions)
    google_search_api_key: Optional[str] = None
    """API key for the Google Custom Search JSON API."""

    google_search_engine_id: Optional[str] = None
    """Programmable Search Engine id (the `cx` parameter)."""

    search_page_size: int = 10
    """Results requested per search page (the API caps this at 20)."""

    search_max_pages: int = 2
    """Maximum number of search pages fetched per suggestion request."""

    # Generative AI
    gemini_api_key: Optional[str] = None
    """API key for the Google Gen AI SDK."""

    gemini_model: str = "gemini-2.0-flash"
    """Model used for gift formatting and thank-you notes."""

    # Media uploads
    storage_bucket: Optional[str] = None
    """Cloud Storage / Firebase Storage bucket receiving gifter media."""

    max_upload_bytes: int = 10 * 1024 * 1024
    """Largest accepted media file (10 MB)."""

    upload_chunk_bytes: int = 256 * 1024
    """Chunk size for streamed uploads; must be a multiple of 256 KiB."""

    # Authentication
    auth_enabled: bool = True
    """Verify Firebase ID tokens on sender-only endpoints."""

    firebase_project_id: Optional[str] = None
    """Firebase project id used when verifying ID tokens."""

    dev_user_id: str = "local-dev-user"
    """Owner id assumed for every sender request when auth is disabled."""

    # Share links
    public_base_url: str = "http://localhost:3000"
    """Origin of the recipient-facing web app; share links are {public_base_url}/drop/{id}."""

    # Logging
    log_level: str = "INFO"
    """Minimum level written to stdout."""

    enable_json_logs: bool = False
    """Emit one JSON document per log line instead of the coloured console format."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",  # Load from .env file if it exists (local development)
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra environment variables not defined in the model
        validate_default=True,
    )
