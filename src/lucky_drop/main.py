import os
from pathlib import Path
from textwrap import dedent

import pydantic
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from loguru import logger

from lucky_drop.auth.token_verifier import FirebaseTokenVerifier
from lucky_drop.drops.db.client import create_drop_repository
from lucky_drop.errors import LuckyDropError
from lucky_drop.errors import handle_broad_exceptions
from lucky_drop.errors import handle_lucky_drop_errors
from lucky_drop.errors import handle_pydantic_validation_errors
from lucky_drop.media.uploader import MediaUploader
from lucky_drop.monitoring.logger import configure_logger
from lucky_drop.monitoring.request_context import RequestContextMiddleware
from lucky_drop.routes.routes_drops import ROUTER_DROPS
from lucky_drop.routes.routes_health import ROUTER_HEALTH
from lucky_drop.routes.routes_media import ROUTER_MEDIA
from lucky_drop.routes.routes_opener import ROUTER_OPENER
from lucky_drop.routes.routes_share import ROUTER_SHARE
from lucky_drop.routes.routes_suggestions import ROUTER_SUGGESTIONS
from lucky_drop.settings import Settings
from lucky_drop.suggestions.gift_ideas import GiftSuggestionService
from lucky_drop.suggestions.llm import GeminiClient
from lucky_drop.suggestions.search_client import GoogleSearchClient
from lucky_drop.suggestions.thank_you import ThankYouService


def _detect_environment() -> str:
    """Detect if running on Cloud Run or locally."""
    # Cloud Run sets K_SERVICE
    if os.getenv("K_SERVICE"):
        return "cloud-run"
    # Check if .env file exists (local development)
    elif Path(".env").exists():
        return "local-env-file"
    else:
        return "local-env-vars"


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application.

    Configuration is loaded directly from environment variables via pydantic-settings.
    - Cloud Run: set variables on the service
    - Local development: use a .env file in the repository root
    """
    settings = settings or Settings()

    configure_logger(level=settings.log_level, serialize=settings.enable_json_logs)

    logger.info(
        "Configuration loaded successfully",
        environment=_detect_environment(),
        store_backend=settings.store_backend,
        auth_enabled=settings.auth_enabled,
        search_configured=bool(settings.google_search_api_key and settings.google_search_engine_id),
        gemini_configured=bool(settings.gemini_api_key),
        storage_bucket=settings.storage_bucket,
    )

    app = FastAPI(
        title="Lucky Drop API",
        version="v1",
        description=dedent(
            """
        Send a gift drop: pick up to five gifts, share a link, and let the recipient
        reveal one.

        | Area | Auth |
        | --- | --- |
        | Drops, suggestions, media | Firebase ID token (`Authorization: Bearer ...`) |
        | Reveal flow, share links | none, the link is the capability |
        """
        ),
        generate_unique_id_function=custom_generate_unique_id,
    )
    app.state.settings = settings

    # Long-lived clients, shared by all requests
    app.state.drop_store = create_drop_repository(settings)
    llm = GeminiClient(api_key=settings.gemini_api_key, model=settings.gemini_model)
    app.state.suggestion_service = GiftSuggestionService(
        search_client=GoogleSearchClient(settings.google_search_api_key, settings.google_search_engine_id),
        llm=llm,
        page_size=settings.search_page_size,
        max_pages=settings.search_max_pages,
    )
    app.state.thank_you_service = ThankYouService(llm)
    app.state.media_uploader = MediaUploader(
        bucket_name=settings.storage_bucket,
        max_bytes=settings.max_upload_bytes,
        chunk_bytes=settings.upload_chunk_bytes,
    )
    app.state.token_verifier = FirebaseTokenVerifier(project_id=settings.firebase_project_id)
    if not settings.auth_enabled:
        logger.warning("Authentication disabled; all sender requests act as the dev user", user_id=settings.dev_user_id)

    # Add request context middleware for tracking who/where requests come from
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.public_base_url.rstrip("/")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(ROUTER_HEALTH, prefix="/api")
    app.include_router(ROUTER_DROPS, prefix="/api")
    app.include_router(ROUTER_OPENER, prefix="/api")
    app.include_router(ROUTER_SHARE, prefix="/api")
    app.include_router(ROUTER_SUGGESTIONS, prefix="/api")
    app.include_router(ROUTER_MEDIA, prefix="/api")

    @app.on_event("shutdown")
    async def shutdown_store():
        """Close the drop store client."""
        app.state.drop_store.close()
        logger.info("Drop store closed")

    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=LuckyDropError,
        handler=handle_lucky_drop_errors,
    )

    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name
