"""FastAPI dependencies for accessing app state."""

from typing import Optional

from fastapi import Depends
from fastapi import Header
from fastapi import Request
from loguru import logger

from lucky_drop.auth.token_verifier import AuthenticatedUser
from lucky_drop.auth.token_verifier import FirebaseTokenVerifier
from lucky_drop.drops.db.repository_base import DropRepository
from lucky_drop.drops.models import GiftDrop
from lucky_drop.errors import AuthenticationError
from lucky_drop.errors import DropNotFoundError
from lucky_drop.errors import NotDropOwnerError
from lucky_drop.media.uploader import MediaUploader
from lucky_drop.settings import Settings
from lucky_drop.suggestions.gift_ideas import GiftSuggestionService
from lucky_drop.suggestions.thank_you import ThankYouService


def get_settings(request: Request) -> Settings:
    """
    Get application settings from request state.

    Parameters
    ----------
    request : Request
        FastAPI request object

    Returns
    -------
    Settings
        Application settings instance
    """
    return request.app.state.settings


def get_drop_store(request: Request) -> DropRepository:
    """Get the drop store created at startup."""
    return request.app.state.drop_store


def get_suggestion_service(request: Request) -> GiftSuggestionService:
    return request.app.state.suggestion_service


def get_thank_you_service(request: Request) -> ThankYouService:
    return request.app.state.thank_you_service


def get_media_uploader(request: Request) -> MediaUploader:
    return request.app.state.media_uploader


def get_token_verifier(request: Request) -> FirebaseTokenVerifier:
    return request.app.state.token_verifier


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
    verifier: FirebaseTokenVerifier = Depends(get_token_verifier),
) -> AuthenticatedUser:
    """
    Resolve the sender from an ``Authorization: Bearer <Firebase ID token>`` header.

    With ``auth_enabled`` off (local development) every request acts as
    ``settings.dev_user_id``.

    Raises
    ------
    AuthenticationError
        Header missing, not a bearer token, or the token is rejected
    """
    if not settings.auth_enabled:
        return AuthenticatedUser(uid=settings.dev_user_id)

    if not authorization or not authorization.lower().startswith("bearer "):
        raise AuthenticationError("Missing Bearer token")

    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise AuthenticationError("Missing Bearer token")

    user = verifier.verify(token)
    logger.debug("Sender authenticated", user_id=user.uid)
    return user


def get_existing_drop(drop_id: str, store: DropRepository = Depends(get_drop_store)) -> GiftDrop:
    """Load the drop named by the ``drop_id`` path parameter, or 404."""
    drop = store.get_drop(drop_id)
    if drop is None:
        raise DropNotFoundError(drop_id)
    return drop


def get_owned_drop(
    drop: GiftDrop = Depends(get_existing_drop),
    user: AuthenticatedUser = Depends(get_current_user),
) -> GiftDrop:
    """Load a drop owned by the current sender, or 403."""
    if drop.user_id != user.uid:
        logger.warning("Sender tried to access another owner's drop", drop_id=drop.id, user_id=user.uid)
        raise NotDropOwnerError(drop.id)
    return drop
