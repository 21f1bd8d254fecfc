"""Sender endpoints: create, list, preview and edit gift drops."""

from typing import List

from fastapi import APIRouter
from fastapi import Depends
from fastapi import status
from loguru import logger

from lucky_drop.auth.token_verifier import AuthenticatedUser
from lucky_drop.dependencies import get_current_user
from lucky_drop.dependencies import get_drop_store
from lucky_drop.dependencies import get_media_uploader
from lucky_drop.dependencies import get_owned_drop
from lucky_drop.dependencies import get_settings
from lucky_drop.drops.db.repository_base import DropRepository
from lucky_drop.drops.models import GiftDrop
from lucky_drop.drops.share import build_share_url
from lucky_drop.media.uploader import MediaUploader
from lucky_drop.media.uploader import owner_prefix
from lucky_drop.schemas.schemas import CreateDropRequest
from lucky_drop.schemas.schemas import CreateDropResponse
from lucky_drop.schemas.schemas import DropSummary
from lucky_drop.schemas.schemas import SenderDropView
from lucky_drop.schemas.schemas import UpdateDropRequest
from lucky_drop.settings import Settings

ROUTER_DROPS = APIRouter(tags=["Drops"])


@ROUTER_DROPS.post(
    "/drops",
    status_code=status.HTTP_201_CREATED,
    response_model=CreateDropResponse,
    responses={
        status.HTTP_201_CREATED: {
            "description": "Drop created",
            "content": {
                "application/json": {
                    "example": {
                        "id": "Xk2p9QaLm3",
                        "shareUrl": "https://luckydrop.app/drop/Xk2p9QaLm3",
                    }
                }
            },
        },
        status.HTTP_401_UNAUTHORIZED: {
            "description": "Missing or invalid token",
            "content": {"application/json": {"example": {"detail": "Missing Bearer token"}}},
        },
    },
)
def create_drop(
    body: CreateDropRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    store: DropRepository = Depends(get_drop_store),
    settings: Settings = Depends(get_settings),
) -> CreateDropResponse:
    """Create a live drop owned by the current sender and return its share link."""
    drop_id = store.create_drop(
        owner_id=user.uid,
        title=body.title,
        message=body.message,
        gifts=body.gifts,
        distribution_mode=body.distribution_mode,
        media=body.gifter_media,
    )
    return CreateDropResponse(id=drop_id, share_url=build_share_url(settings.public_base_url, drop_id))


##########################
@ROUTER_DROPS.get(
    "/drops",
    response_model=List[DropSummary],
    responses={
        status.HTTP_200_OK: {
            "description": "Drops of the current sender, newest first",
        },
    },
)
def list_my_drops(
    user: AuthenticatedUser = Depends(get_current_user),
    store: DropRepository = Depends(get_drop_store),
    settings: Settings = Depends(get_settings),
) -> List[DropSummary]:
    """Owner dashboard."""
    drops = store.get_drops_by_owner(user.uid)
    logger.info("Listed sender drops", user_id=user.uid, drop_count=len(drops))
    return [DropSummary.build(drop, build_share_url(settings.public_base_url, drop.id)) for drop in drops]


##########################
@ROUTER_DROPS.get(
    "/drops/{drop_id}",
    response_model=SenderDropView,
    responses={
        status.HTTP_403_FORBIDDEN: {
            "description": "The drop belongs to another sender",
            "content": {"application/json": {"example": {"detail": "You do not own gift drop 'Xk2p9QaLm3'"}}},
        },
        status.HTTP_404_NOT_FOUND: {
            "description": "Drop not found",
            "content": {"application/json": {"example": {"detail": "Gift drop 'Xk2p9QaLm3' not found"}}},
        },
    },
)
def get_drop_for_sender(
    drop: GiftDrop = Depends(get_owned_drop),
    settings: Settings = Depends(get_settings),
) -> SenderDropView:
    """Sender preview of one drop, including the recipient's progress."""
    return SenderDropView.build(drop, build_share_url(settings.public_base_url, drop.id))


##########################
@ROUTER_DROPS.patch(
    "/drops/{drop_id}",
    response_model=SenderDropView,
    responses={
        status.HTTP_409_CONFLICT: {
            "description": "The recipient already opened the drop",
            "content": {
                "application/json": {
                    "example": {
                        "detail": "Gift drop 'Xk2p9QaLm3' has already been opened and can no longer be edited",
                        "error_type": "DropAlreadyOpenedError",
                    }
                }
            },
        },
    },
)
def edit_drop(
    body: UpdateDropRequest,
    drop: GiftDrop = Depends(get_owned_drop),
    store: DropRepository = Depends(get_drop_store),
    uploader: MediaUploader = Depends(get_media_uploader),
    settings: Settings = Depends(get_settings),
) -> SenderDropView:
    """
    Edit an unopened drop.

    Gifts sent with their existing ``id`` keep it; gifts without one are new.
    Media removed from the list is deleted from storage best-effort after the
    edit is saved.
    """
    updated = store.update_drop(drop.id, body.to_fields())

    if body.gifter_media is not None:
        kept = {media.public_id for media in updated.gifter_media if media.public_id}
        prefix = owner_prefix(drop.user_id)
        for media in drop.gifter_media:
            if media.public_id and media.public_id not in kept and media.public_id.startswith(prefix):
                uploader.delete(media.public_id)

    return SenderDropView.build(updated, build_share_url(settings.public_base_url, updated.id))
