"""Gifter media upload (with streamed progress) and delete."""

import asyncio
import functools
import json
from typing import AsyncIterator

from fastapi import APIRouter
from fastapi import Depends
from fastapi import File
from fastapi import UploadFile
from fastapi import status
from fastapi.responses import StreamingResponse
from loguru import logger

from lucky_drop.auth.token_verifier import AuthenticatedUser
from lucky_drop.dependencies import get_current_user
from lucky_drop.dependencies import get_media_uploader
from lucky_drop.errors import LuckyDropError
from lucky_drop.errors import ValidationError
from lucky_drop.media.uploader import MediaUploader
from lucky_drop.media.uploader import infer_media_type
from lucky_drop.media.uploader import owner_prefix
from lucky_drop.schemas.schemas import DeleteMediaResponse

ROUTER_MEDIA = APIRouter(tags=["Media"])

PROGRESS_POLL_SECONDS = 0.1


def sse_event(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


async def upload_events(
    uploader: MediaUploader,
    data: bytes,
    filename: str,
    content_type: str,
    owner_id: str,
) -> AsyncIterator[str]:
    """
    Run the blocking upload in a worker thread and relay its progress as SSE events.

    Yields ``{"progress": n}`` events, then either the terminal
    ``{"progress": 100, "url", "publicId", "mediaType"}`` or ``{"error"}``.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def on_progress(value: int) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, value)

    upload = loop.run_in_executor(
        None,
        functools.partial(uploader.upload, data, filename, content_type, owner_id, on_progress),
    )

    # Progress callbacks are scheduled before the executor future resolves,
    # so once it is done the queue holds every remaining value.
    while not upload.done() or not queue.empty():
        try:
            value = await asyncio.wait_for(queue.get(), timeout=PROGRESS_POLL_SECONDS)
        except asyncio.TimeoutError:
            continue
        if value < 100:
            yield sse_event({"progress": value})

    try:
        result = await upload
    except LuckyDropError as e:
        yield sse_event({"error": e.detail})
        return
    except Exception as e:  # pylint: disable=broad-except
        # Headers are already sent; the failure can only be reported in the stream
        logger.opt(exception=e).error("Unexpected media upload failure", owner_id=owner_id, filename=filename)
        yield sse_event({"error": "Upload failed"})
        return

    yield sse_event(
        {
            "progress": 100,
            "url": result.url,
            "publicId": result.public_id,
            "mediaType": result.media_type.value,
        }
    )


@ROUTER_MEDIA.post(
    "/media/upload",
    response_class=StreamingResponse,
    responses={
        status.HTTP_200_OK: {
            "description": "Server-sent events with upload progress",
            "content": {
                "text/event-stream": {
                    "example": (
                        'data: {"progress": 0}\n\n'
                        'data: {"progress": 50}\n\n'
                        'data: {"progress": 100, "url": "https://storage.googleapis.com/bucket/uploads/u1/'
                        '1767225600000_a1b2c3d4_card.png", "publicId": "uploads/u1/1767225600000_a1b2c3d4_card.png",'
                        ' "mediaType": "card"}\n\n'
                    )
                }
            },
        },
        status.HTTP_422_UNPROCESSABLE_CONTENT: {
            "description": "Unsupported, empty or oversized file",
            "content": {
                "application/json": {
                    "example": {
                        "detail": "Unsupported media type 'application/pdf'. Upload an image, audio or video file.",
                        "error_type": "UnsupportedMediaTypeError",
                    }
                }
            },
        },
    },
)
async def upload_media(
    file: UploadFile = File(...),
    user: AuthenticatedUser = Depends(get_current_user),
    uploader: MediaUploader = Depends(get_media_uploader),
) -> StreamingResponse:
    """
    Upload an image, audio or video file for a drop.

    The type and size are checked before the stream starts, so those failures
    come back as regular JSON errors. Storage failures arrive as an ``error`` event.
    """
    infer_media_type(file.content_type)
    too_large = f"File is too large; the limit is {uploader.max_bytes // (1024 * 1024)} MB"
    if file.size is not None and file.size > uploader.max_bytes:
        raise ValidationError(too_large)

    # One byte past the limit is enough to tell an oversized file apart
    data = await file.read(uploader.max_bytes + 1)
    if not data:
        raise ValidationError("The uploaded file is empty")
    if len(data) > uploader.max_bytes:
        raise ValidationError(too_large)

    logger.info(
        "Media upload started",
        owner_id=user.uid,
        filename=file.filename,
        content_type=file.content_type,
        size=len(data),
    )
    return StreamingResponse(
        upload_events(uploader, data, file.filename, file.content_type, user.uid),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


##########################
@ROUTER_MEDIA.delete(
    "/media/{public_id:path}",
    response_model=DeleteMediaResponse,
    responses={
        status.HTTP_200_OK: {
            "description": "Best-effort delete; ``deleted`` is false when nothing was removed",
            "content": {"application/json": {"example": {"deleted": True}}},
        },
    },
)
def delete_media(
    public_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    uploader: MediaUploader = Depends(get_media_uploader),
) -> DeleteMediaResponse:
    """Delete an uploaded file. Only files under the sender's own upload folder can be deleted."""
    if not public_id.startswith(owner_prefix(user.uid)):
        logger.warning("Refusing to delete media outside the sender's folder", public_id=public_id, user_id=user.uid)
        return DeleteMediaResponse(deleted=False)
    return DeleteMediaResponse(deleted=uploader.delete(public_id))
