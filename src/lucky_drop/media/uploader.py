"""
Gifter media uploads to Cloud Storage (the bucket behind Firebase Storage).

Objects are written under ``uploads/{owner_id}/`` with a key that includes a
millisecond timestamp and a random suffix, so a retried upload never
overwrites an earlier attempt.
"""

import re
import time
import uuid
from dataclasses import dataclass
from typing import Callable
from typing import Optional

from google.api_core.exceptions import GoogleAPICallError
from google.api_core.exceptions import NotFound
from google.cloud import storage
from loguru import logger

from lucky_drop.drops.enums import MediaType
from lucky_drop.errors import MediaUploadError
from lucky_drop.errors import UnsupportedMediaTypeError
from lucky_drop.errors import ValidationError

UPLOAD_PREFIX = "uploads"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_CHUNK_BYTES = 256 * 1024  # Resumable upload chunks must be multiples of 256 KiB

_CONTENT_TYPE_PREFIXES = (
    ("image/", MediaType.CARD),
    ("audio/", MediaType.AUDIO),
    ("video/", MediaType.VIDEO),
)

ProgressCallback = Callable[[int], None]


@dataclass(frozen=True)
class UploadResult:
    url: str
    public_id: str
    media_type: MediaType


def infer_media_type(content_type: Optional[str]) -> MediaType:
    """Map a declared content type to a media type, or raise UnsupportedMediaTypeError."""
    normalized = (content_type or "").strip().lower()
    for prefix, media_type in _CONTENT_TYPE_PREFIXES:
        if normalized.startswith(prefix):
            return media_type
    raise UnsupportedMediaTypeError(content_type)


def safe_filename(filename: Optional[str]) -> str:
    """Reduce a client filename to a short, URL-safe object name."""
    name = (filename or "").rsplit("/", 1)[-1].rsplit("\\", 1)[-1]
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("._")
    return name[-100:] or "file"


def owner_prefix(owner_id: str) -> str:
    return f"{UPLOAD_PREFIX}/{owner_id}/"


def object_key(owner_id: str, filename: Optional[str], timestamp_ms: Optional[int] = None) -> str:
    timestamp_ms = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    return f"{owner_prefix(owner_id)}{timestamp_ms}_{uuid.uuid4().hex[:8]}_{safe_filename(filename)}"


class MediaUploader:
    """Streams media files into a Cloud Storage bucket."""

    def __init__(
        self,
        bucket_name: Optional[str],
        client: Optional[storage.Client] = None,
        max_bytes: int = DEFAULT_MAX_BYTES,
        chunk_bytes: int = DEFAULT_CHUNK_BYTES,
    ):
        self.bucket_name = bucket_name
        self._client = client
        self.max_bytes = max_bytes
        self.chunk_bytes = chunk_bytes

    @property
    def bucket(self) -> storage.Bucket:
        if not self.bucket_name:
            raise MediaUploadError("Storage bucket is not configured")
        if self._client is None:
            self._client = storage.Client()
        return self._client.bucket(self.bucket_name)

    def upload(
        self,
        data: bytes,
        filename: Optional[str],
        content_type: Optional[str],
        owner_id: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        """
        Upload one file.

        Progress is reported as integers that only increase: 0 before the first
        byte, up to 99 while chunks are written, and 100 once the object is
        committed.

        Args:
            data: File contents
            filename: Client filename, sanitized into the object key
            content_type: Declared content type; decides the media type
            owner_id: Uploading account; objects live under ``uploads/{owner_id}/``
            on_progress: Called with each new progress value

        Returns:
            UploadResult with the public URL and the object key as ``public_id``

        Raises:
            UnsupportedMediaTypeError: Not an image, audio or video file
            ValidationError: Empty file or larger than ``max_bytes``
            MediaUploadError: The storage write failed
        """
        media_type = infer_media_type(content_type)
        size = len(data)
        if size == 0:
            raise ValidationError("The uploaded file is empty")
        if size > self.max_bytes:
            raise ValidationError(f"File is too large; the limit is {self.max_bytes // (1024 * 1024)} MB")

        last_reported = -1

        def report(value: int) -> None:
            nonlocal last_reported
            if on_progress is not None and value > last_reported:
                last_reported = value
                on_progress(value)

        key = object_key(owner_id, filename)
        blob = self.bucket.blob(key)
        report(0)
        try:
            with blob.open("wb", content_type=content_type, chunk_size=self.chunk_bytes) as writer:
                for offset in range(0, size, self.chunk_bytes):
                    chunk = data[offset : offset + self.chunk_bytes]
                    writer.write(chunk)
                    report(min(99, (offset + len(chunk)) * 100 // size))
        except GoogleAPICallError as e:
            logger.error("Media upload failed", public_id=key, size=size, error=str(e))
            raise MediaUploadError(f"Upload failed: {e.message}") from e

        report(100)
        logger.info("Media uploaded", public_id=key, size=size, media_type=media_type.value)
        return UploadResult(url=blob.public_url, public_id=key, media_type=media_type)

    def delete(self, public_id: str) -> bool:
        """Delete an uploaded object. Failures are logged, never raised."""
        try:
            self.bucket.blob(public_id).delete()
        except NotFound:
            logger.warning("Media already deleted", public_id=public_id)
            return False
        except (GoogleAPICallError, MediaUploadError) as e:
            logger.warning("Media delete failed", public_id=public_id, error=str(e))
            return False
        logger.info("Media deleted", public_id=public_id)
        return True
