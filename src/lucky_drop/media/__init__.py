"""
Media Module

Uploads of gifter media (images, audio, video) to object storage.
"""

from lucky_drop.media.uploader import MediaUploader
from lucky_drop.media.uploader import UploadResult
from lucky_drop.media.uploader import infer_media_type

__all__ = [
    "MediaUploader",
    "UploadResult",
    "infer_media_type",
]
