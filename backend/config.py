"""Configuration defaults and the upload policy value object."""
import os
from typing import FrozenSet, NamedTuple
from appdirs import user_data_dir

# Multipart framing and the small text fields travel alongside the files
MULTIPART_OVERHEAD_BYTES = 1024 * 1024


def _split_types(value):
    return frozenset(t.strip().lower() for t in value.split(',') if t.strip())


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///field_docs.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Local asset storage
    UPLOAD_DIR = os.environ.get("UPLOAD_DIR") or os.path.join(user_data_dir("field-docs", "field-docs"), "uploads")
    MAX_FILE_SIZE = int(os.environ.get("MAX_FILE_SIZE", str(10 * 1024 * 1024)))
    ALLOWED_IMAGE_TYPES = os.environ.get("ALLOWED_IMAGE_TYPES", "image/jpeg,image/png,image/webp")
    ALLOWED_VIDEO_TYPES = os.environ.get("ALLOWED_VIDEO_TYPES", "video/mp4,video/webm")
    PHOTO_MAX_FILE_SIZE = int(os.environ.get("PHOTO_MAX_FILE_SIZE", str(20 * 1024 * 1024)))
    PHOTO_MAX_FILES = 20

    # Signed tokens
    JWT_SECRET = os.environ.get("JWT_SECRET", "dev-access-secret")
    JWT_REFRESH_SECRET = os.environ.get("JWT_REFRESH_SECRET", "dev-refresh-secret")
    JWT_EXPIRES_IN = int(os.environ.get("JWT_EXPIRES_IN", "900"))
    JWT_REFRESH_EXPIRES_IN = int(os.environ.get("JWT_REFRESH_EXPIRES_IN", str(7 * 24 * 3600)))


class UploadConfig(NamedTuple):
    """Upload policy handed to the upload orchestrator."""
    max_file_size: int
    allowed_image_types: FrozenSet[str]
    allowed_video_types: FrozenSet[str]

    @property
    def allowed_types(self):
        return self.allowed_image_types | self.allowed_video_types

    def is_allowed(self, mime_type):
        return bool(mime_type) and mime_type.lower() in self.allowed_types

    @classmethod
    def from_mapping(cls, config):
        image_types = config['ALLOWED_IMAGE_TYPES']
        video_types = config['ALLOWED_VIDEO_TYPES']
        return cls(
            max_file_size=int(config['MAX_FILE_SIZE']),
            allowed_image_types=_split_types(image_types) if isinstance(image_types, str) else frozenset(image_types),
            allowed_video_types=_split_types(video_types) if isinstance(video_types, str) else frozenset(video_types),
        )


def max_content_length(config):
    """Request body ceiling enforced by the transport before buffering.

    Sized for the largest legal request, a full photo batch. Per-file
    limits are enforced while each part is read.
    """
    single_upload = int(config['MAX_FILE_SIZE'])
    photo_batch = int(config['PHOTO_MAX_FILES']) * int(config['PHOTO_MAX_FILE_SIZE'])
    return max(single_upload, photo_batch) + MULTIPART_OVERHEAD_BYTES
