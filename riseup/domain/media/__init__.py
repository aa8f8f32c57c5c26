"""Media hosting relay for uploaded audio, cover art and video."""

from .relay import (
    MediaUploadError,
    MediaUploadRelay,
    S3MediaRelay,
    UploadedMedia,
    build_default_relay,
)

__all__ = [
    "MediaUploadError",
    "MediaUploadRelay",
    "S3MediaRelay",
    "UploadedMedia",
    "build_default_relay",
]
