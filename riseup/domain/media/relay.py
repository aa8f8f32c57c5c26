#!/usr/bin/env python
"""
Media upload relay.

Uploaded files are never written to local disk: the raw bytes go straight
to an S3-compatible object store and only the resulting public URL is
persisted with the track.
"""

from __future__ import annotations

import logging
import mimetypes
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError


logger = logging.getLogger(__name__)

RESOURCE_TYPES = {"audio", "image", "video"}

_DEFAULT_CONTENT_TYPES = {
    "audio": "audio/mpeg",
    "image": "image/jpeg",
    "video": "video/mp4",
}


class MediaUploadError(RuntimeError):
    """The media host rejected or failed an upload."""


@dataclass(frozen=True)
class UploadedMedia:
    url: str
    key: str
    resource_type: str
    size: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "key": self.key,
            "resource_type": self.resource_type,
            "size": self.size,
        }


class MediaUploadRelay:
    """Interface for forwarding file buffers to a media host."""

    def upload(
        self,
        data: bytes,
        *,
        folder: str,
        resource_type: str,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> UploadedMedia:  # pragma: no cover - interface
        raise NotImplementedError

    def delete(self, key: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


def _extension_for(filename: Optional[str], content_type: Optional[str]) -> str:
    if filename:
        ext = os.path.splitext(filename)[1].lower()
        if ext and len(ext) <= 8:
            return ext
    if content_type:
        guessed = mimetypes.guess_extension(content_type.split(";")[0].strip())
        if guessed:
            return guessed
    return ""


class S3MediaRelay(MediaUploadRelay):
    def __init__(
        self,
        *,
        bucket: str,
        public_base_url: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        region_name: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        client: Any = None,
    ) -> None:
        if not bucket:
            raise ValueError("bucket is required")
        self.bucket_name = bucket
        self.endpoint_url = endpoint_url
        base = public_base_url or (f"{endpoint_url.rstrip('/')}/{bucket}" if endpoint_url else f"https://{bucket}.s3.amazonaws.com")
        self.public_base_url = base.rstrip("/")
        self.s3_client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region_name,
        )

    def url_for(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def upload(
        self,
        data: bytes,
        *,
        folder: str,
        resource_type: str,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> UploadedMedia:
        if resource_type not in RESOURCE_TYPES:
            raise ValueError(f"Unsupported resource type: {resource_type}")
        if not data:
            raise MediaUploadError("Refusing to upload an empty file")

        key = f"{folder.strip('/')}/{uuid4().hex}{_extension_for(filename, content_type)}"
        extra: Dict[str, Any] = {
            "ContentType": content_type or _DEFAULT_CONTENT_TYPES[resource_type],
            "Metadata": {"resource-type": resource_type},
        }
        try:
            self.s3_client.put_object(Bucket=self.bucket_name, Key=key, Body=data, **extra)
        except (ClientError, BotoCoreError) as exc:
            logger.error("Upload of %s to %s failed: %s", key, self.bucket_name, exc, exc_info=True)
            raise MediaUploadError(f"Failed to upload {resource_type}") from exc

        logger.info("Uploaded %s (%d bytes) to %s", key, len(data), self.bucket_name)
        return UploadedMedia(url=self.url_for(key), key=key, resource_type=resource_type, size=len(data))

    def delete(self, key: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise MediaUploadError(f"Failed to delete {key}") from exc


def build_default_relay(config) -> Optional[MediaUploadRelay]:
    """Build the S3 relay from app config; None when no bucket is configured."""
    bucket = config.get("MEDIA_BUCKET")
    if not bucket:
        return None
    return S3MediaRelay(
        bucket=bucket,
        public_base_url=config.get("MEDIA_PUBLIC_BASE_URL"),
        endpoint_url=config.get("MEDIA_ENDPOINT_URL"),
        region_name=config.get("MEDIA_REGION"),
        access_key_id=config.get("MEDIA_ACCESS_KEY_ID"),
        secret_access_key=config.get("MEDIA_SECRET_ACCESS_KEY"),
    )


__all__ = [
    "MediaUploadRelay",
    "MediaUploadError",
    "S3MediaRelay",
    "UploadedMedia",
    "build_default_relay",
]
