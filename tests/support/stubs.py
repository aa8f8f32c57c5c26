"""In-memory stand-ins for the mail relay, media host and S3 client."""

import itertools
from typing import Dict, List, Optional, Tuple

from riseup.domain.media import MediaUploadError, MediaUploadRelay, UploadedMedia
from riseup.support.mailer import MailDeliveryError


class RecordingMailer:
    """Captures OTP mails instead of talking to SMTP."""

    configured = True

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[Tuple[str, str]] = []

    def send_otp_email(self, to: str, otp: str) -> None:
        if self.fail:
            raise MailDeliveryError("smtp relay unavailable")
        self.sent.append((to, otp))

    @property
    def last_code(self) -> Optional[str]:
        return self.sent[-1][1] if self.sent else None


class InMemoryMediaRelay(MediaUploadRelay):
    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.objects: Dict[str, bytes] = {}
        self.deleted: List[str] = []
        self._ids = itertools.count(1)

    def upload(self, data, *, folder, resource_type, filename=None, content_type=None):
        if resource_type in self.fail_on:
            raise MediaUploadError(f"Failed to upload {resource_type}")
        key = f"{folder}/{next(self._ids)}-{filename or 'blob'}"
        self.objects[key] = data
        return UploadedMedia(
            url=f"https://media.test/{key}",
            key=key,
            resource_type=resource_type,
            size=len(data),
        )

    def delete(self, key):
        self.deleted.append(key)
        self.objects.pop(key, None)


class FakeS3Client:
    """Records boto3 S3 client calls; optionally raises on put."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.put_calls: List[dict] = []
        self.delete_calls: List[dict] = []

    def put_object(self, **kwargs):
        if self.error is not None:
            raise self.error
        self.put_calls.append(kwargs)
        return {"ETag": '"etag"'}

    def delete_object(self, **kwargs):
        self.delete_calls.append(kwargs)
        return {}


__all__ = ["RecordingMailer", "InMemoryMediaRelay", "FakeS3Client"]
