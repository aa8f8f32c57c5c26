#!/usr/bin/env python
"""
Pydantic request models for the JSON API.

Each route validates its body against one of these models. Fields accept
both the camelCase names the web client sends and snake_case names.
"""

from __future__ import annotations

import re
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _normalize_email(value: object) -> str:
    email = str(value or "").strip().lower()
    if not _EMAIL_RE.match(email):
        raise ValueError("Please provide a valid email address.")
    return email


def validation_errors(exc: ValidationError) -> Dict[str, str]:
    """Flatten a pydantic error into ``{field: message}``."""
    errors: Dict[str, str] = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())) or "form"
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, message)
    return errors


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)


class SignupRequest(_Request):
    email: str
    username: str = Field(min_length=3, max_length=120)
    password: str = Field(min_length=6)
    first_name: str = Field(alias="firstName", min_length=1, max_length=120)
    last_name: str = Field(alias="lastName", min_length=1, max_length=120)
    user_type: Literal["fan", "creator"] = Field(alias="userType")

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, value: object) -> str:
        return _normalize_email(value)


class LoginRequest(_Request):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, value: object) -> str:
        return _normalize_email(value)


class ProfileUpdateRequest(_Request):
    first_name: Optional[str] = Field(default=None, alias="firstName", min_length=1, max_length=120)
    last_name: Optional[str] = Field(default=None, alias="lastName", min_length=1, max_length=120)
    username: Optional[str] = Field(default=None, min_length=3, max_length=120)
    bio: Optional[str] = Field(default=None, max_length=2000)
    profile_picture: Optional[str] = Field(default=None, alias="profilePicture", max_length=500)


class OtpSendRequest(_Request):
    email: str

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, value: object) -> str:
        return _normalize_email(value)


class OtpVerifyRequest(OtpSendRequest):
    otp: str = Field(pattern=r"^\d{6}$")


class PasswordResetRequest(OtpVerifyRequest):
    new_password: str = Field(alias="newPassword", min_length=6)


class PlaylistCreateRequest(_Request):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    is_public: bool = Field(default=False, alias="isPublic")


class PlaylistUpdateRequest(_Request):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_public: Optional[bool] = Field(default=None, alias="isPublic")


class PlaylistTrackRequest(_Request):
    track_id: int = Field(alias="trackId", gt=0)


class PlaylistReorderRequest(_Request):
    order: List[int] = Field(min_length=1)


class AdminTrackForm(_Request):
    """Text fields of the multipart admin upload."""

    title: str = Field(min_length=1, max_length=200)
    artist_name: Optional[str] = Field(default=None, alias="artistName", max_length=255)
    album: Optional[str] = Field(default=None, max_length=200)
    genre: Optional[str] = Field(default=None, max_length=100)
    duration: Optional[int] = Field(default=None, ge=0)
    price: Optional[str] = Field(default=None, max_length=32)

    @field_validator("artist_name", "album", "genre", "price", "duration", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


__all__ = [
    "SignupRequest",
    "LoginRequest",
    "ProfileUpdateRequest",
    "OtpSendRequest",
    "OtpVerifyRequest",
    "PasswordResetRequest",
    "PlaylistCreateRequest",
    "PlaylistUpdateRequest",
    "PlaylistTrackRequest",
    "PlaylistReorderRequest",
    "AdminTrackForm",
    "validation_errors",
]
