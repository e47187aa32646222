"""Profile Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from tanlink.schemas.link import Platform
from tanlink.schemas.theme import ThemePreset

MAX_BIO_LENGTH = 150


class ProfileUpdate(BaseModel):
    """Owner-editable profile attributes.

    Bio length is checked after trimming by the profile service, so
    surrounding whitespace does not count against the limit here.
    """

    display_name: str | None = Field(default=None, max_length=255)
    bio: str | None = Field(default=None, max_length=1000)
    photo_url: str | None = None
    photo_public_id: str | None = Field(default=None, max_length=255)


class PhotoRef(BaseModel):
    url: str
    public_id: str | None = None


class ProfileResponse(BaseModel):
    """The owner's view of their own profile."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    handle: str | None
    email: str | None
    display_name: str
    bio: str
    photo_url: str | None
    photo_public_id: str | None
    theme: ThemePreset | None
    provider: str
    created_at: datetime
    updated_at: datetime
    share_url: str | None = None


class HandleClaim(BaseModel):
    handle: str = Field(max_length=64)


class HandleAvailability(BaseModel):
    handle: str
    valid: bool
    available: bool
    reason: str | None = None


class PublicProfile(BaseModel):
    """Profile attributes exposed on the public page."""

    handle: str
    display_name: str
    bio: str
    photo_ref: PhotoRef | None = None
    theme: ThemePreset | None = None


class PublicLink(BaseModel):
    id: UUID
    platform: Platform
    title: str
    url: str
    order: int


class ProfileSnapshot(BaseModel):
    """Everything a renderer needs to draw a public profile page."""

    profile_id: UUID
    profile: PublicProfile
    links: list[PublicLink]


class ClickResponse(BaseModel):
    url: str
