"""Link Pydantic schemas."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class Platform(str, Enum):
    """Known link categories. Each has its own URL normalization rule."""

    INSTAGRAM = "instagram"
    GITHUB = "github"
    YOUTUBE = "youtube"
    WHATSAPP = "whatsapp"
    TWITTER = "twitter"
    FACEBOOK = "facebook"
    LINKEDIN = "linkedin"
    TELEGRAM = "telegram"
    EMAIL = "email"
    WEBSITE = "website"


class LinkCreate(BaseModel):
    """Schema for adding a link to the caller's profile."""

    platform: Platform
    title: str = Field(default="", max_length=255)
    url: str = Field(max_length=2048, description="Raw URL, handle or number; normalized on save")


class LinkUpdate(BaseModel):
    """Schema for editing a link. Order is changed only through reordering."""

    platform: Platform | None = None
    title: str | None = Field(default=None, max_length=255)
    url: str | None = Field(default=None, max_length=2048)


class LinkReorder(BaseModel):
    """The complete desired sequence of the caller's link ids."""

    link_ids: list[UUID]


class LinkMove(BaseModel):
    direction: str = Field(pattern="^(up|down)$")


class LinkResponse(BaseModel):
    """Schema for link response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    platform: Platform
    title: str
    url: str
    order: int


class LinkListResponse(BaseModel):
    items: list[LinkResponse]
    total: int
