"""Pydantic schemas."""

from tanlink.schemas.analytics import DailyPoint, DailySeries, LinkClickStats, ProfileStats
from tanlink.schemas.link import (
    LinkCreate,
    LinkListResponse,
    LinkMove,
    LinkReorder,
    LinkResponse,
    LinkUpdate,
    Platform,
)
from tanlink.schemas.profile import (
    ClickResponse,
    HandleAvailability,
    HandleClaim,
    PhotoRef,
    ProfileResponse,
    ProfileSnapshot,
    ProfileUpdate,
    PublicLink,
    PublicProfile,
)
from tanlink.schemas.theme import ThemePreset

__all__ = [
    "ClickResponse",
    "DailyPoint",
    "DailySeries",
    "HandleAvailability",
    "HandleClaim",
    "LinkClickStats",
    "LinkCreate",
    "LinkListResponse",
    "LinkMove",
    "LinkReorder",
    "LinkResponse",
    "LinkUpdate",
    "PhotoRef",
    "Platform",
    "ProfileResponse",
    "ProfileSnapshot",
    "ProfileStats",
    "ProfileUpdate",
    "PublicLink",
    "PublicProfile",
    "ThemePreset",
]
