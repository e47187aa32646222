"""Pydantic schemas for analytics responses."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from tanlink.schemas.link import Platform


class LinkClickStats(BaseModel):
    """Click figures for one link, ranked against the profile's other links."""

    link_id: UUID
    title: str
    platform: Platform
    url: str
    order: int
    clicks: int
    progress: float = Field(description="Clicks relative to the top link, 0-100")
    last_clicked_at: datetime | None = None


class ProfileStats(BaseModel):
    """Summary statistics for a profile."""

    total_views: int
    total_clicks: int
    active_links: int
    ctr: float = Field(description="total_clicks / total_views; 0 when there are no views")
    last_viewed_at: datetime | None = None
    links: list[LinkClickStats]


class DailyPoint(BaseModel):
    day: date
    views: int
    clicks: int


class DailySeries(BaseModel):
    """Per-day views and clicks, zero-filled."""

    start_date: date
    end_date: date
    data: list[DailyPoint]
