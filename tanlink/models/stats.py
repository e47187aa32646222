"""View and click counter SQLAlchemy models."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tanlink.core.database import Base
from tanlink.models.link import Link
from tanlink.models.profile import Profile


class ViewStat(Base):
    """Page view totals for a profile.

    Created by the first recorded view. `total_views` only ever grows
    through server-side increments.
    """

    __tablename__ = "view_stats"

    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey(Profile.id, ondelete="CASCADE"),
        primary_key=True,
    )
    total_views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_viewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_visitor_at: Mapped[datetime | None] = mapped_column(
        DateTime,
        nullable=True,
        comment="Denormalized snapshot of the latest visit, display only",
    )
    last_visitor_handle: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def __repr__(self) -> str:
        return f"<ViewStat {self.profile_id} views={self.total_views}>"


class ClickStat(Base):
    """Click totals for a single link.

    Platform and URL are copied from the link at click time so stats can be
    displayed without a join.
    """

    __tablename__ = "click_stats"

    link_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey(Link.id, ondelete="CASCADE"),
        primary_key=True,
    )
    profile_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    total_clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_clicked_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    platform: Mapped[str | None] = mapped_column(String(20), nullable=True)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ClickStat {self.link_id} clicks={self.total_clicks}>"


class StatBucket(Base):
    """Per-period counter for views or clicks.

    One row per (subject, period, bucket), e.g. ("click", link_id, "day",
    "2024-01-15"). Together the rows of a subject form its daily and monthly
    maps.
    """

    __tablename__ = "stat_buckets"

    subject_type: Mapped[str] = mapped_column(
        String(10),
        primary_key=True,
        comment="'view' (keyed by profile) or 'click' (keyed by link)",
    )
    subject_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    period: Mapped[str] = mapped_column(
        String(10),
        primary_key=True,
        comment="'day' or 'month'",
    )
    bucket: Mapped[str] = mapped_column(
        String(10),
        primary_key=True,
        comment="YYYY-MM-DD for days, YYYY-MM for months",
    )
    count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<StatBucket {self.subject_type}:{self.subject_id} {self.bucket}={self.count}>"
