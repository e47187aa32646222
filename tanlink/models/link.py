"""Link SQLAlchemy model."""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from tanlink.core.database import Base
from tanlink.models.profile import Profile


class Link(Base):
    """A link shown on a profile page.

    `order` is contiguous from 0 within a profile. It is not backed by a
    unique constraint since renumbering rewrites several rows per transaction.
    """

    __tablename__ = "links"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey(Profile.id, ondelete="CASCADE"),
        nullable=False,
    )
    platform: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Platform key, e.g. 'instagram' or 'website'",
    )
    title: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Normalized, schemed URL",
    )
    order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Position on the profile page, contiguous from 0",
    )
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (Index("ix_links_profile_id_order", "profile_id", "order"),)

    def __repr__(self) -> str:
        return f"<Link {self.platform} #{self.order} -> {self.url[:50]}>"
