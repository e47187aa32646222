"""Profile SQLAlchemy model."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from tanlink.core.database import Base

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class Profile(Base):
    """One profile per identity.

    The primary key is the identity itself. Profiles are created implicitly
    on first sign-in and only ever mutated by their owner.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    handle: Mapped[str | None] = mapped_column(
        String(20),
        unique=True,
        nullable=True,
        comment="Lowercase public handle; null until claimed",
    )
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    display_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    bio: Mapped[str] = mapped_column(String(150), default="", nullable=False)
    photo_url: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Reference to the stored profile photo",
    )
    photo_public_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Blob store id of the photo, used for deletion",
    )
    theme: Mapped[dict[str, Any] | None] = mapped_column(
        JSONDocument,
        nullable=True,
        comment="Theme preset document; null means default rendering",
    )
    provider: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Identity provider: 'github' or 'google'",
    )
    provider_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Subject id at the identity provider",
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

    __table_args__ = (UniqueConstraint("provider", "provider_id"),)

    def __repr__(self) -> str:
        return f"<Profile {self.handle or self.id}>"
