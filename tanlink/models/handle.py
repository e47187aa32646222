"""Handle reservation SQLAlchemy model."""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from tanlink.core.database import Base
from tanlink.models.profile import Profile


class HandleReservation(Base):
    """Maps a lowercase handle to the identity that holds it.

    The handle is the primary key, so two identities can never hold the
    same handle even if they race past the availability check.
    """

    __tablename__ = "handles"

    handle: Mapped[str] = mapped_column(String(20), primary_key=True)
    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey(Profile.id, ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<HandleReservation {self.handle} -> {self.profile_id}>"
