"""SQLAlchemy models.

All models should be imported here for Alembic to detect them.
"""

from tanlink.core.database import Base
from tanlink.models.handle import HandleReservation
from tanlink.models.link import Link
from tanlink.models.profile import Profile
from tanlink.models.stats import ClickStat, StatBucket, ViewStat

__all__ = [
    "Base",
    "ClickStat",
    "HandleReservation",
    "Link",
    "Profile",
    "StatBucket",
    "ViewStat",
]
