"""Domain services.

Services take an AsyncSession, flush their changes and leave the commit to
the caller.
"""

from tanlink.services import analytics as analytics_service
from tanlink.services import handles as handle_service
from tanlink.services import links as link_service
from tanlink.services import onboarding as onboarding_service
from tanlink.services import profiles as profile_service
from tanlink.services import snapshot as snapshot_service

__all__ = [
    "analytics_service",
    "handle_service",
    "link_service",
    "onboarding_service",
    "profile_service",
    "snapshot_service",
]
