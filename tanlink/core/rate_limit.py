"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from tanlink.core.config import get_settings

settings = get_settings()


def get_client_ip(request: Request) -> str:
    """Get the real client IP address, handling proxies.

    Checks X-Forwarded-For and X-Real-IP headers before falling back
    to the direct client address.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # The first entry is the original client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_ip,
    default_limits=["1000/hour"],
    storage_uri=settings.rate_limit_storage_uri,
    strategy="fixed-window",
    enabled=settings.rate_limit_enabled,
)

# Public profile page views - the hot path
RATE_LIMIT_PUBLIC_VIEW = "600/minute"

# Link click beacons - a visitor clicks far less often than pages load
RATE_LIMIT_PUBLIC_CLICK = "120/minute"

# Auth endpoints - prevent brute force
RATE_LIMIT_AUTH = "20/minute"

# Handle claims - prevent squatting scripts
RATE_LIMIT_HANDLE_CLAIM = "10/minute"

# General owner API endpoints
RATE_LIMIT_API = "100/minute"
