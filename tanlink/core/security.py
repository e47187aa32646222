"""JWT handling for the owner session cookie."""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from jose import JWTError, jwt
from pydantic import BaseModel

from tanlink.core.config import get_settings

settings = get_settings()

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7  # 7 days


class TokenData(BaseModel):
    """Claims carried by an owner token."""

    profile_id: UUID
    email: str | None = None
    exp: datetime


def create_access_token(
    profile_id: UUID,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed token identifying a profile owner.

    Args:
        profile_id: The identity the token is issued for
        email: Optional email claim from the identity provider
        expires_delta: Optional custom lifetime
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    claims: dict[str, Any] = {"sub": str(profile_id), "exp": expire}
    if email:
        claims["email"] = email

    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> TokenData | None:
    """Decode and validate a token.

    Returns:
        TokenData if valid, None if invalid, expired or malformed
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
        subject = payload.get("sub")
        if subject is None:
            return None

        return TokenData(
            profile_id=UUID(subject),
            email=payload.get("email"),
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (JWTError, ValueError, KeyError):
        return None


def create_cookie_token(profile_id: UUID, email: str | None = None) -> tuple[str, int]:
    """Create a token suitable for httpOnly cookie storage.

    Returns:
        Tuple of (token, max_age_seconds)
    """
    token = create_access_token(profile_id, email)
    return token, ACCESS_TOKEN_EXPIRE_MINUTES * 60
