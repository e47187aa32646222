"""Authentication endpoints for OAuth login/logout."""

from typing import Annotated, Any

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tanlink.core.config import get_settings
from tanlink.core.database import get_async_session
from tanlink.core.deps import AUTH_COOKIE_NAME, CurrentProfile, CurrentProfileOptional
from tanlink.core.oauth import oauth, provider_configured
from tanlink.core.rate_limit import RATE_LIMIT_AUTH, limiter
from tanlink.core.security import create_cookie_token
from tanlink.schemas.profile import ProfileResponse
from tanlink.services import profile_service

settings = get_settings()
logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["auth"])


def _require_provider(provider: str) -> None:
    if not provider_configured(provider):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{provider.capitalize()} OAuth is not configured",
        )


async def _sign_in(
    session: AsyncSession,
    provider: str,
    provider_id: str,
    email: str | None,
    display_name: str | None,
    photo_url: str | None,
) -> Response:
    """Create or load the profile and hand back the auth cookie.

    New profiles land on onboarding; returning owners go straight there too,
    since onboarding redirects finished profiles to the dashboard.
    """
    profile, created = await profile_service.get_or_create_from_oauth(
        session=session,
        provider=provider,
        provider_id=provider_id,
        email=email,
        display_name=display_name,
        photo_url=photo_url,
    )
    await session.commit()

    logger.info(
        "OAuth sign-in successful",
        provider=provider,
        profile_id=str(profile.id),
        created=created,
    )

    token_value, max_age = create_cookie_token(profile.id, profile.email)

    response = Response(
        status_code=status.HTTP_302_FOUND,
        headers={"Location": f"{settings.frontend_url}/onboarding"},
    )
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token_value,
        max_age=max_age,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
        path="/",
    )
    return response


def _pick_github_email(github_user: dict[str, Any], emails: list[dict[str, Any]]) -> str | None:
    """Public email first, then the primary verified one, then any."""
    email = github_user.get("email")
    if email:
        return email
    for entry in emails:
        if entry.get("primary") and entry.get("verified"):
            return entry.get("email")
    return emails[0].get("email") if emails else None


@router.get("/github")
@limiter.limit(RATE_LIMIT_AUTH)
async def github_login(request: Request) -> Response:
    """Initiate GitHub OAuth login flow."""
    _require_provider("github")
    redirect_uri = request.url_for("github_callback")
    return await oauth.github.authorize_redirect(request, redirect_uri)


@router.get("/github/callback")
@limiter.limit(RATE_LIMIT_AUTH)
async def github_callback(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> Response:
    """Exchange the GitHub code, load the account and sign the owner in."""
    try:
        token = await oauth.github.authorize_access_token(request)
    except Exception as e:
        logger.error("GitHub OAuth token exchange failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to authenticate with GitHub",
        )

    async with httpx.AsyncClient() as client:
        headers = {"Authorization": f"Bearer {token['access_token']}"}
        user_resp = await client.get("https://api.github.com/user", headers=headers)
        if user_resp.status_code != 200:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Failed to fetch GitHub user info",
            )
        github_user = user_resp.json()

        # Private emails are only listed here
        emails_resp = await client.get("https://api.github.com/user/emails", headers=headers)
        emails = emails_resp.json() if emails_resp.status_code == 200 else []

    return await _sign_in(
        session,
        provider="github",
        provider_id=str(github_user["id"]),
        email=_pick_github_email(github_user, emails),
        display_name=github_user.get("name") or github_user.get("login"),
        photo_url=github_user.get("avatar_url"),
    )


@router.get("/google")
@limiter.limit(RATE_LIMIT_AUTH)
async def google_login(request: Request) -> Response:
    """Initiate Google OAuth login flow."""
    _require_provider("google")
    redirect_uri = request.url_for("google_callback")
    return await oauth.google.authorize_redirect(request, redirect_uri)


@router.get("/google/callback")
@limiter.limit(RATE_LIMIT_AUTH)
async def google_callback(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> Response:
    """Exchange the Google code and sign the owner in from the ID token."""
    try:
        token = await oauth.google.authorize_access_token(request)
    except Exception as e:
        logger.error("Google OAuth token exchange failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to authenticate with Google",
        )

    user_info = token.get("userinfo")
    if not user_info:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to get user info from Google",
        )

    return await _sign_in(
        session,
        provider="google",
        provider_id=user_info["sub"],
        email=user_info.get("email"),
        display_name=user_info.get("name"),
        photo_url=user_info.get("picture"),
    )


@router.post("/logout")
async def logout(request: Request, response: Response) -> dict[str, str]:
    """Clear the auth cookie and any onboarding session state."""
    request.session.clear()
    response.delete_cookie(
        key=AUTH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
    )
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=ProfileResponse)
async def get_current_profile_info(profile: CurrentProfile) -> ProfileResponse:
    """Get the signed-in owner's profile."""
    return profile_service.to_response(profile)


@router.get("/status")
async def auth_status(profile: CurrentProfileOptional) -> dict:
    """Check authentication status without a 401 for signed-out visitors."""
    if profile:
        return {
            "authenticated": True,
            "profile": profile_service.to_response(profile).model_dump(mode="json"),
        }
    return {"authenticated": False, "profile": None}
