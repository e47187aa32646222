"""API v1 router - aggregates all owner endpoints."""

from fastapi import APIRouter

from tanlink.api.v1.auth import router as auth_router
from tanlink.api.v1.links import router as links_router
from tanlink.api.v1.onboarding import router as onboarding_router
from tanlink.api.v1.profile import router as profile_router
from tanlink.api.v1.stats import router as stats_router

router = APIRouter(prefix="/api/v1")

# Include sub-routers
router.include_router(auth_router)
router.include_router(profile_router)
router.include_router(links_router)
router.include_router(stats_router)
router.include_router(onboarding_router)


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
