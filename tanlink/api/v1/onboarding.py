"""Guided setup flow endpoints.

`GET /onboarding` starts (or restarts) a session from the profile's current
facts. The transition endpoints act on the session kept in the signed
session cookie.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tanlink.core.config import get_settings
from tanlink.core.database import get_async_session
from tanlink.core.deps import CurrentProfileOptional
from tanlink.core.rate_limit import RATE_LIMIT_API, limiter
from tanlink.schemas.onboarding import OnboardingState, TransitionResult
from tanlink.services.onboarding import OnboardingSession, OnboardingStep, derive, load_facts

settings = get_settings()
logger = structlog.get_logger()

router = APIRouter(prefix="/onboarding", tags=["onboarding"])

SESSION_KEY = "onboarding"


def _state(flow: OnboardingSession, redirect_to: str | None = None) -> OnboardingState:
    return OnboardingState(
        current_step=flow.current,
        completed=dict(flow.completed),
        progress=flow.progress,
        finished=flow.finished,
        redirect_to=redirect_to,
    )


def _result(
    flow: OnboardingSession,
    moved: bool,
    redirect_to: str | None = None,
) -> TransitionResult:
    return TransitionResult(**_state(flow, redirect_to=redirect_to).model_dump(), moved=moved)


async def _exit_redirect(
    session: AsyncSession,
    profile: CurrentProfileOptional,
    flow: OnboardingSession,
) -> str | None:
    """Dashboard path once the flow sits at preview with every fact stored."""
    if not flow.finished:
        return None
    facts = await load_facts(session, profile)
    if derive(facts) != OnboardingStep.PREVIEW:
        return None
    return settings.dashboard_path


async def _start(
    request: Request,
    session: AsyncSession,
    profile: CurrentProfileOptional,
) -> OnboardingSession:
    facts = await load_facts(session, profile)
    flow = OnboardingSession.start(facts)
    request.session[SESSION_KEY] = flow.to_dict()
    return flow


async def _load(
    request: Request,
    session: AsyncSession,
    profile: CurrentProfileOptional,
) -> OnboardingSession:
    data = request.session.get(SESSION_KEY)
    if not data:
        return await _start(request, session, profile)
    try:
        return OnboardingSession.from_dict(data)
    except (KeyError, ValueError):
        logger.warning("Discarding malformed onboarding session")
        return await _start(request, session, profile)


def _save(request: Request, flow: OnboardingSession) -> None:
    request.session[SESSION_KEY] = flow.to_dict()


@router.get("", response_model=OnboardingState)
@limiter.limit(RATE_LIMIT_API)
async def start_onboarding(
    request: Request,
    profile: CurrentProfileOptional,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> OnboardingState:
    """Derive the current step from persisted facts.

    A profile that has already completed setup is sent to the dashboard.
    """
    flow = await _start(request, session, profile)
    redirect_to = settings.dashboard_path if flow.finished else None
    return _state(flow, redirect_to=redirect_to)


@router.post("/next", response_model=TransitionResult)
@limiter.limit(RATE_LIMIT_API)
async def next_step(
    request: Request,
    profile: CurrentProfileOptional,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> TransitionResult:
    flow = await _load(request, session, profile)
    moved = flow.advance()
    _save(request, flow)
    return _result(flow, moved, await _exit_redirect(session, profile, flow))


@router.post("/previous", response_model=TransitionResult)
@limiter.limit(RATE_LIMIT_API)
async def previous_step(
    request: Request,
    profile: CurrentProfileOptional,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> TransitionResult:
    flow = await _load(request, session, profile)
    moved = flow.retreat()
    _save(request, flow)
    return _result(flow, moved)


@router.post("/jump/{step}", response_model=TransitionResult)
@limiter.limit(RATE_LIMIT_API)
async def jump_to_step(
    request: Request,
    step: OnboardingStep,
    profile: CurrentProfileOptional,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> TransitionResult:
    """Jump to a step; forward jumps need the step before it completed."""
    flow = await _load(request, session, profile)
    moved = flow.jump_to(step)
    if not moved and step != flow.current:
        logger.info("Onboarding jump denied", target=step.value, current=flow.current.value)
    _save(request, flow)
    return _result(flow, moved, await _exit_redirect(session, profile, flow))


@router.post("/complete/{step}", response_model=TransitionResult)
@limiter.limit(RATE_LIMIT_API)
async def complete_step(
    request: Request,
    step: OnboardingStep,
    profile: CurrentProfileOptional,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> TransitionResult:
    """Mark a step completed for this session."""
    flow = await _load(request, session, profile)
    flow.mark_completed(step)
    _save(request, flow)
    return _result(flow, moved=False)
