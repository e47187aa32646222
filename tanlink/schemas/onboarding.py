"""Onboarding state schemas."""

from pydantic import BaseModel

from tanlink.services.onboarding import OnboardingStep


class OnboardingState(BaseModel):
    current_step: OnboardingStep
    completed: dict[OnboardingStep, bool]
    progress: float
    finished: bool
    redirect_to: str | None = None


class TransitionResult(OnboardingState):
    moved: bool
