"""Onboarding state machine.

The current step is derived from persisted facts and never stored. A
session only remembers where the user is in the flow and which steps
were completed during it; it lives in the signed session cookie.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from tanlink.models.profile import Profile
from tanlink.services.links import count_links


class OnboardingStep(str, Enum):
    REGISTER = "register"
    USERNAME = "username"
    LINKS = "links"
    THEME = "theme"
    PREVIEW = "preview"


STEPS: tuple[OnboardingStep, ...] = tuple(OnboardingStep)


@dataclass(frozen=True)
class OnboardingFacts:
    """Persisted facts the current step is derived from."""

    authenticated: bool
    has_handle: bool = False
    link_count: int = 0
    has_theme: bool = False


def derive(facts: OnboardingFacts) -> OnboardingStep:
    """First step whose prerequisite fact is missing."""
    if not facts.authenticated:
        return OnboardingStep.REGISTER
    if not facts.has_handle:
        return OnboardingStep.USERNAME
    if facts.link_count == 0:
        return OnboardingStep.LINKS
    if not facts.has_theme:
        return OnboardingStep.THEME
    return OnboardingStep.PREVIEW


def step_index(step: OnboardingStep) -> int:
    return STEPS.index(step)


@dataclass
class OnboardingSession:
    current: OnboardingStep
    completed: dict[OnboardingStep, bool] = field(
        default_factory=lambda: {step: False for step in STEPS}
    )

    @classmethod
    def start(cls, facts: OnboardingFacts) -> "OnboardingSession":
        """Begin a session from freshly loaded facts."""
        return cls(
            current=derive(facts),
            completed={
                OnboardingStep.REGISTER: facts.authenticated,
                OnboardingStep.USERNAME: facts.has_handle,
                OnboardingStep.LINKS: facts.link_count > 0,
                OnboardingStep.THEME: facts.has_theme,
                OnboardingStep.PREVIEW: False,
            },
        )

    @property
    def finished(self) -> bool:
        return self.current == OnboardingStep.PREVIEW

    @property
    def progress(self) -> float:
        """Position in the flow as a percentage."""
        return (step_index(self.current) + 1) / len(STEPS) * 100

    def advance(self) -> bool:
        """Move to the next step. Returns False at the last step."""
        index = step_index(self.current)
        if index >= len(STEPS) - 1:
            return False
        self.current = STEPS[index + 1]
        return True

    def retreat(self) -> bool:
        """Move to the previous step. Returns False at the first step."""
        index = step_index(self.current)
        if index == 0:
            return False
        self.current = STEPS[index - 1]
        return True

    def can_jump_to(self, step: OnboardingStep) -> bool:
        """Backward jumps are always allowed.

        A forward jump needs only the step immediately before the target
        to be completed.
        """
        target = step_index(step)
        if target <= step_index(self.current):
            return True
        return self.completed.get(STEPS[target - 1], False)

    def jump_to(self, step: OnboardingStep) -> bool:
        if not self.can_jump_to(step):
            return False
        moved = step != self.current
        self.current = step
        return moved

    def mark_completed(self, step: OnboardingStep) -> None:
        self.completed[step] = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "current": self.current.value,
            "completed": {step.value: done for step, done in self.completed.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OnboardingSession":
        completed = {step: False for step in STEPS}
        for key, done in (data.get("completed") or {}).items():
            completed[OnboardingStep(key)] = bool(done)
        return cls(current=OnboardingStep(data["current"]), completed=completed)


async def load_facts(session: AsyncSession, profile: Profile | None) -> OnboardingFacts:
    """Read the completion facts for a profile (None means signed out)."""
    if profile is None:
        return OnboardingFacts(authenticated=False)
    return OnboardingFacts(
        authenticated=True,
        has_handle=profile.handle is not None,
        link_count=await count_links(session, profile.id),
        has_theme=profile.theme is not None,
    )
