"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from nutri_coach.adapters.openai_coach_client import OpenAICoachClient
from nutri_coach.config import Settings
from nutri_coach.services.coach import CoachService
from nutri_coach.services.energy import default_profile
from nutri_coach.services.session import SessionController, SessionState


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    coach_service: CoachService
    session_controller: SessionController
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    openai_client = OpenAICoachClient.create(
        resolved_settings.openai_api_key,
        timeout_seconds=resolved_settings.coach_timeout_seconds,
    )
    coach_service = CoachService(
        client=openai_client,
        model=resolved_settings.openai_model,
        store=resolved_settings.openai_store,
        timeout_seconds=resolved_settings.coach_timeout_seconds,
    )
    session_controller = SessionController(
        coach_service=coach_service,
        state=SessionState.create(default_profile(resolved_settings.default_language)),
        timezone=resolved_settings.timezone,
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        coach_service=coach_service,
        session_controller=session_controller,
        close_resources=close_resources,
    )
