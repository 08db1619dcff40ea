"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from nutri_coach.config import Settings
from nutri_coach.containers import AppContainer
from nutri_coach.domain.profile import (
    ActivityLevel,
    Goal,
    Language,
    Sex,
    Theme,
    UserProfile,
)
from nutri_coach.services.coach import CoachClient, CoachService, TurnRequest
from nutri_coach.services.session import SessionController, SessionState


def coach_payload(**overrides: object) -> dict[str, object]:
    """Return a schema-valid coach reply, with optional field overrides."""
    payload: dict[str, object] = {
        "reply": "Nasi goreng: approx 450 kcal, 12g protein, 60g carbs, 17g fat.",
        "food_entry": {
            "name": "Nasi goreng",
            "calories": 450,
            "protein": 12,
            "carbs": 60,
            "fat": 17,
            "meal_type_suggestion": "Lunch",
        },
        "activity_entry": None,
        "daily_motivation": "Great start, keep it up!",
        "next_meal_suggestion": "Grilled fish with vegetables.",
        "food_analysis": [
            {
                "name": "Nasi goreng",
                "nutritional_highlight": "High in carbohydrates",
                "health_impact": "Provides quick energy",
            }
        ],
        "suggestion": "Drink a glass of water.",
        "sentiment": "positive",
    }
    payload.update(overrides)
    return payload


@dataclass
class FakeCoachClient(CoachClient):
    """Fake coach client returning a fixed payload or raising an error."""

    payload: dict[str, object] = field(default_factory=coach_payload)
    error: Exception | None = None
    requests: list[TurnRequest] = field(default_factory=list)

    async def generate(
        self, *, model: str, store: bool, request: TurnRequest
    ) -> dict[str, object]:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.payload


@dataclass
class FixedClock:
    """Clock that only moves when told to."""

    now: datetime = field(
        default_factory=lambda: datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="openai-key", environment="local")


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(
        name="Sari",
        age=25,
        sex=Sex.FEMALE,
        weight_kg=60,
        height_cm=165,
        activity=ActivityLevel.MODERATE,
        goal=Goal.MAINTAIN,
        calorie_target=2085,
        language=Language.EN,
        theme=Theme.MODERN,
    )


@pytest.fixture
def coach_client() -> FakeCoachClient:
    return FakeCoachClient()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def controller(
    coach_client: FakeCoachClient, profile: UserProfile, clock: FixedClock
) -> SessionController:
    return SessionController(
        coach_service=CoachService(client=coach_client, model="test-model"),
        state=SessionState.create(profile),
        clock=clock,
    )


@pytest.fixture
def container(settings: Settings, controller: SessionController) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        coach_service=controller.coach_service,
        session_controller=controller,
        close_resources=close_resources,
    )
