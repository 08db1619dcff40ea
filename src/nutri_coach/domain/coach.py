"""Models for structured coach replies."""

import logging
from enum import StrEnum

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)

from nutri_coach.domain.profile import Language

logger = logging.getLogger(__name__)


class Sentiment(StrEnum):
    """Tone of the coach critique."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    CONSTRUCTIVE = "constructive"


class FoodEntryPayload(BaseModel):
    """Food the user reported eating, as estimated by the coach."""

    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    meal_type_suggestion: str | None = None


class ActivityEntryPayload(BaseModel):
    """Activity the user reported, as estimated by the coach."""

    name: str
    calories_burned: float


class FoodAnalysisPayload(BaseModel):
    """Per-food analysis item."""

    name: str | None = None
    nutritional_highlight: str = ""
    health_impact: str = ""


class CoachReply(BaseModel):
    """Structured output for one coaching turn."""

    reply: str
    food_entry: FoodEntryPayload | None = None
    activity_entry: ActivityEntryPayload | None = None
    daily_motivation: str
    next_meal_suggestion: str
    food_analysis: list[FoodAnalysisPayload] = Field(default_factory=list)
    suggestion: str
    sentiment: Sentiment

    @field_validator("food_entry", "activity_entry", mode="wrap")
    @classmethod
    def _drop_malformed_entry(
        cls, value: object, handler: ValidatorFunctionWrapHandler
    ) -> object:
        try:
            return handler(value)
        except ValidationError:
            logger.warning("Dropping malformed log entry", extra={"entry": value})
            return None

    @field_validator("food_analysis", mode="before")
    @classmethod
    def _null_analysis_is_empty(cls, value: object) -> object:
        return [] if value is None else value

    @classmethod
    def fallback(cls, language: Language) -> "CoachReply":
        """Return the synthetic reply used when the backend call fails."""
        if language == Language.ID:
            reply = "Maaf, saya mengalami kesalahan koneksi."
            motivation = "Tetap semangat!"
        else:
            reply = "Sorry, I encountered a connection error."
            motivation = "Keep going!"
        return cls(
            reply=reply,
            food_entry=None,
            activity_entry=None,
            daily_motivation=motivation,
            next_meal_suggestion="",
            food_analysis=[],
            suggestion="",
            sentiment=Sentiment.NEUTRAL,
        )
