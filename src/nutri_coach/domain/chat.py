"""Domain models for the coaching conversation."""

from dataclasses import dataclass, field
from enum import StrEnum


class ChatRole(StrEnum):
    """Author of a chat message."""

    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class ChatMessage:
    """Single entry of the append-only chat history."""

    id: str
    role: ChatRole
    text: str
    image: str | None = None


@dataclass(frozen=True)
class FoodInsight:
    """Per-food highlight produced by the coach."""

    food_name: str
    nutritional_highlight: str
    health_impact: str


@dataclass(frozen=True)
class DailyInsight:
    """Latest motivational snapshot; replaced wholesale on each turn."""

    motivation: str
    next_meal_suggestion: str
    food_insights: list[FoodInsight] = field(default_factory=list)
