"""Domain models for food and activity logs."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID


class MealType(StrEnum):
    """Meal tag attached to a food log entry."""

    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    SNACK = "Snack"


@dataclass(frozen=True)
class FoodLogEntry:
    """Logged food item with macros."""

    id: UUID
    name: str
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    timestamp_ms: int
    meal_type: MealType


@dataclass(frozen=True)
class ActivityLogEntry:
    """Logged physical activity."""

    id: UUID
    name: str
    calories_burned: float
    timestamp_ms: int


@dataclass(frozen=True)
class DailySummary:
    """Dashboard totals for a single day."""

    target: int
    consumed: float
    burned: float
    net: float
    remaining: float
    protein_g: float
    carbs_g: float
    fat_g: float
    progress_pct: float
