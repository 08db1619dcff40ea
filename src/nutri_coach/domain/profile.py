"""Domain models for the user profile."""

from dataclasses import dataclass
from enum import StrEnum


class Sex(StrEnum):
    """Biological sex used by the energy equation."""

    MALE = "male"
    FEMALE = "female"


class ActivityLevel(StrEnum):
    """Self-reported daily activity tier."""

    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


class Goal(StrEnum):
    """Body-weight goal."""

    LOSE = "lose"
    MAINTAIN = "maintain"
    GAIN = "gain"


class Language(StrEnum):
    """Reply language selector."""

    ID = "id"
    EN = "en"


class Theme(StrEnum):
    """Cosmetic UI theme, carried but never interpreted."""

    FUTURISTIC = "Futuristic"
    ELEGANT = "Simple Elegant"
    MODERN = "Modern"


GOAL_LABELS: dict[Goal, str] = {
    Goal.LOSE: "Lose Weight",
    Goal.MAINTAIN: "Maintain",
    Goal.GAIN: "Gain Muscle",
}


@dataclass(frozen=True)
class UserProfile:
    """Biometric and preference snapshot for the session owner."""

    name: str
    age: int
    sex: Sex
    weight_kg: float
    height_cm: float
    activity: ActivityLevel
    goal: Goal
    calorie_target: int
    calorie_target_override: int | None = None
    language: Language = Language.ID
    theme: Theme = Theme.FUTURISTIC

    @property
    def effective_target(self) -> int:
        """Return the manual override when set, else the computed target."""
        if self.calorie_target_override is not None:
            return self.calorie_target_override
        return self.calorie_target

    @property
    def reply_language(self) -> str:
        """Return the language name the coach must answer in."""
        return "Indonesian" if self.language == Language.ID else "English"
