"""Daily energy target calculation and profile updates."""

import dataclasses
import math

from nutri_coach.domain.profile import (
    ActivityLevel,
    Goal,
    Language,
    Sex,
    Theme,
    UserProfile,
)

ACTIVITY_FACTORS: dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

GOAL_ADJUSTMENTS: dict[Goal, int] = {
    Goal.LOSE: -500,
    Goal.MAINTAIN: 0,
    Goal.GAIN: 300,
}

ENERGY_FIELDS = frozenset(
    {"weight_kg", "height_cm", "age", "sex", "activity", "goal"}
)


def calculate_target(profile: UserProfile) -> int:
    """Return the daily kcal target using the Mifflin-St Jeor equation.

    Pathological inputs are not clamped and may yield a non-positive target.
    """
    bmr = 10 * profile.weight_kg + 6.25 * profile.height_cm - 5 * profile.age
    bmr += 5 if profile.sex == Sex.MALE else -161
    tdee = _round_half_up(bmr * ACTIVITY_FACTORS[profile.activity])
    return tdee + GOAL_ADJUSTMENTS[profile.goal]


def update_profile(profile: UserProfile, **changes: object) -> UserProfile:
    """Apply profile changes, recomputing the target only when inputs change."""
    unknown = set(changes) - {f.name for f in dataclasses.fields(UserProfile)}
    if unknown:
        raise ValueError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
    changes.pop("calorie_target", None)
    updated = dataclasses.replace(profile, **changes)
    if any(
        getattr(updated, name) != getattr(profile, name) for name in ENERGY_FIELDS
    ):
        updated = dataclasses.replace(updated, calorie_target=calculate_target(updated))
    return updated


def default_profile(language: Language = Language.ID) -> UserProfile:
    """Return the starter profile for a new session."""
    profile = UserProfile(
        name="User",
        age=25,
        sex=Sex.FEMALE,
        weight_kg=60,
        height_cm=165,
        activity=ActivityLevel.MODERATE,
        goal=Goal.MAINTAIN,
        calorie_target=0,
        language=language,
        theme=Theme.FUTURISTIC,
    )
    return dataclasses.replace(profile, calorie_target=calculate_target(profile))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
