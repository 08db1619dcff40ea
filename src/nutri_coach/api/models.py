"""Pydantic models for the HTTP API payloads."""

from pydantic import BaseModel, Field

from nutri_coach.domain.profile import ActivityLevel, Goal, Language, Sex, Theme


class ChatRequest(BaseModel):
    """User turn payload."""

    text: str = ""
    image_base64: str | None = None


class ProfileUpdate(BaseModel):
    """Partial profile update; omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1)
    age: int | None = Field(default=None, gt=0)
    sex: Sex | None = None
    weight_kg: float | None = Field(default=None, gt=0)
    height_cm: float | None = Field(default=None, gt=0)
    activity: ActivityLevel | None = None
    goal: Goal | None = None
    calorie_target_override: int | None = Field(default=None, gt=0)
    language: Language | None = None
    theme: Theme | None = None

    def changes(self) -> dict[str, object]:
        """Return the fields to apply.

        An explicit ``null`` override clears it; other nulls are ignored.
        """
        provided = self.model_dump(exclude_unset=True)
        return {
            name: value
            for name, value in provided.items()
            if value is not None or name == "calorie_target_override"
        }
