"""Coaching turn service: request construction and reply validation."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from pydantic import ValidationError

from nutri_coach.domain.chat import ChatMessage, ChatRole
from nutri_coach.domain.coach import CoachReply
from nutri_coach.domain.logs import FoodLogEntry
from nutri_coach.domain.profile import GOAL_LABELS, UserProfile

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 6
TEMPERATURE = 0.7
IMAGE_MIME_TYPE = "image/jpeg"

COACH_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "reply": {
            "type": "string",
            "description": (
                "A friendly, conversational response in the requested language. "
                "It must list the nutritional breakdown (Calories, Protein, "
                "Carbs, Fat) so the user reads it directly."
            ),
        },
        "food_entry": {
            "description": (
                "If the user mentions eating food, extract the nutritional data. "
                "If not, return null."
            ),
            "anyOf": [
                {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "calories": {"type": "number"},
                        "protein": {
                            "type": "number",
                            "description": (
                                "Estimated protein in grams. Estimate from the "
                                "ingredients; only return 0 for water."
                            ),
                        },
                        "carbs": {"type": "number"},
                        "fat": {"type": "number"},
                        "meal_type_suggestion": {
                            "type": "string",
                            "description": (
                                "Suggest: Breakfast, Lunch, Dinner, or Snack"
                            ),
                        },
                    },
                    "required": [
                        "name",
                        "calories",
                        "protein",
                        "carbs",
                        "fat",
                        "meal_type_suggestion",
                    ],
                    "additionalProperties": False,
                },
                {"type": "null"},
            ]
        },
        "activity_entry": {
            "description": (
                "If the user mentions a physical activity or exercise, estimate "
                "the calories burned. If not, return null."
            ),
            "anyOf": [
                {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "calories_burned": {"type": "number"},
                    },
                    "required": ["name", "calories_burned"],
                    "additionalProperties": False,
                },
                {"type": "null"},
            ]
        },
        "daily_motivation": {
            "type": "string",
            "description": (
                "A personalized, encouraging motivational message based on the "
                "user's goal and progress."
            ),
        },
        "next_meal_suggestion": {
            "type": "string",
            "description": (
                "A specific suggestion for the next meal based on what was eaten "
                "so far and the remaining macros."
            ),
        },
        "food_analysis": {
            "type": "array",
            "description": "Analysis of the foods mentioned in this message, if any.",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "nutritional_highlight": {
                        "type": "string",
                        "description": (
                            "Brief highlight of key nutrients, e.g. 'High in fiber'."
                        ),
                    },
                    "health_impact": {
                        "type": "string",
                        "description": (
                            "How this food affects the body, e.g. "
                            "'Provides sustained energy'."
                        ),
                    },
                },
                "required": ["name", "nutritional_highlight", "health_impact"],
                "additionalProperties": False,
            },
        },
        "suggestion": {
            "type": "string",
            "description": "A short, actionable tip for the immediate future.",
        },
        "sentiment": {
            "type": "string",
            "description": "The tone of the critique.",
            "enum": ["positive", "neutral", "constructive"],
        },
    },
    "required": [
        "reply",
        "food_entry",
        "activity_entry",
        "daily_motivation",
        "next_meal_suggestion",
        "food_analysis",
        "suggestion",
        "sentiment",
    ],
    "additionalProperties": False,
}


class CoachBackendError(RuntimeError):
    """The backend rejected the request or returned nothing usable."""


class CoachResponseError(ValueError):
    """The backend returned output that is not a JSON object."""


@dataclass(frozen=True)
class TextPart:
    """Text content sent to the backend."""

    text: str


@dataclass(frozen=True)
class ImagePart:
    """Inline base64 image sent to the backend."""

    data: str
    mime_type: str = IMAGE_MIME_TYPE

    @property
    def data_url(self) -> str:
        """Return the image as a data URL."""
        return f"data:{self.mime_type};base64,{self.data}"


@dataclass(frozen=True)
class TurnRequest:
    """Everything the backend needs to generate one coaching turn."""

    system_instruction: str
    parts: list[TextPart | ImagePart]
    temperature: float = TEMPERATURE
    schema: dict[str, object] = field(default_factory=lambda: COACH_SCHEMA)


class CoachClient(Protocol):
    """Interface for the structured-output LLM backend."""

    async def generate(
        self, *, model: str, store: bool, request: TurnRequest
    ) -> dict[str, object]:
        """Return the raw JSON object produced for the turn."""


@dataclass(frozen=True)
class CoachTurn:
    """Validated reply plus the failure kind when the fallback was used."""

    reply: CoachReply
    fallback_reason: str | None = None


@dataclass
class CoachService:
    """Service that builds coaching requests and validates replies."""

    client: CoachClient
    model: str
    store: bool = False
    timeout_seconds: float = 30.0

    async def generate_turn(
        self,
        message: str,
        image_base64: str | None,
        history: list[ChatMessage],
        profile: UserProfile,
        food_log: list[FoodLogEntry],
    ) -> CoachTurn:
        """Run one turn against the backend; failures yield the fallback reply."""
        request = build_turn_request(message, image_base64, history, profile, food_log)
        try:
            raw = await asyncio.wait_for(
                self.client.generate(
                    model=self.model, store=self.store, request=request
                ),
                timeout=self.timeout_seconds,
            )
            reply = CoachReply.model_validate(raw)
        except Exception as exc:
            reason = _classify_failure(exc)
            logger.exception(
                "Coach backend call failed",
                extra={"model": self.model, "failure_kind": reason},
            )
            return CoachTurn(
                reply=CoachReply.fallback(profile.language), fallback_reason=reason
            )
        return CoachTurn(reply=reply)


def build_turn_request(
    message: str,
    image_base64: str | None,
    history: list[ChatMessage],
    profile: UserProfile,
    food_log: list[FoodLogEntry],
) -> TurnRequest:
    """Assemble the system instruction and content parts for a turn.

    ``history`` is expected to already contain the current user message.
    Image turns carry the raw message only, without the history prefix.
    """
    instruction = build_system_instruction(profile, food_log)
    if image_base64:
        parts: list[TextPart | ImagePart] = [
            ImagePart(data=image_base64),
            TextPart(text=message),
        ]
    else:
        parts = [TextPart(text=build_prompt_text(message, history))]
    return TurnRequest(system_instruction=instruction, parts=parts)


def build_system_instruction(
    profile: UserProfile, food_log: list[FoodLogEntry]
) -> str:
    """Build the coach persona with profile and daily status embedded."""
    consumed = sum(entry.calories for entry in food_log)
    return "\n".join(
        [
            "You are NutriTrack AI, a highly intelligent, empathetic, and "
            "professional nutritionist.",
            f"User Profile: Age {profile.age}, {profile.sex}, "
            f"Weight {_format_number(profile.weight_kg)}kg, "
            f"Goal: {GOAL_LABELS[profile.goal]}.",
            f"Daily Status: Consumed {_format_number(consumed)} / "
            f"{profile.effective_target} kcal.",
            f"Language: Reply strictly in {profile.reply_language}.",
            "",
            "Your Task:",
            "1. Analyze the user's input (text or image).",
            "2. If food is detected:",
            "   - Estimate nutrition strictly (Calories, PROTEIN, Carbs, Fat).",
            "   - In the 'reply' text, explicitly state the detailed values "
            '(e.g., "Contains approx 500 kcal, 25g Protein, ...").',
            "   - Provide a 'food_analysis' for each item explaining its "
            "benefits/impact.",
            "   - Never miss PROTEIN when the food contains it.",
            "3. If activity is detected, estimate calories burned.",
            "4. Provide 'daily_motivation' to keep them going.",
            "5. Suggest a 'next_meal_suggestion' balancing their remaining macros.",
            "6. Keep a friendly, non-judgmental tone. If they overeat, be kind "
            "but constructive.",
            "",
            "Output JSON format as defined in the schema.",
        ]
    )


def build_prompt_text(message: str, history: list[ChatMessage]) -> str:
    """Prefix the message with the most recent chat history."""
    recent = "\n".join(
        f"{'User' if entry.role == ChatRole.USER else 'AI'}: {entry.text}"
        for entry in history[-HISTORY_WINDOW:]
    )
    return f"Previous Conversation:\n{recent}\n\nCurrent User Input:\n{message}"


def _classify_failure(exc: Exception) -> str:
    if isinstance(exc, TimeoutError):
        return "timeout"
    if isinstance(exc, ValidationError | CoachResponseError):
        return "schema"
    if isinstance(exc, CoachBackendError):
        return "backend"
    return "transport"


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"
