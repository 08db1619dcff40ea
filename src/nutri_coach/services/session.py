"""Session state and the controller that merges coach replies into it."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

from nutri_coach.domain.chat import ChatMessage, ChatRole, DailyInsight, FoodInsight
from nutri_coach.domain.coach import CoachReply
from nutri_coach.domain.logs import (
    ActivityLogEntry,
    DailySummary,
    FoodLogEntry,
    MealType,
)
from nutri_coach.domain.profile import Language, UserProfile
from nutri_coach.services.coach import IMAGE_MIME_TYPE, CoachService
from nutri_coach.services.energy import default_profile, update_profile
from nutri_coach.services.summary import summarize_day

logger = logging.getLogger(__name__)

DEFAULT_MOTIVATION = "Stay consistent!"
DEFAULT_NEXT_MEAL = "Healthy balanced meal."

_GREETINGS: dict[Language, str] = {
    Language.ID: "Halo! Saya NutriTrack AI. Siap membantu nutrisi dan aktivitasmu.",
    Language.EN: (
        "System Online. I'm NutriTrack AI. "
        "Ready to optimize your nutrition and activity."
    ),
}


class SessionBusyError(RuntimeError):
    """Raised when a turn is sent while another one is in flight."""


class EmptyMessageError(ValueError):
    """Raised when a turn has neither text nor an image."""


@dataclass
class SessionState:
    """All mutable state for one coaching session."""

    profile: UserProfile
    chat_history: list[ChatMessage] = field(default_factory=list)
    food_log: list[FoodLogEntry] = field(default_factory=list)
    activity_log: list[ActivityLogEntry] = field(default_factory=list)
    insight: DailyInsight | None = None
    busy: bool = False
    _last_message_ms: int = 0
    _applied_turn: UUID | None = None
    _applied: set[str] = field(default_factory=set)

    @classmethod
    def create(cls, profile: UserProfile | None = None) -> "SessionState":
        """Create a session seeded with the greeting message."""
        state = cls(profile=profile or default_profile())
        state.append_chat(
            ChatMessage(
                id="init",
                role=ChatRole.MODEL,
                text=_GREETINGS[state.profile.language],
            )
        )
        return state

    def next_message_id(self, now_ms: int) -> str:
        """Return a message id that increases even within one millisecond."""
        self._last_message_ms = max(now_ms, self._last_message_ms + 1)
        return str(self._last_message_ms)

    def append_chat(self, message: ChatMessage) -> None:
        """Append a chat message."""
        self.chat_history.append(message)

    def append_food(self, entry: FoodLogEntry) -> None:
        """Append a food log entry."""
        self.food_log.append(entry)

    def append_activity(self, entry: ActivityLogEntry) -> None:
        """Append an activity log entry."""
        self.activity_log.append(entry)

    def replace_insight(self, insight: DailyInsight) -> None:
        """Replace the daily insight snapshot."""
        self.insight = insight

    def set_profile(self, profile: UserProfile) -> None:
        """Replace the profile snapshot."""
        self.profile = profile

    def claim(self, turn_id: UUID, action: str) -> bool:
        """Return True the first time an action is applied for a turn.

        Only the latest turn is tracked; claiming for a new turn forgets the
        previous one.
        """
        if turn_id != self._applied_turn:
            self._applied_turn = turn_id
            self._applied = set()
        if action in self._applied:
            return False
        self._applied.add(action)
        return True


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one coaching turn."""

    turn_id: UUID
    user_message: ChatMessage
    model_message: ChatMessage
    food_entry: FoodLogEntry | None
    activity_entry: ActivityLogEntry | None
    insight: DailyInsight | None
    suggestion: str
    sentiment: str
    fallback_reason: str | None = None


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SessionController:
    """Single writer for a session: runs turns and applies their replies."""

    coach_service: CoachService
    state: SessionState
    timezone: str = "UTC"
    clock: Callable[[], datetime] = _utc_now

    async def send_message(
        self, text: str, image_base64: str | None = None
    ) -> TurnResult:
        """Run a full turn: record the user message, call the coach, merge."""
        if self.state.busy:
            logger.info("Rejected turn while another is in flight")
            raise SessionBusyError("A turn is already in progress")
        if not text.strip() and not image_base64:
            raise EmptyMessageError("Message text or image is required")

        self.state.busy = True
        try:
            food_log = self.today_food_log()
            user_message = ChatMessage(
                id=self.state.next_message_id(self._now_ms()),
                role=ChatRole.USER,
                text=text,
                image=_image_data_url(image_base64),
            )
            self.state.append_chat(user_message)
            turn = await self.coach_service.generate_turn(
                text,
                image_base64,
                list(self.state.chat_history),
                self.state.profile,
                food_log,
            )
            return self.merge_reply(
                uuid4(),
                user_message,
                turn.reply,
                fallback_reason=turn.fallback_reason,
            )
        finally:
            self.state.busy = False

    def merge_reply(
        self,
        turn_id: UUID,
        user_message: ChatMessage,
        reply: CoachReply,
        fallback_reason: str | None = None,
    ) -> TurnResult:
        """Apply a coach reply to the session.

        Each action is applied at most once per ``turn_id``; a replay of the
        same turn leaves the state untouched.
        """
        model_message = None
        if self.state.claim(turn_id, "chat"):
            model_message = ChatMessage(
                id=self.state.next_message_id(self._now_ms()),
                role=ChatRole.MODEL,
                text=reply.reply,
            )
            self.state.append_chat(model_message)

        insight = None
        if (reply.daily_motivation or reply.next_meal_suggestion) and self.state.claim(
            turn_id, "insight"
        ):
            insight = _build_insight(reply)
            self.state.replace_insight(insight)

        food_entry = None
        if reply.food_entry is not None and self.state.claim(turn_id, "food"):
            payload = reply.food_entry
            food_entry = FoodLogEntry(
                id=uuid4(),
                name=payload.name,
                calories=payload.calories,
                protein_g=payload.protein,
                carbs_g=payload.carbs,
                fat_g=payload.fat,
                timestamp_ms=self._now_ms(),
                meal_type=_meal_type(payload.meal_type_suggestion),
            )
            self.state.append_food(food_entry)

        activity_entry = None
        if reply.activity_entry is not None and self.state.claim(turn_id, "activity"):
            activity_entry = ActivityLogEntry(
                id=uuid4(),
                name=reply.activity_entry.name,
                calories_burned=reply.activity_entry.calories_burned,
                timestamp_ms=self._now_ms(),
            )
            self.state.append_activity(activity_entry)

        if model_message is None:
            model_message = next(
                message
                for message in reversed(self.state.chat_history)
                if message.role == ChatRole.MODEL
            )
        return TurnResult(
            turn_id=turn_id,
            user_message=user_message,
            model_message=model_message,
            food_entry=food_entry,
            activity_entry=activity_entry,
            insight=insight,
            suggestion=reply.suggestion,
            sentiment=str(reply.sentiment),
            fallback_reason=fallback_reason,
        )

    def update_profile(self, **changes: object) -> UserProfile:
        """Apply profile changes and return the new profile."""
        profile = update_profile(self.state.profile, **changes)
        self.state.set_profile(profile)
        return profile

    def today_food_log(self) -> list[FoodLogEntry]:
        """Return food entries logged today in the session timezone."""
        today = self._today()
        return [
            entry
            for entry in self.state.food_log
            if self._day_of(entry.timestamp_ms) == today
        ]

    def today_activity_log(self) -> list[ActivityLogEntry]:
        """Return activity entries logged today in the session timezone."""
        today = self._today()
        return [
            entry
            for entry in self.state.activity_log
            if self._day_of(entry.timestamp_ms) == today
        ]

    def summary(self) -> DailySummary:
        """Return today's dashboard totals."""
        return summarize_day(
            self.state.profile, self.today_food_log(), self.today_activity_log()
        )

    def _now_ms(self) -> int:
        return int(self.clock().timestamp() * 1000)

    def _today(self) -> date:
        return self.clock().astimezone(ZoneInfo(self.timezone)).date()

    def _day_of(self, timestamp_ms: int) -> date:
        zone = ZoneInfo(self.timezone)
        moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=zone)
        return moment.date()


def _build_insight(reply: CoachReply) -> DailyInsight:
    return DailyInsight(
        motivation=reply.daily_motivation or DEFAULT_MOTIVATION,
        next_meal_suggestion=reply.next_meal_suggestion or DEFAULT_NEXT_MEAL,
        food_insights=[
            FoodInsight(
                food_name=item.name,
                nutritional_highlight=item.nutritional_highlight,
                health_impact=item.health_impact,
            )
            for item in reply.food_analysis
            if item.name
        ],
    )


def _meal_type(suggestion: str | None) -> MealType:
    values = {meal.value for meal in MealType}
    if suggestion in values:
        return MealType(suggestion)
    return MealType.SNACK


def _image_data_url(image_base64: str | None) -> str | None:
    if not image_base64:
        return None
    return f"data:{IMAGE_MIME_TYPE};base64,{image_base64}"
