"""Daily dashboard totals."""

from nutri_coach.domain.logs import ActivityLogEntry, DailySummary, FoodLogEntry
from nutri_coach.domain.profile import UserProfile


def summarize_day(
    profile: UserProfile,
    food_log: list[FoodLogEntry],
    activity_log: list[ActivityLogEntry],
) -> DailySummary:
    """Aggregate one day's logs against the effective target."""
    target = profile.effective_target
    consumed = sum(entry.calories for entry in food_log)
    burned = sum(entry.calories_burned for entry in activity_log)
    net = max(0.0, consumed - burned)
    if target > 0:
        progress = min(100.0, net / target * 100)
    else:
        progress = 100.0
    return DailySummary(
        target=target,
        consumed=consumed,
        burned=burned,
        net=net,
        remaining=target - net,
        protein_g=sum(entry.protein_g for entry in food_log),
        carbs_g=sum(entry.carbs_g for entry in food_log),
        fat_g=sum(entry.fat_g for entry in food_log),
        progress_pct=progress,
    )
