"""Usage statistics aggregation from discrete activity events."""

from datetime import date

import structlog

from shiksha_sahayak.models.profile import (
    WEEKLY_ACTIVITY_LIMIT,
    ActivityKind,
    DailyActivity,
    UserStats,
)

logger = structlog.get_logger()

# Fixed English labels so buckets do not depend on the process locale
WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def weekday_label(day: date) -> str:
    return WEEKDAY_LABELS[day.weekday()]


def record_activity(
    stats: UserStats,
    kind: ActivityKind,
    today: date | None = None,
) -> UserStats:
    """Apply one activity event and return the updated stats record.

    The streak grows on the first activity of any new calendar day, without
    checking that the previous active day was yesterday. Weekly buckets are
    keyed by weekday label, so the same weekday in a later week reuses the
    existing bucket. Both behaviors are intentional.

    Args:
        stats: Current stats record (left untouched).
        kind: Which counter to increment.
        today: Override for the current local date.

    Returns:
        A new UserStats; the caller persists it.
    """
    today = today or date.today()
    update: dict = {}

    if kind == ActivityKind.QUERY:
        update["total_queries"] = stats.total_queries + 1
    elif kind == ActivityKind.RESOURCE_VIEW:
        update["resources_viewed"] = stats.resources_viewed + 1
    else:
        raise ValueError(f"Unknown activity kind: {kind!r}")

    today_iso = today.isoformat()
    if stats.last_active_date != today_iso:
        update["last_active_date"] = today_iso
        update["current_streak"] = stats.current_streak + 1

    label = weekday_label(today)
    weekly = list(stats.weekly_activity)
    for i, entry in enumerate(weekly):
        if entry.date == label:
            weekly[i] = DailyActivity(date=label, count=entry.count + 1)
            break
    else:
        weekly.append(DailyActivity(date=label, count=1))
        while len(weekly) > WEEKLY_ACTIVITY_LIMIT:
            weekly.pop(0)
    update["weekly_activity"] = weekly

    logger.debug("activity_recorded", kind=str(kind), date=today_iso)
    return stats.model_copy(update=update)
