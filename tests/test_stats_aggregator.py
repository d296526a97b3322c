"""Tests for usage statistics aggregation."""

from datetime import date, timedelta

from shiksha_sahayak.models.profile import ActivityKind, DailyActivity, UserStats
from shiksha_sahayak.stats.aggregator import (
    WEEKLY_ACTIVITY_LIMIT,
    record_activity,
    weekday_label,
)

MONDAY = date(2026, 10, 19)


class TestCounters:
    def test_query_increments_only_queries(self):
        stats = UserStats(total_queries=2, resources_viewed=5)
        updated = record_activity(stats, ActivityKind.QUERY, MONDAY)
        assert updated.total_queries == 3
        assert updated.resources_viewed == 5

    def test_resource_view_increments_only_views(self):
        stats = UserStats(total_queries=2, resources_viewed=5)
        updated = record_activity(stats, ActivityKind.RESOURCE_VIEW, MONDAY)
        assert updated.total_queries == 2
        assert updated.resources_viewed == 6

    def test_input_record_unchanged(self):
        stats = UserStats()
        record_activity(stats, ActivityKind.QUERY, MONDAY)
        assert stats.total_queries == 0
        assert stats.weekly_activity == []


class TestStreak:
    def test_first_activity_of_new_day_increments(self):
        stats = UserStats(current_streak=2, last_active_date="2026-10-18")
        updated = record_activity(stats, ActivityKind.QUERY, MONDAY)
        assert updated.current_streak == 3
        assert updated.last_active_date == "2026-10-19"

    def test_same_day_increments_at_most_once(self):
        stats = UserStats(current_streak=0, last_active_date="2026-10-01")
        once = record_activity(stats, ActivityKind.QUERY, MONDAY)
        twice = record_activity(once, ActivityKind.RESOURCE_VIEW, MONDAY)
        assert twice.current_streak == 1

    def test_gap_of_several_days_still_increments(self):
        stats = UserStats(current_streak=5, last_active_date="2026-09-01")
        updated = record_activity(stats, ActivityKind.QUERY, MONDAY)
        assert updated.current_streak == 6

    def test_default_stats_today_does_not_increment(self):
        stats = UserStats(last_active_date=MONDAY.isoformat())
        updated = record_activity(stats, ActivityKind.QUERY, MONDAY)
        assert updated.current_streak == 0


class TestWeeklyActivity:
    def test_weekday_label(self):
        assert weekday_label(MONDAY) == "Mon"
        assert weekday_label(MONDAY + timedelta(days=6)) == "Sun"

    def test_new_label_appended(self):
        updated = record_activity(UserStats(), ActivityKind.QUERY, MONDAY)
        assert updated.weekly_activity == [DailyActivity(date="Mon", count=1)]

    def test_existing_label_incremented(self):
        stats = UserStats(weekly_activity=[DailyActivity(date="Mon", count=2)])
        updated = record_activity(stats, ActivityKind.QUERY, MONDAY)
        assert updated.weekly_activity == [DailyActivity(date="Mon", count=3)]

    def test_same_weekday_next_week_reuses_bucket(self):
        stats = record_activity(UserStats(), ActivityKind.QUERY, MONDAY)
        stats = record_activity(stats, ActivityKind.QUERY, MONDAY + timedelta(days=7))
        assert stats.weekly_activity == [DailyActivity(date="Mon", count=2)]

    def test_eighth_entry_evicts_oldest(self):
        stats = UserStats(
            weekly_activity=[
                DailyActivity(date=label, count=1)
                for label in ["A", "B", "C", "D", "E", "F", "G"]
            ]
        )
        updated = record_activity(stats, ActivityKind.QUERY, MONDAY)
        assert len(updated.weekly_activity) == WEEKLY_ACTIVITY_LIMIT
        assert updated.weekly_activity[0].date == "B"
        assert updated.weekly_activity[-1] == DailyActivity(date="Mon", count=1)

    def test_never_exceeds_limit(self):
        stats = UserStats()
        for offset in range(30):
            stats = record_activity(stats, ActivityKind.QUERY, MONDAY + timedelta(days=offset))
            assert len(stats.weekly_activity) <= WEEKLY_ACTIVITY_LIMIT
