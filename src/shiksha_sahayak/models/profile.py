"""Teacher profile and usage statistics models."""

from datetime import date
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNSET_MARKER = "Not Set"
WEEKLY_ACTIVITY_LIMIT = 7


class ActivityKind(StrEnum):
    """Tracked usage events."""

    QUERY = "query"
    RESOURCE_VIEW = "resource_view"


class UserProfile(BaseModel):
    """Self-reported classroom context. Replaced wholesale on save."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    grade: str = ""
    subject: str = ""
    school: str = ""
    language: str = "English"

    @property
    def is_complete(self) -> bool:
        """A profile is complete once both grade and subject are set."""
        return bool(self.grade.strip()) and bool(self.subject.strip())

    @property
    def display_name(self) -> str:
        """First word of the name, or a generic salutation."""
        parts = self.name.split()
        return parts[0] if parts else "Teacher"

    @property
    def strength(self) -> int:
        """Percentage of profile fields that carry a real value."""
        fields = [self.name, self.grade, self.subject, self.school, self.language]
        filled = [f for f in fields if f.strip() and f != UNSET_MARKER]
        return round(len(filled) / len(fields) * 100)


class DailyActivity(BaseModel):
    """One bucket of the weekly activity histogram (keyed by weekday label)."""

    model_config = ConfigDict(frozen=True)

    date: str
    count: int = Field(default=0, ge=0)


class UserStats(BaseModel):
    """Locally tracked usage counters.

    Serialized with the camelCase keys used by the stored records; both
    spellings are accepted on input.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_queries: int = Field(default=0, ge=0, alias="totalQueries")
    resources_viewed: int = Field(default=0, ge=0, alias="resourcesViewed")
    current_streak: int = Field(default=0, ge=0, alias="currentStreak")
    last_active_date: str = Field(
        default_factory=lambda: date.today().isoformat(), alias="lastActiveDate"
    )
    weekly_activity: list[DailyActivity] = Field(
        default_factory=list, alias="weeklyActivity"
    )

    @field_validator("weekly_activity")
    @classmethod
    def keep_latest_week(cls, v: list[DailyActivity]) -> list[DailyActivity]:
        """Stored histograms longer than a week keep their newest buckets."""
        return v[-WEEKLY_ACTIVITY_LIMIT:]
