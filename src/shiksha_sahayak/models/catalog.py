"""Static catalog records: learning resources and lesson plans."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ResourceKind(StrEnum):
    VIDEO = "video"
    ARTICLE = "article"
    DOCUMENT = "document"


class Difficulty(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"


class LearningResource(BaseModel):
    """A read-only entry in the resource browser."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    kind: ResourceKind
    duration: str
    category: str
    thumbnail: str
    difficulty: Difficulty
    link: str | None = None


class LessonPlan(BaseModel):
    """A read-only classroom activity used by the daily plan rotation."""

    model_config = ConfigDict(frozen=True)

    title: str
    prep: str
    steps: tuple[str, ...]
    duration: str
    group_size: str
