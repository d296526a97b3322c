"""Static learning-resource catalog and its browser filter."""

from collections.abc import Iterable

from shiksha_sahayak.models.catalog import Difficulty, LearningResource, ResourceKind

ALL_CATEGORIES = "All"

# Filter chips shown above the resource list
RESOURCE_FILTERS = [ALL_CATEGORIES, "Management", "Pedagogy", "Strategies", "Math"]

RESOURCES: list[LearningResource] = [
    LearningResource(
        id="1",
        title="5 Fun Classroom Management Games",
        kind=ResourceKind.VIDEO,
        duration="8 min",
        category="Management",
        thumbnail="https://img.youtube.com/vi/2iOLK5xOaYM/mqdefault.jpg",
        difficulty=Difficulty.BEGINNER,
        link="https://www.youtube.com/watch?v=2iOLK5xOaYM",
    ),
    LearningResource(
        id="2",
        title="Fractions for Kids (Animated)",
        kind=ResourceKind.VIDEO,
        duration="6 min",
        category="Pedagogy",
        thumbnail="https://img.youtube.com/vi/n0FZhQ_GkKw/mqdefault.jpg",
        difficulty=Difficulty.BEGINNER,
        link="https://www.youtube.com/watch?v=n0FZhQ_GkKw",
    ),
    LearningResource(
        id="3",
        title="10 Everyday Classroom Hacks",
        kind=ResourceKind.VIDEO,
        duration="10 min",
        category="Strategies",
        thumbnail="https://img.youtube.com/vi/W3fr4tm_FRo/mqdefault.jpg",
        difficulty=Difficulty.INTERMEDIATE,
        link="https://www.youtube.com/watch?v=W3fr4tm_FRo",
    ),
]


def filter_resources(
    resources: Iterable[LearningResource],
    category: str = ALL_CATEGORIES,
    search_text: str = "",
) -> list[LearningResource]:
    """Filter resources by exact category and case-insensitive title substring.

    Source order is preserved.
    """
    needle = search_text.lower()
    return [
        r
        for r in resources
        if (category == ALL_CATEGORIES or r.category == category)
        and needle in r.title.lower()
    ]


def get_resource(resource_id: str, resources: Iterable[LearningResource] = RESOURCES) -> LearningResource | None:
    for r in resources:
        if r.id == resource_id:
            return r
    return None
