"""Root view controller: owns profile and stats, routes user actions."""

import functools
import random
from datetime import date
from enum import StrEnum

import structlog
from pydantic import BaseModel, ConfigDict

from shiksha_sahayak.assistant.client import AssistantClient
from shiksha_sahayak.catalog.plans import MOTIVATIONAL_QUOTES, select_plan
from shiksha_sahayak.catalog.resources import ALL_CATEGORIES, RESOURCES, filter_resources, get_resource
from shiksha_sahayak.config import get_settings
from shiksha_sahayak.models.catalog import LearningResource, LessonPlan
from shiksha_sahayak.models.profile import ActivityKind, UserProfile, UserStats
from shiksha_sahayak.overlay.session import OverlaySession
from shiksha_sahayak.speech.capture import RecognizerFactory
from shiksha_sahayak.speech.recognizer import build_recognizer_factory
from shiksha_sahayak.stats.aggregator import record_activity
from shiksha_sahayak.storage.app_data import AppDataStore
from shiksha_sahayak.storage.kv_store import JsonFileStore

logger = structlog.get_logger()

PLAN_DONE_TITLE = "Great Job, {name}! 🎉"
PLAN_DONE_MESSAGE = "You've completed this activity. Would you like to see another task for today?"


class AppView(StrEnum):
    HOME = "home"
    LEARN = "learn"
    DASHBOARD = "dashboard"
    PROFILE = "profile"


class AppState(BaseModel):
    """Immutable snapshot of the persisted application records."""

    model_config = ConfigDict(frozen=True)

    profile: UserProfile
    stats: UserStats


class ViewController:
    """Single writer of profile and stats; every mutation is persisted.

    Args:
        data_store: Persistence for profile and stats.
        assistant: External assistant client handed to overlay sessions.
        recognizer_factory: Speech recognizer factory (None if unsupported).
        speech_notice_seconds: Display time of speech failure notices.
        image_notice_seconds: Display time of image failure notices.
    """

    def __init__(
        self,
        data_store: AppDataStore,
        assistant: AssistantClient,
        recognizer_factory: RecognizerFactory | None = None,
        speech_notice_seconds: float = 4.0,
        image_notice_seconds: float = 3.0,
    ):
        self.data_store = data_store
        self.assistant = assistant
        self.recognizer_factory = recognizer_factory
        self.speech_notice_seconds = speech_notice_seconds
        self.image_notice_seconds = image_notice_seconds
        self.current_view = AppView.HOME
        self.overlay: OverlaySession | None = None
        self.plan_open = False
        self.plan_offset = 0
        self.plan_completed = False
        self._state = AppState(profile=UserProfile(), stats=UserStats())
        self._initialized = False

    def initialize(self) -> AppState:
        """Load the persisted records. Only the first call reads storage."""
        if not self._initialized:
            profile, stats = self.data_store.load()
            self._state = AppState(profile=profile, stats=stats)
            self._initialized = True
            logger.info("app_initialized", profile_complete=profile.is_complete)
        return self._state

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def profile(self) -> UserProfile:
        return self._state.profile

    @property
    def stats(self) -> UserStats:
        return self._state.stats

    @property
    def overlay_open(self) -> bool:
        return self.overlay is not None

    def _commit(self, state: AppState) -> AppState:
        self._state = state
        self.data_store.save(state.profile, state.stats)
        return state

    # Navigation

    def navigate(self, view: AppView) -> AppView:
        self.current_view = AppView(view)
        logger.debug("navigated", view=str(self.current_view))
        return self.current_view

    # Profile and stats

    def update_profile(self, profile: UserProfile) -> UserProfile:
        self._commit(self._state.model_copy(update={"profile": profile}))
        logger.info("profile_saved", complete=profile.is_complete, strength=profile.strength)
        return profile

    def record_activity(self, kind: ActivityKind, today: date | None = None) -> UserStats:
        stats = record_activity(self._state.stats, kind, today)
        self._commit(self._state.model_copy(update={"stats": stats}))
        return stats

    # Home and plans

    def home(self) -> dict:
        profile = self.profile
        return {
            "display_name": profile.display_name,
            "profile_complete": profile.is_complete,
            "grade": profile.grade,
            "subject": profile.subject,
            "quote": random.choice(MOTIVATIONAL_QUOTES),
        }

    def open_plan(self, today: date | None = None) -> LessonPlan:
        self.plan_open = True
        self.plan_offset = 0
        self.plan_completed = False
        return select_plan(self.profile, self.plan_offset, today)

    def request_another_task(self, today: date | None = None) -> LessonPlan:
        self.plan_offset += 1
        self.plan_completed = False
        return select_plan(self.profile, self.plan_offset, today)

    def mark_plan_done(self) -> dict:
        """Show the completion card for the current activity."""
        self.plan_completed = True
        logger.info("plan_marked_done", offset=self.plan_offset)
        return {
            "title": PLAN_DONE_TITLE.format(name=self.profile.display_name),
            "message": PLAN_DONE_MESSAGE,
        }

    def close_plan(self) -> None:
        self.plan_open = False
        self.plan_offset = 0
        self.plan_completed = False

    # Resources

    def browse(self, category: str = ALL_CATEGORIES, search_text: str = "") -> list[LearningResource]:
        return filter_resources(RESOURCES, category, search_text)

    def open_resource(self, resource_id: str) -> LearningResource | None:
        resource = get_resource(resource_id)
        if resource is None:
            return None
        self.record_activity(ActivityKind.RESOURCE_VIEW)
        logger.info("resource_opened", resource_id=resource_id)
        return resource

    # Dashboard

    def dashboard(self) -> dict:
        stats = self.stats
        chart = [{"name": d.date, "value": d.count} for d in stats.weekly_activity]
        return {
            "stats": stats.model_dump(by_alias=True),
            "chart": chart or [{"name": "Today", "value": 0}],
            "goals": [
                {"title": "Methodology Master", "progress": min(stats.resources_viewed * 10, 100)},
                {"title": "Super Asker", "progress": min(stats.total_queries * 5, 100)},
            ],
        }

    # Assistant overlay

    def open_overlay(self) -> OverlaySession:
        if self.overlay is None:
            self.overlay = OverlaySession(
                self.profile,
                self.assistant,
                recognizer_factory=self.recognizer_factory,
                speech_notice_seconds=self.speech_notice_seconds,
                image_notice_seconds=self.image_notice_seconds,
            )
            logger.info("overlay_opened")
        return self.overlay

    async def close_overlay(self) -> None:
        overlay, self.overlay = self.overlay, None
        if overlay is not None:
            await overlay.close()

    def _require_overlay(self) -> OverlaySession:
        if self.overlay is None:
            raise RuntimeError("Assistant overlay is not open")
        return self.overlay

    async def send_message(self, text: str) -> str | None:
        overlay = self._require_overlay()
        if not text.strip():
            return None
        self.record_activity(ActivityKind.QUERY)
        return await overlay.send_message(text)

    async def edit_image(self, instruction: str) -> str | None:
        overlay = self._require_overlay()
        editor = overlay.image_editor
        if editor.original is None or editor.pending or not instruction.strip():
            return None
        self.record_activity(ActivityKind.QUERY)
        return await overlay.edit_image(instruction)


@functools.lru_cache
def get_controller() -> ViewController:
    """Process-wide controller built from settings and initialized once."""
    settings = get_settings()
    controller = ViewController(
        AppDataStore(JsonFileStore(settings.store_dir)),
        AssistantClient(
            api_key=settings.openai_api_key,
            text_model=settings.text_model,
            image_model=settings.image_model,
        ),
        recognizer_factory=build_recognizer_factory(settings),
        speech_notice_seconds=settings.speech_notice_seconds,
        image_notice_seconds=settings.image_notice_seconds,
    )
    controller.initialize()
    return controller
