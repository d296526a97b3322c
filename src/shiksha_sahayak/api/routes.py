"""REST API routes: profile, stats, resources, daily plan and the assistant overlay."""

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from shiksha_sahayak.app.controller import AppView, ViewController, get_controller
from shiksha_sahayak.catalog.plans import (
    GRADE_OPTIONS,
    LANGUAGE_OPTIONS,
    SCHOOL_OPTIONS,
    SUBJECT_OPTIONS,
)
from shiksha_sahayak.catalog.resources import ALL_CATEGORIES, RESOURCE_FILTERS
from shiksha_sahayak.models.profile import UserProfile
from shiksha_sahayak.overlay.session import OverlayMode, OverlaySession

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


class NavigateRequest(BaseModel):
    view: AppView


class MessageRequest(BaseModel):
    text: str


class ModeRequest(BaseModel):
    mode: OverlayMode


class ImageRequest(BaseModel):
    image: str


class EditRequest(BaseModel):
    instruction: str


def _profile_payload(profile: UserProfile) -> dict:
    return {
        **profile.model_dump(),
        "is_complete": profile.is_complete,
        "strength": profile.strength,
    }


def overlay_snapshot(overlay: OverlaySession) -> dict:
    """Everything the overlay needs to render, transient state included."""
    editor = overlay.image_editor
    return {
        "mode": overlay.mode,
        "input_text": overlay.input_text,
        "is_sending": overlay.is_sending,
        "listening": overlay.speech.is_listening,
        "notice": overlay.notices.current,
        "messages": overlay.render_transcript(),
        "image": {
            "state": editor.state,
            "displayed": editor.displayed_image,
            "has_edit": editor.edited is not None,
            "showing_original": editor.showing_original,
            "suggestions": editor.suggestions,
        },
    }


def _overlay(controller: ViewController) -> OverlaySession:
    if controller.overlay is None:
        raise HTTPException(status_code=409, detail="Assistant overlay is not open")
    return controller.overlay


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/home")
async def home() -> dict:
    controller = get_controller()
    return {**controller.home(), "current_view": controller.current_view}


@router.post("/navigate")
async def navigate(request: NavigateRequest) -> dict:
    return {"current_view": get_controller().navigate(request.view)}


@router.get("/profile")
async def get_profile() -> dict:
    return {
        **_profile_payload(get_controller().profile),
        "options": {
            "grades": GRADE_OPTIONS,
            "subjects": SUBJECT_OPTIONS,
            "languages": LANGUAGE_OPTIONS,
            "schools": SCHOOL_OPTIONS,
        },
    }


@router.put("/profile")
async def save_profile(profile: UserProfile) -> dict:
    return _profile_payload(get_controller().update_profile(profile))


@router.get("/stats")
async def get_stats() -> dict:
    return get_controller().stats.model_dump(by_alias=True)


@router.get("/dashboard")
async def dashboard() -> dict:
    return get_controller().dashboard()


@router.get("/resources")
async def list_resources(category: str = ALL_CATEGORIES, q: str = "") -> dict:
    resources = get_controller().browse(category, q)
    return {
        "filters": RESOURCE_FILTERS,
        "resources": [r.model_dump() for r in resources],
    }


@router.post("/resources/{resource_id}/open")
async def open_resource(resource_id: str) -> dict:
    resource = get_controller().open_resource(resource_id)
    if resource is None:
        raise HTTPException(status_code=404, detail="Resource not found")
    return resource.model_dump()


@router.post("/plan/open")
async def open_plan() -> dict:
    controller = get_controller()
    plan = controller.open_plan()
    return {"plan": plan.model_dump(), "offset": controller.plan_offset, "completed": False}


@router.post("/plan/next")
async def next_plan() -> dict:
    controller = get_controller()
    plan = controller.request_another_task()
    return {"plan": plan.model_dump(), "offset": controller.plan_offset, "completed": False}


@router.post("/plan/done")
async def mark_plan_done() -> dict:
    controller = get_controller()
    if not controller.plan_open:
        raise HTTPException(status_code=409, detail="No plan is open")
    return {**controller.mark_plan_done(), "completed": True}


@router.post("/plan/close")
async def close_plan() -> dict:
    get_controller().close_plan()
    return {"status": "closed"}


@router.post("/overlay/open")
async def open_overlay() -> dict:
    return overlay_snapshot(get_controller().open_overlay())


@router.post("/overlay/close")
async def close_overlay() -> dict:
    await get_controller().close_overlay()
    return {"status": "closed"}


@router.get("/overlay")
async def get_overlay() -> dict:
    return overlay_snapshot(_overlay(get_controller()))


@router.post("/overlay/mode")
async def set_overlay_mode(request: ModeRequest) -> dict:
    overlay = _overlay(get_controller())
    overlay.set_mode(request.mode)
    return overlay_snapshot(overlay)


@router.post("/overlay/messages")
async def send_message(request: MessageRequest) -> dict:
    controller = get_controller()
    overlay = _overlay(controller)
    reply = await controller.send_message(request.text)
    return {"reply": reply, **overlay_snapshot(overlay)}


@router.post("/overlay/messages/{message_id}/visualize")
async def visualize_message(message_id: str) -> dict:
    overlay = _overlay(get_controller())
    message = await overlay.visualize(message_id)
    if message is None:
        raise HTTPException(status_code=404, detail="Message not found")
    return overlay_snapshot(overlay)


@router.post("/overlay/image")
async def select_image(request: ImageRequest) -> dict:
    overlay = _overlay(get_controller())
    try:
        overlay.image_editor.select_image(request.image)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return overlay_snapshot(overlay)


@router.post("/overlay/image/edit")
async def edit_image(request: EditRequest) -> dict:
    controller = get_controller()
    overlay = _overlay(controller)
    await controller.edit_image(request.instruction)
    return overlay_snapshot(overlay)


@router.post("/overlay/image/toggle")
async def toggle_image() -> dict:
    overlay = _overlay(get_controller())
    overlay.image_editor.toggle()
    return overlay_snapshot(overlay)


@router.delete("/overlay/image")
async def clear_image() -> dict:
    overlay = _overlay(get_controller())
    overlay.image_editor.reset()
    return overlay_snapshot(overlay)
