"""Application entry point: logging setup, FastAPI app and the uvicorn runner."""

import logging
import os

import structlog
import uvicorn
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from shiksha_sahayak.api.routes import router
from shiksha_sahayak.api.websocket import handle_browser_websocket
from shiksha_sahayak.app.controller import get_controller
from shiksha_sahayak.config import get_settings

DEFAULT_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173"


def configure_logging(production: bool) -> None:
    """JSON lines at INFO in production, colored console output at DEBUG otherwise."""
    renderer = structlog.processors.JSONRenderer() if production else structlog.dev.ConsoleRenderer()
    level = logging.INFO if production else logging.DEBUG
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def create_app() -> FastAPI:
    application = FastAPI(title="Shiksha Sahayak", version="1.3.0")
    origins = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", DEFAULT_ORIGINS).split(",") if o.strip()]
    application.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router)

    @application.websocket("/ws")
    async def voice_input(websocket: WebSocket) -> None:
        await handle_browser_websocket(websocket, get_controller())

    return application


configure_logging(os.getenv("ENV", "development").lower() == "production")
app = create_app()


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "shiksha_sahayak.main:app",
        host=settings.host,
        port=settings.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
