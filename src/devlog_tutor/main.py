"""FastAPI application entry point."""

import logging
import os
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from devlog_tutor.api.routes import install_error_handlers, router
from devlog_tutor.api.websocket import handle_chat_websocket
from devlog_tutor.config import get_settings
from devlog_tutor.workspace import get_workspace

# Configure structlog based on environment
is_production = os.getenv("ENV", "development").lower() == "production"

if is_production:
    # Production: JSON format for machine parsing
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
else:
    # Development: console format for human readability
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_workspace()
    yield


app = FastAPI(title="DevLog Tutor", version="0.1.0", lifespan=lifespan)
_allowed_origins_env = os.getenv(
    "ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
)
allowed_origins = [o.strip() for o in _allowed_origins_env.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)
install_error_handlers(app)


@app.middleware("http")
async def auth_middleware(request: Request, call_next):
    """Optional APP_SECRET header authentication."""
    if not settings.app_secret or request.url.path == "/api/health":
        return await call_next(request)
    if request.headers.get("X-App-Secret", "") != settings.app_secret:
        return JSONResponse({"error": "Unauthorized"}, status_code=401)
    return await call_next(request)


@app.websocket("/ws/chat")
async def chat_endpoint(websocket: WebSocket) -> None:
    """Browser chat endpoint."""
    if settings.app_secret and websocket.headers.get("X-App-Secret", "") != settings.app_secret:
        await websocket.close(code=1008, reason="Unauthorized")
        return
    await handle_chat_websocket(websocket, get_workspace())


def main() -> None:
    """Run the application."""
    uvicorn.run(
        "devlog_tutor.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
