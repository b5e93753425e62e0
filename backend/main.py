from fastapi import FastAPI, Request, WebSocket, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from typing import Optional
import asyncio
import logging
import sys

from config import app_config
from constants import HTTPStatus
from database import get_session_factory
from exceptions import ApplicationError, ConfigurationError
from init_db import init_database
from api import admin, analytics, auth, companies, conversations, inquiries, notifications
from api import portfolio, professionals, projects, quotes, requirements, reviews, uploads
from api.realtime import websocket_endpoint
from services.websocket import manager
from utils.error_handlers import status_for
from utils.logging_utils import configure_logging

logger = logging.getLogger(__name__)

SERVICE_NAME = "BuildMarket API"
VERSION = "1.0.0"

# Global task references
_typing_sweeper_task = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown"""
    global _typing_sweeper_task

    log_file = configure_logging(app_config.LOG_DIR, app_config.LOG_LEVEL)
    logger.info(f"Logging initialized: {log_file or 'stdout'}")

    # Startup
    try:
        app_config.validate()
    except ConfigurationError as e:
        logger.error(f"❌ {e.message}")
        raise

    init_database()

    _typing_sweeper_task = asyncio.create_task(manager.run_typing_sweeper())
    logger.info(f"✅ {SERVICE_NAME} started")

    yield

    # Shutdown
    logger.info("Shutting down...")
    if _typing_sweeper_task and not _typing_sweeper_task.done():
        _typing_sweeper_task.cancel()
        try:
            await _typing_sweeper_task
        except asyncio.CancelledError:
            logger.info("Typing sweeper task cancelled successfully")
    _typing_sweeper_task = None

    logger.info("Application shutdown complete")


app = FastAPI(
    title=SERVICE_NAME,
    description="Construction and interior-design marketplace: requirements, quotes, companies and chat",
    version=VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_body(detail) -> dict:
    """Error body with both 'detail' and the 'message' alias the frontend reads."""
    message = detail if isinstance(detail, str) else "Request failed"
    return {"detail": detail, "message": message}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(ApplicationError)
async def application_error_handler(request: Request, exc: ApplicationError):
    """Application errors raised outside a decorated route (dependencies, guards)."""
    status_code = status_for(exc)
    if status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error(f"{request.method} {request.url.path} - {type(exc).__name__}: {exc.message}", exc_info=exc)
    else:
        logger.warning(f"{request.method} {request.url.path} - {type(exc).__name__}: {exc.message}")
    return JSONResponse(status_code=status_code, content=_error_body(exc.message))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Invalid request bodies and parameters answer 400 with the first problem as the message."""
    errors = jsonable_encoder(exc.errors())
    message = "Invalid request"
    if errors:
        first = errors[0]
        msg = str(first.get("msg", message))
        field = first.get("loc", ())[-1] if first.get("loc") else None
        if msg.startswith("Value error, "):
            message = msg.removeprefix("Value error, ")
        else:
            message = f"{field}: {msg}" if field else msg
    return JSONResponse(
        status_code=HTTPStatus.BAD_REQUEST,
        content={"detail": errors, "message": message},
    )


# Include API routers
app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(admin.router, prefix="/api", tags=["admin"])
app.include_router(companies.router, prefix="/api", tags=["companies"])
app.include_router(professionals.router, prefix="/api", tags=["professionals"])
app.include_router(portfolio.router, prefix="/api", tags=["portfolio"])
app.include_router(projects.router, prefix="/api", tags=["projects"])
app.include_router(reviews.router, prefix="/api", tags=["reviews"])
app.include_router(requirements.router, prefix="/api", tags=["requirements"])
app.include_router(quotes.router, prefix="/api", tags=["quotes"])
app.include_router(inquiries.router, prefix="/api", tags=["inquiries"])
app.include_router(conversations.router, prefix="/api", tags=["messages"])
app.include_router(notifications.router, prefix="/api", tags=["notifications"])
app.include_router(uploads.router, prefix="/api", tags=["uploads"])
app.include_router(analytics.router, prefix="/api", tags=["analytics"])


@app.websocket("/api/ws")
async def websocket_route(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    session_factory=Depends(get_session_factory),
):
    """WebSocket endpoint for realtime chat, notifications and profile updates"""
    await websocket_endpoint(websocket, token, session_factory)


@app.get("/api/health")
def health_check():
    """Health check endpoint"""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": VERSION,
        "connections": len(manager.active_connections),
    }


# Uploaded images
app_config.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(app_config.UPLOAD_DIR)), name="uploads")


if __name__ == "__main__":
    import uvicorn
    import socket

    def is_port_in_use(port: int) -> bool:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            try:
                s.bind((app_config.HOST, port))
                return False
            except OSError:
                return True

    configure_logging(app_config.LOG_DIR, app_config.LOG_LEVEL)

    if is_port_in_use(app_config.PORT):
        logger.error(f"❌ Port {app_config.PORT} is already in use!")
        sys.exit(1)

    logger.info(f"🚀 Starting {SERVICE_NAME} on http://{app_config.HOST}:{app_config.PORT}...")
    uvicorn.run(app, host=app_config.HOST, port=app_config.PORT)
