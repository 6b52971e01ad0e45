"""formwire API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - SessionMiddleware wraps every route: request.session is the state slot backing
    - Global error handlers map FormWireError -> structured JSON responses
    - CORS configured from settings (not hardcoded)

Design Decisions:
    - Lifespan over @app.on_event: logging configured once on startup
    - Signed-cookie sessions (Starlette + itsdangerous): no server-side store,
      last write wins per session (see DESIGN.md, concurrency)
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from formwire.api.error_handlers import register_error_handlers
from formwire.api.routes import contact, forms, health, state
from formwire.config import get_settings
from formwire.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    logger.info("formwire API started")
    yield
    logger.info("formwire API shutting down")


app = FastAPI(title="formwire API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret_key,
    session_cookie=settings.session_cookie,
    max_age=settings.session_max_age_seconds,
    same_site=settings.session_same_site,
    https_only=settings.session_https_only,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(state.router)
app.include_router(forms.router)
app.include_router(contact.router)

app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

register_error_handlers(app)
