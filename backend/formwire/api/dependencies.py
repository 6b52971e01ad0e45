"""Request-scoped Dependencies: phase, state store and form engine per request.

Invariants:
    - FastAPI caches dependencies per request, so every route and dependency in
      one request shares the same StateStore (one live state per request)
    - The session slot is read from request.session (SessionMiddleware) and
      written back by the middleware when the response starts
    - Form bodies are parsed only for submissions

Design Decisions:
    - Form-engine state keys are always in the store's keep set, otherwise the
      construction-time reset would wipe the redirect-and-replay payload
"""

import logging

from fastapi import Depends, Request
from fastapi.responses import RedirectResponse

from formwire.config import Settings, get_settings
from formwire.core.domain_types import FORM_STATE_KEYS, Redirect, RequestPhase
from formwire.core.form_engine import FormEngine
from formwire.core.request_phase import classify_request_phase
from formwire.core.state_store import StateStore

logger = logging.getLogger(__name__)


def get_request_phase(
    request: Request, settings: Settings = Depends(get_settings),
) -> RequestPhase:
    return classify_request_phase(
        request.method, request.headers, settings.wire_header,
    )


def get_state_store(
    request: Request,
    phase: RequestPhase = Depends(get_request_phase),
    settings: Settings = Depends(get_settings),
) -> StateStore:
    keep = [*settings.state_keep_keys, *FORM_STATE_KEYS]
    store = StateStore.for_request(
        request.session,
        phase,
        keep=keep,
        slot_key=settings.state_slot_key,
        max_session_bytes=settings.session_cookie_max_bytes,
    )
    logger.debug(
        f"State opened for {request.method} {request.url.path}",
        extra={
            "path": request.url.path,
            "phase": phase.value,
            "session_slot": settings.state_slot_key,
        },
    )
    return store


def request_location(request: Request) -> str:
    """Path plus query string: where a submission redirects back to."""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


async def get_form_engine(
    request: Request,
    store: StateStore = Depends(get_state_store),
    phase: RequestPhase = Depends(get_request_phase),
    settings: Settings = Depends(get_settings),
) -> FormEngine:
    form_data: dict = {}
    if phase is RequestPhase.SUBMISSION:
        form = await request.form()
        form_data = {key: form.get(key) for key in form.keys()}
    return FormEngine(
        store,
        phase,
        path=request_location(request),
        form_data=form_data,
        redirect_status=settings.redirect_status_code,
    )


def redirect_response(redirect: Redirect) -> RedirectResponse:
    return RedirectResponse(redirect.location, status_code=redirect.status_code)
