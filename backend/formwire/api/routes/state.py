"""Session State Routes: read, merge and reset state from in-page background updates.

Invariants:
    - Callers send the wire header (or a JSON body): any other request is an
      initial navigation and the store resets before the route runs
    - Form-engine keys cannot be written here and always survive a reset

Design Decisions:
    - Thin routes over StateStore; the store owns merge/reset semantics
"""

import logging

from fastapi import APIRouter, Depends, Query, Request

from formwire.api.dependencies import get_state_store
from formwire.core.domain_types import FORM_STATE_KEYS
from formwire.core.errors import ErrorContext, ReservedStateKeyError
from formwire.core.state_store import StateStore
from formwire.schemas.state import (
    StateReset, StateResponse, StateUpdate, StateValueResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/state", tags=["state"])


@router.get("", response_model=StateResponse | StateValueResponse)
async def read_state(
    key: str | None = Query(None, min_length=1),
    store: StateStore = Depends(get_state_store),
):
    """Whole state, or a single key (value null when absent)."""
    if key is None:
        return StateResponse(state=store.get())
    return StateValueResponse(key=key, value=store.get(key))


@router.patch("", response_model=StateResponse)
async def update_state(
    body: StateUpdate,
    request: Request,
    store: StateStore = Depends(get_state_store),
):
    """Merge values into the state."""
    reserved = [k for k in body.values if k in FORM_STATE_KEYS]
    if reserved:
        raise ReservedStateKeyError(
            reserved, ErrorContext(path=request.url.path),
        )
    store.set(body.values)
    return StateResponse(state=store.get())


@router.post("/reset", response_model=StateResponse)
async def reset_state(
    body: StateReset,
    store: StateStore = Depends(get_state_store),
):
    """Drop everything except the kept keys (form-engine keys are always kept)."""
    if body.keep is None:
        keep: list[str] = []
    elif isinstance(body.keep, str):
        keep = [body.keep]
    else:
        keep = list(body.keep)
    store.reset([*keep, *FORM_STATE_KEYS])
    logger.info(f"State reset by client, keeping {sorted(keep)}")
    return StateResponse(state=store.get())
