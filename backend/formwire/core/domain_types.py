"""Domain Types: enums, identity types and well-known names shared across the core.

Invariants:
    - RequestPhase is derived per request and never persisted
    - FormPhase is entered once per request (at FormEngine construction)
    - Element id conventions are the contract with the presentation runtime:
      fh-<field>, fh-error-<field>, fh-watch-<field>
    - Engine-owned state keys are never writable through the public state routes

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
    - NewType over wrappers: zero runtime cost, full type-checker support
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

StateKey = NewType("StateKey", str)


# ─── Enums ───────────────────────────────────────────────────────

class RequestPhase(str, Enum):
    """How the inbound request relates to the page the user is on."""
    INITIAL_NAVIGATION = "initial_navigation"
    BACKGROUND_UPDATE = "background_update"
    SUBMISSION = "submission"


class FormPhase(str, Enum):
    """The single FormEngine transition taken for a request."""
    REGISTERING = "registering"
    SUBMITTING = "submitting"
    RESTORING = "restoring"


# ─── Well-known names ────────────────────────────────────────────

DEFAULT_STATE_SLOT = "formwire_state"
DEFAULT_WIRE_HEADER = "X-Wire-Request"

REGISTRATION_KEY = StateKey("formwire_form_register")
OUTCOME_KEY = StateKey("formwire_form_outcome")
FORM_STATE_KEYS: tuple[StateKey, ...] = (REGISTRATION_KEY, OUTCOME_KEY)

ELEMENT_ID_PREFIX = "fh"
ERROR_ID_PREFIX = f"{ELEMENT_ID_PREFIX}-error-"
WATCH_ID_PREFIX = f"{ELEMENT_ID_PREFIX}-watch-"


@dataclass(frozen=True)
class Redirect:
    """Terminal result of a submission: the caller must stop and redirect."""
    location: str
    status_code: int = 303
