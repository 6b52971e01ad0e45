"""Request Phase Classifier: initial navigation, background update or submission.

Invariants:
    - Pure function of method and headers: no IO, no state
    - The wire header wins over everything else
    - Header names are matched case-insensitively

Design Decisions:
    - Headers passed as any Mapping (Starlette Headers, plain dict in tests)
    - JSON bodies are background updates: native form posts are never JSON
"""

from typing import Mapping

from formwire.core.domain_types import DEFAULT_WIRE_HEADER, RequestPhase

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
_TRUTHY = frozenset({"true", "1", "yes"})


def _header(headers: Mapping[str, str], name: str) -> str:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return str(value).strip()
    return ""


def is_wire_request(
    headers: Mapping[str, str], wire_header: str = DEFAULT_WIRE_HEADER,
) -> bool:
    """Whether the request carries the background-update marker."""
    return _header(headers, wire_header).lower() in _TRUTHY


def is_ajax_request(headers: Mapping[str, str]) -> bool:
    """XMLHttpRequest marker sent by most client libraries."""
    return _header(headers, "X-Requested-With").lower() == "xmlhttprequest"


def is_json_body(headers: Mapping[str, str]) -> bool:
    content_type = _header(headers, "Content-Type").lower()
    return content_type.split(";", 1)[0].strip() == "application/json"


def classify_request_phase(
    method: str,
    headers: Mapping[str, str],
    wire_header: str = DEFAULT_WIRE_HEADER,
) -> RequestPhase:
    """Classify a request. Pure, deterministic."""
    if is_wire_request(headers, wire_header) or is_ajax_request(headers):
        return RequestPhase.BACKGROUND_UPDATE
    if method.upper() in MUTATING_METHODS:
        if is_json_body(headers):
            return RequestPhase.BACKGROUND_UPDATE
        return RequestPhase.SUBMISSION
    return RequestPhase.INITIAL_NAVIGATION
