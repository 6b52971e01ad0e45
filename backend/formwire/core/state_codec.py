"""State Codec: serialization of the state mapping into the session slot string.

Invariants:
    - encode_state produces a JSON object string (no sets, no Enums)
    - decode_state never raises: missing, non-string, malformed or non-object
      content decodes to an empty mapping
    - decode_state(encode_state(s)) == s for any JSON-serializable mapping s

    - signed_session_size estimates the signed cookie value Starlette's
      SessionMiddleware emits for a session mapping

Design Decisions:
    - Extracted from state_store.py so the slot format can be tested without a store
"""

import base64
import json
import logging
from typing import Any, Mapping

from formwire.core.errors import StateSerializationError

logger = logging.getLogger(__name__)

# itsdangerous TimestampSigner: "." + timestamp + "." + base64 HMAC-SHA1
SIGNATURE_OVERHEAD = 35


def encode_state(state: Mapping[str, Any]) -> str:
    """Serialize a state mapping to a JSON string. Pure, no IO."""
    try:
        return json.dumps(dict(state), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise StateSerializationError(str(e)) from e


def decode_state(raw: object) -> dict[str, Any]:
    """Deserialize a session slot. Fails soft: anything unusable is empty state."""
    if raw is None:
        return {}
    if not isinstance(raw, (str, bytes, bytearray)):
        logger.warning(
            f"Ignoring session slot of type {type(raw).__name__}",
        )
        return {}
    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.warning(f"Ignoring malformed session slot: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(
            f"Ignoring session slot holding {type(data).__name__}, expected object",
        )
        return {}
    return data


def signed_session_size(session: Mapping[str, Any]) -> int:
    """Bytes of the cookie value carrying this session: base64 JSON plus signature."""
    payload = json.dumps(dict(session)).encode("utf-8")
    return len(base64.b64encode(payload)) + SIGNATURE_OVERHEAD
