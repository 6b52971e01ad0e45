"""State Store: listener-observable key/value state held in one session slot.

Invariants:
    - One StateStore per request reflects the session slot; all reads and writes
      within the request go through it
    - Write-through: every set/reset/discard writes the slot before returning;
      an empty state removes the slot instead of writing "{}"
    - set merges shallowly: keys absent from the update keep their value
    - reset retains exactly the intersection of the kept keys and current keys
    - Listeners run synchronously, in registration order, after every set/reset,
      each with its own copy of the full state
    - A failed encode leaves the in-memory state and the slot untouched
    - When max_session_bytes is set, a persist that pushes the signed session
      past it logs a warning once per store: browsers drop oversized cookies

Design Decisions:
    - The session is an injected MutableMapping (request.session in the shell),
      so the store is pure and testable with a plain dict
    - Stored state is re-read from its own JSON encoding, so the in-memory
      mapping always equals what load() would return on the next request
    - Unsubscribe handles remove by registration token, not by callable identity:
      the same callable subscribed twice is two registrations
"""

import copy
import json
import logging
from typing import Any, Callable, Iterable, Mapping, MutableMapping

from formwire.core.domain_types import DEFAULT_STATE_SLOT, RequestPhase
from formwire.core.state_codec import decode_state, encode_state, signed_session_size

logger = logging.getLogger(__name__)

StateListener = Callable[[dict[str, Any]], None]


class StateView(dict):
    """Read-only-by-convention dict with attribute access; missing names are None.

    Keys that collide with dict methods (``items``, ``get``...) need item access.
    """

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        return _wrap(self.get(name))


def _wrap(value: Any) -> Any:
    if isinstance(value, dict) and not isinstance(value, StateView):
        return StateView(value)
    return value


class StateStore:
    """Per-request state bound to one session slot."""

    def __init__(
        self,
        session: MutableMapping[str, Any],
        slot_key: str = DEFAULT_STATE_SLOT,
        max_session_bytes: int | None = None,
    ):
        self._session = session
        self._slot_key = slot_key
        self._max_session_bytes = max_session_bytes
        self._over_budget_logged = False
        self._state: dict[str, Any] = {}
        self._listeners: list[tuple[object, StateListener]] = []
        self.load()

    @classmethod
    def for_request(
        cls,
        session: MutableMapping[str, Any],
        phase: RequestPhase,
        keep: Iterable[str] = (),
        slot_key: str = DEFAULT_STATE_SLOT,
        max_session_bytes: int | None = None,
    ) -> "StateStore":
        """Open the store for a request.

        Everything except ``keep`` is dropped unless the request is a background
        update, which must not wipe sibling state.
        """
        store = cls(session, slot_key, max_session_bytes)
        if phase is not RequestPhase.BACKGROUND_UPDATE:
            store.reset(list(keep))
        return store

    @property
    def slot_key(self) -> str:
        return self._slot_key

    def __contains__(self, key: object) -> bool:
        return key in self._state

    def __len__(self) -> int:
        return len(self._state)

    # --- Persistence ---------------------------------------------------------

    def load(self) -> None:
        """Replace the in-memory state with the session slot (empty if absent)."""
        self._state = decode_state(self._session.get(self._slot_key))
        self._notify()

    def persist(self) -> None:
        """Write the current state to the slot, or remove the slot when empty."""
        if self._state:
            self._session[self._slot_key] = encode_state(self._state)
        else:
            self._session.pop(self._slot_key, None)
        self._check_budget()

    def _check_budget(self) -> None:
        if self._max_session_bytes is None or self._over_budget_logged:
            return
        size = signed_session_size(self._session)
        if size > self._max_session_bytes:
            self._over_budget_logged = True
            logger.warning(
                f"Session payload is {size} bytes, over the "
                f"{self._max_session_bytes}-byte cookie budget; the browser "
                f"will drop it and the state will not survive this response",
                extra={"session_slot": self._slot_key},
            )

    # --- Access --------------------------------------------------------------

    def get(self, key: str | None = None) -> Any:
        """Whole state as a StateView, or one value; None when the key is absent."""
        if key is None:
            return StateView(copy.deepcopy(self._state))
        if key not in self._state:
            return None
        return _wrap(copy.deepcopy(self._state[key]))

    def set(self, key: str | Mapping[str, Any], value: Any = None) -> None:
        """Merge one key or a mapping of updates into the state."""
        update = dict(key) if isinstance(key, Mapping) else {key: value}
        encoded = encode_state({**self._state, **update})
        self._state = json.loads(encoded)
        self._notify()
        self.persist()

    def reset(self, keep: str | Iterable[str] | None = None) -> None:
        """Drop state, retaining nothing, one key, or the given keys."""
        if keep is None:
            retained: dict[str, Any] = {}
        elif isinstance(keep, str):
            retained = {keep: self._state[keep]} if keep in self._state else {}
        else:
            retained = {k: self._state[k] for k in keep if k in self._state}
        dropped = len(self._state) - len(retained)
        self._state = retained
        if dropped:
            logger.debug(
                f"State reset dropped {dropped} key(s), kept {sorted(retained)}",
                extra={"session_slot": self._slot_key},
            )
        self._notify()
        self.persist()

    def discard(self, *keys: str) -> None:
        """Remove the given keys, keeping everything else."""
        self.reset([k for k in self._state if k not in keys])

    # --- Listeners -----------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener, call it once with the current state, return unsubscribe."""
        token = object()
        self._listeners.append((token, listener))
        listener(copy.deepcopy(self._state))

        def unsubscribe() -> None:
            self._listeners = [
                (t, fn) for t, fn in self._listeners if t is not token
            ]

        return unsubscribe

    def _notify(self) -> None:
        for _, listener in list(self._listeners):
            listener(copy.deepcopy(self._state))
