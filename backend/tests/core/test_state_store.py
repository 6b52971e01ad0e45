"""State Store: tests for the session-slot backed, listener-observable state.

Tests cover:
    - load from slot / empty / malformed slot
    - get: whole state, single key, missing key, attribute access
    - set: single key, mapping merge, idempotence, write-through
    - reset: all, single key, key collection, slot removal
    - subscribe: initial snapshot, ordering, unsubscribe handle
    - for_request: reset skipped for background updates
"""

import json

import pytest

from formwire.core.domain_types import DEFAULT_STATE_SLOT, RequestPhase
from formwire.core.errors import StateSerializationError
from formwire.core.state_store import StateStore, StateView


def _session_with(state: dict) -> dict:
    return {DEFAULT_STATE_SLOT: json.dumps(state)}


# ─── load ────────────────────────────────────────────────────────

def test_load_starts_empty_without_slot():
    store = StateStore({})
    assert store.get() == {}
    assert len(store) == 0


def test_load_reads_existing_slot():
    store = StateStore(_session_with({"search": "milk", "page": 2}))
    assert store.get("search") == "milk"
    assert store.get("page") == 2


def test_load_treats_malformed_slot_as_empty():
    store = StateStore({DEFAULT_STATE_SLOT: "{not json"})
    assert store.get() == {}


def test_load_treats_non_object_slot_as_empty():
    store = StateStore({DEFAULT_STATE_SLOT: "[1, 2, 3]"})
    assert store.get() == {}


def test_custom_slot_key_is_used():
    session = {"other_slot": json.dumps({"a": 1})}
    store = StateStore(session, slot_key="other_slot")
    assert store.get("a") == 1
    store.set("b", 2)
    assert json.loads(session["other_slot"]) == {"a": 1, "b": 2}
    assert DEFAULT_STATE_SLOT not in session


# ─── get ─────────────────────────────────────────────────────────

def test_get_missing_key_returns_none():
    store = StateStore({})
    assert store.get("nope") is None


def test_get_whole_state_supports_attribute_access():
    store = StateStore(_session_with({"search": "milk"}))
    view = store.get()
    assert isinstance(view, StateView)
    assert view.search == "milk"
    assert view.missing is None


def test_get_nested_mapping_supports_attribute_access():
    store = StateStore(_session_with({"filter": {"status": "open"}}))
    assert store.get("filter").status == "open"
    assert store.get().filter.status == "open"


def test_get_returns_a_copy():
    store = StateStore(_session_with({"items": [1, 2]}))
    store.get("items").append(3)
    assert store.get("items") == [1, 2]


# ─── set ─────────────────────────────────────────────────────────

def test_set_single_key_writes_through():
    session: dict = {}
    store = StateStore(session)
    store.set("isUpdate", True)
    assert json.loads(session[DEFAULT_STATE_SLOT]) == {"isUpdate": True}


def test_set_mapping_merges_shallowly():
    store = StateStore(_session_with({"a": 1, "b": {"x": 1}}))
    store.set({"b": {"y": 2}, "c": 3})
    assert store.get() == {"a": 1, "b": {"y": 2}, "c": 3}


def test_set_same_update_twice_is_idempotent():
    store = StateStore({})
    store.set({"a": 1, "b": [1, 2]})
    once = dict(store.get())
    store.set({"a": 1, "b": [1, 2]})
    assert store.get() == once


def test_set_normalizes_to_json_shapes():
    store = StateStore({})
    store.set("bounds", (18, 65))
    assert store.get("bounds") == [18, 65]


def test_set_rejects_unserializable_value_without_mutating():
    session: dict = {}
    store = StateStore(session)
    store.set("a", 1)
    with pytest.raises(StateSerializationError):
        store.set("b", object())
    assert store.get() == {"a": 1}
    assert json.loads(session[DEFAULT_STATE_SLOT]) == {"a": 1}


def test_persist_then_load_roundtrip():
    session: dict = {}
    state = {"s": "text", "n": 1.5, "l": [1, {"k": None}], "b": False}
    StateStore(session).set(state)
    assert StateStore(session).get() == state


# ─── reset ───────────────────────────────────────────────────────

def test_reset_without_keys_clears_and_removes_slot():
    session = _session_with({"a": 1, "b": 2})
    store = StateStore(session)
    store.reset()
    assert store.get() == {}
    assert DEFAULT_STATE_SLOT not in session


def test_reset_single_key_keeps_only_that_key():
    store = StateStore(_session_with({"a": 1, "b": 2}))
    store.reset("a")
    assert store.get() == {"a": 1}


def test_reset_single_missing_key_clears_everything():
    store = StateStore(_session_with({"a": 1}))
    store.reset("zzz")
    assert store.get() == {}


def test_reset_collection_keeps_intersection_exactly():
    original = {"a": 1, "b": {"x": [1]}, "c": 3}
    store = StateStore(_session_with(original))
    store.reset(["b", "c", "missing"])
    assert store.get() == {"b": {"x": [1]}, "c": 3}
    assert "missing" not in store


def test_reset_persists_retained_state():
    session = _session_with({"a": 1, "b": 2})
    StateStore(session).reset(["b"])
    assert json.loads(session[DEFAULT_STATE_SLOT]) == {"b": 2}


def test_discard_removes_only_named_keys():
    store = StateStore(_session_with({"a": 1, "b": 2, "c": 3}))
    store.discard("a", "c")
    assert store.get() == {"b": 2}


# ─── subscribe ───────────────────────────────────────────────────

def test_subscribe_delivers_initial_snapshot():
    store = StateStore(_session_with({"a": 1}))
    seen = []
    store.subscribe(seen.append)
    assert seen == [{"a": 1}]


def test_listeners_fire_in_registration_order_on_set_and_reset():
    store = StateStore({})
    calls = []
    store.subscribe(lambda s: calls.append(("first", s)))
    store.subscribe(lambda s: calls.append(("second", s)))
    calls.clear()

    store.set("a", 1)
    store.reset()

    assert calls == [
        ("first", {"a": 1}), ("second", {"a": 1}),
        ("first", {}), ("second", {}),
    ]


def test_unsubscribe_removes_exactly_that_registration():
    store = StateStore({})
    seen = []
    first = store.subscribe(seen.append)
    store.subscribe(seen.append)
    seen.clear()

    first()
    first()  # idempotent
    store.set("a", 1)

    assert seen == [{"a": 1}]


def test_listener_cannot_mutate_store_state():
    store = StateStore({})
    store.subscribe(lambda s: s.update({"injected": True}))
    store.set("a", 1)
    assert "injected" not in store


# ─── for_request ─────────────────────────────────────────────────

def test_navigation_resets_except_kept_keys():
    session = _session_with({"search": "x", "keep_me": 1})
    store = StateStore.for_request(
        session, RequestPhase.INITIAL_NAVIGATION, keep=["keep_me"],
    )
    assert store.get() == {"keep_me": 1}


def test_submission_resets_except_kept_keys():
    session = _session_with({"search": "x"})
    store = StateStore.for_request(session, RequestPhase.SUBMISSION)
    assert store.get() == {}
    assert DEFAULT_STATE_SLOT not in session


def test_background_update_does_not_reset():
    session = _session_with({"search": "x", "other": 2})
    store = StateStore.for_request(session, RequestPhase.BACKGROUND_UPDATE)
    assert store.get() == {"search": "x", "other": 2}


# ─── cookie budget ───────────────────────────────────────────────

def test_oversized_session_logs_warning_once(caplog):
    store = StateStore({}, max_session_bytes=200)
    with caplog.at_level("WARNING", logger="formwire.core.state_store"):
        store.set("note", "x" * 300)
        store.set("other", "y" * 300)
    warnings = [r for r in caplog.records if "cookie budget" in r.getMessage()]
    assert len(warnings) == 1
    assert warnings[0].session_slot == DEFAULT_STATE_SLOT


def test_session_within_budget_is_silent(caplog):
    store = StateStore({}, max_session_bytes=4000)
    with caplog.at_level("WARNING", logger="formwire.core.state_store"):
        store.set("note", "short")
    assert not [r for r in caplog.records if "cookie budget" in r.getMessage()]
