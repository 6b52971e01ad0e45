"""Application Configuration: defaults and validation of environment settings."""

import pytest
from pydantic import ValidationError

from formwire.config import Settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.state_slot_key == "formwire_state"
    assert settings.wire_header == "X-Wire-Request"
    assert settings.redirect_status_code == 303
    assert settings.state_keep_keys == []


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("WIRE_HEADER", "HX-Request")
    monkeypatch.setenv("STATE_KEEP_KEYS", '["cart"]')
    settings = Settings(_env_file=None)
    assert settings.wire_header == "HX-Request"
    assert settings.state_keep_keys == ["cart"]


def test_redirect_status_must_be_a_redirect():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, redirect_status_code=200)
    assert Settings(_env_file=None, redirect_status_code=302).redirect_status_code == 302


def test_same_site_is_normalized():
    assert Settings(_env_file=None, session_same_site="Strict").session_same_site == "strict"
    with pytest.raises(ValidationError):
        Settings(_env_file=None, session_same_site="sometimes")


@pytest.mark.parametrize("status_code", [301, 307, 308])
def test_redirect_status_rejects_codes_that_break_the_replay(status_code):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, redirect_status_code=status_code)


def test_cookie_budget_default():
    assert Settings(_env_file=None).session_cookie_max_bytes == 4000
