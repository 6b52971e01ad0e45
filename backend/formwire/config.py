"""Application Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - The session secret comes from the environment in production (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out of the box locally
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from formwire.core.domain_types import DEFAULT_STATE_SLOT, DEFAULT_WIRE_HEADER


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Session cookie (Starlette SessionMiddleware)
    session_secret_key: str = "formwire-dev-secret-change-me"
    session_cookie: str = "formwire_session"
    session_max_age_seconds: int = 14 * 24 * 60 * 60
    session_https_only: bool = False
    session_same_site: str = "lax"
    # Browsers drop cookies past ~4096 bytes including name and attributes
    session_cookie_max_bytes: int = 4000

    @field_validator("session_same_site")
    @classmethod
    def check_same_site(cls, v: str) -> str:
        v = v.lower()
        if v not in ("lax", "strict", "none"):
            raise ValueError("session_same_site must be lax, strict or none")
        return v

    # State store
    state_slot_key: str = DEFAULT_STATE_SLOT
    state_keep_keys: list[str] = []

    # Request phases
    wire_header: str = DEFAULT_WIRE_HEADER
    redirect_status_code: int = 303

    @field_validator("redirect_status_code")
    @classmethod
    def check_redirect_status(cls, v: int) -> int:
        # 307/308 replay the POST, which would submit again on every hop
        if v not in (302, 303):
            raise ValueError("redirect_status_code must be 302 or 303")
        return v

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
