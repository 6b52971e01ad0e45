"""API test fixtures: FastAPI test client with a fresh cookie jar.

Invariants:
    - Every test gets its own AsyncClient, so its own signed session cookie
    - The wire_headers fixture marks a request as a background update

Design Decisions:
    - httpx ASGITransport: runs the app in-process, cookies persist across
      requests within one client exactly like a browser tab
    - Redirects are not followed automatically so tests can assert the 303
"""

import pytest
from httpx import ASGITransport, AsyncClient

from formwire.core.domain_types import DEFAULT_WIRE_HEADER
from formwire.main import app


@pytest.fixture
async def client():
    """FastAPI test client bound to one browser-like session."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def wire_headers() -> dict[str, str]:
    return {DEFAULT_WIRE_HEADER: "true"}
