"""Root conftest: shared test configuration."""

import os

# Ensure tests never depend on a developer's .env secret
os.environ.setdefault("SESSION_SECRET_KEY", "formwire-test-secret")
os.environ.setdefault("LOG_FORMAT", "text")
