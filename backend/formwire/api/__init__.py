"""API Layer: FastAPI routes, request-scoped dependencies and error handlers."""
