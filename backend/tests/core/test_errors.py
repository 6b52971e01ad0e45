"""Error Hierarchy: codes, statuses and the REST envelope."""

from formwire.core.errors import (
    ErrorCategory, ErrorContext, ErrorSeverity, FormWireError,
    RedirectSkippedError, ReservedStateKeyError, ResourceNotFoundError,
    StateSerializationError,
)


def test_reserved_key_error_is_client_error():
    error = ReservedStateKeyError(["formwire_form_outcome"])
    assert error.http_status == 400
    assert error.code == "RESERVED_STATE_KEY"
    assert error.context.state_key == "formwire_form_outcome"
    assert isinstance(error, FormWireError)


def test_not_found_message():
    error = ResourceNotFoundError("Field", "ghost")
    assert error.http_status == 404
    assert error.message == "Field 'ghost' not found"


def test_serialization_error_is_server_error():
    error = StateSerializationError("bad value")
    assert error.http_status == 500
    assert error.category is ErrorCategory.SERIALIZATION


def test_redirect_skipped_is_critical_and_keeps_location():
    error = RedirectSkippedError("/contact")
    assert error.severity is ErrorSeverity.CRITICAL
    assert error.location == "/contact"
    assert error.context.path == "/contact"


def test_to_response_envelope():
    context = ErrorContext(path="/contact", form_field="email")
    body = ResourceNotFoundError("Field", "email", context).to_response()
    assert body["error"]["code"] == "RESOURCE_NOT_FOUND"
    assert body["error"]["category"] == "resource_not_found"
    assert body["error"]["severity"] == "error"
    assert body["error"]["context"] == {
        "path": "/contact", "form_field": "email", "state_key": None,
    }
    assert "timestamp" in body["error"]
