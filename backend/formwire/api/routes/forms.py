"""Form Routes: rule schema for the presentation runtime and live field validation.

Invariants:
    - The schema served here is byte-for-byte the document the server evaluates with
    - Field validation runs the same evaluator as submissions and updates the
      stored registration value

Design Decisions:
    - Field validation is a background update: it never resets sibling state
"""

import logging

from fastapi import APIRouter, Depends

from formwire.api.dependencies import get_form_engine
from formwire.core.form_engine import FormEngine
from formwire.core.rule_schema import schema_document
from formwire.schemas.state import FieldValidationRequest, FieldValidationResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/forms", tags=["forms"])


@router.get("/rule-schema")
async def get_rule_schema_document():
    return schema_document()


@router.post(
    "/fields/{field}/validate", response_model=FieldValidationResponse,
)
async def validate_field(
    field: str,
    body: FieldValidationRequest,
    form: FormEngine = Depends(get_form_engine),
):
    """Revalidate one field against its stored (or the given) rules."""
    message = form.revalidate(field, body.value, body.rules)
    return FieldValidationResponse(
        field=field, valid=message is None, message=message or "",
    )
