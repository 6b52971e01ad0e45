"""State & Field Schemas: Pydantic models for the background-update JSON routes.

Invariants:
    - StateUpdate.values must be non-empty
    - StateReset.keep accepts nothing, one key, or a list of keys
    - FieldValidationRequest.rules, when given, is a rule-name -> options mapping

Design Decisions:
    - Values stay `Any`: the store enforces JSON-serializability itself
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class StateUpdate(BaseModel):
    """Shallow merge of values into the session state."""
    values: dict[str, Any]

    @field_validator("values")
    @classmethod
    def check_not_empty(cls, v: dict[str, Any]) -> dict[str, Any]:
        if not v:
            raise ValueError("values cannot be empty")
        return v


class StateReset(BaseModel):
    keep: str | list[str] | None = None


class StateResponse(BaseModel):
    state: dict[str, Any]


class StateValueResponse(BaseModel):
    key: str
    value: Any = None


class FieldValidationRequest(BaseModel):
    """Live value of one field, optionally with the rules to check it against."""
    value: str = Field("", max_length=100_000)
    rules: dict[str, Any] | None = None


class FieldValidationResponse(BaseModel):
    field: str
    valid: bool
    message: str = ""
