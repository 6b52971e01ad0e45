"""Form Records: field registrations and validation outcomes, with snapshot codecs.

Invariants:
    - to_snapshot produces JSON-safe dicts stored inside the state mapping
    - Only name, value and rules are stored; the attribute string is derived
      from them on demand, keeping the session cookie small
    - from_snapshot tolerates missing keys and wrong shapes (falls back to defaults)
    - Registrations are keyed by field name: re-registering replaces, never duplicates

Design Decisions:
    - Dataclasses with explicit snapshot functions rather than storing raw dicts,
      so the state layout is defined in one place
"""

from dataclasses import dataclass, field
from typing import Any, Mapping

from formwire.core.render_attributes import field_attributes


@dataclass
class FieldRegistration:
    """One field's validation contract as recorded at render time."""
    name: str
    value: str = ""
    rules: dict[str, Any] = field(default_factory=dict)

    @property
    def attributes(self) -> str:
        return field_attributes(self.name, self.value, self.rules)

    def to_snapshot(self) -> dict:
        return {"value": self.value, "rules": self.rules}

    @classmethod
    def from_snapshot(cls, name: str, data: Any) -> "FieldRegistration":
        if not isinstance(data, Mapping):
            return cls(name=name)
        rules = data.get("rules")
        return cls(
            name=name,
            value=str(data.get("value") or ""),
            rules=dict(rules) if isinstance(rules, Mapping) else {},
        )


@dataclass
class ValidationOutcome:
    """Result of processing one submission, replayed once after the redirect."""
    data: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    validated: bool = False

    def to_snapshot(self) -> dict:
        return {
            "data": self.data,
            "errors": self.errors,
            "validated": self.validated,
        }

    @classmethod
    def from_snapshot(cls, data: Any) -> "ValidationOutcome":
        if not isinstance(data, Mapping):
            return cls()
        values = data.get("data")
        errors = data.get("errors")
        return cls(
            data=dict(values) if isinstance(values, Mapping) else {},
            errors=(
                {str(k): str(v) for k, v in errors.items()}
                if isinstance(errors, Mapping) else {}
            ),
            validated=bool(data.get("validated", False)),
        )


def registrations_to_snapshot(
    registrations: Mapping[str, FieldRegistration],
) -> dict[str, dict]:
    return {name: reg.to_snapshot() for name, reg in registrations.items()}


def registrations_from_snapshot(data: Any) -> dict[str, FieldRegistration]:
    if not isinstance(data, Mapping):
        return {}
    return {
        str(name): FieldRegistration.from_snapshot(str(name), entry)
        for name, entry in data.items()
    }
