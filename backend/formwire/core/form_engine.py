"""Form Engine: field registration, validation and the redirect-and-replay protocol.

Invariants:
    - Exactly one transition per request, taken at construction:
        SUBMISSION + registrations present        -> SUBMITTING (validate, persist
                                                     outcome, terminal Redirect)
        navigation/background + outcome present  -> RESTORING (load outcome,
                                                     clear outcome + registrations)
        otherwise                                 -> REGISTERING
    - An outcome is consumed by exactly one later request (one-shot)
    - validate() is True only when validated AND error-free; an untouched form
      has no errors but is not valid
    - One error slot per field: the last failing rule's message wins
    - Error fragments are empty unless the form was validated this cycle
    - Rendering while a Redirect is pending raises RedirectSkippedError
    - Engine methods never raise for missing registrations during rendering;
      they return empty defaults

Design Decisions:
    - Redirect is returned as a value (engine.redirect), the route turns it into
      a response; nothing exits the request from inside the engine
    - An initial navigation that is not replaying an outcome drops registrations
      from the previous render: the page re-registers every field it renders.
      Background updates keep them so sibling fields survive
"""

import logging
from typing import Any, Mapping

from formwire.core.domain_types import (
    FormPhase, OUTCOME_KEY, REGISTRATION_KEY, Redirect, RequestPhase,
)
from formwire.core.errors import (
    ErrorContext, RedirectSkippedError, ResourceNotFoundError,
)
from formwire.core.form_records import (
    FieldRegistration, ValidationOutcome,
    registrations_from_snapshot, registrations_to_snapshot,
)
from formwire.core.render_attributes import (
    error_attributes, watch_attributes, with_default_type,
)
from formwire.core.state_store import StateStore, StateView
from formwire.core.validate_rules import clean_value, field_error

logger = logging.getLogger(__name__)


class FormEngine:
    """One form's view of the request: registering, submitting or restoring."""

    def __init__(
        self,
        store: StateStore,
        request_phase: RequestPhase,
        path: str = "/",
        form_data: Mapping[str, Any] | None = None,
        redirect_status: int = 303,
    ):
        self._store = store
        self._request_phase = request_phase
        self._path = path
        self._redirect_status = redirect_status
        self._data: dict[str, Any] = {
            str(k): clean_value(v) for k, v in (form_data or {}).items()
        }
        self._errors: dict[str, str] = {}
        self._validated = False
        self._redirect: Redirect | None = None
        self._phase = FormPhase.REGISTERING
        self._transition()

    # --- Transition ----------------------------------------------------------

    def _transition(self) -> None:
        has_registrations = REGISTRATION_KEY in self._store
        if self._request_phase is RequestPhase.SUBMISSION:
            if has_registrations:
                self._submit()
            return
        if OUTCOME_KEY in self._store:
            self._restore()
            return
        if (
            self._request_phase is RequestPhase.INITIAL_NAVIGATION
            and has_registrations
        ):
            self._store.discard(REGISTRATION_KEY)

    def _submit(self) -> None:
        registrations = self.get_registered_fields()
        for name, registration in registrations.items():
            self._data[name] = clean_value(self._data.get(name, ""))
            self.validate_field(name, registration.rules)
        self._validated = True

        outcome = ValidationOutcome(
            data={name: self._data[name] for name in registrations},
            errors=dict(self._errors),
            validated=True,
        )
        self._store.discard(OUTCOME_KEY)
        self._store.set(OUTCOME_KEY, outcome.to_snapshot())

        self._phase = FormPhase.SUBMITTING
        self._redirect = Redirect(self._path, self._redirect_status)
        logger.info(
            f"Form submitted on {self._path}: "
            f"{len(registrations)} field(s), {len(self._errors)} error(s)",
            extra={
                "path": self._path,
                "phase": self._phase.value,
                "error_count": len(self._errors),
            },
        )

    def _restore(self) -> None:
        outcome = ValidationOutcome.from_snapshot(self._store.get(OUTCOME_KEY))
        self._data = {str(k): v for k, v in outcome.data.items()}
        self._errors = dict(outcome.errors)
        self._validated = outcome.validated
        self._store.discard(OUTCOME_KEY, REGISTRATION_KEY)
        self._phase = FormPhase.RESTORING
        logger.debug(
            f"Restored form outcome on {self._path}",
            extra={
                "path": self._path,
                "phase": self._phase.value,
                "error_count": len(self._errors),
            },
        )

    def _ensure_renderable(self) -> None:
        if self._redirect is not None:
            raise RedirectSkippedError(
                self._redirect.location, ErrorContext(path=self._path),
            )

    # --- Properties ----------------------------------------------------------

    @property
    def phase(self) -> FormPhase:
        return self._phase

    @property
    def request_phase(self) -> RequestPhase:
        return self._request_phase

    @property
    def redirect(self) -> Redirect | None:
        return self._redirect

    @property
    def validated(self) -> bool:
        return self._validated

    @property
    def errors(self) -> dict[str, str]:
        return dict(self._errors)

    # --- Validation ----------------------------------------------------------

    def validate(self) -> bool:
        return self._validated and not self._errors

    def add_error(self, field: str, message: str) -> None:
        self._errors[field] = message

    def validate_field(self, field: str, rules: Mapping[str, Any]) -> None:
        """Check the field's current value; the last failing rule fills its error slot."""
        message = field_error(self._data.get(field), rules)
        if message is not None:
            self.add_error(field, message)

    def clear_errors(self) -> None:
        self._errors = {}
        self._store.discard(OUTCOME_KEY)

    def revalidate(
        self, field: str, value: Any, rules: Mapping[str, Any] | None = None,
    ) -> str | None:
        """Validate one field in isolation (background update). Returns its error or None.

        Uses the stored rule set unless rules are given; the stored registration's
        value is updated so the next render reflects it.
        """
        registrations = self.get_registered_fields()
        registration = registrations.get(field)
        if rules is None:
            if registration is None:
                raise ResourceNotFoundError(
                    "Field", field, ErrorContext(path=self._path, form_field=field),
                )
            rules = registration.rules
        else:
            rules = with_default_type(rules)

        cleaned = clean_value(value)
        self._data[field] = cleaned
        self._errors.pop(field, None)
        self.validate_field(field, rules)

        if registration is not None:
            registration.value = cleaned
            self._store.set(
                REGISTRATION_KEY, registrations_to_snapshot(registrations),
            )
        return self._errors.get(field)

    # --- Registration & rendering -------------------------------------------

    def register(self, field: str, rules: Mapping[str, Any] | None = None) -> str:
        """Record the field's contract in state and return its attribute string."""
        self._ensure_renderable()
        rules = with_default_type(rules)
        registration = FieldRegistration(
            name=field, value=clean_value(self._data.get(field, "")), rules=rules,
        )
        registrations = self.get_registered_fields()
        registrations[field] = registration
        self._store.set(
            REGISTRATION_KEY, registrations_to_snapshot(registrations),
        )
        return registration.attributes

    def get_registered_fields(self) -> dict[str, FieldRegistration]:
        return registrations_from_snapshot(self._store.get(REGISTRATION_KEY))

    def get_data(self) -> StateView:
        return StateView(self._data)

    def get_errors(self, field: str | None = None) -> str | dict[str, str]:
        """Error fragment for one field, or fragments for every failing field."""
        self._ensure_renderable()
        if field is not None:
            message = self._errors.get(field, "") if self._validated else ""
            return error_attributes(field, message)
        if not self._validated:
            return {}
        return {
            name: error_attributes(name, message)
            for name, message in self._errors.items()
        }

    def watch(self, field: str) -> str:
        """Attributes for an element mirroring the field's live value."""
        self._ensure_renderable()
        return watch_attributes(field, clean_value(self._data.get(field, "")))
