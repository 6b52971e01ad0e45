"""Rule Evaluation: checks one field value against an ordered rule set.

Invariants:
    - All functions are PURE: no IO, no state, no exceptions for failing values
    - Empty value without an enabled `required` rule -> no errors at all
    - Empty value with `required` -> exactly the required error
    - Non-empty value -> one message per failing enabled rule, in rule order
    - Unknown rules, presentation-only rules and unusable rule values
      (bad bounds, uncompilable patterns) are skipped, never raised
    - Semantics mirror static/form_handler.js check for check

Design Decisions:
    - Checks are looked up by the schema's `check` name, so adding a rule that
      reuses an existing check is a schema-only change
    - A check returns None on success and the message parameters on failure
"""

import logging
import re
from datetime import datetime
from typing import Any, Callable, Mapping

from formwire.core.rule_schema import RuleSchema, RuleSpec, get_rule_schema

logger = logging.getLogger(__name__)

MessageParams = dict[str, str]
Check = Callable[[RuleSpec, str, Any, RuleSchema], MessageParams | None]

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


# ─── Value helpers ───────────────────────────────────────────────

def clean_value(value: Any, schema: RuleSchema | None = None) -> str:
    """Coerce a submitted value to a trimmed string. Uploads become their file name."""
    if value is None:
        return ""
    dialect = (schema or get_rule_schema()).dialect
    filename = getattr(value, "filename", None)
    if filename is not None and not isinstance(value, str):
        return dialect.strip(str(filename))
    return dialect.strip(str(value))


def normalize_rule(options: Any) -> tuple[Any, str | None]:
    """Split a rule's options into (value, custom message)."""
    if isinstance(options, Mapping):
        return options.get("value", True), options.get("message") or None
    return options, None


def is_enabled(rule_value: Any) -> bool:
    return rule_value is not None and rule_value is not False


def display_value(value: Any) -> str:
    """Render a rule value the way the browser runtime's String() does."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_message(template: str, params: MessageParams) -> str:
    return _PLACEHOLDER.sub(
        lambda m: params.get(m.group(1), m.group(0)), template,
    )


def to_number(raw: Any, schema: RuleSchema) -> float | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        text = schema.dialect.strip(raw)
        if schema.number_pattern.match(text):
            return float(text)
    return None


# ─── Checks ──────────────────────────────────────────────────────

def _check_string(spec, value, rule_value, schema):
    return None if isinstance(value, str) else {}


def _check_pattern(spec, value, rule_value, schema):
    if spec.pattern is None or spec.pattern.search(value):
        return None
    return {}


def _check_number(spec, value, rule_value, schema):
    return None if schema.number_pattern.match(value) else {}


def _check_calendar(spec, value, rule_value, schema):
    match = spec.pattern.match(value) if spec.pattern else None
    if not match:
        return {}
    parts = [int(g) for g in match.groups() if g is not None]
    try:
        datetime(*parts)
    except ValueError:
        return {}
    return None


def _check_filename(spec, value, rule_value, schema):
    if value in (".", "..") or "/" in value or "\\" in value:
        return {}
    return None


def _check_between(spec, value, rule_value, schema):
    if not isinstance(rule_value, (list, tuple)) or len(rule_value) != 2:
        return None
    low, high = (to_number(b, schema) for b in rule_value)
    if low is None or high is None:
        return None
    number = to_number(value, schema)
    if number is None or number < low or number > high:
        return {
            "low": display_value(rule_value[0]),
            "high": display_value(rule_value[1]),
        }
    return None


def _check_present(spec, value, rule_value, schema):
    return None if value != "" else {}


def _bound_check(compare: Callable[[float, float], bool]) -> Check:
    def check(spec, value, rule_value, schema):
        bound = to_number(rule_value, schema)
        if bound is None:
            return None
        number = to_number(value, schema)
        if number is None or compare(number, bound):
            return {"value": display_value(rule_value)}
        return None
    return check


def _length_check(compare: Callable[[int, float], bool]) -> Check:
    def check(spec, value, rule_value, schema):
        bound = to_number(rule_value, schema)
        if bound is None:
            return None
        if compare(len(value), bound):
            return {"value": display_value(rule_value)}
        return None
    return check


def _check_matches(spec, value, rule_value, schema):
    compiled = schema.dialect.compile(str(rule_value))
    if compiled is None:
        logger.warning(f"Ignoring unusable pattern rule {rule_value!r}")
        return None
    return None if compiled.fullmatch(value) else {}


def _check_accepts(spec, value, rule_value, schema):
    strip = schema.dialect.strip
    entries = [
        strip(e).lower() for e in str(rule_value).split(",") if strip(e)
    ]
    if not entries:
        return None
    lowered = value.lower()
    for entry in entries:
        if entry == lowered or (entry.startswith(".") and lowered.endswith(entry)):
            return None
    return {}


CHECK_FUNCTIONS: dict[str, Check] = {
    "string": _check_string,
    "pattern": _check_pattern,
    "number": _check_number,
    "calendar": _check_calendar,
    "filename": _check_filename,
    "between": _check_between,
    "present": _check_present,
    "at_least": _bound_check(lambda number, bound: number < bound),
    "at_most": _bound_check(lambda number, bound: number > bound),
    "min_length": _length_check(lambda length, bound: length < bound),
    "max_length": _length_check(lambda length, bound: length > bound),
    "matches": _check_matches,
    "accepts": _check_accepts,
}


# ─── Evaluation ──────────────────────────────────────────────────

def is_required(rules: Mapping[str, Any]) -> bool:
    if "required" not in rules:
        return False
    rule_value, _ = normalize_rule(rules["required"])
    return is_enabled(rule_value)


def evaluate_rules(
    value: Any, rules: Mapping[str, Any], schema: RuleSchema | None = None,
) -> list[str]:
    """Every failing rule's message, in rule order. Empty list means valid."""
    schema = schema or get_rule_schema()
    value = clean_value(value, schema)

    if value == "":
        if not is_required(rules):
            return []
        _, custom = normalize_rule(rules["required"])
        return [custom or schema.rules["required"].message]

    messages: list[str] = []
    for name, options in rules.items():
        spec = schema.rule(name)
        if spec is None or not spec.validates:
            continue
        rule_value, custom = normalize_rule(options)
        if not is_enabled(rule_value):
            continue
        params = CHECK_FUNCTIONS[spec.check](spec, value, rule_value, schema)
        if params is not None:
            messages.append(custom or format_message(spec.message or "", params))
    return messages


def field_error(
    value: Any, rules: Mapping[str, Any], schema: RuleSchema | None = None,
) -> str | None:
    """The message a field's single error slot ends up holding (last failure wins)."""
    messages = evaluate_rules(value, rules, schema)
    return messages[-1] if messages else None
