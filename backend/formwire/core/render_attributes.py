"""Attribute Rendering: the HTML attribute strings spliced into templates.

Invariants:
    - Every interpolated name, value and message is HTML-escaped
    - data-rules carries the exact rule set the server evaluates
    - Non-value controls (button, submit, reset) never get a value attribute
    - Disabled rules (value False/None) render nothing

Design Decisions:
    - Single-quoted attributes, one fragment per rule in rule order
"""

import html
import json
from typing import Any, Mapping

from formwire.core.domain_types import (
    ELEMENT_ID_PREFIX, ERROR_ID_PREFIX, WATCH_ID_PREFIX,
)
from formwire.core.rule_schema import RuleSchema, get_rule_schema, schema_document
from formwire.core.validate_rules import display_value, is_enabled, normalize_rule


def _esc(value: Any) -> str:
    return html.escape(str(value), quote=True)


def with_default_type(
    rules: Mapping[str, Any] | None, schema: RuleSchema | None = None,
) -> dict[str, Any]:
    """Copy of rules with the default input type added when none is given."""
    schema = schema or get_rule_schema()
    result = dict(rules or {})
    if not any(name in schema.input_types for name in result):
        result[schema.default_type] = {"value": True}
    return result


def rules_payload(rules: Mapping[str, Any]) -> str:
    return json.dumps(dict(rules), ensure_ascii=False, separators=(",", ":"))


def rule_attribute(
    name: str, options: Any, schema: RuleSchema | None = None,
) -> str:
    schema = schema or get_rule_schema()
    spec = schema.rule(name)
    if spec is None or spec.attribute is None:
        return ""
    rule_value, _ = normalize_rule(options)
    if not is_enabled(rule_value):
        return ""
    if spec.attribute == "type":
        return f" type='{_esc(spec.attribute_value or name)}'"
    if spec.attribute == "flag":
        return f" {name}"
    return f" {name}='{_esc(display_value(rule_value))}'"


def is_non_value_control(
    rules: Mapping[str, Any], schema: RuleSchema | None = None,
) -> bool:
    schema = schema or get_rule_schema()
    return any(
        name in schema.non_value_controls and is_enabled(normalize_rule(opts)[0])
        for name, opts in rules.items()
    )


def field_attributes(
    field: str,
    value: str,
    rules: Mapping[str, Any],
    schema: RuleSchema | None = None,
) -> str:
    """Attributes for a form control: id, name, value, data-rules, then one per rule."""
    schema = schema or get_rule_schema()
    attributes = f"id='{ELEMENT_ID_PREFIX}-{_esc(field)}' name='{_esc(field)}'"
    if not is_non_value_control(rules, schema):
        attributes += f" value='{_esc(value)}'"
    attributes += f" data-rules='{_esc(rules_payload(rules))}'"
    for name, options in rules.items():
        attributes += rule_attribute(name, options, schema)
    return attributes


def error_attributes(field: str, message: str = "") -> str:
    return f"id='{ERROR_ID_PREFIX}{_esc(field)}' data-error-message='{_esc(message)}'"


def watch_attributes(field: str, value: str = "") -> str:
    return (
        f"id='{WATCH_ID_PREFIX}{_esc(field)}' "
        f"data-watch-value='{_esc(value)}' data-type='watch'"
    )


def schema_script_tag() -> str:
    """Inline JSON script the presentation runtime reads the rule schema from."""
    payload = json.dumps(schema_document(), ensure_ascii=False).replace("</", "<\\/")
    return (
        f'<script id="{ELEMENT_ID_PREFIX}-rule-schema" '
        f'type="application/json">{payload}</script>'
    )
