"""Attribute Rendering: tests for field, error, watch and schema fragments."""

import html
import json
import re

from formwire.core.render_attributes import (
    error_attributes, field_attributes, rule_attribute, schema_script_tag,
    watch_attributes, with_default_type,
)


def _data_rules(attributes: str) -> dict:
    match = re.search(r"data-rules='([^']*)'", attributes)
    assert match is not None
    return json.loads(html.unescape(match.group(1)))


def test_field_attributes_embed_id_name_value_and_rules():
    rules = {"required": True, "email": True}
    attrs = field_attributes("email", "a@b.com", rules)
    assert attrs.startswith("id='fh-email' name='email' value='a@b.com' data-rules=")
    assert _data_rules(attrs) == rules
    assert attrs.endswith(" required type='email'")


def test_value_is_escaped():
    attrs = field_attributes("q", "<script>'x'</script>", {"text": True})
    assert "<script>" not in attrs
    assert "value='&lt;script&gt;&#x27;x&#x27;&lt;/script&gt;'" in attrs


def test_custom_message_in_payload_is_escaped_and_recoverable():
    rules = {"required": {"value": True, "message": "Don't leave this empty"}}
    attrs = field_attributes("name", "", rules)
    assert "Don't" not in attrs
    assert _data_rules(attrs) == rules


def test_buttons_omit_value():
    attrs = field_attributes("go", "ignored", {"button": True})
    assert "value=" not in attrs
    assert attrs.endswith(" type='button'")


def test_valued_and_flag_rules():
    assert rule_attribute("minLength", 3) == " minLength='3'"
    assert rule_attribute("placeholder", {"value": "Your name"}) == " placeholder='Your name'"
    assert rule_attribute("disabled", True) == " disabled"
    assert rule_attribute("datetime", True) == " type='datetime-local'"


def test_disabled_and_unknown_rules_render_nothing():
    assert rule_attribute("required", False) == ""
    assert rule_attribute("sparkle", True) == ""


def test_default_type_added_only_without_input_type():
    assert with_default_type({"required": True}) == {
        "required": True, "text": {"value": True},
    }
    assert with_default_type({"email": True}) == {"email": True}
    assert with_default_type(None) == {"text": {"value": True}}


def test_default_type_does_not_mutate_input():
    rules = {"required": True}
    with_default_type(rules)
    assert rules == {"required": True}


def test_error_and_watch_fragments():
    assert error_attributes("email", "Invalid email format.") \
        == "id='fh-error-email' data-error-message='Invalid email format.'"
    assert error_attributes("email") == "id='fh-error-email' data-error-message=''"
    assert watch_attributes("name", "Ada") \
        == "id='fh-watch-name' data-watch-value='Ada' data-type='watch'"


def test_schema_script_tag_embeds_schema_json():
    tag = schema_script_tag()
    assert tag.startswith('<script id="fh-rule-schema" type="application/json">')
    body = tag[tag.index(">") + 1:tag.rindex("</script>")]
    assert "</" not in body
    assert json.loads(body.replace("<\\/", "</"))["version"] == 1
