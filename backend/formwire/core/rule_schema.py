"""Rule Schema: the single definition of validation rules and default messages.

Invariants:
    - rule_schema.json is the only place rule names, checks, patterns, default
      messages and attribute kinds are defined
    - The server evaluator (validate_rules.py) and the presentation evaluator
      (static/form_handler.js) both consume this document
    - Every check named in the document is implemented by both evaluators
    - Rules without a check are presentation-only (attributes, no validation)
    - Patterns follow the browser's RegExp dialect: \\d \\w \\b are ASCII,
      \\s and `.` use the document's whitespace set, and constructs outside
      the common subset (`unsupported_pattern`) are ignored on both sides
    - Values are trimmed of exactly the document's whitespace set

Design Decisions:
    - JSON over a Python literal: the browser runtime reads the same bytes
    - Loaded once per process (lru_cache); the raw document is served as-is
"""

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

SCHEMA_PATH = Path(__file__).with_name("rule_schema.json")

CHECKS = frozenset({
    "string", "pattern", "number", "calendar", "filename", "between",
    "present", "at_least", "at_most", "min_length", "max_length",
    "matches", "accepts",
})
ATTRIBUTE_KINDS = frozenset({"type", "flag", "valued"})
LINE_TERMINATORS = "\\n\\r\\u2028\\u2029"


# ─── Pattern dialect ─────────────────────────────────────────────

def _escape_class(chars: str) -> str:
    return "".join(f"\\u{ord(c):04x}" for c in chars)


def translate_pattern(source: str, whitespace: str) -> str:
    """Rewrite \\s, \\S and `.` so Python matches what the browser matches."""
    spaces = _escape_class(whitespace)
    out: list[str] = []
    in_class = False
    i = 0
    while i < len(source):
        char = source[i]
        if char == "\\" and i + 1 < len(source):
            escaped = source[i + 1]
            if escaped == "s":
                out.append(spaces if in_class else f"[{spaces}]")
            elif escaped == "S" and not in_class:
                out.append(f"[^{spaces}]")
            else:
                out.append(source[i:i + 2])
            i += 2
            continue
        if in_class:
            in_class = char != "]"
        elif char == "[":
            in_class = True
        elif char == ".":
            char = f"[^{LINE_TERMINATORS}]"
        out.append(char)
        i += 1
    return "".join(out)


@dataclass(frozen=True)
class PatternDialect:
    """Regular-expression and trimming rules shared with the browser runtime."""
    whitespace: str
    unsupported: re.Pattern

    def strip(self, value: str) -> str:
        return value.strip(self.whitespace)

    def compile(self, source: str) -> re.Pattern | None:
        """Compile a pattern, or None when either runtime would reject it."""
        if self.unsupported.search(source):
            return None
        try:
            return re.compile(translate_pattern(source, self.whitespace), re.ASCII)
        except re.error:
            return None


@dataclass(frozen=True)
class RuleSpec:
    """One rule as described by the schema document."""
    name: str
    check: str | None = None
    message: str | None = None
    pattern: re.Pattern | None = None
    attribute: str | None = None
    attribute_value: str | None = None

    @property
    def validates(self) -> bool:
        return self.check is not None


@dataclass(frozen=True)
class RuleSchema:
    version: int
    default_type: str
    dialect: PatternDialect
    number_pattern: re.Pattern
    input_types: frozenset[str]
    non_value_controls: frozenset[str]
    rules: dict[str, RuleSpec]

    def rule(self, name: str) -> RuleSpec | None:
        return self.rules.get(name)


def _compile_required(dialect: PatternDialect, name: str, source: str) -> re.Pattern:
    compiled = dialect.compile(source)
    if compiled is None:
        raise ValueError(f"Schema pattern for '{name}' is outside the shared dialect")
    return compiled


def _parse_rule(name: str, raw: dict[str, Any], dialect: PatternDialect) -> RuleSpec:
    check = raw.get("check")
    if check is not None and check not in CHECKS:
        raise ValueError(f"Rule '{name}' uses unknown check '{check}'")
    attribute = raw.get("attribute")
    if attribute is not None and attribute not in ATTRIBUTE_KINDS:
        raise ValueError(f"Rule '{name}' uses unknown attribute kind '{attribute}'")
    pattern = raw.get("pattern")
    return RuleSpec(
        name=name,
        check=check,
        message=raw.get("message"),
        pattern=_compile_required(dialect, name, pattern) if pattern else None,
        attribute=attribute,
        attribute_value=raw.get("attribute_value"),
    )


@lru_cache
def schema_document() -> dict[str, Any]:
    """The raw schema document, as shipped to the presentation runtime."""
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


@lru_cache
def get_rule_schema() -> RuleSchema:
    doc = schema_document()
    dialect = PatternDialect(
        whitespace=doc["whitespace"],
        unsupported=re.compile(doc["unsupported_pattern"]),
    )
    return RuleSchema(
        version=int(doc["version"]),
        default_type=doc["default_type"],
        dialect=dialect,
        number_pattern=_compile_required(dialect, "number", doc["number_pattern"]),
        input_types=frozenset(doc["input_types"]),
        non_value_controls=frozenset(doc["non_value_controls"]),
        rules={
            name: _parse_rule(name, raw, dialect)
            for name, raw in doc["rules"].items()
        },
    )
