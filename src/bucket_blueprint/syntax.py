"""Parsing and schema checking of configuration units."""

from __future__ import annotations

from typing import Any

import yaml
from jsonschema import Draft7Validator, ValidationError

from .errors import ParseFailure
from .utils.errors import sanitize_exception

MERGE_TAG = "tag:yaml.org,2002:merge"


class UniqueKeyLoader(yaml.SafeLoader):
    """Safe loader that rejects duplicate mapping keys instead of keeping the last one."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            if key_node.tag == MERGE_TAG:
                continue
            key = self.construct_object(key_node, deep=deep)
            try:
                duplicate = key in seen
            except TypeError:
                # Unhashable key, reported by the base constructor
                continue
            if duplicate:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key!r}",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def parse_unit(text: str, schema: dict[str, Any], scope: str, path: str) -> dict[str, Any]:
    """Parse a YAML unit and check it against its schema.

    Args:
        text: Raw unit text
        schema: Draft 7 schema the document must satisfy
        scope: Root or module name, used in error messages
        path: Unit path relative to the configuration root

    Returns:
        Parsed document

    Raises:
        ParseFailure: on YAML errors or schema violations
    """
    try:
        document = yaml.load(text, Loader=UniqueKeyLoader)
    except yaml.YAMLError as e:
        raise ParseFailure(scope, f"{path}: YAML parse error: {sanitize_exception(e)}") from e

    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ParseFailure(scope, f"{path}: expected a mapping, got {type(document).__name__}")

    validator = Draft7Validator(schema)
    problems = [format_schema_error(error) for error in sorted(validator.iter_errors(document), key=str)]
    if problems:
        raise ParseFailure(scope, f"{path}: " + "; ".join(problems))

    return document


def format_schema_error(error: ValidationError) -> str:
    """Format a schema error for display."""
    path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"

    if error.validator == "required":
        missing_props = error.message.split("'")[1::2]
        return f"Missing required field(s) at '{path}': {', '.join(missing_props)}"
    if error.validator == "type":
        return f"Type error at '{path}': expected {error.validator_value}, got {type(error.instance).__name__}"
    if error.validator == "pattern":
        return f"Pattern mismatch at '{path}': '{error.instance}' does not match pattern '{error.validator_value}'"
    if error.validator == "enum":
        return f"Invalid value at '{path}': '{error.instance}' not in allowed values {error.validator_value}"
    if error.validator == "additionalProperties":
        return f"Unexpected field at '{path}': {error.message}"
    return f"Validation error at '{path}': {error.message}"


def formatting_advisories(text: str) -> list[str]:
    """Return formatting nits for a unit.

    Tabs, trailing whitespace, CRLF line endings and a missing final newline
    are reported. Line terminators are not counted as trailing whitespace.
    """
    advisories = []
    lines = text.splitlines()
    tab_lines = [idx + 1 for idx, line in enumerate(lines) if "\t" in line]
    trailing = [idx + 1 for idx, line in enumerate(lines) if line != line.rstrip()]
    crlf_lines = [idx + 1 for idx, line in enumerate(text.splitlines(keepends=True)) if line.endswith("\r\n")]
    if tab_lines:
        advisories.append(f"tab characters on line(s) {', '.join(map(str, tab_lines))}")
    if trailing:
        advisories.append(f"trailing whitespace on line(s) {', '.join(map(str, trailing))}")
    if crlf_lines:
        advisories.append(f"CRLF line endings on {len(crlf_lines)} line(s)")
    if text and not text.endswith("\n"):
        advisories.append("missing final newline")
    return advisories
