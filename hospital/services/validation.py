"""
JSON Schema validation for entry-form field maps.

All problems are collected rather than stopping at the first one, and each
message names the form field it is about.
"""

from typing import Any

import jsonschema


def _describe(error: jsonschema.ValidationError) -> str:
    field = error.path[-1] if error.path else None
    if field is None:
        return error.message
    if error.validator in ("minLength", "pattern"):
        return f"{field} cannot be empty."
    if error.validator == "type":
        return f"{field} must be text."
    return f"{field}: {error.message}"


def validate_against_schema(data: dict[str, Any], schema: dict[str, Any]) -> list[str]:
    """
    Validate a dict against a JSON schema.
    Returns a list of error messages (empty list = valid).
    """
    validator = jsonschema.Draft7Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    # minLength and pattern both fire on an empty identifier.
    return list(dict.fromkeys(_describe(error) for error in errors))
