"""
Restricted JSON Schema → content validator.

Template definitions declare the shape of their slide content with a small
subset of JSON Schema:

    type, required, properties, items, pattern, enum, minItems, maxItems, oneOf

``compile_schema`` turns such a declaration into a callable once, so that
the template loader can validate every slide of a deck without walking the
schema again. Objects are open: keys not declared in ``properties`` are
accepted untouched, since templates and content evolve independently.

Error strings have the form ``dotted.path: message`` with array indices as
numeric segments (``items.2: Expected string, received number``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

# A check returns the error strings for `value` found at `path`
Check = Callable[[Any, List[str]], List[str]]


@dataclass
class ValidationResult:
    """Outcome of validating content against a template schema."""
    valid: bool
    errors: List[str] = field(default_factory=list)


def compile_schema(schema: Dict[str, Any]) -> Callable[[Any], ValidationResult]:
    """
    Compile a schema declaration into a validator.

    Args:
        schema: Restricted JSON Schema mapping

    Returns:
        Callable taking the content and returning a ValidationResult
    """
    check = _compile(schema or {})

    def validate(content: Any) -> ValidationResult:
        errors = check(content, [])
        return ValidationResult(valid=not errors, errors=errors)

    return validate


def validate_with_schema(schema: Dict[str, Any], content: Any) -> ValidationResult:
    """Validate content against a schema in one call."""
    return compile_schema(schema)(content)


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------

def _compile(schema: Dict[str, Any]) -> Check:
    one_of = schema.get("oneOf")
    if one_of:
        members = [_compile(s) for s in one_of]
        if len(members) == 1:
            return members[0]
        return _union(members)

    schema_type = schema.get("type", "object")
    builder = _BUILDERS.get(schema_type)
    if builder is None:
        return _accept_any
    return builder(schema)


def _accept_any(value: Any, path: List[str]) -> List[str]:
    return []


def _union(members: List[Check]) -> Check:
    def check(value: Any, path: List[str]) -> List[str]:
        for member in members:
            if not member(value, path):
                return []
        return [_error(path, f"Invalid input: does not match any of {len(members)} allowed schemas")]
    return check


def _string(schema: Dict[str, Any]) -> Check:
    allowed = schema.get("enum") or None
    pattern = re.compile(schema["pattern"]) if schema.get("pattern") and not allowed else None

    def check(value: Any, path: List[str]) -> List[str]:
        if not isinstance(value, str):
            return [_type_error(path, "string", value)]
        if allowed is not None:
            if value not in allowed:
                expected = " | ".join(repr(v) for v in allowed)
                return [_error(path, f"Invalid enum value. Expected {expected}, received {value!r}")]
            return []
        if pattern is not None and not pattern.search(value):
            return [_error(path, f"Invalid: must match pattern {pattern.pattern!r}")]
        return []
    return check


def _number(schema: Dict[str, Any]) -> Check:
    def check(value: Any, path: List[str]) -> List[str]:
        if not _is_number(value):
            return [_type_error(path, "number", value)]
        return []
    return check


def _integer(schema: Dict[str, Any]) -> Check:
    def check(value: Any, path: List[str]) -> List[str]:
        if not _is_number(value):
            return [_type_error(path, "number", value)]
        if isinstance(value, float) and not value.is_integer():
            return [_error(path, "Expected integer, received float")]
        return []
    return check


def _boolean(schema: Dict[str, Any]) -> Check:
    def check(value: Any, path: List[str]) -> List[str]:
        if not isinstance(value, bool):
            return [_type_error(path, "boolean", value)]
        return []
    return check


def _array(schema: Dict[str, Any]) -> Check:
    item_check = _compile(schema["items"]) if schema.get("items") is not None else _accept_any
    min_items = schema.get("minItems")
    max_items = schema.get("maxItems")

    def check(value: Any, path: List[str]) -> List[str]:
        if not isinstance(value, list):
            return [_type_error(path, "array", value)]
        errors: List[str] = []
        for i, item in enumerate(value):
            errors.extend(item_check(item, path + [str(i)]))
        if min_items is not None and len(value) < min_items:
            errors.append(_error(path, f"Array must contain at least {min_items} element(s)"))
        if max_items is not None and len(value) > max_items:
            errors.append(_error(path, f"Array must contain at most {max_items} element(s)"))
        return errors
    return check


def _object(schema: Dict[str, Any]) -> Check:
    properties = schema.get("properties")
    if properties is None:
        def check_map(value: Any, path: List[str]) -> List[str]:
            if not isinstance(value, dict):
                return [_type_error(path, "object", value)]
            return []
        return check_map

    required = set(schema.get("required") or [])
    checks = {key: _compile(prop or {}) for key, prop in properties.items()}

    def check(value: Any, path: List[str]) -> List[str]:
        if not isinstance(value, dict):
            return [_type_error(path, "object", value)]
        errors: List[str] = []
        for key, prop_check in checks.items():
            prop_value = value.get(key)
            if prop_value is None:
                # YAML `key:` with no value counts as absent
                if key in required:
                    errors.append(_error(path + [key], "Required"))
                continue
            errors.extend(prop_check(prop_value, path + [key]))
        for key in sorted(required - set(checks)):
            if value.get(key) is None:
                errors.append(_error(path + [key], "Required"))
        return errors
    return check


_BUILDERS: Dict[str, Callable[[Dict[str, Any]], Check]] = {
    "string": _string,
    "number": _number,
    "integer": _integer,
    "boolean": _boolean,
    "array": _array,
    "object": _object,
}


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _json_type(value: Any) -> str:
    """JSON type name of a Python value, as used in error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _type_error(path: List[str], expected: str, value: Any) -> str:
    return _error(path, f"Expected {expected}, received {_json_type(value)}")


def _error(path: List[str], message: str) -> str:
    return f"{'.'.join(path)}: {message}" if path else message
