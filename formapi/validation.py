"""Answer validation shared by the form engine and the response endpoint.

Client-side validation (``validate_values``) works on the in-progress
response map keyed by field id and reports one message per field, with an
empty string meaning the field is fine. The server re-checks submitted
``{key, value}`` entries (``validate_entries``) against the stored form
before anything is persisted.
"""
import math
import re
from datetime import datetime
from typing import Any, Dict, List, Mapping

from formapi.models.form import (
    ALLOWED_UPLOAD_TYPES,
    FieldType,
    Form,
    FormField,
    ResponseEntry,
)

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
# decimal or exponent notation, as typed into a number input
NUMBER_PATTERN = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return False


def is_email(value: Any) -> bool:
    return isinstance(value, str) and EMAIL_PATTERN.fullmatch(value) is not None


def is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    return isinstance(value, str) and NUMBER_PATTERN.fullmatch(value.strip()) is not None


def is_datetime(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return False
    return True


def is_allowed_upload(value: Any) -> bool:
    return getattr(value, "content_type", None) in ALLOWED_UPLOAD_TYPES


def required_message(field: FormField) -> str:
    return f"{field.label} is required"


def upload_message(field: FormField) -> str:
    return f"Only JPEG, PNG images, and PDF files are allowed for {field.label}"


def type_error(field: FormField, value: Any) -> str:
    """Apply the single rule for ``field.type``; ``""`` when it passes."""
    if field.type == FieldType.EMAIL and not is_email(value):
        return f"Invalid email format for {field.label}"
    if field.type == FieldType.NUMBER and not is_number(value):
        return f"{field.label} must be a valid number"
    if field.type == FieldType.UPLOAD and not is_allowed_upload(value):
        return upload_message(field)
    if field.type == FieldType.DATETIME and not is_datetime(value):
        return f"{field.label} must be a valid date and time"
    return ""


def field_error(field: FormField, value: Any) -> str:
    if is_empty(value):
        return required_message(field) if field.required else ""
    return type_error(field, value)


def validate_values(form: Form, values: Mapping[str, Any]) -> Dict[str, str]:
    return {field.id: field_error(field, values.get(field.id)) for field in form.fields}


def is_valid(errors: Mapping[str, str]) -> bool:
    return all(not message for message in errors.values())


def _entry_error(field: FormField, value: Any) -> str:
    if is_empty(value):
        return required_message(field) if field.required else ""

    if field.type in (FieldType.DROPDOWN, FieldType.RADIO):
        if value not in field.options:
            return f"{field.label} must be one of the listed options"
        return ""

    if field.type == FieldType.CHECKBOX:
        if not field.is_multi_select:
            return "" if isinstance(value, bool) else f"{field.label} must be true or false"
        if not isinstance(value, list) or len(set(value)) != len(value):
            return f"{field.label} must be a list of distinct options"
        if any(v not in field.options for v in value):
            return f"{field.label} must be one of the listed options"
        return ""

    if not isinstance(value, str):
        return f"{field.label} must be text"

    if field.type == FieldType.UPLOAD:
        if not value.startswith(("http://", "https://")):
            return f"{field.label} must be an uploaded file URL"
        return ""

    return type_error(field, value)


def validate_entries(form: Form, entries: List[ResponseEntry]) -> Dict[str, str]:
    """Check submitted entries against ``form``; only failures are returned."""
    errors: Dict[str, str] = {}
    labels = {field.label for field in form.fields}
    answers: Dict[str, Any] = {}
    for entry in entries:
        if entry.key not in labels:
            errors[entry.key] = f"Unknown field {entry.key}"
        elif entry.key in answers:
            errors[entry.key] = f"Duplicate answer for {entry.key}"
        else:
            answers[entry.key] = entry.value

    for field in form.fields:
        if field.label in errors:
            continue
        message = _entry_error(field, answers.get(field.label))
        if message:
            errors[field.label] = message
    return errors
