# events/form_fields.py
"""
Organizer-defined registration forms.

An event's form_fields is a list of field definitions. Participants answer
with a list of {"label": ..., "value": ...} pairs, matched to the fields by
label.
"""
import re

from .exceptions import ValidationFailed
from .sanitizers import sanitize_text

FIELD_TYPES = ("text", "email", "number", "textarea", "select", "checkbox", "radio", "date")
CHOICE_FIELD_TYPES = ("select", "checkbox", "radio")

MAX_ANSWER_LENGTH = 5000


def slugify_label(label: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", label.lower()).strip("_")


def normalize_form_fields(fields) -> list:
    """Validate field definitions and fill in field_name from the label."""
    if fields is None:
        return []
    if not isinstance(fields, list):
        raise ValidationFailed("form_fields must be a list", code="invalid_payload")

    normalized = []
    for raw in fields:
        if not isinstance(raw, dict):
            raise ValidationFailed("Each form field must be an object", code="invalid_payload")

        label = sanitize_text(raw.get("label"), max_length=255)
        field_type = raw.get("field_type")
        if not label or not field_type:
            raise ValidationFailed("Each form field must have a label and field_type", code="invalid_payload")
        if field_type not in FIELD_TYPES:
            raise ValidationFailed(f"Unsupported field_type '{field_type}'", code="invalid_payload")

        options = raw.get("options") or []
        if field_type in CHOICE_FIELD_TYPES:
            if not isinstance(options, list) or not options:
                raise ValidationFailed(f'Field "{label}" requires options array', code="invalid_payload")
        options = [sanitize_text(opt, max_length=255) for opt in options if sanitize_text(opt)]

        normalized.append({
            "field_name": sanitize_text(raw.get("field_name"), max_length=100) or slugify_label(label),
            "field_type": field_type,
            "label": label,
            "placeholder": sanitize_text(raw.get("placeholder"), max_length=255),
            "required": bool(raw.get("required", False)),
            "options": options,
        })

    labels = [f["label"] for f in normalized]
    if len(labels) != len(set(labels)):
        raise ValidationFailed("Form field labels must be unique", code="invalid_payload")

    return normalized


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def clean_answers(answers) -> list:
    if answers is None:
        return []
    if not isinstance(answers, list):
        raise ValidationFailed("Please provide answers array", code="invalid_payload")

    cleaned = []
    for item in answers:
        if not isinstance(item, dict) or "label" not in item:
            raise ValidationFailed("Each answer must have a label and value", code="invalid_payload")
        value = item.get("value")
        if isinstance(value, str):
            value = sanitize_text(value, max_length=MAX_ANSWER_LENGTH)
        cleaned.append({"label": sanitize_text(item["label"], max_length=255), "value": value})
    return cleaned


def check_required_answers(form_fields, answers) -> list:
    """
    Return cleaned answers, or raise missing_answer for the first required
    field without a non-empty answer.
    """
    cleaned = clean_answers(answers)
    by_label = {a["label"]: a["value"] for a in cleaned}

    for field in form_fields or []:
        if field.get("required") and _is_blank(by_label.get(field.get("label"))):
            raise ValidationFailed(f"Please answer: {field.get('label')}", code="missing_answer")

    return cleaned
