# events/sanitizers.py
"""
Input sanitization and validation for event payloads.

Organizer-supplied text passes through these functions before it is stored.
Numeric validators raise ValidationFailed so the HTTP layer renders them with
a stable reason code.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

import bleach

from .exceptions import ValidationFailed


# Allowed HTML tags for rich text (event descriptions)
ALLOWED_TAGS = [
    'p', 'br', 'strong', 'em', 'u', 'a', 'ul', 'ol', 'li',
    'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'blockquote', 'code', 'pre'
]

ALLOWED_ATTRIBUTES = {
    'a': ['href', 'title'],
}


def sanitize_text(text: Optional[str], max_length: Optional[int] = None, strip: bool = True) -> str:
    """
    Sanitize plain text input.

    - Strips leading/trailing whitespace
    - Removes control characters
    - Enforces maximum length
    - Returns empty string for None input
    """
    if text is None:
        return ""

    text = str(text)
    if strip:
        text = text.strip()

    # Remove control characters except newlines and tabs
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_html(html: Optional[str], max_length: Optional[int] = None) -> str:
    if html is None:
        return ""

    clean = bleach.clean(
        str(html).strip(),
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        strip=True
    )

    if max_length and len(clean) > max_length:
        clean = clean[:max_length]

    return clean


def sanitize_title(title: Optional[str]) -> str:
    """
    Sanitize event and team names.

    - Max 255 characters
    - No HTML
    - Single line (no newlines)
    """
    text = bleach.clean(sanitize_text(title, max_length=255), tags=[], strip=True)
    text = re.sub(r'[\r\n]+', ' ', text)
    text = re.sub(r'\s+', ' ', text)
    return text


def sanitize_description(description: Optional[str]) -> str:
    return sanitize_html(description, max_length=10000)


def sanitize_tags(tags) -> list:
    """Accepts a list or a comma-separated string."""
    if not tags:
        return []
    if isinstance(tags, str):
        tags = tags.split(',')
    if not isinstance(tags, (list, tuple)):
        raise ValidationFailed("Tags must be a list or a comma-separated string", code="invalid_payload")
    cleaned = [sanitize_title(tag) for tag in tags]
    return [tag for tag in cleaned if tag]


# ─────────────────────────────────────────────────────────────
# Numeric Validators
# ─────────────────────────────────────────────────────────────

def validate_capacity(value, field: str = "max_participants", min_value: int = 0,
                      max_value: int = 100000) -> Optional[int]:
    """
    Validate a bounded counter limit.

    None or "" means unlimited.
    """
    if value is None or value == "":
        return None

    try:
        capacity = int(value)
    except (TypeError, ValueError):
        raise ValidationFailed(f"{field} must be a valid integer", code="invalid_payload")

    if capacity < min_value:
        raise ValidationFailed(f"{field} must be at least {min_value}", code="invalid_payload")

    if capacity > max_value:
        raise ValidationFailed(f"{field} cannot exceed {max_value}", code="invalid_payload")

    return capacity


def validate_team_size(value, field: str, max_value: int = 100) -> int:
    try:
        size = int(value)
    except (TypeError, ValueError):
        raise ValidationFailed(f"{field} must be a valid integer", code="invalid_payload")

    if size < 1:
        raise ValidationFailed(f"{field} must be at least 1", code="invalid_payload")

    if size > max_value:
        raise ValidationFailed(f"{field} cannot exceed {max_value}", code="invalid_payload")

    return size


def validate_price(value, min_value: Decimal = Decimal('0'), max_value: Decimal = Decimal('999999.99')) -> Decimal:
    """
    Validate event price.

    - Must be a valid decimal
    - Must be non-negative
    - Maximum 2 decimal places
    """
    try:
        if value is None:
            value = '0'
        if isinstance(value, str):
            value = value.strip()
            if value == '':
                value = '0'
        price = Decimal(str(value))
    except (TypeError, ValueError, InvalidOperation):
        raise ValidationFailed("Price must be a valid number", code="invalid_payload")

    if not price.is_finite():
        raise ValidationFailed("Price must be a valid number", code="invalid_payload")

    if price < min_value:
        raise ValidationFailed(f"Price must be at least {min_value}", code="invalid_payload")

    if price > max_value:
        raise ValidationFailed(f"Price cannot exceed {max_value}", code="invalid_payload")

    # Round to 2 decimal places
    return price.quantize(Decimal('0.01'))
