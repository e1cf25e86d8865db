# events/sanitizers.py
"""
Input sanitization for event content.

All user-generated text should pass through these functions before it is
stored or rendered.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

import bleach

from core.exceptions import ValidationError


# Allowed HTML tags for rich text (descriptions, expected outcomes)
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
        html.strip(),
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        strip=True
    )

    if max_length and len(clean) > max_length:
        clean = clean[:max_length]

    return clean


def sanitize_title(title: Optional[str], field: str = "title") -> str:
    """
    Single-line title, max 255 characters, no HTML. Blank titles are rejected.
    """
    text = sanitize_text(bleach.clean(title or "", tags=[], strip=True), max_length=255)
    text = re.sub(r'\s+', ' ', text)
    if not text:
        raise ValidationError(field, "This field may not be blank.")
    return text


def sanitize_description(description: Optional[str]) -> str:
    return sanitize_html(description, max_length=10000)


def sanitize_reason(reason: Optional[str]) -> str:
    """Rejection reasons are plain text; blank is not a reason."""
    text = sanitize_text(bleach.clean(reason or "", tags=[], strip=True), max_length=2000)
    if not text:
        raise ValidationError("reason", "A rejection reason is required.")
    return text


# ─────────────────────────────────────────────────────────────
# Roll numbers
# ─────────────────────────────────────────────────────────────

def clean_roll_number(value: Optional[str], field: str = "roll_number") -> str:
    roll_number = sanitize_text(value, max_length=32)
    if not roll_number:
        raise ValidationError(field, "Roll number is required.")
    return roll_number


def roll_number_key(value: str) -> str:
    """Comparison key: trimmed and case-insensitive."""
    return value.strip().casefold()


# ─────────────────────────────────────────────────────────────
# Numeric Validators
# ─────────────────────────────────────────────────────────────

def validate_capacity(value, field: str = "max_participants", max_value: int = 100000) -> int:
    """Positive whole number of seats."""
    try:
        capacity = int(value)
    except (TypeError, ValueError):
        raise ValidationError(field, "Capacity must be a valid integer")

    if capacity < 1:
        raise ValidationError(field, "Capacity must be at least 1")

    if capacity > max_value:
        raise ValidationError(field, f"Capacity cannot exceed {max_value}")

    return capacity


def validate_price(value, min_value: Decimal = Decimal('0'), max_value: Decimal = Decimal('999999.99')) -> Decimal:
    """
    Validate the registration fee.

    - Must be a valid decimal
    - Must be non-negative
    - Rounded to 2 decimal places
    """
    if value is None:
        return Decimal('0.00')
    try:
        if isinstance(value, str):
            value = value.strip()
            if value == '':
                value = '0'
        price = Decimal(str(value))
    except (TypeError, ValueError, InvalidOperation):
        raise ValidationError("registration_fee", "Fee must be a valid number")

    if price < min_value:
        raise ValidationError("registration_fee", f"Fee must be at least {min_value}")

    if price > max_value:
        raise ValidationError("registration_fee", f"Fee cannot exceed {max_value}")

    return price.quantize(Decimal('0.01'))


def validate_email_optional(email: Optional[str], field: str = "email") -> str:
    """
    Basic email validation. Blank is allowed and stored as "".
    """
    email = sanitize_text(email, max_length=254)
    if not email:
        return ""

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    if not re.match(pattern, email):
        raise ValidationError(field, "Invalid email format")

    return email.lower()
