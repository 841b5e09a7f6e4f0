# src/utils/validators.py

import re
from typing import Optional

# ---------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
E164_PATTERN = re.compile(r"^\+\d{10,15}$")


# ---------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------

class ValidationError(ValueError):
    """Raised when OTP request input is missing or malformed."""


# ---------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------

def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def is_valid_phone(phone: Optional[str]) -> bool:
    """E.164 shape: `+` followed by 10 to 15 digits."""
    return bool(phone) and E164_PATTERN.match(phone) is not None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    if phone is None:
        return None
    phone = phone.strip()
    return phone or None


def validate_otp_request(
    email: Optional[str],
    app_id: Optional[str],
    app_name: Optional[str],
    phone: Optional[str] = None,
) -> None:
    """
    Validate the inputs of an OTP issue request.

    Raises:
        ValidationError
    """
    if not email or not app_id or not app_name:
        raise ValidationError("missing required field: email, app_id and app_name are required")

    if not is_valid_email(email.strip()):
        raise ValidationError("invalid email")

    if phone is not None and phone.strip() and not is_valid_phone(phone.strip()):
        raise ValidationError("invalid phone: must be in E.164 format (e.g. +1234567890)")
