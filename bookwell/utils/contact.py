# bookwell/utils/contact.py
"""Email and phone normalization shared by staff and customer flows"""
import re
from typing import Optional

from email_validator import validate_email, EmailNotValidError

_NON_DIGITS = re.compile(r"\D")


def normalize_email(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def is_valid_email(value: Optional[str]) -> bool:
    email = normalize_email(value)
    if not email:
        return False
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def normalize_phone(value: Optional[str]) -> str:
    """Strip punctuation and spaces, keeping a leading '+'"""
    raw = (value or "").strip()
    if not raw:
        return ""
    digits = _NON_DIGITS.sub("", raw)
    if not digits:
        return ""
    return f"+{digits}" if raw.startswith("+") else digits


def is_valid_phone(value: Optional[str]) -> bool:
    phone = normalize_phone(value)
    return 8 <= len(phone) <= 16
