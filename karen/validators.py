"""
String and email validators.
"""
import re
from typing import Optional, Pattern

from email_validator import EmailNotValidError, validate_email as _validate_email


class ALLOWED_CHARACTERS_PATTERNS:
    """Character whitelists accepted by ``validate_string``."""
    NONE = None
    ALPHA_NUMERIC = re.compile(r"^[a-zA-Z0-9_-]+$")
    COMMON_USE = re.compile(
        r"^[\w\s!\"#$%&'()*+,\-./:;<=>?@\[\\\]^_{|}~\u0080-\uffff]*$"
    )
    FILE_NAME_SAFE = re.compile(r"^(?!\s+$)[\w\s\-().\[\]]*$", re.IGNORECASE)
    URL_SAFE = re.compile(r"^[\w.~\-/]*(://[\w.~\-/]+)*$")


DEFAULT_PATTERN = re.compile(r"^[a-zA-Z0-9\s]*$")


def is_blank(value: Optional[str]) -> bool:
    """True for None, empty or whitespace-only strings."""
    return not value or len(value.strip()) == 0


def validate_string(
    value,
    allow_blank: bool = True,
    allowed_pattern: Optional[Pattern] = ALLOWED_CHARACTERS_PATTERNS.NONE,
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> None:
    """
    Validate a user supplied string.

    Raises:
        ValueError: If the value breaks one of the rules
    """
    if value is None or value == "":
        if allow_blank:
            return
        raise ValueError("String cannot be blank")

    if not isinstance(value, str):
        raise ValueError("Value must be a string")

    if min_length is not None and len(value) < min_length:
        raise ValueError(f"String must be at least {min_length} characters long.")

    if max_length is not None and len(value) > max_length:
        raise ValueError(f"String must be at most {max_length} characters long.")

    regex = allowed_pattern if allowed_pattern is not None else DEFAULT_PATTERN
    if not regex.match(value):
        raise ValueError("String contains invalid characters.")


def is_valid_string(value, **options) -> bool:
    try:
        validate_string(value, **options)
        return True
    except ValueError:
        return False


def validate_email(email: str) -> str:
    """
    Validate email syntax.

    Returns:
        The normalized email address

    Raises:
        ValueError: If the address is malformed
    """
    try:
        return _validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise ValueError(str(e)) from e


def is_valid_email(email: str) -> bool:
    try:
        validate_email(email)
        return True
    except ValueError:
        return False


def validate_email_mx(email: str) -> str:
    """
    Validate email syntax and that its domain accepts mail (DNS lookup).

    Raises:
        ValueError: If the address is malformed or undeliverable
    """
    try:
        return _validate_email(email, check_deliverability=True).normalized
    except EmailNotValidError as e:
        raise ValueError("Unable to validate MX records") from e


def is_valid_email_mx(email: str) -> bool:
    try:
        validate_email_mx(email)
        return True
    except ValueError:
        return False
