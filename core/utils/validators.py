"""Input validation utilities."""

import re
from pathlib import Path
from typing import Optional


_URL_PATTERN = re.compile(
    r'^(?:https?://)?'  # optional scheme
    r'(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+[A-Z]{2,63}\.?|'  # domain...
    r'localhost|'  # localhost...
    r'\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})'  # ...or ip
    r'(?::\d+)?'  # optional port
    r'(?:/?|[/?#]\S+)$', re.IGNORECASE
)


def validate_url(url: str) -> tuple[bool, Optional[str]]:
    """
    Validate URL format. The scheme is optional.

    Args:
        url: URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url:
        return False, "URL is required"

    if not _URL_PATTERN.match(url.strip()):
        return False, "Invalid URL format"

    return True, None


def is_url(url: str) -> bool:
    valid, _ = validate_url(url)
    return valid


def sanitize_extension(filename: Optional[str]) -> str:
    """
    Return a safe, lower-cased file extension (including the dot) or "".

    Args:
        filename: Original client-supplied filename
    """
    if not filename:
        return ""
    suffix = Path(filename).suffix.lower()
    if not re.fullmatch(r'\.[a-z0-9]{1,10}', suffix):
        return ""
    return suffix


def normalize_email(email: str) -> str:
    """Normalize an email for storage and lookup."""
    return email.strip().lower()
