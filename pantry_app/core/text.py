"""
Small string helpers shared by the auth and provisioning code.
"""

import re
from typing import Optional
from urllib.parse import urlsplit

_EMAIL_SEPARATORS = re.compile(r"[._\-]")
_SLUG_INVALID = re.compile(r"[^a-z0-9]+")


def first_non_empty(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value is not None and value.strip():
            return value.strip()
    return None


def _to_name_case(part: str) -> str:
    if not part:
        return ""
    if len(part) == 1:
        return part.upper()
    return part[0].upper() + part[1:].lower()


def normalize_display_name(value: Optional[str]) -> str:
    """Collapse whitespace and name-case every word: "  aNNa  maria " -> "Anna Maria"."""
    if value is None or not value.strip():
        return ""
    return " ".join(_to_name_case(part) for part in value.split())


def display_name_from_email(email: Optional[str]) -> str:
    """Derive a display name from the local part of an email address."""
    if email is None or not email.strip():
        return "User"
    at = email.find("@")
    local_part = email[:at] if at > 0 else email
    tokens = _EMAIL_SEPARATORS.sub(" ", local_part).split()
    if not tokens:
        return "User"
    return normalize_display_name(" ".join(tokens))


def resolve_display_name(
    preferred_display_name: Optional[str],
    existing_display_name: Optional[str],
    email: str,
) -> str:
    """Preferred name wins, then the stored one, then a name derived from the email."""
    preferred = normalize_display_name(preferred_display_name)
    if preferred:
        return preferred
    existing = normalize_display_name(existing_display_name)
    if existing:
        return existing
    return display_name_from_email(email)


def mask_email(email: Optional[str]) -> str:
    if email is None or not email.strip():
        return "(empty)"
    at = email.find("@")
    if at <= 1:
        return "***"
    return f"{email[0]}***{email[at:]}"


def sanitize_return_url(return_url: Optional[str]) -> str:
    """Only relative URLs are allowed as redirect targets."""
    if return_url is None or not return_url.strip():
        return "/"
    candidate = return_url.strip()
    # browsers treat a backslash as a slash
    if candidate.startswith("//") or "\\" in candidate:
        return "/"
    parts = urlsplit(candidate)
    if parts.scheme or parts.netloc:
        return "/"
    return candidate


def slugify(value: Optional[str]) -> str:
    if not value:
        return ""
    return _SLUG_INVALID.sub("-", value.lower()).strip("-")
