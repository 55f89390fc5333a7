"""
Pure validation helpers shared by the credential store and the note repository.

Every function either returns the normalized value or raises ValidationError.
"""
import re
from typing import Iterable, List, Optional

from email_validator import EmailNotValidError
from email_validator import validate_email as check_email_syntax

from notekeeper.api.errors import ValidationError

NAME_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 6
TITLE_MAX_LENGTH = 100
CONTENT_MAX_LENGTH = 5000
TAG_MAX_LENGTH = 100
# Largest value a SQL BIGINT / SQLite INTEGER key can hold
MAX_ID = 2**63 - 1
DEFAULT_COLOR = "#ffffff"
COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"

_color_re = re.compile(COLOR_PATTERN)


def _require_str(value, field: str) -> str:
    if value is None:
        raise ValidationError(f"Please provide {field}")
    if not isinstance(value, str):
        raise ValidationError(f"{field.capitalize()} must be a string")
    return value


def validate_name(name: Optional[str]) -> str:
    name = _require_str(name, "a name").strip()
    if not name:
        raise ValidationError("Please provide a name")
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(f"Name cannot exceed {NAME_MAX_LENGTH} characters")
    return name


def validate_email(email: Optional[str]) -> str:
    """Return the email trimmed and lower-cased; emails compare case-insensitively."""
    email = _require_str(email, "an email").strip().lower()
    try:
        check_email_syntax(email, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Please provide a valid email")
    return email


def validate_password(password: Optional[str]) -> str:
    password = _require_str(password, "a password")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    return password


def validate_title(title: Optional[str]) -> str:
    title = _require_str(title, "a title").strip()
    if not title:
        raise ValidationError("Please provide a title")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")
    return title


def validate_content(content: Optional[str]) -> str:
    content = _require_str(content, "content")
    if not content:
        raise ValidationError("Please provide content")
    if len(content) > CONTENT_MAX_LENGTH:
        raise ValidationError(f"Content cannot exceed {CONTENT_MAX_LENGTH} characters")
    return content


def validate_color(color: Optional[str]) -> str:
    color = _require_str(color, "a color")
    if not _color_re.match(color):
        raise ValidationError("Please provide a valid hex color")
    return color


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Tags are a set: strip, drop blanks, de-duplicate and sort."""
    if tags is None:
        return []
    if isinstance(tags, str):
        raise ValidationError("Tags must be a list of strings")
    cleaned = set()
    for tag in tags:
        if not isinstance(tag, str):
            raise ValidationError("Tags must be a list of strings")
        tag = tag.strip()
        if len(tag) > TAG_MAX_LENGTH:
            raise ValidationError(f"Tag cannot exceed {TAG_MAX_LENGTH} characters")
        if tag:
            cleaned.add(tag)
    return sorted(cleaned)
