"""
Shared helpers for timestamps, identifiers and emails
"""
import re
import uuid
from datetime import datetime, timezone
from typing import Optional

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$')


def utcnow() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from databases without tz support"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def normalize_email(value: Optional[str]) -> str:
    """Trim and lowercase an email address"""
    return (value or '').strip().lower()


def is_valid_email(value: str) -> bool:
    """Basic email shape check"""
    return bool(value) and EMAIL_PATTERN.match(value) is not None


def mask_token(token: Optional[str]) -> str:
    """Shorten a verification token for log output"""
    if not token:
        return '<none>'
    return f"{token[:8]}..."


def validate_uuid(uuid_string: str) -> bool:
    """Validate UUID format"""
    try:
        uuid.UUID(uuid_string)
        return True
    except (ValueError, TypeError, AttributeError):
        return False


def coerce_uuid(value):
    """Return ``value`` as a uuid.UUID; raises ValueError for malformed ids"""
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))
