"""
Field validators shared by the schema dataclasses.

Each validator returns the (possibly normalized) value or raises
SchemaValidationError naming the offending field.
"""

import re
from datetime import datetime, timezone
from typing import Any, Optional

from schemactl.errors import SchemaValidationError

UUID4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
SCHEMA_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9 ._-]+$")
# Letters, digits and ._+@- so semantic versions like 1.0.0+build.1 fit
LABEL_PATTERN = re.compile(r"^[a-zA-Z0-9._+@-]+$")
LOCAL_KEY_PATTERN = re.compile(r"^[a-z0-9._-]+$")
CONTENT_HASH_PATTERN = re.compile(r"^sha256:[a-f0-9]{64}$")


def require_uuid4(field: str, value: Any) -> str:
    if not isinstance(value, str) or not UUID4_PATTERN.match(value):
        raise SchemaValidationError(f"{field}: expected a UUIDv4, got {value!r}")
    return value


def optional_uuid4(field: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    return require_uuid4(field, value)


def require_string(
    field: str,
    value: Any,
    min_length: int = 0,
    max_length: Optional[int] = None,
    pattern: Optional[re.Pattern] = None,
) -> str:
    """Validate a trimmed string against length bounds and an optional pattern."""
    if not isinstance(value, str):
        raise SchemaValidationError(f"{field}: expected a string, got {type(value).__name__}")
    value = value.strip()
    if len(value) < min_length:
        raise SchemaValidationError(f"{field}: must be at least {min_length} character(s)")
    if max_length is not None and len(value) > max_length:
        raise SchemaValidationError(f"{field}: must be at most {max_length} characters")
    if pattern is not None and not pattern.match(value):
        raise SchemaValidationError(f"{field}: {value!r} contains invalid characters")
    return value


def optional_description(field: str, value: Any, max_length: int = 256) -> Optional[str]:
    if value is None:
        return None
    return require_string(field, value, max_length=max_length)


def require_label(field: str, value: Any) -> str:
    return require_string(field, value, min_length=1, max_length=64, pattern=LABEL_PATTERN)


def require_local_key(value: Any) -> str:
    """Local identifier of a schema: 1-64 chars of lowercase letters, digits, . _ -"""
    return require_string("local_key", value, min_length=1, max_length=64, pattern=LOCAL_KEY_PATTERN)


def require_choice(field: str, value: Any, choices: tuple) -> Any:
    if value not in choices:
        raise SchemaValidationError(f"{field}: expected one of {list(choices)}, got {value!r}")
    return value


def require_content_hash(field: str, value: Any) -> str:
    if not isinstance(value, str) or not CONTENT_HASH_PATTERN.match(value):
        raise SchemaValidationError(f"{field}: expected 'sha256:<64 hex chars>'")
    return value


def parse_datetime(field: str, value: Any) -> datetime:
    """
    Coerce an ISO-8601 string (or datetime) into a timezone-aware datetime.

    Naive values are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise SchemaValidationError(f"{field}: invalid datetime {value!r}") from None
    else:
        raise SchemaValidationError(f"{field}: expected an ISO datetime, got {type(value).__name__}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_iso_z(value: datetime) -> str:
    """Format a datetime as UTC ISO-8601 with millisecond precision and a Z suffix."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
