"""
Schema API key format.

Keys have three sections joined by underscores:

    sk_<uuid4>_<64 lowercase hex chars>
"""

import re

from schemactl.constants import API_KEY_PREFIX, API_KEY_SECRET_LENGTH, API_KEY_SEPARATOR
from schemactl.errors import SchemaValidationError

from .props import UUID4_PATTERN

SECRET_PATTERN = re.compile(rf"^[a-f0-9]{{{API_KEY_SECRET_LENGTH}}}$")


def validate_api_key(value: str) -> str:
    """
    Validate the format of a schema API key.

    Returns:
        The key, unchanged

    Raises:
        SchemaValidationError: Describing the first section that is invalid
    """
    if not isinstance(value, str):
        raise SchemaValidationError("API key must be a string")

    parts = value.split(API_KEY_SEPARATOR)
    if len(parts) != 3:
        raise SchemaValidationError(
            "Invalid schema API key format. Expected: "
            f"{API_KEY_PREFIX}{API_KEY_SEPARATOR}<uuid>{API_KEY_SEPARATOR}<secret>"
        )

    prefix, key_id, secret = parts
    if prefix != API_KEY_PREFIX:
        raise SchemaValidationError(f'Invalid API key prefix: "{prefix}"')
    if not UUID4_PATTERN.match(key_id):
        raise SchemaValidationError(f'Invalid API key UUID: "{key_id}"')
    if not SECRET_PATTERN.match(secret):
        raise SchemaValidationError("Invalid API key secret")

    return value


def is_valid_api_key(value: str) -> bool:
    try:
        validate_api_key(value)
    except SchemaValidationError:
        return False
    return True
