"""Structural validation of user names.

Rules are checked independently so that every problem with a value is
reported at once instead of stopping at the first one.
"""

import re
from typing import Any

NAME_FIELD = "name"
NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 50
NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

NAME_REQUIRED_MESSAGE = "Name is required"
NAME_BLANK_MESSAGE = "Name must not be blank"
NAME_LENGTH_MESSAGE = (
    f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
)
NAME_PATTERN_MESSAGE = (
    "Name can only contain alphanumeric characters, hyphens, and underscores"
)


def name_violations(value: Any) -> list[str]:
    """Collect every rule the given name breaks.

    Args:
        value: Candidate name, possibly ``None`` or not a string

    Returns:
        Violation messages, empty when the name is valid
    """
    if value is None:
        return [NAME_REQUIRED_MESSAGE]
    if not isinstance(value, str):
        return ["Name must be a string"]

    messages: list[str] = []
    if not value.strip():
        messages.append(NAME_BLANK_MESSAGE)
    if not NAME_MIN_LENGTH <= len(value) <= NAME_MAX_LENGTH:
        messages.append(NAME_LENGTH_MESSAGE)
    # An empty value is already reported as blank
    if value and not NAME_PATTERN.fullmatch(value):
        messages.append(NAME_PATTERN_MESSAGE)
    return messages


def validate_create_request(request: Any) -> dict[str, str]:
    """Validate a create-user request.

    Args:
        request: Object with a ``name`` attribute, or ``None``

    Returns:
        Mapping of field name to its joined violation messages
    """
    if request is None:
        return {"body": "Request body is required"}

    messages = name_violations(getattr(request, NAME_FIELD, None))
    if messages:
        return {NAME_FIELD: "; ".join(messages)}
    return {}


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()
