"""Unit tests for structural name validation."""

import pytest

from user_directory.schemas.user_schemas import CreateUserRequest
from user_directory.validation import (
    NAME_BLANK_MESSAGE,
    NAME_LENGTH_MESSAGE,
    NAME_PATTERN_MESSAGE,
    NAME_REQUIRED_MESSAGE,
    is_blank,
    name_violations,
    validate_create_request,
)


class TestNameViolations:
    """Test cases for name_violations."""

    @pytest.mark.parametrize("name", ["abc", "alice123", "a_b-c", "A" * 50, "___"])
    def test_valid_names(self, name: str):
        assert name_violations(name) == []

    def test_none_is_required(self):
        assert name_violations(None) == [NAME_REQUIRED_MESSAGE]

    def test_empty_string_reports_blank_and_length(self):
        messages = name_violations("")

        assert NAME_BLANK_MESSAGE in messages
        assert NAME_LENGTH_MESSAGE in messages
        assert NAME_PATTERN_MESSAGE not in messages

    def test_too_short_mentions_bounds(self):
        messages = name_violations("ab")

        assert messages == [NAME_LENGTH_MESSAGE]
        assert "3" in messages[0]
        assert "50" in messages[0]

    def test_too_long(self):
        assert name_violations("a" * 51) == [NAME_LENGTH_MESSAGE]

    def test_invalid_characters(self):
        assert name_violations("a@b-c") == [NAME_PATTERN_MESSAGE]

    def test_short_with_invalid_characters_reports_both(self):
        messages = name_violations("a@b")

        assert NAME_PATTERN_MESSAGE in messages
        assert name_violations("a@") == [NAME_LENGTH_MESSAGE, NAME_PATTERN_MESSAGE]

    def test_whitespace_only_reports_blank_and_pattern(self):
        messages = name_violations("    ")

        assert NAME_BLANK_MESSAGE in messages
        assert NAME_PATTERN_MESSAGE in messages

    def test_non_ascii_letters_rejected(self):
        assert name_violations("ålice") == [NAME_PATTERN_MESSAGE]

    def test_non_string_value(self):
        assert name_violations(123) == ["Name must be a string"]


class TestValidateCreateRequest:
    """Test cases for validate_create_request."""

    def test_valid_request(self):
        assert validate_create_request(CreateUserRequest(name="alice123")) == {}

    def test_missing_request(self):
        assert validate_create_request(None) == {"body": "Request body is required"}

    def test_missing_name(self):
        violations = validate_create_request(CreateUserRequest())

        assert violations == {"name": NAME_REQUIRED_MESSAGE}

    def test_multiple_messages_are_joined(self):
        violations = validate_create_request(CreateUserRequest(name="a@"))

        assert violations == {"name": f"{NAME_LENGTH_MESSAGE}; {NAME_PATTERN_MESSAGE}"}


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, True), ("", True), ("   ", True), ("alice", False)],
)
def test_is_blank(value, expected):
    assert is_blank(value) is expected
