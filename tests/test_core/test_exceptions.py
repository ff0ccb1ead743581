"""
Tests for Exceptions

Tests for sidvid/core/exceptions.py
"""

from sidvid.core.exceptions import (
    SidVidError,
    NotFoundError,
    SessionNotFoundError,
    ElementNotFoundError,
    ImageNotFoundError,
    StorageKeyNotFoundError,
    InvalidSessionDataError,
    ProviderError,
    RateLimitError,
)


class TestSidVidError:
    """Tests for the base error."""

    def test_str_without_details(self):
        assert str(SidVidError("boom")) == "boom"

    def test_str_with_details(self):
        error = SidVidError("boom", {"key": "value"})

        assert str(error) == "boom | Details: {'key': 'value'}"
        assert error.message == "boom"


class TestNotFoundErrors:
    """Tests for lookup errors."""

    def test_hierarchy(self):
        for error in (
            SessionNotFoundError("s1"),
            ElementNotFoundError("character", "c1"),
            ImageNotFoundError("c1", "i1"),
            StorageKeyNotFoundError("sessions/x"),
        ):
            assert isinstance(error, NotFoundError)

    def test_element_message_names_kind(self):
        assert ElementNotFoundError("character", "c1").message == "Character not found"
        assert ElementNotFoundError("scene", "s1").message == "Scene not found"

    def test_session_message(self):
        error = SessionNotFoundError("abc")

        assert error.message == "Session not found"
        assert error.session_id == "abc"


class TestProviderErrors:
    """Tests for provider errors."""

    def test_rate_limit_is_provider_error(self):
        assert isinstance(RateLimitError("429"), ProviderError)

    def test_provider_recorded_in_details(self):
        error = ProviderError("failed", provider="kling")

        assert error.details["provider"] == "kling"

    def test_invalid_session_data_default_message(self):
        assert InvalidSessionDataError().message == "Invalid session data"
