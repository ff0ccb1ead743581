"""
Tests for Retry Policy

Tests for sidvid/core/retry.py
"""

import pytest

from sidvid.core.exceptions import ProviderError, RateLimitError, is_rate_limit_error
from sidvid.core.retry import (
    RetryConfig,
    calculate_delay,
    should_retry,
    retry_message,
    exhausted_message,
)


class TestCalculateDelay:
    """Tests for linear backoff."""

    def test_default_backoff_is_linear(self):
        """Delays are 10s, 20s and 30s with the default config."""
        assert [calculate_delay(n) for n in (1, 2, 3)] == [10.0, 20.0, 30.0]

    def test_custom_base_delay(self):
        config = RetryConfig(max_retries=3, base_delay=0.5)
        assert calculate_delay(4, config) == 2.0

    def test_non_positive_attempt(self):
        assert calculate_delay(0) == 0.0


class TestShouldRetry:
    """Tests for the retry decision."""

    def test_rate_limit_retried_until_budget_spent(self):
        error = RateLimitError("slow down")

        assert should_retry(error, 0)
        assert should_retry(error, 2)
        assert not should_retry(error, 3)

    def test_other_errors_never_retried(self):
        assert not should_retry(ProviderError("content policy"), 0)
        assert not should_retry(ValueError("bad"), 0)

    def test_zero_budget(self):
        assert not should_retry(RateLimitError("429"), 0, RetryConfig(max_retries=0))


class TestRateLimitDetection:
    """Tests for is_rate_limit_error."""

    @pytest.mark.parametrize("message", [
        "Rate limit reached",
        "rate_limit_exceeded",
        "HTTP 429",
        "Too Many Requests",
        "Quota exhausted for project",
    ])
    def test_detects_rate_limit_messages(self, message):
        assert is_rate_limit_error(ProviderError(message))

    def test_plain_failure_not_rate_limited(self):
        assert not is_rate_limit_error(ProviderError("Invalid image url"))


class TestMessages:
    """Tests for user-facing retry messages."""

    def test_retry_message(self):
        assert retry_message(20.0, 2) == "Rate limited. Retrying in 20s (attempt 2/3)"

    def test_exhausted_message(self):
        message = exhausted_message(RateLimitError("429 Too Many Requests"))

        assert message.startswith("Rate limit retries exhausted after 3 attempts")
        assert "429 Too Many Requests" in message
