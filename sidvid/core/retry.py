"""
Retry policy for video generation.

Rate-limited video submissions are retried with linear backoff: the n-th retry
waits ``base_delay * n`` seconds. Other provider failures are not retried.
"""

from dataclasses import dataclass

from sidvid.core.constants import MAX_RETRIES, RETRY_DELAY_SECONDS
from sidvid.core.exceptions import is_rate_limit_error
from sidvid.core.logging_config import get_logger

logger = get_logger("core.retry")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = MAX_RETRIES
    base_delay: float = RETRY_DELAY_SECONDS  # seconds, multiplied by the attempt number


DEFAULT_RETRY_CONFIG = RetryConfig()


def calculate_delay(attempt: int, config: RetryConfig = DEFAULT_RETRY_CONFIG) -> float:
    """
    Calculate delay before a retry attempt.

    Uses linear backoff: 10s, 20s, 30s with the default config.

    Args:
        attempt: Retry attempt number (1-indexed)
        config: Retry configuration

    Returns:
        Delay in seconds before the attempt
    """
    if attempt < 1:
        return 0.0
    return config.base_delay * attempt


def should_retry(error: BaseException, retry_count: int, config: RetryConfig = DEFAULT_RETRY_CONFIG) -> bool:
    """
    Decide whether a failed submission gets another attempt.

    Args:
        error: The submission failure
        retry_count: Retries already spent on this job
        config: Retry configuration

    Returns:
        True only for rate-limit failures with retries left
    """
    if not is_rate_limit_error(error):
        return False
    if retry_count >= config.max_retries:
        logger.debug(f"Retry budget exhausted ({retry_count}/{config.max_retries})")
        return False
    return True


def retry_message(delay: float, attempt: int, config: RetryConfig = DEFAULT_RETRY_CONFIG) -> str:
    """Countdown message shown while a retry is scheduled."""
    return f"Rate limited. Retrying in {delay:g}s (attempt {attempt}/{config.max_retries})"


def exhausted_message(error: BaseException, config: RetryConfig = DEFAULT_RETRY_CONFIG) -> str:
    """Terminal message for a job whose rate-limit retries ran out."""
    message = getattr(error, "message", None) or str(error)
    return f"Rate limit retries exhausted after {config.max_retries} attempts: {message}"
