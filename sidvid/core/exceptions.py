"""
SidVid Custom Exceptions

Custom exception classes for error handling throughout the SidVid system.
"""

import re


class SidVidError(Exception):
    """Base exception for all SidVid errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(SidVidError):
    """Raised when there's an issue with configuration."""
    pass


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""
    pass


# =============================================================================
# LOOKUP ERRORS
# =============================================================================

class NotFoundError(SidVidError):
    """Base exception for lookups by id or key that found nothing."""
    pass


class SessionNotFoundError(NotFoundError):
    """Raised when a session id is not registered or stored."""

    def __init__(self, session_id: str):
        super().__init__("Session not found", {"session_id": session_id})
        self.session_id = session_id


class ElementNotFoundError(NotFoundError):
    """Raised when a world element (character, scene, ...) is not found."""

    def __init__(self, kind: str, element_id: str):
        label = kind.capitalize() if kind else "Element"
        super().__init__(f"{label} not found", {"id": element_id})
        self.kind = kind
        self.element_id = element_id


class ImageNotFoundError(NotFoundError):
    """Raised when an image id is not part of an element's image list."""

    def __init__(self, element_id: str, image_id: str):
        super().__init__(
            "Image not found",
            {"element_id": element_id, "image_id": image_id}
        )


class StorageKeyNotFoundError(NotFoundError):
    """Raised by storage adapters when a key does not exist."""

    def __init__(self, key: str):
        super().__init__("Not found", {"key": key})
        self.key = key


# =============================================================================
# CONTRACT ERRORS
# =============================================================================

class InvalidArgumentError(SidVidError):
    """Raised for out-of-range indices, bad permutations and similar misuse."""
    pass


class InvalidStateError(SidVidError):
    """Raised when an operation's precondition on session state is not met."""
    pass


class InvalidSessionDataError(SidVidError):
    """Raised when imported session data fails validation."""

    def __init__(self, message: str = "Invalid session data", details: dict = None):
        super().__init__(message, details)


# =============================================================================
# PROVIDER ERRORS
# =============================================================================

class ProviderError(SidVidError):
    """Opaque failure reported by a generation provider."""

    def __init__(self, message: str, provider: str = None, details: dict = None):
        details = dict(details or {})
        if provider:
            details["provider"] = provider
        super().__init__(message, details)
        self.provider = provider


class RateLimitError(ProviderError):
    """Raised when a provider rejects a request because of rate limiting."""
    pass


# =============================================================================
# STORAGE ERRORS
# =============================================================================

class StorageError(SidVidError):
    """Raised when a storage backend fails to read or write."""
    pass


_RATE_LIMIT_PATTERN = re.compile(r"rate.?limit|429|too many requests|quota", re.IGNORECASE)


def is_rate_limit_error(error: BaseException) -> bool:
    """Check whether an error carries a rate-limit signature."""
    if isinstance(error, RateLimitError):
        return True
    message = getattr(error, "message", None) or str(error)
    return bool(_RATE_LIMIT_PATTERN.search(message))
