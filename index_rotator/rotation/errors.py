"""
Rotation error kinds and transient error classification
"""

from elasticsearch import ApiError, ConnectionError, ConnectionTimeout


class RotatorError(Exception):
    """Base class for rotation errors"""


class MissingPrimaryIndex(RotatorError):
    """The pointer to the current primary index cannot be resolved"""


class PrimaryIndexCopyFailure(RotatorError):
    """Archiving the primary index failed after exhausting retries"""


class StrategyConfigurationError(RotatorError, ValueError):
    """A primary index strategy was built with missing or invalid options"""


def is_transient_error(error: Exception) -> bool:
    """
    Server-side or availability failures worth retrying.

    Covers 5xx responses from the engine and transport-level connection
    failures. Everything else (404, 400, ...) is final.
    """
    if isinstance(error, (ConnectionError, ConnectionTimeout)):
        return True
    if isinstance(error, ApiError):
        return error.meta.status >= 500
    return False
