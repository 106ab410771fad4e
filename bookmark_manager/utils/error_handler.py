"""
Error hierarchy and retry strategy for the Bookmark Manager.

Every error path in the engine is recovered at its point of origin: the
command layer raises one of the exceptions below, and the dashboard
controller catches, classifies and surfaces it as a notification or an
alert. Nothing here should propagate to the top level of an application.
"""

import random
from enum import Enum
from pathlib import Path
from typing import Optional


# ============================================================================
# Unified Exception Hierarchy for Bookmark Manager
# ============================================================================
# All custom exceptions for the bookmark manager are defined here.
# Import these exceptions from bookmark_manager.utils.error_handler
# ============================================================================


class BookmarkManagerError(Exception):
    """Base exception for all bookmark manager errors."""

    pass


# ============================================================================
# Validation Errors
# ============================================================================


class ValidationError(BookmarkManagerError):
    """Input rejected locally before any store call (empty name, missing url)."""

    pass


class InvariantViolationError(BookmarkManagerError):
    """
    Operation would break a cross-entity invariant.

    Raised when deleting the last folder, deleting a category that still
    owns folders or bookmarks, or touching the reserved private folder.
    """

    pass


class PrivateCollectionLockedError(InvariantViolationError):
    """The private collection was requested without an unlock signal."""

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(BookmarkManagerError):
    """Configuration-related errors."""

    pass


# ============================================================================
# Store Errors
# ============================================================================


class StoreError(BookmarkManagerError):
    """Base class for entity store errors."""

    pass


class StoreWriteError(StoreError):
    """A write (add/update/remove/bulk) was rejected by the backing store."""

    pass


class DocumentNotFoundError(StoreWriteError):
    """The document addressed by a write does not exist."""

    def __init__(self, collection: str, document_id: str):
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"No document '{document_id}' in collection '{collection}'")


# ============================================================================
# Archive Errors
# ============================================================================


class ArchiveFailureReason(Enum):
    """Classification of a failed archival attempt."""

    NETWORK = "network"  # Transport error talking to the proxy
    PROXY_STATUS = "proxy_status"  # Proxy answered with a non-success status
    PROXY_DOWN = "proxy_down"  # Empty body or the proxy's outage marker
    BLOCKED = "blocked"  # Login wall, CAPTCHA or bot challenge
    INCOMPLETE = "incomplete"  # Body too short to be a real page


class ArchiveError(BookmarkManagerError):
    """
    Archival attempt failed.

    Attributes:
        reason: Classified failure reason
        message: Human-readable explanation suitable for a notification
        attempts: Fetch attempts made before giving up
    """

    def __init__(self, reason: ArchiveFailureReason, message: str):
        self.reason = reason
        self.message = message
        self.attempts = 1
        super().__init__(message)


# ============================================================================
# Data Errors
# ============================================================================


class DataError(BookmarkManagerError):
    """Base class for data-related errors."""

    pass


class SnapshotFormatError(DataError):
    """A snapshot file does not have the expected logical shape."""

    pass


class ExportError(DataError):
    """
    Exception raised when export fails.

    Attributes:
        message: Error description
        format_name: Name of the export format
        path: Target path if available
        original_error: Underlying exception if any
    """

    def __init__(
        self,
        message: str,
        format_name: Optional[str] = None,
        path: Optional[Path] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.format_name = format_name
        self.path = path
        self.original_error = original_error
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []
        if self.format_name:
            parts.append(f"[{self.format_name}]")
        parts.append(self.message)
        if self.path:
            parts.append(f"(path: {self.path})")
        if self.original_error:
            parts.append(
                f"Caused by: {type(self.original_error).__name__}: {self.original_error}"
            )
        return " ".join(parts)


class RetryStrategy:
    """Configurable retry strategy for transient failures."""

    def __init__(
        self,
        max_attempts: int = 0,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential_backoff: bool = True,
        jitter: bool = True,
    ):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_backoff = exponential_backoff
        self.jitter = jitter

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for the given attempt number."""
        if self.exponential_backoff:
            delay = self.base_delay * (2**attempt)
        else:
            delay = self.base_delay

        delay = min(delay, self.max_delay)

        if self.jitter:
            delay *= 0.5 + random.random() * 0.5  # Add 0-50% jitter

        return delay

    def should_retry(self, attempt: int, error: ArchiveError) -> bool:
        """Only transport errors are retried; validation verdicts are final."""
        if attempt >= self.max_attempts:
            return False
        return error.reason == ArchiveFailureReason.NETWORK
