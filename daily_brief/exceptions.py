"""Exception types raised by the selection pipeline."""

from __future__ import annotations


class DailyBriefError(Exception):
    """Base class for all daily_brief errors."""


class FeedFetchError(DailyBriefError):
    """Raised when a feed document cannot be fetched or parsed.

    This is the only failure the feed retry loop treats as transient.
    """


class RetryExhaustedError(DailyBriefError):
    """Raised when every attempt allowed by a retry policy has failed."""

    def __init__(self, label: str, attempts: int, last_error: BaseException):
        super().__init__(f"{label or 'operation'} failed after {attempts} attempt(s): {last_error}")
        self.label = label
        self.attempts = attempts
        self.last_error = last_error


class MalformedDateError(DailyBriefError, ValueError):
    """Raised when a feed item carries a publish date that cannot be parsed."""


class ConfigError(DailyBriefError, ValueError):
    """Raised when the app or topics configuration is inconsistent."""
