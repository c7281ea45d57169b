"""Custom exceptions for feed_navigator.

Only failures the caller has to act on are raised. Transport errors on a single
strategy attempt, parse failures and unresolvable items are recovered locally
and never surface as exceptions.

Exception Hierarchy:
    FeedNavigatorError (base)
    ├── FeedFetchError - every applicable fetch strategy failed
    ├── FeedConfigError - configuration could not be loaded or validated
    └── NavigationError - invalid navigation action
"""

from typing import Optional


class FeedNavigatorError(Exception):
    """Base exception for all feed_navigator errors.

    Attributes:
        message: Human-readable error message
        suggestion: Optional suggestion for resolving the error
    """

    def __init__(self, message: str, suggestion: Optional[str] = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message with the optional suggestion."""
        parts = [self.message]
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")
        return " ".join(parts)


class FeedFetchError(FeedNavigatorError):
    """Raised when a feed could not be fetched after all applicable strategies.

    A persistent 204 is not an error (it degrades to a placeholder feed), so
    ``status_code`` is any other non-success status, or None when the last
    direct attempt failed at the transport level.

    Attributes:
        status_code: Final HTTP status, None for transport failures
        reason: HTTP reason phrase or transport error text
        url: Feed URL that was requested

    Example:
        >>> raise FeedFetchError(status_code=404, reason="Not Found", url=feed_url)
    """

    def __init__(
        self,
        status_code: Optional[int],
        reason: str,
        url: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.url = url
        if status_code is None:
            message = f"Transport error: {reason}"
        else:
            message = f"HTTP {status_code}: {reason}"
        super().__init__(message=message)


class FeedConfigError(FeedNavigatorError):
    """Raised when configuration is invalid or cannot be loaded.

    Example:
        >>> raise FeedConfigError(
        ...     message="Config file not found",
        ...     config_key="config",
        ...     suggestion="Pass an existing JSON or YAML file with --config",
        ... )
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.config_key = config_key
        if config_key and config_key not in message:
            message = f"{message} (config key: {config_key})"
        super().__init__(message=message, suggestion=suggestion)


class NavigationError(FeedNavigatorError):
    """Raised when a navigation action cannot be applied, e.g. opening a leaf item."""
