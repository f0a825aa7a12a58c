"""Exception hierarchy for search and changelog retrieval."""

from __future__ import annotations


class JiraTimelineError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(JiraTimelineError):
    """Connection settings are missing or inconsistent."""


class EmptyResponseError(JiraTimelineError):
    """The request completed but no response or body came back."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"{operation}: empty response")


class UnexpectedStatusError(JiraTimelineError):
    """A non-2xx status was returned. Carries the status and raw body."""

    def __init__(self, operation: str, status_code: int | None, body: str | None, url: str | None = None):
        self.operation = operation
        self.status_code = status_code
        self.body = body or ""
        self.url = url
        super().__init__(f"{operation} failed {status_code}: {self.body[:200]}")


class DecodeError(JiraTimelineError):
    """The response body was not the JSON document the operation expects."""

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        super().__init__(f"{operation}: failed to decode response: {detail}")


class OperationCancelled(JiraTimelineError):
    """The caller's cancellation event was set before a network call."""
