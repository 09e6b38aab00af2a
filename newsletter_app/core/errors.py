"""Exception types raised by the newsletter pipeline."""

from __future__ import annotations


class NewsletterError(Exception):
    """Base class for newsletter pipeline failures."""


class JiraRequestError(NewsletterError, RuntimeError):
    """A Jira REST call failed (network, auth, 4xx/5xx)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NewsletterDateError(NewsletterError, ValueError):
    """Date range input was missing, malformed, or inverted."""


class TextGenerationUnavailable(NewsletterError):
    """The text-generation collaborator is not configured."""
