"""
Exception types for the GitHub Issue Analyzer.

Every error that crosses a component boundary is one of these. Each carries
the HTTP status the API layer answers with, so handlers never need to know
which component raised it.
"""

from typing import Optional


class IssueAnalyzerError(Exception):
    """Base exception for all GitHub Issue Analyzer errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(IssueAnalyzerError):
    """Raised when a request is missing fields or carries malformed ones."""

    status_code = 400


class NotFoundError(IssueAnalyzerError):
    """Raised when a repository has not been scanned yet."""

    status_code = 404


class UpstreamError(IssueAnalyzerError):
    """Raised when the GitHub API fails or cannot be reached.

    Attributes:
        status: HTTP status returned by GitHub, or None for transport errors
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class PersistenceError(IssueAnalyzerError):
    """Raised when the issue cache cannot be written."""


class ProviderError(IssueAnalyzerError):
    """Raised when the LLM provider call fails."""


class EmptyResponseError(ProviderError):
    """Raised when the LLM provider answers without any text."""


class ConfigurationError(IssueAnalyzerError):
    """Raised at startup when no usable LLM credential is configured."""
