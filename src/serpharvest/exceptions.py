"""serpharvest exception hierarchy."""

from __future__ import annotations


class HarvestError(Exception):
    """Base exception for all serpharvest-specific errors."""


class QueryInputNotFoundError(HarvestError):
    """Raised when the search engine's query box never renders.

    Attributes:
        selector: The selector that was waited on.
        timeout_ms: The wait budget that expired.
    """

    def __init__(self, selector: str, timeout_ms: int) -> None:
        self.selector = selector
        self.timeout_ms = timeout_ms
        super().__init__(f"Query input {selector!r} did not appear within {timeout_ms}ms")


class NavigationError(HarvestError):
    """Raised when a page cannot be reached for a non-retryable reason."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Could not navigate to {url}: {reason}")


class ResultsFileError(HarvestError):
    """Raised when a persisted search-results file is missing or malformed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read results file {path}: {reason}")


class PersistenceError(HarvestError):
    """Raised when a results file cannot be written."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write {path}: {reason}")
