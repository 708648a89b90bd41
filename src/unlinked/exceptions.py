"""Exceptions raised by unlinked."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from unlinked.models import CheckResult


class UnlinkedError(Exception):
    """Base class for all unlinked errors."""


class ConfigError(UnlinkedError):
    """Raised when configuration is invalid (bad ignore pattern, unreadable file, ...)."""


class SeedError(UnlinkedError):
    """Raised when a seed URL cannot even be dispatched for crawling."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Cannot crawl seed '{url}': {reason}")


class CheckError(UnlinkedError):
    """Raised after a run in which one or more seeds failed.

    The partial result for the seeds that did run is kept on ``result``.
    """

    def __init__(self, result: "CheckResult", failures: list[SeedError]):
        self.result = result
        self.failures = failures
        urls = ", ".join(failure.url for failure in failures)
        super().__init__(f"{len(failures)} seed(s) failed: {urls}")


class CheckCancelled(UnlinkedError):
    """Raised when a run is cancelled before any seed completed."""

    def __init__(self, message: str = "check cancelled before any seed completed",
                 result: Optional["CheckResult"] = None):
        self.result = result
        super().__init__(message)
