"""Data models for unlinked."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LinkStatus(str, Enum):
    """Outcome of checking a single link."""

    OK = "ok"
    DEAD = "dead"
    REDIRECT = "redirect"
    TIMEOUT = "timeout"
    ERROR = "error"
    SKIPPED = "skipped"


class CheckMode(str, Enum):
    """How seed URLs are processed."""

    SINGLE = "single"
    CRAWLER = "crawler"


class OutputFormat(str, Enum):
    """Report formats understood by the writers."""

    PLAINTEXT = "plaintext"
    MARKDOWN = "markdown"
    HTML = "html"
    JSON = "json"


class LinkResult(BaseModel):
    """Result of checking a single link."""

    model_config = ConfigDict(frozen=True)

    url: str
    status: LinkStatus
    status_code: int = 0
    error: Optional[str] = None
    redirect_url: Optional[str] = None
    found_on: Optional[str] = None
    response_time: timedelta = timedelta(0)
    checked_at: datetime = Field(default_factory=utcnow)
    content_type: Optional[str] = None
    content_length: Optional[int] = None


class CheckResult(BaseModel):
    """Summary of a whole check run."""

    model_config = ConfigDict(frozen=True)

    start_time: datetime
    end_time: datetime
    duration: timedelta
    total_checked: int = 0
    total_ok: int = 0
    total_dead: int = 0
    total_redirect: int = 0
    total_errors: int = 0
    links: tuple[LinkResult, ...] = ()

    @property
    def has_failures(self) -> bool:
        """True when any link came back dead, errored or timed out."""
        return self.total_dead > 0 or self.total_errors > 0

    def by_status(self, *statuses: LinkStatus) -> list[LinkResult]:
        """Links whose status is one of ``statuses``, in recorded order."""
        return [link for link in self.links if link.status in statuses]


class CheckConfig(BaseModel):
    """Configuration for checker behavior."""

    mode: CheckMode = Field(default=CheckMode.SINGLE, description="single or crawler")
    concurrency: int = Field(default=10, ge=1, description="Max in-flight requests")
    timeout: int = Field(default=30, ge=1, description="Per-request timeout in seconds")
    max_depth: int = Field(default=3, ge=0, description="Maximum crawl depth")
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")
    allowed_domains: list[str] = Field(
        default_factory=list, description="Domains the crawler may visit (empty = any)"
    )
    ignore_patterns: list[str] = Field(
        default_factory=list, description="Regular expressions of URLs to skip"
    )
    user_agent: str = Field(
        default="Unlinked/1.0 (Dead Link Checker)",
        description="User agent string",
    )
    respect_robots_txt: bool = Field(default=True, description="Respect robots.txt")
    output_format: OutputFormat = Field(default=OutputFormat.PLAINTEXT)
    output_file: Optional[str] = Field(default=None, description="Report path (stdout if unset)")
    verbose: bool = False
    show_progress: bool = True
