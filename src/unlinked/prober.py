"""HTTP prober with async support."""

import asyncio
import time
from datetime import timedelta
from typing import NamedTuple, Optional
import aiohttp
import structlog

from unlinked.models import LinkResult, LinkStatus

logger = structlog.get_logger()

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


def classify_status(code: int) -> LinkStatus:
    """Map a received HTTP status code to a LinkStatus."""
    if 200 <= code < 300:
        return LinkStatus.OK
    if 300 <= code < 400:
        return LinkStatus.REDIRECT
    return LinkStatus.DEAD


class FetchedPage(NamedTuple):
    """A probed page plus what is needed to expand it."""

    result: LinkResult
    html: Optional[str]
    final_url: str


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class Prober:
    """Async HTTP client wrapper that checks one URL per call."""

    def __init__(
        self,
        user_agent: str = "Unlinked/1.0 (Dead Link Checker)",
        timeout: int = 30,
        follow_redirects: bool = True,
        max_connections: int = 10,
    ):
        self.user_agent = user_agent
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.follow_redirects = follow_redirects
        self.max_connections = max_connections
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Create session on context enter."""
        self._session = aiohttp.ClientSession(
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout,
            connector=aiohttp.TCPConnector(limit=self.max_connections),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close session on context exit."""
        if self._session:
            await self._session.close()
            self._session = None

    async def probe(self, url: str, found_on: Optional[str] = None) -> LinkResult:
        """
        Check a URL with a HEAD request.

        Args:
            url: The URL to check
            found_on: Page the link was discovered on, None for seeds

        Returns:
            Classified LinkResult; transport failures are reported in the
            result, never raised
        """
        page = await self._request("HEAD", url, found_on, read_body=False)
        return page.result

    async def fetch(self, url: str, found_on: Optional[str] = None) -> FetchedPage:
        """
        Check a URL with a GET request and return its HTML body.

        Args:
            url: The page to fetch
            found_on: Page the link was discovered on, None for seeds

        Returns:
            FetchedPage. ``html`` is None unless the response was successful
            and HTML; ``final_url`` is where redirects ended up.
        """
        return await self._request("GET", url, found_on, read_body=True)

    async def _request(
        self,
        method: str,
        url: str,
        found_on: Optional[str],
        read_body: bool,
    ) -> FetchedPage:
        if not self._session:
            raise RuntimeError("Prober must be used as async context manager")

        started = time.monotonic()
        body = None
        final_url = url

        try:
            async with self._session.request(
                method, url, allow_redirects=self.follow_redirects
            ) as response:
                elapsed = timedelta(seconds=time.monotonic() - started)
                status = classify_status(response.status)

                redirect_url = None
                if status is LinkStatus.REDIRECT:
                    redirect_url = response.headers.get("Location") or None

                if read_body and status is LinkStatus.OK and response.content_type in HTML_CONTENT_TYPES:
                    body = await response.text(errors="replace")
                    final_url = str(response.url)

                result = LinkResult(
                    url=url,
                    status=status,
                    status_code=response.status,
                    redirect_url=redirect_url,
                    found_on=found_on,
                    response_time=elapsed,
                    content_type=response.headers.get("Content-Type"),
                    content_length=response.content_length,
                )

        except asyncio.TimeoutError as e:
            logger.warning("probe_timeout", url=url, method=method)
            result = self._failure(url, found_on, LinkStatus.TIMEOUT, e, started)

        except (aiohttp.ClientError, ValueError) as e:
            logger.warning("probe_failed", url=url, method=method, error=_error_message(e))
            result = self._failure(url, found_on, LinkStatus.ERROR, e, started)

        logger.info(
            "link_checked",
            url=url,
            method=method,
            status=result.status.value,
            status_code=result.status_code,
            elapsed_ms=round(result.response_time.total_seconds() * 1000, 1),
        )
        return FetchedPage(result, body, final_url)

    @staticmethod
    def _failure(
        url: str,
        found_on: Optional[str],
        status: LinkStatus,
        exc: BaseException,
        started: float,
    ) -> LinkResult:
        return LinkResult(
            url=url,
            status=status,
            error=_error_message(exc),
            found_on=found_on,
            response_time=timedelta(seconds=time.monotonic() - started),
        )
