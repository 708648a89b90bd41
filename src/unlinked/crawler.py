"""Core crawl orchestration."""

import asyncio
from typing import Optional
from urllib.parse import urlparse
import structlog

from unlinked.aggregator import ResultAggregator
from unlinked.exceptions import SeedError
from unlinked.filters import DomainFilter, IgnoreFilter
from unlinked.models import CheckConfig, LinkResult, LinkStatus
from unlinked.notifier import ProgressNotifier
from unlinked.parser import HTMLLinkExtractor, LinkExtractor
from unlinked.prober import Prober
from unlinked.registry import VisitedRegistry

logger = structlog.get_logger()

# (url, depth, found_on)
FrontierItem = tuple[str, int, Optional[str]]


class Crawler:
    """Bounded-depth, bounded-concurrency link checker over a worker pool."""

    def __init__(
        self,
        config: CheckConfig,
        prober: Prober,
        registry: VisitedRegistry,
        aggregator: ResultAggregator,
        ignore_filter: Optional[IgnoreFilter] = None,
        domain_filter: Optional[DomainFilter] = None,
        extractor: Optional[LinkExtractor] = None,
        notifier: Optional[ProgressNotifier] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        """
        Initialize crawler.

        Args:
            config: Checker configuration
            prober: Open prober shared by all workers
            registry: Run-wide dedup gate
            aggregator: Sink for every LinkResult
            ignore_filter: Patterns of URLs to skip without probing
            domain_filter: Allow-list for discovered links
            extractor: Link extraction strategy, HTML by default
            notifier: Progress sink, fired once per probe
            cancel_event: Once set, no further requests are dispatched
        """
        self.config = config
        self.prober = prober
        self.registry = registry
        self.aggregator = aggregator
        self.ignore_filter = ignore_filter or IgnoreFilter()
        self.domain_filter = domain_filter or DomainFilter()
        self.extractor = extractor or HTMLLinkExtractor()
        self.notifier = notifier or ProgressNotifier()
        self.cancel_event = cancel_event

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    async def crawl(self, seed_url: str) -> None:
        """
        Check a seed and every in-scope link reachable from it within max_depth.

        Args:
            seed_url: Absolute http(s) URL to start from

        Raises:
            SeedError: If the seed cannot be dispatched at all
        """
        parsed = urlparse(seed_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            reason = "not an absolute http(s) URL"
            self.aggregator.record(
                LinkResult(url=seed_url, status=LinkStatus.ERROR, error=reason)
            )
            raise SeedError(seed_url, reason)

        if not self.domain_filter.is_allowed(seed_url):
            raise SeedError(seed_url, "domain is not in allowed_domains")

        logger.info(
            "crawl_started",
            url=seed_url,
            max_depth=self.config.max_depth,
            concurrency=self.config.concurrency,
        )

        await self._run([(seed_url, 0, None)], expand=True)

        logger.info(
            "crawl_completed",
            url=seed_url,
            urls_visited=len(self.registry),
            cancelled=self.cancelled,
        )

    async def check(self, urls: list[str]) -> None:
        """
        Probe each URL once, without following links.

        Args:
            urls: Seed URLs; repeats are recorded as skipped
        """
        logger.info("check_started", urls=len(urls), concurrency=self.config.concurrency)
        await self._run([(url, 0, None) for url in urls], expand=False)
        logger.info("check_completed", urls=len(urls), cancelled=self.cancelled)

    async def _run(self, items: list[FrontierItem], expand: bool) -> None:
        """Drain a frontier seeded with ``items`` using ``concurrency`` workers."""
        frontier: asyncio.Queue = asyncio.Queue()
        for item in items:
            frontier.put_nowait(item)

        workers = [
            asyncio.create_task(self._worker(frontier, expand, worker_id))
            for worker_id in range(self.config.concurrency)
        ]

        try:
            await frontier.join()
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

    async def _worker(self, frontier: asyncio.Queue, expand: bool, worker_id: int):
        """
        Worker coroutine that processes URLs from the frontier.

        Args:
            frontier: Queue of (url, depth, found_on)
            expand: Whether fetched pages are searched for more links
            worker_id: Worker identifier for logging
        """
        while True:
            url, depth, found_on = await frontier.get()

            try:
                if self.cancelled:
                    logger.debug("url_dropped_cancelled", url=url, worker=worker_id)
                    continue

                children = await self._visit(url, depth, found_on, expand)

                for link in children:
                    frontier.put_nowait((link, depth + 1, url))

            except Exception as e:
                logger.error(
                    "crawl_error",
                    url=url,
                    error=str(e),
                    worker=worker_id,
                )

            finally:
                frontier.task_done()

    async def _visit(
        self,
        url: str,
        depth: int,
        found_on: Optional[str],
        expand: bool,
    ) -> list[str]:
        """
        Run one URL through ignore-check, dedup gate, probe, record and notify.

        Returns:
            Links to enqueue one level deeper
        """
        if self.ignore_filter.should_ignore(url):
            self.aggregator.record(
                LinkResult(url=url, status=LinkStatus.SKIPPED, found_on=found_on)
            )
            return []

        if not self.registry.mark_if_new(url):
            logger.debug("url_already_seen", url=url, found_on=found_on)
            self.aggregator.record(
                LinkResult(url=url, status=LinkStatus.SKIPPED, found_on=found_on)
            )
            return []

        links: list[str] = []

        if expand and depth < self.config.max_depth:
            page = await self.prober.fetch(url, found_on)
            result = page.result

            if page.html is not None:
                try:
                    links = self.extractor.extract_links(page.html, page.final_url)
                except Exception as e:
                    logger.warning("link_extraction_failed", url=url, error=str(e))
                    result = result.model_copy(
                        update={
                            "status": LinkStatus.ERROR,
                            "error": f"link extraction failed: {e}",
                        }
                    )
        else:
            result = await self.prober.probe(url, found_on)

        self.aggregator.record(result)
        self.notifier.notify(url, result.status)

        children = [
            link
            for link in links
            if link != url and self.domain_filter.is_allowed(link)
        ]

        if links:
            logger.info(
                "page_crawled",
                url=url,
                depth=depth,
                links=len(links),
                queued=len(children),
            )

        return children
