"""Link checking engine."""

import asyncio
from typing import Optional
import structlog

from unlinked.aggregator import ResultAggregator
from unlinked.crawler import Crawler
from unlinked.exceptions import CheckCancelled, CheckError, SeedError
from unlinked.filters import DomainFilter, IgnoreFilter
from unlinked.models import CheckConfig, CheckMode, CheckResult, utcnow
from unlinked.notifier import ProgressCallback, ProgressNotifier
from unlinked.parser import HTMLLinkExtractor, LinkExtractor
from unlinked.prober import Prober
from unlinked.registry import VisitedRegistry

logger = structlog.get_logger()


class Checker:
    """Checks seed URLs, or crawls from them, and summarizes the outcome."""

    def __init__(
        self,
        config: Optional[CheckConfig] = None,
        extractor: Optional[LinkExtractor] = None,
    ):
        """
        Initialize checker with configuration.

        Args:
            config: Checker configuration, uses defaults if None
            extractor: Link extraction strategy for crawl mode

        Raises:
            ConfigError: If an ignore pattern does not compile
        """
        self.config = config or CheckConfig()
        self.ignore_filter = IgnoreFilter(self.config.ignore_patterns)
        self.domain_filter = DomainFilter(self.config.allowed_domains)
        self.extractor = extractor or HTMLLinkExtractor()
        self.registry = VisitedRegistry()
        self.aggregator = ResultAggregator()
        self._progress_callback: Optional[ProgressCallback] = None

    def set_progress_callback(self, callback: Optional[ProgressCallback]) -> None:
        """Register the (url, status) callback fired after each probe. None clears it."""
        self._progress_callback = callback

    def _make_prober(self) -> Prober:
        return Prober(
            user_agent=self.config.user_agent,
            timeout=self.config.timeout,
            follow_redirects=self.config.follow_redirects,
            max_connections=self.config.concurrency,
        )

    async def check_urls(
        self,
        urls: list[str],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> CheckResult:
        """
        Check a list of seed URLs according to the configured mode.

        Args:
            urls: Seed URLs, processed in order
            cancel_event: Set it to stop dispatching new requests

        Returns:
            Summary of every link recorded so far by this checker

        Raises:
            CheckCancelled: If cancelled before any seed completed
            CheckError: If one or more crawl seeds could not be dispatched;
                the partial result is attached
        """
        start_time = utcnow()
        recorded_before = len(self.aggregator)
        failures: list[SeedError] = []
        completed = 0

        def cancelled() -> bool:
            return cancel_event is not None and cancel_event.is_set()

        logger.info("check_run_started", mode=self.config.mode.value, seeds=len(urls))

        notifier = ProgressNotifier(self._progress_callback)
        await notifier.start()

        try:
            async with self._make_prober() as prober:
                crawler = Crawler(
                    config=self.config,
                    prober=prober,
                    registry=self.registry,
                    aggregator=self.aggregator,
                    ignore_filter=self.ignore_filter,
                    domain_filter=self.domain_filter,
                    extractor=self.extractor,
                    notifier=notifier,
                    cancel_event=cancel_event,
                )

                if self.config.mode is CheckMode.CRAWLER:
                    for url in urls:
                        if cancelled():
                            break
                        try:
                            await crawler.crawl(url)
                        except SeedError as e:
                            logger.error("seed_failed", url=e.url, reason=e.reason)
                            failures.append(e)
                            continue
                        if not cancelled():
                            completed += 1
                elif not cancelled():
                    await crawler.check(list(urls))
                    completed = len(self.aggregator) - recorded_before
        finally:
            await notifier.aclose()

        result = self.aggregator.finalize(start_time, utcnow())

        if cancelled() and completed == 0:
            logger.warning("check_run_cancelled", recorded=result.total_checked)
            raise CheckCancelled(result=result)

        if failures:
            raise CheckError(result, failures)

        logger.info(
            "check_run_finished",
            total=result.total_checked,
            ok=result.total_ok,
            dead=result.total_dead,
            redirects=result.total_redirect,
            errors=result.total_errors,
            cancelled=cancelled(),
        )
        return result

    def check_urls_sync(
        self,
        urls: list[str],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> CheckResult:
        """Run check_urls on a fresh event loop."""
        return asyncio.run(self.check_urls(urls, cancel_event))
