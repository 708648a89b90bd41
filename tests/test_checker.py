"""End-to-end tests for the checker engine."""

import asyncio
import pytest
from aiohttp import web
from unlinked.checker import Checker
from unlinked.exceptions import CheckCancelled, CheckError, ConfigError
from unlinked.models import CheckConfig, CheckMode, LinkStatus


def non_skipped(result):
    return [link for link in result.links if link.status is not LinkStatus.SKIPPED]


def assert_consistent(result):
    counted = result.total_ok + result.total_dead + result.total_redirect + result.total_errors
    assert result.total_checked == len(result.links)
    assert counted <= result.total_checked


class TestCheckerConstruction:
    """Test engine construction."""

    def test_invalid_ignore_pattern(self):
        """Test that a bad ignore pattern fails construction."""
        with pytest.raises(ConfigError):
            Checker(CheckConfig(ignore_patterns=["[unclosed"]))

    def test_defaults(self):
        """Test construction with default configuration."""
        checker = Checker()

        assert checker.config.mode is CheckMode.SINGLE
        assert len(checker.registry) == 0


@pytest.mark.asyncio
class TestSingleMode:
    """Test checking explicit URL lists."""

    async def test_mixed_statuses(self, serve, html_page):
        """Test classification of several seeds in one run."""

        async def moved(request):
            raise web.HTTPMovedPermanently(location="/x")

        async with serve({"/": html_page(), "/old": moved}) as server:
            checker = Checker(CheckConfig(follow_redirects=False))
            result = await checker.check_urls(
                [
                    str(server.make_url("/")),
                    str(server.make_url("/old")),
                    str(server.make_url("/missing")),
                ]
            )

        assert_consistent(result)
        assert result.total_checked == 3
        assert result.total_ok == 1
        assert result.total_redirect == 1
        assert result.total_dead == 1
        assert result.has_failures
        redirect = result.by_status(LinkStatus.REDIRECT)[0]
        assert redirect.redirect_url == "/x"
        assert result.end_time >= result.start_time

    async def test_duplicate_seeds_probed_once(self, serve, html_page):
        """Test that N identical seeds hit the server once."""
        async with serve({"/": html_page()}) as server:
            url = str(server.make_url("/"))
            checker = Checker(CheckConfig(concurrency=50))
            result = await checker.check_urls([url] * 20)
            hits = dict(server.hits)

        assert_consistent(result)
        assert len(non_skipped(result)) == 1
        skipped = result.by_status(LinkStatus.SKIPPED)
        assert len(skipped) == 19
        assert all(link.status_code == 0 and link.response_time.total_seconds() == 0 for link in skipped)
        assert hits == {"/": 1}

    async def test_ignored_seed_not_requested(self, serve, html_page):
        """Test that ignored seeds are skipped without network I/O."""
        async with serve({"/": html_page(), "/skip-me": html_page()}) as server:
            checker = Checker(CheckConfig(ignore_patterns=["skip-me"]))
            result = await checker.check_urls(
                [str(server.make_url("/")), str(server.make_url("/skip-me"))]
            )
            hits = dict(server.hits)

        assert result.total_ok == 1
        assert len(result.by_status(LinkStatus.SKIPPED)) == 1
        assert hits == {"/": 1}

    async def test_progress_callback_once_per_probe(self, serve, html_page):
        """Test that the callback fires for probes but not for skipped links."""
        events = []

        async with serve({"/": html_page()}) as server:
            url = str(server.make_url("/"))
            missing = str(server.make_url("/missing"))
            checker = Checker()
            checker.set_progress_callback(lambda u, s: events.append((u, s)))
            await checker.check_urls([url, missing, url])

        assert sorted(events) == sorted([(url, LinkStatus.OK), (missing, LinkStatus.DEAD)])

    async def test_cancel_immediately_twice(self, serve, html_page):
        """Test that an already-cancelled run never probes and never hangs."""
        cancel_event = asyncio.Event()
        cancel_event.set()

        async with serve({"/": html_page()}) as server:
            url = str(server.make_url("/"))
            checker = Checker()

            for _ in range(2):
                with pytest.raises(CheckCancelled) as excinfo:
                    await asyncio.wait_for(checker.check_urls([url], cancel_event), timeout=5)
                assert excinfo.value.result.total_checked == 0

            hits = dict(server.hits)

        assert hits == {}


@pytest.mark.asyncio
class TestCrawlMode:
    """Test crawling a local site."""

    async def test_crawl_site(self, serve, html_page):
        """Test a crawl with a cycle, a dead link and an external link."""
        site = {
            "/": html_page("/a", "/b", "/", "mailto:me@example.com", "http://elsewhere.invalid/"),
            "/a": html_page("/b", "/", "/deep"),
            "/deep": html_page("/deeper"),
            "/deeper": html_page(),
        }

        async with serve(site) as server:
            seed = str(server.make_url("/"))
            checker = Checker(
                CheckConfig(
                    mode=CheckMode.CRAWLER,
                    max_depth=2,
                    allowed_domains=["127.0.0.1"],
                    concurrency=4,
                )
            )
            result = await checker.check_urls([seed])
            hits = dict(server.hits)

        assert_consistent(result)
        statuses = {link.url: link.status for link in non_skipped(result)}
        assert statuses == {
            seed: LinkStatus.OK,
            str(server.make_url("/a")): LinkStatus.OK,
            str(server.make_url("/b")): LinkStatus.DEAD,
            str(server.make_url("/deep")): LinkStatus.OK,
        }
        # every page requested exactly once, nothing past the depth bound
        assert hits == {"/": 1, "/a": 1, "/b": 1, "/deep": 1}
        assert all(link.found_on for link in result.by_status(LinkStatus.SKIPPED))

    async def test_crawl_depth_zero(self, serve, html_page):
        """Test that max_depth=0 only probes the seed."""
        async with serve({"/": html_page("/a"), "/a": html_page()}) as server:
            checker = Checker(CheckConfig(mode=CheckMode.CRAWLER, max_depth=0))
            result = await checker.check_urls([str(server.make_url("/"))])
            hits = dict(server.hits)

        assert result.total_checked == 1
        assert hits == {"/": 1}

    async def test_seeds_share_registry(self, serve, html_page):
        """Test that a page found by one seed is not re-probed by the next."""
        async with serve({"/": html_page("/a"), "/a": html_page()}) as server:
            checker = Checker(CheckConfig(mode=CheckMode.CRAWLER, max_depth=1))
            result = await checker.check_urls(
                [str(server.make_url("/")), str(server.make_url("/a"))]
            )
            hits = dict(server.hits)

        assert len(non_skipped(result)) == 2
        assert len(result.by_status(LinkStatus.SKIPPED)) == 1
        assert hits == {"/": 1, "/a": 1}

    async def test_failed_seed_does_not_stop_others(self, serve, html_page):
        """Test that a bad seed is reported while later seeds still run."""
        async with serve({"/": html_page()}) as server:
            good = str(server.make_url("/"))
            checker = Checker(CheckConfig(mode=CheckMode.CRAWLER, max_depth=1))

            with pytest.raises(CheckError) as excinfo:
                await checker.check_urls(["not-a-url", good])

        error = excinfo.value
        assert [failure.url for failure in error.failures] == ["not-a-url"]
        assert_consistent(error.result)
        statuses = {link.url: link.status for link in error.result.links}
        assert statuses == {"not-a-url": LinkStatus.ERROR, good: LinkStatus.OK}

    async def test_cancel_before_crawl(self, serve, html_page):
        """Test that a cancelled crawl raises before touching the network."""
        cancel_event = asyncio.Event()
        cancel_event.set()

        async with serve({"/": html_page("/a")}) as server:
            checker = Checker(CheckConfig(mode=CheckMode.CRAWLER))
            with pytest.raises(CheckCancelled):
                await checker.check_urls([str(server.make_url("/"))], cancel_event)
            hits = dict(server.hits)

        assert hits == {}
