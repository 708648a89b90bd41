"""Tests for result aggregation."""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from unlinked.aggregator import ResultAggregator
from unlinked.models import LinkResult, LinkStatus, utcnow


def make(url: str, status: LinkStatus) -> LinkResult:
    return LinkResult(url=url, status=status)


class TestResultAggregator:
    """Test recording and finalizing results."""

    def test_counts_per_status(self):
        """Test that each status bumps the right counter."""
        aggregator = ResultAggregator()
        for i, status in enumerate(
            [
                LinkStatus.OK,
                LinkStatus.OK,
                LinkStatus.DEAD,
                LinkStatus.REDIRECT,
                LinkStatus.ERROR,
                LinkStatus.TIMEOUT,
                LinkStatus.SKIPPED,
            ]
        ):
            aggregator.record(make(f"https://example.com/{i}", status))

        start = utcnow()
        result = aggregator.finalize(start, start + timedelta(seconds=1))

        assert result.total_checked == 7
        assert result.total_ok == 2
        assert result.total_dead == 1
        assert result.total_redirect == 1
        assert result.total_errors == 2  # error + timeout
        assert result.duration == timedelta(seconds=1)

    def test_skipped_fills_the_gap(self):
        """Test that skipped entries count only towards total_checked."""
        aggregator = ResultAggregator()
        aggregator.record(make("https://a.com", LinkStatus.SKIPPED))
        aggregator.record(make("https://b.com", LinkStatus.OK))

        result = aggregator.finalize(utcnow(), utcnow())

        counted = result.total_ok + result.total_dead + result.total_redirect + result.total_errors
        assert result.total_checked == len(result.links) == 2
        assert counted == 1

    def test_insertion_order_kept(self):
        """Test that links come back in recorded order."""
        aggregator = ResultAggregator()
        for url in ["https://c.com", "https://a.com", "https://b.com"]:
            aggregator.record(make(url, LinkStatus.OK))

        result = aggregator.finalize(utcnow(), utcnow())

        assert [link.url for link in result.links] == [
            "https://c.com",
            "https://a.com",
            "https://b.com",
        ]

    def test_finalize_is_a_snapshot(self):
        """Test that later records do not leak into an earlier summary."""
        aggregator = ResultAggregator()
        aggregator.record(make("https://a.com", LinkStatus.OK))
        first = aggregator.finalize(utcnow(), utcnow())

        aggregator.record(make("https://b.com", LinkStatus.DEAD))

        assert first.total_checked == 1
        assert first.total_dead == 0
        assert len(aggregator) == 2
        assert aggregator.counts()["total_dead"] == 1

    def test_concurrent_records_consistent(self):
        """Test that concurrent recording never tears counts."""
        aggregator = ResultAggregator()
        statuses = [LinkStatus.OK, LinkStatus.DEAD, LinkStatus.ERROR, LinkStatus.SKIPPED]

        def record(i):
            aggregator.record(make(f"https://example.com/{i}", statuses[i % 4]))

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(record, range(2000)))

        result = aggregator.finalize(utcnow(), utcnow())

        assert result.total_checked == len(result.links) == 2000
        assert result.total_ok == 500
        assert result.total_dead == 500
        assert result.total_errors == 500
